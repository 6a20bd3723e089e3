from typing import Optional

from sqlalchemy.orm import Session

from app.models.policy import PolicyRecord
from app.schemas.policy import PolicyPayload


def create_policy(db: Session, payload: PolicyPayload) -> PolicyRecord:
    c = payload.coverage
    record = PolicyRecord(
        policy_number=payload.policy_number,
        product_version=payload.product_version,
        state_code=payload.state_code,
        term_months=c.term_months,
        commercial=c.commercial,
        effective_date=c.purchase_date,
        expiration_date=c.expiration_date,
        contract_price=c.contract_price,
        sale_price=payload.vehicle.sale_price,
        payload=payload.model_dump(mode="json", by_alias=True),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def get_policy(db: Session, policy_id: str) -> Optional[PolicyRecord]:
    return db.query(PolicyRecord).filter(PolicyRecord.id == policy_id).first()


def set_pdf_key(db: Session, record: PolicyRecord, pdf_key: str) -> PolicyRecord:
    record.pdf_key = pdf_key
    db.commit()
    db.refresh(record)
    return record


def delete_policy(db: Session, record: PolicyRecord) -> None:
    db.delete(record)
    db.commit()
