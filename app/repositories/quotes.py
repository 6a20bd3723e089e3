from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.quote import QuoteRecord
from app.schemas.quote import QuotePayload


def create_quote(db: Session, payload: QuotePayload, issue_date: date) -> QuoteRecord:
    p = payload.pricing
    record = QuoteRecord(
        quote_number=payload.quote_number,
        product_version=payload.product_version,
        state_code=payload.state_code,
        term_months=payload.coverage.term_months,
        commercial=payload.coverage.commercial,
        base_price=p.base_price,
        subtotal=p.subtotal,
        total=p.total,
        issue_date=issue_date,
        valid_until=payload.valid_until,
        payload=payload.model_dump(mode="json", by_alias=True),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def get_quote_by_number(db: Session, quote_number: str) -> Optional[QuoteRecord]:
    return (
        db.query(QuoteRecord)
        .filter(QuoteRecord.quote_number == quote_number)
        .order_by(QuoteRecord.created_at.desc())
        .first()
    )


def list_quotes(
    db: Session,
    *,
    state_code: Optional[str] = None,
    product_version: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[QuoteRecord]:
    q = db.query(QuoteRecord)
    if state_code:
        q = q.filter(QuoteRecord.state_code == state_code)
    if product_version:
        q = q.filter(QuoteRecord.product_version == product_version)
    return q.order_by(QuoteRecord.created_at).offset(offset).limit(limit).all()
