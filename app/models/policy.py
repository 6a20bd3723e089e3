# app/models/policy.py
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PolicyRecord(Base):
    __tablename__ = "policy"
    __table_args__ = (
        Index("idx_policy_number", "policy_number"),
        Index("idx_policy_state", "state_code"),
        Index("idx_policy_product", "product_version"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    policy_number: Mapped[str] = mapped_column(String, nullable=False)
    product_version: Mapped[str] = mapped_column(String, nullable=False)
    state_code: Mapped[str] = mapped_column(String(2), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False, default=999)  # 999 = lifetime
    commercial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    contract_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    pdf_key: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
