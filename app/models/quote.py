# app/models/quote.py
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base
from app.models.policy import _uuid, utcnow


class QuoteRecord(Base):
    __tablename__ = "quote"
    __table_args__ = (
        Index("idx_quote_number", "quote_number"),
        Index("idx_quote_state", "state_code"),
        Index("idx_quote_product", "product_version"),
        Index("idx_quote_valid_until", "valid_until"),
        Index("idx_quote_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    quote_number: Mapped[str] = mapped_column(String, nullable=False)
    product_version: Mapped[str] = mapped_column(String, nullable=False)
    state_code: Mapped[str] = mapped_column(String(2), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False, default=999)
    commercial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    valid_until: Mapped[date] = mapped_column(Date, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
