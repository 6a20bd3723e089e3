# app/schemas/quote.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator

from app.schemas.policy import (
    LIFETIME_TERM,
    CamelModel,
    Dealer,
    Owner,
    Vehicle,
    coerce_term,
)

CENT = Decimal("0.01")


class QuoteCoverage(CamelModel):
    term_months: int = Field(LIFETIME_TERM, gt=0)
    commercial: bool = False
    coverage_level: Optional[str] = None
    deductible: Optional[Decimal] = Field(None, ge=0)

    @field_validator("term_months", mode="before")
    @classmethod
    def _coerce_term(cls, v: Any) -> Any:
        return coerce_term(v)


class PriceLine(CamelModel):
    name: str = Field(..., min_length=1)
    # the quote form sends "amount", older clients "price"
    amount: Decimal = Field(..., validation_alias=AliasChoices("amount", "price"))


class PriceBreakdown(CamelModel):
    base_price: Decimal = Field(..., ge=0)
    coverage_options: List[PriceLine] = Field(
        default_factory=list,
        validation_alias=AliasChoices("coverageOptions", "coverage_options", "options"),
    )
    fees: List[PriceLine] = Field(default_factory=list)
    taxes: Decimal = Field(Decimal("0"), ge=0)
    dealer_markup: Decimal = Field(Decimal("0"), ge=0)
    subtotal: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)

    @property
    def total_premium(self) -> Decimal:
        """Base coverage plus dealer markup, shown as the first price line."""
        return self.base_price + self.dealer_markup

    def reconciles(self) -> bool:
        return (self.subtotal + self.taxes).quantize(CENT) == self.total.quantize(CENT)


class QuotePayload(CamelModel):
    """Input of the quote pipeline; prices are supplied, never computed here."""

    quote_number: str = Field(..., min_length=1)
    product_version: str = Field(..., min_length=1)
    state_code: str = Field(..., min_length=2, max_length=2)
    owner: Owner
    dealer: Dealer
    vehicle: Vehicle
    coverage: QuoteCoverage
    pricing: PriceBreakdown
    notes: Optional[str] = None
    disclaimers: List[str] = Field(default_factory=list)
    issue_date: Optional[date] = None
    valid_until: date


class QuoteCreated(CamelModel):
    id: str
    quote_number: str
    pdf_base64: str
    issue_date: date
    valid_until: date
    total: Decimal


class QuoteSummary(CamelModel):
    id: str
    quote_number: str
    product_version: str
    state_code: str
    total: Decimal
    issue_date: date
    valid_until: date
    created_at: Optional[datetime] = None


class QuoteDetail(QuoteSummary):
    term_months: int
    commercial: bool
    base_price: Decimal
    subtotal: Decimal
    pdf_base64: str
    payload: dict
