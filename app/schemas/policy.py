# app/schemas/policy.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

STANDARD_TERMS = (72, 84, 96)
LIFETIME_TERM = 999
ALLOWED_TERMS = STANDARD_TERMS + (LIFETIME_TERM,)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; payloads are immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def coerce_term(value: Any) -> Any:
    """Accept 72/84/96/999, their string forms, or the 'lifetime' sentinel."""
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw == "lifetime":
            return LIFETIME_TERM
        if raw.isdigit():
            return int(raw)
    return value


class Owner(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2)
    zip: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=7)
    email: EmailStr


class CoOwner(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class Dealer(CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    zip: Optional[str] = Field(None, min_length=3)
    phone: Optional[str] = Field(None, min_length=7)
    sales_rep: Optional[str] = None


class Vehicle(CamelModel):
    vin: str = Field(..., min_length=5)
    year: str = Field(..., min_length=4)
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    mileage: int = Field(..., ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Lender(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city_state_zip: Optional[str] = None


class PolicyCoverage(CamelModel):
    term_months: int
    commercial: bool = False
    contract_price: Decimal = Field(..., ge=0)
    purchase_date: date
    expiration_date: date

    @field_validator("term_months", mode="before")
    @classmethod
    def _coerce_term(cls, v: Any) -> Any:
        return coerce_term(v)

    @field_validator("term_months")
    @classmethod
    def _known_term(cls, v: int) -> int:
        if v not in ALLOWED_TERMS:
            raise ValueError(f"term_months must be one of {ALLOWED_TERMS}")
        return v


class PolicyPayload(CamelModel):
    """Input of the policy pipeline (form fill + terms + disclosure)."""

    policy_number: Optional[str] = None
    state_code: str = Field(..., min_length=2, max_length=2)
    product_version: str = Field(..., min_length=1)
    owner: Owner
    co_owner: Optional[CoOwner] = None
    dealer: Dealer
    vehicle: Vehicle
    coverage: PolicyCoverage
    lender: Optional[Lender] = None
    customer_signature_png_base64: Optional[str] = None


class PolicyCreated(CamelModel):
    id: str
    policy_number: str
    pdf_url: str


class PolicyDetail(CamelModel):
    id: str
    policy_number: str
    product_version: str
    state_code: str
    term_months: int
    commercial: bool
    effective_date: date
    expiration_date: date
    contract_price: Decimal
    sale_price: Optional[Decimal] = None
    pdf_key: Optional[str] = None
    pdf_url: str
