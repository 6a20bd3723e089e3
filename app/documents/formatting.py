# app/documents/formatting.py
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from app.schemas.policy import LIFETIME_TERM

CENT = Decimal("0.01")

PRODUCT_NAMES = {
    "WEC-PS-VSC-09-2025": "PSVSC Vehicle Service Contract",
    "AGVSC-LIFETIME-V04-2025": "Lifetime Warranty Protection",
}


def _as_decimal(amount: float | int | Decimal) -> Decimal:
    d = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def fmt_money_field(amount: Optional[Decimal]) -> str:
    """
    Form-field money: two decimals, no grouping, empty for missing values.
    Examples: 2500 -> "2500.00", None -> ""
    """
    if amount is None:
        return ""
    return f"{_as_decimal(amount):.2f}"


def fmt_usd(amount: float | int | Decimal) -> str:
    """
    Format amount as US dollars with 2 decimals and thousands separators.
    Examples: 3200 -> "$3,200.00", -12.5 -> "-$12.50"
    """
    d = _as_decimal(amount)
    if d < 0:
        return f"-${-d:,.2f}"
    return f"${d:,.2f}"


def fmt_term(term_months: int) -> str:
    if term_months == LIFETIME_TERM:
        return "Lifetime"
    return f"{term_months} months"


def fmt_long_date(value: date) -> str:
    """October 6, 2025"""
    return f"{value:%B} {value.day}, {value.year}"


def fmt_int(value: int) -> str:
    return f"{value:,}"


def product_name(product_version: str) -> str:
    return PRODUCT_NAMES.get(product_version, product_version)
