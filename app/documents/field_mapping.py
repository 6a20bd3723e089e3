# app/documents/field_mapping.py
"""
PolicyPayload -> AcroForm field values.

Each product variant owns a mapping table: an ordered tuple of pure section
functions whose merged output covers every name in ``FIELD_NAMES``. Adding a
variant means adding one entry to ``MAPPING_TABLES``.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import structlog

from app.documents.errors import UnknownProductVersionError
from app.documents.formatting import fmt_money_field
from app.schemas.policy import STANDARD_TERMS, PolicyPayload

logger = structlog.get_logger(__name__)

FieldMap = Dict[str, str]
Section = Callable[[PolicyPayload], FieldMap]
MappingTable = Tuple[Section, ...]

ON = "On"
OFF = "Off"

FIELD_NAMES: Tuple[str, ...] = (
    "Text_Contract_Number",
    "Text_Owner_Firstname",
    "Text_Owner_Lastname",
    "Text_Owner_Address",
    "Text_Owner_City",
    "Text_Owner_State",
    "Text_Owner_ZipCode",
    "Text_Owner_Phone",
    "Text_Owner_Email",
    "Text_Co_Owner_Name",
    "Text_Co_Owner_Address",
    "Text_Co_Owner_City",
    "Text_Co_Owner_state",
    "Text_Co_Owner_ZipCode",
    "Text_Co_Owner_Phone",
    "Text_Co_Owner_Email",
    "Text_Dealer_ID",
    "Text_Dealer_Name",
    "Text_Dealer_Address",
    "Text_Dealer_City",
    "Text_Dealer_State",
    "Text_Dealer_ZipCode",
    "Text_Dealer_Phone",
    "Text_Dealer_Sale_Name",
    "Text_Vehicle_ID",
    "Text_Vehicle_Year",
    "Text_Vehicle_Make",
    "Text_Vehicle_Model",
    "Text_Vehicle_Mileage",
    "Text_Vehicle_Sale_Price",
    "Text_Contract_Purchase_Date",
    "Text_ExpirationDate",
    "Text_Contract_Price",
    "Term_72m",
    "Term_84m",
    "Term_96m",
    "LossCode_COMMERCIAL",
    "Text_Lender_Name",
    "Text_Lender_Address",
    "Text_Lender_City_Sate_Zip",
    "CustomerSignature",
)

TERM_FIELDS: Dict[int, str] = {months: f"Term_{months}m" for months in STANDARD_TERMS}
COMMERCIAL_FIELD = "LossCode_COMMERCIAL"
SIGNATURE_FIELD = "CustomerSignature"


class ProductVersion(str, Enum):
    PSVSC = "WEC-PS-VSC-09-2025"
    LIFETIME = "AGVSC-LIFETIME-V04-2025"

    @classmethod
    def parse(cls, raw: str) -> Optional["ProductVersion"]:
        try:
            return cls(raw)
        except ValueError:
            return None


def _text(value: Optional[object]) -> str:
    return "" if value is None else str(value)


def _check(flag: bool) -> str:
    return ON if flag else OFF


# -------------------------
# Sections
# -------------------------


def contract_number_fields(p: PolicyPayload) -> FieldMap:
    return {"Text_Contract_Number": _text(p.policy_number)}


def owner_fields(p: PolicyPayload) -> FieldMap:
    o = p.owner
    return {
        "Text_Owner_Firstname": o.first_name,
        "Text_Owner_Lastname": o.last_name,
        "Text_Owner_Address": o.address,
        "Text_Owner_City": o.city,
        "Text_Owner_State": o.state,
        "Text_Owner_ZipCode": o.zip,
        "Text_Owner_Phone": o.phone,
        "Text_Owner_Email": str(o.email),
    }


def co_owner_fields(p: PolicyPayload) -> FieldMap:
    c = p.co_owner
    return {
        "Text_Co_Owner_Name": _text(c and c.name),
        "Text_Co_Owner_Address": _text(c and c.address),
        "Text_Co_Owner_City": _text(c and c.city),
        "Text_Co_Owner_state": _text(c and c.state),
        "Text_Co_Owner_ZipCode": _text(c and c.zip),
        "Text_Co_Owner_Phone": _text(c and c.phone),
        "Text_Co_Owner_Email": _text(c and c.email),
    }


def dealer_fields(p: PolicyPayload) -> FieldMap:
    d = p.dealer
    return {
        "Text_Dealer_ID": d.id,
        "Text_Dealer_Name": d.name,
        "Text_Dealer_Address": _text(d.address),
        "Text_Dealer_City": _text(d.city),
        "Text_Dealer_State": _text(d.state),
        "Text_Dealer_ZipCode": _text(d.zip),
        "Text_Dealer_Phone": _text(d.phone),
        "Text_Dealer_Sale_Name": _text(d.sales_rep),
    }


def vehicle_fields(p: PolicyPayload) -> FieldMap:
    v = p.vehicle
    return {
        "Text_Vehicle_ID": v.vin,
        "Text_Vehicle_Year": v.year,
        "Text_Vehicle_Make": v.make,
        "Text_Vehicle_Model": v.model,
        "Text_Vehicle_Mileage": str(v.mileage),
        "Text_Vehicle_Sale_Price": fmt_money_field(v.sale_price),
    }


def contract_fields(p: PolicyPayload) -> FieldMap:
    c = p.coverage
    return {
        "Text_Contract_Purchase_Date": c.purchase_date.isoformat(),
        "Text_ExpirationDate": c.expiration_date.isoformat(),
        "Text_Contract_Price": fmt_money_field(c.contract_price),
    }


def term_fields(p: PolicyPayload) -> FieldMap:
    # lifetime (999) and unknown terms leave every box unchecked
    term = p.coverage.term_months
    return {name: _check(term == months) for months, name in TERM_FIELDS.items()}


def commercial_fields(p: PolicyPayload) -> FieldMap:
    return {COMMERCIAL_FIELD: _check(bool(p.coverage.commercial))}


def lender_fields(p: PolicyPayload) -> FieldMap:
    ln = p.lender
    return {
        "Text_Lender_Name": _text(ln and ln.name),
        "Text_Lender_Address": _text(ln and ln.address),
        "Text_Lender_City_Sate_Zip": _text(ln and ln.city_state_zip),
    }


def signature_fields(p: PolicyPayload) -> FieldMap:
    # the signature is drawn as an image overlay, never written as text
    return {SIGNATURE_FIELD: ""}


# -------------------------
# Tables
# -------------------------

PSVSC_TABLE: MappingTable = (
    contract_number_fields,
    owner_fields,
    co_owner_fields,
    dealer_fields,
    vehicle_fields,
    contract_fields,
    term_fields,
    commercial_fields,
    lender_fields,
    signature_fields,
)

# Same layout as PSVSC on the AGVSC lifetime form; lifetime contracts carry
# term 999, so no term box gets checked.
LIFETIME_TABLE: MappingTable = PSVSC_TABLE

MAPPING_TABLES: Dict[ProductVersion, MappingTable] = {
    ProductVersion.PSVSC: PSVSC_TABLE,
    ProductVersion.LIFETIME: LIFETIME_TABLE,
}

DEFAULT_PRODUCT = ProductVersion.PSVSC


def apply_table(table: MappingTable, payload: PolicyPayload) -> FieldMap:
    fields: FieldMap = {name: "" for name in FIELD_NAMES}
    for section in table:
        fields.update(section(payload))
    return fields


def resolve_table(product_version: str, *, strict: bool = False) -> MappingTable:
    product = ProductVersion.parse(product_version)
    if product is None:
        if strict:
            raise UnknownProductVersionError(product_version)
        logger.warning(
            "unknown_product_version",
            product_version=product_version,
            fallback=DEFAULT_PRODUCT.value,
        )
        product = DEFAULT_PRODUCT
    return MAPPING_TABLES[product]


def to_acro_fields(payload: PolicyPayload, *, strict: bool = False) -> FieldMap:
    """
    Map a policy payload to the template's AcroForm field values.

    The result always holds every key of FIELD_NAMES; checkboxes use the
    literal strings "On"/"Off".
    """
    table = resolve_table(payload.product_version, strict=strict)
    fields = apply_table(table, payload)
    logger.debug(
        "acro_fields_mapped",
        product_version=payload.product_version,
        term_months=payload.coverage.term_months,
        commercial=payload.coverage.commercial,
    )
    return fields
