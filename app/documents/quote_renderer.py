# app/documents/quote_renderer.py
"""
Single-page US-Letter price quote, drawn with reportlab primitives.

``build_layout`` walks a cursor from the top margin down through the fixed
section order and emits draw operations; ``paint`` replays them onto a
canvas. Splitting the two keeps the geometry comparable between renders.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import List, Optional, Sequence, Tuple, Union

import structlog
from fastapi.concurrency import run_in_threadpool
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as rl_canvas

from app.documents.blobs import fetch_blob
from app.documents.errors import QuoteTotalMismatchError
from app.documents.formatting import (
    PRODUCT_NAMES,
    fmt_int,
    fmt_long_date,
    fmt_term,
    fmt_usd,
    product_name,
)
from app.schemas.quote import PriceBreakdown, QuotePayload
from app.services.storage import Storage

logger = structlog.get_logger(__name__)

PAGE_WIDTH = 612
PAGE_HEIGHT = 792
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
COLUMN_GAP = 20
COLUMN_WIDTH = (CONTENT_WIDTH - COLUMN_GAP) / 2
BOTTOM_GUARD = 60
FOOTER_Y = 30
LOGO_MAX_WIDTH = 120
LOGO_MAX_SCALE = 0.2

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

RGB = Tuple[float, float, float]
BLACK: RGB = (0, 0, 0)
WHITE: RGB = (1, 1, 1)
NAVY: RGB = (0, 0.2, 0.4)
BAND: RGB = (0, 0.3, 0.5)
ALERT: RGB = (0.8, 0, 0)
SHADE: RGB = (0.95, 0.95, 0.95)
RULE: RGB = (0.3, 0.3, 0.3)
MUTED: RGB = (0.4, 0.4, 0.4)

DEFAULT_LOGO_KEY = "brand/logos/wecover-logo.png"


@dataclass(frozen=True)
class BrandInfo:
    name: str = "We Cover USA"
    company_lines: Tuple[str, ...] = (
        "We Cover USA, LLC",
        "400 SW 1st Avenue, #96",
        "Ocala, FL 34471",
        "Telephone: 855-2-WECOVER",
    )
    footer: str = (
        "This quote is not a binding contract. Final terms subject to underwriting "
        "approval. All Rights Reserved 2025. WeCover USA, LLC."
    )


@dataclass(frozen=True)
class QuoteRenderOptions:
    include_logo: bool = True
    logo_key: str = DEFAULT_LOGO_KEY


@dataclass
class Logo:
    reader: ImageReader
    width: float
    height: float


# -------------------------
# Draw operations
# -------------------------


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 10
    color: RGB = BLACK


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 1
    color: RGB = BLACK


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    color: RGB = SHADE


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass
class QuoteLayout:
    ops: List[DrawOp] = field(default_factory=list)
    cursor: float = PAGE_HEIGHT - MARGIN

    def texts(self) -> List[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


# -------------------------
# Helpers
# -------------------------


def wrap_text(text: str, max_width: float, font: str = FONT, size: float = 9) -> List[str]:
    """Greedy word wrap against measured string width; an over-long word keeps its own line."""
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and stringWidth(candidate, font, size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def _city_line(city: Optional[str], state: Optional[str], zip_code: Optional[str]) -> str:
    tail = " ".join(p for p in (state, zip_code) if p)
    return ", ".join(p for p in (city, tail) if p)


def _heading(layout: QuoteLayout, x: float, y: float, text: str, size: float = 11) -> None:
    layout.ops.append(TextOp(x, y, text, FONT_BOLD, size, NAVY))


def _column(layout: QuoteLayout, x: float, y: float, title: str, lines: Sequence[str]) -> float:
    _heading(layout, x, y, title)
    y -= 15
    for line in lines:
        layout.ops.append(TextOp(x, y, line, FONT, 8))
        y -= 12
    return y


def _two_columns(
    layout: QuoteLayout,
    left: Tuple[str, Sequence[str]],
    right: Tuple[str, Sequence[str]],
) -> None:
    top = layout.cursor
    left_y = _column(layout, MARGIN, top, *left)
    right_y = _column(layout, MARGIN + COLUMN_WIDTH + COLUMN_GAP, top, *right)
    layout.cursor = min(left_y, right_y) - 20


def _price_line(
    layout: QuoteLayout,
    label: str,
    amount: Decimal,
    label_font: str = FONT,
    amount_font: str = FONT,
    indented: bool = False,
) -> None:
    size = 9 if indented else 10
    x = MARGIN + (20 if indented else 0)
    amount_text = fmt_usd(amount)
    amount_x = PAGE_WIDTH - MARGIN - stringWidth(amount_text, amount_font, size)
    layout.ops.append(TextOp(x, layout.cursor, label, label_font, size))
    layout.ops.append(TextOp(amount_x, layout.cursor, amount_text, amount_font, size))


def check_totals(pricing: PriceBreakdown, *, strict: bool = False) -> None:
    if pricing.reconciles():
        return
    expected = pricing.subtotal + pricing.taxes
    if strict:
        raise QuoteTotalMismatchError(expected, pricing.total)
    logger.warning("quote_total_mismatch", expected=str(expected), total=str(pricing.total))


# -------------------------
# Sections
# -------------------------


def _header(layout: QuoteLayout, brand: BrandInfo, logo: Optional[Logo]) -> None:
    y = layout.cursor
    if logo is not None:
        layout.ops.append(ImageOp(MARGIN, y - logo.height, logo.width, logo.height))
        y -= logo.height + 15
        layout.ops.append(TextOp(MARGIN + 130, y + 10, brand.name, FONT_BOLD, 24, NAVY))
        y -= 20
    else:
        layout.ops.append(TextOp(MARGIN, y - 20, brand.name, FONT_BOLD, 24, NAVY))
        y -= 35
    layout.cursor = y - 10


def _title(layout: QuoteLayout) -> None:
    _heading(layout, MARGIN, layout.cursor, "INSURANCE QUOTE", 20)
    layout.cursor -= 20


def _meta_box(layout: QuoteLayout, quote: QuotePayload, issue_date: date) -> None:
    y = layout.cursor
    layout.ops.append(RectOp(MARGIN, y - 80, CONTENT_WIDTH, 80, SHADE))
    x = MARGIN + 10
    y -= 15
    layout.ops.append(TextOp(x, y, f"Quote Number: {quote.quote_number}", FONT_BOLD, 11))
    y -= 18
    layout.ops.append(TextOp(x, y, f"Issue Date: {fmt_long_date(issue_date)}", FONT, 10))
    y -= 15
    layout.ops.append(
        TextOp(x, y, f"Valid Until: {fmt_long_date(quote.valid_until)}", FONT_BOLD, 10, ALERT)
    )
    y -= 15
    if quote.product_version not in PRODUCT_NAMES:
        logger.warning("unknown_product_version", product_version=quote.product_version)
    layout.ops.append(TextOp(x, y, f"Product: {product_name(quote.product_version)}", FONT, 10))
    layout.cursor = y - 35


def _parties(layout: QuoteLayout, quote: QuotePayload, brand: BrandInfo) -> None:
    d = quote.dealer
    dealer_lines = [
        d.name,
        d.address,
        _city_line(d.city, d.state, d.zip),
        d.phone,
        f"Rep: {d.sales_rep}" if d.sales_rep else None,
    ]
    _two_columns(
        layout,
        (brand.name.upper(), brand.company_lines),
        ("DEALER INFORMATION", [line for line in dealer_lines if line]),
    )


def _customer_vehicle(layout: QuoteLayout, quote: QuotePayload) -> None:
    o = quote.owner
    v = quote.vehicle
    customer = [
        f"{o.first_name} {o.last_name}",
        o.address,
        _city_line(o.city, o.state, o.zip),
        o.phone,
        str(o.email),
    ]
    vehicle = [
        f"{v.year} {v.make} {v.model}",
        f"VIN: {v.vin}",
        f"Mileage: {fmt_int(v.mileage)} miles",
    ]
    if v.sale_price:
        vehicle.append(f"Sale Price: {fmt_usd(v.sale_price)}")
    _two_columns(layout, ("CUSTOMER INFORMATION", customer), ("VEHICLE INFORMATION", vehicle))


def _coverage(layout: QuoteLayout, quote: QuotePayload) -> None:
    c = quote.coverage
    _heading(layout, MARGIN, layout.cursor, "COVERAGE DETAILS")
    layout.cursor -= 15
    lines = [
        f"Term: {fmt_term(c.term_months)}",
        f"Type: {'Commercial' if c.commercial else 'Personal'}",
    ]
    if c.coverage_level:
        lines.append(f"Coverage Level: {c.coverage_level}")
    if c.deductible:
        lines.append(f"Deductible: {fmt_usd(c.deductible)}")
    for line in lines:
        layout.ops.append(TextOp(MARGIN, layout.cursor, line, FONT, 8))
        layout.cursor -= 12
    layout.cursor -= 20


def _price_breakdown(layout: QuoteLayout, quote: QuotePayload) -> None:
    p = quote.pricing
    _heading(layout, MARGIN, layout.cursor, "PRICE BREAKDOWN", 12)
    layout.cursor -= 5
    layout.ops.append(LineOp(MARGIN, layout.cursor, PAGE_WIDTH - MARGIN, layout.cursor, 1, NAVY))
    layout.cursor -= 15

    _price_line(layout, "Total Premium", p.total_premium, FONT, FONT_BOLD)
    layout.cursor -= 15
    for option in p.coverage_options:
        _price_line(layout, f"  + {option.name}", option.amount, indented=True)
        layout.cursor -= 13
    for fee in p.fees:
        _price_line(layout, f"  {fee.name}", fee.amount, indented=True)
        layout.cursor -= 13
    if p.taxes > 0:
        _price_line(layout, "Taxes", p.taxes)
        layout.cursor -= 15

    layout.cursor -= 5
    layout.ops.append(LineOp(MARGIN, layout.cursor, PAGE_WIDTH - MARGIN, layout.cursor, 0.5, RULE))
    layout.cursor -= 15
    _price_line(layout, "Subtotal", p.subtotal, FONT_BOLD, FONT_BOLD)
    layout.cursor -= 25

    y = layout.cursor
    layout.ops.append(RectOp(MARGIN, y - 5, CONTENT_WIDTH, 25, BAND))
    layout.ops.append(TextOp(MARGIN + 10, y + 5, "TOTAL QUOTE", FONT_BOLD, 12, WHITE))
    total_text = fmt_usd(p.total)
    total_x = PAGE_WIDTH - MARGIN - stringWidth(total_text, FONT_BOLD, 14) - 10
    layout.ops.append(TextOp(total_x, y + 5, total_text, FONT_BOLD, 14, WHITE))
    layout.cursor -= 30


def _wrapped_block(
    layout: QuoteLayout,
    lines: Sequence[str],
    font: str,
    size: float,
    leading: float,
    color: RGB = BLACK,
) -> bool:
    """Place lines until the bottom guard; returns False once the page is full."""
    for line in lines:
        if layout.cursor < BOTTOM_GUARD:
            return False
        layout.ops.append(TextOp(MARGIN, layout.cursor, line, font, size, color))
        layout.cursor -= leading
    return True


def _notes(layout: QuoteLayout, quote: QuotePayload) -> None:
    if not quote.notes or layout.cursor < BOTTOM_GUARD:
        return
    _heading(layout, MARGIN, layout.cursor, "ADDITIONAL NOTES")
    layout.cursor -= 18
    _wrapped_block(layout, wrap_text(quote.notes, CONTENT_WIDTH, FONT, 9), FONT, 9, 14)
    layout.cursor -= 20


def _disclaimers(layout: QuoteLayout, quote: QuotePayload) -> None:
    if not quote.disclaimers or layout.cursor < BOTTOM_GUARD:
        return
    _heading(layout, MARGIN, layout.cursor, "IMPORTANT DISCLAIMERS")
    layout.cursor -= 18
    for disclaimer in quote.disclaimers:
        lines = wrap_text(f"• {disclaimer}", CONTENT_WIDTH, FONT_ITALIC, 8)
        if not _wrapped_block(layout, lines, FONT_ITALIC, 8, 12, RULE):
            logger.debug("quote_disclaimers_truncated", quote_number=quote.quote_number)
            return
        layout.cursor -= 5


def _footer(layout: QuoteLayout, brand: BrandInfo) -> None:
    layout.ops.append(TextOp(MARGIN, FOOTER_Y, brand.footer, FONT_ITALIC, 7, MUTED))


def build_layout(
    quote: QuotePayload,
    logo: Optional[Logo] = None,
    *,
    brand: BrandInfo = BrandInfo(),
    issue_date: Optional[date] = None,
) -> QuoteLayout:
    layout = QuoteLayout()
    _header(layout, brand, logo)
    _title(layout)
    _meta_box(layout, quote, issue_date or quote.issue_date or date.today())
    _parties(layout, quote, brand)
    _customer_vehicle(layout, quote)
    _coverage(layout, quote)
    _price_breakdown(layout, quote)
    _notes(layout, quote)
    _disclaimers(layout, quote)
    _footer(layout, brand)
    return layout


# -------------------------
# Painting
# -------------------------


def paint(layout: QuoteLayout, logo: Optional[Logo] = None, title: str = "") -> bytes:
    buf = BytesIO()
    c = rl_canvas.Canvas(buf, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), invariant=1)
    if title:
        c.setTitle(title)
    for op in layout.ops:
        if isinstance(op, TextOp):
            c.setFont(op.font, op.size)
            c.setFillColorRGB(*op.color)
            c.drawString(op.x, op.y, op.text)
        elif isinstance(op, LineOp):
            c.setStrokeColorRGB(*op.color)
            c.setLineWidth(op.width)
            c.line(op.x1, op.y1, op.x2, op.y2)
        elif isinstance(op, RectOp):
            c.setFillColorRGB(*op.color)
            c.rect(op.x, op.y, op.width, op.height, stroke=0, fill=1)
        elif isinstance(op, ImageOp) and logo is not None:
            c.drawImage(logo.reader, op.x, op.y, width=op.width, height=op.height, mask="auto")
    c.showPage()
    c.save()
    return buf.getvalue()


def decode_logo(data: bytes) -> Logo:
    img = Image.open(BytesIO(data))
    img.load()
    width, height = img.size
    scale = min(LOGO_MAX_WIDTH / width, LOGO_MAX_SCALE)
    return Logo(reader=ImageReader(img), width=width * scale, height=height * scale)


class QuoteRenderer:
    def __init__(
        self,
        storage: Optional[Storage] = None,
        *,
        brand: BrandInfo = BrandInfo(),
        strict_totals: bool = False,
    ):
        self.storage = storage
        self.brand = brand
        self.strict_totals = strict_totals

    async def _load_logo(self, key: str) -> Optional[Logo]:
        if self.storage is None:
            logger.warning("quote_logo_skipped", logo_key=key, reason="no storage configured")
            return None
        try:
            data = await fetch_blob(self.storage, key)
            return await run_in_threadpool(decode_logo, data)
        except Exception as e:
            logger.warning("quote_logo_skipped", logo_key=key, reason=str(e), error=type(e).__name__)
            return None

    async def render(self, quote: QuotePayload, options: Optional[QuoteRenderOptions] = None) -> bytes:
        options = options or QuoteRenderOptions()
        check_totals(quote.pricing, strict=self.strict_totals)

        logo = await self._load_logo(options.logo_key) if options.include_logo else None
        layout = build_layout(quote, logo, brand=self.brand)
        pdf = await run_in_threadpool(paint, layout, logo, f"Quote {quote.quote_number}")
        logger.info("quote_rendered", quote_number=quote.quote_number, logo=logo is not None)
        return pdf
