from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from pypdf import PdfReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from structlog.testing import capture_logs

from app.documents.errors import QuoteTotalMismatchError
from app.documents.quote_renderer import (
    BOTTOM_GUARD,
    CONTENT_WIDTH,
    FONT,
    FOOTER_Y,
    ImageOp,
    QuoteRenderer,
    QuoteRenderOptions,
    TextOp,
    build_layout,
    decode_logo,
    wrap_text,
)
from app.schemas.quote import QuotePayload
from app.services.storage import MemoryStorage
from tests.pdf_factory import make_png
from tests.payloads import quote_body

LOGO_KEY = "brand/logos/wecover-logo.png"


def _quote(**overrides) -> QuotePayload:
    return QuotePayload.model_validate(quote_body(**overrides))


def _pricing(**changes) -> dict:
    pricing = dict(quote_body()["pricing"])
    pricing.update(changes)
    return pricing


def _text_ops(layout):
    return [op for op in layout.ops if isinstance(op, TextOp)]


def test_layout_sections_in_order():
    texts = build_layout(_quote()).texts()
    order = [
        "We Cover USA",
        "INSURANCE QUOTE",
        "Quote Number: Q-2025-0001",
        "DEALER INFORMATION",
        "CUSTOMER INFORMATION",
        "COVERAGE DETAILS",
        "PRICE BREAKDOWN",
        "TOTAL QUOTE",
        "ADDITIONAL NOTES",
        "IMPORTANT DISCLAIMERS",
    ]
    positions = [texts.index(t) for t in order]
    assert positions == sorted(positions)


def test_content_stays_above_bottom_guard():
    ys = [op.y for op in _text_ops(build_layout(_quote()))[:-1]]
    assert ys[0] > ys[-1]
    assert all(y >= BOTTOM_GUARD for y in ys)


def test_meta_box_values():
    texts = build_layout(_quote()).texts()
    assert "Issue Date: October 6, 2025" in texts
    assert "Valid Until: November 5, 2025" in texts
    assert "Product: PSVSC Vehicle Service Contract" in texts


def test_unknown_product_shows_raw_version():
    with capture_logs() as logs:
        texts = build_layout(_quote(productVersion="ACME-X-1")).texts()
    assert "Product: ACME-X-1" in texts
    assert any(e["event"] == "unknown_product_version" for e in logs)


def test_price_breakdown_lines():
    texts = build_layout(_quote()).texts()
    i = texts.index("Total Premium")
    assert texts[i + 1] == "$3,200.00"
    assert "  + Roadside Assistance" in texts
    assert "$150.00" in texts
    assert "  Admin Fee" in texts
    assert "Subtotal" in texts
    assert texts[texts.index("TOTAL QUOTE") + 1] == "$3,425.00"
    # zero taxes are not listed
    assert "Taxes" not in texts


def test_taxes_listed_when_positive():
    texts = build_layout(_quote(pricing=_pricing(taxes=205.5, total=3630.5))).texts()
    assert texts[texts.index("Taxes") + 1] == "$205.50"


def test_negative_amounts():
    layout = build_layout(_quote(pricing=_pricing(fees=[{"name": "Promo", "amount": -12.5}], total=3425)))
    assert "-$12.50" in layout.texts()


def test_term_and_vehicle_lines():
    texts = build_layout(_quote()).texts()
    assert "Term: Lifetime" in texts
    assert "Type: Personal" in texts
    assert "Coverage Level: Platinum" in texts
    assert "Mileage: 42,150 miles" in texts
    assert "Sale Price: $21,500.00" in texts
    assert "Rep: Sam Ortiz" in texts

    body = quote_body()
    body["coverage"]["termMonths"] = 84
    assert "Term: 84 months" in build_layout(QuotePayload.model_validate(body)).texts()


def test_amounts_are_right_aligned():
    layout = build_layout(_quote())
    ops = _text_ops(layout)
    amount = next(op for op in ops if op.text == "$3,200.00")
    right_edge = amount.x + stringWidth(amount.text, amount.font, amount.size)
    assert right_edge == pytest.approx(612 - 50)


def test_wrap_text_respects_width():
    text = " ".join(["coverage"] * 80)
    lines = wrap_text(text, 200, FONT, 9)
    assert len(lines) > 1
    assert all(stringWidth(line, FONT, 9) <= 200 for line in lines)
    assert " ".join(lines) == text


def test_wrap_text_keeps_overlong_word():
    assert wrap_text("Supercalifragilistic", 10, FONT, 9) == ["Supercalifragilistic"]
    assert wrap_text("", 100) == []


def test_disclaimers_stop_above_bottom_guard():
    many = ["Coverage is subject to the terms and conditions of the contract. " * 3] * 40
    layout = build_layout(_quote(disclaimers=many))
    ops = _text_ops(layout)
    footer = ops[-1]
    assert footer.y == FOOTER_Y
    assert all(op.y >= BOTTOM_GUARD for op in ops[:-1])
    assert all(
        stringWidth(op.text, op.font, op.size) <= CONTENT_WIDTH for op in ops if op.text.startswith("•")
    )


def test_logo_changes_header():
    logo = decode_logo(make_png(400, 100))
    layout = build_layout(_quote(), logo)
    images = [op for op in layout.ops if isinstance(op, ImageOp)]
    assert len(images) == 1
    assert images[0].width <= 120
    assert images[0].width / images[0].height == pytest.approx(4.0)


def test_layout_is_repeatable():
    q = _quote()
    assert build_layout(q).ops == build_layout(q).ops


@pytest.mark.anyio
async def test_render_produces_single_letter_page():
    pdf = await QuoteRenderer(MemoryStorage({LOGO_KEY: make_png()})).render(_quote())
    reader = PdfReader(BytesIO(pdf))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert (float(box.width), float(box.height)) == (612, 792)
    text = reader.pages[0].extract_text()
    assert "TOTAL QUOTE" in text
    assert "$3,425.00" in text


@pytest.mark.anyio
async def test_render_is_byte_stable():
    renderer = QuoteRenderer(MemoryStorage({LOGO_KEY: make_png()}))
    q = _quote()
    assert await renderer.render(q) == await renderer.render(q)


@pytest.mark.anyio
async def test_missing_logo_falls_back_to_wordmark():
    with capture_logs() as logs:
        pdf = await QuoteRenderer(MemoryStorage()).render(_quote())
    assert pdf.startswith(b"%PDF")
    assert any(e["event"] == "quote_logo_skipped" for e in logs)


@pytest.mark.anyio
async def test_undecodable_logo_falls_back_to_wordmark():
    with capture_logs() as logs:
        await QuoteRenderer(MemoryStorage({LOGO_KEY: b"not an image"})).render(_quote())
    assert any(e["event"] == "quote_logo_skipped" for e in logs)


class _FailingStorage(MemoryStorage):
    def __init__(self, error: Exception):
        super().__init__()
        self.error = error

    def get_bytes(self, key: str) -> bytes:
        raise self.error


@pytest.mark.anyio
@pytest.mark.parametrize(
    "error",
    [
        ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "GetObject"),
        EndpointConnectionError(endpoint_url="http://localhost:9000"),
    ],
)
async def test_logo_storage_failure_falls_back_to_wordmark(error):
    with capture_logs() as logs:
        pdf = await QuoteRenderer(_FailingStorage(error)).render(_quote())
    assert pdf.startswith(b"%PDF")
    skipped = [e for e in logs if e["event"] == "quote_logo_skipped"]
    assert skipped and skipped[0]["error"] == type(error).__name__


@pytest.mark.anyio
async def test_logo_can_be_disabled():
    with capture_logs() as logs:
        await QuoteRenderer().render(_quote(), QuoteRenderOptions(include_logo=False))
    assert not any(e["event"] == "quote_logo_skipped" for e in logs)


@pytest.mark.anyio
async def test_total_mismatch_warns_by_default():
    with capture_logs() as logs:
        await QuoteRenderer().render(_quote(pricing=_pricing(total=9999)), QuoteRenderOptions(include_logo=False))
    events = [e for e in logs if e["event"] == "quote_total_mismatch"]
    assert events and events[0]["expected"] == "3425"


@pytest.mark.anyio
async def test_total_mismatch_strict_raises():
    renderer = QuoteRenderer(strict_totals=True)
    with pytest.raises(QuoteTotalMismatchError) as exc:
        await renderer.render(_quote(pricing=_pricing(total=9999)), QuoteRenderOptions(include_logo=False))
    assert exc.value.actual == Decimal("9999")


def test_issue_date_defaults_to_today():
    body = quote_body()
    body.pop("issueDate")
    texts = build_layout(QuotePayload.model_validate(body)).texts()
    assert any(t.startswith("Issue Date: ") and str(date.today().year) in t for t in texts)
