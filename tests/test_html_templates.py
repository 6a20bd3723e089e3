from io import BytesIO

import pytest
from pypdf import PdfReader

from app.documents.html_templates import TemplateRenderError, html_to_pdf, render_html


def _weasyprint_loads() -> bool:
    # pango / cairo are system libraries; weasyprint raises OSError without them
    try:
        import weasyprint  # noqa: F401
    except OSError:
        return False
    return True


def test_render_html_substitutes_placeholders():
    html = render_html("<p>{{ brand_name }} / {{ state_code }}</p>", {"brand_name": "We Cover USA", "state_code": "FL"})
    assert html == "<p>We Cover USA / FL</p>"


def test_render_html_escapes_values():
    html = render_html("<p>{{ note }}</p>", {"note": "<script>x</script>"})
    assert "<script>" not in html


def test_render_html_unknown_placeholder_fails():
    with pytest.raises(TemplateRenderError):
        render_html("<p>{{ missing }}</p>", {})


@pytest.mark.skipif(not _weasyprint_loads(), reason="WeasyPrint system libraries not installed")
def test_html_to_pdf_prints_letter_page():
    html = render_html(
        "<h1>{{ brand_name }} Terms</h1><div class='section'>State {{ state_code }}</div>",
        {"brand_name": "We Cover USA", "state_code": "FL"},
    )
    pdf = html_to_pdf(html)

    assert pdf.startswith(b"%PDF")
    reader = PdfReader(BytesIO(pdf))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert (round(float(box.width)), round(float(box.height))) == (612, 792)
    assert "We Cover USA" in reader.pages[0].extract_text()
