# app/documents/html_templates.py
"""
HTML sources of the static terms / disclosure PDFs.

Templates are stored as HTML in the blob store; publishing renders the
placeholders with Jinja2 and prints the result to a Letter PDF with WeasyPrint.
"""
from __future__ import annotations

from typing import Any, Mapping

from jinja2 import Environment, StrictUndefined, select_autoescape
from jinja2.exceptions import TemplateError

from app.documents.errors import DocumentError

PRINT_CSS = """
@page {
    size: Letter;
    margin: 0.5in;
}
body {
    font-family: Helvetica, Arial, sans-serif;
    font-size: 10pt;
}
.section {
    page-break-inside: avoid;
}
"""

_env = Environment(
    autoescape=select_autoescape(default_for_string=True, default=True),
    undefined=StrictUndefined,
)


class TemplateRenderError(DocumentError):
    pass


def render_html(source: str, context: Mapping[str, Any]) -> str:
    """
    Render a stored HTML template.

    Example:
        render_html("<h1>{{ product_name }}</h1>", {"product_name": "PSVSC"})
    """
    try:
        return _env.from_string(source).render(**context)
    except TemplateError as e:
        raise TemplateRenderError(f"Template rendering failed: {e}") from e


def html_to_pdf(html: str) -> bytes:
    # weasyprint pulls in pango/cairo at import time; only publishing needs it
    from weasyprint import CSS, HTML
    from weasyprint.text.fonts import FontConfiguration

    font_config = FontConfiguration()
    css = CSS(string=PRINT_CSS, font_config=font_config)
    return HTML(string=html).write_pdf(stylesheets=[css], font_config=font_config)
