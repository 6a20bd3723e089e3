# ORM models for the contract service

from .html_template import HtmlTemplate, TemplateKind
from .policy import PolicyRecord
from .quote import QuoteRecord

__all__ = [
    "HtmlTemplate",
    "PolicyRecord",
    "QuoteRecord",
    "TemplateKind",
]
