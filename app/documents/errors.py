# app/documents/errors.py
from __future__ import annotations

from decimal import Decimal


class DocumentError(RuntimeError):
    """Hard failure of a document pipeline; the caller gets no bytes."""


class TemplateNotFoundError(DocumentError):
    def __init__(self, key: str):
        super().__init__(f"Template not found in storage: {key}")
        self.key = key


class FormLoadError(DocumentError):
    def __init__(self, key: str, reason: str = ""):
        msg = f"Template is not a fillable PDF form: {key}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
        self.key = key


class MergeError(DocumentError):
    def __init__(self, index: int, reason: str = ""):
        msg = f"Merge input #{index} is not a readable PDF"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
        self.index = index


class UnknownProductVersionError(DocumentError):
    def __init__(self, product_version: str):
        super().__init__(f"No field mapping for product version: {product_version}")
        self.product_version = product_version


class QuoteTotalMismatchError(DocumentError):
    def __init__(self, expected: Decimal, actual: Decimal):
        super().__init__(f"Quote total {actual} does not equal subtotal + taxes ({expected})")
        self.expected = expected
        self.actual = actual
