# app/routers/errors.py
from fastapi import HTTPException

from app.documents.errors import (
    DocumentError,
    QuoteTotalMismatchError,
    TemplateNotFoundError,
    UnknownProductVersionError,
)


def document_http_error(e: DocumentError) -> HTTPException:
    """Map a document pipeline failure onto the HTTP status the client sees."""
    if isinstance(e, (UnknownProductVersionError, QuoteTotalMismatchError)):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, TemplateNotFoundError):
        return HTTPException(status_code=502, detail=f"Document template unavailable: {e.key}")
    return HTTPException(status_code=500, detail=str(e))
