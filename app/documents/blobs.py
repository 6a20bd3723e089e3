# app/documents/blobs.py
from __future__ import annotations

from fastapi.concurrency import run_in_threadpool

from app.documents.errors import TemplateNotFoundError
from app.services.storage import BlobNotFoundError, Storage


async def fetch_blob(storage: Storage, key: str) -> bytes:
    """Read a template/static document; a missing key is a hard pipeline failure."""
    try:
        return await run_in_threadpool(storage.get_bytes, key)
    except BlobNotFoundError as e:
        raise TemplateNotFoundError(key) from e
