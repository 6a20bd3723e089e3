# app/documents/merger.py
from __future__ import annotations

from io import BytesIO
from typing import Sequence

import structlog
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from app.documents.errors import MergeError

logger = structlog.get_logger(__name__)


def merge_pdfs(buffers: Sequence[bytes]) -> bytes:
    """
    Concatenate PDFs in list order, each keeping its internal page order.

    Form fields of every input are carried into the output. An input that
    cannot be parsed aborts the merge with MergeError(index).
    """
    writer = PdfWriter()
    for index, data in enumerate(buffers):
        try:
            reader = PdfReader(BytesIO(data))
            writer.append(reader)
        except (PyPdfError, ValueError, KeyError, OSError) as e:
            raise MergeError(index, str(e)) from e

    out = BytesIO()
    writer.write(out)
    logger.debug("pdfs_merged", inputs=len(buffers), pages=len(writer.pages))
    return out.getvalue()
