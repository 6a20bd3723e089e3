# app/documents/assembler.py
from __future__ import annotations

import asyncio
from functools import partial

import structlog
from fastapi.concurrency import run_in_threadpool

from app.config import Settings
from app.documents.blobs import fetch_blob
from app.documents.field_mapping import to_acro_fields
from app.documents.form_filler import FormFiller
from app.documents.merger import merge_pdfs
from app.schemas.policy import PolicyPayload
from app.services.storage import Storage

logger = structlog.get_logger(__name__)


class PolicyAssembler:
    """Filled contract form + static terms + state disclosure, in that order."""

    def __init__(self, storage: Storage, filler: FormFiller, terms_key: str, disclosure_key: str):
        self.storage = storage
        self.filler = filler
        self.terms_key = terms_key
        self.disclosure_key = disclosure_key

    async def assemble(self, payload: PolicyPayload) -> bytes:
        filled = await self.filler.fill(payload)
        terms, disclosure = await asyncio.gather(
            fetch_blob(self.storage, self.terms_key),
            fetch_blob(self.storage, self.disclosure_key),
        )
        pdf = await run_in_threadpool(merge_pdfs, [filled, terms, disclosure])
        logger.info("policy_assembled", bytes=len(pdf))
        return pdf


def build_policy_assembler(storage: Storage, settings: Settings) -> PolicyAssembler:
    mapper = partial(to_acro_fields, strict=settings.STRICT_PRODUCT_VERSIONS)
    filler = FormFiller(storage, settings.PDF_TEMPLATE_KEY, mapper=mapper)
    return PolicyAssembler(
        storage,
        filler,
        terms_key=settings.PDF_TERMS_KEY,
        disclosure_key=settings.PDF_DISCLOSURE_KEY,
    )
