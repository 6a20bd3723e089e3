# app/services/templates_service.py
from __future__ import annotations

from typing import List, Optional, Union

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.config import Settings
from app.documents.blobs import fetch_blob
from app.documents.formatting import product_name
from app.documents.html_templates import html_to_pdf, render_html
from app.models.html_template import TemplateKind
from app.repositories import templates as repo
from app.schemas.template import (
    DisclosureTemplateCreate,
    TemplateOut,
    TemplatePublish,
    TemplatePublished,
    TermsTemplateCreate,
)
from app.services.storage import Storage

logger = structlog.get_logger(__name__)


class TemplateRecordNotFoundError(LookupError):
    def __init__(self, kind: TemplateKind):
        super().__init__(f"No {kind.value} template matches the request")
        self.kind = kind


def template_source_key(kind: TemplateKind, scope: str, version_tag: str, language: str) -> str:
    """terms are scoped by product version, disclosures by state code"""
    folder = "terms" if kind is TemplateKind.terms else "disclosures"
    return f"templates/{folder}/{scope}/{version_tag}/{language}.html"


class TemplateService:
    def __init__(self, db: Session, storage: Storage, settings: Settings):
        self.db = db
        self.storage = storage
        self.settings = settings

    def list_templates(self, kind: TemplateKind) -> List[TemplateOut]:
        return [TemplateOut.model_validate(t) for t in repo.list_templates(self.db, kind)]

    async def upload(self, body: Union[TermsTemplateCreate, DisclosureTemplateCreate]) -> TemplateOut:
        if isinstance(body, TermsTemplateCreate):
            kind, scope = TemplateKind.terms, body.product_version
            product_version, state_code = body.product_version, None
        else:
            kind, scope = TemplateKind.disclosure, body.state_code
            product_version, state_code = None, body.state_code

        key = template_source_key(kind, scope, body.version_tag, body.language)
        await run_in_threadpool(
            self.storage.put_bytes, key, body.html_content.encode("utf-8"), "text/html"
        )
        record = repo.create_template(
            self.db,
            kind=kind,
            version_tag=body.version_tag,
            language=body.language,
            s3_key=key,
            product_version=product_version,
            state_code=state_code,
        )
        logger.info("template_uploaded", kind=kind.value, s3_key=key, template_id=record.id)
        return TemplateOut.model_validate(record)

    def target_key(self, kind: TemplateKind) -> str:
        if kind is TemplateKind.terms:
            return self.settings.PDF_TERMS_KEY
        return self.settings.PDF_DISCLOSURE_KEY

    async def publish(self, kind: TemplateKind, selector: Optional[TemplatePublish] = None) -> TemplatePublished:
        """Print the newest matching HTML template to the static PDF the assembler reads."""
        selector = selector or TemplatePublish()
        record = repo.latest_template(
            self.db,
            kind,
            product_version=selector.product_version,
            state_code=selector.state_code,
            language=selector.language,
        )
        if record is None:
            raise TemplateRecordNotFoundError(kind)

        source = (await fetch_blob(self.storage, record.s3_key)).decode("utf-8")
        context = {
            "brand_name": self.settings.BRAND_NAME,
            "product_version": record.product_version or "",
            "product_name": product_name(record.product_version) if record.product_version else "",
            "state_code": record.state_code or "",
            "language": record.language,
            "version_tag": record.version_tag,
        }
        html = render_html(source, context)
        pdf = await run_in_threadpool(html_to_pdf, html)

        pdf_key = self.target_key(kind)
        await run_in_threadpool(self.storage.put_bytes, pdf_key, pdf, "application/pdf")
        logger.info("template_published", kind=kind.value, template_id=record.id, pdf_key=pdf_key)
        return TemplatePublished(
            kind=kind.value,
            template_id=record.id,
            source_key=record.s3_key,
            pdf_key=pdf_key,
            size_bytes=len(pdf),
        )
