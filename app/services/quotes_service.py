# app/services/quotes_service.py
from __future__ import annotations

import base64
from datetime import date
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from app.config import Settings
from app.core.logging_config import log_context
from app.documents.quote_renderer import BrandInfo, QuoteRenderer, QuoteRenderOptions
from app.models.quote import QuoteRecord
from app.repositories import quotes as repo
from app.schemas.quote import QuoteCreated, QuoteDetail, QuotePayload, QuoteSummary
from app.services.storage import Storage

logger = structlog.get_logger(__name__)


class QuoteNotFoundError(LookupError):
    def __init__(self, quote_number: str):
        super().__init__(f"Quote not found: {quote_number}")
        self.quote_number = quote_number


def build_quote_renderer(storage: Storage, settings: Settings) -> QuoteRenderer:
    return QuoteRenderer(
        storage,
        brand=BrandInfo(name=settings.BRAND_NAME),
        strict_totals=settings.STRICT_QUOTE_TOTALS,
    )


def _b64(pdf: bytes) -> str:
    return base64.b64encode(pdf).decode("ascii")


def to_summary(record: QuoteRecord) -> QuoteSummary:
    return QuoteSummary(
        id=record.id,
        quote_number=record.quote_number,
        product_version=record.product_version,
        state_code=record.state_code,
        total=record.total,
        issue_date=record.issue_date,
        valid_until=record.valid_until,
        created_at=record.created_at,
    )


class QuoteService:
    def __init__(
        self,
        db: Session,
        storage: Storage,
        settings: Settings,
        renderer: Optional[QuoteRenderer] = None,
    ):
        self.db = db
        self.settings = settings
        self.renderer = renderer or build_quote_renderer(storage, settings)
        self.options = QuoteRenderOptions(logo_key=settings.BRAND_LOGO_KEY)

    async def create_quote(self, payload: QuotePayload) -> QuoteCreated:
        issue_date = payload.issue_date or date.today()
        payload = payload.model_copy(update={"issue_date": issue_date})

        with log_context(quote_number=payload.quote_number):
            pdf = await self.renderer.render(payload, self.options)
            record = repo.create_quote(self.db, payload, issue_date)
            logger.info("quote_created", quote_id=record.id, bytes=len(pdf))

        return QuoteCreated(
            id=record.id,
            quote_number=record.quote_number,
            pdf_base64=_b64(pdf),
            issue_date=record.issue_date,
            valid_until=record.valid_until,
            total=record.total,
        )

    async def get_quote(self, quote_number: str) -> QuoteDetail:
        record = repo.get_quote_by_number(self.db, quote_number)
        if record is None:
            raise QuoteNotFoundError(quote_number)

        # the PDF is never stored; regenerate it from the saved payload
        payload = QuotePayload.model_validate(record.payload)
        with log_context(quote_number=quote_number):
            pdf = await self.renderer.render(payload, self.options)

        summary = to_summary(record)
        return QuoteDetail(
            **summary.model_dump(),
            term_months=record.term_months,
            commercial=record.commercial,
            base_price=record.base_price,
            subtotal=record.subtotal,
            pdf_base64=_b64(pdf),
            payload=record.payload,
        )

    def list_quotes(
        self,
        *,
        state_code: Optional[str] = None,
        product_version: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[QuoteSummary]:
        records = repo.list_quotes(
            self.db,
            state_code=state_code,
            product_version=product_version,
            limit=limit,
            offset=offset,
        )
        return [to_summary(r) for r in records]
