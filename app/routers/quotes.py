# app/routers/quotes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_quote_service
from app.documents.errors import DocumentError
from app.routers.errors import document_http_error
from app.schemas.quote import QuoteCreated, QuoteDetail, QuotePayload, QuoteSummary
from app.services.quotes_service import QuoteNotFoundError, QuoteService

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.post("", response_model=QuoteCreated, status_code=201)
async def create_quote(payload: QuotePayload, service: QuoteService = Depends(get_quote_service)):
    try:
        return await service.create_quote(payload)
    except DocumentError as e:
        raise document_http_error(e) from e


@router.get("", response_model=List[QuoteSummary])
def list_quotes(
    state_code: Optional[str] = Query(None, alias="stateCode"),
    product_version: Optional[str] = Query(None, alias="productVersion"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: QuoteService = Depends(get_quote_service),
):
    return service.list_quotes(
        state_code=state_code,
        product_version=product_version,
        limit=limit,
        offset=offset,
    )


@router.get("/{quote_number}", response_model=QuoteDetail)
async def get_quote(quote_number: str, service: QuoteService = Depends(get_quote_service)):
    try:
        return await service.get_quote(quote_number)
    except QuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except DocumentError as e:
        raise document_http_error(e) from e
