# app/routers/templates.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from app.dependencies import get_template_service
from app.documents.errors import DocumentError
from app.models.html_template import TemplateKind
from app.routers.errors import document_http_error
from app.schemas.template import (
    DisclosureTemplateCreate,
    TemplateOut,
    TemplatePublish,
    TemplatePublished,
    TermsTemplateCreate,
)
from app.services.templates_service import TemplateRecordNotFoundError, TemplateService

router = APIRouter(prefix="/api/templates", tags=["templates"])

# URL segment -> stored kind
KINDS = {"terms": TemplateKind.terms, "disclosures": TemplateKind.disclosure}


@router.get("/terms", response_model=List[TemplateOut])
def list_terms(service: TemplateService = Depends(get_template_service)):
    return service.list_templates(TemplateKind.terms)


@router.get("/disclosures", response_model=List[TemplateOut])
def list_disclosures(service: TemplateService = Depends(get_template_service)):
    return service.list_templates(TemplateKind.disclosure)


@router.post("/terms", response_model=TemplateOut, status_code=201)
async def upload_terms(body: TermsTemplateCreate, service: TemplateService = Depends(get_template_service)):
    return await service.upload(body)


@router.post("/disclosures", response_model=TemplateOut, status_code=201)
async def upload_disclosure(
    body: DisclosureTemplateCreate, service: TemplateService = Depends(get_template_service)
):
    return await service.upload(body)


@router.post("/{kind}/publish", response_model=TemplatePublished)
async def publish_template(
    kind: str,
    selector: Optional[TemplatePublish] = Body(None),
    service: TemplateService = Depends(get_template_service),
):
    template_kind = KINDS.get(kind)
    if template_kind is None:
        raise HTTPException(status_code=404, detail=f"Unknown template kind: {kind}")
    try:
        return await service.publish(template_kind, selector)
    except TemplateRecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except DocumentError as e:
        raise document_http_error(e) from e
