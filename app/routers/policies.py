# app/routers/policies.py
from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_policy_service
from app.documents.errors import DocumentError
from app.routers.errors import document_http_error
from app.schemas.policy import PolicyCreated, PolicyDetail, PolicyPayload
from app.services.policies_service import PolicyNotFoundError, PolicyService

router = APIRouter(prefix="/api/policies", tags=["policies"])


@router.post("", response_model=PolicyCreated, status_code=201)
async def create_policy(
    payload: PolicyPayload,
    dry_run: bool = Query(False, alias="dryRun"),
    service: PolicyService = Depends(get_policy_service),
):
    try:
        return await service.create_policy(payload, dry_run=dry_run)
    except DocumentError as e:
        raise document_http_error(e) from e


@router.get("/{policy_id}", response_model=PolicyDetail)
def get_policy(policy_id: str, service: PolicyService = Depends(get_policy_service)):
    try:
        return service.get_policy(policy_id)
    except PolicyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
