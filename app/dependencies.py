from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.db import get_db
from app.services.policies_service import PolicyService
from app.services.quotes_service import QuoteService
from app.services.storage import Storage, get_storage
from app.services.templates_service import TemplateService


def get_storage_service(settings: Settings = Depends(get_settings)) -> Storage:
    """Sync helper to access the storage implementation (S3/local/memory)."""
    return get_storage(settings)


def get_policy_service(
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage_service),
    settings: Settings = Depends(get_settings),
) -> PolicyService:
    return PolicyService(db, storage, settings)


def get_quote_service(
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage_service),
    settings: Settings = Depends(get_settings),
) -> QuoteService:
    return QuoteService(db, storage, settings)


def get_template_service(
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage_service),
    settings: Settings = Depends(get_settings),
) -> TemplateService:
    return TemplateService(db, storage, settings)
