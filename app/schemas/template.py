# app/schemas/template.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from app.schemas.policy import CamelModel


class TermsTemplateCreate(CamelModel):
    product_version: str = Field(..., min_length=1)
    version_tag: str = Field(..., min_length=1)
    language: str = "en-US"
    html_content: str = Field(..., min_length=1)


class DisclosureTemplateCreate(CamelModel):
    state_code: str = Field(..., min_length=2, max_length=2)
    version_tag: str = Field(..., min_length=1)
    language: str = "en-US"
    html_content: str = Field(..., min_length=1)


class TemplateOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    product_version: Optional[str] = None
    state_code: Optional[str] = None
    language: str
    version_tag: str
    s3_key: str
    created_at: Optional[datetime] = None


class TemplatePublish(CamelModel):
    """Selects which stored template to print; newest match wins."""

    product_version: Optional[str] = None
    state_code: Optional[str] = None
    language: Optional[str] = None


class TemplatePublished(CamelModel):
    kind: str
    template_id: str
    source_key: str
    pdf_key: str
    size_bytes: int
