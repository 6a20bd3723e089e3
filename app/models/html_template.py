# app/models/html_template.py
import enum
from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base
from app.models.policy import _uuid, utcnow


class TemplateKind(str, enum.Enum):
    terms = "terms"
    disclosure = "disclosure"


class HtmlTemplate(Base):
    __tablename__ = "html_template"
    __table_args__ = (
        Index("idx_html_tmpl", "kind", "product_version", "state_code", "language", "version_tag"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    kind: Mapped[str] = mapped_column(String, nullable=False)  # terms | disclosure
    product_version: Mapped[str | None] = mapped_column(String, nullable=True)
    state_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    language: Mapped[str] = mapped_column(String, nullable=False, default="en-US")
    version_tag: Mapped[str] = mapped_column(String, nullable=False)
    s3_key: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
