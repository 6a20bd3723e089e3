from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.html_template import HtmlTemplate, TemplateKind


def create_template(
    db: Session,
    *,
    kind: TemplateKind,
    version_tag: str,
    language: str,
    s3_key: str,
    product_version: Optional[str] = None,
    state_code: Optional[str] = None,
) -> HtmlTemplate:
    record = HtmlTemplate(
        kind=kind.value,
        product_version=product_version,
        state_code=state_code,
        language=language,
        version_tag=version_tag,
        s3_key=s3_key,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_templates(db: Session, kind: TemplateKind) -> List[HtmlTemplate]:
    return (
        db.query(HtmlTemplate)
        .filter(HtmlTemplate.kind == kind.value)
        .order_by(HtmlTemplate.created_at.desc())
        .all()
    )


def latest_template(
    db: Session,
    kind: TemplateKind,
    *,
    product_version: Optional[str] = None,
    state_code: Optional[str] = None,
    language: Optional[str] = None,
) -> Optional[HtmlTemplate]:
    q = db.query(HtmlTemplate).filter(HtmlTemplate.kind == kind.value)
    if product_version:
        q = q.filter(HtmlTemplate.product_version == product_version)
    if state_code:
        q = q.filter(HtmlTemplate.state_code == state_code)
    if language:
        q = q.filter(HtmlTemplate.language == language)
    return q.order_by(HtmlTemplate.created_at.desc()).first()
