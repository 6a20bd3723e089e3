# app/services/policies_service.py
from __future__ import annotations

import base64
import random
import time
from datetime import date
from typing import Optional

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.config import Settings
from app.core.logging_config import log_context
from app.documents.assembler import PolicyAssembler, build_policy_assembler
from app.models.policy import PolicyRecord
from app.repositories import policies as repo
from app.schemas.policy import PolicyCreated, PolicyDetail, PolicyPayload
from app.services.storage import Storage

logger = structlog.get_logger(__name__)

DRY_RUN_ID = "dry-run"


class PolicyNotFoundError(LookupError):
    def __init__(self, policy_id: str, reason: str = "Policy not found"):
        super().__init__(f"{reason}: {policy_id}")
        self.policy_id = policy_id


def generate_policy_number(state_code: str, prefix: str = "WEC", today: Optional[date] = None) -> str:
    """<prefix>-<state>-<year>-<last 6 digits of epoch ms><3 random digits>"""
    year = (today or date.today()).year
    stamp = str(int(time.time() * 1000))[-6:]
    return f"{prefix}-{state_code}-{year}-{stamp}{random.randint(0, 999):03d}"


def policy_pdf_key(policy_number: str, purchase_date: date) -> str:
    return f"policies/{purchase_date:%Y}/{purchase_date:%m}/{policy_number}.pdf"


class PolicyService:
    def __init__(
        self,
        db: Session,
        storage: Storage,
        settings: Settings,
        assembler: Optional[PolicyAssembler] = None,
    ):
        self.db = db
        self.storage = storage
        self.settings = settings
        self.assembler = assembler or build_policy_assembler(storage, settings)

    async def create_policy(self, payload: PolicyPayload, dry_run: bool = False) -> PolicyCreated:
        policy_number = payload.policy_number or generate_policy_number(
            payload.state_code, self.settings.POLICY_NUMBER_PREFIX
        )
        payload = payload.model_copy(update={"policy_number": policy_number})

        with log_context(policy_number=policy_number):
            if dry_run:
                pdf = await self.assembler.assemble(payload)
                logger.info("policy_dry_run", bytes=len(pdf))
                data_url = "data:application/pdf;base64," + base64.b64encode(pdf).decode("ascii")
                return PolicyCreated(id=DRY_RUN_ID, policy_number=policy_number, pdf_url=data_url)

            record = repo.create_policy(self.db, payload)
            try:
                pdf = await self.assembler.assemble(payload)
                key = policy_pdf_key(policy_number, payload.coverage.purchase_date)
                await run_in_threadpool(self.storage.put_bytes, key, pdf, "application/pdf")
                repo.set_pdf_key(self.db, record, key)
            except Exception:
                logger.exception("policy_create_failed", policy_id=record.id)
                repo.delete_policy(self.db, record)
                raise

            logger.info("policy_created", policy_id=record.id, pdf_key=key)
            return PolicyCreated(
                id=record.id,
                policy_number=policy_number,
                pdf_url=self.storage.public_url(key),
            )

    def get_policy(self, policy_id: str) -> PolicyDetail:
        record = repo.get_policy(self.db, policy_id)
        if record is None:
            raise PolicyNotFoundError(policy_id)
        if not record.pdf_key:
            raise PolicyNotFoundError(policy_id, "Policy PDF not found")
        return to_detail(record, self.storage.public_url(record.pdf_key))


def to_detail(record: PolicyRecord, pdf_url: str) -> PolicyDetail:
    return PolicyDetail(
        id=record.id,
        policy_number=record.policy_number,
        product_version=record.product_version,
        state_code=record.state_code,
        term_months=record.term_months,
        commercial=record.commercial,
        effective_date=record.effective_date,
        expiration_date=record.expiration_date,
        contract_price=record.contract_price,
        sale_price=record.sale_price,
        pdf_key=record.pdf_key,
        pdf_url=pdf_url,
    )
