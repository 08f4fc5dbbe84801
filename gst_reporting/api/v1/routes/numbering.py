# gst_reporting/api/v1/routes/numbering.py
"""
V1 API endpoints for the invoice prefix reset on financial-year change.

Two calls: /evaluate tells the client whether to ask the user; /commit
saves the prefix the user accepted. Skipping needs no call.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from gst_reporting.api.v1.deps import get_business_repository, get_document_repository
from gst_reporting.api.v1.envelope import ok
from gst_reporting.api.v1.schemas.gst import NumberingCommitRequest, NumberingEvaluateRequest
from gst_reporting.config.settings import settings
from gst_reporting.domain.models.documents import DocumentKind
from gst_reporting.domain.services.invoice_numbering import (
    commit_numbering_reset,
    evaluate_numbering_reset,
    next_document_number,
)
from gst_reporting.domain.services.period_calculator import parse_period_key
from gst_reporting.infrastructure.db.repositories import (
    BusinessProfileRepository,
    DocumentRepository,
)

logger = logging.getLogger("api.v1.numbering")

router = APIRouter(prefix="/businesses/{business_id}/numbering", tags=["Invoice Numbering"])


async def _require_business(business_id: uuid.UUID, businesses: BusinessProfileRepository) -> None:
    if await businesses.get_business(business_id) is None:
        raise HTTPException(status_code=404, detail="Business not found")


@router.post("/evaluate", summary="Does the new period need a prefix reset?")
async def evaluate_reset(
    business_id: uuid.UUID,
    body: NumberingEvaluateRequest,
    businesses: BusinessProfileRepository = Depends(get_business_repository),
):
    await _require_business(business_id, businesses)
    period = parse_period_key(body.kind, body.key)
    state = await businesses.get_numbering_state(business_id)
    decision = evaluate_numbering_reset(state.prefix, period, base=settings.DEFAULT_INVOICE_PREFIX)
    return ok(data=decision.to_dict())


@router.post("/commit", summary="Save the accepted prefix")
async def commit_reset(
    business_id: uuid.UUID,
    body: NumberingCommitRequest,
    businesses: BusinessProfileRepository = Depends(get_business_repository),
):
    await _require_business(business_id, businesses)
    state = await commit_numbering_reset(businesses, business_id, body.new_prefix)
    return ok(data=state.model_dump(), message=f"Invoice prefix set to {state.prefix}")


@router.get("/next", summary="Next invoice number under the current prefix")
async def next_number(
    business_id: uuid.UUID,
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    await _require_business(business_id, businesses)
    state = await businesses.get_numbering_state(business_id)
    existing = await documents.list_document_numbers(business_id, DocumentKind.INVOICE)
    return ok(data={"prefix": state.prefix, "next_number": next_document_number(state.prefix, existing)})
