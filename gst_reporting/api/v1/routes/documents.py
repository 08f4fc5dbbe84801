# gst_reporting/api/v1/routes/documents.py
"""
V1 API endpoints for finalizing and listing tax documents.

Finalizing freezes the GST type from the business and customer states and
computes document totals. A finalized invoice also posts a Debit entry to
the customer ledger in the same transaction: both rows land or neither does.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gst_reporting.api.v1.deps import (
    get_business_repository,
    get_document_repository,
    get_ledger_repository,
)
from gst_reporting.api.v1.envelope import PaginationParams, ok, paginated
from gst_reporting.api.v1.schemas.gst import DocumentCreateRequest
from gst_reporting.core.db import get_db
from gst_reporting.domain.exceptions import PersistenceError
from gst_reporting.domain.models.documents import DocumentDraft, DocumentKind
from gst_reporting.domain.models.ledger import LedgerEntry, LedgerEntryType
from gst_reporting.domain.services.invoice_numbering import next_document_number, note_prefix
from gst_reporting.domain.services.tax_calculator import finalize_document, validate_document
from gst_reporting.infrastructure.db.repositories import (
    BusinessProfileRepository,
    DocumentRepository,
    LedgerRepository,
)

logger = logging.getLogger("api.v1.documents")

router = APIRouter(prefix="/businesses/{business_id}/documents", tags=["Documents"])


@router.post("", summary="Finalize and store a document")
async def create_document(
    business_id: uuid.UUID,
    body: DocumentCreateRequest,
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
    ledger: LedgerRepository = Depends(get_ledger_repository),
    db: AsyncSession = Depends(get_db),
):
    business = await businesses.get_business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")

    number = (body.document_number or "").strip()
    if not number:
        if body.kind == DocumentKind.INVOICE:
            if not business.auto_numbering:
                raise HTTPException(status_code=400, detail="Document number required: auto-numbering is off")
            prefix = business.invoice_prefix
        else:
            prefix = note_prefix(body.kind, body.date.year)
        existing = await documents.list_document_numbers(business_id, body.kind)
        number = next_document_number(prefix, existing)

    draft = DocumentDraft(
        id=str(uuid.uuid4()),
        document_number=number,
        customer_id=str(body.customer_id) if body.customer_id else None,
        **body.model_dump(exclude={"document_number", "customer_id"}),
    )
    validate_document(draft)
    document = finalize_document(draft, business.state)
    try:
        saved = await documents.add_document(business_id, document)
        if saved.kind == DocumentKind.INVOICE:
            await ledger.add_entry(
                business_id,
                LedgerEntry(
                    date=saved.date,
                    type=LedgerEntryType.DEBIT,
                    amount=saved.total_amount,
                    invoice_id=saved.id,
                    customer_id=saved.customer_id,
                    description=f"Invoice {saved.document_number}",
                ),
            )
        await db.commit()
    except PersistenceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Commit failed for %s: %s", number, exc)
        raise PersistenceError(f"Could not save document {number}") from exc

    logger.info("Finalized %s %s (%s)", saved.kind.value, saved.document_number, saved.gst_type.value)
    return ok(data=saved.model_dump(mode="json"))


@router.get("", summary="List documents")
async def list_documents(
    business_id: uuid.UUID,
    kind: DocumentKind | None = Query(None),
    page: PaginationParams = Depends(),
    documents: DocumentRepository = Depends(get_document_repository),
):
    items = await documents.list_documents(business_id, kind)
    window = items[page.offset: page.offset + page.limit]
    return paginated(
        items=[d.model_dump(mode="json") for d in window],
        total=len(items),
        limit=page.limit,
        offset=page.offset,
    )
