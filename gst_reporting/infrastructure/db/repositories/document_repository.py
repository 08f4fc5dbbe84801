"""Repository for tax documents (invoices, credit notes, debit notes)."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gst_reporting.domain.exceptions import PersistenceError
from gst_reporting.domain.models.documents import (
    DocumentKind,
    GstType,
    InvoiceStatus,
    LineItem,
    TaxableDocument,
)
from gst_reporting.infrastructure.db.models import TaxDocument, TaxDocumentLine

logger = logging.getLogger("document_repository")


class DocumentRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- small helpers ----------

    @staticmethod
    def _to_decimal(value, default: str = "0.00") -> Decimal:
        if value is None:
            return Decimal(default)
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            return Decimal(default)

    @classmethod
    def _to_domain(cls, row: TaxDocument) -> TaxableDocument:
        return TaxableDocument(
            id=str(row.id),
            kind=DocumentKind(row.kind),
            document_number=row.document_number,
            date=row.document_date,
            customer_id=str(row.customer_id) if row.customer_id else None,
            customer_name=row.customer_name or "",
            customer_gstin=row.customer_gstin,
            customer_state=row.customer_state,
            line_items=[
                LineItem(
                    description=line.description or "",
                    hsn_code=line.hsn_code or "",
                    quantity=cls._to_decimal(line.quantity),
                    unit_rate=cls._to_decimal(line.unit_rate),
                    gst_rate_percent=cls._to_decimal(line.gst_rate_percent),
                )
                for line in row.lines
            ],
            gst_type=GstType(row.gst_type),
            taxable_value=cls._to_decimal(row.taxable_value),
            cgst=cls._to_decimal(row.cgst),
            sgst=cls._to_decimal(row.sgst),
            igst=cls._to_decimal(row.igst),
            total_amount=cls._to_decimal(row.total_amount),
            status=InvoiceStatus(row.status) if row.status else None,
            reverse_charge=bool(row.reverse_charge),
            original_invoice_number=row.original_invoice_number,
            reason=row.reason,
            deleted=bool(row.deleted),
        )

    # ---------- main methods ----------

    async def list_documents(
        self,
        business_id: uuid.UUID,
        kind: DocumentKind | None = None,
        *,
        include_deleted: bool = False,
    ) -> list[TaxableDocument]:
        """Documents of one business, optionally of one kind, oldest first."""
        conditions = [TaxDocument.business_id == business_id]
        if kind is not None:
            conditions.append(TaxDocument.kind == kind.value)
        if not include_deleted:
            conditions.append(TaxDocument.deleted.is_(False))

        stmt = (
            select(TaxDocument)
            .options(selectinload(TaxDocument.lines))
            .where(and_(*conditions))
            .order_by(TaxDocument.document_date, TaxDocument.document_number)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Failed to list documents for business %s: %s", business_id, exc)
            raise PersistenceError(f"Could not load documents for business {business_id}") from exc
        return [self._to_domain(row) for row in result.scalars().all()]

    async def list_document_numbers(self, business_id: uuid.UUID, kind: DocumentKind) -> list[str]:
        stmt = select(TaxDocument.document_number).where(
            and_(TaxDocument.business_id == business_id, TaxDocument.kind == kind.value)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load document numbers for business {business_id}") from exc
        return list(result.scalars().all())

    async def add_document(self, business_id: uuid.UUID, document: TaxableDocument) -> TaxableDocument:
        """Stage a finalized document with its lines; the caller commits."""
        row = TaxDocument(
            business_id=business_id,
            kind=document.kind.value,
            document_number=document.document_number,
            document_date=document.date,
            customer_id=uuid.UUID(document.customer_id) if document.customer_id else None,
            customer_name=document.customer_name,
            customer_gstin=document.customer_gstin,
            customer_state=document.customer_state,
            gst_type=document.gst_type.value,
            taxable_value=document.taxable_value,
            cgst=document.cgst,
            sgst=document.sgst,
            igst=document.igst,
            total_amount=document.total_amount,
            status=document.status.value if document.status else None,
            reverse_charge=document.reverse_charge,
            original_invoice_number=document.original_invoice_number,
            reason=document.reason,
            lines=[
                TaxDocumentLine(
                    position=idx,
                    description=item.description,
                    hsn_code=item.hsn_code or None,
                    quantity=item.quantity,
                    unit_rate=item.unit_rate,
                    gst_rate_percent=item.gst_rate_percent,
                )
                for idx, item in enumerate(document.line_items, start=1)
            ],
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.error("Failed to save document %s: %s", document.document_number, exc)
            raise PersistenceError(f"Could not save document {document.document_number}") from exc

        logger.info("Staged %s %s for business %s", document.kind.value, document.document_number, business_id)
        return document.model_copy(update={"id": str(row.id)})
