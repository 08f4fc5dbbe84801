"""Repository for customer ledger entries (read by the outstanding analyzer)."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gst_reporting.domain.exceptions import PersistenceError
from gst_reporting.domain.models.ledger import LedgerEntry, LedgerEntryType
from gst_reporting.infrastructure.db.models import LedgerEntry as LedgerEntryRow

logger = logging.getLogger("ledger_repository")


class LedgerRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def _to_domain(row: LedgerEntryRow) -> LedgerEntry:
        return LedgerEntry(
            id=str(row.id),
            date=row.entry_date,
            type=LedgerEntryType(row.entry_type),
            amount=Decimal(str(row.amount or 0)),
            invoice_id=str(row.invoice_id) if row.invoice_id else None,
            customer_id=str(row.customer_id) if row.customer_id else None,
            description=row.description or "",
        )

    async def list_ledger_entries(self, business_id: uuid.UUID) -> list[LedgerEntry]:
        stmt = (
            select(LedgerEntryRow)
            .where(LedgerEntryRow.business_id == business_id)
            .order_by(LedgerEntryRow.entry_date)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Failed to list ledger for business %s: %s", business_id, exc)
            raise PersistenceError(f"Could not load ledger for business {business_id}") from exc
        return [self._to_domain(row) for row in result.scalars().all()]

    async def add_entry(self, business_id: uuid.UUID, entry: LedgerEntry) -> LedgerEntry:
        """Stage an entry in the current session; the caller commits."""
        row = LedgerEntryRow(
            business_id=business_id,
            entry_date=entry.date,
            entry_type=entry.type.value,
            amount=entry.amount,
            invoice_id=uuid.UUID(entry.invoice_id) if entry.invoice_id else None,
            customer_id=uuid.UUID(entry.customer_id) if entry.customer_id else None,
            description=entry.description or None,
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not save ledger entry") from exc
        return entry.model_copy(update={"id": str(row.id)})
