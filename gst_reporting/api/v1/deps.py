# gst_reporting/api/v1/deps.py
"""Shared FastAPI dependencies for v1 routes."""

from __future__ import annotations

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gst_reporting.core.db import get_db
from gst_reporting.domain.models.period import Period, PeriodKind
from gst_reporting.domain.services.period_calculator import parse_period_key
from gst_reporting.infrastructure.db.repositories import (
    BusinessProfileRepository,
    DocumentRepository,
    LedgerRepository,
)


def get_document_repository(db: AsyncSession = Depends(get_db)) -> DocumentRepository:
    return DocumentRepository(db)


def get_ledger_repository(db: AsyncSession = Depends(get_db)) -> LedgerRepository:
    return LedgerRepository(db)


def get_business_repository(db: AsyncSession = Depends(get_db)) -> BusinessProfileRepository:
    return BusinessProfileRepository(db)


def get_period(
    kind: PeriodKind = Query(PeriodKind.MONTH, description="FY, Quarter, Month or Custom"),
    key: str = Query(..., description="e.g. 2025-26, 2025-Q4, 2026-01, 2026-01-01..2026-01-31"),
) -> Period:
    return parse_period_key(kind, key)
