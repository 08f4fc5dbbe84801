# gst_reporting/api/v1/routes/gst_periods.py
"""V1 API endpoints for period options and filing deadlines."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query

from gst_reporting.api.v1.deps import get_period
from gst_reporting.api.v1.envelope import ok
from gst_reporting.config.settings import settings
from gst_reporting.domain.models.period import Period, PeriodKind
from gst_reporting.domain.services.period_calculator import (
    compute_filing_deadlines,
    compute_period_options,
)

logger = logging.getLogger("api.v1.gst_periods")

router = APIRouter(prefix="/gst/periods", tags=["GST Periods"])


def _period_dict(p: Period) -> dict:
    return {
        "kind": p.kind.value,
        "key": p.key,
        "label": p.label,
        "start": p.start.isoformat(),
        "end": p.end.isoformat(),
    }


@router.get("/options", summary="Recent period options")
async def period_options(
    kind: PeriodKind = Query(PeriodKind.MONTH),
    reference_date: date | None = Query(None, description="Defaults to today"),
):
    """Most recent first: FY +1/-3 years, last 8 quarters or last 12 months."""
    options = compute_period_options(kind, reference_date or date.today())
    return ok(data=[_period_dict(p) for p in options])


@router.get("/deadlines", summary="GSTR-1 and GSTR-3B due dates")
async def filing_deadlines(
    period: Period = Depends(get_period),
    today: date | None = Query(None, description="Defaults to today"),
):
    deadlines = compute_filing_deadlines(
        period,
        today=today,
        warning_days=settings.DEADLINE_WARNING_DAYS,
    )
    return ok(data={key: info.to_dict() for key, info in deadlines.items()})
