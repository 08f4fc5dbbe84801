# gst_reporting/api/v1/routes/reports.py
"""
V1 API endpoints for period reports.

Every report is built from one Aggregate per request. A period with no
documents answers with status "empty" instead of an empty report.
"""

from __future__ import annotations

import io
import logging
import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from gst_reporting.api.v1.deps import (
    get_business_repository,
    get_document_repository,
    get_ledger_repository,
    get_period,
)
from gst_reporting.api.v1.envelope import empty, ok
from gst_reporting.config.settings import settings
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import aggregate
from gst_reporting.domain.services.gst_export import make_gstr1_json, make_gstr3b_json
from gst_reporting.domain.services.gst_service import build_gstr3b
from gst_reporting.domain.services.gst_workbooks import export_gstr1_xlsx, export_hsn_summary_xlsx
from gst_reporting.domain.services.gstr1_service import build_gstr1
from gst_reporting.domain.services.hsn_summary import build_hsn_summary
from gst_reporting.domain.services.outstanding import (
    compute_outstanding,
    compute_unpaid_tax,
    find_overdue,
)
from gst_reporting.domain.services.sales_register import (
    build_sales_register,
    export_sales_register_xlsx,
    generate_sales_register_pdf,
)
from gst_reporting.infrastructure.db.repositories import (
    BusinessProfileRepository,
    DocumentRepository,
    LedgerRepository,
)

logger = logging.getLogger("api.v1.reports")

router = APIRouter(prefix="/businesses/{business_id}", tags=["GST Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ============================================================
# Helpers
# ============================================================

async def _business(business_id: uuid.UUID, businesses: BusinessProfileRepository):
    business = await businesses.get_business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def _empty(result: EmptyPeriodResult) -> dict:
    return empty(data=result.to_dict(), message=result.reason)


def _filename(prefix: str, period: Period, ext: str) -> str:
    return f"{prefix}_{period.key.replace('..', '_to_')}.{ext}"


async def _gstr1(
    business,
    business_id: uuid.UUID,
    period: Period,
    annual_turnover: Decimal | None,
    documents: DocumentRepository,
):
    docs = await documents.list_documents(business_id, include_deleted=True)
    return build_gstr1(
        aggregate(docs, period, settings.HSN_DEFAULT_UQC),
        docs,
        gstin=business.gstin or "",
        seller_state=business.state,
        b2cl_threshold=Decimal(settings.B2CL_THRESHOLD),
        annual_turnover=annual_turnover,
    )


def _xlsx(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================
# Endpoints
# ============================================================

@router.get("/reports/summary", summary="Period totals, rate and HSN breakdowns")
async def period_summary(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    documents: DocumentRepository = Depends(get_document_repository),
):
    agg = aggregate(await documents.list_documents(business_id), period, settings.HSN_DEFAULT_UQC)
    if agg.is_empty:
        return _empty(EmptyPeriodResult(report="Summary", period=period))
    return ok(data=agg.to_dict())


@router.get("/reports/gstr1", summary="GSTR-1 tables (monthly only)")
async def gstr1_report(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    annual_turnover: Decimal | None = Query(None, description="Decides 4 or 6 digit HSN"),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    report = await _gstr1(business, business_id, period, annual_turnover, documents)
    if isinstance(report, EmptyPeriodResult):
        return _empty(report)
    return ok(data=report.to_dict())


@router.get("/reports/gstr1/json", summary="GSTR-1 filing JSON (monthly only)")
async def gstr1_json(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    annual_turnover: Decimal | None = Query(None),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    report = await _gstr1(business, business_id, period, annual_turnover, documents)
    if isinstance(report, EmptyPeriodResult):
        return _empty(report)
    return ok(data=make_gstr1_json(report.payload))


@router.get("/reports/gstr1/xlsx", summary="GSTR-1 portal template workbook (monthly only)")
async def gstr1_xlsx(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    annual_turnover: Decimal | None = Query(None),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    report = await _gstr1(business, business_id, period, annual_turnover, documents)
    if isinstance(report, EmptyPeriodResult):
        raise HTTPException(status_code=404, detail=report.reason)
    return _xlsx(export_gstr1_xlsx(report), f"GSTR1_{business.gstin or 'export'}_{report.fp}.xlsx")


@router.get("/reports/gstr3b", summary="GSTR-3B summary")
async def gstr3b_report(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    agg = aggregate(await documents.list_documents(business_id), period, settings.HSN_DEFAULT_UQC)
    report = build_gstr3b(agg)
    if isinstance(report, EmptyPeriodResult):
        return _empty(report)
    data = report.to_dict()
    data["json"] = make_gstr3b_json(business.gstin or "", period, report.summary)
    return ok(data=data)


@router.get("/reports/hsn", summary="HSN summary")
async def hsn_report(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    documents: DocumentRepository = Depends(get_document_repository),
):
    agg = aggregate(await documents.list_documents(business_id), period, settings.HSN_DEFAULT_UQC)
    report = build_hsn_summary(agg)
    if isinstance(report, EmptyPeriodResult):
        return _empty(report)
    return ok(data=report.to_dict())


@router.get("/reports/hsn/xlsx", summary="HSN summary workbook")
async def hsn_xlsx(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    agg = aggregate(await documents.list_documents(business_id), period, settings.HSN_DEFAULT_UQC)
    report = build_hsn_summary(agg)
    if isinstance(report, EmptyPeriodResult):
        raise HTTPException(status_code=404, detail=report.reason)
    content = export_hsn_summary_xlsx(report, business_name=business.name, gstin=business.gstin or "")
    return _xlsx(content, _filename("hsn_summary", period, "xlsx"))


@router.get("/reports/sales-register", summary="Sales register")
async def sales_register(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    documents: DocumentRepository = Depends(get_document_repository),
):
    report = build_sales_register(await documents.list_documents(business_id), period)
    if isinstance(report, EmptyPeriodResult):
        return _empty(report)
    return ok(data=report.to_dict())


@router.get("/reports/sales-register/xlsx", summary="Sales register workbook")
async def sales_register_xlsx(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    documents: DocumentRepository = Depends(get_document_repository),
):
    report = build_sales_register(await documents.list_documents(business_id), period)
    if isinstance(report, EmptyPeriodResult):
        raise HTTPException(status_code=404, detail=report.reason)
    return _xlsx(export_sales_register_xlsx(report), _filename("sales_register", period, "xlsx"))


@router.get("/reports/sales-register/pdf", summary="Sales register print layout")
async def sales_register_pdf(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    businesses: BusinessProfileRepository = Depends(get_business_repository),
    documents: DocumentRepository = Depends(get_document_repository),
):
    business = await _business(business_id, businesses)
    report = build_sales_register(await documents.list_documents(business_id), period)
    if isinstance(report, EmptyPeriodResult):
        raise HTTPException(status_code=404, detail=report.reason)
    return StreamingResponse(
        io.BytesIO(generate_sales_register_pdf(report, business_name=business.name)),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{_filename("sales_register", period, "pdf")}"'
        },
    )


@router.get("/outstanding", summary="Sales vs collections, overdue invoices")
async def outstanding(
    business_id: uuid.UUID,
    period: Period = Depends(get_period),
    today: date | None = Query(None, description="Defaults to today"),
    documents: DocumentRepository = Depends(get_document_repository),
    ledger: LedgerRepository = Depends(get_ledger_repository),
):
    docs = await documents.list_documents(business_id)
    entries = await ledger.list_ledger_entries(business_id)
    summary = compute_outstanding(docs, entries, period)
    overdue = find_overdue(docs, today=today, after_days=settings.OVERDUE_AFTER_DAYS)
    return ok(data={
        **summary.to_dict(),
        "unpaid_tax": compute_unpaid_tax(docs, period).to_dict(),
        "overdue": [item.to_dict() for item in overdue],
    })
