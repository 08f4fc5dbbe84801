# gst_reporting/api/v1/routes/gst_tax.py
"""V1 API endpoints for GST type resolution and line tax calculation."""

from __future__ import annotations

from fastapi import APIRouter

from gst_reporting.api.v1.envelope import ok
from gst_reporting.api.v1.schemas.gst import LineTaxRequest, ResolveGstTypeRequest
from gst_reporting.domain.services.gst_type import resolve_gst_type
from gst_reporting.domain.services.tax_calculator import calculate_line_tax

router = APIRouter(prefix="/gst/tax", tags=["GST Tax"])


@router.post("/resolve-type", summary="Intra-state or inter-state")
async def resolve_type(body: ResolveGstTypeRequest):
    gst_type = resolve_gst_type(body.seller_state, body.buyer_state)
    return ok(data={"gst_type": gst_type.value})


@router.post("/line", summary="Tax split for one line item")
async def line_tax(body: LineTaxRequest):
    """Unrounded values; documents round only their totals."""
    return ok(data=calculate_line_tax(body.item, body.gst_type).to_dict())
