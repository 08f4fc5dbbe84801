"""Pydantic request schemas for the GST computation and reporting API."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, Field

from gst_reporting.domain.models.documents import DocumentKind, GstType, InvoiceStatus, LineItem
from gst_reporting.domain.models.period import PeriodKind


class ResolveGstTypeRequest(BaseModel):
    """Seller and buyer state names."""
    seller_state: Optional[str] = None
    buyer_state: Optional[str] = None


class LineTaxRequest(BaseModel):
    """One line item and the document's GST type."""
    item: LineItem
    gst_type: GstType


class DocumentCreateRequest(BaseModel):
    """Finalize and store a document. Leave document_number empty to auto-number."""
    kind: DocumentKind = DocumentKind.INVOICE
    document_number: Optional[str] = Field(default=None, description="e.g. INV/2026/001")
    date: dt.date
    customer_id: Optional[uuid.UUID] = None
    customer_name: str = ""
    customer_gstin: Optional[str] = None
    customer_state: Optional[str] = None
    line_items: list[LineItem] = Field(default_factory=list)
    status: Optional[InvoiceStatus] = None
    reverse_charge: bool = False
    original_invoice_number: Optional[str] = None
    reason: Optional[str] = None


class NumberingEvaluateRequest(BaseModel):
    """Period the user switched to."""
    kind: PeriodKind = PeriodKind.FY
    key: str = Field(description="Period key, e.g. 2026-27 or 2026-Q1 or 2026-04")


class NumberingCommitRequest(BaseModel):
    """Prefix the user accepted."""
    new_prefix: str = Field(min_length=1, max_length=50)
