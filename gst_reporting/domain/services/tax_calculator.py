# gst_reporting/domain/services/tax_calculator.py
"""
Line-item and document-level GST computation.

Rounding policy: line values are kept at full precision and only the
document totals are rounded (ROUND_HALF_UP, two decimals). Rounding each
line first and summing drifts from the filed totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from gst_reporting.domain.exceptions import DocumentValidationError
from gst_reporting.domain.models.documents import (
    ALLOWED_GST_RATES,
    DocumentDraft,
    DocumentKind,
    GstType,
    InvoiceStatus,
    LineItem,
    TaxableDocument,
)
from gst_reporting.domain.services.gst_type import is_valid_gstin_format, resolve_gst_type

logger = logging.getLogger("tax_calculator")

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return ZERO


@dataclass
class LineTax:
    """Unrounded tax split of one line item."""

    taxable: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def to_dict(self) -> dict:
        return {
            "taxable": str(self.taxable),
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
            "igst": str(self.igst),
        }


@dataclass
class DocumentTotals:
    taxable_value: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    total_amount: Decimal = ZERO


def _non_negative(value, field_name: str, item: LineItem) -> Decimal:
    amount = _dec(value)
    if amount < 0:
        logger.warning(
            "Negative %s %s on line %r (HSN %s), treating as zero",
            field_name, amount, item.description, item.hsn_code,
        )
        return ZERO
    return amount


def calculate_line_tax(item: LineItem, gst_type: GstType) -> LineTax:
    """
    taxable = quantity * unit_rate; tax = taxable * rate / 100.

    Intra-state splits tax equally into CGST and SGST, inter-state puts
    it all in IGST. Negative inputs contribute zero instead of raising.
    """
    quantity = _non_negative(item.quantity, "quantity", item)
    unit_rate = _non_negative(item.unit_rate, "unit rate", item)
    rate = _non_negative(item.gst_rate_percent, "GST rate", item)

    taxable = quantity * unit_rate
    tax = taxable * rate / HUNDRED

    if gst_type == GstType.INTRA_STATE:
        half = tax / 2
        return LineTax(taxable=taxable, cgst=half, sgst=half, igst=ZERO)
    return LineTax(taxable=taxable, cgst=ZERO, sgst=ZERO, igst=tax)


def calculate_document_totals(items: Iterable[LineItem], gst_type: GstType) -> DocumentTotals:
    """Accumulate every line at full precision, round only the totals."""
    taxable = cgst = sgst = igst = ZERO
    for item in items:
        line = calculate_line_tax(item, gst_type)
        taxable += line.taxable
        cgst += line.cgst
        sgst += line.sgst
        igst += line.igst

    taxable_r = round2(taxable)
    cgst_r = round2(cgst)
    sgst_r = round2(sgst)
    igst_r = round2(igst)
    return DocumentTotals(
        taxable_value=taxable_r,
        cgst=cgst_r,
        sgst=sgst_r,
        igst=igst_r,
        total_amount=taxable_r + cgst_r + sgst_r + igst_r,
    )


def finalize_document(draft: DocumentDraft, seller_state: str | None) -> TaxableDocument:
    """
    Freeze the GST type from the seller/buyer states and compute totals.

    The returned document carries its own gst_type; it is never recomputed
    from the business profile afterwards.
    """
    gst_type = resolve_gst_type(seller_state, draft.customer_state)
    totals = calculate_document_totals(draft.line_items, gst_type)

    status = draft.status
    if draft.kind == DocumentKind.INVOICE and status is None:
        status = InvoiceStatus.UNPAID
    elif draft.kind != DocumentKind.INVOICE:
        status = None

    return TaxableDocument(
        **draft.model_dump(exclude={"status"}),
        gst_type=gst_type,
        status=status,
        taxable_value=totals.taxable_value,
        cgst=totals.cgst,
        sgst=totals.sgst,
        igst=totals.igst,
        total_amount=totals.total_amount,
    )


def recompute_document(document: TaxableDocument) -> TaxableDocument:
    """Re-derive totals after an edit, keeping the frozen GST type."""
    totals = calculate_document_totals(document.line_items, document.gst_type)
    return document.model_copy(update={
        "taxable_value": totals.taxable_value,
        "cgst": totals.cgst,
        "sgst": totals.sgst,
        "igst": totals.igst,
        "total_amount": totals.total_amount,
    })


def validate_document(document: TaxableDocument | DocumentDraft) -> None:
    """
    Input-boundary checks. Raises DocumentValidationError listing every problem.
    """
    errors: list[str] = []

    if not document.document_number.strip():
        errors.append("Document number is required")

    gstin = (document.customer_gstin or "").strip()
    if gstin and not is_valid_gstin_format(gstin):
        errors.append(f"Customer GSTIN {gstin!r} is not a valid 15-character GSTIN")

    for idx, item in enumerate(document.line_items, start=1):
        if _dec(item.quantity) < 0:
            errors.append(f"Line {idx}: quantity must not be negative")
        if _dec(item.unit_rate) < 0:
            errors.append(f"Line {idx}: unit rate must not be negative")
        if _dec(item.gst_rate_percent) not in {Decimal(r) for r in ALLOWED_GST_RATES}:
            errors.append(
                f"Line {idx}: GST rate {item.gst_rate_percent}% not one of {list(ALLOWED_GST_RATES)}"
            )

    if isinstance(document, TaxableDocument):
        if document.igst > 0 and (document.cgst > 0 or document.sgst > 0):
            errors.append("IGST and CGST/SGST are mutually exclusive")
        expected = round2(document.taxable_value + document.cgst + document.sgst + document.igst)
        if expected != round2(document.total_amount):
            errors.append(
                f"Total {document.total_amount} does not equal taxable value plus tax ({expected})"
            )

    if document.kind != DocumentKind.INVOICE and document.status is not None:
        errors.append("Only invoices carry a payment status")

    if errors:
        raise DocumentValidationError(
            f"Invalid document {document.document_number!r}", errors=errors
        )
