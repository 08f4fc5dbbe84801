# gst_reporting/domain/services/gst_aggregator.py
"""
Period aggregation of tax documents.

A single pure fold over the documents dated inside a period (inclusive
on both ends) produces every figure the reports need: headline totals,
rate-wise and HSN-wise breakdowns, B2B/B2C and GST-type splits. All
reports read from this one Aggregate so their totals always agree.

Sign convention for line-level breakdowns: invoices and debit notes add,
credit notes subtract. Headline `invoices` totals cover invoices only;
`net` is invoices + debit notes - credit notes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from gst_reporting.domain.models.documents import (
    DocumentKind,
    GstType,
    TaxableDocument,
)
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.services.tax_calculator import calculate_line_tax, round2

logger = logging.getLogger("gst_aggregator")

ZERO = Decimal("0")
BLANK_HSN = "N/A"
DEFAULT_UQC = "NOS"

SIGN = {
    DocumentKind.INVOICE: 1,
    DocumentKind.DEBIT_NOTE: 1,
    DocumentKind.CREDIT_NOTE: -1,
}


def _d(val: Decimal | None) -> float:
    """Convert Decimal to float for JSON serialization."""
    if val is None:
        return 0.0
    return float(val)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class TaxTotals:
    """Summed document-level totals for a group of documents."""

    count: int = 0
    taxable_value: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    total_amount: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def add(self, doc: TaxableDocument, sign: int = 1) -> None:
        self.count += 1
        self.taxable_value += sign * doc.taxable_value
        self.cgst += sign * doc.cgst
        self.sgst += sign * doc.sgst
        self.igst += sign * doc.igst
        self.total_amount += sign * doc.total_amount

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "taxable_value": _d(self.taxable_value),
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "igst": _d(self.igst),
            "total_tax": _d(self.total_tax),
            "total_amount": _d(self.total_amount),
        }


@dataclass
class RateBreakdownRow:
    gst_rate_percent: Decimal
    taxable_value: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    document_count: int = 0

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def to_dict(self) -> dict:
        return {
            "gst_rate_percent": _d(self.gst_rate_percent),
            "taxable_value": _d(self.taxable_value),
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "igst": _d(self.igst),
            "total_tax": _d(self.total_tax),
            "document_count": self.document_count,
        }


@dataclass
class HsnRow:
    hsn_code: str
    description: str = ""
    uqc: str = DEFAULT_UQC
    total_quantity: Decimal = ZERO
    taxable_value: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    @property
    def total_value(self) -> Decimal:
        return self.taxable_value + self.total_tax

    def to_dict(self) -> dict:
        return {
            "hsn_code": self.hsn_code,
            "description": self.description,
            "uqc": self.uqc,
            "total_quantity": _d(self.total_quantity),
            "taxable_value": _d(self.taxable_value),
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "igst": _d(self.igst),
            "total_tax": _d(self.total_tax),
        }


@dataclass
class Aggregate:
    period: Period
    documents: list[TaxableDocument] = field(default_factory=list)

    invoices: TaxTotals = field(default_factory=TaxTotals)
    credit_notes: TaxTotals = field(default_factory=TaxTotals)
    debit_notes: TaxTotals = field(default_factory=TaxTotals)
    net: TaxTotals = field(default_factory=TaxTotals)

    # Invoice splits
    b2b: TaxTotals = field(default_factory=TaxTotals)
    b2c: TaxTotals = field(default_factory=TaxTotals)
    gst_type_counts: dict[str, int] = field(default_factory=dict)

    rate_breakdown: list[RateBreakdownRow] = field(default_factory=list)
    hsn_summary: list[HsnRow] = field(default_factory=list)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def is_empty(self) -> bool:
        return not self.documents

    def documents_of(self, kind: DocumentKind) -> list[TaxableDocument]:
        return [d for d in self.documents if d.kind == kind]

    def to_dict(self) -> dict:
        return {
            "period": {
                "kind": self.period.kind.value,
                "key": self.period.key,
                "label": self.period.label,
                "start": self.period.start.isoformat(),
                "end": self.period.end.isoformat(),
            },
            "document_count": self.document_count,
            "invoices": self.invoices.to_dict(),
            "credit_notes": self.credit_notes.to_dict(),
            "debit_notes": self.debit_notes.to_dict(),
            "net": self.net.to_dict(),
            "b2b": self.b2b.to_dict(),
            "b2c": self.b2c.to_dict(),
            "gst_type_counts": dict(self.gst_type_counts),
            "rate_breakdown": [r.to_dict() for r in self.rate_breakdown],
            "hsn_summary": [h.to_dict() for h in self.hsn_summary],
        }


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def filter_documents(documents: Iterable[TaxableDocument], period: Period) -> list[TaxableDocument]:
    """
    Documents dated within [period.start, period.end], both ends inclusive,
    ordered by date then document number. User-deleted documents are skipped.
    """
    selected = [d for d in documents if not d.deleted and period.contains(d.date)]
    return sorted(selected, key=lambda d: (d.date, d.kind.value, d.document_number))


def _hsn_key(hsn_code: str | None) -> str:
    code = (hsn_code or "").strip()
    return code or BLANK_HSN


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def aggregate(
    documents: Iterable[TaxableDocument],
    period: Period,
    default_uqc: str = DEFAULT_UQC,
) -> Aggregate:
    """
    Fold documents into an Aggregate for `period`.

    Rate and HSN rows accumulate line contributions at full precision and
    are rounded once per row.
    """
    in_period = filter_documents(documents, period)
    result = Aggregate(period=period, documents=in_period)

    gst_type_counts = {GstType.INTRA_STATE.value: 0, GstType.INTER_STATE.value: 0}
    rate_rows: dict[Decimal, RateBreakdownRow] = {}
    rate_docs: dict[Decimal, set[str]] = {}
    hsn_rows: dict[str, HsnRow] = {}

    for doc in in_period:
        sign = SIGN[doc.kind]
        gst_type_counts[doc.gst_type.value] += 1

        if doc.kind == DocumentKind.INVOICE:
            result.invoices.add(doc)
            (result.b2b if doc.is_b2b else result.b2c).add(doc)
        elif doc.kind == DocumentKind.CREDIT_NOTE:
            result.credit_notes.add(doc)
        else:
            result.debit_notes.add(doc)
        result.net.add(doc, sign)

        for item in doc.line_items:
            line = calculate_line_tax(item, doc.gst_type)
            rate = item.gst_rate_percent

            row = rate_rows.get(rate)
            if row is None:
                row = rate_rows[rate] = RateBreakdownRow(gst_rate_percent=rate)
                rate_docs[rate] = set()
            row.taxable_value += sign * line.taxable
            row.cgst += sign * line.cgst
            row.sgst += sign * line.sgst
            row.igst += sign * line.igst
            rate_docs[rate].add(doc.id)

            code = _hsn_key(item.hsn_code)
            hsn = hsn_rows.get(code)
            if hsn is None:
                hsn = hsn_rows[code] = HsnRow(
                    hsn_code=code,
                    description=item.description,
                    uqc=default_uqc,
                )
            elif not hsn.description and item.description:
                hsn.description = item.description
            hsn.total_quantity += sign * max(item.quantity, ZERO)
            hsn.taxable_value += sign * line.taxable
            hsn.cgst += sign * line.cgst
            hsn.sgst += sign * line.sgst
            hsn.igst += sign * line.igst

    for rate, row in rate_rows.items():
        row.document_count = len(rate_docs[rate])
        row.taxable_value = round2(row.taxable_value)
        row.cgst = round2(row.cgst)
        row.sgst = round2(row.sgst)
        row.igst = round2(row.igst)

    for hsn in hsn_rows.values():
        hsn.taxable_value = round2(hsn.taxable_value)
        hsn.cgst = round2(hsn.cgst)
        hsn.sgst = round2(hsn.sgst)
        hsn.igst = round2(hsn.igst)

    result.gst_type_counts = gst_type_counts
    result.rate_breakdown = [rate_rows[r] for r in sorted(rate_rows)]
    result.hsn_summary = [hsn_rows[c] for c in sorted(hsn_rows)]

    logger.debug(
        "Aggregated %d documents for %s (%d rates, %d HSN codes)",
        result.document_count, period.key, len(result.rate_breakdown), len(result.hsn_summary),
    )
    return result
