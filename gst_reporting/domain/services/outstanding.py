# gst_reporting/domain/services/outstanding.py
"""
Outstanding dues and overdue detection.

Sales come from in-period documents: invoices and debit notes add, credit
notes subtract. Collections come from in-period Credit ledger entries. Ledger entries are read, never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from gst_reporting.domain.models.documents import DocumentKind, InvoiceStatus, TaxableDocument
from gst_reporting.domain.models.ledger import LedgerEntry, LedgerEntryType
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.services.gst_aggregator import SIGN, filter_documents

logger = logging.getLogger("outstanding")

ZERO = Decimal("0")
OVERDUE_AFTER_DAYS = 15


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(val)


@dataclass
class OutstandingSummary:
    total_sales: Decimal = ZERO
    total_collections: Decimal = ZERO
    outstanding: Decimal = ZERO
    invoice_count: int = 0
    note_count: int = 0
    collection_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_sales": _d(self.total_sales),
            "total_collections": _d(self.total_collections),
            "outstanding": _d(self.outstanding),
            "invoice_count": self.invoice_count,
            "note_count": self.note_count,
            "collection_count": self.collection_count,
        }


@dataclass
class UnpaidTax:
    """GST carried by invoices that are not yet fully paid."""

    invoice_count: int = 0
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def to_dict(self) -> dict:
        return {
            "invoice_count": self.invoice_count,
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "igst": _d(self.igst),
            "total_tax": _d(self.total_tax),
        }


@dataclass
class LedgerLine:
    entry: LedgerEntry
    balance: Decimal


@dataclass
class OverdueItem:
    document: TaxableDocument
    days_outstanding: int
    due_amount: Decimal = field(default=ZERO)

    def to_dict(self) -> dict:
        return {
            "document_id": self.document.id,
            "document_number": self.document.document_number,
            "date": self.document.date.isoformat(),
            "customer_name": self.document.customer_name,
            "status": self.document.status.value if self.document.status else None,
            "days_outstanding": self.days_outstanding,
            "total_amount": _d(self.due_amount),
        }


def _invoices(documents: Iterable[TaxableDocument]) -> list[TaxableDocument]:
    return [d for d in documents if d.kind == DocumentKind.INVOICE]


def compute_outstanding(
    documents: Iterable[TaxableDocument],
    ledger_entries: Iterable[LedgerEntry],
    period: Period,
) -> OutstandingSummary:
    """
    outstanding = net sales - collections; may be negative when collections
    in the period settle invoices from an earlier period, or when a credit
    note reverses an invoice issued before the period.
    """
    in_period = filter_documents(documents, period)
    invoices = _invoices(in_period)
    credits = [
        e for e in ledger_entries
        if e.type == LedgerEntryType.CREDIT and period.contains(e.date)
    ]

    total_sales = sum((SIGN[d.kind] * d.total_amount for d in in_period), ZERO)
    total_collections = sum((e.amount for e in credits), ZERO)
    return OutstandingSummary(
        total_sales=total_sales,
        total_collections=total_collections,
        outstanding=total_sales - total_collections,
        invoice_count=len(invoices),
        note_count=len(in_period) - len(invoices),
        collection_count=len(credits),
    )


def is_overdue(
    document: TaxableDocument,
    today: date,
    after_days: int = OVERDUE_AFTER_DAYS,
) -> bool:
    if document.kind != DocumentKind.INVOICE or document.status == InvoiceStatus.PAID:
        return False
    return (today - document.date).days > after_days


def find_overdue(
    documents: Iterable[TaxableDocument],
    today: date | None = None,
    after_days: int = OVERDUE_AFTER_DAYS,
) -> list[OverdueItem]:
    """Overdue invoices, oldest first."""
    today = today or date.today()
    items = [
        OverdueItem(document=d, days_outstanding=(today - d.date).days, due_amount=d.total_amount)
        for d in documents
        if not d.deleted and is_overdue(d, today, after_days)
    ]
    items.sort(key=lambda i: (i.document.date, i.document.document_number))
    if items:
        logger.info("%d overdue invoices as of %s", len(items), today)
    return items


def compute_unpaid_tax(documents: Iterable[TaxableDocument], period: Period) -> UnpaidTax:
    result = UnpaidTax()
    for doc in _invoices(filter_documents(documents, period)):
        if doc.status not in (InvoiceStatus.UNPAID, InvoiceStatus.PARTIAL):
            continue
        result.invoice_count += 1
        result.cgst += doc.cgst
        result.sgst += doc.sgst
        result.igst += doc.igst
    return result


def running_ledger_balance(entries: Iterable[LedgerEntry]) -> list[LedgerLine]:
    """Chronological balance: debits add, credits subtract."""
    balance = ZERO
    lines = []
    for entry in sorted(entries, key=lambda e: e.date):
        if entry.type == LedgerEntryType.DEBIT:
            balance += entry.amount
        else:
            balance -= entry.amount
        lines.append(LedgerLine(entry=entry, balance=balance))
    return lines
