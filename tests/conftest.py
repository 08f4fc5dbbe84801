"""Shared test fixtures for the GST reporting engine test suite."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from gst_reporting.domain.models.documents import (
    DocumentDraft,
    DocumentKind,
    InvoiceStatus,
    LineItem,
)
from gst_reporting.domain.models.ledger import LedgerEntry, LedgerEntryType
from gst_reporting.domain.services.period_calculator import month_period
from gst_reporting.domain.services.tax_calculator import finalize_document

SELLER_STATE = "Karnataka"
REGISTERED_GSTIN = "29AABCU9603R1ZM"


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


def _make_document(
    number,
    day,
    lines,
    kind=DocumentKind.INVOICE,
    customer_state=SELLER_STATE,
    gstin=None,
    status=None,
    deleted=False,
    original=None,
    customer_name="Acme Traders",
):
    """lines: (hsn, quantity, unit_rate, gst_rate) tuples."""
    draft = DocumentDraft(
        id=number,
        kind=kind,
        document_number=number,
        date=day,
        customer_name=customer_name,
        customer_gstin=gstin,
        customer_state=customer_state,
        line_items=[
            LineItem(
                description=f"Item {hsn}",
                hsn_code=hsn,
                quantity=Decimal(str(qty)),
                unit_rate=Decimal(str(rate)),
                gst_rate_percent=Decimal(str(gst)),
            )
            for hsn, qty, rate, gst in lines
        ],
        status=status,
        original_invoice_number=original,
    )
    doc = finalize_document(draft, SELLER_STATE)
    if deleted:
        doc = doc.model_copy(update={"deleted": True})
    return doc


@pytest.fixture
def make_document():
    return _make_document


@pytest.fixture
def january():
    return month_period(2026, 1)


@pytest.fixture
def sample_documents():
    """
    January 2026 books of a Karnataka seller, plus documents just outside
    the month and one deleted invoice.
    """
    return [
        # B2B, intra-state: 1000 + 90 + 90
        _make_document(
            "INV/2025/001", date(2026, 1, 1), [("8471", 2, 500, 18)],
            gstin=REGISTERED_GSTIN, customer_name="Bengaluru Systems",
        ),
        # B2CS, inter-state: 2000 + 240 IGST
        _make_document(
            "INV/2025/002", date(2026, 1, 31), [("9983", 1, 2000, 12)],
            customer_state="Maharashtra",
        ),
        # B2CL, inter-state above threshold, already paid
        _make_document(
            "INV/2025/003", date(2026, 1, 15), [("847130", 1, 300000, 18)],
            customer_state="Tamil Nadu", status=InvoiceStatus.PAID,
        ),
        # Credit note against INV/2025/001: -(500 + 45 + 45)
        _make_document(
            "CN/2026/001", date(2026, 1, 20), [("8471", 1, 500, 18)],
            kind=DocumentKind.CREDIT_NOTE, gstin=REGISTERED_GSTIN,
            original="INV/2025/001", customer_name="Bengaluru Systems",
        ),
        _make_document("INV/2025/000", date(2025, 12, 31), [("8471", 1, 100, 5)]),
        _make_document("INV/2026/004", date(2026, 2, 1), [("8471", 1, 100, 5)]),
        _make_document(
            "INV/2025/005", date(2026, 1, 10), [("8471", 1, 999, 18)], deleted=True,
        ),
    ]


@pytest.fixture
def sample_ledger():
    return [
        LedgerEntry(
            id="l1", date=date(2026, 1, 1), type=LedgerEntryType.DEBIT,
            amount=Decimal("1180"), invoice_id="INV/2025/001",
        ),
        LedgerEntry(
            id="l2", date=date(2026, 1, 20), type=LedgerEntryType.CREDIT,
            amount=Decimal("1000"), invoice_id="INV/2025/001",
        ),
        LedgerEntry(
            id="l3", date=date(2025, 12, 15), type=LedgerEntryType.CREDIT,
            amount=Decimal("500"),
        ),
    ]
