# gst_reporting/domain/models/documents.py
"""Tax-bearing document models shared by invoices, credit notes and debit notes."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

ZERO = Decimal("0")

ALLOWED_GST_RATES = (0, 5, 12, 18, 28)


class GstType(str, Enum):
    INTRA_STATE = "IntraState"
    INTER_STATE = "InterState"


class DocumentKind(str, Enum):
    INVOICE = "Invoice"
    CREDIT_NOTE = "CreditNote"
    DEBIT_NOTE = "DebitNote"


class InvoiceStatus(str, Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class LineItem(BaseModel):
    """
    One line of a document.

    Values are not range-checked here: the tax calculator degrades
    negative quantity or rate to a zero contribution, and
    validate_document() rejects them at the input boundary. Precision is
    capped at what tax_document_lines stores so a reloaded document
    recomputes to the same totals.
    """

    description: str = ""
    hsn_code: str = ""
    quantity: Decimal = Field(default=ZERO, max_digits=18, decimal_places=4)
    unit_rate: Decimal = Field(default=ZERO, max_digits=18, decimal_places=4)
    gst_rate_percent: Decimal = Field(default=ZERO, max_digits=5, decimal_places=2)


class TaxableDocument(BaseModel):
    id: str
    kind: DocumentKind = DocumentKind.INVOICE
    document_number: str
    date: date
    customer_id: Optional[str] = None
    customer_name: str = ""
    customer_gstin: Optional[str] = None
    customer_state: Optional[str] = None

    line_items: list[LineItem] = Field(default_factory=list)
    gst_type: GstType = GstType.INTRA_STATE

    taxable_value: Decimal = Field(default=ZERO)
    cgst: Decimal = Field(default=ZERO)
    sgst: Decimal = Field(default=ZERO)
    igst: Decimal = Field(default=ZERO)
    total_amount: Decimal = Field(default=ZERO)

    # Invoice only
    status: Optional[InvoiceStatus] = None

    reverse_charge: bool = False
    # Credit/debit notes only
    original_invoice_number: Optional[str] = None
    reason: Optional[str] = None

    deleted: bool = False

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    @property
    def is_b2b(self) -> bool:
        return bool(self.customer_gstin and self.customer_gstin.strip())


class DocumentDraft(BaseModel):
    """Editor input for a document before its GST type and totals are frozen."""

    id: str
    kind: DocumentKind = DocumentKind.INVOICE
    document_number: str
    date: date
    customer_id: Optional[str] = None
    customer_name: str = ""
    customer_gstin: Optional[str] = None
    customer_state: Optional[str] = None
    line_items: list[LineItem] = Field(default_factory=list)
    status: Optional[InvoiceStatus] = None
    reverse_charge: bool = False
    original_invoice_number: Optional[str] = None
    reason: Optional[str] = None
