import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from gst_reporting.infrastructure.db.base import Base


class Business(Base):
    __tablename__ = "businesses"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    gstin = Column(String(15), nullable=True, index=True)
    state = Column(String(100), nullable=True)
    invoice_prefix = Column(String(50), nullable=False, default="INV/")
    auto_numbering = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    customers = relationship("Customer", back_populates="business")
    documents = relationship("TaxDocument", back_populates="business")


class Customer(Base):
    __tablename__ = "customers"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    gstin = Column(String(15), nullable=True)
    state = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    business = relationship("Business", back_populates="customers")


class TaxDocument(Base):
    """Invoice, credit note or debit note with its frozen GST type and totals."""
    __tablename__ = "tax_documents"
    __table_args__ = (
        UniqueConstraint("business_id", "kind", "document_number", name="uq_tax_documents_number"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # Invoice / CreditNote / DebitNote
    document_number = Column(String(50), nullable=False)
    document_date = Column(Date, nullable=False, index=True)

    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True)
    customer_name = Column(String(255), nullable=False, default="")
    customer_gstin = Column(String(15), nullable=True)
    customer_state = Column(String(100), nullable=True)

    gst_type = Column(String(20), nullable=False)  # IntraState / InterState
    taxable_value = Column(Numeric(14, 2), nullable=False, default=0)
    cgst = Column(Numeric(14, 2), nullable=False, default=0)
    sgst = Column(Numeric(14, 2), nullable=False, default=0)
    igst = Column(Numeric(14, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(20), nullable=True)  # invoices only
    reverse_charge = Column(Boolean, nullable=False, default=False)
    original_invoice_number = Column(String(50), nullable=True)
    reason = Column(Text, nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    business = relationship("Business", back_populates="documents")
    lines = relationship(
        "TaxDocumentLine",
        back_populates="document",
        order_by="TaxDocumentLine.position",
        cascade="all, delete-orphan",
    )


class TaxDocumentLine(Base):
    __tablename__ = "tax_document_lines"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("tax_documents.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    description = Column(String(500), nullable=False, default="")
    hsn_code = Column(String(8), nullable=True)
    quantity = Column(Numeric(18, 4), nullable=False, default=0)
    unit_rate = Column(Numeric(18, 4), nullable=False, default=0)
    gst_rate_percent = Column(Numeric(5, 2), nullable=False, default=0)
    document = relationship("TaxDocument", back_populates="lines")


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)
    entry_date = Column(Date, nullable=False)
    entry_type = Column(String(10), nullable=False)  # Debit / Credit
    amount = Column(Numeric(14, 2), nullable=False)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("tax_documents.id"), nullable=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
