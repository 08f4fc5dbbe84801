"""create business, customer, tax document and ledger tables

Revision ID: 3f1a2b4c5d6e
Revises:
Create Date: 2026-04-01 09:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1a2b4c5d6e"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gstin", sa.String(length=15), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("invoice_prefix", sa.String(length=50), nullable=False, server_default="INV/"),
        sa.Column("auto_numbering", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_businesses_gstin", "businesses", ["gstin"])

    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("business_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gstin", sa.String(length=15), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_business_id", "customers", ["business_id"])

    op.create_table(
        "tax_documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("business_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("document_number", sa.String(length=50), nullable=False),
        sa.Column("document_date", sa.Date(), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("customer_gstin", sa.String(length=15), nullable=True),
        sa.Column("customer_state", sa.String(length=100), nullable=True),
        sa.Column("gst_type", sa.String(length=20), nullable=False),
        sa.Column("taxable_value", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("cgst", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("sgst", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("igst", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("original_invoice_number", sa.String(length=50), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "kind", "document_number", name="uq_tax_documents_number"),
    )
    op.create_index("ix_tax_documents_business_id", "tax_documents", ["business_id"])
    op.create_index("ix_tax_documents_document_date", "tax_documents", ["document_date"])

    op.create_table(
        "tax_document_lines",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("hsn_code", sa.String(length=8), nullable=True),
        sa.Column("quantity", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("unit_rate", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("gst_rate_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["document_id"], ["tax_documents.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tax_document_lines_document_id", "tax_document_lines", ["document_id"])

    op.create_table(
        "ledger_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("business_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("entry_type", sa.String(length=10), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["invoice_id"], ["tax_documents.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ledger_entries_business_id", "ledger_entries", ["business_id"])


def downgrade() -> None:
    op.drop_index("ix_ledger_entries_business_id", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_index("ix_tax_document_lines_document_id", table_name="tax_document_lines")
    op.drop_table("tax_document_lines")
    op.drop_index("ix_tax_documents_document_date", table_name="tax_documents")
    op.drop_index("ix_tax_documents_business_id", table_name="tax_documents")
    op.drop_table("tax_documents")
    op.drop_index("ix_customers_business_id", table_name="customers")
    op.drop_table("customers")
    op.drop_index("ix_businesses_gstin", table_name="businesses")
    op.drop_table("businesses")
