"""Tests for the sales register and its worksheet/PDF renderings."""

from datetime import date
from decimal import Decimal

import pytest

from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import aggregate
from gst_reporting.domain.services.period_calculator import month_period
from gst_reporting.domain.services.sales_register import (
    REGISTER_HEADERS,
    TOTAL_LABEL,
    build_sales_register,
    export_sales_register_xlsx,
    generate_sales_register_pdf,
    notes_worksheet_rows,
    parse_worksheet_totals,
    read_xlsx_totals,
    worksheet_rows,
)


class TestSalesRegister:
    def test_invoices_only_in_main_rows(self, sample_documents, january):
        report = build_sales_register(sample_documents, january)
        assert [r.document.document_number for r in report.rows] == [
            "INV/2025/001", "INV/2025/003", "INV/2025/002",
        ]
        assert [r.serial for r in report.rows] == [1, 2, 3]
        assert [r.document.document_number for r in report.note_rows] == ["CN/2026/001"]

    def test_totals_match_aggregate(self, sample_documents, january):
        report = build_sales_register(sample_documents, january)
        agg = aggregate(sample_documents, january)
        assert report.totals.taxable_value == agg.invoices.taxable_value
        assert report.totals.total_amount == agg.invoices.total_amount
        assert report.credit_note_totals.total_amount == agg.credit_notes.total_amount

    def test_empty_period(self, sample_documents):
        result = build_sales_register(sample_documents, month_period(2024, 6))
        assert isinstance(result, EmptyPeriodResult)
        assert result.report == "Sales Register"


class TestWorksheetExport:
    def test_layout(self, sample_documents, january):
        rows = worksheet_rows(build_sales_register(sample_documents, january))
        assert rows[0] == REGISTER_HEADERS
        assert len(rows) == 5
        assert rows[-1][0] == TOTAL_LABEL
        assert rows[1][1] == "01-01-2026"
        assert rows[1][-1] == "Unpaid"

    def test_totals_parse_back_to_aggregate(self, sample_documents, january):
        agg = aggregate(sample_documents, january)
        totals = parse_worksheet_totals(worksheet_rows(build_sales_register(sample_documents, january)))
        assert totals["taxable_value"] == agg.invoices.taxable_value
        assert totals["igst"] == agg.invoices.igst
        assert totals["cgst"] == agg.invoices.cgst
        assert totals["sgst"] == agg.invoices.sgst
        assert totals["total_tax"] == agg.invoices.total_tax
        assert totals["total_amount"] == agg.invoices.total_amount

    def test_fractional_amounts_survive(self, make_document, january):
        docs = [
            make_document("INV/1", date(2026, 1, 3), [("8471", 3, "33.33", 18)]),
            make_document("INV/2", date(2026, 1, 4), [("8471", 1, "0.07", 5)], customer_state="Goa"),
        ]
        agg = aggregate(docs, january)
        totals = parse_worksheet_totals(worksheet_rows(build_sales_register(docs, january)))
        assert totals["taxable_value"] == agg.invoices.taxable_value
        assert totals["total_amount"] == agg.invoices.total_amount

    def test_missing_total_row(self):
        with pytest.raises(ValueError):
            parse_worksheet_totals([list(REGISTER_HEADERS), [1, "01-01-2026"]])

    def test_missing_column(self):
        with pytest.raises(ValueError):
            parse_worksheet_totals([["#", "Date"], [TOTAL_LABEL, ""]])

    def test_notes_sheet(self, sample_documents, january):
        rows = notes_worksheet_rows(build_sales_register(sample_documents, january))
        assert rows[1][2] == "Credit Note"
        assert rows[1][6] == "INV/2025/001"

    def test_xlsx_round_trip(self, sample_documents, january):
        report = build_sales_register(sample_documents, january)
        totals = read_xlsx_totals(export_sales_register_xlsx(report))
        assert totals["total_amount"] == Decimal("357420.00")
        assert totals["igst"] == Decimal("54240.00")


class TestPdfExport:
    def test_pdf_bytes(self, sample_documents, january):
        pdf = generate_sales_register_pdf(
            build_sales_register(sample_documents, january), business_name="Acme Traders"
        )
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000
