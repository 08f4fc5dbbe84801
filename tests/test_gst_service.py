"""Tests for GSTR-3B and the HSN summary."""

from decimal import Decimal

from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import aggregate
from gst_reporting.domain.services.gst_export import make_gstr3b_json
from gst_reporting.domain.services.gst_service import ITC_NOTE, build_gstr3b, prepare_gstr3b
from gst_reporting.domain.services.hsn_summary import build_hsn_summary
from gst_reporting.domain.services.period_calculator import month_period, quarter_period


# ============================================================
# GSTR-3B
# ============================================================

class TestGSTR3BPreparation:
    """3.1(a) carries net outward supplies."""

    def test_outward_supplies_net_of_notes(self, sample_documents, january):
        summary = prepare_gstr3b(aggregate(sample_documents, january))
        out = summary.outward_taxable_supplies
        assert out.taxable_value == Decimal("302500")
        assert out.igst == Decimal("54240")
        assert out.cgst == Decimal("45")
        assert out.sgst == Decimal("45")
        assert summary.total_documents == 4

    def test_zero_rated_and_exempt_are_zero(self, sample_documents, january):
        summary = prepare_gstr3b(aggregate(sample_documents, january))
        assert summary.outward_zero_rated.taxable_value == 0
        assert summary.outward_nil_exempt == 0

    def test_report_rows_and_grand_total(self, sample_documents, january):
        report = build_gstr3b(aggregate(sample_documents, january))
        assert [r.section for r in report.rows] == ["3.1(a)", "3.1(b)", "3.1(c)"]
        assert report.grand_total.bucket.taxable_value == Decimal("302500")
        assert report.grand_total.bucket.total_tax == Decimal("54330")
        assert report.to_dict()["itc_note"] == ITC_NOTE

    def test_quarterly_period_supported(self, sample_documents):
        report = build_gstr3b(aggregate(sample_documents, quarter_period(2025, 4)))
        # INV/2026/004 in February joins the quarter
        assert report.grand_total.bucket.taxable_value == Decimal("302600")

    def test_empty_period(self, sample_documents):
        result = build_gstr3b(aggregate(sample_documents, month_period(2024, 6)))
        assert isinstance(result, EmptyPeriodResult)
        assert result.report == "GSTR-3B"


class TestGSTR3BJson:
    def test_json_structure(self, sample_documents, january):
        summary = prepare_gstr3b(aggregate(sample_documents, january))
        data = make_gstr3b_json("29AAACB1234C1Z5", january, summary)
        assert data["ret_period"] == "012026"
        osup = data["sup_details"]["osup_det"]
        assert osup["txval"] == 302500.0
        assert osup["iamt"] == 54240.0
        assert osup["camt"] == 45.0
        assert data["itc_elg"]["itc_avl"] == []


# ============================================================
# HSN summary
# ============================================================

class TestHsnSummary:
    def test_rows_and_totals(self, sample_documents, january):
        report = build_hsn_summary(aggregate(sample_documents, january))
        assert [r.hsn_code for r in report.rows] == ["8471", "847130", "9983"]
        assert report.totals.hsn_code == "TOTAL"
        assert report.totals.taxable_value == Decimal("302500")
        assert report.totals.total_tax == Decimal("54330")

    def test_totals_match_rate_breakdown(self, sample_documents, january):
        agg = aggregate(sample_documents, january)
        report = build_hsn_summary(agg)
        assert report.totals.taxable_value == sum(r.taxable_value for r in agg.rate_breakdown)

    def test_empty_period(self, sample_documents):
        result = build_hsn_summary(aggregate(sample_documents, month_period(2024, 6)))
        assert isinstance(result, EmptyPeriodResult)

    def test_to_dict(self, sample_documents, january):
        data = build_hsn_summary(aggregate(sample_documents, january)).to_dict()
        assert data["period"] == "January 2026"
        assert data["totals"]["taxable_value"] == 302500.0
