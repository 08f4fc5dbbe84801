"""Tests for GST type resolution and line/document tax computation."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from gst_reporting.domain.exceptions import DocumentValidationError
from gst_reporting.domain.models.documents import (
    DocumentDraft,
    DocumentKind,
    GstType,
    InvoiceStatus,
    LineItem,
)
from gst_reporting.domain.services.gst_aggregator import aggregate
from gst_reporting.domain.services.gst_type import (
    SupplyType,
    classify_supply,
    is_valid_gstin_format,
    place_of_supply,
    resolve_gst_type,
)
from gst_reporting.domain.services.period_calculator import month_period
from gst_reporting.domain.services.tax_calculator import (
    calculate_document_totals,
    calculate_line_tax,
    finalize_document,
    recompute_document,
    validate_document,
)


def _item(qty, rate, gst, hsn="8471"):
    return LineItem(
        description="Widget",
        hsn_code=hsn,
        quantity=Decimal(str(qty)),
        unit_rate=Decimal(str(rate)),
        gst_rate_percent=Decimal(str(gst)),
    )


# ============================================================
# GST type
# ============================================================

class TestResolveGstType:
    def test_same_state_is_intra(self):
        assert resolve_gst_type("Karnataka", "Karnataka") == GstType.INTRA_STATE

    def test_case_and_whitespace_insensitive(self):
        assert resolve_gst_type("Karnataka", "  karnataka ") == GstType.INTRA_STATE

    def test_different_state_is_inter(self):
        assert resolve_gst_type("Karnataka", "Maharashtra") == GstType.INTER_STATE

    def test_missing_buyer_state_is_inter(self):
        assert resolve_gst_type("Karnataka", None) == GstType.INTER_STATE
        assert resolve_gst_type("Karnataka", "") == GstType.INTER_STATE

    def test_both_missing_is_inter(self):
        assert resolve_gst_type(None, None) == GstType.INTER_STATE


class TestPlaceOfSupply:
    def test_known_state(self):
        assert place_of_supply("Maharashtra") == "27-Maharashtra"

    def test_falls_back_to_seller(self):
        assert place_of_supply("Atlantis", "Karnataka") == "29-Karnataka"

    def test_unknown(self):
        assert place_of_supply(None, None) == "96-Other Countries"

    def test_gstin_format(self):
        assert is_valid_gstin_format("29AABCU9603R1ZM")
        assert is_valid_gstin_format("29aabcu9603r1zm")
        assert not is_valid_gstin_format("29AABCU9603R1Z")
        assert not is_valid_gstin_format(None)


# ============================================================
# Line tax
# ============================================================

class TestLineTax:
    """taxable = qty * rate, tax split by GST type."""

    def test_intra_state_split(self):
        line = calculate_line_tax(_item(2, 500, 18), GstType.INTRA_STATE)
        assert line.taxable == Decimal("1000")
        assert line.cgst == Decimal("90")
        assert line.sgst == Decimal("90")
        assert line.igst == 0

    def test_inter_state_igst(self):
        line = calculate_line_tax(_item(2, 500, 18), GstType.INTER_STATE)
        assert line.igst == Decimal("180")
        assert line.cgst == line.sgst == 0

    def test_negative_quantity_contributes_zero(self):
        line = calculate_line_tax(_item(-2, 500, 18), GstType.INTRA_STATE)
        assert line.taxable == 0
        assert line.total_tax == 0

    def test_negative_rate_contributes_zero_tax(self):
        line = calculate_line_tax(_item(1, 100, -5), GstType.INTER_STATE)
        assert line.taxable == Decimal("100")
        assert line.igst == 0

    def test_unrounded(self):
        line = calculate_line_tax(_item(1, "0.10", 5), GstType.INTRA_STATE)
        assert line.cgst == Decimal("0.0025")


class TestDocumentTotals:
    def test_intra_state_document(self):
        totals = calculate_document_totals([_item(2, 500, 18)], GstType.INTRA_STATE)
        assert totals.taxable_value == Decimal("1000.00")
        assert totals.cgst == Decimal("90.00")
        assert totals.sgst == Decimal("90.00")
        assert totals.igst == Decimal("0.00")
        assert totals.total_amount == Decimal("1180.00")

    def test_inter_state_document(self):
        totals = calculate_document_totals([_item(2, 500, 18)], GstType.INTER_STATE)
        assert totals.igst == Decimal("180.00")
        assert totals.total_amount == Decimal("1180.00")

    def test_rounds_totals_not_lines(self):
        """Three lines of 0.005 sum to 0.015 and round once to 0.02."""
        items = [_item(1, "0.005", 0) for _ in range(3)]
        totals = calculate_document_totals(items, GstType.INTRA_STATE)
        assert totals.taxable_value == Decimal("0.02")

    def test_half_up(self):
        totals = calculate_document_totals([_item(1, "0.125", 0)], GstType.INTER_STATE)
        assert totals.taxable_value == Decimal("0.13")

    def test_empty_document(self):
        totals = calculate_document_totals([], GstType.INTRA_STATE)
        assert totals.taxable_value == 0
        assert totals.total_amount == 0

    def test_total_equals_parts(self):
        items = [_item(3, "33.33", 18), _item(7, "12.49", 12), _item(1, "0.99", 5)]
        totals = calculate_document_totals(items, GstType.INTRA_STATE)
        assert totals.total_amount == totals.taxable_value + totals.cgst + totals.sgst + totals.igst

    def test_mixed_rates(self):
        items = [_item(1, 1000, 5), _item(1, 1000, 28)]
        totals = calculate_document_totals(items, GstType.INTER_STATE)
        assert totals.igst == Decimal("330.00")


# ============================================================
# Finalize and validate
# ============================================================

def _draft(**overrides):
    fields = dict(
        id="d1",
        document_number="INV/2026/001",
        date=date(2026, 5, 2),
        customer_state="Maharashtra",
        line_items=[_item(2, 500, 18)],
    )
    fields.update(overrides)
    return DocumentDraft(**fields)


class TestFinalizeDocument:
    def test_freezes_gst_type_and_totals(self):
        doc = finalize_document(_draft(), "Karnataka")
        assert doc.gst_type == GstType.INTER_STATE
        assert doc.igst == Decimal("180.00")
        assert doc.total_amount == Decimal("1180.00")
        assert doc.status == InvoiceStatus.UNPAID

    def test_note_has_no_status(self):
        doc = finalize_document(
            _draft(kind=DocumentKind.CREDIT_NOTE, status=InvoiceStatus.PAID), "Karnataka"
        )
        assert doc.status is None

    def test_recompute_keeps_gst_type(self):
        doc = finalize_document(_draft(customer_state="Karnataka"), "Karnataka")
        edited = doc.model_copy(update={"line_items": [_item(1, 100, 5)]})
        recomputed = recompute_document(edited)
        assert recomputed.gst_type == GstType.INTRA_STATE
        assert recomputed.cgst == Decimal("2.50")
        assert recomputed.total_amount == Decimal("105.00")


class TestValidateDocument:
    def test_valid_document_passes(self):
        validate_document(finalize_document(_draft(), "Karnataka"))

    def test_rate_outside_slabs(self):
        with pytest.raises(DocumentValidationError) as exc:
            validate_document(_draft(line_items=[_item(1, 100, 7)]))
        assert any("GST rate" in e for e in exc.value.errors)

    def test_collects_every_problem(self):
        with pytest.raises(DocumentValidationError) as exc:
            validate_document(_draft(document_number=" ", line_items=[_item(-1, -5, 18)]))
        assert len(exc.value.errors) == 3

    def test_total_mismatch(self):
        doc = finalize_document(_draft(), "Karnataka")
        with pytest.raises(DocumentValidationError):
            validate_document(doc.model_copy(update={"total_amount": Decimal("1000.00")}))

    def test_igst_with_cgst_rejected(self):
        doc = finalize_document(_draft(), "Karnataka").model_copy(
            update={"cgst": Decimal("1.00"), "total_amount": Decimal("1181.00")}
        )
        with pytest.raises(DocumentValidationError) as exc:
            validate_document(doc)
        assert any("mutually exclusive" in e for e in exc.value.errors)

    def test_malformed_gstin_rejected(self):
        with pytest.raises(DocumentValidationError) as exc:
            validate_document(_draft(customer_gstin="NOT-A-GSTIN"))
        assert any("GSTIN" in e for e in exc.value.errors)

    def test_well_formed_gstin_passes(self):
        validate_document(_draft(customer_gstin=" 27aadcb2230m1zp "))

    def test_blank_gstin_is_unregistered(self):
        validate_document(_draft(customer_gstin="  "))

    def test_note_with_status_rejected(self):
        with pytest.raises(DocumentValidationError):
            validate_document(_draft(kind=DocumentKind.DEBIT_NOTE, status=InvoiceStatus.PAID))


# ============================================================
# Supply classification
# ============================================================

class TestClassifySupply:
    def test_registered_is_b2b(self):
        doc = finalize_document(_draft(customer_gstin="27AADCB2230M1ZP"), "Karnataka")
        assert classify_supply(doc) == SupplyType.B2B

    def test_threshold_is_exclusive(self):
        doc = finalize_document(_draft(line_items=[_item(1, 250000, 0)]), "Karnataka")
        assert doc.total_amount == Decimal("250000.00")
        assert classify_supply(doc) == SupplyType.B2CS

    def test_large_inter_state_unregistered_is_b2cl(self):
        doc = finalize_document(_draft(line_items=[_item(1, 250000, 5)]), "Karnataka")
        assert classify_supply(doc) == SupplyType.B2CL

    def test_large_intra_state_is_b2cs(self):
        doc = finalize_document(
            _draft(customer_state="Karnataka", line_items=[_item(1, 500000, 18)]), "Karnataka"
        )
        assert classify_supply(doc) == SupplyType.B2CS


# ============================================================
# Line precision
# ============================================================

class TestLinePrecision:
    """Line values are held to the precision tax_document_lines stores."""

    def test_four_decimal_rate_accepted(self):
        assert _item(3, "10.5555", 18).unit_rate == Decimal("10.5555")

    def test_finer_rate_rejected(self):
        with pytest.raises(ValidationError):
            _item(3, "10.55555", 18)

    def test_finer_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _item("0.00001", 100, 18)

    def test_fractional_gst_rate_limited(self):
        with pytest.raises(ValidationError):
            _item(1, 100, "18.005")

    def test_sub_paisa_rate_reconciles(self, make_document):
        doc = make_document("INV/1", date(2026, 1, 5), [("8471", 3, "10.555", 0)])
        assert doc.taxable_value == Decimal("31.67")
        agg = aggregate([doc], month_period(2026, 1))
        assert agg.rate_breakdown[0].taxable_value == doc.taxable_value
        assert agg.hsn_summary[0].taxable_value == doc.taxable_value
