# gst_reporting/domain/services/gst_workbooks.py
"""
Excel renderings of GSTR-1 and the HSN summary.

The GSTR-1 workbook follows the portal's offline-utility template, one
sheet per section. Each sheet is laid out as:

  row 1  title
  row 2  summary labels
  row 3  summary formulas over the data rows
  row 4  column headers
  row 5+ data, one row per document and GST rate

Figures come from the same Gstr1Payload the filing JSON is built from, so
both exports agree.
"""

from __future__ import annotations

import io
import logging
from decimal import Decimal
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from gst_reporting.domain.services.gst_type import state_label
from gst_reporting.domain.services.gstr1_service import (
    DOC_NUM_CREDIT_NOTES,
    DOC_NUM_DEBIT_NOTES,
    DOC_NUM_INVOICES,
    Gstr1Payload,
    Gstr1Report,
)
from gst_reporting.domain.services.hsn_summary import HsnSummaryReport

logger = logging.getLogger("gst_workbooks")

FIRST_DATA_ROW = 5
HEADER_ROW = 4
TOTAL_LABEL = "TOTAL"

GSTR1_SHEETS = ("b2b", "b2cl", "b2cs", "cdnr", "cdnur", "exemp", "hsn", "docs")

B2B_HEADERS = [
    "GSTIN of Recipient", "Receiver Name", "Invoice Number", "Invoice date",
    "Invoice Value", "Place Of Supply", "Reverse Charge", "Invoice Type",
    "E-Commerce GSTIN", "Rate", "Taxable Value", "Cess Amount",
]
B2CL_HEADERS = [
    "Invoice Number", "Invoice date", "Invoice Value", "Place Of Supply",
    "Applicable % of Tax Rate", "Rate", "Taxable Value", "Cess Amount",
]
B2CS_HEADERS = [
    "Type", "Place Of Supply", "Applicable % of Tax Rate", "Rate",
    "Taxable Value", "Cess Amount", "E-Commerce GSTIN",
]
CDNR_HEADERS = [
    "GSTIN of Recipient", "Receiver Name", "Note Number", "Note Date",
    "Note Type", "Place Of Supply", "Reverse Charge", "Note Supply Type",
    "Note Value", "Applicable % of Tax Rate", "Rate", "Taxable Value", "Cess Amount",
]
CDNUR_HEADERS = [
    "UR Type", "Note Number", "Note Date", "Note Type", "Place Of Supply",
    "Note Value", "Applicable % of Tax Rate", "Rate", "Taxable Value", "Cess Amount",
]
EXEMP_HEADERS = [
    "Description", "Nil Rated Supplies",
    "Exempted (other than nil rated/non GST supply)", "Non-GST Supplies",
]
HSN_HEADERS = [
    "HSN", "Description", "UQC", "Total Quantity", "Total Value",
    "Taxable Value", "Integrated Tax Amount", "Central Tax Amount",
    "State/UT Tax Amount", "Cess Amount",
]
DOCS_HEADERS = [
    "Nature of Document", "Sr. No. From", "Sr. No. To", "Total Number", "Cancelled",
]

HSN_SUMMARY_HEADERS = [
    "HSN Code", "Description", "UQC", "Total Qty", "Taxable Value",
    "CGST", "SGST", "IGST", "Total Tax",
]

_NIL_DESCRIPTIONS = {
    "INTRB2B": "Inter-State supplies to registered persons",
    "INTRB2C": "Inter-State supplies to unregistered persons",
    "INTRAB2B": "Intra-State supplies to registered persons",
    "INTRAB2C": "Intra-State supplies to unregistered persons",
}

# Portal order; only the first three are ever issued by this engine
_DOC_NATURES = [
    (DOC_NUM_INVOICES, "Invoices for outward supply"),
    (None, "Invoices for inward supply from unregistered person"),
    (None, "Revised Invoice"),
    (DOC_NUM_DEBIT_NOTES, "Debit Note"),
    (DOC_NUM_CREDIT_NOTES, "Credit Note"),
    (None, "Advance Receipt"),
    (None, "Payment Voucher"),
    (None, "Refund Voucher"),
    (None, "Delivery Challan for job work"),
]

_HEADER_FILL = PatternFill("solid", fgColor="334D80")


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(val)


def _col_range(col: int) -> str:
    letter = get_column_letter(col)
    return f"{letter}{FIRST_DATA_ROW}:{letter}1048576"


def _count(col: int) -> str:
    return f"=COUNTA({_col_range(col)})"


def _sum(*cols: int) -> str:
    return "=" + "+".join(f"SUM({_col_range(c)})" for c in cols)


def _write_template_sheet(
    wb: Workbook,
    name: str,
    title: str,
    headers: list[str],
    rows: list[list[Any]],
    summary: list[tuple[str, str]],
) -> None:
    ws = wb.create_sheet(name)
    ws.append([title])
    ws.append(["Summary"] + [label for label, _ in summary])
    ws.append([""] + [formula for _, formula in summary])
    ws.append(headers)
    for row in rows:
        ws.append(row)

    ws["A1"].font = Font(bold=True, size=12)
    for cell in ws[HEADER_ROW]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = _HEADER_FILL
    for row in ws.iter_rows(min_row=FIRST_DATA_ROW):
        for cell in row:
            if isinstance(cell.value, float):
                cell.number_format = "#,##0.00"
    for idx in range(1, len(headers) + 1):
        ws.column_dimensions[get_column_letter(idx)].width = 20


# ---------------------------------------------------------------------------
# GSTR-1 sections
# ---------------------------------------------------------------------------

def _b2b_rows(payload: Gstr1Payload, names: dict[str, str]) -> list[list[Any]]:
    rows = []
    for entry in payload.b2b:
        for inv in entry.inv:
            for item in inv.itms:
                rows.append([
                    entry.ctin, names.get(inv.num, ""), inv.num, inv.dt, _d(inv.val),
                    state_label(inv.pos), inv.rchrg, "Regular", "",
                    _d(item.rt), _d(item.txval), 0.0,
                ])
    return rows


def _b2cl_rows(payload: Gstr1Payload) -> list[list[Any]]:
    rows = []
    for entry in payload.b2cl:
        for inv in entry.inv:
            for item in inv.itms:
                rows.append([
                    inv.num, inv.dt, _d(inv.val), state_label(entry.pos),
                    "", _d(item.rt), _d(item.txval), 0.0,
                ])
    return rows


def _b2cs_rows(payload: Gstr1Payload) -> list[list[Any]]:
    return [
        [
            "Inter-State" if row.sply_ty == "INTER" else "Intra-State",
            state_label(row.pos), "", _d(row.rt), _d(row.txval), 0.0, "",
        ]
        for row in payload.b2cs
    ]


def _cdnr_rows(payload: Gstr1Payload, names: dict[str, str]) -> list[list[Any]]:
    rows = []
    for entry in payload.cdnr:
        for note in entry.nt:
            for item in note.itms:
                rows.append([
                    entry.ctin, names.get(note.num, ""), note.num, note.dt, note.ntty,
                    state_label(note.pos), note.rchrg, "Regular", _d(note.val),
                    "", _d(item.rt), _d(item.txval), 0.0,
                ])
    return rows


def _cdnur_rows(payload: Gstr1Payload) -> list[list[Any]]:
    rows = []
    for note in payload.cdnur:
        for item in note.itms:
            rows.append([
                note.typ, note.num, note.dt, note.ntty, state_label(note.pos),
                _d(note.val), "", _d(item.rt), _d(item.txval), 0.0,
            ])
    return rows


def _exemp_rows(payload: Gstr1Payload) -> list[list[Any]]:
    return [
        [_NIL_DESCRIPTIONS.get(row.sply_ty, row.sply_ty), _d(row.nil_amt), _d(row.expt_amt), _d(row.ngsup_amt)]
        for row in payload.nil
    ]


def _hsn_rows(payload: Gstr1Payload) -> list[list[Any]]:
    return [
        [
            row.hsn_sc, row.desc, row.uqc, _d(row.qty), _d(row.val), _d(row.txval),
            _d(row.igst), _d(row.cgst), _d(row.sgst), 0.0,
        ]
        for row in payload.hsn
    ]


def _docs_rows(payload: Gstr1Payload) -> list[list[Any]]:
    ranges = {issue.doc_num: issue.docs[0] for issue in payload.doc_issue if issue.docs}
    rows = []
    for doc_num, nature in _DOC_NATURES:
        rng = ranges.get(doc_num)
        if rng is None:
            rows.append([nature, "", "", 0, 0])
        else:
            rows.append([nature, rng.from_no, rng.to_no, rng.totnum, rng.cancel])
    return rows


def export_gstr1_xlsx(report: Gstr1Report) -> bytes:
    """GSTR-1 in the portal's offline Excel template layout."""
    payload = report.payload
    names = {row.document_number: row.party_name for table in report.tables for row in table.rows}
    fp = payload.fp

    wb = Workbook()
    wb.remove(wb.active)

    _write_template_sheet(
        wb, "b2b", f"GSTR1 - B2B Invoices - {fp}", B2B_HEADERS, _b2b_rows(payload, names),
        [("No. of Recipients", _count(1)), ("No. of Invoices", _count(3)),
         ("Total Invoice Value", _sum(5)), ("Total Taxable Value", _sum(11))],
    )
    _write_template_sheet(
        wb, "b2cl", f"GSTR1 - B2CL Invoices - {fp}", B2CL_HEADERS, _b2cl_rows(payload),
        [("No. of Invoices", _count(1)), ("Total Invoice Value", _sum(3)),
         ("Total Taxable Value", _sum(7))],
    )
    _write_template_sheet(
        wb, "b2cs", f"GSTR1 - B2CS Supplies - {fp}", B2CS_HEADERS, _b2cs_rows(payload),
        [("No. of Rows", _count(2)), ("Total Taxable Value", _sum(5))],
    )
    _write_template_sheet(
        wb, "cdnr", f"GSTR1 - Credit/Debit Notes (Registered) - {fp}", CDNR_HEADERS,
        _cdnr_rows(payload, names),
        [("No. of Recipients", _count(1)), ("No. of Notes", _count(3)),
         ("Total Note Value", _sum(9)), ("Total Taxable Value", _sum(12))],
    )
    _write_template_sheet(
        wb, "cdnur", f"GSTR1 - Credit/Debit Notes (Unregistered) - {fp}", CDNUR_HEADERS,
        _cdnur_rows(payload),
        [("No. of Notes", _count(2)), ("Total Note Value", _sum(6)),
         ("Total Taxable Value", _sum(9))],
    )
    _write_template_sheet(
        wb, "exemp", f"GSTR1 - Nil Rated/Exempted/Non-GST Supplies - {fp}", EXEMP_HEADERS,
        _exemp_rows(payload),
        [("Total Nil Rated", _sum(2)), ("Total Exempted", _sum(3)), ("Total Non-GST", _sum(4))],
    )
    _write_template_sheet(
        wb, "hsn", f"GSTR1 - HSN Summary - {fp}", HSN_HEADERS, _hsn_rows(payload),
        [("No. of HSN Codes", _count(1)), ("Total Taxable Value", _sum(6)),
         ("Total Tax", _sum(7, 8, 9))],
    )
    _write_template_sheet(
        wb, "docs", f"GSTR1 - Document Summary - {fp}", DOCS_HEADERS, _docs_rows(payload),
        [("Total Documents Issued", _sum(4)), ("Total Cancelled", _sum(5))],
    )

    logger.info("GSTR-1 workbook for %s %s: %d sheets", payload.gstin, fp, len(wb.sheetnames))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# HSN summary
# ---------------------------------------------------------------------------

def export_hsn_summary_xlsx(
    report: HsnSummaryReport,
    business_name: str = "",
    gstin: str = "",
) -> bytes:
    """Single-sheet HSN summary with a trailing TOTAL row."""
    wb = Workbook()
    ws = wb.active
    ws.title = "HSN Summary"

    ws.append([f"HSN Summary: {report.period_label}" + (f" | {business_name}" if business_name else ""),
               "", "", f"GSTIN: {gstin or '-'}"])
    ws.append([])
    ws.append(HSN_SUMMARY_HEADERS)
    for row in report.rows:
        ws.append([
            row.hsn_code, row.description, row.uqc, _d(row.total_quantity), _d(row.taxable_value),
            _d(row.cgst), _d(row.sgst), _d(row.igst), _d(row.total_tax),
        ])
    totals = report.totals
    ws.append([
        TOTAL_LABEL, "", "", "", _d(totals.taxable_value),
        _d(totals.cgst), _d(totals.sgst), _d(totals.igst), _d(totals.total_tax),
    ])

    ws["A1"].font = Font(bold=True, size=12)
    for cell in ws[3]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = _HEADER_FILL
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
    for row in ws.iter_rows(min_row=4):
        for cell in row:
            if isinstance(cell.value, float):
                cell.number_format = "#,##0.00"
    for idx, width in enumerate([12, 30, 8, 10, 16, 12, 12, 12, 14], start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
