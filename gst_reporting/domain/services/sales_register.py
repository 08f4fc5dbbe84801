# gst_reporting/domain/services/sales_register.py
"""
Sales Register for a period: every invoice with a trailing TOTAL row,
plus a register of credit and debit notes.

Three renderings share the same report object so their totals agree:
  - to_dict()                    display table
  - worksheet_rows() / xlsx      flattened rows of primitive values
  - generate_sales_register_pdf  print layout (ReportLab)
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from gst_reporting.domain.models.documents import DocumentKind, TaxableDocument
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import TaxTotals, filter_documents

logger = logging.getLogger("sales_register")

ZERO = Decimal("0")
TOTAL_LABEL = "TOTAL"

REGISTER_HEADERS = [
    "#", "Date", "Invoice No.", "Party Name", "GSTIN",
    "Taxable Amount", "IGST", "CGST", "SGST", "Total Tax", "Total Amount", "Status",
]
NOTES_HEADERS = [
    "#", "Date", "Type", "Note No.", "Party Name", "GSTIN", "Linked Invoice",
    "Taxable Amount", "IGST", "CGST", "SGST", "Total Tax", "Total Amount",
]

_AMOUNT_COLUMNS = {
    "Taxable Amount": "taxable_value",
    "IGST": "igst",
    "CGST": "cgst",
    "SGST": "sgst",
    "Total Tax": "total_tax",
    "Total Amount": "total_amount",
}


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(val)


def _fmt_date(d: date) -> str:
    return d.strftime("%d-%m-%Y")


def _fmt_amount(val: Decimal) -> str:
    return f"{val:,.2f}"


# ---------------------------------------------------------------------------
# Report model
# ---------------------------------------------------------------------------

@dataclass
class RegisterRow:
    serial: int
    document: TaxableDocument

    @property
    def kind_label(self) -> str:
        return "Credit Note" if self.document.kind == DocumentKind.CREDIT_NOTE else "Debit Note"

    def to_dict(self) -> dict:
        doc = self.document
        return {
            "serial": self.serial,
            "date": doc.date.isoformat(),
            "document_number": doc.document_number,
            "kind": doc.kind.value,
            "party_name": doc.customer_name,
            "gstin": doc.customer_gstin or "",
            "linked_invoice": doc.original_invoice_number,
            "taxable_value": _d(doc.taxable_value),
            "igst": _d(doc.igst),
            "cgst": _d(doc.cgst),
            "sgst": _d(doc.sgst),
            "total_tax": _d(doc.total_tax),
            "total_amount": _d(doc.total_amount),
            "status": doc.status.value if doc.status else "",
        }


@dataclass
class SalesRegisterReport:
    period: Period
    rows: list[RegisterRow] = field(default_factory=list)
    totals: TaxTotals = field(default_factory=TaxTotals)
    note_rows: list[RegisterRow] = field(default_factory=list)
    credit_note_totals: TaxTotals = field(default_factory=TaxTotals)
    debit_note_totals: TaxTotals = field(default_factory=TaxTotals)

    def to_dict(self) -> dict:
        return {
            "period": self.period.label,
            "rows": [r.to_dict() for r in self.rows],
            "totals": self.totals.to_dict(),
            "notes": [r.to_dict() for r in self.note_rows],
            "credit_note_totals": self.credit_note_totals.to_dict(),
            "debit_note_totals": self.debit_note_totals.to_dict(),
        }


def build_sales_register(
    documents: Iterable[TaxableDocument],
    period: Period,
) -> SalesRegisterReport | EmptyPeriodResult:
    in_period = filter_documents(documents, period)
    if not in_period:
        logger.info("Sales register for %s: no documents in period", period.key)
        return EmptyPeriodResult(report="Sales Register", period=period)

    report = SalesRegisterReport(period=period)
    for doc in in_period:
        if doc.kind == DocumentKind.INVOICE:
            report.rows.append(RegisterRow(serial=len(report.rows) + 1, document=doc))
            report.totals.add(doc)
            continue
        report.note_rows.append(RegisterRow(serial=len(report.note_rows) + 1, document=doc))
        if doc.kind == DocumentKind.CREDIT_NOTE:
            report.credit_note_totals.add(doc)
        else:
            report.debit_note_totals.add(doc)
    return report


# ---------------------------------------------------------------------------
# Worksheet export (rows of primitives)
# ---------------------------------------------------------------------------

def _amounts(doc_or_totals) -> list[float]:
    return [
        _d(doc_or_totals.taxable_value),
        _d(doc_or_totals.igst),
        _d(doc_or_totals.cgst),
        _d(doc_or_totals.sgst),
        _d(doc_or_totals.total_tax),
        _d(doc_or_totals.total_amount),
    ]


def worksheet_rows(report: SalesRegisterReport) -> list[list[Any]]:
    """Header, one row per invoice, trailing TOTAL row."""
    rows: list[list[Any]] = [list(REGISTER_HEADERS)]
    for row in report.rows:
        doc = row.document
        rows.append(
            [row.serial, _fmt_date(doc.date), doc.document_number, doc.customer_name, doc.customer_gstin or ""]
            + _amounts(doc)
            + [doc.status.value if doc.status else ""]
        )
    rows.append([TOTAL_LABEL, "", "", "", ""] + _amounts(report.totals) + [""])
    return rows


def notes_worksheet_rows(report: SalesRegisterReport) -> list[list[Any]]:
    rows: list[list[Any]] = [list(NOTES_HEADERS)]
    for row in report.note_rows:
        doc = row.document
        rows.append(
            [
                row.serial, _fmt_date(doc.date), row.kind_label, doc.document_number,
                doc.customer_name, doc.customer_gstin or "", doc.original_invoice_number or "",
            ]
            + _amounts(doc)
        )
    return rows


def parse_worksheet_totals(rows: list[list[Any]]) -> dict[str, Decimal]:
    """
    Read the TOTAL row of a register worksheet back into Decimals,
    locating columns by header name.
    """
    if not rows:
        raise ValueError("Worksheet is empty")
    header = [str(h) if h is not None else "" for h in rows[0]]
    total_row = next((r for r in rows[1:] if r and r[0] == TOTAL_LABEL), None)
    if total_row is None:
        raise ValueError("Worksheet has no TOTAL row")

    totals = {}
    for column, key in _AMOUNT_COLUMNS.items():
        try:
            idx = header.index(column)
        except ValueError as exc:
            raise ValueError(f"Worksheet is missing column {column!r}") from exc
        try:
            totals[key] = Decimal(str(total_row[idx] or 0)).quantize(Decimal("0.01"))
        except InvalidOperation as exc:
            raise ValueError(f"Non-numeric total in column {column!r}: {total_row[idx]!r}") from exc
    return totals


def _write_sheet(ws, rows: list[list[Any]]) -> None:
    for row in rows:
        ws.append(row)
    header_fill = PatternFill("solid", fgColor="334D80")
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = header_fill
    if len(rows) > 1 and rows[-1] and rows[-1][0] == TOTAL_LABEL:
        for cell in ws[ws.max_row]:
            cell.font = Font(bold=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            if isinstance(cell.value, float):
                cell.number_format = "#,##0.00"


def export_sales_register_xlsx(report: SalesRegisterReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Sales Register"
    _write_sheet(ws, worksheet_rows(report))

    if report.note_rows:
        _write_sheet(wb.create_sheet("Credit Debit Notes"), notes_worksheet_rows(report))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def read_xlsx_totals(file_bytes: bytes) -> dict[str, Decimal]:
    wb = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    try:
        rows = [list(r) for r in wb["Sales Register"].iter_rows(values_only=True)]
    finally:
        wb.close()
    return parse_worksheet_totals(rows)


# ---------------------------------------------------------------------------
# Print layout (PDF)
# ---------------------------------------------------------------------------

def generate_sales_register_pdf(report: SalesRegisterReport, business_name: str = "") -> bytes:
    """Landscape A4 register with the same rows and TOTAL as the worksheet."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "RegisterTitle",
        parent=styles["Heading1"],
        fontSize=15,
        alignment=1,
        spaceAfter=4,
    )
    subtitle_style = ParagraphStyle(
        "RegisterSubtitle",
        parent=styles["Normal"],
        fontSize=9,
        alignment=1,
        textColor=colors.grey,
        spaceAfter=12,
    )

    elements = [Paragraph("SALES REGISTER", title_style)]
    subtitle = f"{business_name + ' | ' if business_name else ''}{report.period.label}"
    elements.append(Paragraph(subtitle, subtitle_style))
    elements.append(
        Paragraph(f"Generated on {datetime.now().strftime('%d-%b-%Y %H:%M')}", subtitle_style)
    )

    table_rows: list[list[str]] = [list(REGISTER_HEADERS)]
    for row in worksheet_rows(report)[1:]:
        table_rows.append([
            _fmt_amount(Decimal(str(v))) if isinstance(v, float) else str(v)
            for v in row
        ])

    table = Table(table_rows, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.2, 0.3, 0.5)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("BACKGROUND", (0, -1), (-1, -1), colors.Color(0.9, 0.95, 1.0)),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 7.5),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.Color(0.8, 0.8, 0.8)),
                ("ALIGN", (5, 0), (10, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    elements.append(table)

    if report.note_rows:
        elements.append(Spacer(1, 14))
        elements.append(Paragraph("Credit / Debit Notes", styles["Heading3"]))
        note_rows: list[list[str]] = [list(NOTES_HEADERS)]
        for row in notes_worksheet_rows(report)[1:]:
            note_rows.append([
                _fmt_amount(Decimal(str(v))) if isinstance(v, float) else str(v)
                for v in row
            ])
        notes_table = Table(note_rows, repeatRows=1)
        notes_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.2, 0.3, 0.5)),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 7.5),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.Color(0.8, 0.8, 0.8)),
                    ("ALIGN", (7, 0), (-1, -1), "RIGHT"),
                ]
            )
        )
        elements.append(notes_table)

    doc.build(elements)
    return buf.getvalue()
