# gst_reporting/domain/services/gstr1_service.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from gst_reporting.domain.exceptions import PeriodMismatchError
from gst_reporting.domain.models.documents import DocumentKind, GstType, TaxableDocument
from gst_reporting.domain.models.period import PeriodKind
from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import (
    BLANK_HSN,
    Aggregate,
    TaxTotals,
    filter_documents,
)
from gst_reporting.domain.services.gst_type import (
    DEFAULT_B2CL_THRESHOLD,
    SupplyType,
    classify_supply,
    place_of_supply_code,
)
from gst_reporting.domain.services.period_calculator import filing_period_token
from gst_reporting.domain.services.tax_calculator import calculate_line_tax, round2

logger = logging.getLogger("gstr1_service")

ZERO = Decimal("0")
FIVE_CRORE = Decimal("50000000")

MONTHLY_ONLY_MESSAGE = "GSTR-1 JSON/Excel available in monthly mode only"

# doc_issue document categories
DOC_NUM_INVOICES = 1
DOC_NUM_DEBIT_NOTES = 4
DOC_NUM_CREDIT_NOTES = 5


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(val)


def _fmt_date(d: date) -> str:
    """DD-MM-YYYY as used throughout the GSTR-1 schema."""
    return d.strftime("%d-%m-%Y")


# ---------- Dataclasses representing GSTR-1 structure ----------


@dataclass
class Gstr1Item:
    num: int
    txval: Decimal
    rt: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal


@dataclass
class Gstr1Invoice:
    num: str  # invoice number
    dt: str  # DD-MM-YYYY
    val: Decimal  # invoice total value
    pos: str  # 2-digit state code
    rchrg: str = "N"
    inv_typ: str = "R"
    itms: list[Gstr1Item] = field(default_factory=list)


@dataclass
class Gstr1B2BEntry:
    ctin: str  # counterparty GSTIN
    inv: list[Gstr1Invoice] = field(default_factory=list)


@dataclass
class Gstr1B2CLEntry:
    pos: str
    inv: list[Gstr1Invoice] = field(default_factory=list)


@dataclass
class Gstr1B2CSRow:
    sply_ty: str  # INTRA / INTER
    pos: str
    rt: Decimal
    txval: Decimal = ZERO
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    typ: str = "OE"


@dataclass
class Gstr1Note:
    ntty: str  # C / D
    num: str
    dt: str
    val: Decimal
    pos: str
    rchrg: str = "N"
    inv_typ: str = "R"
    itms: list[Gstr1Item] = field(default_factory=list)


@dataclass
class Gstr1CdnrEntry:
    ctin: str
    nt: list[Gstr1Note] = field(default_factory=list)


@dataclass
class Gstr1CdnurNote:
    typ: str  # B2CL
    ntty: str
    num: str
    dt: str
    val: Decimal
    pos: str
    itms: list[Gstr1Item] = field(default_factory=list)


@dataclass
class Gstr1NilRow:
    sply_ty: str  # INTRB2B / INTRB2C / INTRAB2B / INTRAB2C
    nil_amt: Decimal = ZERO
    expt_amt: Decimal = ZERO
    ngsup_amt: Decimal = ZERO


@dataclass
class Gstr1HsnRow:
    num: int
    hsn_sc: str
    desc: str
    uqc: str
    qty: Decimal
    val: Decimal
    txval: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal


@dataclass
class Gstr1DocRange:
    num: int
    from_no: str
    to_no: str
    totnum: int
    cancel: int
    net_issue: int


@dataclass
class Gstr1DocIssue:
    doc_num: int
    docs: list[Gstr1DocRange] = field(default_factory=list)


@dataclass
class Gstr1Payload:
    gstin: str
    fp: str  # filing period in MMYYYY format
    gt: Decimal = ZERO
    cur_gt: Decimal = ZERO
    b2b: list[Gstr1B2BEntry] = field(default_factory=list)
    b2cl: list[Gstr1B2CLEntry] = field(default_factory=list)
    b2cs: list[Gstr1B2CSRow] = field(default_factory=list)
    cdnr: list[Gstr1CdnrEntry] = field(default_factory=list)
    cdnur: list[Gstr1CdnurNote] = field(default_factory=list)
    nil: list[Gstr1NilRow] = field(default_factory=list)
    hsn: list[Gstr1HsnRow] = field(default_factory=list)
    doc_issue: list[Gstr1DocIssue] = field(default_factory=list)


# ---------- Display tables ----------


@dataclass
class Gstr1Row:
    document_number: str
    date: date
    party_name: str
    gstin: str
    place_of_supply: str
    supply_type: str
    taxable_value: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_amount: Decimal
    linked_invoice: str | None = None

    def to_dict(self) -> dict:
        return {
            "document_number": self.document_number,
            "date": self.date.isoformat(),
            "party_name": self.party_name,
            "gstin": self.gstin,
            "place_of_supply": self.place_of_supply,
            "supply_type": self.supply_type,
            "taxable_value": _d(self.taxable_value),
            "cgst": _d(self.cgst),
            "sgst": _d(self.sgst),
            "igst": _d(self.igst),
            "total_amount": _d(self.total_amount),
            "linked_invoice": self.linked_invoice,
        }


@dataclass
class Gstr1Table:
    name: str
    title: str
    rows: list[Gstr1Row] = field(default_factory=list)
    subtotal: TaxTotals = field(default_factory=TaxTotals)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "title": self.title,
            "rows": [r.to_dict() for r in self.rows],
            "subtotal": self.subtotal.to_dict(),
        }


@dataclass
class Gstr1Report:
    gstin: str
    fp: str
    period_label: str
    b2b: Gstr1Table
    b2c: Gstr1Table
    credit_notes: Gstr1Table
    debit_notes: Gstr1Table
    payload: Gstr1Payload

    @property
    def tables(self) -> list[Gstr1Table]:
        return [self.b2b, self.b2c, self.credit_notes, self.debit_notes]

    def to_dict(self) -> dict:
        return {
            "gstin": self.gstin,
            "fp": self.fp,
            "period": self.period_label,
            "tables": [t.to_dict() for t in self.tables],
        }


# ---------- Builders ----------


def _items_by_rate(doc: TaxableDocument) -> list[Gstr1Item]:
    """One itm per GST rate, line values summed at full precision then rounded."""
    by_rate: dict[Decimal, list[Decimal]] = {}
    for item in doc.line_items:
        line = calculate_line_tax(item, doc.gst_type)
        sums = by_rate.setdefault(item.gst_rate_percent, [ZERO, ZERO, ZERO, ZERO])
        sums[0] += line.taxable
        sums[1] += line.igst
        sums[2] += line.cgst
        sums[3] += line.sgst
    return [
        Gstr1Item(
            num=idx,
            txval=round2(sums[0]),
            rt=rate,
            igst=round2(sums[1]),
            cgst=round2(sums[2]),
            sgst=round2(sums[3]),
        )
        for idx, (rate, sums) in enumerate(sorted(by_rate.items()), start=1)
    ]


def _table_row(doc: TaxableDocument, supply_type: str, seller_state: str | None) -> Gstr1Row:
    return Gstr1Row(
        document_number=doc.document_number,
        date=doc.date,
        party_name=doc.customer_name,
        gstin=doc.customer_gstin or "",
        place_of_supply=place_of_supply_code(doc.customer_state, seller_state),
        supply_type=supply_type,
        taxable_value=doc.taxable_value,
        cgst=doc.cgst,
        sgst=doc.sgst,
        igst=doc.igst,
        total_amount=doc.total_amount,
        linked_invoice=doc.original_invoice_number,
    )


def min_hsn_digits(annual_turnover: Decimal | None) -> int:
    """4 digits below ₹5 crore aggregate turnover, 6 digits at or above."""
    if annual_turnover is not None and annual_turnover >= FIVE_CRORE:
        return 6
    return 4


def _is_b2cl_note(
    note: TaxableDocument,
    invoices_by_number: dict[str, TaxableDocument],
    b2cl_threshold: Decimal,
) -> bool:
    """An unregistered note belongs in cdnur when the invoice it amends was B2CL."""
    if note.gst_type != GstType.INTER_STATE:
        return False
    linked = invoices_by_number.get(note.original_invoice_number or "")
    target = linked if linked is not None else note
    return classify_supply(target, b2cl_threshold) == SupplyType.B2CL


def _nil_rows(invoices: Iterable[TaxableDocument]) -> list[Gstr1NilRow]:
    rows = {
        key: Gstr1NilRow(sply_ty=key)
        for key in ("INTRB2B", "INTRB2C", "INTRAB2B", "INTRAB2C")
    }
    for doc in invoices:
        nil_value = ZERO
        for item in doc.line_items:
            if item.gst_rate_percent == 0:
                nil_value += calculate_line_tax(item, doc.gst_type).taxable
        if nil_value == 0:
            continue
        scope = "INTRB2" if doc.gst_type == GstType.INTER_STATE else "INTRAB2"
        key = scope + ("B" if doc.is_b2b else "C")
        rows[key].nil_amt += nil_value
    for row in rows.values():
        row.nil_amt = round2(row.nil_amt)
    return list(rows.values())


def _doc_issue(
    in_period: list[TaxableDocument],
    cancelled: list[TaxableDocument],
) -> list[Gstr1DocIssue]:
    result = []
    for doc_num, kind in (
        (DOC_NUM_INVOICES, DocumentKind.INVOICE),
        (DOC_NUM_DEBIT_NOTES, DocumentKind.DEBIT_NOTE),
        (DOC_NUM_CREDIT_NOTES, DocumentKind.CREDIT_NOTE),
    ):
        issued = [d.document_number for d in in_period if d.kind == kind]
        cancel = sum(1 for d in cancelled if d.kind == kind)
        numbers = sorted(issued + [d.document_number for d in cancelled if d.kind == kind])
        if not numbers:
            continue
        result.append(
            Gstr1DocIssue(
                doc_num=doc_num,
                docs=[
                    Gstr1DocRange(
                        num=1,
                        from_no=numbers[0],
                        to_no=numbers[-1],
                        totnum=len(numbers),
                        cancel=cancel,
                        net_issue=len(numbers) - cancel,
                    )
                ],
            )
        )
    return result


def build_gstr1_payload(
    aggregate: Aggregate,
    documents: Iterable[TaxableDocument],
    gstin: str,
    seller_state: str | None = None,
    b2cl_threshold: Decimal = DEFAULT_B2CL_THRESHOLD,
    annual_turnover: Decimal | None = None,
    gross_turnover: Decimal | None = None,
) -> Gstr1Payload:
    """
    Build the government-schema GSTR-1 payload for a month.

    Registered counterparties go to b2b/cdnr. Unregistered inter-state
    invoices above the B2CL threshold go to b2cl and their notes to cdnur;
    all other unregistered supplies (notes included, with credit notes
    negative) are summarised in b2cs by supply type, place of supply and rate.
    """
    all_docs = list(documents)
    in_period = aggregate.documents
    cancelled = [d for d in all_docs if d.deleted and aggregate.period.contains(d.date)]

    b2b_index: dict[str, list[Gstr1Invoice]] = {}
    b2cl_index: dict[str, list[Gstr1Invoice]] = {}
    b2cs_index: dict[tuple[str, str, Decimal], Gstr1B2CSRow] = {}
    cdnr_index: dict[str, list[Gstr1Note]] = {}
    cdnur: list[Gstr1CdnurNote] = []
    invoices_by_number = {
        d.document_number: d for d in all_docs if d.kind == DocumentKind.INVOICE and not d.deleted
    }

    def add_to_b2cs(doc: TaxableDocument, sign: int) -> None:
        pos = place_of_supply_code(doc.customer_state, seller_state)
        sply_ty = "INTER" if doc.gst_type == GstType.INTER_STATE else "INTRA"
        for item in doc.line_items:
            line = calculate_line_tax(item, doc.gst_type)
            key = (sply_ty, pos, item.gst_rate_percent)
            row = b2cs_index.get(key)
            if row is None:
                row = b2cs_index[key] = Gstr1B2CSRow(sply_ty=sply_ty, pos=pos, rt=item.gst_rate_percent)
            row.txval += sign * line.taxable
            row.igst += sign * line.igst
            row.cgst += sign * line.cgst
            row.sgst += sign * line.sgst

    for doc in in_period:
        pos = place_of_supply_code(doc.customer_state, seller_state)
        rchrg = "Y" if doc.reverse_charge else "N"
        supply = classify_supply(doc, b2cl_threshold)

        if doc.kind == DocumentKind.INVOICE:
            invoice = Gstr1Invoice(
                num=doc.document_number,
                dt=_fmt_date(doc.date),
                val=doc.total_amount,
                pos=pos,
                rchrg=rchrg,
                itms=_items_by_rate(doc),
            )
            if supply == SupplyType.B2B:
                b2b_index.setdefault(doc.customer_gstin.strip(), []).append(invoice)
            elif supply == SupplyType.B2CL:
                b2cl_index.setdefault(pos, []).append(invoice)
            else:
                add_to_b2cs(doc, 1)
            continue

        ntty = "C" if doc.kind == DocumentKind.CREDIT_NOTE else "D"
        if doc.is_b2b:
            cdnr_index.setdefault(doc.customer_gstin.strip(), []).append(
                Gstr1Note(
                    ntty=ntty,
                    num=doc.document_number,
                    dt=_fmt_date(doc.date),
                    val=doc.total_amount,
                    pos=pos,
                    rchrg=rchrg,
                    itms=_items_by_rate(doc),
                )
            )
        elif _is_b2cl_note(doc, invoices_by_number, b2cl_threshold):
            cdnur.append(
                Gstr1CdnurNote(
                    typ="B2CL",
                    ntty=ntty,
                    num=doc.document_number,
                    dt=_fmt_date(doc.date),
                    val=doc.total_amount,
                    pos=pos,
                    itms=_items_by_rate(doc),
                )
            )
        else:
            add_to_b2cs(doc, -1 if ntty == "C" else 1)

    for row in b2cs_index.values():
        row.txval = round2(row.txval)
        row.igst = round2(row.igst)
        row.cgst = round2(row.cgst)
        row.sgst = round2(row.sgst)

    min_digits = min_hsn_digits(annual_turnover)
    hsn_rows = []
    for hsn in aggregate.hsn_summary:
        if hsn.hsn_code == BLANK_HSN or len(hsn.hsn_code) < min_digits:
            logger.warning("Skipping HSN %r in GSTR-1: fewer than %d digits", hsn.hsn_code, min_digits)
            continue
        hsn_rows.append(
            Gstr1HsnRow(
                num=len(hsn_rows) + 1,
                hsn_sc=hsn.hsn_code,
                desc=hsn.description,
                uqc=hsn.uqc,
                qty=hsn.total_quantity,
                val=hsn.total_value,
                txval=hsn.taxable_value,
                igst=hsn.igst,
                cgst=hsn.cgst,
                sgst=hsn.sgst,
            )
        )

    invoice_total = aggregate.invoices.total_amount
    return Gstr1Payload(
        gstin=gstin,
        fp=filing_period_token(aggregate.period),
        gt=gross_turnover if gross_turnover is not None else invoice_total,
        cur_gt=invoice_total,
        b2b=[Gstr1B2BEntry(ctin=ctin, inv=inv) for ctin, inv in sorted(b2b_index.items())],
        b2cl=[Gstr1B2CLEntry(pos=pos, inv=inv) for pos, inv in sorted(b2cl_index.items())],
        b2cs=[b2cs_index[k] for k in sorted(b2cs_index)],
        cdnr=[Gstr1CdnrEntry(ctin=ctin, nt=nt) for ctin, nt in sorted(cdnr_index.items())],
        cdnur=cdnur,
        nil=_nil_rows(aggregate.documents_of(DocumentKind.INVOICE)),
        hsn=hsn_rows,
        doc_issue=_doc_issue(in_period, cancelled),
    )


def build_gstr1(
    aggregate: Aggregate,
    documents: Iterable[TaxableDocument],
    gstin: str = "",
    seller_state: str | None = None,
    b2cl_threshold: Decimal = DEFAULT_B2CL_THRESHOLD,
    annual_turnover: Decimal | None = None,
) -> Gstr1Report | EmptyPeriodResult:
    """
    GSTR-1 for a single month: B2B, B2C, credit-note and debit-note tables,
    each with its own subtotal, plus the filing payload.

    Raises PeriodMismatchError for any non-month period.
    """
    period = aggregate.period
    if period.kind != PeriodKind.MONTH:
        raise PeriodMismatchError(f"{MONTHLY_ONLY_MESSAGE} (requested {period.kind.value} {period.key})")

    documents = list(documents)
    if aggregate.is_empty:
        logger.info("GSTR-1 for %s: no documents in period", period.key)
        return EmptyPeriodResult(report="GSTR-1", period=period)

    b2b = Gstr1Table(name="b2b", title="B2B Invoices (registered customers)")
    b2c = Gstr1Table(name="b2c", title="B2C Invoices (unregistered customers)")
    credit_notes = Gstr1Table(name="credit_notes", title="Credit Notes")
    debit_notes = Gstr1Table(name="debit_notes", title="Debit Notes")

    for doc in filter_documents(documents, period):
        supply = classify_supply(doc, b2cl_threshold).value
        if doc.kind == DocumentKind.INVOICE:
            table = b2b if doc.is_b2b else b2c
        elif doc.kind == DocumentKind.CREDIT_NOTE:
            table = credit_notes
        else:
            table = debit_notes
        table.rows.append(_table_row(doc, supply, seller_state))
        table.subtotal.add(doc)

    payload = build_gstr1_payload(
        aggregate,
        documents,
        gstin,
        seller_state=seller_state,
        b2cl_threshold=b2cl_threshold,
        annual_turnover=annual_turnover,
    )
    return Gstr1Report(
        gstin=gstin,
        fp=payload.fp,
        period_label=period.label,
        b2b=b2b,
        b2c=b2c,
        credit_notes=credit_notes,
        debit_notes=debit_notes,
        payload=payload,
    )
