# gst_reporting/domain/services/gst_service.py
"""
GSTR-3B summary from a period Aggregate.

Table 3.1(a) carries outward taxable supplies net of credit and debit
notes. Zero-rated (3.1(b)) and nil/exempt (3.1(c)) rows are always zero:
sales documents do not record exemption or export status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from gst_reporting.domain.models.gst import Gstr3bSummary, TaxBucket
from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import Aggregate

logger = logging.getLogger("gst_service")

ZERO = Decimal("0")

ITC_NOTE = "ITC (input tax credit) details must be filled manually in the GST portal."


def _d(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(val)


@dataclass
class Gstr3bRow:
    section: str
    description: str
    bucket: TaxBucket = field(default_factory=TaxBucket)

    def to_dict(self) -> dict:
        return {
            "section": self.section,
            "description": self.description,
            "taxable_value": _d(self.bucket.taxable_value),
            "igst": _d(self.bucket.igst),
            "cgst": _d(self.bucket.cgst),
            "sgst": _d(self.bucket.sgst),
            "cess": _d(self.bucket.cess),
            "total_tax": _d(self.bucket.total_tax),
        }


@dataclass
class Gstr3bReport:
    period_label: str
    rows: list[Gstr3bRow]
    grand_total: Gstr3bRow
    summary: Gstr3bSummary
    itc_note: str = ITC_NOTE

    def to_dict(self) -> dict:
        return {
            "period": self.period_label,
            "rows": [r.to_dict() for r in self.rows],
            "grand_total": self.grand_total.to_dict(),
            "itc_note": self.itc_note,
        }


def prepare_gstr3b(aggregate: Aggregate) -> Gstr3bSummary:
    net = aggregate.net
    return Gstr3bSummary(
        outward_taxable_supplies=TaxBucket(
            taxable_value=net.taxable_value,
            igst=net.igst,
            cgst=net.cgst,
            sgst=net.sgst,
        ),
        outward_zero_rated=TaxBucket(),
        outward_nil_exempt=ZERO,
        outward_non_gst=ZERO,
        period_start=aggregate.period.start,
        period_end=aggregate.period.end,
        total_documents=aggregate.document_count,
    )


def build_gstr3b(aggregate: Aggregate) -> Gstr3bReport | EmptyPeriodResult:
    if aggregate.is_empty:
        logger.info("GSTR-3B for %s: no documents in period", aggregate.period.key)
        return EmptyPeriodResult(report="GSTR-3B", period=aggregate.period)

    summary = prepare_gstr3b(aggregate)
    rows = [
        Gstr3bRow(
            section="3.1(a)",
            description="Outward taxable supplies (other than zero rated, nil rated and exempted)",
            bucket=summary.outward_taxable_supplies,
        ),
        Gstr3bRow(
            section="3.1(b)",
            description="Outward taxable supplies (zero rated)",
            bucket=summary.outward_zero_rated,
        ),
        Gstr3bRow(
            section="3.1(c)",
            description="Other outward supplies (nil rated, exempted)",
            bucket=TaxBucket(taxable_value=summary.outward_nil_exempt),
        ),
    ]

    total = TaxBucket()
    for row in rows:
        total.taxable_value += row.bucket.taxable_value
        total.igst += row.bucket.igst
        total.cgst += row.bucket.cgst
        total.sgst += row.bucket.sgst
        total.cess += row.bucket.cess

    return Gstr3bReport(
        period_label=aggregate.period.label,
        rows=rows,
        grand_total=Gstr3bRow(section="", description="Grand Total", bucket=total),
        summary=summary,
    )
