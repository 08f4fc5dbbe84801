# gst_reporting/domain/services/hsn_summary.py
"""HSN-wise summary of outward supplies with a totals row."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gst_reporting.domain.models.reports import EmptyPeriodResult
from gst_reporting.domain.services.gst_aggregator import Aggregate, HsnRow

logger = logging.getLogger("hsn_summary")


@dataclass
class HsnSummaryReport:
    period_label: str
    rows: list[HsnRow] = field(default_factory=list)
    totals: HsnRow = field(default_factory=lambda: HsnRow(hsn_code="TOTAL", uqc=""))

    def to_dict(self) -> dict:
        return {
            "period": self.period_label,
            "rows": [r.to_dict() for r in self.rows],
            "totals": self.totals.to_dict(),
        }


def build_hsn_summary(aggregate: Aggregate) -> HsnSummaryReport | EmptyPeriodResult:
    if aggregate.is_empty or not aggregate.hsn_summary:
        logger.info("HSN summary for %s: no line items in period", aggregate.period.key)
        return EmptyPeriodResult(report="HSN Summary", period=aggregate.period)

    report = HsnSummaryReport(period_label=aggregate.period.label, rows=list(aggregate.hsn_summary))
    totals = report.totals
    for row in report.rows:
        totals.total_quantity += row.total_quantity
        totals.taxable_value += row.taxable_value
        totals.cgst += row.cgst
        totals.sgst += row.sgst
        totals.igst += row.igst
    return report
