from __future__ import annotations

from dataclasses import dataclass

from gst_reporting.domain.models.period import Period


@dataclass(frozen=True)
class EmptyPeriodResult:
    """
    Explicit "nothing to report" outcome returned by report builders.

    Distinct from an exception so consumers can tell "nothing to file"
    apart from an engine failure.
    """

    report: str
    period: Period
    reason: str = "No documents in period"

    def to_dict(self) -> dict:
        return {
            "empty": True,
            "report": self.report,
            "period": self.period.label,
            "period_key": self.period.key,
            "reason": self.reason,
        }
