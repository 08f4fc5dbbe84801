# gst_reporting/domain/models/period.py
"""Reporting period value object. Computed on demand, never stored."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict


class PeriodKind(str, Enum):
    FY = "FY"
    QUARTER = "Quarter"
    MONTH = "Month"
    CUSTOM = "Custom"


class Period(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: PeriodKind
    start: date
    end: date
    label: str
    key: str = ""

    def contains(self, d: date) -> bool:
        """Inclusive on both ends."""
        return self.start <= d <= self.end
