# gst_reporting/domain/services/period_calculator.py
"""
Indian financial-year, quarter and month period arithmetic.

FY runs April 1 to March 31 and is labelled "YYYY-YY" after its start year.
Quarters: Q1 Apr-Jun, Q2 Jul-Sep, Q3 Oct-Dec, Q4 Jan-Mar (of start year + 1).

Also computes GSTR-1 / GSTR-3B filing deadlines for a period:
GSTR-1 falls due on the 11th and GSTR-3B on the 20th of the month
following the period's end month.
"""

from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from gst_reporting.domain.exceptions import PeriodParseError
from gst_reporting.domain.models.period import Period, PeriodKind

logger = logging.getLogger("period_calculator")

GSTR1_DUE_DAY = 11
GSTR3B_DUE_DAY = 20
DEFAULT_WARNING_DAYS = 5

FY_OPTIONS_FORWARD = 1
FY_OPTIONS_BACK = 3
QUARTER_OPTIONS = 8
MONTH_OPTIONS = 12

# quarter number -> (start month, end month, label)
_QUARTERS: dict[int, tuple[int, int, str]] = {
    1: (4, 6, "Apr – Jun"),
    2: (7, 9, "Jul – Sep"),
    3: (10, 12, "Oct – Dec"),
    4: (1, 3, "Jan – Mar"),
}

_FY_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_KEY_RE = re.compile(r"^(\d{4})-Q([1-4])$")
_MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def parse_date(value: date | datetime | str) -> date:
    """Accept a date, datetime or ISO string; raise PeriodParseError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise PeriodParseError(f"Unparseable date: {value!r}") from exc
    raise PeriodParseError(f"Unparseable date: {value!r}")


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


# ---------------------------------------------------------------------------
# Financial year
# ---------------------------------------------------------------------------

def financial_year_start_year(d: date) -> int:
    return d.year if d.month >= 4 else d.year - 1


def financial_year_label(start_year: int) -> str:
    """2025 -> "2025-26"."""
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def fy_label_for_date(d: date) -> str:
    return financial_year_label(financial_year_start_year(d))


def financial_year_period(start_year: int) -> Period:
    label = financial_year_label(start_year)
    return Period(
        kind=PeriodKind.FY,
        start=date(start_year, 4, 1),
        end=date(start_year + 1, 3, 31),
        label=f"FY {label}",
        key=label,
    )


def financial_year_for_date(d: date) -> Period:
    return financial_year_period(financial_year_start_year(d))


# ---------------------------------------------------------------------------
# Quarters and months
# ---------------------------------------------------------------------------

def quarter_number(d: date) -> int:
    if 4 <= d.month <= 6:
        return 1
    if 7 <= d.month <= 9:
        return 2
    if 10 <= d.month <= 12:
        return 3
    return 4


def quarter_period(start_year: int, quarter: int) -> Period:
    """Quarter `quarter` (1-4) of the FY starting in `start_year`."""
    if quarter not in _QUARTERS:
        raise PeriodParseError(f"Quarter must be 1-4, got {quarter}")
    start_month, end_month, months_label = _QUARTERS[quarter]
    year = start_year + 1 if quarter == 4 else start_year
    return Period(
        kind=PeriodKind.QUARTER,
        start=date(year, start_month, 1),
        end=last_day_of_month(year, end_month),
        label=f"Q{quarter} FY {financial_year_label(start_year)} ({months_label})",
        key=f"{start_year}-Q{quarter}",
    )


def quarter_for_date(d: date) -> Period:
    return quarter_period(financial_year_start_year(d), quarter_number(d))


def month_period(year: int, month: int) -> Period:
    if not 1 <= month <= 12:
        raise PeriodParseError(f"Month must be 1-12, got {month}")
    return Period(
        kind=PeriodKind.MONTH,
        start=date(year, month, 1),
        end=last_day_of_month(year, month),
        label=f"{calendar.month_name[month]} {year}",
        key=f"{year}-{month:02d}",
    )


def custom_period(start: date | str, end: date | str) -> Period:
    start_d = parse_date(start)
    end_d = parse_date(end)
    if start_d > end_d:
        raise PeriodParseError(f"Period start {start_d} is after end {end_d}")
    return Period(
        kind=PeriodKind.CUSTOM,
        start=start_d,
        end=end_d,
        label=f"{start_d.strftime('%d %b %Y')} to {end_d.strftime('%d %b %Y')}",
        key=f"{start_d.isoformat()}..{end_d.isoformat()}",
    )


def parse_period_key(kind: PeriodKind | str, key: str) -> Period:
    """
    Parse a period key back into a Period.

    FY "2025-26", quarter "2025-Q4" (FY start year), month "2026-01",
    custom "2026-01-01..2026-01-31".
    """
    kind = PeriodKind(kind)
    key = (key or "").strip()

    if kind == PeriodKind.FY:
        m = _FY_KEY_RE.match(key)
        if not m or (int(m.group(1)) + 1) % 100 != int(m.group(2)):
            raise PeriodParseError(f"Invalid financial year key: {key!r}")
        return financial_year_period(int(m.group(1)))

    if kind == PeriodKind.QUARTER:
        m = _QUARTER_KEY_RE.match(key)
        if not m:
            raise PeriodParseError(f"Invalid quarter key: {key!r}")
        return quarter_period(int(m.group(1)), int(m.group(2)))

    if kind == PeriodKind.MONTH:
        m = _MONTH_KEY_RE.match(key)
        if not m:
            raise PeriodParseError(f"Invalid month key: {key!r}")
        return month_period(int(m.group(1)), int(m.group(2)))

    start, sep, end = key.partition("..")
    if not sep:
        raise PeriodParseError(f"Invalid custom period key: {key!r}")
    return custom_period(start, end)


# ---------------------------------------------------------------------------
# Option lists (descending recency, no gaps)
# ---------------------------------------------------------------------------

def compute_period_options(
    kind: PeriodKind | str,
    reference_date: date,
    count: int | None = None,
) -> list[Period]:
    """
    Recent periods for a selector, most recent first.

    FY: one year forward to three years back. Quarter: last 8.
    Month: last 12. Custom periods have no preset options.
    """
    kind = PeriodKind(kind)

    if kind == PeriodKind.FY:
        top = financial_year_start_year(reference_date) + FY_OPTIONS_FORWARD
        n = count or (FY_OPTIONS_FORWARD + FY_OPTIONS_BACK + 1)
        return [financial_year_period(top - i) for i in range(n)]

    if kind == PeriodKind.QUARTER:
        start_year = financial_year_start_year(reference_date)
        q = quarter_number(reference_date)
        options = []
        for _ in range(count or QUARTER_OPTIONS):
            options.append(quarter_period(start_year, q))
            q -= 1
            if q == 0:
                q = 4
                start_year -= 1
        return options

    if kind == PeriodKind.MONTH:
        year, month = reference_date.year, reference_date.month
        options = []
        for _ in range(count or MONTH_OPTIONS):
            options.append(month_period(year, month))
            year, month = _previous_month(year, month)
        return options

    return []


# ---------------------------------------------------------------------------
# Filing deadlines
# ---------------------------------------------------------------------------

class FilingStatus(str, Enum):
    OK = "OK"
    WARNING = "Warning"
    OVERDUE = "Overdue"


@dataclass
class DeadlineInfo:
    """Due date of one return for one period."""

    form_name: str
    period_label: str
    due_date: date
    days_remaining: int
    status: FilingStatus

    def to_dict(self) -> dict:
        return {
            "form_name": self.form_name,
            "period_label": self.period_label,
            "due_date": self.due_date.isoformat(),
            "days_remaining": self.days_remaining,
            "status": self.status.value,
        }


def classify_deadline(days_remaining: int, warning_days: int = DEFAULT_WARNING_DAYS) -> FilingStatus:
    if days_remaining < 0:
        return FilingStatus.OVERDUE
    if days_remaining <= warning_days:
        return FilingStatus.WARNING
    return FilingStatus.OK


def filing_period_token(period: Period) -> str:
    """Return-period token MMYYYY, taken from the period's end month."""
    return f"{period.end.month:02d}{period.end.year}"


def due_date_for(period: Period, due_day: int) -> date:
    year, month = _next_month(period.end.year, period.end.month)
    return date(year, month, due_day)


def compute_filing_deadlines(
    period: Period,
    today: date | None = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> dict[str, DeadlineInfo]:
    today = today or date.today()
    result = {}
    for key, form_name, due_day in (
        ("gstr1", "GSTR-1", GSTR1_DUE_DAY),
        ("gstr3b", "GSTR-3B", GSTR3B_DUE_DAY),
    ):
        due = due_date_for(period, due_day)
        days = (due - today).days
        result[key] = DeadlineInfo(
            form_name=form_name,
            period_label=period.label,
            due_date=due,
            days_remaining=days,
            status=classify_deadline(days, warning_days),
        )
    logger.debug(
        "Deadlines for %s: GSTR-1 %s, GSTR-3B %s",
        period.key, result["gstr1"].due_date, result["gstr3b"].due_date,
    )
    return result
