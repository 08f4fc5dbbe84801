# gst_reporting/domain/services/invoice_numbering.py
"""
Invoice numbering prefix and financial-year rollover reset.

Two-phase interaction:
  1. evaluate_numbering_reset() decides whether the selected FY needs a
     new prefix. Pure, no side effects.
  2. The caller asks the user; on accept, commit_numbering_reset()
     persists the new prefix. Nothing is renumbered without an accept.

NumberingSequencer wraps both phases for callers that hold the numbering
state in memory:

  Stable --select_period (year differs)--> PendingReset
  PendingReset --accept (persisted)--> Stable (new prefix)
  PendingReset --skip--> Stable (prefix unchanged)

Local state changes only after the store confirms the save.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Protocol

from gst_reporting.domain.exceptions import (
    InvalidNumberingTransitionError,
    PersistenceError,
)
from gst_reporting.domain.models.documents import DocumentKind
from gst_reporting.domain.models.numbering import NumberingState
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.services.period_calculator import financial_year_start_year

logger = logging.getLogger("invoice_numbering")

DEFAULT_BASE_PREFIX = "INV/"
SEQUENCE_WIDTH = 3

_YEAR_TOKEN_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_NOTE_BASES = {
    DocumentKind.CREDIT_NOTE: "CN/",
    DocumentKind.DEBIT_NOTE: "DN/",
}


class NumberingStateStore(Protocol):
    async def get_numbering_state(self, business_id: Any) -> NumberingState: ...

    async def save_numbering_state(self, business_id: Any, state: NumberingState) -> None: ...


# ---------------------------------------------------------------------------
# Prefix helpers
# ---------------------------------------------------------------------------

def extract_year_token(prefix: str | None) -> int | None:
    """First standalone 4-digit group in the prefix, e.g. "INV/2025/" -> 2025."""
    m = _YEAR_TOKEN_RE.search(prefix or "")
    return int(m.group(1)) if m else None


def build_reset_prefix(start_year: int, base: str = DEFAULT_BASE_PREFIX) -> str:
    return f"{base}{start_year}/"


def note_prefix(kind: DocumentKind, year: int) -> str:
    """Credit/debit note series, e.g. "CN/2026/"."""
    if kind not in _NOTE_BASES:
        raise ValueError(f"No note series for {kind.value}")
    return f"{_NOTE_BASES[kind]}{year}/"


def next_document_number(
    prefix: str,
    existing_numbers: Iterable[str],
    width: int = SEQUENCE_WIDTH,
) -> str:
    """
    Next sequential number under `prefix`: highest existing sequence + 1,
    zero-padded. Numbers belonging to other prefixes are ignored.
    """
    highest = 0
    for number in existing_numbers:
        if not number or not number.startswith(prefix):
            continue
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:0{width}d}"


# ---------------------------------------------------------------------------
# Evaluate / commit
# ---------------------------------------------------------------------------

@dataclass
class NumberingResetDecision:
    needs_prompt: bool
    suggested_prefix: str
    current_prefix: str
    period_key: str = ""

    def to_dict(self) -> dict:
        return {
            "needs_prompt": self.needs_prompt,
            "suggested_prefix": self.suggested_prefix,
            "current_prefix": self.current_prefix,
            "period_key": self.period_key,
        }


def evaluate_numbering_reset(
    current_prefix: str,
    new_period: Period,
    base: str = DEFAULT_BASE_PREFIX,
) -> NumberingResetDecision:
    """
    Prompt only when the prefix carries a year token that differs from the
    start year of the FY containing `new_period`.
    """
    start_year = financial_year_start_year(new_period.start)
    token = extract_year_token(current_prefix)

    if token is None or token == start_year:
        decision = NumberingResetDecision(
            needs_prompt=False,
            suggested_prefix=current_prefix,
            current_prefix=current_prefix,
            period_key=new_period.key,
        )
    else:
        decision = NumberingResetDecision(
            needs_prompt=True,
            suggested_prefix=build_reset_prefix(start_year, base),
            current_prefix=current_prefix,
            period_key=new_period.key,
        )

    logger.info(
        "Numbering reset check: prefix=%s period=%s needs_prompt=%s suggested=%s",
        current_prefix, new_period.key, decision.needs_prompt, decision.suggested_prefix,
    )
    return decision


async def commit_numbering_reset(
    store: NumberingStateStore,
    business_id: Any,
    new_prefix: str,
) -> NumberingState:
    """
    Persist `new_prefix` for the business and return the saved state.

    PersistenceError from the store propagates unchanged.
    """
    current = await store.get_numbering_state(business_id)
    new_state = NumberingState(prefix=new_prefix, auto_numbering=current.auto_numbering)
    try:
        await store.save_numbering_state(business_id, new_state)
    except PersistenceError:
        logger.error("Failed to save numbering prefix %s for business %s", new_prefix, business_id)
        raise
    logger.info("Numbering prefix for business %s set to %s", business_id, new_prefix)
    return new_state


# ---------------------------------------------------------------------------
# Stateful sequencer
# ---------------------------------------------------------------------------

class SequencerStatus(str, Enum):
    STABLE = "Stable"
    PENDING_RESET = "PendingReset"


class SequencerEvent(str, Enum):
    SELECT = "select"
    ACCEPT = "accept"
    SKIP = "skip"


VALID_TRANSITIONS: dict[SequencerStatus, list[SequencerEvent]] = {
    SequencerStatus.STABLE: [SequencerEvent.SELECT],
    # a newer selection replaces the pending one
    SequencerStatus.PENDING_RESET: [SequencerEvent.SELECT, SequencerEvent.ACCEPT, SequencerEvent.SKIP],
}


def validate_numbering_transition(current: SequencerStatus, event: SequencerEvent) -> None:
    allowed = VALID_TRANSITIONS.get(current, [])
    if event not in allowed:
        raise InvalidNumberingTransitionError(
            f"Cannot {event.value} while numbering is '{current.value}'. "
            f"Allowed: {[e.value for e in allowed]}"
        )


class NumberingSequencer:
    """In-memory holder of one business's numbering state and active period."""

    def __init__(
        self,
        business_id: Any,
        state: NumberingState,
        active_period: Period | None = None,
        base_prefix: str = DEFAULT_BASE_PREFIX,
    ) -> None:
        self.business_id = business_id
        self.state = state
        self.active_period = active_period
        self.base_prefix = base_prefix
        self.status = SequencerStatus.STABLE
        self.pending: NumberingResetDecision | None = None
        self._pending_period: Period | None = None

    def select_period(self, period: Period) -> NumberingResetDecision:
        validate_numbering_transition(self.status, SequencerEvent.SELECT)
        decision = evaluate_numbering_reset(self.state.prefix, period, self.base_prefix)
        if decision.needs_prompt:
            self.status = SequencerStatus.PENDING_RESET
            self.pending = decision
            self._pending_period = period
        else:
            self.status = SequencerStatus.STABLE
            self.pending = None
            self._pending_period = None
            self.active_period = period
        return decision

    async def accept(self, store: NumberingStateStore) -> NumberingState:
        """
        Persist the suggested prefix. On failure the exception propagates
        and the sequencer stays PendingReset with its old prefix.
        """
        validate_numbering_transition(self.status, SequencerEvent.ACCEPT)
        saved = await commit_numbering_reset(store, self.business_id, self.pending.suggested_prefix)

        self.state = saved
        self.active_period = self._pending_period
        self.pending = None
        self._pending_period = None
        self.status = SequencerStatus.STABLE
        return saved

    def skip(self) -> Period:
        """Keep the prefix, still switch to the selected period."""
        validate_numbering_transition(self.status, SequencerEvent.SKIP)
        self.active_period = self._pending_period
        self.pending = None
        self._pending_period = None
        self.status = SequencerStatus.STABLE
        return self.active_period

    def next_number(self, existing_numbers: Iterable[str]) -> str:
        return next_document_number(self.state.prefix, existing_numbers)
