# gst_reporting/domain/exceptions.py
"""
Error taxonomy for the tax computation and reporting engine.

Pure computation never raises for "no data"; it returns zeroed structures
or an EmptyPeriodResult (see models/reports.py). These exceptions cover
malformed input, unsupported report shapes and storage failures.
"""

from __future__ import annotations


class TaxEngineError(Exception):
    """Base class for all engine errors."""


class DocumentValidationError(TaxEngineError, ValueError):
    """Raised at the input boundary for a malformed tax document."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PeriodParseError(TaxEngineError, ValueError):
    """Raised when a date or period key cannot be parsed."""


class PeriodMismatchError(TaxEngineError):
    """Raised when a report shape is not supported for the period granularity."""


class PersistenceError(TaxEngineError):
    """Raised when the storage collaborator fails to read or write state."""


class InvalidNumberingTransitionError(TaxEngineError):
    """Raised when a numbering decision arrives while no reset is pending."""
