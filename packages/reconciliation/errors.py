"""Exception types raised by ingestion and the manual matching session.

Every error here is recoverable: the interactive flow reports it to the
operator and leaves session state untouched. Parse failures from the
underlying readers (``csv.Error``, ``OSError``, spreadsheet library errors)
are not wrapped and propagate with their original message.
"""

from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for user-facing reconciliation failures."""


class MissingInputError(ReconciliationError):
    """One or both input files were not provided."""


class UnsupportedFileError(ReconciliationError):
    """The input file extension is not one of the accepted tabular formats."""


class UnknownRecordError(ReconciliationError, KeyError):
    """A selection referenced a record id that does not exist on that side."""

    def __str__(self) -> str:  # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class EmptySelectionError(ReconciliationError):
    """A match was confirmed while one side had nothing selected."""


class MatchConflictError(ReconciliationError):
    """A selected record already belongs to a confirmed match group."""

    def __init__(self, message: str, *, company_ids=(), party_ids=()) -> None:
        super().__init__(message)
        self.company_ids: tuple[int, ...] = tuple(sorted(company_ids))
        self.party_ids: tuple[int, ...] = tuple(sorted(party_ids))


class NoMatchesError(ReconciliationError):
    """Finalize was requested before any match group was confirmed."""


__all__ = [
    "ReconciliationError",
    "MissingInputError",
    "UnsupportedFileError",
    "UnknownRecordError",
    "EmptySelectionError",
    "MatchConflictError",
    "NoMatchesError",
]
