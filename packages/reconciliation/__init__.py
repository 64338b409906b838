"""Public interface for the ``reconciliation`` package.

Re-exports the pieces needed to script a reconciliation without the CLI:
load and normalize two datasets, drive a :class:`MatchSession`, then render
or export the finalized rows. There is no runtime logic here, only symbol
re-exports.
"""

from .errors import (
    EmptySelectionError,
    MatchConflictError,
    MissingInputError,
    NoMatchesError,
    ReconciliationError,
    UnknownRecordError,
    UnsupportedFileError,
)
from .grouping import MatchSession, SessionStats
from .ingest.utils import load_raw_rows
from .models import (
    COMPANY,
    PARTY,
    MatchGroup,
    NormalizedRecord,
    RawRow,
    ReportRow,
    ReportStatus,
    Side,
)
from .normalizers import normalize_records
from .report import export_report_csv, filter_rows, render_report, summarize

__all__ = [
    # Workflow
    "load_raw_rows",
    "normalize_records",
    "MatchSession",
    "SessionStats",
    "filter_rows",
    "summarize",
    "render_report",
    "export_report_csv",
    # Models / types
    "Side",
    "COMPANY",
    "PARTY",
    "RawRow",
    "NormalizedRecord",
    "MatchGroup",
    "ReportRow",
    "ReportStatus",
    # Errors
    "ReconciliationError",
    "MissingInputError",
    "UnsupportedFileError",
    "UnknownRecordError",
    "EmptySelectionError",
    "MatchConflictError",
    "NoMatchesError",
]
