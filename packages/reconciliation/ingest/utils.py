"""Ingest helpers shared by CLI commands and workflows.

Exposes :func:`load_raw_rows`, which picks a reader from the file extension
and returns :class:`~reconciliation.models.RawRow` items in file order.
Reader errors are not wrapped: callers surface their message as-is.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Any

from ..config import DEFAULT_MAX_FILE_MB
from ..errors import UnsupportedFileError
from ..logging_setup import get_logger
from ..models import RawRow

logger = get_logger("reconciliation.ingest")

SUPPORTED_EXTENSIONS: dict[str, str] = {
    ".csv": "csv",
    ".xlsx": "xlsx",
    ".xls": "xls",
}


def detect_format(path: str | PathLike[str]) -> str:
    """Return ``"csv"``, ``"xlsx"`` or ``"xls"`` for ``path``.

    Raises :class:`UnsupportedFileError` for any other extension.
    """

    suffix = Path(path).suffix.lower()
    fmt = SUPPORTED_EXTENSIONS.get(suffix)
    if fmt is None:
        allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise UnsupportedFileError(
            f"Unsupported file type {suffix or '(none)'!r} for {Path(path).name}; "
            f"expected one of: {allowed}"
        )
    return fmt


def _warn_if_large(p: Path, max_file_mb: float) -> None:
    # The size limit is advisory only; large files are still read.
    try:
        size_mb = p.stat().st_size / (1024 * 1024)
    except OSError:
        return
    if size_mb > max_file_mb:
        logger.warning(
            "%s is %.1f MB, above the recommended %.0f MB; reading anyway",
            p.name,
            size_mb,
            max_file_mb,
        )


def read_rows(
    path: str | PathLike[str], *, sheet: str | None = None
) -> list[dict[str, Any]]:
    """Parse ``path`` into plain row dicts using the reader for its format."""

    from .adapters.csv_rows import read_csv_rows
    from .adapters.spreadsheet_rows import read_xls_rows, read_xlsx_rows

    fmt = detect_format(path)
    if fmt == "csv":
        if sheet:
            logger.debug("ignoring sheet=%r for CSV input %s", sheet, path)
        return read_csv_rows(path)
    if fmt == "xlsx":
        return read_xlsx_rows(path, sheet=sheet)
    return read_xls_rows(path, sheet=sheet)


def load_raw_rows(
    path: str | PathLike[str],
    *,
    sheet: str | None = None,
    max_file_mb: float = DEFAULT_MAX_FILE_MB,
) -> list[RawRow]:
    """Read a CSV/XLSX/XLS file into validated raw rows (file order)."""

    p = Path(path)
    detect_format(p)
    _warn_if_large(p, max_file_mb)
    rows = read_rows(p, sheet=sheet)
    logger.info("read %d row(s) from %s", len(rows), p.name)
    return [RawRow.from_mapping(r) for r in rows]


__all__ = ["SUPPORTED_EXTENSIONS", "detect_format", "read_rows", "load_raw_rows"]
