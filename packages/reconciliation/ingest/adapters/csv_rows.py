"""Adapter for reading a CSV export into raw row mappings.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module. The first line is
the header; header names are kept exactly as exported (only surrounding
whitespace is trimmed) so the normalizer can match them against the known
column spellings.

Rows that are entirely blank are skipped. Cells beyond the header width
(``DictReader`` collects them under a ``None`` key) are dropped.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from os import PathLike
from typing import TextIO


def iter_csv_rows(file: TextIO) -> Iterator[dict[str, str]]:
    """Yield one ``{header: cell}`` dict per non-blank data row.

    Raises ``csv.Error`` when the stream has no header row.
    """

    reader = csv.DictReader(file)
    headers = reader.fieldnames
    if not headers or all(not (h or "").strip() for h in headers):
        raise csv.Error("CSV appears to have no header row")

    for row in reader:
        cleaned = {
            k.strip(): (v if v is not None else "")
            for k, v in row.items()
            if k is not None and k.strip()
        }
        if all(not str(v).strip() for v in cleaned.values()):
            continue
        yield cleaned


def read_csv_rows(path: str | PathLike[str]) -> list[dict[str, str]]:
    """Open ``path`` (UTF-8, BOM tolerated) and return its rows in file order."""

    with open(path, encoding="utf-8-sig", newline="") as f:
        return list(iter_csv_rows(f))


__all__ = ["iter_csv_rows", "read_csv_rows"]
