"""Adapters for Excel workbooks (``.xlsx`` via openpyxl, ``.xls`` via xlrd).

Both readers share one contract with the CSV adapter: the first row that has
any non-empty cell is the header, every later non-blank row becomes a
``{header: value}`` dict, and columns without a header are dropped.

Unlike CSV, cell values keep their native types. Numbers stay numeric and
date cells arrive as ``datetime`` objects; the normalizer renders both.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from os import PathLike
from typing import Any

import openpyxl
import xlrd


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header_name(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def rows_from_grid(grid: Iterable[Sequence[Any]]) -> list[dict[str, Any]]:
    """Convert a grid of cell values (header row first) into row dicts."""

    headers: list[str | None] | None = None
    out: list[dict[str, Any]] = []
    for values in grid:
        if all(_is_blank(v) for v in values):
            continue
        if headers is None:
            headers = [_header_name(v) for v in values]
            continue
        row: dict[str, Any] = {}
        for name, value in zip(headers, values, strict=False):
            if name is None:
                continue
            row[name] = value
        if all(_is_blank(v) for v in row.values()):
            continue
        out.append(row)
    return out


def read_xlsx_rows(path: str | PathLike[str], *, sheet: str | None = None) -> list[dict[str, Any]]:
    """Read the first (or the named) worksheet of an ``.xlsx`` workbook.

    Formulas are read as their cached values (``data_only=True``).
    """

    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb[sheet] if sheet else wb.worksheets[0]
        return rows_from_grid(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def _xls_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return None
    return cell.value


def read_xls_rows(path: str | PathLike[str], *, sheet: str | None = None) -> list[dict[str, Any]]:
    """Read the first (or the named) sheet of a legacy ``.xls`` workbook."""

    book = xlrd.open_workbook(str(path), on_demand=True)
    try:
        ws = book.sheet_by_name(sheet) if sheet else book.sheet_by_index(0)
        grid = (
            [_xls_cell_value(c, book.datemode) for c in ws.row(r)] for r in range(ws.nrows)
        )
        return rows_from_grid(grid)
    finally:
        book.release_resources()


__all__ = ["rows_from_grid", "read_xlsx_rows", "read_xls_rows"]
