"""Results projection helpers: filtering, summary counts, rendering, export.

Rendering uses ``rich`` tables. The functions take an explicit
``Console`` so tests can capture output with ``Console(record=True)``.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from os import PathLike
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .logging_setup import get_logger
from .models import NormalizedRecord, ReportRow, ReportStatus

logger = get_logger("reconciliation.report")

EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "company_ref",
    "party_ref",
    "amount",
    "date",
    "status",
    "confidence",
)

_STATUS_STYLE = {
    ReportStatus.MATCHED: "green",
    ReportStatus.POTENTIAL: "yellow",
    ReportStatus.UNMATCHED: "red",
}


@dataclass(frozen=True, slots=True)
class ReportSummary:
    total: int
    matched: int
    potential: int
    unmatched: int


def filter_rows(rows: Iterable[ReportRow], search: str | None) -> list[ReportRow]:
    """Keep rows whose company or party reference contains ``search``.

    Matching is a case-insensitive substring test; an empty search keeps all.
    """

    needle = (search or "").strip().casefold()
    if not needle:
        return list(rows)
    return [
        r
        for r in rows
        if any(needle in ref.casefold() for ref in (*r.company_refs, *r.party_refs))
    ]


def summarize(rows: Sequence[ReportRow]) -> ReportSummary:
    return ReportSummary(
        total=len(rows),
        matched=sum(1 for r in rows if r.status == ReportStatus.MATCHED),
        potential=sum(1 for r in rows if r.status == ReportStatus.POTENTIAL),
        unmatched=sum(1 for r in rows if r.status == ReportStatus.UNMATCHED),
    )


def status_label(row: ReportRow) -> str:
    if row.status == ReportStatus.MATCHED:
        return f"Matched ({row.confidence}%)"
    if row.status == ReportStatus.POTENTIAL:
        return f"Potential ({row.confidence}%)"
    if row.status == ReportStatus.UNMATCHED:
        return "Unmatched"
    return "Unknown"  # pragma: no cover - closed enum


def fmt_amount(value: Decimal) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


# ----------------------------------------------------------------------------
# Presentation helpers
# ----------------------------------------------------------------------------


def render_records(
    title: str,
    records: Sequence[NormalizedRecord],
    *,
    console: Console,
    selected: frozenset[int] = frozenset(),
    matched: frozenset[int] = frozenset(),
) -> None:
    """Draw one side's record list, marking selected (*) and matched (✓) rows."""

    table = Table(title=title, title_justify="left", expand=False)
    table.add_column("", width=1)
    table.add_column("ID", justify="right")
    table.add_column("Reference")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    for rec in records:
        if rec.id in matched:
            mark, style = "✓", "green"
        elif rec.id in selected:
            mark, style = "*", "bold cyan"
        else:
            mark, style = "", None
        date = f"{rec.date} ({rec.date_text})" if rec.date_text else rec.date
        detail = rec.description or rec.doc_type
        table.add_row(
            mark,
            str(rec.id),
            escape(rec.reference),
            escape(date),
            escape(detail),
            fmt_amount(rec.amount),
            style=style,
        )
    console.print(table)


def render_summary(summary: ReportSummary, *, console: Console) -> None:
    console.print(
        f"Total: {summary.total}  "
        f"[green]Matched: {summary.matched}[/green]  "
        f"[yellow]Potential: {summary.potential}[/yellow]  "
        f"[red]Unmatched: {summary.unmatched}[/red]"
    )


def render_report(
    rows: Sequence[ReportRow], *, console: Console, search: str | None = None
) -> list[ReportRow]:
    """Print summary counts and the (optionally filtered) results table.

    Summary counts always cover every row; the search only narrows the table.
    Returns the rows that were displayed.
    """

    render_summary(summarize(rows), console=console)
    shown = filter_rows(rows, search)

    table = Table(title="Transaction Matches", title_justify="left")
    table.add_column("Company Ref")
    table.add_column("Party Ref")
    table.add_column("Amount", justify="right")
    table.add_column("Date")
    table.add_column("Status")
    for r in shown:
        table.add_row(
            escape(r.company_ref),
            escape(r.party_ref),
            fmt_amount(r.amount),
            escape(r.date),
            f"[{_STATUS_STYLE[r.status]}]{status_label(r)}[/]",
        )
    console.print(table)
    if search and len(shown) != len(rows):
        console.print(f"Showing {len(shown)} of {len(rows)} rows matching {search!r}.")
    return shown


# ----------------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------------


def export_report_csv(rows: Iterable[ReportRow], path: str | PathLike[str]) -> int:
    """Write ``rows`` to ``path`` as CSV and return the number written.

    Groups with several references store them in one cell joined by ``"; "``.
    """

    p = Path(path)
    count = 0
    with p.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(EXPORT_COLUMNS))
        writer.writeheader()
        for r in rows:
            writer.writerow(
                {
                    "id": r.id,
                    "company_ref": "; ".join(r.company_refs),
                    "party_ref": "; ".join(r.party_refs),
                    "amount": f"{r.amount:.2f}",
                    "date": r.date,
                    "status": r.status.value,
                    "confidence": r.confidence,
                }
            )
            count += 1
    logger.info("exported %d row(s) to %s", count, p)
    return count


__all__ = [
    "ReportSummary",
    "filter_rows",
    "summarize",
    "status_label",
    "fmt_amount",
    "render_records",
    "render_summary",
    "render_report",
    "export_report_csv",
]
