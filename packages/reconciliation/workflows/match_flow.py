# ruff: noqa: I001
"""End-to-end orchestration: files → normalized records → manual matching → rows.

The interactive loop is written against two small callables (``read_command``
and ``print_fn``) plus a ``rich`` console, so tests can script a whole session
without a terminal. All recoverable failures are reported through
``print_fn`` and leave the :class:`~reconciliation.grouping.MatchSession`
unchanged.
"""

from __future__ import annotations

import builtins
import time
from collections.abc import Callable
from os import PathLike

from rich.console import Console

from ..config import DEFAULT_MAX_FILE_MB
from ..errors import (
    EmptySelectionError,
    MatchConflictError,
    MissingInputError,
    NoMatchesError,
    UnknownRecordError,
)
from ..grouping import MatchSession
from ..ingest.utils import load_raw_rows
from ..logging_setup import get_logger
from ..models import COMPANY, PARTY, NormalizedRecord, ReportRow, Side
from ..normalizers import normalize_records
from ..report import render_records
from ..term_ui import HELP_TEXT, parse_command

logger = get_logger("reconciliation.workflows.match_flow")


# ----------------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------------


def load_side(
    path: str | PathLike[str],
    side: Side,
    *,
    sheet: str | None = None,
    max_file_mb: float = DEFAULT_MAX_FILE_MB,
) -> list[NormalizedRecord]:
    """Ingest and normalize one input file for ``side``."""

    rows = load_raw_rows(path, sheet=sheet, max_file_mb=max_file_mb)
    return normalize_records(rows, side)


def require_inputs(
    company_path: str | PathLike[str] | None,
    party_path: str | PathLike[str] | None,
) -> None:
    """Raise :class:`MissingInputError` unless both paths are given."""

    missing = [
        label
        for label, p in (("Company", company_path), ("Party", party_path))
        if p is None or not str(p).strip()
    ]
    if missing:
        raise MissingInputError(
            "Please upload both Company and Party data files "
            f"(missing: {', '.join(missing)})."
        )


def load_datasets(
    company_path: str | PathLike[str] | None,
    party_path: str | PathLike[str] | None,
    *,
    max_file_mb: float = DEFAULT_MAX_FILE_MB,
) -> tuple[list[NormalizedRecord], list[NormalizedRecord]]:
    """Load both sides. Both files are required before anything is read."""

    require_inputs(company_path, party_path)
    company = load_side(company_path, COMPANY, max_file_mb=max_file_mb)  # type: ignore[arg-type]
    party = load_side(party_path, PARTY, max_file_mb=max_file_mb)  # type: ignore[arg-type]
    logger.info("loaded %d company and %d party record(s)", len(company), len(party))
    return company, party


def pause(seconds: float, *, sleep_fn: Callable[[float], None] = time.sleep) -> None:
    """Cosmetic pause between stages; no cancellation or retry."""

    if seconds > 0:
        sleep_fn(seconds)


# ----------------------------------------------------------------------------
# Interactive matching
# ----------------------------------------------------------------------------


def show_session(session: MatchSession, *, console: Console) -> None:
    """Render counters and both record lists."""

    st = session.stats()
    console.print(
        f"Company Records: {st.company_records}  Party Records: {st.party_records}  "
        f"Matches Created: {st.matches}  Unmatched: {st.unmatched}"
    )
    for side, title in ((COMPANY, "Company Data"), (PARTY, "Party Data")):
        render_records(
            title,
            session.records(side),
            console=console,
            selected=session.pending(side),
            matched=frozenset(r.id for r in session.records(side) if session.is_matched(side, r.id)),
        )


def _fmt_selection(session: MatchSession) -> str:
    c = ", ".join(str(i) for i in sorted(session.pending(COMPANY))) or "none"
    p = ", ".join(str(i) for i in sorted(session.pending(PARTY))) or "none"
    return f"Selected company: {c} | party: {p}"


def _apply_select(
    session: MatchSession,
    side: Side,
    ids: tuple[int, ...],
    print_fn: Callable[..., None],
) -> None:
    for record_id in ids:
        try:
            if session.is_matched(side, record_id):
                print_fn(f"{side.title()} record {record_id} is already matched; skipped.")
                continue
            session.select(side, record_id)
        except UnknownRecordError as e:
            print_fn(f"Error: {e}")
    print_fn(_fmt_selection(session))


def _apply_confirm(session: MatchSession, print_fn: Callable[..., None]) -> None:
    try:
        group = session.confirm_match()
    except EmptySelectionError as e:
        print_fn(f"Cannot match: {e}")
        return
    except MatchConflictError as e:
        print_fn(f"Already Matched: {e}")
        return
    company_refs = [session.record(COMPANY, i).reference for i in sorted(group.company_ids)]
    party_refs = [session.record(PARTY, i).reference for i in sorted(group.party_ids)]
    print_fn(
        f"Match Created: {', '.join(company_refs)} <-> {', '.join(party_refs)} "
        f"({len(session.groups)} total)"
    )


def run_matching(
    session: MatchSession,
    *,
    read_command: Callable[[], str],
    console: Console,
    print_fn: Callable[..., None] = builtins.print,
    stage_delay: float = 0.0,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> list[ReportRow] | None:
    """Drive the manual matcher until the operator finalizes or quits.

    Returns the finalized report rows, or ``None`` when the operator quits
    (``q``, Ctrl-C or end of input).
    """

    show_session(session, console=console)
    print_fn('Type "?" for help.')

    while True:
        try:
            line = read_command()
        except (EOFError, KeyboardInterrupt):
            print_fn("Matching cancelled.")
            return None

        try:
            cmd = parse_command(line)
        except ValueError as e:
            print_fn(f"Error: {e}")
            continue

        if cmd.action == "select":
            if cmd.side is None:
                print_fn("Error: Say which side to select from (c or p).")
                continue
            _apply_select(session, cmd.side, cmd.ids, print_fn)
        elif cmd.action == "confirm":
            _apply_confirm(session, print_fn)
        elif cmd.action == "clear":
            session.clear_selection()
            print_fn(_fmt_selection(session))
        elif cmd.action == "list":
            show_session(session, console=console)
        elif cmd.action == "help":
            print_fn(HELP_TEXT)
        elif cmd.action == "quit":
            print_fn("Matching cancelled.")
            return None
        elif cmd.action == "done":
            try:
                rows = session.finalize()
            except NoMatchesError as e:
                print_fn(f"No Matches: {e}")
                continue
            print_fn("Matching Complete. Redirecting to results...")
            pause(stage_delay, sleep_fn=sleep_fn)
            return rows


__all__ = ["require_inputs", "load_side", "load_datasets", "pause", "show_session", "run_matching"]
