# ruff: noqa: I001
"""CLI for the ``reconciliation`` package.

Command handlers (``cmd_match``, ``cmd_normalize``) hold the flow and return
process exit codes; the Typer commands below are thin wrappers. A local
``.env`` is loaded with ``python-dotenv`` (never overriding existing
variables) and logging is configured once in the root callback.

Errors are written to stderr as ``Error: ...`` lines with exit status 1.
"""

from __future__ import annotations

import csv
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from typer.models import OptionInfo

from .config import load_settings
from .errors import MissingInputError, ReconciliationError
from .logging_setup import configure_logging, get_logger
from .models import parse_side

logger = get_logger("reconciliation.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _is_interactive() -> bool:
    """Return True when both stdin and stdout are attached to a TTY."""

    try:
        return sys.stdin.isatty() and sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def _default_reader() -> Callable[[], str]:
    """Pick the command reader: prompt_toolkit on a TTY, plain input otherwise.

    Piped or redirected input (scripts, CI, test runners) has no terminal for
    prompt_toolkit to drive, so lines are read with ``input()``.
    """

    if _is_interactive():
        from .term_ui import prompt_command

        return prompt_command
    return lambda: input("match> ")


def _read_failure_message(path: str | Path | None, exc: BaseException) -> str:
    if isinstance(exc, FileNotFoundError):
        return f"File not found: {path}"
    if isinstance(exc, PermissionError):
        return f"Permission denied: {path}"
    if isinstance(exc, csv.Error):
        return f"Failed to parse CSV: {exc}"
    return f"Failed to read '{path}': {exc}"


# ---- Command handlers ---------------------------------------------------------


def cmd_normalize(
    file: str | Path,
    *,
    side: str = "company",
    as_json: bool = False,
    sheet: str | None = None,
    console: Console | None = None,
) -> int:
    """Print the normalized records of one input file.

    Output is a table by default or a JSON array (``--json``) using the
    export field names ``id, reference, date, dateText, amount, description,
    docType``.
    """

    from .report import render_records
    from .workflows.match_flow import load_side

    settings = load_settings()
    try:
        which = parse_side(side)
    except ValueError as e:
        _err(str(e))
        return 1

    try:
        records = load_side(file, which, sheet=sheet, max_file_mb=settings.max_file_mb)
    except ReconciliationError as e:
        _err(str(e))
        return 1
    except (OSError, csv.Error) as e:
        _err(_read_failure_message(file, e))
        return 1
    except Exception as e:  # pragma: no cover - spreadsheet library errors vary
        _err(_read_failure_message(file, e))
        return 1

    if as_json:
        print(json.dumps([r.as_dict() for r in records], indent=2, ensure_ascii=False))
        return 0

    out = console or Console()
    render_records(f"{which.title()} Data ({len(records)} records)", records, console=out)
    return 0


def cmd_match(
    company_file: str | Path | None,
    party_file: str | Path | None,
    *,
    export: str | Path | None = None,
    search: str | None = None,
    stage_delay: float | None = None,
    read_command: Callable[[], str] | None = None,
    console: Console | None = None,
) -> int:
    """Load both files, run the interactive matcher, render (and export) results.

    Flow
    ----
    - Both files are required; a missing one is reported before anything is
      read.
    - Each file is parsed by extension (``.csv``, ``.xlsx``, ``.xls``) and
      normalized. Parse failures are reported with the reader's own message.
    - The operator builds match groups at the ``match>`` prompt and finishes
      with ``d``. Quitting (``q``, Ctrl-C, end of input) prints no results and
      exits ``0``.
    - The results table lists every group (confidence 100) followed by each
      unmatched company record (confidence 0). ``search`` narrows the table by
      reference; ``export`` writes all rows to CSV.
    """

    from .grouping import MatchSession
    from .models import COMPANY, PARTY
    from .report import export_report_csv, render_report
    from .workflows.match_flow import load_side, pause, require_inputs, run_matching

    settings = load_settings(stage_delay=stage_delay)
    out = console or Console()

    try:
        require_inputs(company_file, party_file)
    except MissingInputError as e:
        _err(str(e))
        return 1

    current: str | Path | None = company_file
    try:
        company = load_side(company_file, COMPANY, max_file_mb=settings.max_file_mb)  # type: ignore[arg-type]
        current = party_file
        party = load_side(party_file, PARTY, max_file_mb=settings.max_file_mb)  # type: ignore[arg-type]
    except ReconciliationError as e:
        _err(str(e))
        return 1
    except (OSError, csv.Error) as e:
        _err(_read_failure_message(current, e))
        return 1
    except Exception as e:  # pragma: no cover - spreadsheet library errors vary
        _err(_read_failure_message(current, e))
        return 1

    logger.info("loaded %d company and %d party record(s)", len(company), len(party))
    print("Files Uploaded Successfully. Your files are being processed for reconciliation.")
    pause(settings.stage_delay)

    session = MatchSession(company, party)
    rows = run_matching(
        session,
        read_command=read_command or _default_reader(),
        console=out,
        stage_delay=settings.stage_delay,
    )
    if rows is None:
        return 0

    render_report(rows, console=out, search=search)

    if export:
        try:
            n = export_report_csv(rows, export)
        except OSError as e:
            _err(f"Failed to write export '{export}': {e}")
            return 1
        print(f"Exported {n} row(s) to {export}")

    return 0


# ---- Typer-based console interface -------------------------------------------


# Module-level option objects keep calls out of parameter defaults (ruff B008).
COMPANY_FILE_OPTION: OptionInfo = typer.Option(
    None,
    "--company-file",
    help="Company records (.csv, .xlsx or .xls).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
PARTY_FILE_OPTION: OptionInfo = typer.Option(
    None,
    "--party-file",
    help="Party (counterparty) records (.csv, .xlsx or .xls).",
    dir_okay=False,
    file_okay=True,
    exists=False,
)
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="Input file to normalize (.csv, .xlsx or .xls).",
    dir_okay=False,
    file_okay=True,
    exists=False,
)


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Manually reconcile company records against party records. "
        "Loads settings from a local .env before running."
    ),
)


@app.command("match")
def match_cmd(
    company_file: Path | None = COMPANY_FILE_OPTION,
    party_file: Path | None = PARTY_FILE_OPTION,
    *,
    export: Path | None = typer.Option(None, help="Write the results table to this CSV file."),
    search: str | None = typer.Option(
        None, help="Only show result rows whose company or party reference contains this text."
    ),
    stage_delay: float | None = typer.Option(
        None,
        help="Seconds to pause between stages (falls back to RECONCILIATION_STAGE_DELAY).",
    ),
) -> None:
    """Match records interactively and show the results table."""

    code = cmd_match(
        company_file,
        party_file,
        export=export,
        search=search,
        stage_delay=stage_delay,
    )
    raise typer.Exit(code)


@app.command("normalize")
def normalize_cmd(
    file: Annotated[Path, FILE_OPTION],
    *,
    side: str = typer.Option("company", help="Which dataset the file is: company or party."),
    as_json: bool = typer.Option(False, "--json", help="Print records as JSON."),
    sheet: str | None = typer.Option(None, help="Worksheet name for Excel files."),
) -> None:
    """Show how a file's rows are normalized."""

    raise typer.Exit(cmd_normalize(file, side=side, as_json=as_json, sheet=sheet))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to RECONCILIATION_LOG_LEVEL, then WARNING)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # `python -m reconciliation.cli`
    app()
