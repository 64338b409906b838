"""Pytest configuration for test isolation.

The CLI reads ``RECONCILIATION_*`` variables from the process environment
(and from a ``.env`` in the working directory). A developer's local settings,
such as a non-zero stage delay, would otherwise leak into tests and make them
slow or noisy. An autouse fixture clears those variables, runs each test from
its own temporary directory and detaches any logging handler a test attached.
"""

from __future__ import annotations

import csv
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from reconciliation.config import MAX_FILE_MB_ENV, STAGE_DELAY_ENV
from reconciliation.logging_setup import LOG_LEVEL_ENV, reset_logging


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for name in (LOG_LEVEL_ENV, STAGE_DELAY_ENV, MAX_FILE_MB_ENV):
        monkeypatch.delenv(name, raising=False)
    work = tmp_path / "cwd"
    work.mkdir()
    monkeypatch.chdir(work)
    yield
    # load_dotenv writes straight into os.environ.
    for name in (LOG_LEVEL_ENV, STAGE_DELAY_ENV, MAX_FILE_MB_ENV):
        os.environ.pop(name, None)
    reset_logging()


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write ``rows`` under ``header`` to ``tmp_path/name`` and return the path."""

    def _write(name: str, header: Sequence[str], rows: Sequence[Sequence[Any]]) -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(header)
            w.writerows(rows)
        return path

    return _write


@pytest.fixture
def company_csv(write_csv) -> Path:
    return write_csv(
        "company.csv",
        ["invoiceNumber", "invoiceDate", "amount", "description", "docType"],
        [
            ["INV-001", "2024-01-05", "100.00", "Office chairs", "Invoice"],
            ["INV-002", "2024-01-09", "250.50", "Desks", "Invoice"],
            ["INV-003", "2024-01-12", "75", "Lamps", "Invoice"],
        ],
    )


@pytest.fixture
def party_csv(write_csv) -> Path:
    return write_csv(
        "party.csv",
        ["reference", "date", "Amount", "description"],
        [
            ["PAY-9", "2024-01-06", "100.00", "Payment"],
            ["PAY-10", "2024-01-10", "250.50", "Payment"],
        ],
    )
