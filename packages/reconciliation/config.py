"""Runtime settings resolved from the environment.

Values come from process environment variables (the CLI loads a local
``.env`` first via python-dotenv). Typer options override them per run.
Malformed values fall back to defaults instead of failing; a bad ``.env``
line should not stop an operator from reconciling.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

STAGE_DELAY_ENV = "RECONCILIATION_STAGE_DELAY"
MAX_FILE_MB_ENV = "RECONCILIATION_MAX_FILE_MB"

DEFAULT_STAGE_DELAY = 1.0
DEFAULT_MAX_FILE_MB = 50.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True, slots=True)
class Settings:
    """Effective settings for one CLI invocation.

    Attributes
    ----------
    stage_delay:
        Seconds to pause before moving between stages (upload to matching,
        matching to results). Purely cosmetic; ``0`` disables it.
    max_file_mb:
        Advisory input size. Larger files are still read; a warning is logged.
    """

    stage_delay: float = DEFAULT_STAGE_DELAY
    max_file_mb: float = DEFAULT_MAX_FILE_MB


def load_settings(
    *,
    stage_delay: float | None = None,
    max_file_mb: float | None = None,
) -> Settings:
    """Resolve settings: explicit arguments, then environment, then defaults."""

    return Settings(
        stage_delay=(
            stage_delay
            if stage_delay is not None and stage_delay >= 0
            else _env_float(STAGE_DELAY_ENV, DEFAULT_STAGE_DELAY)
        ),
        max_file_mb=(
            max_file_mb
            if max_file_mb is not None and max_file_mb > 0
            else _env_float(MAX_FILE_MB_ENV, DEFAULT_MAX_FILE_MB)
        ),
    )


__all__ = ["Settings", "load_settings", "STAGE_DELAY_ENV", "MAX_FILE_MB_ENV"]
