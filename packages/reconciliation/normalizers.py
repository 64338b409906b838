"""RawRow → NormalizedRecord mapping.

Each side (company, party) is normalized independently. Records get
``id = position + 1`` in encounter order, so ids are ``1..N`` with no gaps and
are only unique within their side.

Field resolution walks an ordered list of column spellings and takes the first
non-empty value:

- reference: ``invoiceNumber``, ``reference``, ``Reference``, else ``C-{id}`` /
  ``P-{id}``
- date: ``invoiceDate``, ``date``, ``Date``, else ``""``
- date_text: ``invoiceDateText``, else ``""``
- amount: ``amount``, ``Amount``, else ``0``
- description: ``description``, ``Description``, else ``""``
- doc_type: ``docType``, else ``""``

Nothing is rejected. An amount that cannot be read as a number becomes ``0``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import REFERENCE_PREFIX, NormalizedRecord, RawRow, Side

logger = get_logger("reconciliation.normalizers")

# Attribute names on RawRow, in precedence order.
REFERENCE_FIELDS: tuple[str, ...] = ("invoice_number", "reference", "reference_title")
DATE_FIELDS: tuple[str, ...] = ("invoice_date", "date", "date_title")
DATE_TEXT_FIELDS: tuple[str, ...] = ("invoice_date_text",)
AMOUNT_FIELDS: tuple[str, ...] = ("amount", "amount_title")
DESCRIPTION_FIELDS: tuple[str, ...] = ("description", "description_title")
DOC_TYPE_FIELDS: tuple[str, ...] = ("doc_type",)

_ZERO = Decimal(0)
_CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _first_present(row: RawRow, fields: Sequence[str]) -> Any:
    for name in fields:
        v = getattr(row, name)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def to_text(value: Any) -> str:
    """Render a cell value as display text.

    Spreadsheet readers hand back integral floats for numeric ids
    (``1001.0``); those print without the trailing ``.0``.
    """

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_date_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return to_text(value)


def _parse_amount_str(raw: str) -> Decimal | None:
    s = raw.strip()
    negative = False
    # Strip sign, currency symbol and accounting parentheses in any order.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break
    s = s.replace(",", "").strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return -abs(d) if negative else d


def to_amount(value: Any) -> Decimal:
    """Coerce a cell to ``Decimal``; missing/non-numeric/non-finite → ``0``.

    Values too large to carry cents in the default decimal context (for
    example ``"1e1000000"``) are treated as non-numeric as well.
    """

    if value is None:
        return _ZERO
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return _ZERO
        d = Decimal(repr(value))
    else:
        parsed = _parse_amount_str(str(value))
        if parsed is None:
            return _ZERO
        d = parsed
    if not d.is_finite():
        return _ZERO
    try:
        d.quantize(_CENT)
    except InvalidOperation:
        return _ZERO
    return d


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_row(row: RawRow, *, record_id: int, side: Side) -> NormalizedRecord:
    """Normalize one raw row that sits at 1-based position ``record_id``."""

    reference = to_text(_first_present(row, REFERENCE_FIELDS))
    if not reference:
        reference = f"{REFERENCE_PREFIX[side]}-{record_id}"

    amount_raw = _first_present(row, AMOUNT_FIELDS)
    amount = to_amount(amount_raw)
    if amount_raw is not None and amount == _ZERO and to_text(amount_raw) not in {"0", "0.0"}:
        logger.debug("%s row %d: amount %r is not numeric; using 0", side, record_id, amount_raw)

    return NormalizedRecord(
        id=record_id,
        reference=reference,
        date=to_date_text(_first_present(row, DATE_FIELDS)),
        date_text=to_date_text(_first_present(row, DATE_TEXT_FIELDS)),
        amount=amount,
        description=to_text(_first_present(row, DESCRIPTION_FIELDS)),
        doc_type=to_text(_first_present(row, DOC_TYPE_FIELDS)),
        side=side,
    )


def normalize_records(
    rows: Iterable[RawRow | dict[str, Any]], side: Side
) -> list[NormalizedRecord]:
    """Normalize ``rows`` in order; plain dicts are validated as RawRow first."""

    out: list[NormalizedRecord] = []
    for pos, row in enumerate(rows):
        raw = row if isinstance(row, RawRow) else RawRow.from_mapping(row)
        out.append(normalize_row(raw, record_id=pos + 1, side=side))
    return out


__all__ = [
    "REFERENCE_FIELDS",
    "DATE_FIELDS",
    "AMOUNT_FIELDS",
    "DESCRIPTION_FIELDS",
    "normalize_row",
    "normalize_records",
    "to_amount",
    "to_text",
    "to_date_text",
]
