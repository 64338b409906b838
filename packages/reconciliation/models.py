"""Data models for the manual reconciliation workflow.

Three shapes flow through the system:

- :class:`RawRow`: one parsed spreadsheet/CSV row. Columns the normalizer
  understands are explicit optional fields; every other column is kept as a
  pydantic "extra" so nothing the file contained is lost.
- :class:`NormalizedRecord`: the canonical record shown to the operator, with
  a side-scoped 1-based ``id``.
- :class:`MatchGroup` and :class:`ReportRow`: the operator's confirmed
  associations and the read-only projection rendered as results.

Record ids are unique only within a side. A company record ``3`` and a party
record ``3`` are unrelated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Sides and constants
# ---------------------------------------------------------------------------

Side: TypeAlias = Literal["company", "party"]
"""Which uploaded dataset a record belongs to."""

COMPANY: Side = "company"
PARTY: Side = "party"
SIDES: tuple[Side, Side] = (COMPANY, PARTY)

# Prefix used when a row carries no reference of its own ("C-3", "P-7").
REFERENCE_PREFIX: dict[str, str] = {COMPANY: "C", PARTY: "P"}

# Confidence is a display constant, never a computed similarity.
CONFIDENCE_MATCHED = 100
CONFIDENCE_STRONG = 95
CONFIDENCE_POTENTIAL = 78
CONFIDENCE_UNMATCHED = 0

UNMATCHED_PARTY_REF = "-"


def parse_side(value: str) -> Side:
    """Validate a user-supplied side name (case-insensitive)."""

    v = (value or "").strip().lower()
    if v in {"c", "company"}:
        return COMPANY
    if v in {"p", "party"}:
        return PARTY
    raise ValueError(f"unknown side: {value!r} (expected 'company' or 'party')")


# ---------------------------------------------------------------------------
# Raw input rows
# ---------------------------------------------------------------------------


class RawRow(BaseModel):
    """A parsed input row with the columns normalization knows about.

    Field aliases are the exact column headers accepted in input files. Both
    the camelCase export spellings (``invoiceNumber``) and common title-case
    headers (``Reference``, ``Amount``) are declared; the normalizer decides
    precedence. Blank strings become ``None`` so "present but empty" and
    "absent" resolve identically.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    invoice_number: Any = Field(default=None, alias="invoiceNumber")
    reference: Any = None
    reference_title: Any = Field(default=None, alias="Reference")
    invoice_date: Any = Field(default=None, alias="invoiceDate")
    date: Any = None
    date_title: Any = Field(default=None, alias="Date")
    invoice_date_text: Any = Field(default=None, alias="invoiceDateText")
    amount: Any = None
    amount_title: Any = Field(default=None, alias="Amount")
    description: Any = None
    description_title: Any = Field(default=None, alias="Description")
    doc_type: Any = Field(default=None, alias="docType")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @classmethod
    def from_mapping(cls, row: Mapping[Any, Any]) -> RawRow:
        """Build from a parser row, coercing header keys to ``str``.

        Spreadsheet headers can be numbers or dates; ``None`` headers (unnamed
        columns) are dropped.
        """

        data = {str(k).strip(): v for k, v in row.items() if k is not None and str(k).strip()}
        return cls.model_validate(data)

    @property
    def extra_columns(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


# ---------------------------------------------------------------------------
# Normalized records and matching
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """A record as presented for manual matching.

    ``amount`` is a ``Decimal`` so group totals are exact. ``date`` is an ISO
    date when the source cell was a real date, otherwise the source text.
    """

    id: int
    reference: str
    date: str
    date_text: str
    amount: Decimal
    description: str
    doc_type: str
    side: Side = COMPANY

    def as_dict(self) -> dict[str, Any]:
        """JSON-friendly view using the export field names."""

        return {
            "id": self.id,
            "reference": self.reference,
            "date": self.date,
            "dateText": self.date_text,
            "amount": str(self.amount),
            "description": self.description,
            "docType": self.doc_type,
        }


@dataclass(frozen=True, slots=True)
class MatchGroup:
    """A confirmed association between company and party record ids."""

    company_ids: frozenset[int]
    party_ids: frozenset[int]

    def ids(self, side: Side) -> frozenset[int]:
        return self.company_ids if side == COMPANY else self.party_ids


class ReportStatus(StrEnum):
    MATCHED = "matched"
    POTENTIAL = "potential"
    UNMATCHED = "unmatched"


@dataclass(frozen=True, slots=True)
class ReportRow:
    """One line of the results table.

    Either a confirmed group (all of its references, summed company amount) or
    a company record nobody matched.
    """

    id: int
    company_refs: tuple[str, ...]
    party_refs: tuple[str, ...]
    amount: Decimal
    date: str
    status: ReportStatus
    confidence: int

    @property
    def company_ref(self) -> str:
        return ", ".join(self.company_refs)

    @property
    def party_ref(self) -> str:
        return ", ".join(self.party_refs)


__all__ = [
    "Side",
    "COMPANY",
    "PARTY",
    "SIDES",
    "REFERENCE_PREFIX",
    "CONFIDENCE_MATCHED",
    "CONFIDENCE_STRONG",
    "CONFIDENCE_POTENTIAL",
    "CONFIDENCE_UNMATCHED",
    "UNMATCHED_PARTY_REF",
    "parse_side",
    "RawRow",
    "NormalizedRecord",
    "MatchGroup",
    "ReportStatus",
    "ReportRow",
]
