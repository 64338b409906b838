"""Manual grouping engine: pending selections, confirmed groups, finalize.

:class:`MatchSession` is the only place matching state lives. The interactive
UI (or any other caller) mutates it exclusively through ``select``,
``confirm_match`` and ``finalize``; ``is_matched`` and the other accessors are
read-only.

Invariant: across all confirmed groups, company id sets are pairwise disjoint
and party id sets are pairwise disjoint. ``confirm_match`` checks this before
committing, and a failed call leaves the session exactly as it was.

There is no scoring and no automatic pairing. Every group exists because an
operator confirmed it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from .errors import EmptySelectionError, MatchConflictError, NoMatchesError, UnknownRecordError
from .logging_setup import get_logger
from .models import (
    COMPANY,
    CONFIDENCE_MATCHED,
    CONFIDENCE_UNMATCHED,
    PARTY,
    SIDES,
    UNMATCHED_PARTY_REF,
    MatchGroup,
    NormalizedRecord,
    ReportRow,
    ReportStatus,
    Side,
)

logger = get_logger("reconciliation.grouping")


@dataclass(frozen=True, slots=True)
class SessionStats:
    """Counters shown above the two record lists."""

    company_records: int
    party_records: int
    matches: int
    unmatched: int


class MatchSession:
    """Matching state for one pair of uploaded datasets."""

    def __init__(
        self,
        company_records: Sequence[NormalizedRecord],
        party_records: Sequence[NormalizedRecord],
    ) -> None:
        self._records: dict[str, tuple[NormalizedRecord, ...]] = {
            COMPANY: tuple(company_records),
            PARTY: tuple(party_records),
        }
        self._by_id: dict[str, dict[int, NormalizedRecord]] = {
            side: {r.id: r for r in recs} for side, recs in self._records.items()
        }
        self._pending: dict[str, set[int]] = {COMPANY: set(), PARTY: set()}
        self._matched: dict[str, set[int]] = {COMPANY: set(), PARTY: set()}
        self._groups: list[MatchGroup] = []

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def records(self, side: Side) -> tuple[NormalizedRecord, ...]:
        return self._records[side]

    def record(self, side: Side, record_id: int) -> NormalizedRecord:
        try:
            return self._by_id[side][record_id]
        except KeyError:
            raise UnknownRecordError(f"No {side} record with id {record_id}") from None

    @property
    def groups(self) -> tuple[MatchGroup, ...]:
        return tuple(self._groups)

    def pending(self, side: Side) -> frozenset[int]:
        return frozenset(self._pending[side])

    def is_matched(self, side: Side, record_id: int) -> bool:
        """True iff ``record_id`` belongs to a confirmed group on ``side``."""

        return record_id in self._matched[side]

    def unmatched(self, side: Side) -> list[NormalizedRecord]:
        """Records on ``side`` not in any group, in original order."""

        return [r for r in self._records[side] if r.id not in self._matched[side]]

    def stats(self) -> SessionStats:
        n_company = len(self._records[COMPANY])
        n_party = len(self._records[PARTY])
        return SessionStats(
            company_records=n_company,
            party_records=n_party,
            matches=len(self._groups),
            unmatched=max(n_company, n_party) - len(self._groups),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def select(self, side: Side, record_id: int) -> bool:
        """Toggle ``record_id`` in the pending selection for ``side``.

        Returns whether the record is selected afterwards. Records that are
        already in a confirmed group are left alone (returns ``False``).
        """

        self.record(side, record_id)
        if self.is_matched(side, record_id):
            return False
        pending = self._pending[side]
        if record_id in pending:
            pending.remove(record_id)
            return False
        pending.add(record_id)
        return True

    def clear_selection(self) -> None:
        for side in SIDES:
            self._pending[side].clear()

    def confirm_match(self) -> MatchGroup:
        """Commit the pending selections as one new group.

        Raises
        ------
        EmptySelectionError
            Either side has nothing selected.
        MatchConflictError
            A selected record is already part of a confirmed group.
        """

        company = self._pending[COMPANY]
        party = self._pending[PARTY]
        if not company or not party:
            raise EmptySelectionError(
                "Select at least one company record and one party record before matching."
            )

        taken_company = company & self._matched[COMPANY]
        taken_party = party & self._matched[PARTY]
        if taken_company or taken_party:
            raise MatchConflictError(
                "One of the selected records is already matched.",
                company_ids=taken_company,
                party_ids=taken_party,
            )

        group = MatchGroup(company_ids=frozenset(company), party_ids=frozenset(party))
        self._groups.append(group)
        self._matched[COMPANY] |= group.company_ids
        self._matched[PARTY] |= group.party_ids
        self.clear_selection()
        logger.info(
            "confirmed group %d: company=%s party=%s",
            len(self._groups),
            sorted(group.company_ids),
            sorted(group.party_ids),
        )
        return group

    # ------------------------------------------------------------------
    # Results projection
    # ------------------------------------------------------------------

    def _in_order(self, side: Side, ids: frozenset[int]) -> list[NormalizedRecord]:
        return [r for r in self._records[side] if r.id in ids]

    def finalize(self) -> list[ReportRow]:
        """Project confirmed groups and unmatched company records into rows.

        Groups come first in confirmation order, then unmatched company
        records in their original order. Row ids run ``1..len(rows)``.
        """

        if not self._groups:
            raise NoMatchesError("Please create at least one match before proceeding.")

        rows: list[ReportRow] = []
        for group in self._groups:
            company_recs = self._in_order(COMPANY, group.company_ids)
            party_recs = self._in_order(PARTY, group.party_ids)
            rows.append(
                ReportRow(
                    id=len(rows) + 1,
                    company_refs=tuple(r.reference for r in company_recs),
                    party_refs=tuple(r.reference for r in party_recs),
                    amount=sum((r.amount for r in company_recs), Decimal(0)),
                    date=company_recs[0].date if company_recs else "",
                    status=ReportStatus.MATCHED,
                    confidence=CONFIDENCE_MATCHED,
                )
            )

        for rec in self.unmatched(COMPANY):
            rows.append(
                ReportRow(
                    id=len(rows) + 1,
                    company_refs=(rec.reference,),
                    party_refs=(UNMATCHED_PARTY_REF,),
                    amount=rec.amount,
                    date=rec.date,
                    status=ReportStatus.UNMATCHED,
                    confidence=CONFIDENCE_UNMATCHED,
                )
            )

        logger.info(
            "finalized %d group(s) and %d unmatched company record(s)",
            len(self._groups),
            len(rows) - len(self._groups),
        )
        return rows


__all__ = ["MatchSession", "SessionStats"]
