from decimal import Decimal

import pytest

from reconciliation.errors import (
    EmptySelectionError,
    MatchConflictError,
    NoMatchesError,
    UnknownRecordError,
)
from reconciliation.grouping import MatchSession
from reconciliation.models import COMPANY, PARTY, ReportStatus
from reconciliation.normalizers import normalize_records


def _session(n_company: int = 3, n_party: int = 2) -> MatchSession:
    company = normalize_records(
        [
            {"invoiceNumber": f"INV-{i}", "invoiceDate": f"2024-01-0{i}", "amount": str(i * 100)}
            for i in range(1, n_company + 1)
        ],
        COMPANY,
    )
    party = normalize_records(
        [{"reference": f"PAY-{i}", "amount": str(i * 100)} for i in range(1, n_party + 1)],
        PARTY,
    )
    return MatchSession(company, party)


def test_one_to_one_match_then_finalize():
    s = _session()
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    group = s.confirm_match()

    assert group.company_ids == frozenset({1})
    assert group.party_ids == frozenset({1})
    assert s.is_matched(COMPANY, 1) and s.is_matched(PARTY, 1)
    assert not s.is_matched(COMPANY, 2)
    assert s.pending(COMPANY) == frozenset() and s.pending(PARTY) == frozenset()

    rows = s.finalize()
    # One group plus two unmatched company records.
    assert len(rows) == 3
    assert [r.id for r in rows] == [1, 2, 3]

    first = rows[0]
    assert first.company_refs == ("INV-1",)
    assert first.party_refs == ("PAY-1",)
    assert first.amount == Decimal(100)
    assert first.date == "2024-01-01"
    assert first.status is ReportStatus.MATCHED
    assert first.confidence == 100

    assert [(r.company_ref, r.party_ref, r.confidence) for r in rows[1:]] == [
        ("INV-2", "-", 0),
        ("INV-3", "-", 0),
    ]
    assert all(r.status is ReportStatus.UNMATCHED for r in rows[1:])


def test_many_to_one_group_sums_company_amounts_in_record_order():
    s = _session()
    s.select(COMPANY, 3)
    s.select(COMPANY, 1)
    s.select(PARTY, 2)
    s.confirm_match()

    rows = s.finalize()
    assert len(rows) == 2
    assert rows[0].company_refs == ("INV-1", "INV-3")
    assert rows[0].company_ref == "INV-1, INV-3"
    assert rows[0].amount == Decimal(400)
    assert rows[0].date == "2024-01-01"
    assert rows[1].company_ref == "INV-2"


def test_finalize_row_count_is_groups_plus_unmatched_company():
    s = _session(n_company=4, n_party=3)
    for c, p in ((1, 1), (2, 3)):
        s.select(COMPANY, c)
        s.select(PARTY, p)
        s.confirm_match()

    rows = s.finalize()
    assert len(rows) == len(s.groups) + len(s.unmatched(COMPANY)) == 4


def test_select_toggles():
    s = _session()
    assert s.select(COMPANY, 2) is True
    assert s.pending(COMPANY) == frozenset({2})
    assert s.select(COMPANY, 2) is False
    assert s.pending(COMPANY) == frozenset()


def test_select_of_matched_record_is_a_no_op():
    s = _session()
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    s.confirm_match()

    assert s.select(COMPANY, 1) is False
    assert s.pending(COMPANY) == frozenset()


def test_select_unknown_id_raises():
    s = _session()
    with pytest.raises(UnknownRecordError, match="No party record with id 9"):
        s.select(PARTY, 9)


@pytest.mark.parametrize("side", [COMPANY, PARTY])
def test_confirm_requires_both_sides_and_leaves_state_unchanged(side):
    s = _session()
    s.select(side, 1)

    with pytest.raises(EmptySelectionError):
        s.confirm_match()

    assert s.groups == ()
    assert s.pending(side) == frozenset({1})


def test_conflicting_confirm_is_rejected_without_mutation():
    s = _session()
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    s.confirm_match()

    # select() refuses matched records, so build the stale selection directly.
    s._pending[COMPANY].update({1, 2})
    s._pending[PARTY].add(2)

    with pytest.raises(MatchConflictError) as excinfo:
        s.confirm_match()

    assert excinfo.value.company_ids == (1,)
    assert excinfo.value.party_ids == ()
    assert len(s.groups) == 1
    assert not s.is_matched(COMPANY, 2)
    assert not s.is_matched(PARTY, 2)
    assert s.pending(COMPANY) == frozenset({1, 2})


def test_groups_are_pairwise_disjoint():
    s = _session(n_company=5, n_party=5)
    for ids in ((1, 2), (3,), (4, 5)):
        for i in ids:
            s.select(COMPANY, i)
            s.select(PARTY, i)
        s.confirm_match()

    seen_company: set[int] = set()
    seen_party: set[int] = set()
    for g in s.groups:
        assert not (g.company_ids & seen_company)
        assert not (g.party_ids & seen_party)
        seen_company |= g.company_ids
        seen_party |= g.party_ids


def test_finalize_without_groups_raises():
    s = _session()
    with pytest.raises(NoMatchesError):
        s.finalize()


def test_clear_selection():
    s = _session()
    s.select(COMPANY, 1)
    s.select(PARTY, 2)
    s.clear_selection()
    assert s.pending(COMPANY) == frozenset() and s.pending(PARTY) == frozenset()


def test_stats_use_larger_side_for_unmatched():
    s = _session(n_company=3, n_party=5)
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    s.confirm_match()

    st = s.stats()
    assert (st.company_records, st.party_records, st.matches, st.unmatched) == (3, 5, 1, 4)


def test_single_pair_example():
    s = MatchSession(
        normalize_records([{"reference": "C-1", "amount": 100}], COMPANY),
        normalize_records([{"reference": "P-1", "amount": 100}], PARTY),
    )
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    s.confirm_match()

    (row,) = s.finalize()
    assert (row.confidence, row.amount, row.company_refs, row.party_refs) == (
        100,
        Decimal(100),
        ("C-1",),
        ("P-1",),
    )


def test_two_company_rows_one_matched_example():
    s = MatchSession(
        normalize_records([{"amount": 10}, {"amount": 20}], COMPANY),
        normalize_records([{"amount": 10}], PARTY),
    )
    s.select(COMPANY, 1)
    s.select(PARTY, 1)
    s.confirm_match()

    matched, unmatched = s.finalize()
    assert matched.confidence == 100
    assert (unmatched.confidence, unmatched.party_ref, unmatched.company_ref) == (0, "-", "C-2")
