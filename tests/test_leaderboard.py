"""Unit tests for leaderboard ranking."""

from attendance_intel.leaderboard import rank, rank_of
from attendance_intel.models import CourseTally, RiskTier


def tally(total, present):
    return CourseTally.from_counts('CSE101', total, present)


def test_rank_competition_ties():
    """Percentages 90, 90, 80 rank 1, 1, 3."""
    entries = rank({
        'c': tally(10, 8),
        'b': tally(10, 9),
        'a': tally(10, 9),
    })

    assert [e.subject_id for e in entries] == ['a', 'b', 'c']
    assert [e.rank for e in entries] == [1, 1, 3]
    assert [e.percentage for e in entries] == [90.0, 90.0, 80.0]


def test_rank_equal_ratios_with_different_totals_tie():
    entries = rank({'x': tally(3, 2), 'y': tally(6, 4), 'z': tally(3, 3)})
    assert [(e.subject_id, e.rank) for e in entries] == [('z', 1), ('x', 2), ('y', 2)]


def test_rank_all_distinct():
    entries = rank({'a': tally(10, 5), 'b': tally(10, 7), 'c': tally(10, 10)})
    assert [(e.subject_id, e.rank) for e in entries] == [('c', 1), ('b', 2), ('a', 3)]


def test_rank_all_tied():
    entries = rank({'b': tally(4, 2), 'a': tally(2, 1), 'c': tally(8, 4)})
    assert [e.rank for e in entries] == [1, 1, 1]
    assert [e.subject_id for e in entries] == ['a', 'b', 'c']


def test_rank_empty_cohort():
    assert rank({}) == []
    assert rank({}, cohort=[]) == []


def test_rank_cohort_members_without_tally_rank_last():
    entries = rank({'a': tally(10, 9)}, cohort=['a', 'b', 'c'])
    assert [(e.subject_id, e.rank) for e in entries] == [('a', 1), ('b', 2), ('c', 2)]
    assert entries[1].percentage == 0.0
    assert entries[1].tier == RiskTier.CRITICAL


def test_rank_names_with_unknown_fallback():
    entries = rank({'a': tally(10, 9), 'b': tally(10, 5)}, names={'a': 'Ayesha'})
    assert entries[0].name == 'Ayesha'
    assert entries[1].name == 'Unknown'


def test_rank_assigns_tiers():
    entries = rank({'a': tally(10, 9), 'b': tally(100, 77), 'c': tally(10, 5)})
    assert [e.tier for e in entries] == [RiskTier.SAFE, RiskTier.WARNING, RiskTier.CRITICAL]


def test_rank_of():
    entries = rank({'a': tally(10, 9), 'b': tally(10, 9), 'c': tally(10, 1)})
    assert rank_of(entries, 'b') == 1
    assert rank_of(entries, 'c') == 3
    assert rank_of(entries, 'zzz') is None


def test_rank_cohort_excludes_non_members():
    entries = rank({'a': tally(10, 9), 'x': tally(10, 10)}, cohort=['a'])
    assert [e.subject_id for e in entries] == ['a']
    assert entries[0].rank == 1
