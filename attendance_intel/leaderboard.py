"""Rank a cohort of subjects by attendance percentage within one course."""

from typing import Dict, Iterable, List, Mapping, Optional

from attendance_intel.aggregation import unknown_name_label
from attendance_intel.models import CourseTally, LeaderboardEntry
from attendance_intel.risk import validate_tally, classify


def rank(
    tallies: Mapping[str, CourseTally],
    cohort: Optional[Iterable[str]] = None,
    names: Optional[Dict[str, str]] = None
) -> List[LeaderboardEntry]:
    """
    Order subjects by percentage, highest first, with competition ranking.

    Equal percentages share a rank and the next distinct percentage skips
    ahead (90, 90, 80 -> 1, 1, 3). Subject id ascending orders entries
    within a tie but never separates their ranks.

    Args:
        tallies: Subject id -> tally, all for the same course
        cohort: Optional roster; only members are ranked, and members
            without a tally rank with zero sessions
        names: Optional subject id -> display name

    Returns:
        Leaderboard entries; empty when there is nobody to rank
    """
    names = names or {}
    fallback = unknown_name_label()

    scoped: Dict[str, CourseTally] = dict(tallies)
    if cohort is not None:
        course_id = next(iter(scoped.values())).course_id if scoped else ''
        scoped = {
            subject_id: scoped.get(subject_id, CourseTally(course_id=course_id))
            for subject_id in cohort
        }

    rows = []
    for subject_id, tally in scoped.items():
        validate_tally(tally)
        rows.append((subject_id, tally.percentage))
    rows.sort(key=lambda row: (-row[1], row[0]))

    entries = []
    previous = None
    current_rank = 0
    for position, (subject_id, percentage) in enumerate(rows, start=1):
        if percentage != previous:
            current_rank = position
            previous = percentage
        entries.append(LeaderboardEntry(
            subject_id=subject_id,
            name=names.get(subject_id, fallback),
            percentage=percentage,
            tier=classify(percentage),
            rank=current_rank,
        ))
    return entries


def rank_of(entries: Iterable[LeaderboardEntry], subject_id: str) -> Optional[int]:
    """Rank of one subject in a leaderboard, or None if it is not on it."""
    for entry in entries:
        if entry.subject_id == subject_id:
            return entry.rank
    return None
