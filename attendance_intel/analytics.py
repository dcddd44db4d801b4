"""Course-level analytics for instructor views."""

from typing import Dict, Iterable, List, Optional

import numpy as np

from attendance_intel.aggregation import aggregate, unknown_name_label
from attendance_intel.models import (
    AttendanceEvent,
    CourseAnalytics,
    RiskTier,
    StudentStanding,
)
from attendance_intel.risk import classify, validate_tally


def course_student_standings(
    events: Iterable[AttendanceEvent],
    course_id: str,
    cohort: Optional[Iterable[str]] = None,
    names: Optional[Dict[str, str]] = None
) -> List[StudentStanding]:
    """
    Build per-student standings for one course from its raw event log.

    Args:
        events: Events for the course, any number of subjects
        course_id: Course to tally; events for other courses are ignored
        cohort: Roster of subject ids; members with no events get a zero
            tally. Defaults to every subject seen in the events.
        names: Optional subject id -> display name

    Returns:
        One standing per subject, ordered by subject id
    """
    names = names or {}
    fallback = unknown_name_label()

    by_subject: Dict[str, List[AttendanceEvent]] = {}
    for event in events:
        if event.course_id == course_id:
            by_subject.setdefault(event.subject_id, []).append(event)

    subject_ids = list(cohort) if cohort is not None else list(by_subject)

    standings = []
    for subject_id in sorted(set(subject_ids)):
        tally = aggregate(by_subject.get(subject_id, []), course_id=course_id)[0]
        standings.append(StudentStanding(
            subject_id=subject_id,
            name=names.get(subject_id, fallback),
            tally=tally,
            tier=classify(tally.percentage),
        ))
    return standings


def summarize(standings: Iterable[StudentStanding]) -> CourseAnalytics:
    """
    Aggregate per-student standings into a course distribution.

    ``mean_percentage`` is the mean of the individual percentages, not a
    pooled present/total ratio. ``total_sessions`` is the largest per-student
    total, i.e. the sessions held so far. Empty input gives an all-zero
    summary.
    """
    standings = list(standings)
    tier_counts = {tier: 0 for tier in RiskTier}

    if not standings:
        return CourseAnalytics(
            student_count=0,
            total_sessions=0,
            mean_percentage=0.0,
            mean_tier=classify(0.0),
            tier_counts=tier_counts,
            students=[],
        )

    for standing in standings:
        validate_tally(standing.tally)
        tier_counts[standing.tier] += 1

    percentages = np.array([s.percentage for s in standings], dtype=float)
    mean_percentage = float(np.mean(percentages))

    return CourseAnalytics(
        student_count=len(standings),
        total_sessions=max(s.tally.total_sessions for s in standings),
        mean_percentage=mean_percentage,
        mean_tier=classify(mean_percentage),
        tier_counts=tier_counts,
        students=sorted(standings, key=lambda s: (s.percentage, s.subject_id)),
    )
