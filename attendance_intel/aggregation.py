"""Reduce attendance events into per-course tallies."""

import os
from typing import Dict, Iterable, List, Optional

import pandas as pd

from attendance_intel.models import AttendanceEvent, CourseStanding, CourseTally
from attendance_intel.risk import classify, eligibility


def unknown_name_label() -> str:
    """Fallback display name for ids missing from a lookup."""
    return os.getenv('UNKNOWN_NAME_LABEL', 'Unknown')


def events_to_frame(events: Iterable[AttendanceEvent]) -> pd.DataFrame:
    """Lay events out as a DataFrame with one row per event."""
    rows = [event.model_dump() for event in events]
    return pd.DataFrame(rows, columns=['subject_id', 'course_id', 'occurred_on', 'present'])


def aggregate(events: Iterable[AttendanceEvent], course_id: Optional[str] = None) -> List[CourseTally]:
    """
    Count present/absent events per course.

    Events are taken as given: duplicates are counted, nothing is filtered by
    date. The caller supplies events for a single subject.

    Args:
        events: Attendance events for one subject
        course_id: If given, only that course is counted and exactly one tally
            is returned (all zeros when there are no matching events)

    Returns:
        One tally per distinct course id, ordered by course id
    """
    df = events_to_frame(events)
    if course_id is not None:
        df = df[df['course_id'] == course_id]

    tallies = []
    if not df.empty:
        grouped = df.groupby('course_id', sort=True)['present'].agg(['count', 'sum'])
        for cid, row in grouped.iterrows():
            tallies.append(CourseTally.from_counts(str(cid), int(row['count']), int(row['sum'])))

    if course_id is not None and not tallies:
        tallies.append(CourseTally(course_id=course_id))
    return tallies


def overall_tally(tallies: Iterable[CourseTally], course_id: str = 'overall') -> CourseTally:
    """Pool present/total counts across courses into a single tally."""
    total = 0
    present = 0
    for tally in tallies:
        total += tally.total_sessions
        present += tally.present_count
    return CourseTally.from_counts(course_id, total, present)


def course_standings(
    tallies: Iterable[CourseTally],
    course_names: Optional[Dict[str, str]] = None
) -> List[CourseStanding]:
    """
    Join tallies with course names, tier and outlook, worst course first.

    Course ids missing from ``course_names`` get the unknown-name label.
    """
    course_names = course_names or {}
    fallback = unknown_name_label()

    standings = [
        CourseStanding(
            course_id=tally.course_id,
            course_name=course_names.get(tally.course_id, fallback),
            tally=tally,
            percentage=tally.percentage,
            tier=classify(tally.percentage),
            outlook=eligibility(tally),
        )
        for tally in tallies
    ]
    standings.sort(key=lambda s: (s.percentage, s.course_id))
    return standings
