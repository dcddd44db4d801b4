"""Risk classification, eligibility math and what-if projection."""

import math
from fractions import Fraction
from typing import Dict

from attendance_intel.models import (
    AttendanceValidationError,
    CourseTally,
    EligibilityOutlook,
    EligibilityTransition,
    ProjectionResult,
    RiskTier,
)

SAFE_THRESHOLD = 80.0
ELIGIBILITY_THRESHOLD = 75.0

# Exact ratio so ceil/floor never see a rounding artefact.
_ELIGIBLE_RATIO = Fraction(3, 4)

RISK_COLORS: Dict[RiskTier, str] = {
    RiskTier.SAFE: '#34C759',
    RiskTier.WARNING: '#FF9500',
    RiskTier.CRITICAL: '#FF3B30',
}


def classify(percentage: float) -> RiskTier:
    """
    Map an attendance percentage to a risk tier.

    Args:
        percentage: Attendance percentage; values outside 0-100 are not clamped

    Returns:
        SAFE at or above 80, WARNING in [75, 80), CRITICAL below 75
    """
    if percentage >= SAFE_THRESHOLD:
        return RiskTier.SAFE
    elif percentage >= ELIGIBILITY_THRESHOLD:
        return RiskTier.WARNING
    else:
        return RiskTier.CRITICAL


def tier_color(tier: RiskTier) -> str:
    """Hex color used by the presentation layer for a tier."""
    return RISK_COLORS[tier]


def validate_tally(tally: CourseTally) -> None:
    """Reject tallies with negative or inconsistent counts."""
    if tally.total_sessions < 0 or tally.present_count < 0 or tally.absent_count < 0:
        raise AttendanceValidationError(f"Tally for {tally.course_id!r} has negative counts")
    if tally.total_sessions != tally.present_count + tally.absent_count:
        raise AttendanceValidationError(
            f"Tally for {tally.course_id!r} is inconsistent: "
            f"{tally.present_count} + {tally.absent_count} != {tally.total_sessions}"
        )


def classes_needed(total: int, present: int) -> int:
    """
    Smallest x >= 0 with (present + x) / (total + x) >= 0.75.

    Assumes every future session is attended.
    """
    needed = math.ceil((_ELIGIBLE_RATIO * total - present) / (1 - _ELIGIBLE_RATIO))
    return max(needed, 0)


def absences_allowed(total: int, present: int) -> int:
    """
    Largest x >= 0 with present / (total + x) >= 0.75.

    Assumes every future session is missed.
    """
    allowed = math.floor((present - _ELIGIBLE_RATIO * total) / _ELIGIBLE_RATIO)
    return max(allowed, 0)


def eligibility(tally: CourseTally) -> EligibilityOutlook:
    """
    Derive the recovery or safety-margin outlook for a tally.

    The two figures model different futures (all-present vs all-absent), so
    only the one matching the current side of the 75% line is computed; the
    other is reported as 0. A zero-session tally reports 0 for both.
    """
    validate_tally(tally)

    if tally.percentage < ELIGIBILITY_THRESHOLD:
        return EligibilityOutlook(
            classes_needed_to_reach_75=classes_needed(tally.total_sessions, tally.present_count),
            max_future_absences_allowed=0,
        )
    return EligibilityOutlook(
        classes_needed_to_reach_75=0,
        max_future_absences_allowed=absences_allowed(tally.total_sessions, tally.present_count),
    )


def project(tally: CourseTally, future_present: int = 0, future_absent: int = 0) -> ProjectionResult:
    """
    Extend a baseline tally with hypothetical sessions and re-classify it.

    Args:
        tally: Baseline tally, left untouched
        future_present: Additional sessions assumed attended
        future_absent: Additional sessions assumed missed

    Returns:
        ProjectionResult with the synthetic tally, its tier, the direction it
        moves across the 75% line and, when still below it, how many more
        attended sessions would be needed on top of the scenario
    """
    validate_tally(tally)
    if future_present < 0 or future_absent < 0:
        raise AttendanceValidationError(
            f"Future session counts must be non-negative "
            f"(present={future_present}, absent={future_absent})"
        )

    projected = CourseTally(
        course_id=tally.course_id,
        total_sessions=tally.total_sessions + future_present + future_absent,
        present_count=tally.present_count + future_present,
        absent_count=tally.absent_count + future_absent,
    )

    baseline_eligible = tally.percentage >= ELIGIBILITY_THRESHOLD
    projected_eligible = projected.percentage >= ELIGIBILITY_THRESHOLD

    if projected_eligible and not baseline_eligible:
        transition = EligibilityTransition.CROSSED_ABOVE
    elif baseline_eligible and not projected_eligible:
        transition = EligibilityTransition.DROPPED_BELOW
    else:
        transition = EligibilityTransition.NONE

    further_needed = 0
    if not projected_eligible:
        further_needed = classes_needed(projected.total_sessions, projected.present_count)

    return ProjectionResult(
        tally=projected,
        percentage=projected.percentage,
        tier=classify(projected.percentage),
        transition=transition,
        further_needed=further_needed,
    )
