"""Human-readable hints for eligibility and what-if results."""

from attendance_intel.models import CourseTally, EligibilityTransition, ProjectionResult
from attendance_intel.risk import ELIGIBILITY_THRESHOLD, eligibility


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}es"


def projection_message(result: ProjectionResult) -> str:
    """Directional feedback for a what-if scenario; empty when there is nothing to say."""
    if result.transition == EligibilityTransition.CROSSED_ABOVE:
        return "This scenario would bring you above 75%!"
    if result.transition == EligibilityTransition.DROPPED_BELOW:
        return "This scenario would drop you below 75%!"
    if result.further_needed > 0:
        return (
            f"You'd need {_plural(result.further_needed, 'more consecutive class')} "
            f"to reach 75%."
        )
    return ""


def eligibility_message(tally: CourseTally) -> str:
    """Recovery or safety-margin sentence for a single course."""
    outlook = eligibility(tally)

    if tally.total_sessions == 0:
        return "No classes recorded yet."
    if tally.percentage < ELIGIBILITY_THRESHOLD:
        return (
            f"Attend the next {_plural(outlook.classes_needed_to_reach_75, 'class')} "
            f"in a row to reach 75%."
        )
    if outlook.max_future_absences_allowed == 0:
        return "You cannot miss any more classes and stay at 75%."
    return (
        f"You can miss {_plural(outlook.max_future_absences_allowed, 'class')} "
        f"and stay at or above 75%."
    )
