"""Data models for the Attendance Intelligence Engine."""

from datetime import date
from enum import Enum
from typing import Optional, Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AttendanceValidationError(ValueError):
    """Raised when a count or tally handed to the engine is invalid."""


class RiskTier(str, Enum):
    """Three-tier risk label for an attendance percentage."""
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class EligibilityTransition(str, Enum):
    """Direction a projection moves a subject across the 75% line."""
    NONE = "none"
    CROSSED_ABOVE = "crossed_above"
    DROPPED_BELOW = "dropped_below"


class AttendanceEvent(BaseModel):
    """A single present/absent fact for one subject in one course on one day."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    course_id: str
    occurred_on: date
    present: bool


class CourseTally(BaseModel):
    """Aggregated present/absent counts for one subject in one course."""
    model_config = ConfigDict(frozen=True)

    course_id: str
    total_sessions: int = Field(default=0, ge=0)
    present_count: int = Field(default=0, ge=0)
    absent_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_totals(self):
        if self.total_sessions != self.present_count + self.absent_count:
            raise ValueError(
                f"total_sessions ({self.total_sessions}) must equal present_count "
                f"({self.present_count}) + absent_count ({self.absent_count})"
            )
        return self

    @classmethod
    def from_counts(cls, course_id: str, total: int, present: int) -> "CourseTally":
        """Build a tally from total/present, deriving the absent count."""
        if total < 0 or present < 0:
            raise AttendanceValidationError(
                f"Counts must be non-negative (total={total}, present={present})"
            )
        if present > total:
            raise AttendanceValidationError(
                f"present ({present}) cannot exceed total ({total})"
            )
        return cls(
            course_id=course_id,
            total_sessions=total,
            present_count=present,
            absent_count=total - present,
        )

    @property
    def percentage(self) -> float:
        """Present share in percent; 0 when no sessions are recorded."""
        if self.total_sessions == 0:
            return 0.0
        return self.present_count / self.total_sessions * 100.0


class EligibilityOutlook(BaseModel):
    """Recovery or safety-margin figures for a tally."""
    model_config = ConfigDict(frozen=True)

    classes_needed_to_reach_75: int = Field(ge=0)
    max_future_absences_allowed: int = Field(ge=0)


class ProjectionResult(BaseModel):
    """Outcome of a what-if scenario applied to a baseline tally."""
    model_config = ConfigDict(frozen=True)

    tally: CourseTally
    percentage: float
    tier: RiskTier
    transition: EligibilityTransition
    further_needed: int = Field(ge=0)


class LeaderboardEntry(BaseModel):
    """One subject's position within a course+cohort ranking."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    name: str
    percentage: float
    tier: RiskTier
    rank: int = Field(ge=1)


class CourseStanding(BaseModel):
    """A tally joined with its display name, tier and outlook."""
    model_config = ConfigDict(frozen=True)

    course_id: str
    course_name: str
    tally: CourseTally
    percentage: float
    tier: RiskTier
    outlook: EligibilityOutlook


class StudentStanding(BaseModel):
    """Per-student input to the course summarizer."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    name: str = "Unknown"
    tally: CourseTally
    tier: RiskTier

    @property
    def percentage(self) -> float:
        return self.tally.percentage


class CourseAnalytics(BaseModel):
    """Course-level distribution for instructor views."""
    model_config = ConfigDict(frozen=True)

    student_count: int = Field(ge=0)
    total_sessions: int = Field(ge=0)
    mean_percentage: float
    mean_tier: RiskTier
    tier_counts: Dict[RiskTier, int]
    students: List[StudentStanding] = Field(default_factory=list)


# HTTP request/response models

class TallyPayload(BaseModel):
    """Tally as sent over the wire: total and present only."""
    course_id: str = ""
    total_sessions: int
    present_count: int

    def to_tally(self) -> CourseTally:
        return CourseTally.from_counts(self.course_id, self.total_sessions, self.present_count)


class AggregateRequest(BaseModel):
    events: List[AttendanceEvent]
    course_id: Optional[str] = None


class ClassifyRequest(BaseModel):
    percentage: float


class ClassifyResponse(BaseModel):
    percentage: float
    tier: RiskTier
    label: str


class EligibilityResponse(BaseModel):
    tally: CourseTally
    percentage: float
    tier: RiskTier
    outlook: EligibilityOutlook
    message: str


class ProjectRequest(BaseModel):
    tally: TallyPayload
    future_present: int = 0
    future_absent: int = 0


class ProjectResponse(BaseModel):
    result: ProjectionResult
    message: str


class RankRequest(BaseModel):
    tallies: Dict[str, TallyPayload]
    cohort: Optional[List[str]] = None
    names: Dict[str, str] = Field(default_factory=dict)


class SummarizeRequest(BaseModel):
    tallies: Dict[str, TallyPayload]
    names: Dict[str, str] = Field(default_factory=dict)


class UploadResponse(BaseModel):
    """Response from the event-log upload endpoint."""
    success: bool
    message: str
    course_id: str
    analytics: CourseAnalytics
    leaderboard: List[LeaderboardEntry]
