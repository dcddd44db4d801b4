"""FastAPI application exposing the Attendance Intelligence Engine."""

import logging
import os
import traceback
from typing import Dict, List, Optional

from fastapi import FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from attendance_intel.account import Account, AccountState, AccountStateError, require_active
from attendance_intel.aggregation import aggregate, unknown_name_label
from attendance_intel.analytics import course_student_standings, summarize
from attendance_intel.leaderboard import rank
from attendance_intel.messages import eligibility_message, projection_message
from attendance_intel.models import (
    AggregateRequest,
    ClassifyRequest,
    ClassifyResponse,
    CourseAnalytics,
    CourseTally,
    EligibilityResponse,
    LeaderboardEntry,
    ProjectRequest,
    ProjectResponse,
    RankRequest,
    RiskTier,
    StudentStanding,
    SummarizeRequest,
    TallyPayload,
    UploadResponse,
)
from attendance_intel.parsers import load_event_file
from attendance_intel.risk import classify, eligibility, project

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Attendance Intelligence Engine", version="1.0.0")

# CORS configuration
allow_origins = os.getenv('ALLOW_ORIGINS', '*').split(',')
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_UPLOAD_SIZE_MB = int(os.getenv('MAX_UPLOAD_SIZE_MB', '10'))
MAX_UPLOAD_SIZE = MAX_UPLOAD_SIZE_MB * 1024 * 1024


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler_json(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions and return JSON."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_json(request: Request, exc: RequestValidationError):
    """Handle request-body validation errors and return JSON."""
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(AccountStateError)
async def account_state_handler(request: Request, exc: AccountStateError):
    """Closed account gate or unknown account state is forbidden."""
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Engine and parser validation failures are client errors."""
    return JSONResponse(status_code=400, content={"detail": str(exc), "type": type(exc).__name__})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and return JSON."""
    error_detail = str(exc)
    if os.getenv('DEBUG', 'False').lower() == 'true':
        error_detail = f"{str(exc)}\n\n{traceback.format_exc()}"
    logger.error("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {error_detail}", "type": type(exc).__name__}
    )


def check_account(account_state: Optional[str], user_id: Optional[str]) -> None:
    """Apply the active-account gate when the caller reports an account state."""
    if account_state is None:
        return
    try:
        state = AccountState(account_state.strip().lower())
    except ValueError:
        raise AccountStateError(f"Unknown account state: {account_state!r}")
    require_active(Account(user_id=user_id or "anonymous", state=state))


def _tallies(payloads: Dict[str, TallyPayload]) -> Dict[str, CourseTally]:
    return {subject_id: payload.to_tally() for subject_id, payload in payloads.items()}


@app.get("/health")
async def health_check():
    """Health check endpoint to test server connectivity."""
    return JSONResponse(content={"status": "ok", "message": "Server is running"})


@app.post("/aggregate", response_model=List[CourseTally])
async def aggregate_endpoint(
    request: AggregateRequest,
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    check_account(x_account_state, x_user_id)
    return aggregate(request.events, course_id=request.course_id)


@app.post("/classify", response_model=ClassifyResponse)
async def classify_endpoint(request: ClassifyRequest):
    tier = classify(request.percentage)
    return ClassifyResponse(percentage=request.percentage, tier=tier, label=tier.label)


@app.post("/eligibility", response_model=EligibilityResponse)
async def eligibility_endpoint(
    request: TallyPayload,
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    check_account(x_account_state, x_user_id)
    tally = request.to_tally()
    return EligibilityResponse(
        tally=tally,
        percentage=tally.percentage,
        tier=classify(tally.percentage),
        outlook=eligibility(tally),
        message=eligibility_message(tally),
    )


@app.post("/project", response_model=ProjectResponse)
async def project_endpoint(
    request: ProjectRequest,
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    """Run a what-if scenario against a baseline tally."""
    check_account(x_account_state, x_user_id)
    result = project(request.tally.to_tally(), request.future_present, request.future_absent)
    return ProjectResponse(result=result, message=projection_message(result))


@app.post("/rank", response_model=List[LeaderboardEntry])
async def rank_endpoint(
    request: RankRequest,
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    """Leaderboard for one course and cohort."""
    check_account(x_account_state, x_user_id)
    return rank(_tallies(request.tallies), cohort=request.cohort, names=request.names)


@app.post("/summarize", response_model=CourseAnalytics)
async def summarize_endpoint(
    request: SummarizeRequest,
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    """Course distribution for instructor views."""
    check_account(x_account_state, x_user_id)
    standings = []
    for subject_id, tally in _tallies(request.tallies).items():
        standings.append(StudentStanding(
            subject_id=subject_id,
            name=request.names.get(subject_id, unknown_name_label()),
            tally=tally,
            tier=classify(tally.percentage),
        ))
    return summarize(standings)


@app.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    course_id: str = Form(...),
    x_account_state: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
):
    """Upload a course event log and return its analytics and leaderboard."""
    check_account(x_account_state, x_user_id)

    file_bytes = await file.read()
    if len(file_bytes) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_UPLOAD_SIZE_MB}MB"
        )

    if not file.filename or not file.filename.lower().endswith((".csv", ".xlsx")):
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Please upload a CSV or Excel file (.csv or .xlsx)"
        )

    events = load_event_file(file_bytes, file.filename)
    standings = course_student_standings(events, course_id)
    if not standings:
        raise HTTPException(status_code=400, detail=f"No attendance events found for course {course_id!r}.")

    analytics = summarize(standings)
    leaderboard = rank({s.subject_id: s.tally for s in standings})

    logger.info(
        "Processed %s for %s: %d students (%d safe, %d warning, %d critical), mean %.1f%%",
        file.filename, course_id, analytics.student_count,
        analytics.tier_counts[RiskTier.SAFE],
        analytics.tier_counts[RiskTier.WARNING],
        analytics.tier_counts[RiskTier.CRITICAL],
        analytics.mean_percentage,
    )

    return UploadResponse(
        success=True,
        message=f"Successfully processed {len(events)} events for {analytics.student_count} students",
        course_id=course_id,
        analytics=analytics,
        leaderboard=leaderboard,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
