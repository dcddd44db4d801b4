"""Parsing of raw attendance records and event-log exports."""

import logging
import re
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, List, Mapping

import numpy as np
import pandas as pd

from attendance_intel.models import AttendanceEvent

logger = logging.getLogger(__name__)

# Target field -> accepted column/key spellings (already normalized).
FIELD_VARIATIONS: Dict[str, List[str]] = {
    'subject_id': ["subject id", "subjectid", "subject_id", "student id", "studentid",
                   "student_id", "student#", "student number", "user id", "userid"],
    'course_id': ["course id", "courseid", "course_id", "course", "course code", "coursecode"],
    'occurred_on': ["occurred on", "occurredon", "occurred_on", "date", "class date", "session date"],
    'present': ["present", "status", "attendance", "attended"],
}

PRESENT_VALUES = {"present", "p", "yes", "y", "true", "1", "attended"}
ABSENT_VALUES = {"absent", "a", "no", "n", "false", "0", "missed"}


def normalize_col_name(col_name: Any) -> str:
    """Lowercase, trim, drop punctuation and collapse whitespace."""
    if col_name is None or (isinstance(col_name, float) and pd.isna(col_name)):
        return ""
    # camelCase -> "camel case" so studentId matches "student id"
    normalized = re.sub(r'(?<=[a-z])(?=[A-Z])', ' ', str(col_name).strip())
    normalized = normalized.lower()
    normalized = re.sub(r'[.,%]', '', normalized)
    normalized = re.sub(r'\s+', ' ', normalized)
    return normalized.strip()


def _match_field(name: Any) -> str:
    normalized = normalize_col_name(name)
    for field, variations in FIELD_VARIATIONS.items():
        if normalized in variations:
            return field
    return ""


def parse_status(value: Any) -> bool:
    """
    Interpret a present/absent marker.

    Accepts booleans, 0/1 and common strings ("present", "absent", "P", "A", ...).
    """
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)) and value in (0, 1):
        return bool(value)
    # Numeric Excel columns with a blank cell come back as float64
    if isinstance(value, (float, np.floating)) and float(value) in (0.0, 1.0):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in PRESENT_VALUES:
            return True
        if token in ABSENT_VALUES:
            return False
    raise ValueError(f"Unrecognised attendance status: {value!r}")


def parse_date(value: Any) -> date:
    """Coerce a date, datetime, pandas Timestamp or ISO string to a date."""
    if value is pd.NaT:
        raise ValueError("Missing event date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise ValueError("Missing event date")
    try:
        return pd.Timestamp(value).date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unrecognised event date: {value!r}") from e


def clean_id(value: Any) -> str:
    """Render an id as text; Excel hands integer ids back as floats."""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def parse_event(record: Mapping[str, Any]) -> AttendanceEvent:
    """
    Build an AttendanceEvent from a dict-like record.

    Keys may be snake_case (``subject_id``) or camelCase (``studentId``,
    ``courseId``, ``date``, ``status``).
    """
    fields: Dict[str, Any] = {}
    for key, value in record.items():
        field = _match_field(key)
        if field and field not in fields:
            fields[field] = value

    missing = [f for f in FIELD_VARIATIONS if f not in fields]
    if missing:
        raise ValueError(f"Event record is missing {', '.join(missing)}: {dict(record)!r}")

    return AttendanceEvent(
        subject_id=clean_id(fields['subject_id']),
        course_id=clean_id(fields['course_id']),
        occurred_on=parse_date(fields['occurred_on']),
        present=parse_status(fields['present']),
    )


def normalize_event_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename event-log columns to the canonical field names.

    Columns that match no field are left alone; the first column matching a
    field wins.
    """
    df = df.copy()
    rename = {}
    for col in df.columns:
        field = _match_field(col)
        if field and field not in rename.values():
            rename[col] = field

    if rename:
        df = df.rename(columns=rename)
        logger.debug("Renamed event columns: %s", rename)

    missing = [f for f in FIELD_VARIATIONS if f not in df.columns]
    if missing:
        raise ValueError(
            f"Event log is missing required column(s) {missing}. Columns found: {list(df.columns)}"
        )
    return df[list(FIELD_VARIATIONS)]


def events_from_frame(df: pd.DataFrame) -> List[AttendanceEvent]:
    """Convert an event-log DataFrame into AttendanceEvents, skipping blank rows."""
    df = normalize_event_columns(df)

    blank = df.isna().all(axis=1)
    if blank.any():
        logger.warning("Dropping %d blank row(s) from event log", int(blank.sum()))
        df = df[~blank]

    events = []
    for idx, row in df.iterrows():
        try:
            events.append(parse_event(row.to_dict()))
        except ValueError as e:
            raise ValueError(f"Row {idx}: {e}") from e
    return events


def load_event_file(file_bytes: bytes, filename: str) -> List[AttendanceEvent]:
    """
    Load an attendance event export.

    Args:
        file_bytes: Raw bytes of the uploaded file
        filename: Original name; the extension selects CSV or Excel parsing

    Returns:
        Parsed events, in file order
    """
    name = filename.lower()
    buffer = BytesIO(file_bytes)
    if name.endswith('.csv'):
        df = pd.read_csv(buffer, dtype=str)
    elif name.endswith('.xlsx'):
        df = pd.read_excel(buffer, engine='openpyxl')
    else:
        raise ValueError(f"Unsupported event file type: {filename!r} (expected .csv or .xlsx)")

    logger.debug("Loaded event file %s: %d rows, columns %s", filename, len(df), list(df.columns))
    return events_from_frame(df)
