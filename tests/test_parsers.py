"""Unit tests for parsers module."""

from datetime import date, datetime
from io import BytesIO

import pandas as pd
import pytest

from attendance_intel.parsers import (
    clean_id,
    events_from_frame,
    load_event_file,
    normalize_col_name,
    parse_date,
    parse_event,
    parse_status,
)


def test_normalize_col_name():
    assert normalize_col_name("  Student ID ") == "student id"
    assert normalize_col_name("studentId") == "student id"
    assert normalize_col_name("Course.Code") == "coursecode"
    assert normalize_col_name(None) == ""


def test_parse_status():
    assert parse_status(True) is True
    assert parse_status(False) is False
    assert parse_status("present") is True
    assert parse_status(" Absent ") is False
    assert parse_status("P") is True
    assert parse_status(0) is False
    assert parse_status(1) is True
    with pytest.raises(ValueError):
        parse_status("late")
    with pytest.raises(ValueError):
        parse_status(None)


def test_parse_date():
    assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
    assert parse_date(datetime(2024, 3, 1, 9, 30)) == date(2024, 3, 1)
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date(pd.Timestamp("2024-03-01 10:00")) == date(2024, 3, 1)
    with pytest.raises(ValueError):
        parse_date(None)
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_clean_id():
    assert clean_id(1042.0) == "1042"
    assert clean_id(" stu-7 ") == "stu-7"
    assert clean_id(15) == "15"


def test_parse_event_camel_case_record():
    record = {
        "studentId": "stu-1",
        "courseId": "CSE101",
        "date": "2024-03-01T09:00:00",
        "status": "present",
        "markedBy": "teacher-9",
    }
    event = parse_event(record)
    assert event.subject_id == "stu-1"
    assert event.course_id == "CSE101"
    assert event.occurred_on == date(2024, 3, 1)
    assert event.present is True


def test_parse_event_snake_case_record():
    event = parse_event({
        "subject_id": "stu-2",
        "course_id": "MAT201",
        "occurred_on": date(2024, 3, 2),
        "present": False,
    })
    assert event.present is False


def test_parse_event_missing_field():
    with pytest.raises(ValueError, match="course_id"):
        parse_event({"studentId": "stu-1", "date": "2024-03-01", "status": "present"})


def test_events_from_frame():
    df = pd.DataFrame({
        "Student ID": ["stu-1", "stu-1", None, "stu-2"],
        "Course": ["CSE101", "CSE101", None, "CSE101"],
        "Date": ["2024-03-01", "2024-03-02", None, "2024-03-01"],
        "Status": ["Present", "Absent", None, "present"],
    })
    events = events_from_frame(df)
    assert len(events) == 3
    assert [e.present for e in events] == [True, False, True]


def test_events_from_frame_missing_column():
    df = pd.DataFrame({"Student ID": ["stu-1"], "Date": ["2024-03-01"], "Status": ["present"]})
    with pytest.raises(ValueError, match="course_id"):
        events_from_frame(df)


def test_events_from_frame_bad_status_reports_row():
    df = pd.DataFrame({
        "studentId": ["stu-1"],
        "courseId": ["CSE101"],
        "date": ["2024-03-01"],
        "status": ["excused"],
    })
    with pytest.raises(ValueError, match="Row 0"):
        events_from_frame(df)


def test_load_event_file_csv():
    content = (
        "studentId,courseId,date,status\n"
        "001,CSE101,2024-03-01,present\n"
        "001,CSE101,2024-03-02,absent\n"
    ).encode("utf-8")
    events = load_event_file(content, "export.csv")
    assert [e.subject_id for e in events] == ["001", "001"]
    assert [e.present for e in events] == [True, False]


def test_load_event_file_excel():
    df = pd.DataFrame({
        "Student ID": [1042, 1042],
        "Course ID": ["CSE101", "CSE101"],
        "Date": [datetime(2024, 3, 1), datetime(2024, 3, 2)],
        "Status": ["present", "present"],
    })
    buffer = BytesIO()
    df.to_excel(buffer, index=False, engine="openpyxl")
    events = load_event_file(buffer.getvalue(), "export.xlsx")
    assert [e.subject_id for e in events] == ["1042", "1042"]
    assert events[1].occurred_on == date(2024, 3, 2)


def test_load_event_file_rejects_unknown_extension():
    with pytest.raises(ValueError):
        load_event_file(b"", "export.json")


def test_parse_status_float_markers():
    assert parse_status(1.0) is True
    assert parse_status(0.0) is False
    with pytest.raises(ValueError):
        parse_status(0.5)
    with pytest.raises(ValueError):
        parse_status(float("nan"))


def test_load_event_file_excel_numeric_status_with_blank_row():
    df = pd.DataFrame({
        "Student ID": [1, None, 2],
        "Course": ["CSE101", None, "CSE101"],
        "Date": [datetime(2024, 3, 1), None, datetime(2024, 3, 1)],
        "Present": [1, None, 0],
    })
    buffer = BytesIO()
    df.to_excel(buffer, index=False, engine="openpyxl")
    events = load_event_file(buffer.getvalue(), "export.xlsx")
    assert [e.subject_id for e in events] == ["1", "2"]
    assert [e.present for e in events] == [True, False]


def test_load_event_file_rejects_legacy_xls():
    with pytest.raises(ValueError, match="expected .csv or .xlsx"):
        load_event_file(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "export.xls")
