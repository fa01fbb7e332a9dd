"""Unit tests for date, status and row normalization."""

import pytest

from applytrack.columns import resolve_headers
from applytrack.normalize import (
    IMPORT_SOURCE,
    DateParse,
    InterviewRecord,
    Status,
    is_row_importable,
    normalize_date,
    normalize_row,
    normalize_status,
    parse_date,
    transform_rows,
)


# Date normalization

@pytest.mark.unit
@pytest.mark.parametrize("value", ["2025-01-15", "1999-12-31", "2024-02-29", "2030-07-04"])
def test_iso_dates_are_unchanged(value):
    assert normalize_date(value) == value


@pytest.mark.unit
def test_slash_date_with_small_first_part_is_month_first():
    assert normalize_date("03/04/2025") == "2025-03-04"
    assert normalize_date("01/15/2025") == "2025-01-15"


@pytest.mark.unit
def test_slash_date_with_large_first_part_is_day_first():
    assert normalize_date("25/03/2025") == "2025-03-25"
    assert normalize_date("13/05/2024") == "2024-05-13"


@pytest.mark.unit
def test_dash_date_with_short_first_segment_is_day_first():
    assert normalize_date("15-01-2025") == "2025-01-15"
    assert normalize_date("5-6-2024") == "2024-06-05"


@pytest.mark.unit
def test_month_name_dates():
    assert normalize_date("January 15, 2025") == "2025-01-15"
    assert normalize_date("Mar 3 2024") == "2024-03-03"
    assert normalize_date("7 Feb 2025") == "2025-02-07"


@pytest.mark.unit
def test_iso_date_with_time_part():
    assert normalize_date("2025-01-15T09:30:00Z") == "2025-01-15"


@pytest.mark.unit
def test_year_first_slash_date():
    assert normalize_date("2025/01/15") == "2025-01-15"


@pytest.mark.unit
def test_two_digit_year():
    assert normalize_date("1/15/25") == "2025-01-15"


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("12/31/99", "1999-12-31"),
    ("01/02/50", "1950-01-02"),
    ("01/02/49", "2049-01-02"),
    ("31/12/00", "2000-12-31"),
    ("15-01-75", "1975-01-15"),
])
def test_two_digit_year_pivot(value, expected):
    assert normalize_date(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("Sept 9, 2024", "2024-09-09"),
    ("Jan. 5, 2025", "2025-01-05"),
    ("Wednesday, January 15, 2025", "2025-01-15"),
    ("15 MAY 2025", "2025-05-15"),
])
def test_english_month_names(value, expected):
    assert normalize_date(value) == expected


@pytest.mark.unit
def test_unknown_month_name_is_verbatim():
    assert normalize_date("Smarch 3, 2025") == "Smarch 3, 2025"
    assert normalize_date("February 30, 2025") == "February 30, 2025"


@pytest.mark.unit
@pytest.mark.parametrize("value", ["not a date", "02/30/2025", "13/13/2025", "a/b/c", "1/2", "2025-13-01", "soon-ish"])
def test_unreadable_dates_are_returned_verbatim(value):
    assert normalize_date(value) == value


@pytest.mark.unit
@pytest.mark.parametrize("value", ["", "   ", None])
def test_empty_dates(value):
    assert normalize_date(value) == ""


@pytest.mark.unit
def test_parse_date_is_tagged():
    assert parse_date("03/04/2025") == DateParse(True, "2025-03-04")
    assert parse_date("whenever") == DateParse(False, "whenever")


# Status normalization

@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("Interview scheduled", "Interviewing"),
    ("Interviewing Round 2", "Interviewing"),
    ("Offer extended", "Offer"),
    ("REJECTED", "Rejected"),
    ("rejection email", "Rejected"),
    ("applied", "Applied"),
    ("N/A", "Applied"),
    ("ghosted", "Applied"),
    ("", "Applied"),
    (None, "Applied"),
    ("  offer  ", "Offer"),
])
def test_normalize_status(value, expected):
    assert normalize_status(value) == expected


@pytest.mark.unit
def test_status_earliest_member_wins():
    # Mentions both; Interviewing is declared before Offer
    assert normalize_status("interviewing, expecting offer") == "Interviewing"


@pytest.mark.unit
def test_status_values_are_fixed():
    assert [s.value for s in Status] == ["Applied", "Interviewing", "Offer", "Rejected"]


# Row transformation

@pytest.fixture
def indices():
    return resolve_headers(["Company", "Role", "Date Applied", "Status", "Notes", "Location"])


@pytest.mark.unit
def test_normalize_row_builds_record(indices):
    row = ["Acme", "Engineer", "03/04/2025", "Interview scheduled", "Referred", "Remote"]
    record = normalize_row(row, indices, "user-1")

    assert record == InterviewRecord(
        user_id="user-1",
        company="Acme",
        role="Engineer",
        date_applied="2025-03-04",
        status="Interviewing",
        notes="Referred",
        location="Remote",
        source=IMPORT_SOURCE,
    )


@pytest.mark.unit
def test_normalize_row_short_row_and_absent_columns():
    indices = resolve_headers(["Company", "Date"])
    record = normalize_row(["Acme", "2025-01-01"], indices, "u")

    assert record.role == ""
    assert record.notes == ""
    assert record.location == ""
    assert record.status == "Applied"


@pytest.mark.unit
def test_normalize_row_blank_status_defaults(indices):
    record = normalize_row(["Acme", "", "2025-01-01"], indices, "u")
    assert record.status == "Applied"


@pytest.mark.unit
def test_records_are_frozen(indices):
    record = normalize_row(["Acme", "", "2025-01-01"], indices, "u")
    with pytest.raises(Exception):
        record.company = "Other"


@pytest.mark.unit
def test_record_to_dict_keys(indices):
    record = normalize_row(["Acme", "Dev", "2025-01-01"], indices, "u")
    assert set(record.to_dict()) == {
        "user_id", "company", "role", "date_applied", "status", "notes", "location", "source"
    }


@pytest.mark.unit
def test_is_row_importable(indices):
    assert is_row_importable(["Acme", "", "2025-01-01"], indices)
    assert not is_row_importable(["", "Dev", "2025-01-01"], indices)
    assert not is_row_importable(["Acme", "Dev", "   "], indices)
    assert not is_row_importable(["Acme"], indices)


@pytest.mark.unit
def test_transform_rows_separates_skips_from_errors(indices):
    class Exploding:
        def __str__(self):
            raise TypeError("unreadable cell")

    rows = [
        ["Acme", "Dev", "2025-01-01", "offer"],
        ["", "Dev", "2025-01-02"],
        ["Globex", Exploding(), "2025-01-03"],
    ]
    result = transform_rows(rows, indices, "u")

    assert result.total == 3
    assert [r.company for r in result.records] == ["Acme"]
    assert result.skipped_rows == [3, 4]
    assert result.errors == ["Row 4: unreadable cell"]


@pytest.mark.unit
def test_transform_rows_missing_company_is_not_an_error(indices):
    result = transform_rows([["", "Dev", "2025-01-01"]], indices, "u")

    assert result.records == []
    assert result.skipped_rows == [2]
    assert result.errors == []
