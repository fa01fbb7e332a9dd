"""Unit tests for header resolution."""

import pytest

from applytrack.columns import (
    NOT_FOUND,
    HeaderIndexMap,
    clean_headers,
    match_header,
    require_headers,
    resolve_headers,
)
from applytrack.exceptions import MissingColumnsError


@pytest.mark.unit
def test_resolve_descriptive_headers():
    """Common spreadsheet headers map to their fields."""
    indices = resolve_headers(["Company Name", "Position", "Applied On", "Current Status"])

    assert indices.company == 0
    assert indices.role == 1
    assert indices.date_applied == 2
    assert indices.status == 3
    assert indices.notes == NOT_FOUND
    assert indices.location == NOT_FOUND


@pytest.mark.unit
def test_resolve_all_fields():
    headers = ["Job Title", "Company", "Date Submitted", "Stage", "Comments", "City"]
    indices = resolve_headers(headers)

    assert indices.to_dict() == {
        "company": 1,
        "role": 0,
        "date_applied": 2,
        "status": 3,
        "notes": 4,
        "location": 5,
    }


@pytest.mark.unit
def test_when_matches_only_exactly():
    assert resolve_headers(["company", "When"]).date_applied == 1
    assert resolve_headers(["company", "whenever"]).date_applied == NOT_FOUND


@pytest.mark.unit
def test_first_matching_column_wins():
    """A later column matching an already resolved field is ignored."""
    indices = resolve_headers(["Company", "Date Applied", "Follow-up Date", "Parent Company"])

    assert indices.company == 0
    assert indices.date_applied == 1


@pytest.mark.unit
def test_column_maps_to_single_field():
    """'Company Location' is a company column, not a location column."""
    indices = resolve_headers(["Company Location", "Date"])

    assert indices.company == 0
    assert indices.location == NOT_FOUND


@pytest.mark.unit
def test_priority_order_of_predicates():
    # "application status" contains both "application" and "status"; date is tested first
    assert match_header("application status") == "date_applied"
    assert match_header("job description") == "role"
    assert match_header("salary") == ""


@pytest.mark.unit
def test_headers_are_trimmed_and_lowercased():
    assert clean_headers(["  Company ", "DATE", None]) == ["company", "date", ""]
    assert resolve_headers(["  COMPANY  ", "  Date "]).is_importable


@pytest.mark.unit
def test_require_headers_rejects_missing_columns():
    with pytest.raises(MissingColumnsError) as exc_info:
        require_headers(["Name", "Notes"])

    message = str(exc_info.value)
    assert "name" in message
    assert "notes" in message
    assert exc_info.value.missing == ["company", "date_applied"]


@pytest.mark.unit
def test_require_headers_missing_date_only():
    with pytest.raises(MissingColumnsError) as exc_info:
        require_headers(["Company", "Role"])

    assert exc_info.value.missing == ["date_applied"]


@pytest.mark.unit
def test_header_index_map_defaults():
    indices = HeaderIndexMap()

    assert not indices.is_importable
    assert not indices.has("company")
