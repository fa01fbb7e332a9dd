"""Unit tests for the tabular data sources."""

import pytest
import requests

from applytrack.exceptions import SheetFetchError, SheetImportError
from applytrack.importer import SheetImporter
from applytrack.sheets import (
    CsvWorkbook,
    GoogleSheetsAPI,
    build_range,
    column_number,
    extract_spreadsheet_id,
    parse_range,
)


class FakeResponse:
    def __init__(self, status_code, payload=None, text_body=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._text_body = text_body

    def json(self):
        if self._text_body:
            raise ValueError("not json")
        return self._payload


@pytest.mark.unit
def test_extract_spreadsheet_id_from_url():
    url = "https://docs.google.com/spreadsheets/d/1AbC-dEf_123/edit#gid=0"
    assert extract_spreadsheet_id(url) == "1AbC-dEf_123"


@pytest.mark.unit
def test_extract_spreadsheet_id_bare_and_invalid():
    bare = "1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms"
    assert extract_spreadsheet_id(bare) == bare
    assert extract_spreadsheet_id("https://example.com/sheet") is None
    assert extract_spreadsheet_id("") is None


@pytest.mark.unit
def test_build_range():
    assert build_range("Sheet1") == "'Sheet1'!A1:F1000"
    assert build_range(None) == "A1:F1000"
    assert build_range("Bob's Jobs", "h", 50) == "'Bob''s Jobs'!A1:H50"


@pytest.mark.unit
def test_parse_range_round_trip_of_quoted_name():
    assert parse_range("'Bob''s Jobs'!A1:F1000") == ("Bob's Jobs", 6, 1000)
    assert parse_range("A1:AA10") == (None, 27, 10)
    with pytest.raises(ValueError):
        parse_range("Sheet1!B2:C3")


@pytest.mark.unit
def test_column_number():
    assert column_number("A") == 1
    assert column_number("F") == 6
    assert column_number("z") == 26


@pytest.mark.unit
def test_google_sheets_titles(monkeypatch):
    api = GoogleSheetsAPI()
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen["url"] = url
        seen["auth"] = headers["Authorization"]
        return FakeResponse(200, {"sheets": [{"properties": {"title": "Sheet1"}},
                                             {"properties": {"title": "Data"}}]})

    monkeypatch.setattr(api.session, "get", fake_get)

    assert api.get_sheet_titles("abc", "tok") == ["Sheet1", "Data"]
    assert seen["url"] == "https://sheets.googleapis.com/v4/spreadsheets/abc"
    assert seen["auth"] == "Bearer tok"


@pytest.mark.unit
def test_google_sheets_values_url_encodes_range(monkeypatch):
    api = GoogleSheetsAPI(base_url="http://sheets.test/v4/spreadsheets/")
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen["url"] = url
        return FakeResponse(200, {"range": "x", "values": [["company"]]})

    monkeypatch.setattr(api.session, "get", fake_get)

    assert api.get_values("abc", "'My Sheet'!A1:F1000", "tok") == [["company"]]
    assert seen["url"] == "http://sheets.test/v4/spreadsheets/abc/values/%27My%20Sheet%27%21A1%3AF1000"


@pytest.mark.unit
def test_google_sheets_empty_range(monkeypatch):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(api.session, "get", lambda *a, **k: FakeResponse(200, {"range": "x"}))

    assert api.get_values("abc", "A1:F1000", "tok") == []


@pytest.mark.unit
def test_google_sheets_error_uses_api_message(monkeypatch):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(
        api.session, "get",
        lambda *a, **k: FakeResponse(403, {"error": {"message": "The caller does not have permission"}})
    )

    with pytest.raises(SheetFetchError) as exc_info:
        api.get_sheet_titles("abc", "tok")

    assert str(exc_info.value) == "The caller does not have permission"
    assert exc_info.value.status_code == 403


@pytest.mark.unit
def test_google_sheets_error_without_json(monkeypatch):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(api.session, "get", lambda *a, **k: FakeResponse(502, text_body=True))

    with pytest.raises(SheetFetchError, match="Failed to fetch spreadsheet data: 502"):
        api.get_values("abc", "A1:F1000", "tok")


@pytest.mark.unit
def test_google_sheets_transport_error(monkeypatch):
    api = GoogleSheetsAPI()

    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(api.session, "get", boom)

    with pytest.raises(SheetFetchError, match="offline"):
        api.get_sheet_titles("abc", "tok")


@pytest.mark.unit
def test_csv_workbook_single_file(tmp_path):
    path = tmp_path / "applications.csv"
    path.write_text("Company,Date,Status,Notes,Location,Role,Extra\nAcme,2025-01-01,Applied,,,\n\n\n",
                    encoding="utf-8")

    workbook = CsvWorkbook(str(path))

    assert workbook.get_sheet_titles() == ["applications"]
    values = workbook.get_values(str(path), build_range("applications"))
    assert values == [
        ["Company", "Date", "Status", "Notes", "Location", "Role"],
        ["Acme", "2025-01-01", "Applied"],
    ]


@pytest.mark.unit
def test_csv_workbook_row_limit_and_default_sheet(tmp_path):
    path = tmp_path / "big.csv"
    path.write_text("\n".join(["company,date"] + [f"C{i},2025-01-01" for i in range(20)]), encoding="utf-8")

    values = CsvWorkbook(str(path)).get_values("", build_range(None, "F", 5))

    assert len(values) == 5


@pytest.mark.unit
def test_csv_workbook_directory(tmp_path):
    (tmp_path / "b.csv").write_text("company,date\n", encoding="utf-8")
    (tmp_path / "a.csv").write_text("company,date\nAcme,2025-01-01\n", encoding="utf-8")

    workbook = CsvWorkbook(str(tmp_path))

    assert workbook.get_sheet_titles() == ["a", "b"]
    assert workbook.get_values("", build_range("b")) == [["company", "date"]]
    with pytest.raises(SheetFetchError):
        workbook.get_values("", build_range("missing"))


@pytest.mark.unit
def test_csv_workbook_missing_path(tmp_path):
    with pytest.raises(SheetFetchError):
        CsvWorkbook(str(tmp_path / "nope.csv")).get_sheet_titles()


@pytest.mark.unit
@pytest.mark.parametrize("payload,message", [
    ({"error": "invalid_token"}, "invalid_token"),
    ({"error": "invalid_grant", "error_description": "Token has been expired or revoked."},
     "Token has been expired or revoked."),
    (["unexpected", "list"], "Failed to fetch spreadsheet metadata: 401"),
    ({"error": None}, "Failed to fetch spreadsheet metadata: 401"),
])
def test_google_sheets_error_bodies_without_message_object(monkeypatch, payload, message):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(api.session, "get", lambda *a, **k: FakeResponse(401, payload))

    with pytest.raises(SheetFetchError) as exc_info:
        api.get_sheet_titles("abc", "tok")

    assert str(exc_info.value) == message
    assert exc_info.value.status_code == 401


@pytest.mark.unit
def test_google_sheets_string_error_aborts_import_cleanly(monkeypatch, db):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(api.session, "get", lambda *a, **k: FakeResponse(401, {"error": "invalid_token"}))

    with pytest.raises(SheetImportError, match="invalid_token"):
        SheetImporter(api, db).run_import("abc", access_token="tok", user_id="user-1")

    assert db.get_interview_count() == 0


@pytest.mark.unit
def test_google_sheets_non_object_success_body(monkeypatch):
    api = GoogleSheetsAPI()
    monkeypatch.setattr(api.session, "get", lambda *a, **k: FakeResponse(200, ["Sheet1"]))

    with pytest.raises(SheetFetchError, match="Invalid response"):
        api.get_sheet_titles("abc", "tok")


@pytest.mark.unit
def test_csv_workbook_empty_directory(tmp_path):
    workbook = CsvWorkbook(str(tmp_path))

    assert workbook.get_sheet_titles() == []
    with pytest.raises(SheetFetchError, match="No CSV files found in"):
        workbook.get_values("", build_range(None))
