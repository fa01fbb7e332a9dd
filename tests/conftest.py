"""Shared fixtures for ApplyTrack tests."""

import pytest

from applytrack.config import reload_config
from applytrack.db import ApplyTrackDB
from applytrack.importer import SheetImporter


class FakeSheetSource:
    """In-memory stand-in for the Google Sheets API."""

    requires_credentials = True

    def __init__(self, sheets):
        # sheets: {title: rows}
        self.sheets = sheets
        self.calls = []

    def get_sheet_titles(self, spreadsheet_id, access_token):
        self.calls.append(("metadata", spreadsheet_id))
        return list(self.sheets)

    def get_values(self, spreadsheet_id, range_notation, access_token):
        self.calls.append(("values", range_notation))
        for title, rows in self.sheets.items():
            if range_notation.startswith(f"'{title}'!"):
                return [list(row) for row in rows]
        return []


class FailingDB:
    """Bulk insert that always fails."""

    def __init__(self):
        self.closed = False

    def bulk_insert_interviews(self, records):
        raise RuntimeError("insert rejected")

    def close(self):
        self.closed = True


SAMPLE_ROWS = [
    ["company", "role", "date", "status"],
    ["Acme", "Engineer", "01/15/2025", "applied"],
    ["", "Dev", "2025-02-01", "offer"],
]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test against a config rooted in tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APPLYTRACK_DB_PATH", str(tmp_path / "data" / "applytrack.db"))
    config = reload_config()
    yield config
    monkeypatch.delenv("APPLYTRACK_DB_PATH", raising=False)
    reload_config()


@pytest.fixture
def db(tmp_path):
    database = ApplyTrackDB(str(tmp_path / "data" / "applytrack.db"))
    yield database
    database.close()


@pytest.fixture
def sample_source():
    return FakeSheetSource({"Sheet1": SAMPLE_ROWS, "Data": [["company", "date"]]})


@pytest.fixture
def importer(sample_source, db):
    return SheetImporter(sample_source, db)
