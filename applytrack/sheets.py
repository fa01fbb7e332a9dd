"""
Tabular data sources for spreadsheet imports.

Provides a Google Sheets v4 REST client and a local CSV workbook that
exposes the same two calls: list sheet titles and read a cell range.
"""

import csv
import re
from pathlib import Path
from typing import List, Optional, Protocol, Tuple
from urllib.parse import quote

import requests

from .exceptions import SheetFetchError

SPREADSHEET_ID_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")
BARE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{20,}$")
RANGE_RE = re.compile(r"^(?:'(?P<sheet>(?:[^']|'')+)'!)?A1:(?P<column>[A-Z]+)(?P<rows>\d+)$")


class SheetSource(Protocol):
    """Anything that can list sheets and return a rectangular block of cells."""

    def get_sheet_titles(self, spreadsheet_id: str, access_token: str) -> List[str]:
        ...

    def get_values(self, spreadsheet_id: str, range_notation: str, access_token: str) -> List[List[str]]:
        ...


def extract_spreadsheet_id(url: str) -> Optional[str]:
    """Pull the spreadsheet id out of a Google Sheets URL; bare ids pass through."""
    if not url:
        return None
    match = SPREADSHEET_ID_RE.search(url)
    if match:
        return match.group(1)
    url = url.strip()
    if BARE_ID_RE.match(url):
        return url
    return None


def column_number(letters: str) -> int:
    """Convert a column label (A, F, AA) to its 1-based number."""
    number = 0
    for letter in letters.upper():
        number = number * 26 + (ord(letter) - ord("A") + 1)
    return number


def build_range(sheet_name: Optional[str], last_column: str = "F", max_rows: int = 1000) -> str:
    """A1 range covering the first max_rows rows from column A to last_column."""
    cells = f"A1:{last_column.upper()}{max_rows}"
    if not sheet_name:
        return cells
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{cells}"


def parse_range(range_notation: str) -> Tuple[Optional[str], int, int]:
    """Split a range built by build_range into (sheet name, column count, row count)."""
    match = RANGE_RE.match(range_notation)
    if not match:
        raise ValueError(f"Unsupported range: {range_notation}")
    sheet = match.group("sheet")
    if sheet is not None:
        sheet = sheet.replace("''", "'")
    return sheet, column_number(match.group("column")), int(match.group("rows"))


class GoogleSheetsAPI:
    """Client for the Google Sheets v4 REST API."""

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
    requires_credentials = True

    def __init__(self, base_url: Optional[str] = None, timeout: int = 30):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'applytrack-sheets/1.0',
            'Accept': 'application/json'
        })

    def _get(self, url: str, access_token: str, what: str) -> dict:
        try:
            response = self.session.get(
                url,
                headers={'Authorization': f'Bearer {access_token}'},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise SheetFetchError(f"Failed to fetch {what}: {e}") from e

        if not response.ok:
            message = None
            try:
                body = response.json()
            except ValueError:
                body = None
            # Sheets errors are {"error": {"message": ...}}; OAuth errors use a plain string
            if isinstance(body, dict):
                error = body.get('error')
                if isinstance(error, dict):
                    message = error.get('message')
                elif isinstance(error, str):
                    message = body.get('error_description') or error
            raise SheetFetchError(
                message or f"Failed to fetch {what}: {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SheetFetchError(f"Invalid response while fetching {what}") from e
        if not isinstance(data, dict):
            raise SheetFetchError(f"Invalid response while fetching {what}")
        return data

    def get_metadata(self, spreadsheet_id: str, access_token: str) -> dict:
        """Fetch spreadsheet metadata, including the list of sheets."""
        return self._get(f"{self.base_url}/{spreadsheet_id}", access_token, "spreadsheet metadata")

    def get_sheet_titles(self, spreadsheet_id: str, access_token: str) -> List[str]:
        """Titles of every sheet, in tab order."""
        metadata = self.get_metadata(spreadsheet_id, access_token)
        return [sheet.get('properties', {}).get('title', '') for sheet in metadata.get('sheets', [])]

    def get_values(self, spreadsheet_id: str, range_notation: str, access_token: str) -> List[List[str]]:
        """Fetch the cell values of a range. Empty ranges come back as []."""
        url = f"{self.base_url}/{spreadsheet_id}/values/{quote(range_notation, safe='')}"
        data = self._get(url, access_token, "spreadsheet data")
        return data.get('values', [])


class CsvWorkbook:
    """
    Local CSV files read as a spreadsheet.

    A single .csv file is a workbook with one sheet named after the file
    stem. A directory is a workbook with one sheet per .csv file, sorted
    by name. The spreadsheet id and access token are ignored.
    """

    requires_credentials = False

    def __init__(self, path: str, encoding: str = "utf-8-sig"):
        self.path = Path(path)
        self.encoding = encoding

    def _sheet_files(self) -> List[Path]:
        if self.path.is_dir():
            return sorted(self.path.glob("*.csv"))
        if self.path.is_file():
            return [self.path]
        raise SheetFetchError(f"CSV source not found: {self.path}")

    def get_sheet_titles(self, spreadsheet_id: str = "", access_token: str = "") -> List[str]:
        return [sheet_file.stem for sheet_file in self._sheet_files()]

    def get_values(self, spreadsheet_id: str, range_notation: str, access_token: str = "") -> List[List[str]]:
        sheet_name, columns, max_rows = parse_range(range_notation)

        files = self._sheet_files()
        if not files:
            raise SheetFetchError(f"No CSV files found in {self.path}")
        if sheet_name is None:
            sheet_file = files[0]
        else:
            sheet_file = next((f for f in files if f.stem == sheet_name), None)
        if sheet_file is None:
            raise SheetFetchError(f"Unable to parse range: {range_notation}")

        values = []
        try:
            with open(sheet_file, 'r', encoding=self.encoding, newline='') as f:
                for row in csv.reader(f):
                    if len(values) >= max_rows:
                        break
                    cells = row[:columns]
                    # Match the Sheets API, which drops trailing empty cells
                    while cells and not cells[-1].strip():
                        cells.pop()
                    values.append(cells)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise SheetFetchError(f"Error reading {sheet_file}: {e}") from e

        while values and not values[-1]:
            values.pop()
        return values


def get_sheets_client() -> GoogleSheetsAPI:
    """Get a Sheets client configured from settings."""
    from .config import get_config_manager
    config = get_config_manager()
    return GoogleSheetsAPI(
        base_url=config.get('sheets', 'api_base_url'),
        timeout=config.get('sheets', 'timeout')
    )
