"""
Spreadsheet import for ApplyTrack.

Drives the import end to end: resolve the sheet, read its rows, normalize
them and store the valid ones in one bulk insert.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from rich.console import Console

from .columns import HeaderIndexMap, clean_headers, require_headers
from .exceptions import (
    ConfigurationError,
    EmptySheetError,
    PersistenceError,
    SheetNotFoundError,
)
from .normalize import InterviewRecord, TransformResult, transform_rows
from .sheets import SheetSource, build_range

console = Console()

PREVIEW_ROWS = 5


@dataclass(frozen=True)
class ImportSummary:
    """Result of a committed import run."""
    total: int
    imported: int
    skipped: int
    skipped_rows: Tuple[int, ...] = ()
    errors: Tuple[str, ...] = ()
    preview_data: Tuple[InterviewRecord, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "imported": self.imported,
            "skipped": self.skipped,
            "skippedRows": list(self.skipped_rows),
            "errors": list(self.errors),
            "previewData": [record.to_dict() for record in self.preview_data],
        }


@dataclass
class ImportPreview:
    """Rows of a sheet as they would be imported, without storing anything."""
    sheet_name: Optional[str]
    headers: List[str]
    indices: HeaderIndexMap
    records: List[InterviewRecord] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total: int = 0
    preview_rows: int = PREVIEW_ROWS

    @property
    def preview_data(self) -> List[InterviewRecord]:
        return self.records[:self.preview_rows]

    def to_dict(self) -> Dict:
        return {
            "sheetName": self.sheet_name,
            "headers": self.headers,
            "total": self.total,
            "skippedRows": self.skipped_rows,
            "errors": self.errors,
            "previewData": [record.to_dict() for record in self.preview_data],
            "allData": [record.to_dict() for record in self.records],
        }


def validate_params(spreadsheet_id: Optional[str], access_token: Optional[str],
                    user_id: Optional[str], require_token: bool = True,
                    require_user: bool = True) -> None:
    """Reject a request that lacks a required parameter, before any network call."""
    if not spreadsheet_id:
        raise ConfigurationError("spreadsheetId")
    if require_token and not access_token:
        raise ConfigurationError("accessToken")
    if require_user and not user_id:
        raise ConfigurationError("userId")


class SheetImporter:
    """Imports job applications from a tabular source into the database."""

    def __init__(self, source: SheetSource, db=None, max_rows: int = 1000,
                 last_column: str = "F", preview_rows: int = PREVIEW_ROWS):
        self.source = source
        self.db = db
        self.max_rows = max_rows
        self.last_column = last_column
        self.preview_rows = preview_rows

    @property
    def requires_token(self) -> bool:
        return getattr(self.source, "requires_credentials", True)

    def _resolve_sheet_name(self, spreadsheet_id: str, sheet_name: Optional[str],
                            access_token: str) -> Optional[str]:
        titles = self.source.get_sheet_titles(spreadsheet_id, access_token)

        effective = sheet_name or (titles[0] if titles else None)
        if effective and effective not in titles:
            raise SheetNotFoundError(effective, titles)
        return effective

    def _load_sheet(self, spreadsheet_id: str, sheet_name: Optional[str], access_token: str):
        """Fetch the sheet and resolve its headers. Returns (name, headers, indices, data rows)."""
        effective = self._resolve_sheet_name(spreadsheet_id, sheet_name, access_token)
        console.print(f"[cyan]Fetching spreadsheet {spreadsheet_id}, sheet: {effective or 'first sheet'}[/cyan]")

        range_notation = build_range(effective, self.last_column, self.max_rows)
        values = self.source.get_values(spreadsheet_id, range_notation, access_token)
        if not values:
            raise EmptySheetError()

        console.print(f"Found {len(values)} rows in spreadsheet. Processing...")
        indices = require_headers(values[0])
        return effective, clean_headers(values[0]), indices, values[1:]

    def preview(self, spreadsheet_id: str, sheet_name: Optional[str] = None,
                access_token: Optional[str] = None, user_id: str = "") -> ImportPreview:
        """Transform a sheet for display without storing anything."""
        validate_params(spreadsheet_id, access_token, user_id,
                        require_token=self.requires_token, require_user=False)

        effective, headers, indices, data_rows = self._load_sheet(spreadsheet_id, sheet_name, access_token)
        result = transform_rows(data_rows, indices, user_id)

        return ImportPreview(
            sheet_name=effective,
            headers=headers,
            indices=indices,
            records=result.records,
            skipped_rows=result.skipped_rows,
            errors=result.errors,
            total=result.total,
            preview_rows=self.preview_rows,
        )

    def run_import(self, spreadsheet_id: str, sheet_name: Optional[str] = None,
                   access_token: Optional[str] = None, user_id: Optional[str] = None) -> ImportSummary:
        """
        Import a sheet into the interviews table.

        Args:
            spreadsheet_id: Spreadsheet identifier (or CSV path for local sources)
            sheet_name: Sheet to import; defaults to the first sheet
            access_token: OAuth access token for the Sheets API
            user_id: Owner of the imported interviews

        Returns:
            ImportSummary with counts, skipped row numbers, errors and a preview

        Raises:
            SheetImportError: on any failure that aborts the import
        """
        validate_params(spreadsheet_id, access_token, user_id, require_token=self.requires_token)
        if self.db is None:
            raise ConfigurationError("database")

        _, _, indices, data_rows = self._load_sheet(spreadsheet_id, sheet_name, access_token)
        result: TransformResult = transform_rows(data_rows, indices, user_id)

        inserted = 0
        if result.records:
            console.print(f"Inserting {len(result.records)} rows into the database")
            try:
                inserted = self.db.bulk_insert_interviews(result.records)
            except Exception as e:
                console.print(f"[red]Database insert error: {e}[/red]")
                raise PersistenceError(str(e), original_error=e) from e
            console.print(f"[green]Successfully inserted {inserted} rows[/green]")

        return ImportSummary(
            total=result.total,
            imported=inserted,
            skipped=len(result.skipped_rows),
            skipped_rows=tuple(result.skipped_rows),
            errors=tuple(result.errors),
            preview_data=tuple(result.records[:self.preview_rows]),
        )


def get_importer(source: Optional[SheetSource] = None, db_path: Optional[str] = None) -> SheetImporter:
    """Get an importer wired to configured settings and database."""
    from .config import get_config_manager
    from .db import get_db
    from .sheets import get_sheets_client

    config = get_config_manager()
    return SheetImporter(
        source=source or get_sheets_client(),
        db=get_db(db_path),
        max_rows=config.get('sheets', 'max_rows'),
        last_column=config.get('sheets', 'last_column'),
        preview_rows=config.get('sheets', 'preview_rows'),
    )
