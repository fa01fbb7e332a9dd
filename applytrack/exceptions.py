"""Exceptions raised by the spreadsheet import pipeline."""

from typing import List, Optional


class SheetImportError(Exception):
    """Base class for failures that abort a whole import run."""

    pass


class ConfigurationError(SheetImportError, ValueError):
    """A required request parameter is missing."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Missing required parameter: {parameter}")


class SheetFetchError(SheetImportError):
    """
    The tabular source could not return metadata or values.

    Attributes:
        message: Error description, usually taken from the API error body
        status_code: HTTP status returned by the source, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SheetNotFoundError(SheetImportError):
    """The requested sheet name is not present in the spreadsheet."""

    def __init__(self, sheet_name: str, available: List[str]):
        self.sheet_name = sheet_name
        self.available = list(available)
        super().__init__(
            f'Sheet "{sheet_name}" not found in the spreadsheet. '
            f"Available sheets: {', '.join(self.available)}"
        )


class EmptySheetError(SheetImportError):
    """The fetched range contains no rows at all."""

    def __init__(self, message: str = "No data found in the spreadsheet"):
        super().__init__(message)


class MissingColumnsError(SheetImportError):
    """
    The header row has no company or no date column.

    The message lists every header that was found so the user can
    rename the columns in the sheet.
    """

    def __init__(self, headers: List[str], missing: List[str]):
        self.headers = list(headers)
        self.missing = list(missing)
        super().__init__(
            "Missing required columns. Need at least 'Company' and 'Date' columns. "
            f"Found columns: {', '.join(self.headers)}"
        )


class RowTransformError(Exception):
    """A single row could not be turned into an interview record."""

    def __init__(self, row_number: int, message: str):
        self.row_number = row_number
        self.message = message
        super().__init__(f"Row {row_number}: {message}")


class PersistenceError(SheetImportError):
    """The bulk insert failed and no rows were stored."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Failed to insert interviews: {message}")
