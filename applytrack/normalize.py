"""
Row normalization for imported spreadsheet data.

Turns raw sheet rows into interview records. The same functions back both
the import preview and the committed import so the two never disagree.
"""

import re
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence

from .columns import HeaderIndexMap, NOT_FOUND
from .exceptions import RowTransformError

IMPORT_SOURCE = "import"

# Sheet row numbers are 1-based and row 1 holds the headers
FIRST_DATA_ROW = 2


class Status(str, Enum):
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER = "Offer"
    REJECTED = "Rejected"


DEFAULT_STATUS = Status.APPLIED

# Substrings that identify each status, checked in declaration order
STATUS_KEYWORDS = {
    Status.APPLIED: ("applied",),
    Status.INTERVIEWING: ("interviewing", "interview"),
    Status.OFFER: ("offer",),
    Status.REJECTED: ("rejected", "reject"),
}

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")

YEAR_FIRST_SLASH_FORMAT = "%Y/%m/%d"

# English month names, independent of the process locale
MONTH_NUMBERS = {
    name: number
    for number, names in enumerate((
        ("january", "jan"), ("february", "feb"), ("march", "mar"), ("april", "apr"),
        ("may",), ("june", "jun"), ("july", "jul"), ("august", "aug"),
        ("september", "sep", "sept"), ("october", "oct"), ("november", "nov"),
        ("december", "dec"),
    ), start=1)
    for name in names
}

# "January 15, 2025", "Jan. 15 2025", "Wednesday, January 15, 2025"
MONTH_FIRST_RE = re.compile(
    r"^(?:[A-Za-z]+,\s*)?(?P<month>[A-Za-z]+)\.?\s+(?P<day>\d{1,2}),?\s+(?P<year>\d{4})$"
)
# "15 January 2025", "7 Feb, 2025"
DAY_FIRST_RE = re.compile(r"^(?P<day>\d{1,2})\s+(?P<month>[A-Za-z]+)\.?,?\s+(?P<year>\d{4})$")

# Two-digit years below this are 20xx, the rest 19xx
TWO_DIGIT_YEAR_PIVOT = 50


class DateParse(NamedTuple):
    """Tagged result of a date parse: ok with an ISO value, or the original text."""
    ok: bool
    value: str


@dataclass(frozen=True)
class InterviewRecord:
    """A normalized, storage-ready application row."""
    user_id: str
    company: str
    role: str = ""
    date_applied: str = ""
    status: str = DEFAULT_STATUS.value
    notes: str = ""
    location: str = ""
    source: str = IMPORT_SOURCE

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class TransformResult:
    """Outcome of transforming every data row of a sheet."""
    records: List[InterviewRecord] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total: int = 0


def _to_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _parse_generic(text: str) -> Optional[str]:
    match = ISO_DATE_RE.match(text)
    if match:
        return _to_iso(*(int(part) for part in match.groups()))

    try:
        return datetime.strptime(text, YEAR_FIRST_SLASH_FORMAT).date().isoformat()
    except ValueError:
        pass

    match = MONTH_FIRST_RE.match(text) or DAY_FIRST_RE.match(text)
    if match:
        month = MONTH_NUMBERS.get(match.group("month").lower())
        if month:
            return _to_iso(int(match.group("year")), month, int(match.group("day")))
    return None


def _parse_parts(parts: List[str], order: str) -> Optional[str]:
    """Build an ISO date from three numeric parts; order is 'mdy' or 'dmy'."""
    if len(parts) != 3:
        return None
    try:
        numbers = [int(part.strip()) for part in parts]
    except ValueError:
        return None

    if order == "mdy":
        month, day, year = numbers
    else:
        day, month, year = numbers

    if len(parts[2].strip()) <= 2:
        year += 2000 if year < TWO_DIGIT_YEAR_PIVOT else 1900
    return _to_iso(year, month, day)


def parse_date(value) -> DateParse:
    """Try every supported date layout in order and tag the result."""
    original = "" if value is None else str(value)
    text = original.strip()
    if not text:
        return DateParse(True, "")

    iso = _parse_generic(text)
    if iso:
        return DateParse(True, iso)

    if "/" in text:
        parts = text.split("/")
        # US order unless the first part cannot be a month
        try:
            order = "mdy" if int(parts[0].strip()) <= 12 else "dmy"
        except ValueError:
            order = None
        iso = _parse_parts(parts, order) if order else None
        if iso:
            return DateParse(True, iso)
    elif "-" in text:
        parts = text.split("-")
        if len(parts[0].strip()) <= 2:
            iso = _parse_parts(parts, "dmy")
            if iso:
                return DateParse(True, iso)

    return DateParse(False, original)


def normalize_date(value) -> str:
    """Return the date as YYYY-MM-DD, or the original text when it cannot be read."""
    return parse_date(value).value


def normalize_status(value) -> str:
    """Map free-text status onto one of the four canonical statuses."""
    text = ("" if value is None else str(value)).strip().lower()
    if not text:
        return DEFAULT_STATUS.value

    for status in Status:
        if any(keyword in text for keyword in STATUS_KEYWORDS[status]):
            return status.value
    return DEFAULT_STATUS.value


def get_cell(row: Sequence, index: int) -> str:
    """Return a trimmed cell, or '' for absent columns and short rows."""
    if index == NOT_FOUND or index >= len(row):
        return ""
    cell = row[index]
    return "" if cell is None else str(cell).strip()


def is_row_importable(row: Sequence, indices: HeaderIndexMap) -> bool:
    """A row needs a company and a date cell; anything else is a silent skip."""
    return bool(get_cell(row, indices.company)) and bool(get_cell(row, indices.date_applied))


def normalize_row(row: Sequence, indices: HeaderIndexMap, user_id: str) -> InterviewRecord:
    """Build an InterviewRecord from one data row."""
    if indices.has("status"):
        status = normalize_status(get_cell(row, indices.status) or DEFAULT_STATUS.value)
    else:
        status = DEFAULT_STATUS.value

    return InterviewRecord(
        user_id=user_id,
        company=get_cell(row, indices.company),
        role=get_cell(row, indices.role),
        date_applied=normalize_date(get_cell(row, indices.date_applied)),
        status=status,
        notes=get_cell(row, indices.notes),
        location=get_cell(row, indices.location),
    )


def transform_rows(rows: Sequence[Sequence], indices: HeaderIndexMap, user_id: str) -> TransformResult:
    """
    Normalize every data row of a sheet.

    Rows without a company or date are skipped without an error. Rows whose
    transform raises are skipped and reported as "Row {n}: {message}".

    Args:
        rows: Data rows, header row excluded
        indices: Resolved header positions
        user_id: Owner of the imported records

    Returns:
        TransformResult with valid records, skipped row numbers and errors
    """
    result = TransformResult(total=len(rows))

    for offset, row in enumerate(rows):
        row_number = offset + FIRST_DATA_ROW

        if row is None or not is_row_importable(row, indices):
            result.skipped_rows.append(row_number)
            continue

        try:
            result.records.append(normalize_row(row, indices, user_id))
        except Exception as e:
            error = RowTransformError(row_number, str(e))
            result.errors.append(str(error))
            result.skipped_rows.append(row_number)

    return result
