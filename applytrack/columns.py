"""
Header resolution for imported spreadsheets.

Maps free-text column headers ("Company Name", "Applied On", ...) to the
fixed fields of an interview record.
"""

from dataclasses import dataclass, fields
from typing import List, Sequence

from .exceptions import MissingColumnsError

NOT_FOUND = -1

REQUIRED_FIELDS = ("company", "date_applied")

# Field name -> substrings that identify it. Order is the if/elif order.
HEADER_KEYWORDS = (
    ("company", ("company",)),
    ("role", ("role", "position", "title", "job")),
    ("date_applied", ("date", "applied", "application", "submit")),
    ("status", ("status", "stage")),
    ("notes", ("note", "comment", "description")),
    ("location", ("location", "city", "remote", "place")),
)

# Headers matched on equality rather than containment
HEADER_EXACT = {
    "date_applied": ("when",),
}


@dataclass
class HeaderIndexMap:
    """Column position of each interview field, or -1 when absent."""
    company: int = NOT_FOUND
    role: int = NOT_FOUND
    date_applied: int = NOT_FOUND
    status: int = NOT_FOUND
    notes: int = NOT_FOUND
    location: int = NOT_FOUND

    def has(self, field_name: str) -> bool:
        return getattr(self, field_name) != NOT_FOUND

    def missing_required(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not self.has(name)]

    @property
    def is_importable(self) -> bool:
        return not self.missing_required()

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def clean_headers(headers: Sequence) -> List[str]:
    """Lower-case and trim a raw header row."""
    return [str(header if header is not None else "").strip().lower() for header in headers]


def match_header(header: str) -> str:
    """Return the field a single header belongs to, or '' if none."""
    for field_name, keywords in HEADER_KEYWORDS:
        if any(keyword in header for keyword in keywords):
            return field_name
        if header in HEADER_EXACT.get(field_name, ()):
            return field_name
    return ""


def resolve_headers(headers: Sequence) -> HeaderIndexMap:
    """
    Build a HeaderIndexMap from a header row.

    Headers are scanned left to right. Each column maps to at most one
    field and the first column found for a field keeps it.
    """
    indices = HeaderIndexMap()

    for position, header in enumerate(clean_headers(headers)):
        field_name = match_header(header)
        if field_name and not indices.has(field_name):
            setattr(indices, field_name, position)

    return indices


def require_headers(headers: Sequence) -> HeaderIndexMap:
    """Resolve headers and raise MissingColumnsError if the sheet is not importable."""
    indices = resolve_headers(headers)
    missing = indices.missing_required()
    if missing:
        raise MissingColumnsError(clean_headers(headers), missing)
    return indices
