"""
Database management for ApplyTrack using SQLite.
"""

import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .normalize import InterviewRecord, Status


INTERVIEW_COLUMNS = (
    "user_id", "company", "role", "date_applied", "status",
    "notes", "location", "source",
)

# Columns a manual edit may change
UPDATABLE_COLUMNS = (
    "company", "role", "date_applied", "status", "notes", "next_interview_date",
    "location", "salary", "platform", "source",
)

INTERVIEW_SOURCES = ("manual", "email", "recommendation", "import")


def _check_status(status: str):
    if status not in {s.value for s in Status}:
        raise ValueError(f"Invalid status: {status}")


def _check_source(source: str):
    if source not in INTERVIEW_SOURCES:
        raise ValueError(f"Invalid source: {source}")


class ApplyTrackDB:
    """SQLite database manager for tracked job applications."""

    def __init__(self, db_path: str = "data/applytrack.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = None
        self._init_database()

    def _init_database(self):
        """Initialize database connection and create tables."""
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self):
        """Create all necessary tables."""
        cursor = self.conn.cursor()

        # One row per job application
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS interviews (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                company TEXT NOT NULL,
                role TEXT DEFAULT '',
                date_applied TEXT,
                status TEXT NOT NULL DEFAULT 'Applied', -- 'Applied', 'Interviewing', 'Offer', 'Rejected'
                notes TEXT DEFAULT '',
                location TEXT DEFAULT '',
                next_interview_date TEXT,
                salary TEXT,
                platform TEXT,
                source TEXT DEFAULT 'manual', -- 'manual', 'email', 'recommendation', 'import'
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_interviews_user ON interviews (user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_interviews_status ON interviews (status)")

        self.conn.commit()

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Interview management
    def bulk_insert_interviews(self, records: Iterable[Union[InterviewRecord, Dict]]) -> int:
        """
        Insert many interview records in a single transaction.

        Either every record is stored or none is. No duplicate detection is
        done, so importing the same sheet twice stores its rows twice.

        Returns:
            Number of inserted rows
        """
        rows = []
        for record in records:
            data = record.to_dict() if isinstance(record, InterviewRecord) else record
            rows.append(tuple(data.get(column, "") for column in INTERVIEW_COLUMNS))

        if not rows:
            return 0

        placeholders = ", ".join("?" for _ in INTERVIEW_COLUMNS)
        with self.conn:
            self.conn.executemany(
                f"INSERT INTO interviews ({', '.join(INTERVIEW_COLUMNS)}) VALUES ({placeholders})",
                rows
            )
        return len(rows)

    def add_interview(self, user_id: str, company: str, role: str = "",
                      date_applied: Optional[str] = None, status: str = Status.APPLIED.value,
                      notes: str = "", location: str = "", source: str = "manual",
                      next_interview_date: Optional[str] = None, salary: Optional[str] = None,
                      platform: Optional[str] = None) -> int:
        """Add a single interview entered by hand. Returns the new interview id."""
        if not (company or "").strip():
            raise ValueError("Company is required")
        _check_status(status)
        _check_source(source)

        cursor = self.conn.cursor()
        cursor.execute("""
            INSERT INTO interviews
            (user_id, company, role, date_applied, status, notes, location, source,
             next_interview_date, salary, platform)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (user_id, company, role, date_applied, status, notes, location, source,
              next_interview_date, salary, platform))
        self.conn.commit()
        return cursor.lastrowid

    def get_interviews(self, user_id: Optional[str] = None, status: Optional[str] = None) -> List[Dict]:
        """Get interviews with optional filtering."""
        cursor = self.conn.cursor()
        query = "SELECT * FROM interviews"
        params = []
        conditions = []

        if user_id:
            conditions.append("user_id = ?")
            params.append(user_id)

        if status:
            conditions.append("status = ?")
            params.append(status)

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY date_applied DESC, id DESC"

        cursor.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def get_interview(self, interview_id: int) -> Optional[Dict]:
        """Get a specific interview."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM interviews WHERE id = ?", (interview_id,))
        row = cursor.fetchone()
        return dict(row) if row else None

    def update_interview(self, interview_id: int, **updates) -> bool:
        """
        Change any editable fields of an interview.

        Args:
            interview_id: Interview to change
            **updates: Column values, e.g. status="Offer", salary="120k"

        Returns:
            True if the interview exists and was updated

        Raises:
            ValueError: on an unknown column, an invalid status or source,
                or an empty company
        """
        unknown = set(updates) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown interview fields: {', '.join(sorted(unknown))}")
        if not updates:
            raise ValueError("No fields to update")
        if 'status' in updates:
            _check_status(updates['status'])
        if 'source' in updates:
            _check_source(updates['source'])
        if 'company' in updates and not (updates['company'] or "").strip():
            raise ValueError("Company is required")

        columns = [column for column in UPDATABLE_COLUMNS if column in updates]
        assignments = ", ".join(f"{column} = ?" for column in columns)

        cursor = self.conn.cursor()
        cursor.execute(
            f"UPDATE interviews SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [updates[column] for column in columns] + [interview_id]
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def delete_interview(self, interview_id: int) -> bool:
        """Delete an interview."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM interviews WHERE id = ?", (interview_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def get_interview_count(self, user_id: Optional[str] = None) -> int:
        """Get total number of interviews."""
        cursor = self.conn.cursor()
        if user_id:
            cursor.execute("SELECT COUNT(*) as count FROM interviews WHERE user_id = ?", (user_id,))
        else:
            cursor.execute("SELECT COUNT(*) as count FROM interviews")
        return cursor.fetchone()["count"]

    def get_status_counts(self, user_id: Optional[str] = None) -> Dict[str, int]:
        """Count interviews per status, including statuses with no rows."""
        cursor = self.conn.cursor()
        query = "SELECT status, COUNT(*) as count FROM interviews"
        params = []
        if user_id:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " GROUP BY status"

        cursor.execute(query, params)
        counts = {s.value: 0 for s in Status}
        for row in cursor.fetchall():
            counts[row["status"]] = row["count"]
        return counts

    # Cleanup operations
    def clear_interviews(self, user_id: Optional[str] = None) -> int:
        """Remove interviews, for one user or for everyone."""
        cursor = self.conn.cursor()
        if user_id:
            cursor.execute("DELETE FROM interviews WHERE user_id = ?", (user_id,))
        else:
            cursor.execute("DELETE FROM interviews")
        self.conn.commit()
        return cursor.rowcount


def get_db(db_path: Optional[str] = None) -> ApplyTrackDB:
    """Get database instance."""
    if db_path is None:
        from .config import get_config_manager
        db_path = get_config_manager().get("database", "path")
    return ApplyTrackDB(db_path)
