"""
Interaction Log — What Users Did With a Suggestion

Each row records one decision point: the draft, the suggestion shown,
whether the user accepted it, what they actually posted, and the delta
between the posted text and the suggestion. The delta is always
recomputed here; clients cannot supply their own.

Only the newest `retention` rows are kept (100 by default).
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Optional

from deescalator.config import settings
from deescalator.delta import delta

UNKNOWN = "unknown"


@dataclass(frozen=True)
class InteractionRecord:
    user_id: str = UNKNOWN
    date: str = ""
    gender: str = UNKNOWN
    age: str = UNKNOWN
    sector: str = UNKNOWN
    country: str = UNKNOWN
    city: str = UNKNOWN
    original_post_content: str = ""
    original_post_writer: str = ""
    user_original_text: str = ""
    rephrase_suggestion: str = ""
    did_user_accept: str = "no"
    actual_posted_text: str = ""
    delta: str = ""
    platform: str = UNKNOWN
    context: str = ""
    escalation_type: str = UNKNOWN

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InteractionRecord":
        """
        Build a record from loosely-typed client data.

        Empty or missing values take the field default, the date defaults
        to now (UTC), and delta is derived from the posted and suggested
        text.
        """
        values: dict[str, str] = {}
        for f in fields(cls):
            raw = payload.get(f.name)
            if raw is None or raw == "":
                continue
            if isinstance(raw, bool):
                raw = "yes" if raw else "no"
            values[f.name] = str(raw)

        values.setdefault("date", datetime.now(timezone.utc).isoformat())
        values["delta"] = delta(
            values.get("actual_posted_text", ""),
            values.get("rephrase_suggestion", ""),
        )
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


_COLUMNS = tuple(f.name for f in fields(InteractionRecord))


class InteractionLog:
    """Bounded interaction log backed by SQLite."""

    def __init__(self, db_path: Optional[str] = None, retention: Optional[int] = None):
        self.db_path = db_path or settings.INTERACTION_DB_PATH
        self.retention = settings.INTERACTION_RETENTION if retention is None else retention
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        columns = ",\n".join(f"{name} TEXT NOT NULL" for name in _COLUMNS)
        with self._get_conn() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    {columns}
                )
            """)
            conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def log(self, record: InteractionRecord) -> int:
        """Store a record, trimming the oldest rows past retention. Returns its id."""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        values = tuple(getattr(record, name) for name in _COLUMNS)
        with self._lock:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    f"INSERT INTO interactions ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    values,
                )
                row_id = cursor.lastrowid
                conn.execute(
                    """DELETE FROM interactions WHERE id NOT IN (
                           SELECT id FROM interactions ORDER BY id DESC LIMIT ?
                       )""",
                    (self.retention,),
                )
                conn.commit()
                return row_id

    def get_recent(self, limit: int = 20) -> list[dict]:
        """Newest first."""
        with self._get_conn() as conn:
            rows = conn.execute(
                f"SELECT id, {', '.join(_COLUMNS)} FROM interactions "
                f"ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            {"id": row[0], **dict(zip(_COLUMNS, row[1:]))}
            for row in rows
        ]

    def count(self) -> int:
        with self._get_conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM interactions").fetchone()[0]
