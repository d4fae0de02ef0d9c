"""
SQLite-backed visit-history store.

SCHEMA NOTES:
- visit_dates holds one row per (caller_id, visit_date); the UNIQUE key
  makes re-uploads of the same file a no-op via INSERT OR IGNORE
- HistoryEntry is rebuilt from visit_dates on every read, so the count
  and last visit date can never drift from the underlying rows
- Dates are stored as ISO-8601 TEXT (YYYY-MM-DD)
- Each upsert commits on its own; there is no cross-call transaction
"""

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional, Union

from visit_ledger.config import settings
from visit_ledger.errors import IOFailure
from visit_ledger.history.store import HistoryStore
from visit_ledger.schemas.history_schema import HistoryEntry

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"


class SqliteHistoryStore(HistoryStore):
    """Durable store that survives process restarts."""

    def __init__(
        self,
        db_path: Union[str, Path, None] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.db_path = Path(db_path or settings.store.history_db_path)
        timeout = timeout if timeout is not None else settings.store.connect_timeout_sec
        try:
            self._conn = sqlite3.connect(str(self.db_path), timeout=timeout)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._create_schema()
        except (sqlite3.Error, OSError) as e:
            raise IOFailure(f"Cannot open history store at {self.db_path}: {e}") from e
        logger.debug("Opened history store at %s", self.db_path)

    def _create_schema(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS history_meta (
                key             TEXT PRIMARY KEY,
                value           TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS visit_dates (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                caller_id       TEXT NOT NULL,
                visit_date      TEXT NOT NULL,
                UNIQUE(caller_id, visit_date)
            );

            CREATE INDEX IF NOT EXISTS idx_visit_dates_caller ON visit_dates(caller_id);
        """)
        self._conn.execute(
            "INSERT OR IGNORE INTO history_meta (key, value) VALUES ('schema_version', ?)",
            (SCHEMA_VERSION,),
        )
        self._conn.commit()

    def get(self, caller_id: str) -> Optional[HistoryEntry]:
        try:
            rows = self._conn.execute(
                "SELECT visit_date FROM visit_dates WHERE caller_id = ? ORDER BY visit_date",
                (caller_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise IOFailure(f"History read failed for {caller_id}: {e}") from e
        if not rows:
            return None
        try:
            dates = [date.fromisoformat(r[0]) for r in rows]
        except (TypeError, ValueError) as e:
            raise IOFailure(f"Corrupt visit date for {caller_id}: {e}") from e
        return HistoryEntry(
            caller_id=caller_id,
            visit_count=len(dates),
            last_visit_date=dates[-1],
            visit_dates=dates,
        )

    def upsert(self, caller_id: str, visit_date: date) -> HistoryEntry:
        try:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO visit_dates (caller_id, visit_date) VALUES (?, ?)",
                (caller_id, visit_date.isoformat()),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise IOFailure(f"History write failed for {caller_id}: {e}") from e
        if cursor.rowcount == 0:
            logger.debug("Visit %s for %s already recorded", visit_date, caller_id)
        entry = self.get(caller_id)
        if entry is None:
            raise IOFailure(f"Visit for {caller_id} was not persisted")
        return entry

    def clear(self) -> None:
        try:
            deleted = self._conn.execute("DELETE FROM visit_dates").rowcount
            self._conn.commit()
        except sqlite3.Error as e:
            raise IOFailure(f"History clear failed: {e}") from e
        logger.info("Cleared %d visit rows from %s", deleted, self.db_path)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteHistoryStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
