"""Storage for completed workout logs.

The session engine only depends on the small :class:`PersistenceGateway`
contract: an idempotent ``save`` keyed by user and date, and a history query
returning the newest logs first.  Two implementations are provided, a
SQLite-backed store for real use and an in-memory one for embedding and
tests.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from workout_engine import DEFAULT_DB_PATH, DEFAULT_HISTORY_LIMIT
from workout_engine.models import WorkoutLog

SCHEMA = """
CREATE TABLE IF NOT EXISTS workout_logs (
    user_id     TEXT NOT NULL,
    date_key    TEXT NOT NULL,
    workout_name TEXT,
    end_time    REAL,
    payload     TEXT NOT NULL,
    PRIMARY KEY (user_id, date_key)
)
"""


class PersistenceGateway(Protocol):
    def save(self, user_id: str, date_key: str, log: WorkoutLog) -> bool:
        ...

    def fetch_history(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[WorkoutLog]:
        ...


@dataclass
class PendingSave:
    """A log whose save failed and may be retried."""

    user_id: str
    date_key: str
    log: WorkoutLog
    error: str = ""


class SQLiteLogStore:
    """Persist logs as JSON rows in a SQLite database."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(SCHEMA)

    def save(self, user_id: str, date_key: str, log: WorkoutLog) -> bool:
        """Insert or replace the log stored for ``user_id`` on ``date_key``."""

        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(
                """
                INSERT INTO workout_logs (user_id, date_key, workout_name, end_time, payload)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id, date_key) DO UPDATE SET
                    workout_name = excluded.workout_name,
                    end_time = excluded.end_time,
                    payload = excluded.payload
                """,
                (
                    user_id,
                    date_key,
                    log.workout_name,
                    log.end_time,
                    json.dumps(log.to_dict()),
                ),
            )
        return True

    def fetch_history(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[WorkoutLog]:
        """Return up to ``limit`` logs for ``user_id``, most recent first."""

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT payload FROM workout_logs
                 WHERE user_id = ?
                 ORDER BY date_key DESC, end_time DESC
                 LIMIT ?
                """,
                (user_id, limit),
            )
            rows = cursor.fetchall()
        return [WorkoutLog.from_dict(json.loads(payload)) for (payload,) in rows]


class MemoryLogStore:
    """Keep logs in a dictionary keyed by ``(user_id, date_key)``."""

    def __init__(self):
        self.logs: dict[tuple[str, str], WorkoutLog] = {}
        self.save_calls = 0

    def save(self, user_id: str, date_key: str, log: WorkoutLog) -> bool:
        self.save_calls += 1
        self.logs[(user_id, date_key)] = log
        return True

    def fetch_history(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[WorkoutLog]:
        logs = [
            (key, log) for key, log in self.logs.items() if key[0] == user_id
        ]
        logs.sort(key=lambda item: (item[0][1], item[1].end_time), reverse=True)
        return [log for _, log in logs[:limit]]
