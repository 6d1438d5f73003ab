"""Shared constants and globals for the workout session engine."""

from __future__ import annotations

import os
from pathlib import Path

# Kivy parses ``sys.argv`` and installs its own log handlers on import unless
# told otherwise.  The engine is embedded in other programs, so the host keeps
# control of both.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_LOG_MODE", "PYTHON")

# Rest between sets when an exercise does not specify one
DEFAULT_REST_SECONDS = 60

# Flat burn estimate used when the plan carries no calorie target
DEFAULT_CALORIES_PER_MINUTE = 7

# Number of logs returned by a history fetch
DEFAULT_HISTORY_LIMIT = 30

# Seconds between rest timer updates
REST_TICK_INTERVAL = 1.0

# Default location of the SQLite log store
DEFAULT_DB_PATH = Path.home() / ".workout_engine" / "workout_logs.db"

__all__ = [
    "DEFAULT_REST_SECONDS",
    "DEFAULT_CALORIES_PER_MINUTE",
    "DEFAULT_HISTORY_LIMIT",
    "REST_TICK_INTERVAL",
    "DEFAULT_DB_PATH",
]
