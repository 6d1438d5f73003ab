"""Utility functions for loading and saving engine settings.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from workout_engine import (
    DEFAULT_CALORIES_PER_MINUTE,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_REST_SECONDS,
    REST_TICK_INTERVAL,
)

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = Path(
    os.environ.get(
        "WORKOUT_ENGINE_SETTINGS",
        Path.home() / ".workout_engine" / "settings.json",
    )
)

# Default settings used when the file is missing or unreadable.
DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "default_rest_seconds", "value": DEFAULT_REST_SECONDS, "type": "int"},
    {"key": "calories_per_minute", "value": DEFAULT_CALORIES_PER_MINUTE, "type": "float"},
    {"key": "history_limit", "value": DEFAULT_HISTORY_LIMIT, "type": "int"},
    {"key": "rest_tick_interval", "value": REST_TICK_INTERVAL, "type": "float"},
    {"key": "persist_async", "value": False, "type": "bool"},
]


def load_settings(path: Path | None = None) -> List[Dict[str, Any]]:
    """Load settings from ``path`` merged over :data:`DEFAULT_SETTINGS`."""

    path = Path(path or SETTINGS_PATH)
    settings = [item.copy() for item in DEFAULT_SETTINGS]
    if not path.exists():
        return settings
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        logging.warning("Could not read settings from %s; using defaults", path)
        return settings
    if not isinstance(data, list):
        logging.warning("Ignoring malformed settings file %s", path)
        return settings
    index = {item["key"]: item for item in settings}
    for item in data:
        if not isinstance(item, dict) or "key" not in item:
            continue
        if item["key"] in index:
            index[item["key"]]["value"] = item.get("value")
        else:
            settings.append(item)
    return settings


def save_settings(settings: List[Dict[str, Any]], path: Path | None = None) -> None:
    """Persist ``settings`` to ``path``."""

    path = Path(path or SETTINGS_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_value(key: str, path: Path | None = None) -> Any:
    """Fetch the value associated with ``key``."""

    for item in load_settings(path):
        if item.get("key") == key:
            return item.get("value")
    return None


def set_value(key: str, value: Any, path: Path | None = None) -> None:
    """Update ``key`` with ``value`` and persist the change."""

    settings = load_settings(path)
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings, path)


def session_options(path: Path | None = None) -> Dict[str, Any]:
    """Return keyword arguments for :class:`WorkoutSession` from settings."""

    values = {item["key"]: item.get("value") for item in load_settings(path)}
    return {
        "default_rest_seconds": int(values["default_rest_seconds"]),
        "calories_per_minute": float(values["calories_per_minute"]),
        "history_limit": int(values["history_limit"]),
        "tick_interval": float(values["rest_tick_interval"]),
        "persist_async": bool(values["persist_async"]),
    }
