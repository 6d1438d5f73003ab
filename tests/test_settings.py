import json

from workout_engine import settings


def test_defaults_when_file_missing(tmp_path):
    path = tmp_path / "settings.json"
    loaded = settings.load_settings(path)
    assert loaded == settings.DEFAULT_SETTINGS
    assert not path.exists()
    assert settings.get_value("default_rest_seconds", path) == 60


def test_set_value_persists(tmp_path):
    path = tmp_path / "cfg" / "settings.json"
    settings.set_value("history_limit", 10, path)
    settings.set_value("theme", "dark", path)

    with path.open() as fh:
        data = json.load(fh)
    keys = [item["key"] for item in data]
    assert keys[:5] == [item["key"] for item in settings.DEFAULT_SETTINGS]
    assert keys[-1] == "theme"
    assert settings.get_value("history_limit", path) == 10
    assert settings.get_value("theme", path) == "dark"


def test_malformed_file_falls_back(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert settings.load_settings(path) == settings.DEFAULT_SETTINGS
    path.write_text(json.dumps({"key": "history_limit"}))
    assert settings.load_settings(path) == settings.DEFAULT_SETTINGS
    assert "settings" in caplog.text


def test_session_options(tmp_path):
    path = tmp_path / "settings.json"
    settings.save_settings(
        [
            {"key": "rest_tick_interval", "value": 0.5, "type": "float"},
            {"key": "persist_async", "value": True, "type": "bool"},
        ],
        path,
    )
    assert settings.session_options(path) == {
        "default_rest_seconds": 60,
        "calories_per_minute": 7.0,
        "history_limit": 30,
        "tick_interval": 0.5,
        "persist_async": True,
    }
