"""
Unit tests for JSON document storage and the settings store.

Run: pytest tests/unit/test_storage.py -v
"""

import json

from src.engine.models import SessionConfig, SessionOptions
from src.engine.questions import DrillMode
from src.storage.kv_store import JsonStore


class TestJsonStore:

    def test_missing_returns_copy_of_default(self, json_store):
        default = {"facts": {}}
        value = json_store.get("progress", default)
        value["facts"]["x"] = 1
        assert default == {"facts": {}}

    def test_set_then_get(self, json_store):
        assert json_store.set("settings", {"mode": "squares"})
        assert json_store.get("settings", {}) == {"mode": "squares"}

    def test_corrupt_file_returns_default(self, json_store, data_dir):
        (data_dir / "settings.json").write_text("{nope", encoding="utf-8")
        assert json_store.get("settings", {"fallback": True}) == {"fallback": True}

    def test_no_temp_files_left(self, json_store, data_dir):
        json_store.set("progress", {"facts": {}})
        json_store.set("progress", {"facts": {"a": {}}})
        assert sorted(p.name for p in data_dir.iterdir()) == ["progress.json"]

    def test_creates_missing_directory(self, tmp_path):
        store = JsonStore(tmp_path / "nested" / "dir")
        assert store.set("statistics", {"sessions": []})
        assert store.get("statistics", None) == {"sessions": []}

    def test_unserialisable_value_is_reported(self, json_store, data_dir):
        assert json_store.set("settings", {"bad": object()}) is False
        assert not (data_dir / "settings.json").exists()
        assert list(data_dir.iterdir()) == []

    def test_clear(self, json_store, data_dir):
        json_store.set("settings", {})
        assert json_store.clear("settings")
        assert not (data_dir / "settings.json").exists()
        assert json_store.clear("settings")


class TestSettingsStore:

    def test_defaults_when_empty(self, settings_store):
        config, options = settings_store.load()
        assert config == SessionConfig()
        assert options == SessionOptions()

    def test_round_trip(self, settings_store):
        config = SessionConfig(DrillMode.DIVISION, 2, 9, focus_divisor=3)
        options = SessionOptions(size=30, shuffle=False, strict=True, trouble_only=True, timed_test=True, test_seconds=120)

        settings_store.save(config, options)

        assert settings_store.load() == (config, options)

    def test_document_uses_camel_case_keys(self, settings_store, data_dir):
        settings_store.save(SessionConfig(DrillMode.SQUARES, 1, 20), SessionOptions(size=10))
        document = json.loads((data_dir / "settings.json").read_text(encoding="utf-8"))
        assert document["mode"] == "squares"
        assert document["minN"] == 1
        assert document["sessionSize"] == 10
        assert document["troubleOnly"] is False

    def test_invalid_values_fall_back(self, settings_store, json_store):
        json_store.set("settings", {"mode": "trigonometry", "minN": "one", "maxN": 20, "shuffle": "yes", "sessionSize": 9999})
        config, options = settings_store.load()

        assert config.mode is DrillMode.MULTIPLICATION
        assert (config.min_n, config.max_n) == (1, 20)
        assert options.shuffle is True
        assert options.size == 500

    def test_non_finite_numbers_fall_back(self, settings_store, data_dir):
        (data_dir / "settings.json").write_text(
            '{"minN": 1e400, "maxN": NaN, "sessionSize": -Infinity, "testSeconds": 120}', encoding="utf-8"
        )
        config, options = settings_store.load()

        assert (config.min_n, config.max_n) == (1, 12)
        assert options.size == 20
        assert options.test_seconds == 120

    def test_wrong_shape_falls_back(self, settings_store, json_store):
        json_store.set("settings", ["not", "a", "dict"])
        assert settings_store.load() == (SessionConfig(), SessionOptions())

    def test_clear(self, settings_store):
        settings_store.save(SessionConfig(DrillMode.CUBES), SessionOptions())
        settings_store.clear()
        assert settings_store.load()[0].mode is DrillMode.MULTIPLICATION
