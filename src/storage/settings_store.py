"""
Last-used drill settings.

Remembers the configuration and options of the most recent session so the
next ``start`` can reuse them. Unknown or invalid values fall back to the
defaults.
"""

from __future__ import annotations

import math
from typing import Any

from loguru import logger

from src.engine.models import SessionConfig, SessionOptions
from src.engine.questions import DrillMode

from .kv_store import JsonStore

SETTINGS_KEY = "settings"


def _int(data: dict, key: str, default: int) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return int(value)


def _bool(data: dict, key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


class SettingsStore:
    def __init__(self, store: JsonStore):
        self.store = store

    def load(self) -> tuple[SessionConfig, SessionOptions]:
        data: Any = self.store.get(SETTINGS_KEY, {})
        if not isinstance(data, dict):
            logger.warning("Stored settings have an unexpected shape, using defaults")
            data = {}

        config_defaults, option_defaults = SessionConfig(), SessionOptions()
        try:
            mode = DrillMode(data.get("mode", config_defaults.mode))
        except ValueError:
            logger.warning(f"Unknown stored mode {data.get('mode')!r}, using default")
            mode = config_defaults.mode

        config = SessionConfig(
            mode=mode,
            min_n=_int(data, "minN", config_defaults.min_n),
            max_n=_int(data, "maxN", config_defaults.max_n),
            focus_multiplier=_int(data, "focusTable", 0),
            focus_divisor=_int(data, "focusDiv", 0),
        )
        options = SessionOptions(
            size=_int(data, "sessionSize", option_defaults.size),
            shuffle=_bool(data, "shuffle", option_defaults.shuffle),
            strict=_bool(data, "strict", option_defaults.strict),
            trouble_only=_bool(data, "troubleOnly", option_defaults.trouble_only),
            timed_test=_bool(data, "timedTest", option_defaults.timed_test),
            test_seconds=_int(data, "testSeconds", option_defaults.test_seconds),
        )
        return config, options

    def save(self, config: SessionConfig, options: SessionOptions) -> bool:
        return self.store.set(
            SETTINGS_KEY,
            {
                "mode": config.mode.value,
                "minN": config.min_n,
                "maxN": config.max_n,
                "sessionSize": options.size,
                "shuffle": options.shuffle,
                "strict": options.strict,
                "troubleOnly": options.trouble_only,
                "timedTest": options.timed_test,
                "testSeconds": options.test_seconds,
                "focusTable": config.focus_multiplier,
                "focusDiv": config.focus_divisor,
            },
        )

    def clear(self) -> bool:
        return self.store.clear(SETTINGS_KEY)
