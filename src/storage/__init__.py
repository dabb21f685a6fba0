"""
Durable storage for drills.

JSON documents under the data directory: fact mastery (``progress``),
session history (``statistics``) and last-used settings (``settings``).
"""

from .kv_store import JsonStore
from .mastery import FactMasteryStore, FactRecord
from .settings_store import SettingsStore
from .statistics import PersonalBest, SessionRecord, StatisticsRecorder

__all__ = [
    "FactMasteryStore",
    "FactRecord",
    "JsonStore",
    "PersonalBest",
    "SessionRecord",
    "SettingsStore",
    "StatisticsRecorder",
]
