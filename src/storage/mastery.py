"""
Fact mastery store.

Tracks, per session identifier, how often each fact has been missed and when
it was last seen. The document layout is kept compatible with exported
progress files:

    {"facts": {"multiplication:1-12": {"7x8": {"wrongCount": 2, "lastSeen": 1700000000000}}}}

Imported documents are stored verbatim, so individual entries may be
malformed; readers skip them and ``record_answer`` repairs any entry it
touches.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from loguru import logger

from src.engine.clock import Clock, SystemClock
from src.engine.errors import ProgressImportError

from .kv_store import JsonStore

PROGRESS_KEY = "progress"


def _empty_document() -> dict[str, Any]:
    return {"facts": {}}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON number")


@dataclass
class FactRecord:
    """Performance of one fact within one session identifier."""

    wrong_count: int = 0
    last_seen: int = 0  # epoch ms

    def to_dict(self) -> dict:
        return {"wrongCount": self.wrong_count, "lastSeen": self.last_seen}

    @classmethod
    def from_dict(cls, data: Any) -> FactRecord | None:
        """Parse a stored entry; None when it is malformed."""
        if not isinstance(data, dict):
            return None
        wrong, seen = data.get("wrongCount"), data.get("lastSeen")
        if isinstance(wrong, bool) or not isinstance(wrong, int) or wrong < 0:
            return None
        if isinstance(seen, bool) or not isinstance(seen, (int, float)):
            return None
        if isinstance(seen, float) and not math.isfinite(seen):
            return None
        return cls(wrong_count=wrong, last_seen=int(seen))


class FactMasteryStore:
    """Write-through store of per-fact mistakes."""

    def __init__(self, store: JsonStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()
        self._document = self._load()

    def _load(self) -> dict[str, Any]:
        document = self.store.get(PROGRESS_KEY, _empty_document())
        if not isinstance(document, dict) or not isinstance(document.get("facts"), dict):
            logger.error("Stored progress has an unexpected shape, starting empty")
            return _empty_document()
        return document

    def _save(self) -> None:
        self.store.set(PROGRESS_KEY, self._document)

    @property
    def facts(self) -> dict[str, Any]:
        return self._document["facts"]

    # =========================================================================
    # Recording
    # =========================================================================

    def record_answer(self, identifier: str, fact_key: str, correct: bool) -> FactRecord:
        """Stamp a fact as seen and count a miss; persists immediately."""
        bucket = self.facts.get(identifier)
        if not isinstance(bucket, dict):
            bucket = {}
            self.facts[identifier] = bucket

        record = FactRecord.from_dict(bucket.get(fact_key)) or FactRecord()
        record.last_seen = self.clock.epoch_ms()
        if not correct:
            record.wrong_count += 1

        bucket[fact_key] = record.to_dict()
        self._save()
        logger.debug(f"Recorded {fact_key} in {identifier}: correct={correct}, misses={record.wrong_count}")
        return record

    # =========================================================================
    # Queries
    # =========================================================================

    def facts_for(self, identifier: str) -> dict[str, Any]:
        """Raw bucket for an identifier (empty when absent or malformed)."""
        bucket = self.facts.get(identifier)
        return bucket if isinstance(bucket, dict) else {}

    def troubled_facts(self, identifier: str) -> list[tuple[str, FactRecord]]:
        """
        Facts missed at least once, worst first.

        Sorted by miss count descending, then most recently seen first.
        """
        troubled = []
        for key, raw in self.facts_for(identifier).items():
            record = FactRecord.from_dict(raw)
            if record is None:
                logger.debug(f"Skipping malformed entry {key!r} in {identifier}")
                continue
            if record.wrong_count > 0:
                troubled.append((key, record))

        troubled.sort(key=lambda item: (item[1].wrong_count, item[1].last_seen), reverse=True)
        return troubled

    # =========================================================================
    # Import / Export
    # =========================================================================

    def export_document(self) -> str:
        return json.dumps(self._document, indent=2)

    def import_document(self, text: str) -> None:
        """
        Replace the whole store with a previously exported document.

        Raises:
            ProgressImportError: if the text is not JSON or lacks a ``facts`` object.
                The current store is left untouched.
        """
        try:
            document = json.loads(text, parse_constant=_reject_constant)
        except ValueError as e:
            raise ProgressImportError(f"Progress file is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise ProgressImportError("Progress file must contain a JSON object")
        if not isinstance(document.get("facts"), dict):
            raise ProgressImportError("Progress file has no 'facts' object")

        self._document = document
        self._save()
        logger.info(f"Imported progress for {len(document['facts'])} configurations")

    def clear(self) -> None:
        self._document = _empty_document()
        self._save()
        logger.info("Progress cleared")
