"""
JSON document storage.

Each key maps to one ``{key}.json`` file under the data directory. Reads fall
back to a default and writes go through a temp file plus ``os.replace`` so a
crash never leaves a half-written document. I/O problems are logged and
swallowed: a drill session must never abort because the disk is unhappy.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger


class JsonStore:
    """Get-or-default / set / clear over JSON files in one directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str, default: Any) -> Any:
        """
        Load a document.

        Returns a deep copy of ``default`` when the file is missing or cannot be
        parsed.
        """
        path = self.path_for(key)
        if not path.exists():
            return copy.deepcopy(default)

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return copy.deepcopy(default)

    def set(self, key: str, value: Any) -> bool:
        """Persist a document atomically. Returns False if the write failed."""
        path = self.path_for(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

    def clear(self, key: str) -> bool:
        """Remove a document. Missing documents count as cleared."""
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"Failed to remove {path}: {e}")
            return False
