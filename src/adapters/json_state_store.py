"""JSON file storage adapter.

Implements the core StatePort with one ``<key>_ids.json`` file per topic,
each holding a plain JSON array of strings.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import List, Optional

LOGGER = logging.getLogger(__name__)


class JsonFileStateStore:
    """Thin file wrapper that satisfies the StatePort contract."""

    def __init__(self, data_dir: str) -> None:
        self._data_dir = data_dir

    def path_for(self, key: str) -> str:
        return os.path.join(self._data_dir, f"{key}_ids.json")

    def load(self, key: str) -> Optional[List[str]]:
        """Return the stored array, or None if it is missing or unreadable."""

        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = handle.read()
            data = json.loads(raw) if raw.strip() else []
        except (OSError, ValueError):
            LOGGER.exception("Failed reading JSON from %s", path)
            return None
        if not isinstance(data, list):
            LOGGER.error("Ignoring %s: expected a JSON array, got %s", path, type(data).__name__)
            return None
        return data

    def save(self, key: str, values: List[str]) -> None:
        """Replace the stored array atomically."""

        path = self.path_for(key)
        os.makedirs(self._data_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(list(values), handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
