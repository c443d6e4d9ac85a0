"""Zero-byte marker file consumed by the CI step that commits state."""

from __future__ import annotations

import logging
import os

LOGGER = logging.getLogger(__name__)


class PushFlag:
    """WorkMarkerPort that creates an empty file; repeated marks are harmless."""

    def __init__(self, path: str) -> None:
        self._path = path

    def mark(self) -> None:
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self._path, "w", encoding="utf-8"):
            pass
        LOGGER.debug("Push flag written to %s", self._path)
