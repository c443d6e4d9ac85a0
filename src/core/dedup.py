"""Deduplication of listings across polls (core domain).

Each topic owns one persisted list of known item ids. Ids are kept in the
order they were last observed so that trimming to the retention limit always
evicts the listings that have gone longest without appearing.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from core.config import DedupConfig
from core.identity import extract_item_id, looks_like_url
from core.models import ClassifyResult, Entry
from core.ports import StatePort, WorkMarkerPort

LOGGER = logging.getLogger(__name__)


def migrate_legacy_values(values: Iterable[object]) -> List[str]:
    """Upgrade stored full links to item ids, keeping order and dropping blanks.

    Links whose id cannot be extracted are kept verbatim so nothing that was
    already reported is forgotten.
    """

    migrated: Dict[str, None] = {}
    for value in values:
        if value is None or value == "":
            continue
        text = str(value)
        if looks_like_url(text):
            text = extract_item_id(text) or text
        migrated[text] = None
    return list(migrated)


def cap_recent(ids: Iterable[str], limit: int) -> List[str]:
    """Keep the last ``limit`` ids (the most recently observed)."""

    ids = list(ids)
    if limit <= 0 or len(ids) <= limit:
        return ids
    return ids[-limit:]


class SeenIdTracker:
    """Classifies polled entries as new or known and persists the result."""

    def __init__(
        self,
        state: StatePort,
        config: DedupConfig,
        marker: Optional[WorkMarkerPort] = None,
    ) -> None:
        self._state = state
        self._config = config
        self._marker = marker

    def classify(self, topic: str, entries: Iterable[Entry]) -> ClassifyResult:
        """Return this poll's new entries and update the topic's known ids."""

        stored = self._state.load(topic)
        known: Dict[str, None] = dict.fromkeys(migrate_legacy_values(stored or []))

        resolved: List[tuple[str, Entry]] = []
        for entry in entries:
            item_id = extract_item_id(entry.link)
            if item_id is not None:
                resolved.append((item_id, entry))

        # A missing file and an empty list both mean "no history yet".
        if self._config.bootstrap_if_empty and not known:
            baseline = cap_recent(dict.fromkeys(item_id for item_id, _ in resolved), self._config.retention_limit)
            self._state.save(topic, baseline)
            LOGGER.info("Bootstrap: saved %s IDs for topic %r, sending 0.", len(baseline), topic)
            return ClassifyResult(new_entries=[], bootstrap=True)

        new_entries: List[Entry] = []
        reported: set[str] = set()
        for item_id, entry in resolved:
            if item_id in known or item_id in reported:
                continue
            reported.add(item_id)
            new_entries.append(entry)

        for item_id, _ in resolved:
            # Re-insert so the id moves to the most recent end.
            known.pop(item_id, None)
            known[item_id] = None
        self._state.save(topic, cap_recent(known, self._config.retention_limit))

        if new_entries:
            LOGGER.info("Topic %r has %s new item(s)", topic, len(new_entries))
            if self._marker is not None:
                self._marker.mark()

        return ClassifyResult(new_entries=new_entries, bootstrap=False)
