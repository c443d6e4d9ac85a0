"""Multi-page collection of a topic's feed (core domain).

Sites paginate either through a rewritable ``page`` query parameter or
through an explicit "next" link in the markup. The aggregator starts with the
query parameter and switches, one way, to following detected links the first
time a page reports one.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from core.config import TopicConfig
from core.errors import NoItemsFoundError, PageBlockedError, PageFetchError
from core.identity import extract_item_id, shorten_link
from core.models import Entry, PageResult, PageStatus
from core.ports import PageSourcePort

LOGGER = logging.getLogger(__name__)

PAGE_PARAM = "page"


class PaginationMode(Enum):
    BY_PARAMETER = "by_parameter"
    BY_DETECTED_LINK = "by_detected_link"


def build_page_url(base_url: str, page: int) -> str:
    """Return ``base_url`` with ``page=<page>``; page 1 is the base URL itself."""

    if page <= 1:
        return base_url
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}{PAGE_PARAM}={page}"
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != PAGE_PARAM]
    query.append((PAGE_PARAM, str(page)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class _RunDeduper:
    """First-seen ordered entry list keyed by item id."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self.entries: List[Entry] = []

    def extend(self, entries: List[Entry]) -> int:
        added = 0
        for entry in entries:
            item_id = extract_item_id(entry.link)
            if item_id is None or item_id in self._seen:
                continue
            self._seen.add(item_id)
            self.entries.append(entry)
            added += 1
        return added


class PageAggregator:
    """Drives one topic's page loop against a page source."""

    def __init__(self, source: PageSourcePort) -> None:
        self._source = source

    async def collect(self, topic: TopicConfig) -> List[Entry]:
        """Return the run-deduplicated entries of up to ``pages_to_scan`` pages."""

        if topic.single_page:
            return await self._collect_single(topic)

        max_pages = max(1, topic.pages_to_scan)
        deduper = _RunDeduper()
        mode = PaginationMode.BY_PARAMETER
        next_link = topic.url

        for page in range(1, max_pages + 1):
            target = build_page_url(topic.url, page) if mode is PaginationMode.BY_PARAMETER else next_link
            try:
                result = await self._source.fetch_page(target)
            except Exception as exc:
                LOGGER.warning("[%s] Page %s failed: %s", topic.topic, page, exc)
                continue

            if result.status in (PageStatus.BLOCKED, PageStatus.FETCH_FAILED):
                LOGGER.warning("[%s] Page %s skipped (%s): %s", topic.topic, page, result.status.value, result.detail)
                continue
            if result.status is PageStatus.EMPTY:
                LOGGER.info("[%s] Page %s had no items: %s", topic.topic, page, shorten_link(target))

            added = deduper.extend(result.entries)
            LOGGER.debug("[%s] Page %s added %s new-in-run items", topic.topic, page, added)

            if result.next_url and page < max_pages:
                if mode is PaginationMode.BY_PARAMETER:
                    LOGGER.debug("[%s] Switching to detected next links", topic.topic)
                mode = PaginationMode.BY_DETECTED_LINK
                next_link = result.next_url
            elif mode is PaginationMode.BY_DETECTED_LINK and not result.next_url:
                break

        LOGGER.info(
            "[%s] Collected %s unique items across up to %s pages",
            topic.topic,
            len(deduper.entries),
            max_pages,
        )
        return deduper.entries

    async def _collect_single(self, topic: TopicConfig) -> List[Entry]:
        # Single-page topics have no other page to fall back on, so every
        # non-OK result fails the topic.
        result: PageResult = await self._source.fetch_page(topic.url)
        if result.status is PageStatus.BLOCKED:
            raise PageBlockedError(result.detail or "Bot detection triggered!")
        if result.status is PageStatus.FETCH_FAILED:
            raise PageFetchError(result.detail or f"Could not fetch {topic.url}")
        if result.status is PageStatus.EMPTY or not result.entries:
            raise NoItemsFoundError(f"No items found on {shorten_link(topic.url)}")

        deduper = _RunDeduper()
        deduper.extend(result.entries)
        LOGGER.info("[%s] Collected %s unique items from a single page", topic.topic, len(deduper.entries))
        return deduper.entries
