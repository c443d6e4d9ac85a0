"""Per-topic polling pipeline.

The pipeline enforces a strict order for every topic:
1) Announce the scan
2) Collect entries across pages (page failures only skip that page)
3) Classify new vs known ids and persist the topic's state
4) Send the new items in size-bounded chunks, or a "nothing new" notice

Topics run concurrently and independently; a failing topic gets one
best-effort failure notice and never stops its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List

from adapters.notification_formatting import (
    NO_NEW_ITEMS,
    format_failure,
    format_new_items_header,
    format_scan_started,
)
from core.batching import batch_messages
from core.config import NotificationConfig, TopicConfig
from core.dedup import SeenIdTracker
from core.errors import TopicsFailedError
from core.models import TopicOutcome
from core.pagination import PageAggregator
from core.sender import RateLimitedSender

LOGGER = logging.getLogger(__name__)


class TopicPipeline:
    """Runs collect, classify and notify for one topic at a time."""

    def __init__(
        self,
        aggregator: PageAggregator,
        tracker: SeenIdTracker,
        sender: RateLimitedSender,
        notification_config: NotificationConfig = NotificationConfig(),
    ) -> None:
        self._aggregator = aggregator
        self._tracker = tracker
        self._sender = sender
        self._notifications = notification_config

    async def run_topic(self, topic: TopicConfig) -> TopicOutcome:
        """Poll one topic. Re-raises the original error after notifying about it."""

        try:
            await self._sender.send(format_scan_started(topic.topic, topic.url, topic.pages_to_scan))

            entries = await self._aggregator.collect(topic)
            result = self._tracker.classify(topic.topic, entries)

            if result.new_entries:
                await self._notify_new(result.new_entries)
            else:
                await self._sender.send(NO_NEW_ITEMS)

            return TopicOutcome(
                topic=topic.topic,
                new_count=len(result.new_entries),
                bootstrap=result.bootstrap,
            )
        except Exception as exc:
            LOGGER.exception("Topic %r failed", topic.topic)
            try:
                await self._sender.send(format_failure(exc))
            except Exception as notify_error:
                LOGGER.warning("Could not send failure notice for %r: %s", topic.topic, notify_error)
            raise

    async def _notify_new(self, entries) -> None:
        header = format_new_items_header(len(entries))
        messages = batch_messages(
            entries,
            header,
            self._notifications.max_chars,
            reserve=self._notifications.part_reserve,
        )
        # Chunks go out in order; a failure part-way leaves earlier chunks delivered.
        for message in messages:
            await self._sender.send(message)


async def run_topics(pipeline: TopicPipeline, topics: Iterable[TopicConfig]) -> List[TopicOutcome]:
    """Run every enabled topic to completion and aggregate the outcomes.

    Raises TopicsFailedError once all topics are done if any of them failed.
    """

    enabled: List[TopicConfig] = []
    duplicates: List[TopicOutcome] = []
    seen_keys: set[str] = set()
    for topic in topics:
        if topic.disabled:
            LOGGER.info("Topic %r is disabled. Skipping.", topic.topic)
            continue
        # One task per storage key; two tasks would race on the same state file.
        if topic.topic in seen_keys:
            LOGGER.error("Duplicate topic key %r; only the first entry runs", topic.topic)
            duplicates.append(
                TopicOutcome(topic=topic.topic, error=ValueError(f"Duplicate topic key: {topic.topic!r}"))
            )
            continue
        seen_keys.add(topic.topic)
        enabled.append(topic)

    results = await asyncio.gather(
        *(pipeline.run_topic(topic) for topic in enabled),
        return_exceptions=True,
    )

    outcomes: List[TopicOutcome] = []
    for topic, result in zip(enabled, results):
        if isinstance(result, BaseException):
            outcomes.append(TopicOutcome(topic=topic.topic, error=result))
        else:
            outcomes.append(result)
    outcomes.extend(duplicates)

    LOGGER.info(
        "Run complete: topics=%s, failed=%s, new items=%s",
        len(outcomes),
        sum(1 for outcome in outcomes if outcome.failed),
        sum(outcome.new_count for outcome in outcomes),
    )
    if any(outcome.failed for outcome in outcomes):
        raise TopicsFailedError(outcomes)
    return outcomes
