from __future__ import annotations

import asyncio

import pytest

from core.config import DedupConfig, NotificationConfig, TopicConfig
from core.dedup import SeenIdTracker
from core.errors import PageBlockedError, TopicsFailedError, TransportError
from core.models import PageResult
from core.pagination import PageAggregator
from core.sender import RateLimitedSender
from fakes import (
    AlwaysFailingNotifier,
    CountingMarker,
    InMemoryState,
    RecordedSleep,
    RecordingNotifier,
    ScriptedPageSource,
    entry,
)
from pipeline import TopicPipeline, run_topics

FLATS = "https://www.yad2.co.il/realestate/rent?city=5000"
CARS = "https://www.yad2.co.il/vehicles/cars"


def _pipeline(source, state, notifier, marker=None, max_chars: int = 3900) -> TopicPipeline:
    return TopicPipeline(
        aggregator=PageAggregator(source),
        tracker=SeenIdTracker(state, DedupConfig(), marker=marker),
        sender=RateLimitedSender(notifier, sleep=RecordedSleep()),
        notification_config=NotificationConfig(max_chars=max_chars),
    )


def test_bootstrap_run_then_new_items_run() -> None:
    pages = {FLATS: PageResult.ok([entry("a"), entry("b")])}
    state = InMemoryState()
    notifier = RecordingNotifier()
    marker = CountingMarker()
    topic = TopicConfig(topic="flats", url=FLATS, pages_to_scan=1)

    outcomes = asyncio.run(run_topics(_pipeline(ScriptedPageSource(pages), state, notifier, marker), [topic]))

    assert outcomes[0].bootstrap is True
    assert notifier.sent == [
        f"Scanning **flats** across up to 1 page(s):\n{FLATS}",
        "No new items were added",
    ]

    pages[FLATS] = PageResult.ok([entry("a"), entry("c", "opened-from=feed")])
    notifier.sent.clear()

    outcomes = asyncio.run(run_topics(_pipeline(ScriptedPageSource(pages), state, notifier, marker), [topic]))

    assert outcomes[0].new_count == 1
    assert notifier.sent[-1] == "🆕 New items found (1)\n\n• https://www.yad2.co.il/item/c"
    assert marker.marks == 1


def test_new_items_are_sent_in_parts() -> None:
    state = InMemoryState({"flats": ["seed"]})
    entries = [entry(f"id{i:04d}") for i in range(20)]
    source = ScriptedPageSource({FLATS: PageResult.ok(entries)})
    notifier = RecordingNotifier()
    topic = TopicConfig(topic="flats", url=FLATS, pages_to_scan=1)

    asyncio.run(run_topics(_pipeline(source, state, notifier, max_chars=300), [topic]))

    parts = [text for text in notifier.sent if text.startswith("🆕")]
    assert len(parts) > 1
    assert all(len(text) <= 300 for text in parts)
    assert parts[0].startswith(f"🆕 New items found (20) (part 1/{len(parts)})")
    joined = "\n".join(parts)
    assert all(f"/item/id{i:04d}" in joined for i in range(20))


def test_failing_topic_does_not_stop_siblings() -> None:
    source = ScriptedPageSource(
        {
            FLATS: PageResult.blocked(),
            CARS: PageResult.ok([entry("x")]),
        }
    )
    state = InMemoryState({"cars": ["old"]})
    notifier = RecordingNotifier()
    topics = [
        TopicConfig(topic="flats", url=FLATS, single_page=True),
        TopicConfig(topic="cars", url=CARS, pages_to_scan=1),
    ]

    with pytest.raises(TopicsFailedError) as excinfo:
        asyncio.run(run_topics(_pipeline(source, state, notifier), topics))

    outcomes = {outcome.topic: outcome for outcome in excinfo.value.outcomes}
    assert isinstance(outcomes["flats"].error, PageBlockedError)
    assert outcomes["cars"].failed is False
    assert outcomes["cars"].new_count == 1
    assert "Scan workflow failed... 😥\nError: Bot detection triggered!" in notifier.sent
    assert state.data["cars"] == ["old", "x"]


def test_original_error_survives_failed_failure_notice() -> None:
    error = TransportError("Bot API error 400: chat not found", status=400)
    notifier = AlwaysFailingNotifier(error)
    pipeline = _pipeline(ScriptedPageSource({}), InMemoryState(), notifier)

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(pipeline.run_topic(TopicConfig(topic="flats", url=FLATS)))

    assert excinfo.value is error
    # scan announcement + failure notice
    assert notifier.calls == 2


def test_disabled_topics_are_skipped() -> None:
    source = ScriptedPageSource({FLATS: PageResult.ok([entry("a")])})
    topics = [
        TopicConfig(topic="flats", url=FLATS),
        TopicConfig(topic="cars", url=CARS, disabled=True),
    ]

    outcomes = asyncio.run(run_topics(_pipeline(source, InMemoryState(), RecordingNotifier()), topics))

    assert [outcome.topic for outcome in outcomes] == ["flats"]
    assert source.fetched == [FLATS]


def test_duplicate_topic_key_fails_without_stopping_other_topics() -> None:
    source = ScriptedPageSource(
        {
            FLATS: PageResult.ok([entry("a")]),
            CARS: PageResult.ok([entry("b")]),
        }
    )
    topics = [
        TopicConfig(topic="flats", url=FLATS),
        TopicConfig(topic="flats", url=CARS),
        TopicConfig(topic="cars", url=CARS),
    ]

    with pytest.raises(TopicsFailedError) as excinfo:
        asyncio.run(run_topics(_pipeline(source, InMemoryState(), RecordingNotifier()), topics))

    outcomes = excinfo.value.outcomes
    assert [(outcome.topic, outcome.failed) for outcome in outcomes] == [
        ("flats", False),
        ("cars", False),
        ("flats", True),
    ]
    assert isinstance(outcomes[2].error, ValueError)
    assert sorted(source.fetched) == sorted([FLATS, CARS])
