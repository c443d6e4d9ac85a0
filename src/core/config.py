"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TopicConfig:
    """One watched feed. ``topic`` doubles as the storage key."""

    topic: str
    url: str
    pages_to_scan: int = 1
    disabled: bool = False
    single_page: bool = False


@dataclass(frozen=True)
class DedupConfig:
    """Deduplication settings for the core pipeline."""

    bootstrap_if_empty: bool = True
    retention_limit: int = 10000


@dataclass(frozen=True)
class NotificationConfig:
    """Notification batching settings."""

    max_chars: int = 3900
    part_reserve: int = 40


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for throttled transport calls."""

    max_retries: int = 5
    base_delay: float = 1.0
