"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Entry:
    """One listing observed on a feed page."""

    link: str
    image: str = ""


class PageStatus(Enum):
    OK = "ok"
    BLOCKED = "blocked"
    EMPTY = "empty"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class PageResult:
    """Outcome of fetching and extracting a single page."""

    status: PageStatus
    entries: List[Entry] = field(default_factory=list)
    next_url: Optional[str] = None
    detail: str = ""

    @classmethod
    def ok(cls, entries: List[Entry], next_url: Optional[str] = None) -> "PageResult":
        return cls(PageStatus.OK, list(entries), next_url)

    @classmethod
    def blocked(cls, detail: str = "Bot detection triggered!") -> "PageResult":
        return cls(PageStatus.BLOCKED, detail=detail)

    @classmethod
    def empty(cls, next_url: Optional[str] = None) -> "PageResult":
        return cls(PageStatus.EMPTY, next_url=next_url, detail="No items found")

    @classmethod
    def fetch_failed(cls, detail: str) -> "PageResult":
        return cls(PageStatus.FETCH_FAILED, detail=detail)


@dataclass(frozen=True)
class ClassifyResult:
    """New entries for one poll plus whether it was a bootstrap poll."""

    new_entries: List[Entry]
    bootstrap: bool


@dataclass(frozen=True)
class TopicOutcome:
    """Per-topic summary returned by the orchestrator."""

    topic: str
    new_count: int = 0
    bootstrap: bool = False
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
