"""Exception types shared by the core and adapters."""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from core.models import TopicOutcome


class PagewatchError(Exception):
    """Base class for pagewatch failures."""


class PageBlockedError(PagewatchError):
    """Bot detection was encountered while fetching a page."""


class NoItemsFoundError(PagewatchError):
    """A page that was expected to list entries yielded none."""


class PageFetchError(PagewatchError):
    """The page could not be fetched at all."""


class TransportError(PagewatchError):
    """A notification could not be delivered.

    ``status`` is the HTTP-like status code when the transport reported one;
    ``retry_after`` is the server wait hint in seconds, if any.
    """

    def __init__(
        self,
        description: str,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        self.status = status
        self.retry_after = retry_after

    @property
    def is_throttled(self) -> bool:
        return self.status == 429


class TopicsFailedError(PagewatchError):
    """Raised after a run in which at least one topic failed."""

    def __init__(self, outcomes: "List[TopicOutcome]") -> None:
        self.outcomes = outcomes
        failed = [outcome.topic for outcome in outcomes if outcome.failed]
        super().__init__(f"{len(failed)} topic(s) failed: {', '.join(failed)}")
