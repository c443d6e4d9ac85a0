"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, page fetching and
notification adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import PageResult


class StatePort(Protocol):
    """Per-topic key-value storage of known identifiers."""

    def load(self, key: str) -> Optional[List[str]]:
        """Return stored values, or None when no prior state exists."""
        ...

    def save(self, key: str, values: List[str]) -> None:
        ...


class PageSourcePort(Protocol):
    """Fetch one page and extract its entries and next-page link."""

    async def fetch_page(self, url: str) -> PageResult:
        ...


class NotifierPort(Protocol):
    """Deliver a single text message. Raises TransportError on failure."""

    async def send_text(self, text: str) -> None:
        ...


class WorkMarkerPort(Protocol):
    """Signal downstream tooling that new entries were found."""

    def mark(self) -> None:
        ...
