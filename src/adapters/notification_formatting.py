"""Shared notification texts.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

from typing import Optional

NO_NEW_ITEMS = "No new items were added"


def format_scan_started(topic: str, url: str, pages: int) -> str:
    return f"Scanning **{topic}** across up to {pages} page(s):\n{url}"


def format_new_items_header(count: int) -> str:
    return f"🆕 New items found ({count})"


def format_failure(error: Optional[BaseException]) -> str:
    """Return the user-facing failure notice for a topic run."""

    detail = str(error) if error is not None else ""
    err_msg = f"Error: {detail}" if detail else "Unknown error"
    return f"Scan workflow failed... 😥\n{err_msg}"
