"""Stable listing identifiers derived from listing links."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

ITEM_ID_PATTERN = re.compile(r"/item/([A-Za-z0-9_-]+)", re.IGNORECASE)
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def _split_absolute(link: str):
    try:
        parts = urlsplit(link)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def extract_item_id(link: str) -> Optional[str]:
    """Return the ``/item/<id>`` path segment of ``link``, or None.

    Query string, fragment and page position never affect the result, so the
    same listing keeps its identity across polls.
    """

    if not isinstance(link, str):
        return None
    parts = _split_absolute(link)
    if parts is None:
        return None
    match = ITEM_ID_PATTERN.search(parts.path)
    return match.group(1) if match else None


def looks_like_url(value: str) -> bool:
    """True for values stored by the legacy link-based state files."""

    return isinstance(value, str) and bool(_ABSOLUTE_URL.match(value))


def shorten_link(link: str) -> str:
    """Drop query and fragment for display."""

    parts = _split_absolute(link)
    if parts is None:
        return str(link).split("?", 1)[0]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
