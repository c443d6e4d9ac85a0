"""HTML listing page adapter.

Fetches a feed page and extracts ``(image, link)`` pairs plus an optional
"next page" link. Selectors match the Yad2 feed markup by default.
"""

from __future__ import annotations

import asyncio
import logging
import urllib.error
import urllib.request
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from core.identity import shorten_link
from core.models import Entry, PageResult

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/100.0.0.0 Safari/537.36"
)
DEFAULT_BASE_ORIGIN = "https://www.yad2.co.il"
DEFAULT_ITEM_SELECTOR = 'img[data-nagish="feed-item-image"]'
CAPTCHA_TITLE = "ShieldSquare Captcha"
NEXT_LINK_TEXTS = ("Next", "הבא")
NEXT_LINK_SELECTORS = ("a.pagination__next", "a.page-link.next")


def _resolve(href: Optional[str], base: str) -> Optional[str]:
    if not href:
        return None
    try:
        return urljoin(base, href.strip())
    except ValueError:
        return None


def detect_next_url(soup: BeautifulSoup, current_url: str) -> Optional[str]:
    """Best-effort lookup of the page's "next" link."""

    anchor = soup.select_one('a[rel~="next"]')
    if anchor is None or not anchor.get("href"):
        anchor = next(
            (
                a
                for a in soup.find_all("a", href=True)
                if any(text in a.get_text() for text in NEXT_LINK_TEXTS)
            ),
            None,
        )
    if anchor is None:
        for selector in NEXT_LINK_SELECTORS:
            anchor = soup.select_one(selector)
            if anchor is not None:
                break
    if anchor is None:
        return None
    return _resolve(anchor.get("href"), current_url)


def parse_page(
    html: str,
    url: str,
    base_origin: str = DEFAULT_BASE_ORIGIN,
    item_selector: str = DEFAULT_ITEM_SELECTOR,
) -> PageResult:
    """Turn raw page HTML into a PageResult."""

    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text().strip() if soup.title else ""
    if title == CAPTCHA_TITLE:
        return PageResult.blocked("Bot detection triggered!")

    images = soup.select(item_selector)
    LOGGER.info("Found %s feed images on %s", len(images), shorten_link(url))

    entries: List[Entry] = []
    for image in images:
        src = (image.get("src") or "").strip()
        parent = image.find_parent("a")
        link = _resolve(parent.get("href") if parent is not None else None, base_origin)
        if src and link:
            entries.append(Entry(link=link, image=src))

    next_url = detect_next_url(soup, url)
    if not entries:
        return PageResult.empty(next_url)
    return PageResult.ok(entries, next_url)


class HtmlPageSource:
    """PageSourcePort backed by a plain HTTP GET and BeautifulSoup."""

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        base_origin: str = DEFAULT_BASE_ORIGIN,
        item_selector: str = DEFAULT_ITEM_SELECTOR,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._base_origin = base_origin
        self._item_selector = item_selector

    def _fetch_html(self, url: str) -> str:
        request = urllib.request.Request(
            url,
            headers={
                "User-Agent": self._user_agent,
                "Accept-Language": "en-US,en;q=0.9",
            },
            method="GET",
        )
        # urlopen follows redirects on its own.
        with urllib.request.urlopen(request, timeout=self._timeout) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            return response.read().decode(charset, errors="replace")

    async def fetch_page(self, url: str) -> PageResult:
        """Fetch and parse one page. Network failures become FETCH_FAILED."""

        try:
            html = await asyncio.to_thread(self._fetch_html, url)
        except urllib.error.HTTPError as e:
            return PageResult.fetch_failed(f"HTTP {e.code} for {shorten_link(url)}")
        except (urllib.error.URLError, OSError, ValueError) as e:
            return PageResult.fetch_failed(f"Error fetching {shorten_link(url)}: {e}")

        LOGGER.info("Fetched HTML length: %s", len(html))
        return parse_page(html, url, self._base_origin, self._item_selector)
