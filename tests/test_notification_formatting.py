from __future__ import annotations

from adapters.notification_formatting import (
    format_failure,
    format_new_items_header,
    format_scan_started,
)


def test_scan_started_message() -> None:
    text = format_scan_started("flats", "https://www.yad2.co.il/realestate/rent", 3)

    assert text == "Scanning **flats** across up to 3 page(s):\nhttps://www.yad2.co.il/realestate/rent"


def test_new_items_header_counts_items() -> None:
    assert format_new_items_header(12) == "🆕 New items found (12)"


def test_failure_message_with_and_without_detail() -> None:
    assert format_failure(RuntimeError("boom")) == "Scan workflow failed... 😥\nError: boom"
    assert format_failure(RuntimeError()) == "Scan workflow failed... 😥\nUnknown error"
