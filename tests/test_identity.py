from __future__ import annotations

from core.identity import extract_item_id, looks_like_url, shorten_link


def test_extract_item_id_ignores_query_parameters() -> None:
    assert extract_item_id("https://www.yad2.co.il/realestate/item/ABC123?x=1") == "ABC123"
    assert extract_item_id("https://www.yad2.co.il/realestate/item/ABC123?y=2") == "ABC123"


def test_extract_item_id_keeps_case_and_allowed_characters() -> None:
    assert extract_item_id("https://site.example/Item/aB_9-z/details") == "aB_9-z"


def test_extract_item_id_absent_without_marker() -> None:
    assert extract_item_id("https://www.yad2.co.il/realestate/rent?item=1") is None
    assert extract_item_id("https://www.yad2.co.il/item/") is None


def test_extract_item_id_absent_for_unparseable_links() -> None:
    assert extract_item_id("/item/abc") is None
    assert extract_item_id("not a url") is None
    assert extract_item_id("http://[::1/item/abc") is None
    assert extract_item_id(None) is None  # type: ignore[arg-type]


def test_looks_like_url() -> None:
    assert looks_like_url("https://www.yad2.co.il/item/abc")
    assert looks_like_url("HTTP://example.com")
    assert not looks_like_url("abc123")


def test_shorten_link_drops_query_and_fragment() -> None:
    assert shorten_link("https://www.yad2.co.il/item/abc?opened-from=feed#top") == "https://www.yad2.co.il/item/abc"
    assert shorten_link("item/abc?x=1") == "item/abc"
