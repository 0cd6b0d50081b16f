"""Tests for label enrichment; no network access is made."""

import asyncio

from linkpage.models.link_page import LinkEntry
from linkpage.utils.cache_manager import CacheManager
from linkpage.utils.title_fetcher import TitleFetcher, extract_title, fallback_label


def test_extract_title():
    assert extract_title("<html><head><title>\n  Redis   Docs </title></head></html>") == "Redis Docs"
    assert extract_title("<html><body>no title</body></html>") is None
    assert extract_title("<title></title>") is None


def test_fallback_label():
    assert fallback_label(LinkEntry(url="https://github.com/psf/requests")) == "GitHub: psf/requests"
    assert fallback_label(LinkEntry(url="https://github.com/")) == "GitHub Repository"
    assert fallback_label(LinkEntry(url="https://redis.io/docs/")) == "Link from redis.io"


def test_fetch_title_uses_cache(tmp_path):
    cache = CacheManager(tmp_path / "cache.json")
    cache.update_cache("https://a.example", "Cached A")
    fetcher = TitleFetcher(cache=cache)

    assert asyncio.run(fetcher.fetch_title("https://a.example")) == "Cached A"


def test_fetch_missing_titles_labels_only_unlabeled(tmp_path, monkeypatch):
    requested = []

    async def fake_fetch_title(self, url, session=None):
        requested.append(url)
        return "Fetched" if "found" in url else None

    monkeypatch.setattr(TitleFetcher, "fetch_title", fake_fetch_title)
    entries = [
        LinkEntry(url="https://found.example"),
        LinkEntry(url="https://missing.example"),
        LinkEntry(url="https://labelled.example", label="Keep me"),
    ]
    cache = CacheManager(tmp_path / "cache.json")

    result = asyncio.run(TitleFetcher(concurrent_requests=1, cache=cache).fetch_missing_titles(entries))

    assert result is entries
    assert [entry.label for entry in entries] == ["Fetched", "Link from missing.example", "Keep me"]
    assert sorted(requested) == ["https://found.example", "https://missing.example"]
    assert (tmp_path / "cache.json").exists()


def test_fetch_missing_titles_with_nothing_to_do():
    entries = [LinkEntry(url="https://a.example", label="A")]

    assert asyncio.run(TitleFetcher().fetch_missing_titles(entries)) == entries
