"""Tests for image extraction, the disk cache and the markdown image pipeline."""

from pathlib import Path

import httpx
import pytest

from fakes import MemoryMediaStore
from linear_mcp.errors import TrackerError
from linear_mcp.media import (
    DiskMediaCache,
    cache_key_for,
    extract_image_urls,
    remove_cache_dir,
    resolve_markdown_images,
)


class TestExtractImageUrls:
    def test_document_order(self) -> None:
        markdown = "Intro ![first](https://a.example/1.png) text\n![](https://a.example/2.jpg)"
        assert extract_image_urls(markdown) == ["https://a.example/1.png", "https://a.example/2.jpg"]

    def test_duplicates_kept(self) -> None:
        markdown = "![a](https://x/1.png) and again ![b](https://x/1.png)"
        assert extract_image_urls(markdown) == ["https://x/1.png", "https://x/1.png"]

    def test_ignores_links_and_plain_urls(self) -> None:
        markdown = "[not an image](https://x/doc) https://x/raw.png ![broken(https://x/2.png)"
        assert extract_image_urls(markdown) == []

    @pytest.mark.parametrize("markdown", ["", None, "no images here"])
    def test_empty(self, markdown: str | None) -> None:
        assert extract_image_urls(markdown) == []


class TestCacheKey:
    def test_deterministic(self) -> None:
        assert cache_key_for("https://x/a.jpg") == cache_key_for("https://x/a.jpg")

    def test_keeps_extension(self) -> None:
        assert cache_key_for("https://x/a.jpg").endswith(".jpg")

    def test_defaults_to_png(self) -> None:
        key = cache_key_for("https://uploads.linear.app/abc/def")
        assert key.endswith(".png")
        assert len(key) == 32 + len(".png")

    def test_query_string_ignored_for_extension(self) -> None:
        assert cache_key_for("https://x/a.gif?sig=123").endswith(".gif")

    def test_distinct_urls_distinct_keys(self) -> None:
        assert cache_key_for("https://x/a.png") != cache_key_for("https://x/b.png")


class CountingFetcher:
    def __init__(self, responses: dict[str, bytes]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.responses:
            request = httpx.Request("GET", url)
            raise httpx.HTTPStatusError("404 Not Found", request=request, response=httpx.Response(404, request=request))
        return self.responses[url]


@pytest.mark.asyncio
class TestDiskMediaCache:
    async def test_miss_downloads_and_writes(self, tmp_path: Path) -> None:
        fetch = CountingFetcher({"https://x/a.png": b"PNGDATA"})
        cache = DiskMediaCache(tmp_path / "images", fetch=fetch)

        media = await cache.resolve("https://x/a.png")

        assert media is not None
        assert Path(media.local_path).read_bytes() == b"PNGDATA"
        assert media.cache_key == cache_key_for("https://x/a.png")
        assert fetch.calls == ["https://x/a.png"]

    async def test_second_resolve_hits_cache(self, tmp_path: Path) -> None:
        fetch = CountingFetcher({"https://x/a.png": b"PNGDATA"})
        cache = DiskMediaCache(tmp_path / "images", fetch=fetch)

        first = await cache.resolve("https://x/a.png")
        second = await cache.resolve("https://x/a.png")

        assert first is not None and second is not None
        assert first.local_path == second.local_path
        assert len(fetch.calls) == 1

    async def test_http_failure_returns_none(self, tmp_path: Path) -> None:
        cache = DiskMediaCache(tmp_path / "images", fetch=CountingFetcher({}))
        assert await cache.resolve("https://x/missing.png") is None

    async def test_tracker_failure_returns_none(self, tmp_path: Path) -> None:
        async def fetch(url: str) -> bytes:
            raise TrackerError("boom")

        cache = DiskMediaCache(tmp_path / "images", fetch=fetch)
        assert await cache.resolve("https://x/a.png") is None

    async def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        cache_dir = tmp_path / "images"
        cache = DiskMediaCache(cache_dir, fetch=CountingFetcher({"https://x/a.png": b"PNGDATA"}))

        await cache.resolve("https://x/a.png")

        assert [p.name for p in cache_dir.iterdir()] == [cache_key_for("https://x/a.png")]

    async def test_failed_write_is_not_a_cache_hit(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken_replace(src: str, dst: Path) -> None:
            raise OSError("disk full")

        cache_dir = tmp_path / "images"
        fetch = CountingFetcher({"https://x/a.png": b"PNGDATA"})
        cache = DiskMediaCache(cache_dir, fetch=fetch)
        monkeypatch.setattr("linear_mcp.media.os.replace", broken_replace)

        assert await cache.resolve("https://x/a.png") is None
        assert list(cache_dir.iterdir()) == []

        monkeypatch.undo()
        media = await cache.resolve("https://x/a.png")

        assert media is not None
        assert Path(media.local_path).read_bytes() == b"PNGDATA"
        assert len(fetch.calls) == 2

    async def test_read_returns_bytes(self, tmp_path: Path) -> None:
        cache = DiskMediaCache(tmp_path / "images", fetch=CountingFetcher({"https://x/a.png": b"abc"}))
        media = await cache.resolve("https://x/a.png")
        assert media is not None
        assert await cache.read(media) == b"abc"

    async def test_dispose_removes_directory(self, tmp_path: Path) -> None:
        cache_dir = tmp_path / "images"
        cache = DiskMediaCache(cache_dir, fetch=CountingFetcher({"https://x/a.png": b"abc"}))
        await cache.resolve("https://x/a.png")
        assert cache_dir.exists()

        cache.dispose()
        assert not cache_dir.exists()
        cache.dispose()  # absent directory is fine


def test_remove_cache_dir_reports_absence(tmp_path: Path) -> None:
    assert remove_cache_dir(tmp_path / "never-created") is False
    (tmp_path / "images").mkdir()
    assert remove_cache_dir(tmp_path / "images") is True


@pytest.mark.asyncio
class TestResolveMarkdownImages:
    async def test_one_failure_one_success(self) -> None:
        store = MemoryMediaStore({"https://x/ok.png": b"ok"})
        markdown = "![a](https://x/ok.png)\n![b](https://x/broken.png)"

        result = await resolve_markdown_images(markdown, store)

        assert result.text == markdown
        assert [m.url for m in result.images] == ["https://x/ok.png"]
        assert sorted(store.resolved) == ["https://x/broken.png", "https://x/ok.png"]

    async def test_no_markdown(self) -> None:
        store = MemoryMediaStore()
        result = await resolve_markdown_images(None, store)
        assert result.text == ""
        assert result.images == []
        assert store.resolved == []

    async def test_text_not_rewritten(self, tmp_path: Path) -> None:
        cache = DiskMediaCache(tmp_path, fetch=CountingFetcher({"https://x/a.png": b"abc"}))
        markdown = "See ![shot](https://x/a.png)"
        result = await resolve_markdown_images(markdown, cache)
        assert result.text == markdown
        assert len(result.images) == 1
