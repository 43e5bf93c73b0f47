"""Markdown image extraction and the local image cache.

Images referenced from issue descriptions are downloaded once per process into a
cache directory keyed by a digest of their URL, then served back to the agent as
inline image blocks. Cached files are never revalidated; uploads are assumed to
be immutable once published.
"""

import asyncio
import hashlib
import logging
import os
import re
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx

from linear_mcp.concurrency import bounded_map
from linear_mcp.errors import TrackerError
from linear_mcp.models import CachedMedia

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".png"

# ![alt text](url)
_IMAGE_RE = re.compile(r"!\[.*?\]\((.*?)\)")

Fetcher = Callable[[str], Awaitable[bytes]]


def extract_image_urls(markdown: str | None) -> list[str]:
    """Return the URLs of all Markdown images in document order, duplicates included."""
    if not markdown:
        return []
    return _IMAGE_RE.findall(markdown)


def cache_key_for(url: str) -> str:
    """Digest of the URL plus the extension of its path (``.png`` if it has none)."""
    digest = hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest()
    ext = PurePosixPath(urlparse(url).path).suffix or DEFAULT_EXTENSION
    return f"{digest}{ext}"


def write_atomic(path: Path, body: bytes) -> None:
    """Write ``body`` to a sibling temp file and rename it over ``path``."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(body)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def remove_cache_dir(cache_dir: Path) -> bool:
    """Delete the cache directory. Returns False if there was nothing to delete."""
    if not cache_dir.exists():
        logger.info("Temp directory doesn't exist, nothing to clean up")
        return False
    try:
        shutil.rmtree(cache_dir)
    except OSError as exc:
        logger.warning("Failed to delete temp directory %s: %s", cache_dir, exc)
        return False
    logger.info("Cleaned up temporary files in %s", cache_dir)
    return True


class MediaStore(ABC):
    @abstractmethod
    async def resolve(self, url: str) -> CachedMedia | None:
        """Make the image at ``url`` locally available; ``None`` if it cannot be fetched."""

    @abstractmethod
    async def read(self, media: CachedMedia) -> bytes: ...

    @abstractmethod
    def dispose(self) -> None:
        """Release everything the store holds. Safe to call more than once."""


class DiskMediaCache(MediaStore):
    """Content-addressed image cache in a process-owned directory.

    Two concurrent misses on the same URL both download; the last write wins.
    """

    def __init__(self, cache_dir: Path, fetch: Fetcher) -> None:
        self.cache_dir = Path(cache_dir)
        self._fetch = fetch

    async def resolve(self, url: str) -> CachedMedia | None:
        key = cache_key_for(url)
        path = self.cache_dir / key
        media = CachedMedia(cache_key=key, local_path=str(path), url=url)
        try:
            if await asyncio.to_thread(path.exists):
                return media
            await asyncio.to_thread(self.cache_dir.mkdir, parents=True, exist_ok=True)
            body = await self._fetch(url)
            await asyncio.to_thread(write_atomic, path, body)
        except (httpx.HTTPError, httpx.InvalidURL, TrackerError, OSError) as exc:
            logger.warning("Error downloading image from %s: %s", url, exc)
            return None
        logger.debug("Cached %s as %s", url, path)
        return media

    async def read(self, media: CachedMedia) -> bytes:
        return await asyncio.to_thread(Path(media.local_path).read_bytes)

    def dispose(self) -> None:
        remove_cache_dir(self.cache_dir)


@dataclass(frozen=True)
class ResolvedMarkdown:
    text: str
    images: list[CachedMedia] = field(default_factory=list)


async def resolve_markdown_images(markdown: str | None, store: MediaStore) -> ResolvedMarkdown:
    """Fetch every image referenced by ``markdown`` concurrently.

    The text is returned untouched. Images that fail to resolve are left out.
    """
    urls = extract_image_urls(markdown)
    resolved = await bounded_map(store.resolve, urls)
    return ResolvedMarkdown(text=markdown or "", images=[m for m in resolved if m is not None])
