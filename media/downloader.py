from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from core.context import ExecutionContext
from core.errors import Cancelled, DownloadFailed
from core.models import DownloadResult, MediaDescriptor
from media.http import HttpClient

log = logging.getLogger(__name__)

# aligned with the upload limit; anything larger could never be delivered
DEFAULT_MAX_DOWNLOAD_BYTES = 25 * 1000 * 1000
DEFAULT_MAX_CONCURRENT = 4
CHUNK_SIZE = 64 * 1024


def filename_for_mime(mime_type: str) -> str:
    """Pick an upload filename whose extension matches the MIME type."""
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("video/"):
        return "media.mp4"
    if "image/gif" in mime_type:
        return "media.gif"
    if "image/png" in mime_type:
        return "media.png"
    if "image/webp" in mime_type:
        return "media.webp"
    if mime_type.startswith("image/"):
        return "media.jpg"
    if mime_type.startswith("audio/"):
        return "media.mp3"
    return "media.bin"


class ConcurrentDownloader:
    def __init__(
        self,
        http: HttpClient,
        *,
        max_bytes: int = DEFAULT_MAX_DOWNLOAD_BYTES,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._http = http
        self.max_bytes = max_bytes
        self.max_concurrent = max(1, max_concurrent)
        self.chunk_size = chunk_size

    async def download(self, ctx: ExecutionContext, url: str) -> tuple[bytes, str]:
        return await ctx.run(self._fetch(url))

    async def download_all(
        self, ctx: ExecutionContext, descriptors: Sequence[MediaDescriptor]
    ) -> list[DownloadResult]:
        """Fetch every descriptor concurrently; results keep the input order.

        Returns once every fetch has finished, failed or been cancelled. A
        failed item never affects the others.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def _guarded(url: str) -> tuple[bytes, str]:
            async with semaphore:
                return await self._fetch(url)

        async def _one(index: int, descriptor: MediaDescriptor) -> DownloadResult:
            try:
                data, content_type = await ctx.run(_guarded(descriptor.url))
            except Cancelled as exc:
                return DownloadResult(index=index, descriptor=descriptor, error=exc)
            except DownloadFailed as exc:
                log.info("Download #%d failed: %s", index + 1, exc.reason)
                return DownloadResult(
                    index=index, descriptor=descriptor, error=DownloadFailed(index, exc.reason)
                )
            except Exception as exc:
                log.info("Download #%d failed: %r", index + 1, exc)
                reason = str(exc) or type(exc).__name__
                return DownloadResult(
                    index=index, descriptor=descriptor, error=DownloadFailed(index, reason)
                )
            return DownloadResult(
                index=index, descriptor=descriptor, data=data, content_type=content_type
            )

        results = await asyncio.gather(
            *(_one(index, descriptor) for index, descriptor in enumerate(descriptors))
        )
        return list(results)

    async def _fetch(self, url: str) -> tuple[bytes, str]:
        session = await self._http.session()
        async with session.get(url) as resp:
            if not 200 <= resp.status < 300:
                raise DownloadFailed(0, f"HTTP {resp.status} {resp.reason or ''}".strip())
            declared = resp.content_length
            if declared is not None and declared > self.max_bytes:
                raise DownloadFailed(0, f"file too large ({declared} bytes, max {self.max_bytes})")
            buf = bytearray()
            async for chunk in resp.content.iter_chunked(self.chunk_size):
                buf.extend(chunk)
                if len(buf) > self.max_bytes:
                    raise DownloadFailed(0, f"file too large (over {self.max_bytes} bytes)")
            return bytes(buf), resp.content_type
