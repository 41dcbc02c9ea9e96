"""Generic strategy backed by yt-dlp for sites without a dedicated scraper."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import yt_dlp

from core.context import ExecutionContext
from core.errors import ExtractionFailed
from core.models import MediaDescriptor, MediaKind

log = logging.getLogger(__name__)

# progressive (muxed) formats only: the downloader fetches a single URL per item
FORMAT_SPEC = (
    "best[ext=mp4][vcodec!=none][acodec!=none]/best[vcodec!=none][acodec!=none]/best"
)
MAX_ENTRIES = 10
IMAGE_EXTS = {"jpg", "jpeg", "png", "webp", "gif"}


class YTDLLogger:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def debug(self, message: str) -> None:
        self._append(message)

    def info(self, message: str) -> None:
        self._append(message)

    def warning(self, message: str) -> None:
        self._append(message)

    def error(self, message: str) -> None:
        self._append(message)

    def _append(self, message: str) -> None:
        if message:
            self.lines.append(str(message))

    def tail(self, count: int) -> str:
        if count <= 0:
            return ""
        return "\n".join(self.lines[-count:])


def _descriptor(info: dict[str, Any]) -> MediaDescriptor | None:
    url = info.get("url")
    if not isinstance(url, str) or not url.startswith("http"):
        return None
    ext = str(info.get("ext") or "").lower()
    kind = MediaKind.IMAGE if ext in IMAGE_EXTS else MediaKind.VIDEO
    return MediaDescriptor(kind, url)


def descriptors_from_info(info: dict[str, Any]) -> list[MediaDescriptor]:
    """Map a yt-dlp info dict (single item or playlist/carousel) to descriptors."""
    entries = info.get("entries")
    if entries is None:
        item = _descriptor(info)
        return [item] if item else []
    items: list[MediaDescriptor] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        item = _descriptor(entry)
        if item:
            items.append(item)
        if len(items) >= MAX_ENTRIES:
            break
    return items


def _probe(url: str, logger: YTDLLogger, user_agent: str | None) -> dict[str, Any]:
    opts: dict[str, Any] = {
        "quiet": True,
        "no_warnings": True,
        "logger": logger,
        "skip_download": True,
        "format": FORMAT_SPEC,
        "playlistend": MAX_ENTRIES,
    }
    if user_agent:
        opts["http_headers"] = {"User-Agent": user_agent}
    with yt_dlp.YoutubeDL(opts) as ydl:
        info = ydl.extract_info(url, download=False)
    if not isinstance(info, dict):
        raise ExtractionFailed("yt-dlp", "unexpected info returned")
    return ydl.sanitize_info(info)


async def get_ytdlp_media(
    ctx: ExecutionContext, url: str, *, user_agent: str | None = None
) -> list[MediaDescriptor]:
    logger = YTDLLogger()
    try:
        info = await ctx.run(asyncio.to_thread(_probe, url, logger, user_agent))
    except yt_dlp.utils.DownloadError as exc:
        log.debug("yt-dlp log tail for %s:\n%s", url, logger.tail(20))
        raise ExtractionFailed("yt-dlp", str(exc).removeprefix("ERROR: ")) from exc
    return descriptors_from_info(info)
