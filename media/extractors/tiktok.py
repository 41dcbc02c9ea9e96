from __future__ import annotations

import re
from typing import Any

from core.context import ExecutionContext
from core.errors import ExtractionFailed, NoMediaFound
from core.models import MediaDescriptor, MediaKind
from media.http import HttpClient

TIKTOK_API = "https://api16-normal-c-useast2a.tiktokv.com/aweme/v1/feed/"
TIKTOK_UA = "TikTok 26.2.0 rv:262018 (iPhone; iOS 14.4.2; en_US) Cronet"

AWEME_ID_RE = re.compile(r"/video/(\d+)|/photo/(\d+)")


def extract_aweme_id(url: str) -> str:
    match = AWEME_ID_RE.search(url)
    if not match:
        return ""
    return match.group(1) or match.group(2) or ""


def _first(urls: Any) -> str:
    if isinstance(urls, list) and urls and isinstance(urls[0], str):
        return urls[0]
    return ""


def parse_aweme(payload: dict[str, Any]) -> list[MediaDescriptor]:
    """Slideshow posts yield one image per picture; otherwise the video."""
    aweme_list = payload.get("aweme_list") or []
    if not aweme_list:
        return []
    aweme = aweme_list[0] or {}

    items: list[MediaDescriptor] = []
    images = (aweme.get("image_post_info") or {}).get("images") or []
    for image in images:
        url = _first((image.get("display_image") or {}).get("url_list")) or _first(
            image.get("url_list")
        )
        if url:
            items.append(MediaDescriptor(MediaKind.IMAGE, url))
    if items:
        return items

    play_url = _first(((aweme.get("video") or {}).get("play_addr") or {}).get("url_list"))
    if play_url:
        return [MediaDescriptor(MediaKind.VIDEO, play_url)]
    return []


async def _feed(http: HttpClient, aweme_id: str) -> dict[str, Any]:
    session = await http.session()
    async with session.get(
        TIKTOK_API, params={"aweme_id": aweme_id}, headers={"User-Agent": TIKTOK_UA}
    ) as resp:
        if resp.status != 200:
            raise ExtractionFailed("tiktok", f"api returned status {resp.status}")
        return await resp.json(content_type=None)


async def get_tiktok_media(
    ctx: ExecutionContext, url: str, *, http: HttpClient
) -> list[MediaDescriptor]:
    final_url = await ctx.run(http.resolve_redirects(url))
    aweme_id = extract_aweme_id(final_url)
    if not aweme_id:
        raise ExtractionFailed("tiktok", f"no aweme_id found in {final_url}")

    payload = await ctx.run(_feed(http, aweme_id))
    if not payload.get("aweme_list"):
        raise ExtractionFailed("tiktok", "no tiktok data found")
    items = parse_aweme(payload)
    if not items:
        raise NoMediaFound()
    return items
