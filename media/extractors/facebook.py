from __future__ import annotations

import re

from core.context import ExecutionContext
from core.errors import ExtractionFailed
from core.models import MediaDescriptor, MediaKind
from core.retry import retry_async
from media.http import HttpClient

PAGE_ATTEMPTS = 10

PAGE_HEADERS = {
    "sec-fetch-user": "?1",
    "sec-ch-ua-mobile": "?0",
    "sec-fetch-site": "none",
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "cache-control": "max-age=0",
    "upgrade-insecure-requests": "1",
    "accept-language": "en-GB,en;q=0.9",
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
}

SD_PATTERNS = (
    re.compile(r'"browser_native_sd_url":"(.*?)"'),
    re.compile(r'"playable_url":"(.*?)"'),
    re.compile(r'sd_src\s*:\s*"([^"]*)"'),
    re.compile(r'"src":"[^"]*(https://[^"]*)'),
)
HD_PATTERNS = (
    re.compile(r'"browser_native_hd_url":"(.*?)"'),
    re.compile(r'"playable_url_quality_hd":"(.*?)"'),
    re.compile(r'hd_src\s*:\s*"([^"]*)"'),
)


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return ""


def parse_video_url(html: str) -> str:
    """Best video URL in a page: HD when present, else SD; "" if neither."""
    html = html.replace("&quot;", '"').replace("&amp;", "&")
    url = _first_match(HD_PATTERNS, html) or _first_match(SD_PATTERNS, html)
    return url.replace("\\/", "/")


async def _fetch_video(http: HttpClient, url: str) -> MediaDescriptor:
    status, html = await http.get_text(url, headers=PAGE_HEADERS)
    if status != 200:
        raise ExtractionFailed("facebook", f"page returned status {status}")
    video_url = parse_video_url(html)
    if not video_url:
        raise ExtractionFailed("facebook", "no video url found")
    return MediaDescriptor(MediaKind.VIDEO, video_url)


async def get_facebook_media(
    ctx: ExecutionContext, url: str, *, http: HttpClient
) -> list[MediaDescriptor]:
    if "/share/" in url:
        url = await ctx.run(http.resolve_redirects(url))
    try:
        item = await retry_async(
            lambda: ctx.run(_fetch_video(http, url)),
            attempts=PAGE_ATTEMPTS,
            ctx=ctx,
            label="facebook page",
        )
    except ExtractionFailed as exc:
        raise ExtractionFailed(
            "facebook", f"failed after {PAGE_ATTEMPTS} attempts: {exc.reason}"
        ) from exc
    return [item]
