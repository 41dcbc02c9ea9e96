from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import urlsplit

from core.context import ExecutionContext
from core.errors import ExtractionFailed, NoMediaFound
from core.models import MediaDescriptor, MediaKind
from core.retry import retry_async
from media.http import MAX_HTML_BYTES, HttpClient

log = logging.getLogger(__name__)

INSTAGRAM_URL = "https://www.instagram.com/"
GRAPHQL_URL = "https://www.instagram.com/graphql/query"
DOC_ID = "9510064595728286"
IG_APP_ID = "936619743392459"

GRAPHQL_RETRIES = 5
GRAPHQL_INITIAL_DELAY_S = 1.0

CSRF_TOKEN_RE = re.compile(r"csrftoken=([^;\"\\]+)")
SHORTCODE_RE = re.compile(r"/(p|reel|tv|reels)/([^/?#]+)")
POST_MARKERS = {"p", "reel", "tv", "reels"}


class _Throttled(Exception):
    def __init__(self, status: int, retry_after: float | None) -> None:
        super().__init__(f"instagram graphql returned status: {status}")
        self.retry_after = retry_after


def extract_shortcode(url: str) -> str:
    """Shortcode following a p/reel/tv/reels path segment, or "" if absent."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    segments = path.strip("/").split("/")
    for i, segment in enumerate(segments):
        if segment in POST_MARKERS and i + 1 < len(segments) and segments[i + 1]:
            return segments[i + 1]
    match = SHORTCODE_RE.search(url)
    return match.group(2) if match else ""


def is_share_url(url: str) -> bool:
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return "share" in path.strip("/").split("/")


def parse_graphql_media(payload: dict[str, Any]) -> list[MediaDescriptor]:
    media = (payload.get("data") or {}).get("xdt_shortcode_media")
    if not isinstance(media, dict):
        return []

    def _descriptor(node: dict[str, Any]) -> MediaDescriptor | None:
        if node.get("is_video") and node.get("video_url"):
            return MediaDescriptor(MediaKind.VIDEO, node["video_url"])
        if node.get("display_url"):
            return MediaDescriptor(MediaKind.IMAGE, node["display_url"])
        return None

    nodes: list[dict[str, Any]]
    if media.get("__typename") == "XDTGraphSidecar":
        edges = (media.get("edge_sidecar_to_children") or {}).get("edges") or []
        nodes = [edge.get("node") or {} for edge in edges if isinstance(edge, dict)]
    else:
        nodes = [media]

    items = [_descriptor(node) for node in nodes]
    return [item for item in items if item is not None]


async def _csrf_token(http: HttpClient) -> str:
    session = await http.session()
    async with session.get(INSTAGRAM_URL) as resp:
        if resp.status != 200:
            raise ExtractionFailed("instagram", f"home page returned status {resp.status}")
        cookie = resp.cookies.get("csrftoken")
        if cookie is not None and cookie.value:
            return cookie.value
        body = (await resp.content.read(MAX_HTML_BYTES)).decode("utf-8", errors="replace")
    match = CSRF_TOKEN_RE.search(body)
    if match:
        return match.group(1)
    raise ExtractionFailed("instagram", "csrf token not found")


async def _graphql(http: HttpClient, shortcode: str, csrf_token: str) -> dict[str, Any]:
    variables = {
        "shortcode": shortcode,
        "fetch_tagged_user_count": None,
        "hoisted_comment_id": None,
        "hoisted_reply_id": None,
    }
    form = {"variables": json.dumps(variables), "doc_id": DOC_ID}
    headers = {
        "X-CSRFToken": csrf_token,
        "X-IG-App-ID": IG_APP_ID,
        "X-Requested-With": "XMLHttpRequest",
        "Referer": INSTAGRAM_URL,
        "Cookie": f"csrftoken={csrf_token}",
    }
    session = await http.session()
    async with session.post(GRAPHQL_URL, data=form, headers=headers) as resp:
        if resp.status in {403, 429}:
            raw = resp.headers.get("Retry-After")
            retry_after = float(raw) if raw and raw.isdigit() else None
            raise _Throttled(resp.status, retry_after)
        if resp.status != 200:
            raise ExtractionFailed("instagram", f"graphql returned status {resp.status}")
        return await resp.json(content_type=None)


async def get_instagram_media(
    ctx: ExecutionContext, url: str, *, http: HttpClient
) -> list[MediaDescriptor]:
    if is_share_url(url):
        url = await ctx.run(http.resolve_redirects(url))

    shortcode = extract_shortcode(url)
    if not shortcode:
        raise ExtractionFailed("instagram", "invalid instagram url")

    csrf_token = await ctx.run(_csrf_token(http))
    try:
        payload = await retry_async(
            lambda: ctx.run(_graphql(http, shortcode, csrf_token)),
            attempts=GRAPHQL_RETRIES + 1,
            ctx=ctx,
            delay=GRAPHQL_INITIAL_DELAY_S,
            retry_on=(_Throttled,),
            retry_after=lambda exc: getattr(exc, "retry_after", None),
            label="instagram graphql",
        )
    except _Throttled as exc:
        raise ExtractionFailed("instagram", str(exc)) from exc

    items = parse_graphql_media(payload)
    if not items:
        raise NoMediaFound()
    log.debug("instagram %s -> %d item(s)", shortcode, len(items))
    return items
