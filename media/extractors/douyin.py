from __future__ import annotations

from typing import Any

from core.context import ExecutionContext
from core.errors import ExtractionFailed
from core.models import MediaDescriptor, MediaKind
from media.http import HttpClient

DOUYIN_PROXY_API = "https://douyin.cuong.one/api/douyin/detail"


def parse_proxy_response(payload: dict[str, Any]) -> list[MediaDescriptor]:
    video = payload.get("video") or ""
    if payload.get("status") != "ok" or not video:
        raise ExtractionFailed("douyin", payload.get("message") or "Douyin video not found")
    return [MediaDescriptor(MediaKind.VIDEO, video)]


async def _detail(http: HttpClient, url: str) -> dict[str, Any]:
    session = await http.session()
    async with session.get(DOUYIN_PROXY_API, params={"url": url}) as resp:
        if resp.status != 200:
            raise ExtractionFailed("douyin", f"api returned status {resp.status}")
        return await resp.json(content_type=None)


async def get_douyin_media(
    ctx: ExecutionContext, url: str, *, http: HttpClient
) -> list[MediaDescriptor]:
    payload = await ctx.run(_detail(http, url))
    return parse_proxy_response(payload)
