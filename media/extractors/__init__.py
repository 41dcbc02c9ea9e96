"""Per-platform extraction strategies and the default handler table."""

from __future__ import annotations

from functools import partial

from media.extractors.douyin import get_douyin_media
from media.extractors.facebook import get_facebook_media
from media.extractors.instagram import get_instagram_media
from media.extractors.tiktok import get_tiktok_media
from media.extractors.ytdlp import get_ytdlp_media
from media.http import HttpClient
from media.platforms import PlatformHandler, PlatformRegistry


def build_default_platforms(http: HttpClient) -> PlatformRegistry:
    # more specific hosts first; yt-dlp is the catch-all for the remaining sites
    return PlatformRegistry(
        [
            PlatformHandler(
                "instagram",
                ("instagram.com", "instagr.am"),
                partial(get_instagram_media, http=http),
            ),
            PlatformHandler("tiktok", ("tiktok.com",), partial(get_tiktok_media, http=http)),
            PlatformHandler(
                "douyin",
                ("douyin.com", "iesdouyin.com"),
                partial(get_douyin_media, http=http),
            ),
            PlatformHandler(
                "facebook",
                ("facebook.com", "fb.watch"),
                partial(get_facebook_media, http=http),
            ),
            PlatformHandler(
                "yt-dlp",
                ("youtube.com", "youtu.be", "x.com", "twitter.com", "reddit.com", "vimeo.com"),
                partial(get_ytdlp_media, user_agent=http.user_agent),
            ),
        ]
    )


__all__ = ["build_default_platforms"]
