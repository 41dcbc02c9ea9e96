import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.errors import ExtractionFailed  # noqa: E402
from core.models import MediaKind  # noqa: E402
from media.extractors import douyin, facebook, instagram, tiktok, ytdlp  # noqa: E402


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.instagram.com/p/ABC123/", "ABC123"),
        ("https://www.instagram.com/reel/Cx_9-z/?igsh=abc", "Cx_9-z"),
        ("https://instagram.com/someone/p/XYZ", "XYZ"),
        ("https://www.instagram.com/tv/TV1", "TV1"),
        ("https://www.instagram.com/someone/", ""),
    ],
)
def test_instagram_shortcode(url: str, expected: str) -> None:
    assert instagram.extract_shortcode(url) == expected


def test_instagram_share_links_are_detected() -> None:
    assert instagram.is_share_url("https://www.instagram.com/share/BAabc/")
    assert not instagram.is_share_url("https://www.instagram.com/p/abc/")


def test_instagram_carousel_yields_every_child() -> None:
    payload = {
        "data": {
            "xdt_shortcode_media": {
                "__typename": "XDTGraphSidecar",
                "edge_sidecar_to_children": {
                    "edges": [
                        {"node": {"is_video": True, "video_url": "https://cdn/v.mp4"}},
                        {"node": {"is_video": False, "display_url": "https://cdn/i.jpg"}},
                        {"node": {}},
                    ]
                },
            }
        }
    }

    items = instagram.parse_graphql_media(payload)

    assert [(item.kind, item.url) for item in items] == [
        (MediaKind.VIDEO, "https://cdn/v.mp4"),
        (MediaKind.IMAGE, "https://cdn/i.jpg"),
    ]


def test_instagram_single_post_and_missing_media() -> None:
    payload = {"data": {"xdt_shortcode_media": {"display_url": "https://cdn/i.jpg"}}}
    assert [item.url for item in instagram.parse_graphql_media(payload)] == ["https://cdn/i.jpg"]
    assert instagram.parse_graphql_media({"data": {"xdt_shortcode_media": None}}) == []
    assert instagram.parse_graphql_media({}) == []


def test_tiktok_aweme_id() -> None:
    assert tiktok.extract_aweme_id("https://www.tiktok.com/@u/video/7234567890123?lang=en") == "7234567890123"
    assert tiktok.extract_aweme_id("https://www.tiktok.com/@u/photo/42") == "42"
    assert tiktok.extract_aweme_id("https://vm.tiktok.com/ZMabc/") == ""


def test_tiktok_slideshow_prefers_images() -> None:
    payload = {
        "aweme_list": [
            {
                "image_post_info": {
                    "images": [
                        {"display_image": {"url_list": ["https://cdn/1.jpg", "https://alt/1.jpg"]}},
                        {"url_list": ["https://cdn/2.jpg"]},
                    ]
                },
                "video": {"play_addr": {"url_list": ["https://cdn/v.mp4"]}},
            }
        ]
    }

    items = tiktok.parse_aweme(payload)

    assert [item.url for item in items] == ["https://cdn/1.jpg", "https://cdn/2.jpg"]
    assert all(item.kind is MediaKind.IMAGE for item in items)


def test_tiktok_video_and_empty_feed() -> None:
    payload = {"aweme_list": [{"video": {"play_addr": {"url_list": ["https://cdn/v.mp4"]}}}]}
    (item,) = tiktok.parse_aweme(payload)
    assert (item.kind, item.url) == (MediaKind.VIDEO, "https://cdn/v.mp4")
    assert tiktok.parse_aweme({"aweme_list": []}) == []


def test_douyin_proxy_response() -> None:
    (item,) = douyin.parse_proxy_response({"status": "ok", "video": "https://cdn/d.mp4"})
    assert item.url == "https://cdn/d.mp4"

    with pytest.raises(ExtractionFailed, match="rate limited"):
        douyin.parse_proxy_response({"status": "error", "message": "rate limited"})
    with pytest.raises(ExtractionFailed, match="Douyin video not found"):
        douyin.parse_proxy_response({"status": "ok"})


def test_facebook_prefers_hd_and_unescapes() -> None:
    html = (
        '{&quot;browser_native_sd_url&quot;:&quot;https:\\/\\/video.fb\\/sd.mp4?a=1&amp;b=2&quot;,'
        '"browser_native_hd_url":"https:\\/\\/video.fb\\/hd.mp4"}'
    )
    assert facebook.parse_video_url(html) == "https://video.fb/hd.mp4"


def test_facebook_falls_back_to_sd_or_nothing() -> None:
    html = '<script>{"playable_url":"https:\\/\\/video.fb\\/sd.mp4?a=1&amp;b=2"}</script>'
    assert facebook.parse_video_url(html) == "https://video.fb/sd.mp4?a=1&b=2"
    assert facebook.parse_video_url("<html></html>") == ""


def test_ytdlp_info_mapping() -> None:
    single = {"url": "https://cdn/v.mp4", "ext": "mp4"}
    assert [item.kind for item in ytdlp.descriptors_from_info(single)] == [MediaKind.VIDEO]

    playlist = {
        "entries": [{"url": "https://cdn/p.jpg", "ext": "jpg"}, None, {"url": "ftp://x", "ext": "mp4"}]
        + [{"url": f"https://cdn/{i}.mp4", "ext": "mp4"} for i in range(20)]
    }
    items = ytdlp.descriptors_from_info(playlist)
    assert len(items) == ytdlp.MAX_ENTRIES
    assert items[0].kind is MediaKind.IMAGE

    assert ytdlp.descriptors_from_info({"title": "no url"}) == []
