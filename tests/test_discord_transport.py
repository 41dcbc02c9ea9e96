import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

sys.path.append(str(Path(__file__).resolve().parents[1]))

from media.http import HttpClient  # noqa: E402
from transport.discord_transport import (  # noqa: E402
    DiscordTransport,
    TransportError,
    attachment_filename,
)


class FakeDiscordHTTP:
    def __init__(self, upload_url: str = "http://127.0.0.1:9/upload", granted: bool = True) -> None:
        self.upload_url = upload_url
        self.granted = granted
        self.requests: list[tuple[object, dict]] = []

    async def request(self, route, **kwargs):
        self.requests.append((route, kwargs))
        if route.path.endswith("/attachments"):
            if not self.granted:
                return {"attachments": []}
            return {
                "attachments": [
                    {"id": 0, "upload_url": self.upload_url, "upload_filename": "abc123/media.png"}
                ]
            }
        return {"id": "1"}


class FakeChannel:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, content: str, **kwargs) -> None:
        self.sent.append(content)


def _client(http: FakeDiscordHTTP, channel: FakeChannel | None = None, user_id: int | None = 77):
    async def fetch_channel(channel_id: int):
        return channel

    return SimpleNamespace(
        http=http,
        user=SimpleNamespace(id=user_id) if user_id is not None else None,
        get_channel=lambda channel_id: None,
        fetch_channel=fetch_channel,
    )


def test_self_id() -> None:
    assert DiscordTransport(_client(FakeDiscordHTTP()), HttpClient()).self_id == 77
    assert DiscordTransport(_client(FakeDiscordHTTP(), user_id=None), HttpClient()).self_id == 0


def test_long_text_is_split_into_platform_sized_messages() -> None:
    channel = FakeChannel()
    transport = DiscordTransport(_client(FakeDiscordHTTP(), channel), HttpClient())

    asyncio.run(transport.send_text(5, "a" * 4500))

    assert [len(chunk) for chunk in channel.sent] == [2000, 2000, 500]


def test_upload_reserves_slot_then_puts_bytes() -> None:
    received: dict[str, object] = {}

    async def upload(request: web.Request) -> web.Response:
        received["body"] = await request.read()
        received["content_type"] = request.headers.get("Content-Type")
        return web.Response(status=200)

    async def _run() -> tuple[str, FakeDiscordHTTP]:
        app = web.Application()
        app.router.add_put("/upload", upload)
        server = TestServer(app)
        await server.start_server()
        http_client = HttpClient()
        discord_http = FakeDiscordHTTP(str(server.make_url("/upload")))
        try:
            transport = DiscordTransport(_client(discord_http), http_client)
            attachment_id = await transport.upload(5, b"png-bytes", "media.png", "image/png")
        finally:
            await http_client.close()
            await server.close()
        return attachment_id, discord_http

    attachment_id, discord_http = asyncio.run(_run())

    assert attachment_id == "abc123/media.png"
    assert received == {"body": b"png-bytes", "content_type": "image/png"}
    route, kwargs = discord_http.requests[0]
    assert route.url.endswith("/channels/5/attachments")
    assert kwargs["json"] == {"files": [{"id": "0", "filename": "media.png", "file_size": 9}]}


def test_upload_without_slot_fails() -> None:
    transport = DiscordTransport(_client(FakeDiscordHTTP(granted=False)), HttpClient())
    with pytest.raises(TransportError):
        asyncio.run(transport.upload(5, b"x", "media.jpg", "image/jpeg"))


def test_attachments_are_sent_at_most_ten_per_message() -> None:
    discord_http = FakeDiscordHTTP()
    transport = DiscordTransport(_client(discord_http), HttpClient())
    ids = [f"u{i}/media.jpg" for i in range(12)]

    asyncio.run(transport.send_attachments(5, ids))

    bodies = [kwargs["json"]["attachments"] for _, kwargs in discord_http.requests]
    assert [len(body) for body in bodies] == [10, 2]
    assert bodies[1] == [
        {"id": "0", "filename": "media.jpg", "uploaded_filename": "u10/media.jpg"},
        {"id": "1", "filename": "media.jpg", "uploaded_filename": "u11/media.jpg"},
    ]
    assert all(route.url.endswith("/channels/5/messages") for route, _ in discord_http.requests)


def test_attachment_filename() -> None:
    assert attachment_filename("abc/clip.mp4") == "clip.mp4"
    assert attachment_filename("plain.png") == "plain.png"
    assert attachment_filename("abc/") == "media.bin"
