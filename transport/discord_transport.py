from __future__ import annotations

import logging
from typing import Any, Sequence

import discord
from discord.http import Route

from media.delivery import MAX_ATTACHMENTS_PER_MESSAGE
from media.http import HttpClient
from utils import split_message

log = logging.getLogger(__name__)


class TransportError(RuntimeError):
    pass


def attachment_filename(attachment_id: str) -> str:
    # upload_filename values look like "<uuid>/<filename>"
    return attachment_id.rsplit("/", 1)[-1] or "media.bin"


class DiscordTransport:
    """Outbound operations over the Discord REST API.

    Files go through the two-step attachment flow: reserve an upload slot on
    the channel, PUT the bytes to the returned URL, then reference the slot's
    ``upload_filename`` when creating the message. The ``upload_filename`` is
    the attachment identifier handed back to callers.
    """

    def __init__(self, client: discord.Client, http: HttpClient) -> None:
        self._client = client
        self._http = http

    @property
    def self_id(self) -> int:
        user = self._client.user
        return user.id if user else 0

    async def _channel(self, destination: int) -> Any:
        channel = self._client.get_channel(destination)
        if channel is None:
            channel = await self._client.fetch_channel(destination)
        if not hasattr(channel, "send"):
            raise TransportError(f"channel {destination} cannot receive messages")
        return channel

    async def send_text(self, destination: int, text: str) -> None:
        channel = await self._channel(destination)
        for chunk in split_message(text):
            await channel.send(chunk, allowed_mentions=discord.AllowedMentions.none())

    async def upload(self, destination: int, data: bytes, filename: str, mime_type: str) -> str:
        route = Route("POST", "/channels/{channel_id}/attachments", channel_id=destination)
        reply = await self._client.http.request(
            route,
            json={"files": [{"id": "0", "filename": filename, "file_size": len(data)}]},
        )
        slots = reply.get("attachments") if isinstance(reply, dict) else None
        if not slots:
            raise TransportError("upload slot was not granted")
        slot = slots[0]

        session = await self._http.session()
        async with session.put(
            slot["upload_url"], data=data, headers={"Content-Type": mime_type}
        ) as resp:
            if resp.status >= 300:
                raise TransportError(f"upload rejected with HTTP {resp.status}")
        log.debug("Uploaded %s (%d bytes) for channel %s", filename, len(data), destination)
        return str(slot["upload_filename"])

    async def send_attachments(self, destination: int, attachment_ids: Sequence[str]) -> None:
        route = Route("POST", "/channels/{channel_id}/messages", channel_id=destination)
        ids = list(attachment_ids)
        for start in range(0, len(ids), MAX_ATTACHMENTS_PER_MESSAGE):
            batch = ids[start : start + MAX_ATTACHMENTS_PER_MESSAGE]
            payload = {
                "attachments": [
                    {
                        "id": str(i),
                        "filename": attachment_filename(uploaded),
                        "uploaded_filename": uploaded,
                    }
                    for i, uploaded in enumerate(batch)
                ]
            }
            await self._client.http.request(route, json=payload)
