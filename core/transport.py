from __future__ import annotations

from typing import Protocol, Sequence


class PlatformTransport(Protocol):
    """Raw outbound operations of the messaging platform.

    Retries, size checks and merging live in :class:`media.delivery.OutboundMessenger`;
    implementations only move bytes and raise on failure.
    """

    @property
    def self_id(self) -> int:
        ...

    async def send_text(self, destination: int, text: str) -> None:
        ...

    async def upload(self, destination: int, data: bytes, filename: str, mime_type: str) -> str:
        """Upload one file and return the platform's attachment identifier."""
        ...

    async def send_attachments(self, destination: int, attachment_ids: Sequence[str]) -> None:
        ...
