from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.context import ExecutionContext
    from media.delivery import OutboundMessenger


class MediaKind(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class DeliveryStatus(str, enum.Enum):
    SENT = "sent"
    PARTIAL_SENT = "partial_sent"


@dataclass(frozen=True, slots=True)
class MediaDescriptor:
    kind: MediaKind
    url: str


@dataclass(slots=True)
class DownloadResult:
    index: int
    descriptor: MediaDescriptor
    data: bytes | None = None
    content_type: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


@dataclass(frozen=True, slots=True)
class OutgoingMedia:
    data: bytes
    filename: str
    mime_type: str
    # 1-based item number shown to users; defaults to the position in the batch
    position: int | None = None


@dataclass(slots=True)
class UploadAttempt:
    index: int
    position: int
    attachment_id: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.attachment_id is not None


@dataclass(slots=True)
class DeliveryReport:
    status: DeliveryStatus
    attachment_ids: list[str] = field(default_factory=list)
    failures: list[tuple[int, BaseException]] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return len(self.attachment_ids)


@dataclass(frozen=True, slots=True)
class InboundMessage:
    user_id: int
    destination: int
    text: str
    message_id: int | None = None


@dataclass(slots=True)
class CommandContext:
    user_id: int
    destination: int
    args: list[str]
    raw_text: str
    start_time: datetime
    execution: ExecutionContext
    messenger: OutboundMessenger
    message_id: int | None = None

    async def reply(self, text: str) -> None:
        await self.messenger.send_message(self.execution, self.destination, text)
