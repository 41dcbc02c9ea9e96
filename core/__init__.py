"""Contracts shared by the dispatcher and the media pipeline."""

from core.context import ExecutionContext
from core.errors import (
    AllDownloadsFailed,
    AllUploadsFailed,
    BotError,
    Cancelled,
    CommandCooldown,
    CommandNotFound,
    DownloadFailed,
    ExtractionFailed,
    NoMediaFound,
    OversizedPayload,
    UnsupportedPlatform,
    UploadFailed,
    UsageError,
)
from core.models import (
    CommandContext,
    DeliveryReport,
    DeliveryStatus,
    DownloadResult,
    InboundMessage,
    MediaDescriptor,
    MediaKind,
    OutgoingMedia,
    UploadAttempt,
)
from core.retry import retry_async
from core.transport import PlatformTransport

__all__ = [
    "AllDownloadsFailed",
    "AllUploadsFailed",
    "BotError",
    "Cancelled",
    "CommandContext",
    "CommandCooldown",
    "CommandNotFound",
    "DeliveryReport",
    "DeliveryStatus",
    "DownloadFailed",
    "DownloadResult",
    "ExecutionContext",
    "ExtractionFailed",
    "InboundMessage",
    "MediaDescriptor",
    "MediaKind",
    "NoMediaFound",
    "OutgoingMedia",
    "OversizedPayload",
    "PlatformTransport",
    "UnsupportedPlatform",
    "UploadAttempt",
    "UploadFailed",
    "UsageError",
    "retry_async",
]
