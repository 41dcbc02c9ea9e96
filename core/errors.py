from __future__ import annotations

from typing import Sequence


class BotError(Exception):
    """Base for failures that are reported back to the user as a reply."""


class CommandNotFound(BotError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command not found: {name}")
        self.name = name


class CommandCooldown(BotError):
    def __init__(self, remaining: float) -> None:
        super().__init__(f"Please wait {remaining:.1f}s before using that command again.")
        self.remaining = remaining


class UsageError(BotError):
    pass


class UnsupportedPlatform(BotError):
    def __init__(self, url: str) -> None:
        super().__init__("Unsupported platform.")
        self.url = url


class ExtractionFailed(BotError):
    def __init__(self, platform: str, reason: str) -> None:
        super().__init__(f"Could not read media from {platform}: {reason}")
        self.platform = platform
        self.reason = reason


class NoMediaFound(BotError):
    def __init__(self) -> None:
        super().__init__("No media found.")


class Cancelled(BotError):
    def __init__(self, reason: str = "cancelled") -> None:
        super().__init__(f"Cancelled: {reason}")
        self.reason = reason


class OversizedPayload(BotError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File too large ({size} bytes, max {limit}).")
        self.size = size
        self.limit = limit


class DownloadFailed(BotError):
    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Failed to download #{index + 1}: {reason}")
        self.index = index
        self.reason = reason


class UploadFailed(BotError):
    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Failed to send #{index + 1}: {reason}")
        self.index = index
        self.reason = reason


class _AggregateFailure(BotError):
    summary = "All items failed"

    def __init__(self, failures: Sequence[tuple[int, BaseException]]) -> None:
        self.failures = list(failures)
        lines = [f"#{position}: {describe_failure(exc)}" for position, exc in self.failures]
        super().__init__(f"{self.summary}.\n" + "\n".join(lines) if lines else f"{self.summary}.")


class AllDownloadsFailed(_AggregateFailure):
    summary = "Every download failed"


class AllUploadsFailed(_AggregateFailure):
    summary = "Every upload failed"


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, (DownloadFailed, UploadFailed)):
        return exc.reason
    return str(exc) or type(exc).__name__
