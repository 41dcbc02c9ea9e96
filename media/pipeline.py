from __future__ import annotations

import enum
import logging

from core.context import ExecutionContext
from core.errors import (
    AllDownloadsFailed,
    AllUploadsFailed,
    BotError,
    ExtractionFailed,
    NoMediaFound,
    OversizedPayload,
    UnsupportedPlatform,
    UploadFailed,
    describe_failure,
)
from core.models import DeliveryReport, DeliveryStatus, OutgoingMedia
from media.delivery import OutboundMessenger
from media.downloader import ConcurrentDownloader, filename_for_mime
from media.platforms import PlatformRegistry

log = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    RESOLVING = "resolving"
    EXTRACTING = "extracting"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    SENT = "sent"
    PARTIAL_SENT = "partial_sent"


class MediaPipeline:
    """URL in, media message out.

    Each stage waits for all of its items before the next one starts, since
    the final send depends on the complete success/failure set.
    """

    def __init__(
        self,
        platforms: PlatformRegistry,
        downloader: ConcurrentDownloader,
        messenger: OutboundMessenger,
    ) -> None:
        self.platforms = platforms
        self.downloader = downloader
        self.messenger = messenger

    def supports(self, url: str) -> bool:
        return self.platforms.resolve(url) is not None

    async def deliver(
        self,
        ctx: ExecutionContext,
        destination: int,
        url: str,
        *,
        announce: bool = False,
    ) -> DeliveryReport:
        self._enter(PipelineState.RESOLVING, url)
        handler = self.platforms.resolve(url)
        if handler is None:
            raise UnsupportedPlatform(url)

        self._enter(PipelineState.EXTRACTING, url, handler.name)
        try:
            descriptors = await ctx.run(handler.extract(ctx, url))
        except BotError:
            raise
        except Exception as exc:
            log.warning("Extraction via %s failed for %s: %r", handler.name, url, exc)
            raise ExtractionFailed(handler.name, str(exc) or type(exc).__name__) from exc
        if not descriptors:
            raise NoMediaFound()

        log.info("Found %d media item(s) at %s via %s", len(descriptors), url, handler.name)
        if announce:
            await self.messenger.send_message(
                ctx, destination, f"Found {len(descriptors)} media item(s), processing..."
            )

        self._enter(PipelineState.DOWNLOADING, url, len(descriptors))
        results = await self.downloader.download_all(ctx, descriptors)
        payloads: list[OutgoingMedia] = []
        download_failures: list[tuple[int, BaseException]] = []
        for result in results:
            if result.ok:
                content_type = result.content_type or "application/octet-stream"
                payloads.append(
                    OutgoingMedia(
                        data=result.data or b"",
                        filename=filename_for_mime(content_type),
                        mime_type=content_type,
                        position=result.index + 1,
                    )
                )
            else:
                download_failures.append((result.index + 1, result.error))
        ctx.raise_if_cancelled()
        if not payloads:
            raise AllDownloadsFailed(download_failures)

        self._enter(PipelineState.UPLOADING, url, len(payloads))
        try:
            report = await self.messenger.send_multi_media(ctx, destination, payloads)
        except AllUploadsFailed as exc:
            raise AllUploadsFailed(
                sorted(download_failures + exc.failures, key=lambda item: item[0])
            ) from exc
        except (UploadFailed, OversizedPayload) as exc:
            if len(payloads) > 1:
                raise
            # single surviving payload: nothing reached the destination
            position = payloads[0].position or 1
            raise AllUploadsFailed(
                sorted(download_failures + [(position, exc)], key=lambda item: item[0])
            ) from exc
        if report is None:
            raise AllDownloadsFailed(download_failures)

        failures = sorted(download_failures + report.failures, key=lambda item: item[0])
        status = DeliveryStatus.PARTIAL_SENT if failures else DeliveryStatus.SENT
        report = DeliveryReport(
            status=status, attachment_ids=report.attachment_ids, failures=failures
        )
        self._enter(PipelineState(status.value), url)
        if failures:
            await self._notify_failures(ctx, destination, report)
        return report

    async def _notify_failures(
        self, ctx: ExecutionContext, destination: int, report: DeliveryReport
    ) -> None:
        total = report.delivered + len(report.failures)
        lines = [f"Sent {report.delivered} of {total} item(s)."]
        lines.extend(f"#{position}: {describe_failure(exc)}" for position, exc in report.failures)
        try:
            await self.messenger.send_message(ctx, destination, "\n".join(lines))
        except Exception:
            log.exception("Failed to report partial delivery to %s", destination)

    @staticmethod
    def _enter(state: PipelineState, url: str, *detail: object) -> None:
        log.debug("pipeline %s %s %s", state.value, url, " ".join(map(str, detail)))
