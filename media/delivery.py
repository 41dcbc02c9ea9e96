"""Outbound delivery: retried text sends, uploads and merged media messages."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from core.context import ExecutionContext
from core.errors import AllUploadsFailed, Cancelled, OversizedPayload, UploadFailed
from core.models import DeliveryReport, DeliveryStatus, OutgoingMedia, UploadAttempt
from core.retry import DEFAULT_ATTEMPTS, retry_async
from core.transport import PlatformTransport

log = logging.getLogger(__name__)

# Discord's default per-file attachment limit
DEFAULT_MAX_UPLOAD_BYTES = 25 * 1000 * 1000
# attachments Discord accepts on one message
MAX_ATTACHMENTS_PER_MESSAGE = 10


class OutboundMessenger:
    """Sends text and media through a :class:`PlatformTransport`.

    Every outbound step (text, upload, attachment send, merged send) shares
    one retry policy: up to ``max_attempts`` immediate attempts, surfacing
    the last error once exhausted.
    """

    def __init__(
        self,
        transport: PlatformTransport,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        max_attempts: int = DEFAULT_ATTEMPTS,
        max_per_message: int = MAX_ATTACHMENTS_PER_MESSAGE,
    ) -> None:
        self._transport = transport
        self.max_upload_bytes = max_upload_bytes
        self.max_attempts = max_attempts
        self.max_per_message = max(1, max_per_message)

    @property
    def self_id(self) -> int:
        return self._transport.self_id

    async def send_message(self, ctx: ExecutionContext, destination: int, text: str) -> None:
        await retry_async(
            lambda: ctx.run(self._transport.send_text(destination, text)),
            attempts=self.max_attempts,
            ctx=ctx,
            label="send_message",
        )

    async def send_media(
        self, ctx: ExecutionContext, destination: int, payload: OutgoingMedia
    ) -> str:
        """Upload one payload and post it; returns the attachment identifier."""
        self._check_size(payload)

        async def _attempt() -> str:
            attachment_id = await ctx.run(
                self._transport.upload(destination, payload.data, payload.filename, payload.mime_type)
            )
            await ctx.run(self._transport.send_attachments(destination, [attachment_id]))
            return attachment_id

        position = payload.position or 1
        try:
            return await retry_async(
                _attempt, attempts=self.max_attempts, ctx=ctx, label=f"send_media #{position}"
            )
        except (Cancelled, OversizedPayload):
            raise
        except Exception as exc:
            raise UploadFailed(position - 1, str(exc) or type(exc).__name__) from exc

    async def send_multi_media(
        self, ctx: ExecutionContext, destination: int, payloads: Sequence[OutgoingMedia]
    ) -> DeliveryReport | None:
        """Deliver several payloads as a single message.

        Uploads run concurrently. Successful attachment identifiers are merged,
        in input order, into one send (split into messages of at most
        ``max_per_message`` attachments); failed items are left out and listed
        in the returned report. Raises :class:`AllUploadsFailed` without
        sending anything when no upload succeeded, and :class:`UploadFailed`
        naming the first item of a batch whose send ran out of attempts.
        """
        if not payloads:
            return None
        if len(payloads) == 1:
            attachment_id = await self.send_media(ctx, destination, payloads[0])
            return DeliveryReport(status=DeliveryStatus.SENT, attachment_ids=[attachment_id])

        attempts = await asyncio.gather(
            *(
                self._upload_one(ctx, destination, index, payload)
                for index, payload in enumerate(payloads)
            )
        )
        attempts = sorted(attempts, key=lambda attempt: attempt.index)
        delivered = [
            (attempt.position, attempt.attachment_id) for attempt in attempts if attempt.ok
        ]
        succeeded = [attachment_id for _, attachment_id in delivered]
        failures = [(attempt.position, attempt.error) for attempt in attempts if not attempt.ok]

        if not succeeded:
            raise AllUploadsFailed(failures)

        step = self.max_per_message
        for start in range(0, len(delivered), step):
            await self._send_batch(ctx, destination, delivered[start : start + step])
        status = DeliveryStatus.PARTIAL_SENT if failures else DeliveryStatus.SENT
        if failures:
            log.info(
                "Sent %d of %d item(s) to %s; failed: %s",
                len(succeeded),
                len(attempts),
                destination,
                ", ".join(f"#{position}" for position, _ in failures),
            )
        return DeliveryReport(status=status, attachment_ids=succeeded, failures=failures)

    async def _upload_one(
        self, ctx: ExecutionContext, destination: int, index: int, payload: OutgoingMedia
    ) -> UploadAttempt:
        position = payload.position or index + 1
        try:
            self._check_size(payload)
            attachment_id = await retry_async(
                lambda: ctx.run(
                    self._transport.upload(
                        destination, payload.data, payload.filename, payload.mime_type
                    )
                ),
                attempts=self.max_attempts,
                ctx=ctx,
                label=f"upload #{position}",
            )
        except (Cancelled, OversizedPayload) as exc:
            return UploadAttempt(index=index, position=position, error=exc)
        except Exception as exc:
            error = UploadFailed(position - 1, str(exc) or type(exc).__name__)
            error.__cause__ = exc
            return UploadAttempt(index=index, position=position, error=error)
        return UploadAttempt(index=index, position=position, attachment_id=attachment_id)

    async def _send_batch(
        self, ctx: ExecutionContext, destination: int, batch: Sequence[tuple[int, str | None]]
    ) -> None:
        # each batch is retried alone; batches already posted are never re-sent
        ids = [attachment_id for _, attachment_id in batch]
        first = batch[0][0]
        try:
            await retry_async(
                lambda: ctx.run(self._transport.send_attachments(destination, ids)),
                attempts=self.max_attempts,
                ctx=ctx,
                label=f"send_attachments from #{first}",
            )
        except Cancelled:
            raise
        except Exception as exc:
            raise UploadFailed(first - 1, str(exc) or type(exc).__name__) from exc

    def _check_size(self, payload: OutgoingMedia) -> None:
        size = len(payload.data)
        if size > self.max_upload_bytes:
            raise OversizedPayload(size, self.max_upload_bytes)
