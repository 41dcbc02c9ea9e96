from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from core.context import ExecutionContext
from core.errors import (
    BotError,
    CommandNotFound,
    ExtractionFailed,
    NoMediaFound,
    UnsupportedPlatform,
)
from core.models import CommandContext, InboundMessage
from dispatch.registry import CommandRegistry
from media.delivery import OutboundMessenger
from media.pipeline import MediaPipeline
from utils import truncate_text

log = logging.getLogger(__name__)

# <url> and (url) wrappers are not part of the link
URL_RE = re.compile(r"https?://[^\s<>()]+")
DEFAULT_PIPELINE_TIMEOUT_S = 300
REPLY_MAX = 1900


class Dispatcher:
    """Routes one inbound message to a command or to the media pipeline.

    Prefixed text is always treated as a command. Any other text containing a
    link to a supported platform is relayed as media. Errors end up as replies,
    except that an auto-detected link which yields no media is only logged.
    ``handle`` itself never raises.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        pipeline: MediaPipeline,
        messenger: OutboundMessenger,
        *,
        prefix: str = "!",
        start_time: datetime | None = None,
        timeout_s: float | None = DEFAULT_PIPELINE_TIMEOUT_S,
    ) -> None:
        self.registry = registry
        self.pipeline = pipeline
        self.messenger = messenger
        self.prefix = prefix
        self.start_time = start_time or datetime.now(timezone.utc)
        self.timeout_s = timeout_s

    async def handle(self, message: InboundMessage) -> None:
        text = (message.text or "").strip()
        if not text:
            return
        if message.user_id == self.messenger.self_id:
            return

        if text.startswith(self.prefix):
            await self._handle_command(message, text)
            return

        match = URL_RE.search(text)
        if match and self.pipeline.supports(match.group(0)):
            await self._handle_media(message, match.group(0))

    async def _handle_command(self, message: InboundMessage, text: str) -> None:
        parts = text[len(self.prefix) :].split()
        if not parts:
            return
        name, args = parts[0], parts[1:]

        ctx = ExecutionContext(timeout=self.timeout_s)
        command_ctx = CommandContext(
            user_id=message.user_id,
            destination=message.destination,
            args=args,
            raw_text=text,
            start_time=self.start_time,
            execution=ctx,
            messenger=self.messenger,
            message_id=message.message_id,
        )
        log.info("Processing command %s from %s", name, message.user_id)
        try:
            await self.registry.execute(name, command_ctx)
        except CommandNotFound as exc:
            log.info("%s", exc)
            await self._reply(message.destination, f"{exc}\nUse {self.prefix}help to list commands.")
        except BotError as exc:
            log.info("Command %s rejected: %s", name, exc)
            await self._reply(message.destination, str(exc))
        except Exception:
            log.exception("Command %s failed", name)
            await self._reply(message.destination, "Something went wrong while running that command.")
        finally:
            ctx.close()

    async def _handle_media(self, message: InboundMessage, url: str) -> None:
        ctx = ExecutionContext(timeout=self.timeout_s)
        log.info("Auto-detected media link %s from %s", url, message.user_id)
        try:
            report = await self.pipeline.deliver(ctx, message.destination, url)
            log.info("Relayed %d item(s) from %s (%s)", report.delivered, url, report.status.value)
        except (UnsupportedPlatform, ExtractionFailed, NoMediaFound) as exc:
            log.info("No media relayed for %s: %s", url, exc)
        except BotError as exc:
            log.info("Media relay for %s stopped: %s", url, exc)
            await self._reply(message.destination, str(exc))
        except Exception:
            log.exception("Media relay for %s failed", url)
            await self._reply(message.destination, "Something went wrong while fetching that media.")
        finally:
            ctx.close()

    async def _reply(self, destination: int, text: str) -> None:
        # a fresh context: the invocation's own may already be cancelled
        ctx = ExecutionContext(timeout=self.timeout_s)
        try:
            await self.messenger.send_message(ctx, destination, truncate_text(text, REPLY_MAX))
        except Exception:
            log.exception("Failed to reply to %s", destination)
        finally:
            ctx.close()
