from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.errors import UsageError
from core.models import CommandContext
from media.pipeline import MediaPipeline

if TYPE_CHECKING:
    from bot import Bot

log = logging.getLogger(__name__)


class Media:
    name = "media"
    description = "Fetch and re-post the images or videos behind a link."

    def __init__(self, pipeline: MediaPipeline, prefix: str = "!") -> None:
        self.pipeline = pipeline
        self.prefix = prefix

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            raise UsageError(f"Usage: {self.prefix}media <url>")
        url = ctx.args[0].strip("<>")
        if not url.startswith(("http://", "https://")):
            raise UsageError("Invalid URL")

        report = await self.pipeline.deliver(ctx.execution, ctx.destination, url, announce=True)
        log.info(
            "media: delivered %d item(s) for %s (%s)",
            report.delivered,
            ctx.user_id,
            report.status.value,
        )


async def setup(bot: Bot) -> None:
    bot.registry.register(Media(bot.pipeline, bot.config.prefix))
