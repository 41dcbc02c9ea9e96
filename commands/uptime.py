from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from core.models import CommandContext
from utils import humanize_delta

if TYPE_CHECKING:
    from bot import Bot


def uptime_seconds(start: datetime, now: datetime | None = None) -> int:
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, int((now - start).total_seconds()))


class Uptime:
    name = "uptime"
    description = "Show how long the bot has been running."

    async def execute(self, ctx: CommandContext) -> None:
        seconds = uptime_seconds(ctx.start_time)
        started = ctx.start_time.strftime("%Y-%m-%d %H:%M:%S UTC")
        await ctx.reply(f"Uptime: {humanize_delta(seconds)} (since {started})")


async def setup(bot: Bot) -> None:
    bot.registry.register(Uptime())
