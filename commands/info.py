"""Informational commands: about, status and id."""

from __future__ import annotations

import asyncio
import platform
import sys
import threading
from typing import TYPE_CHECKING

from commands.uptime import uptime_seconds
from core.models import CommandContext
from utils import human_size, humanize_delta

if TYPE_CHECKING:
    from bot import Bot

try:
    import resource
except ImportError:  # not available on Windows
    resource = None  # type: ignore[assignment]


def max_rss_bytes() -> int | None:
    if resource is None:
        return None
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # kilobytes on Linux, bytes on macOS
    return rss if sys.platform == "darwin" else rss * 1024


class About:
    name = "about"
    description = "What this bot does."

    def __init__(self, prefix: str = "!") -> None:
        self.prefix = prefix

    async def execute(self, ctx: CommandContext) -> None:
        await ctx.reply(
            "I answer commands and re-post images and videos from links to "
            "Instagram, TikTok, Douyin, Facebook and other sites.\n"
            f"Paste a link or use {self.prefix}media <url>. See {self.prefix}help for commands."
        )


class Status:
    name = "status"
    description = "Show runtime statistics."

    async def execute(self, ctx: CommandContext) -> None:
        rss = max_rss_bytes()
        lines = [
            f"Uptime: {humanize_delta(uptime_seconds(ctx.start_time))}",
            f"Memory (max RSS): {human_size(rss) if rss is not None else 'n/a'}",
            f"Tasks: {len(asyncio.all_tasks())}",
            f"Threads: {threading.active_count()}",
            f"Python: {platform.python_version()}",
            f"OS: {platform.system()} {platform.machine()}",
        ]
        await ctx.reply("\n".join(lines))


class Ident:
    name = "id"
    description = "Show your user id, this channel id and the message id."

    async def execute(self, ctx: CommandContext) -> None:
        message_id = ctx.message_id if ctx.message_id is not None else "n/a"
        await ctx.reply(
            f"User: {ctx.user_id}\nChannel: {ctx.destination}\nMessage: {message_id}"
        )


async def setup(bot: Bot) -> None:
    bot.registry.register(About(bot.config.prefix))
    bot.registry.register(Status())
    bot.registry.register(Ident())
