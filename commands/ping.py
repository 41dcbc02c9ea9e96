from __future__ import annotations

from typing import TYPE_CHECKING

from core.models import CommandContext

if TYPE_CHECKING:
    from bot import Bot


class Ping:
    name = "ping"
    description = "Check that the bot is responsive."

    async def execute(self, ctx: CommandContext) -> None:
        await ctx.reply("Pong!")


async def setup(bot: Bot) -> None:
    bot.registry.register(Ping())
