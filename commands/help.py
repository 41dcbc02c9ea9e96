from __future__ import annotations

from typing import TYPE_CHECKING

from core.models import CommandContext
from dispatch.registry import CommandRegistry

if TYPE_CHECKING:
    from bot import Bot


def format_help(commands: dict[str, str], prefix: str = "") -> str:
    """Render the command list sorted by name."""
    lines = [f"- {prefix}{name}: {description}" for name, description in sorted(commands.items())]
    return "Available commands:\n" + "\n".join(lines)


class Help:
    name = "help"
    description = "List available commands."

    def __init__(self, registry: CommandRegistry, prefix: str = "") -> None:
        self.registry = registry
        self.prefix = prefix

    async def execute(self, ctx: CommandContext) -> None:
        await ctx.reply(format_help(self.registry.list(), self.prefix))


async def setup(bot: Bot) -> None:
    bot.registry.register(Help(bot.registry, bot.config.prefix))
