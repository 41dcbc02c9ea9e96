from __future__ import annotations

import random
from typing import TYPE_CHECKING, Callable

from core.errors import UsageError
from core.models import CommandContext
from utils import sanitize

if TYPE_CHECKING:
    from bot import Bot

DEFAULT_SIDES = 6
MAX_SIDES = 1_000_000


class CoinFlip:
    name = "coinflip"
    description = "Flip a coin."

    def __init__(self, rng: Callable[[], float] = random.random) -> None:
        self._rng = rng

    async def execute(self, ctx: CommandContext) -> None:
        await ctx.reply("Heads" if self._rng() < 0.5 else "Tails")


class Roll:
    name = "roll"
    description = f"Roll a die: roll [max], default {DEFAULT_SIDES}."

    def __init__(self, randint: Callable[[int, int], int] = random.randint) -> None:
        self._randint = randint

    async def execute(self, ctx: CommandContext) -> None:
        sides = DEFAULT_SIDES
        if ctx.args:
            try:
                sides = int(ctx.args[0])
            except ValueError:
                raise UsageError("Usage: roll [max], max must be a whole number") from None
        if not 1 < sides <= MAX_SIDES:
            raise UsageError(f"Pick a max between 2 and {MAX_SIDES}.")
        await ctx.reply(f"You rolled {self._randint(1, sides)} (1-{sides})")


class Say:
    name = "say"
    description = "Repeat the given text."

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            raise UsageError("Usage: say <text>")
        await ctx.reply(sanitize(" ".join(ctx.args)))


async def setup(bot: Bot) -> None:
    bot.registry.register(CoinFlip())
    bot.registry.register(Roll())
    bot.registry.register(Say())
