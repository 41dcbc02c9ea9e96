from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable, Protocol

from core.errors import CommandCooldown, CommandNotFound
from core.models import CommandContext

log = logging.getLogger(__name__)

DEFAULT_COOLDOWN_S = 3.0
DEFAULT_SWEEP_INTERVAL_S = 5 * 60


class Command(Protocol):
    name: str
    description: str

    async def execute(self, ctx: CommandContext) -> None:
        ...


class CommandRegistry:
    """Command lookup plus a per-user, per-command cooldown gate.

    Cooldowns start only after a command finished without raising, so a
    user who mistyped arguments can retry at once. Expiry times come from
    ``clock`` (monotonic seconds by default) and are always compared against
    a fresh reading taken under the lock; a stored entry alone never means the
    cooldown is active.
    """

    def __init__(
        self,
        *,
        default_cooldown: float = DEFAULT_COOLDOWN_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_cooldown = default_cooldown
        self._clock = clock
        self._commands: dict[str, Command] = {}
        self._cooldowns: dict[tuple[int, str], float] = {}
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task | None = None

    def register(self, command: Command) -> None:
        name = command.name.lower()
        with self._lock:
            if name in self._commands:
                log.debug("Replacing command %s", name)
            self._commands[name] = command

    def get(self, name: str) -> Command | None:
        with self._lock:
            return self._commands.get(name.lower())

    def list(self) -> dict[str, str]:
        with self._lock:
            return {name: cmd.description for name, cmd in self._commands.items()}

    def check_cooldown(self, user_id: int, name: str) -> tuple[float, bool]:
        key = (user_id, name.lower())
        with self._lock:
            expiry = self._cooldowns.get(key)
            now = self._clock()
            if expiry is None:
                return 0.0, False
            remaining = expiry - now
            if remaining > 0:
                return remaining, True
            del self._cooldowns[key]
        return 0.0, False

    def set_cooldown(self, user_id: int, name: str) -> None:
        key = (user_id, name.lower())
        with self._lock:
            self._cooldowns[key] = self._clock() + self.default_cooldown

    def clean_cooldowns(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, expiry in self._cooldowns.items() if expiry <= now]
            for key in expired:
                del self._cooldowns[key]
        return len(expired)

    def cooldown_count(self) -> int:
        with self._lock:
            return len(self._cooldowns)

    async def execute(self, name: str, ctx: CommandContext) -> None:
        key = name.lower()
        command = self.get(key)
        if command is None:
            raise CommandNotFound(name)

        remaining, active = self.check_cooldown(ctx.user_id, key)
        if active:
            raise CommandCooldown(remaining)

        await command.execute(ctx)
        self.set_cooldown(ctx.user_id, key)

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL_S) -> asyncio.Task:
        if self._sweeper is not None and not self._sweeper.done():
            return self._sweeper
        self._sweeper = asyncio.create_task(self._sweep_loop(interval))
        return self._sweeper

    def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            removed = self.clean_cooldowns()
            if removed:
                log.debug("Evicted %d expired cooldown(s)", removed)
