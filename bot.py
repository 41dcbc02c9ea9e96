"""Discord bot entry point."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config import LOG_FORMAT_JSON, BotConfig
from core.models import InboundMessage
from dispatch import CommandRegistry, Dispatcher
from media import ConcurrentDownloader, HttpClient, MediaPipeline, OutboundMessenger
from media.extractors import build_default_platforms
from transport import DiscordTransport

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent

COMMANDS_PATH = BASE_DIR / "commands"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(config: BotConfig) -> None:
    formatter: logging.Formatter
    if config.log_format == LOG_FORMAT_JSON:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT)

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, force=True)
    root = logging.getLogger()
    for handler in root.handlers:
        handler.setFormatter(formatter)

    # write logs both to console and to a persistent file for later review
    if config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


class Bot(commands.Bot):
    """Bot that routes every message through its own dispatcher.

    ``commands.Bot`` is kept for its extension loader; its built-in command
    processing is never invoked.
    """

    def __init__(self, config: BotConfig) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix=config.prefix, intents=intents, help_command=None)
        self.config = config
        self.launch_time = datetime.now(timezone.utc)

        self.registry = CommandRegistry(default_cooldown=config.cooldown_s)
        self.http_client = HttpClient(
            timeout_s=config.fetch_timeout_s, user_agent=config.user_agent
        )
        self.transport = DiscordTransport(self, self.http_client)
        self.messenger = OutboundMessenger(
            self.transport,
            max_upload_bytes=config.max_upload_bytes,
            max_attempts=config.send_attempts,
        )
        self.pipeline = MediaPipeline(
            build_default_platforms(self.http_client),
            ConcurrentDownloader(
                self.http_client,
                max_bytes=config.max_download_bytes,
                max_concurrent=config.max_concurrent,
            ),
            self.messenger,
        )
        self.dispatcher = Dispatcher(
            self.registry,
            self.pipeline,
            self.messenger,
            prefix=config.prefix,
            start_time=self.launch_time,
            timeout_s=config.pipeline_timeout_s,
        )

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if not self.user:
            return
        await self.dispatcher.handle(
            InboundMessage(
                user_id=message.author.id,
                destination=message.channel.id,
                text=message.content or "",
                message_id=message.id,
            )
        )

    async def on_ready(self) -> None:
        """Log when the bot has successfully logged in."""
        if self.user:
            log.info("Logged in as %s (ID %s)", self.user, self.user.id)
        else:
            log.info("Logged in")
        await self.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.listening, name=f"{self.config.prefix}help"
            )
        )

    async def setup_hook(self) -> None:  # type: ignore[override]
        successes, failures = await self.load_all_extensions()
        log.info("Extensions loaded: %d success, %d failed", len(successes), len(failures))
        if failures:
            log.info("Failed extensions: %s", ", ".join(failures))
        log.info("Registered %d command(s)", len(self.registry.list()))
        self.registry.start_sweeper(self.config.cooldown_sweep_s)

    async def load_all_extensions(self) -> tuple[list[str], list[str]]:
        """Load every module under the commands directory."""

        successes: list[str] = []
        failures: list[str] = []

        extensions = [
            f"{COMMANDS_PATH.name}.{file.stem}"
            for file in sorted(COMMANDS_PATH.glob("*.py"))
            if not file.name.startswith("_")
        ]

        for ext in extensions:
            try:
                await self.load_extension(ext)
                log.info("Loaded extension %s", ext)
                successes.append(ext)
            except Exception:
                log.exception("Failed to load extension %s", ext)
                failures.append(ext)

        log.info("Discovered %d extensions", len(extensions))
        return successes, failures

    async def close(self) -> None:
        self.registry.stop_sweeper()
        await self.http_client.close()
        await super().close()


def main() -> None:
    """Bot startup sequence."""

    load_dotenv()
    config = BotConfig.from_env()
    configure_logging(config)
    if not config.token_is_valid():
        raise SystemExit("ERROR: valid DISCORD_BOT_TOKEN not set")

    bot = Bot(config)
    bot.run(config.token, log_handler=None)
