"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from core.retry import DEFAULT_ATTEMPTS
from dispatch.dispatcher import DEFAULT_PIPELINE_TIMEOUT_S
from dispatch.registry import DEFAULT_COOLDOWN_S, DEFAULT_SWEEP_INTERVAL_S
from media.delivery import DEFAULT_MAX_UPLOAD_BYTES
from media.downloader import DEFAULT_MAX_CONCURRENT, DEFAULT_MAX_DOWNLOAD_BYTES
from media.http import DEFAULT_FETCH_TIMEOUT_S, DEFAULT_USER_AGENT
from utils import DEFAULT_PREFIX, _env_float, _env_int, _env_str

LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"


@dataclass(frozen=True)
class BotConfig:
    token: str | None
    prefix: str
    cooldown_s: float
    cooldown_sweep_s: float
    max_download_bytes: int
    max_upload_bytes: int
    send_attempts: int
    max_concurrent: int
    fetch_timeout_s: float
    pipeline_timeout_s: float
    user_agent: str
    log_format: str
    log_level: str
    log_file: str | None

    @staticmethod
    def from_env() -> "BotConfig":
        log_format = (_env_str("LOG_FORMAT") or LOG_FORMAT_TEXT).lower()
        if log_format not in {LOG_FORMAT_TEXT, LOG_FORMAT_JSON}:
            log_format = LOG_FORMAT_TEXT
        return BotConfig(
            token=_env_str("DISCORD_BOT_TOKEN"),
            prefix=_env_str("BOT_PREFIX") or DEFAULT_PREFIX,
            cooldown_s=_env_float("COMMAND_COOLDOWN_S", DEFAULT_COOLDOWN_S),
            cooldown_sweep_s=_env_float(
                "COOLDOWN_SWEEP_S", DEFAULT_SWEEP_INTERVAL_S, minimum=1.0
            ),
            max_download_bytes=_env_int("MEDIA_MAX_DOWNLOAD_BYTES", DEFAULT_MAX_DOWNLOAD_BYTES),
            max_upload_bytes=_env_int("MEDIA_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            send_attempts=_env_int("MEDIA_SEND_ATTEMPTS", DEFAULT_ATTEMPTS),
            max_concurrent=_env_int("MEDIA_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT),
            fetch_timeout_s=_env_float(
                "MEDIA_FETCH_TIMEOUT_S", DEFAULT_FETCH_TIMEOUT_S, minimum=1.0
            ),
            pipeline_timeout_s=_env_float(
                "MEDIA_PIPELINE_TIMEOUT_S", DEFAULT_PIPELINE_TIMEOUT_S, minimum=1.0
            ),
            user_agent=os.getenv("MEDIA_USER_AGENT", DEFAULT_USER_AGENT),
            log_format=log_format,
            log_level=(_env_str("LOG_LEVEL") or "INFO").upper(),
            log_file=os.getenv("LOG_FILE", "bot.log") or None,
        )

    def token_is_valid(self) -> bool:
        return bool(self.token) and not self.token.startswith("YOUR_")
