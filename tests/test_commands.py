import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from commands import fun, help as help_module, info, media, ping, uptime  # noqa: E402
from core.context import ExecutionContext  # noqa: E402
from core.errors import UsageError  # noqa: E402
from core.models import CommandContext, DeliveryReport, DeliveryStatus  # noqa: E402
from dispatch.registry import CommandRegistry  # noqa: E402
from media.delivery import OutboundMessenger  # noqa: E402

from test_delivery import FakeTransport  # noqa: E402


def _run_command(command, *args: str, start_time: datetime | None = None) -> list[str]:
    transport = FakeTransport()

    async def _run() -> None:
        ctx = CommandContext(
            user_id=1,
            destination=10,
            args=list(args),
            raw_text=" ".join((command.name, *args)),
            start_time=start_time or datetime.now(timezone.utc),
            execution=ExecutionContext(),
            messenger=OutboundMessenger(transport),
            message_id=55,
        )
        await command.execute(ctx)

    asyncio.run(_run())
    return [text for _, text in transport.texts]


def test_ping() -> None:
    assert _run_command(ping.Ping()) == ["Pong!"]


def test_help_lists_commands_sorted_by_name() -> None:
    registry = CommandRegistry()
    for command in (fun.Say(), ping.Ping(), fun.CoinFlip()):
        registry.register(command)
    registry.register(help_module.Help(registry))

    (text,) = _run_command(help_module.Help(registry))

    lines = text.splitlines()
    assert lines[0] == "Available commands:"
    assert [line.split(":")[0] for line in lines[1:]] == ["- coinflip", "- help", "- ping", "- say"]
    assert "- ping: Check that the bot is responsive." in lines


def test_say_neutralises_mass_mentions() -> None:
    (text,) = _run_command(fun.Say(), "hi", "@everyone")
    assert text.startswith("hi @")
    assert "@everyone" not in text


def test_say_without_text_is_a_usage_error() -> None:
    with pytest.raises(UsageError):
        _run_command(fun.Say())


def test_roll_and_coinflip_use_injected_randomness() -> None:
    assert _run_command(fun.Roll(randint=lambda low, high: high), "20") == ["You rolled 20 (1-20)"]
    assert _run_command(fun.Roll(randint=lambda low, high: low)) == ["You rolled 1 (1-6)"]
    assert _run_command(fun.CoinFlip(rng=lambda: 0.1)) == ["Heads"]
    assert _run_command(fun.CoinFlip(rng=lambda: 0.9)) == ["Tails"]


@pytest.mark.parametrize("arg", ["abc", "1", "0", "-5"])
def test_roll_rejects_bad_bounds(arg: str) -> None:
    with pytest.raises(UsageError):
        _run_command(fun.Roll(), arg)


def test_uptime_and_status_report_running_time() -> None:
    started = datetime.now(timezone.utc) - timedelta(hours=1, minutes=2)

    (text,) = _run_command(uptime.Uptime(), start_time=started)
    assert text.startswith("Uptime: 1h 2m")

    (status,) = _run_command(info.Status(), start_time=started)
    assert "Uptime: 1h 2m" in status
    assert "Threads:" in status
    assert "Python:" in status


def test_uptime_seconds_treats_naive_start_as_utc() -> None:
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert uptime.uptime_seconds(datetime(2024, 1, 1, 11, 0), now) == 3600
    assert uptime.uptime_seconds(now + timedelta(seconds=5), now) == 0


def test_id_reports_user_channel_and_message() -> None:
    (text,) = _run_command(info.Ident())
    assert text == "User: 1\nChannel: 10\nMessage: 55"


class RecordingPipeline:
    def __init__(self) -> None:
        self.calls: list[tuple[int, str, bool]] = []

    async def deliver(self, ctx, destination, url, *, announce=False):
        self.calls.append((destination, url, announce))
        return DeliveryReport(status=DeliveryStatus.SENT, attachment_ids=["att-1"])


def test_media_command_runs_pipeline_with_announcement() -> None:
    pipeline = RecordingPipeline()
    _run_command(media.Media(pipeline, "!"), "<https://www.instagram.com/p/abc/>")
    assert pipeline.calls == [(10, "https://www.instagram.com/p/abc/", True)]


@pytest.mark.parametrize(
    "args, message",
    [((), "Usage: !media <url>"), (("ftp://example.com/a",), "Invalid URL")],
)
def test_media_command_validates_its_argument(args, message) -> None:
    pipeline = RecordingPipeline()
    with pytest.raises(UsageError, match=message):
        _run_command(media.Media(pipeline, "!"), *args)
    assert pipeline.calls == []


def test_setup_functions_register_every_command() -> None:
    registry = CommandRegistry()
    bot = SimpleNamespace(
        registry=registry,
        config=SimpleNamespace(prefix="!"),
        pipeline=RecordingPipeline(),
    )

    async def _run() -> None:
        for module in (ping, help_module, media, uptime, info, fun):
            await module.setup(bot)

    asyncio.run(_run())

    assert sorted(registry.list()) == [
        "about",
        "coinflip",
        "help",
        "id",
        "media",
        "ping",
        "roll",
        "say",
        "status",
        "uptime",
    ]
