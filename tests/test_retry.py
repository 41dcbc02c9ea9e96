import asyncio
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.context import ExecutionContext  # noqa: E402
from core.errors import Cancelled, OversizedPayload  # noqa: E402
from core.retry import retry_async  # noqa: E402


class Flaky:
    def __init__(self, failures: int, exc_type: type[BaseException] = RuntimeError) -> None:
        self.failures = failures
        self.exc_type = exc_type
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_type(f"fail {self.calls}")
        return "ok"


def test_succeeds_after_transient_failures() -> None:
    op = Flaky(failures=9)
    assert asyncio.run(retry_async(op, attempts=10)) == "ok"
    assert op.calls == 10


def test_gives_up_after_exactly_n_attempts_with_last_error() -> None:
    op = Flaky(failures=100)
    with pytest.raises(RuntimeError, match="fail 10"):
        asyncio.run(retry_async(op, attempts=10))
    assert op.calls == 10


@pytest.mark.parametrize("exc_type", [Cancelled, lambda msg: OversizedPayload(10, 5)])
def test_non_retryable_errors_surface_immediately(exc_type) -> None:
    calls = 0

    async def op() -> None:
        nonlocal calls
        calls += 1
        raise exc_type("stop")

    with pytest.raises((Cancelled, OversizedPayload)):
        asyncio.run(retry_async(op, attempts=10))
    assert calls == 1


def test_errors_outside_retry_on_are_not_retried() -> None:
    op = Flaky(failures=5, exc_type=KeyError)
    with pytest.raises(KeyError):
        asyncio.run(retry_async(op, attempts=10, retry_on=(ValueError,)))
    assert op.calls == 1


def test_cancelled_context_stops_before_next_attempt() -> None:
    async def _run() -> int:
        ctx = ExecutionContext()
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            ctx.cancel("stop requested")
            raise RuntimeError("transient")

        with pytest.raises(Cancelled, match="stop requested"):
            await retry_async(op, attempts=10, ctx=ctx)
        return calls

    assert asyncio.run(_run()) == 1


def test_retry_after_hint_is_used_for_the_wait() -> None:
    waits: list[float] = []

    class Hinted(Exception):
        retry_after = 0.01

    op = Flaky(failures=2, exc_type=Hinted)

    def hint(exc: BaseException) -> float:
        waits.append(exc.retry_after)
        return exc.retry_after

    result = asyncio.run(retry_async(op, attempts=3, delay=5.0, retry_after=hint))

    assert result == "ok"
    assert waits == [0.01, 0.01]


def test_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        asyncio.run(retry_async(Flaky(0), attempts=0))


def test_the_final_attempt_error_is_raised_as_is() -> None:
    raised: list[Exception] = []

    async def op() -> None:
        error = ConnectionError(f"attempt {len(raised) + 1}")
        raised.append(error)
        raise error

    with pytest.raises(ConnectionError) as info:
        asyncio.run(retry_async(op, attempts=3))
    assert info.value is raised[-1]
    assert len(raised) == 3
