# tests/unit/infrastructure/resilience/test_retry.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

import pytest

from finstatements.infrastructure.resilience.retry import RetryPolicy, compute_backoff, retry_async


class Flaky:
    def __init__(self, failures: int, exc: Exception | None = None) -> None:
        self.failures = failures
        self.exc = exc or ConnectionError("down")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


async def _no_sleep(_: float) -> None:
    return None


def _retry_connection_errors(value: object) -> bool:
    return isinstance(value, ConnectionError)


@pytest.mark.asyncio
async def test_retries_until_success() -> None:
    fn = Flaky(failures=2)
    policy = RetryPolicy(total=3, base=0.1, cap=1.0, jitter=False)

    result = await retry_async(fn, policy=policy, retry_on=_retry_connection_errors, sleep=_no_sleep)

    assert result == "ok"
    assert fn.calls == 3


@pytest.mark.asyncio
async def test_raises_once_budget_is_spent() -> None:
    fn = Flaky(failures=5)
    policy = RetryPolicy(total=2, base=0.0, cap=0.0, jitter=False)

    with pytest.raises(ConnectionError):
        await retry_async(fn, policy=policy, retry_on=_retry_connection_errors, sleep=_no_sleep)

    assert fn.calls == 3


@pytest.mark.asyncio
async def test_non_retryable_error_raises_immediately() -> None:
    fn = Flaky(failures=1, exc=KeyError("nope"))
    policy = RetryPolicy(total=5, base=0.0, cap=0.0, jitter=False)

    with pytest.raises(KeyError):
        await retry_async(fn, policy=policy, retry_on=_retry_connection_errors, sleep=_no_sleep)

    assert fn.calls == 1


@pytest.mark.asyncio
async def test_retryable_result_is_returned_when_budget_runs_out() -> None:
    calls: list[int] = []

    async def fn() -> int:
        calls.append(1)
        return 503

    policy = RetryPolicy(total=1, base=0.0, cap=0.0, jitter=False)
    result = await retry_async(fn, policy=policy, retry_on=lambda v: v == 503, sleep=_no_sleep)

    assert result == 503
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_sleeps_follow_backoff_schedule() -> None:
    slept: list[float] = []

    async def record_sleep(delay: float) -> None:
        slept.append(delay)

    policy = RetryPolicy(total=3, base=0.5, cap=1.5, jitter=False)
    await retry_async(Flaky(failures=3), policy=policy, retry_on=_retry_connection_errors, sleep=record_sleep)

    assert slept == [0.5, 1.0, 1.5]


def test_jittered_backoff_is_bounded() -> None:
    policy = RetryPolicy(total=3, base=1.0, cap=4.0, jitter=True)
    for attempt in range(5):
        assert 0.0 <= compute_backoff(policy, attempt) <= 4.0


@pytest.mark.parametrize("kwargs", [{"total": -1, "base": 0, "cap": 0}, {"total": 1, "base": -1, "cap": 0}])
def test_policy_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)  # type: ignore[arg-type]
