# src/finstatements/infrastructure/resilience/retry.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Retry utilities (async) with jittered exponential backoff."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

__all__ = ["RetryPolicy", "retry_async", "compute_backoff"]


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # number of retries (not counting the first attempt)
    base: float  # base backoff seconds
    cap: float  # max backoff seconds
    jitter: bool = True  # full jitter if True

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ValueError("total must be >= 0")
        if self.base < 0 or self.cap < 0:
            raise ValueError("backoff seconds must be >= 0")


def compute_backoff(policy: RetryPolicy, attempt: int) -> float:
    """Return the sleep before retry number ``attempt + 1``."""
    backoff = min(policy.cap, policy.base * (2**attempt))
    if policy.jitter:
        backoff = random.uniform(0, backoff)  # noqa: S311
    return backoff


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception | T], bool],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Retry an async function with backoff until success or budget exhausted.

    Args:
        fn: Zero-arg async function to execute.
        policy: RetryPolicy defining count/backoff.
        retry_on: Predicate over a raised exception or a returned value; True
            means try again.
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        The return value of ``fn``. When the budget runs out on a retryable
        result, that last result is returned.

    Raises:
        The last exception if it is not retryable or retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            result = await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt >= policy.total or not retry_on(exc):
                raise
        else:
            if attempt >= policy.total or not retry_on(result):
                return result
        await sleep(compute_backoff(policy, attempt))
        attempt += 1
