"""
Reliability utilities for store access.

Circuit breaker and timeout wrapper used by price resolution so a failing
or slow store degrades pricing instead of hanging requests.
"""

import time
import asyncio
from typing import Awaitable, Callable, Any


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    After 'failure_threshold' consecutive failures the circuit opens and
    rejects calls; after 'reset_timeout' seconds one trial call is let through.
    """
    def __init__(self, failure_threshold: int = 5, reset_timeout: float = 60):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.last_failure_time = 0.0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.monotonic() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError("Circuit is OPEN")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        if self.state == "HALF_OPEN" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.monotonic()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            self.state = "OPEN"

    def reset_state(self):
        self.failures = 0
        self.state = "CLOSED"


class DeadlineExceededError(Exception):
    pass


async def call_with_timeout(coro: Awaitable[Any], timeout_seconds: float) -> Any:
    """
    Await `coro`, raising DeadlineExceededError after `timeout_seconds`.

    A TimeoutError raised by `coro` itself (socket or driver timeout)
    propagates unchanged, so callers can tell the two apart.
    """
    task = asyncio.ensure_future(coro)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
    finally:
        if not task.done():
            task.cancel()
    if task not in done:
        raise DeadlineExceededError(f"No result within {timeout_seconds}s")
    return task.result()
