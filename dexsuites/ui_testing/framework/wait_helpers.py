# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Polling primitives for UI state that offers no direct "done" signal
# (e.g. upload progress without a completion callback).
#
# Key Features:
#   - Exponential backoff bounded by a maximum attempt count
#   - Fixed-interval polling bounded by a total timeout
#   - Named wait scenarios
#   - Wall-clock limit for a whole async test body
#   - Allure integration for step reporting
#
# Usage:
#   await wait_with_backoff(check_uploaded, max_attempts=5, base_delay=0.5)
#   await wait_until(dialog_closed, timeout=10.0)
#   await time_limited(test_body, timeout=60.0)(page)
#
# Conditions may be evaluated many times: they must be idempotent and free of
# side effects when they return False.
#
# ================================================================================

import asyncio
import functools
import inspect
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import allure
from loguru import logger


Condition = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class WaitConfig:
    """
    Configuration for backoff polling.

    Attributes:
        max_attempts: Number of condition evaluations before giving up
        base_delay: Delay in seconds after the first failed attempt;
            doubles after each subsequent failure
    """
    max_attempts: int = 10
    base_delay: float = 1.0


# Pre-configured wait strategies for common scenarios
WAIT_SCENARIOS: Dict[str, WaitConfig] = {
    "default": WaitConfig(),
    # Upload indicators can take a while on large files
    "upload": WaitConfig(max_attempts=8, base_delay=0.5),
    # Dialog open/close animations
    "dialog": WaitConfig(max_attempts=5, base_delay=0.25),
}


class WaitTimeoutError(Exception):
    """Raised when a wait operation times out."""
    pass


class RetryExhaustedError(WaitTimeoutError):
    """Raised when backoff polling used up every attempt."""

    def __init__(self, description: str, attempts: int):
        self.description = description
        self.attempts = attempts
        super().__init__(
            f"Condition not met after {attempts} attempts: {description}"
        )


def get_wait_config(scenario: str) -> WaitConfig:
    """
    Get wait configuration for a specific scenario.

    Args:
        scenario: Scenario name (e.g., "upload", "dialog")

    Returns:
        WaitConfig for the scenario, or default if not found
    """
    return WAIT_SCENARIOS.get(scenario, WAIT_SCENARIOS["default"])


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay in seconds after the failed 0-based `attempt`."""
    return base_delay * (2 ** attempt)


async def wait_with_backoff(
    condition: Condition,
    max_attempts: int = 10,
    base_delay: float = 1.0,
    description: str = "condition",
) -> None:
    """
    Wait for an async condition with exponential backoff.

    The condition is evaluated up to `max_attempts` times. After failed
    attempt ``i`` (0-based) the helper sleeps ``base_delay * 2**i`` seconds;
    there is no sleep after the final attempt.

    Args:
        condition: Async callable returning True once the state is reached
        max_attempts: Maximum number of evaluations
        base_delay: Base delay in seconds
        description: Human-readable description for logging

    Raises:
        RetryExhaustedError: If no attempt returned True
        ValueError: If max_attempts is lower than 1
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    with allure.step(f"Waiting with backoff: {description}"):
        for attempt in range(max_attempts):
            if await condition():
                logger.debug(
                    f"Wait successful after {attempt + 1} attempts: {description}"
                )
                return

            if attempt == max_attempts - 1:
                break

            delay = backoff_delay(attempt, base_delay)
            logger.debug(
                f"Attempt {attempt + 1}/{max_attempts}: condition not met. "
                f"Waiting {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    logger.error(f"Backoff exhausted after {max_attempts} attempts: {description}")
    raise RetryExhaustedError(description, max_attempts)


async def wait_with_scenario(
    condition: Condition,
    scenario: str = "default",
    description: str = "condition",
) -> None:
    """Backoff wait using a named entry of WAIT_SCENARIOS."""
    config = get_wait_config(scenario)
    await wait_with_backoff(
        condition,
        max_attempts=config.max_attempts,
        base_delay=config.base_delay,
        description=description,
    )


async def wait_until(
    condition: Condition,
    timeout: float,
    interval: float = 1.0,
    description: str = "condition",
) -> None:
    """
    Poll a condition at a fixed interval until it holds or time runs out.

    Args:
        condition: Async callable returning True once the state is reached
        timeout: Total timeout in seconds
        interval: Seconds between evaluations
        description: Human-readable description for logging

    Raises:
        WaitTimeoutError: If the condition never held within `timeout`
    """
    start_time = time.monotonic()
    attempt = 0

    while True:
        attempt += 1
        if await condition():
            return

        elapsed = time.monotonic() - start_time
        if elapsed + interval > timeout:
            error_msg = (
                f"Timeout after {elapsed:.1f}s ({attempt} attempts) "
                f"waiting for: {description}"
            )
            logger.error(error_msg)
            raise WaitTimeoutError(error_msg)

        await asyncio.sleep(interval)



def time_limited(func: Callable[..., Awaitable[Any]], timeout: Optional[float]):
    """
    Wrap an async callable so a single call may run for at most `timeout` seconds.

    A falsy timeout leaves the call unbounded.

    Raises:
        WaitTimeoutError: If the call was cancelled for running past the limit
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        if not timeout:
            return await func(*args, **kwargs)
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
        except asyncio.TimeoutError:
            error_msg = f"{func.__name__} exceeded the {timeout:g}s test timeout"
            logger.error(error_msg)
            raise WaitTimeoutError(error_msg) from None

    return wrapper



@contextmanager
def bounded_test_body(item, timeout: Optional[float]):
    """
    Temporarily replace `item.obj` with its time-limited version.

    Only coroutine functions are wrapped; the original is restored on exit.
    """
    original = getattr(item, "obj", None)
    if not timeout or not inspect.iscoroutinefunction(original):
        yield
        return
    item.obj = time_limited(original, timeout)
    try:
        yield
    finally:
        item.obj = original


__all__ = [
    "RetryExhaustedError",
    "WAIT_SCENARIOS",
    "WaitConfig",
    "WaitTimeoutError",
    "backoff_delay",
    "bounded_test_body",
    "get_wait_config",
    "time_limited",
    "wait_until",
    "wait_with_backoff",
    "wait_with_scenario",
]
