# mobileauto/waits.py
"""
@file waits.py
@brief Wait, poll and backoff utilities for element resolution.

Every loop takes an optional ``sleep`` callable so the caller can route
pauses through a RemoteSession (or a fake in tests) instead of time.sleep.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Tuple, TypeVar

from .exceptions import ConditionTimeout

T = TypeVar("T")

log = logging.getLogger("mobileauto.waits")


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 5.0) -> float:
    """
    Delay to sleep after failed attempt number `attempt` (1-based).

    Doubles from `base` on each attempt and never exceeds `cap`:
    base=1.0, cap=5.0 gives 1.0, 2.0, 4.0, 5.0, 5.0, ...
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return min(base * (2 ** (attempt - 1)), cap)


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.25,
    description: str = "condition",
    sleep: Optional[Callable[[float], Any]] = None,
) -> Optional[T]:
    """
    Repeatedly runs predicate until it returns a truthy value, or until
    timeout. Returns None on timeout instead of raising; exceptions from
    the predicate propagate.
    """
    pause = sleep or time.sleep
    start_time = _now()
    attempt_count = 0

    while True:
        attempt_count += 1
        result = predicate()
        if result:
            log.debug(
                "wait_success description=%s attempts=%d elapsed_s=%.3f",
                description, attempt_count, _now() - start_time,
            )
            return result

        time_left = timeout - (_now() - start_time)
        if time_left <= 0:
            break
        pause(min(interval, time_left))

    log.debug(
        "wait_timeout description=%s attempts=%d timeout_s=%s",
        description, attempt_count, timeout,
    )
    return None


def wait_until_passes(
    func: Callable[..., T],
    timeout: float,
    interval: float = 0.25,
    exceptions: Tuple[type, ...] = (Exception,),
    description: str = "operation",
    sleep: Optional[Callable[[float], Any]] = None,
) -> T:
    """
    Wait until func() succeeds without raising one of `exceptions`.
    The last exception is re-raised once the timeout is spent.
    """
    pause = sleep or time.sleep
    start_time = _now()
    attempt_count = 0

    while True:
        attempt_count += 1
        try:
            return func()
        except exceptions as e:
            time_left = timeout - (_now() - start_time)
            if time_left <= 0:
                log.debug(
                    "retry_timeout description=%s attempts=%d last_error=%s",
                    description, attempt_count, e,
                )
                raise
            pause(min(interval, time_left))


def await_condition(
    predicate: Callable[[], T],
    max_attempts: int = 5,
    initial_delay: float = 0.5,
    description: str = "condition",
    sleep: Optional[Callable[[float], Any]] = None,
) -> T:
    """
    Poll predicate up to `max_attempts` times with exponential backoff.

    The delay starts at `initial_delay` and doubles after every attempt with
    no cap; there is no pause after the final attempt. Returns the first
    truthy result. When attempts run out the last predicate error is
    re-raised, or ConditionTimeout if the predicate only returned falsy.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    pause = sleep or time.sleep
    start_time = _now()
    delay = initial_delay
    last_exception: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = predicate()
            if result:
                log.info("Condition met on attempt %d: %s", attempt, description)
                return result
        except Exception as e:
            last_exception = e
            log.debug("Condition attempt %d raised %s: %s", attempt, type(e).__name__, e)

        if attempt < max_attempts:
            log.debug("Waiting %.3fs before attempt %d: %s", delay, attempt + 1, description)
            pause(delay)
            delay *= 2

    if last_exception is not None:
        raise last_exception
    raise ConditionTimeout(description, attempt_count=max_attempts, elapsed=_now() - start_time)
