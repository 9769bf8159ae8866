# mobileauto/resolver.py
"""
@file resolver.py
@brief Retrying, caching element resolution over a RemoteSession.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from .artifacts import FailureArtifacts
from .config import TimeConfig, WaitSettings
from .descriptor import ElementDescriptor
from .exceptions import (ElementNotFoundError, ElementNotVisibleError,
                         RemoteSessionError, ResolutionFailure)
from .interfaces import RemoteSession
from .metrics import CounterSnapshot, PerformanceCounters
from .waits import await_condition, wait_until

T = TypeVar("T")

CacheKey = Tuple[str, str]
Diagnostics = Callable[[str], Dict[str, str]]

OK = "ok"
NOT_FOUND = "not_found"
NOT_VISIBLE = "not_visible"
TRANSPORT = "transport"


def _now() -> float:
    return time.monotonic()


@dataclass(frozen=True)
class ResolutionAttempt:
    """
    Outcome of one resolution attempt: either a handle (kind "ok") or a
    retryable failure kind with the error that caused it.
    """
    number: int
    elapsed: float
    kind: str = OK
    handle: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.kind == OK


@dataclass(frozen=True)
class CacheEntry:
    handle: Any
    resolved_at: float


class Resolver:
    """
    Resolves element descriptors to live handles.

    Successful resolutions are cached per (selector, description) until
    invalidate() is called; there is no per-entry staleness check, so callers
    must invalidate after every navigation. Misses are retried with capped
    exponential backoff, and the final failure captures a diagnostic
    screenshot before raising ResolutionFailure.
    """

    def __init__(
        self,
        session: RemoteSession,
        *,
        diagnostics: Optional[Diagnostics] = None,
        artifacts_dir: str = "screenshots",
        config: Optional[TimeConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        @param session RemoteSession used for every lookup and pause
        @param diagnostics Callable(description) -> artifacts dict; defaults to
               a screenshot writer under artifacts_dir
        @param config Pinned TimeConfig (uses TimeConfig.current() if None)
        """
        self.session = session
        self.log = logger or logging.getLogger("mobileauto.resolver")
        self._diagnostics = diagnostics if diagnostics is not None else FailureArtifacts(session, artifacts_dir)
        self._config = config
        self._lock = threading.Lock()
        self._cache: Dict[CacheKey, CacheEntry] = {}
        self._inflight: Dict[CacheKey, Future] = {}
        self._generation = 0
        self._counters = PerformanceCounters()

    @property
    def config(self) -> TimeConfig:
        return self._config if self._config is not None else TimeConfig.current()

    @property
    def counters(self) -> CounterSnapshot:
        """Read-only snapshot of lookup/hit/wait counters."""
        return self._counters.snapshot()

    @property
    def cached_count(self) -> int:
        with self._lock:
            return len(self._cache)

    def is_cached(self, descriptor: ElementDescriptor) -> bool:
        with self._lock:
            return descriptor.cache_key in self._cache

    def cache_entry(self, descriptor: ElementDescriptor) -> Optional[CacheEntry]:
        with self._lock:
            return self._cache.get(descriptor.cache_key)

    def invalidate(self) -> int:
        """
        Drop every cached handle. Call after any navigation.

        @return number of entries dropped
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._generation += 1
        self.log.info("Cleared %d cached elements", count)
        return count

    def resolve(self, descriptor: ElementDescriptor, timeout: Optional[float] = None) -> Any:
        """
        Resolve a descriptor to an element handle.

        @param descriptor Element descriptor
        @param timeout Per-attempt timeout in seconds (resolve_element default if None)
        @return Element handle (the cached object on repeat calls)
        @throws ResolutionFailure if every attempt failed
        """
        return self._resolve(descriptor, timeout, self.config)

    def resolve_parallel(
        self,
        descriptors: Sequence[ElementDescriptor],
        timeout: Optional[float] = None,
    ) -> List[Any]:
        """
        Resolve several descriptors concurrently.

        Handles are returned in input order. If any resolution fails the whole
        batch raises that failure; siblings that succeeded stay cached.
        """
        items = list(descriptors)
        if not items:
            return []

        cfg = self.config
        workers = max(1, min(len(items), int(cfg.parallel_workers)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mobileauto-resolve") as pool:
            futures = [pool.submit(self._resolve, d, timeout, cfg) for d in items]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    error = future.exception()
                    self.log.error("Parallel element lookup failed: %s", error)
                    raise error
            results = [f.result() for f in futures]

        self.log.info("Found %d elements in parallel", len(results))
        return results

    def find_visible(self, descriptor: ElementDescriptor, timeout: Optional[float] = None) -> Optional[Any]:
        """
        Single uncached lookup: the handle if the element is present and
        visible, otherwise None. Transport errors count as absent.
        """
        cfg = self.config
        effective_timeout = timeout if timeout is not None else cfg.fallback_lookup.timeout
        attempt = self._attempt(descriptor, 1, effective_timeout, cfg.fallback_lookup, _now())
        if attempt.ok:
            return attempt.handle
        self.log.debug("Lookup failed for %s: %s", descriptor.description, attempt.error)
        return None

    def await_condition(
        self,
        predicate: Callable[[], T],
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        description: str = "condition",
    ) -> T:
        """
        Poll predicate with doubling delays, pausing through the session.

        Defaults: condition_attempts (5) attempts starting at
        condition_initial_delay (0.5s).
        """
        cfg = self.config
        return await_condition(
            predicate,
            max_attempts=max_attempts if max_attempts is not None else cfg.condition_attempts,
            initial_delay=initial_delay if initial_delay is not None else cfg.condition_initial_delay,
            description=description,
            sleep=self.session.sleep,
        )

    def _resolve(self, descriptor: ElementDescriptor, timeout: Optional[float], cfg: TimeConfig) -> Any:
        key = descriptor.cache_key
        self._counters.record_lookup()

        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                self._counters.record_hit()
                self.log.debug("Cache hit for %s", descriptor.description)
                return entry.handle
            pending = self._inflight.get(key)
            if pending is None:
                future: Future = Future()
                self._inflight[key] = future
                generation = self._generation

        if pending is not None:
            self.log.debug("Joining in-flight lookup for %s", descriptor.description)
            return pending.result()

        try:
            handle = self._resolve_remote(descriptor, timeout, cfg)
        except BaseException as e:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._inflight.pop(key, None)
            # an invalidate() during the lookup means the handle belongs to the old screen
            if generation == self._generation:
                self._cache[key] = CacheEntry(handle=handle, resolved_at=time.time())
        future.set_result(handle)
        return handle

    def _resolve_remote(self, descriptor: ElementDescriptor, timeout: Optional[float], cfg: TimeConfig) -> Any:
        settings = cfg.resolve_element
        effective_timeout = timeout if timeout is not None else settings.timeout
        max_attempts = settings.retry_count or 1
        start = _now()
        attempts: List[ResolutionAttempt] = []

        for number in range(1, max_attempts + 1):
            self.log.info(
                "Attempting to find %s (attempt %d/%d)",
                descriptor.description, number, max_attempts,
            )
            attempt = self._attempt(descriptor, number, effective_timeout, cfg.visibility_poll, start)
            attempts.append(attempt)

            if attempt.ok:
                self._counters.record_wait(attempt.elapsed)
                self.log.info("Found %s in %.3fs", descriptor.description, attempt.elapsed)
                return attempt.handle

            self.log.warning(
                "Attempt %d failed for %s: %s", number, descriptor.description, attempt.error,
            )
            if number < max_attempts:
                self.session.sleep(cfg.backoff_delay(number))

        last_error = attempts[-1].error
        artifacts = self._capture(descriptor)
        self.log.error(
            "Failed to locate %s after %d attempts: %s",
            descriptor.description, max_attempts, last_error,
        )
        raise ResolutionFailure(
            descriptor.description,
            attempts=attempts,
            timeout=effective_timeout,
            last_error=last_error,
            artifacts=artifacts,
        ) from last_error

    def _attempt(
        self,
        descriptor: ElementDescriptor,
        number: int,
        timeout: float,
        visibility: WaitSettings,
        started: float,
    ) -> ResolutionAttempt:
        """
        Locate then require visibility; only non-retryable errors escape.

        The visibility wait ends at `visibility.timeout` or at the end of the
        attempt timeout, whichever comes first.
        """
        attempt_start = _now()
        try:
            handle = self.session.locate(descriptor, timeout)
        except RemoteSessionError as e:
            return ResolutionAttempt(number, _now() - started, TRANSPORT, error=e)

        if handle is None:
            return ResolutionAttempt(
                number, _now() - started, NOT_FOUND,
                error=ElementNotFoundError(descriptor.description, timeout),
            )

        remaining = max(0.0, timeout - (_now() - attempt_start))
        visible_within = min(visibility.timeout, remaining)
        try:
            visible = wait_until(
                lambda: self.session.is_visible(handle),
                timeout=visible_within,
                interval=visibility.interval,
                description=f"{descriptor.description} to be displayed",
                sleep=self.session.sleep,
            )
        except RemoteSessionError as e:
            return ResolutionAttempt(number, _now() - started, TRANSPORT, error=e)

        if not visible:
            return ResolutionAttempt(
                number, _now() - started, NOT_VISIBLE,
                error=ElementNotVisibleError(descriptor.description, timeout),
            )
        return ResolutionAttempt(number, _now() - started, OK, handle=handle)

    def _capture(self, descriptor: ElementDescriptor) -> Dict[str, str]:
        if self._diagnostics is None:
            return {}
        try:
            return self._diagnostics(descriptor.description) or {}
        except Exception as e:
            self.log.error("Diagnostic capture failed for %s: %s", descriptor.description, e)
            return {}
