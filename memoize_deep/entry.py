import asyncio
import inspect
import logging
import time
from types import TracebackType
from typing import Any, Callable, Dict, Optional, Sequence

from . import metrics
from .schemas import UNSET, WaitPolicy
from .tracer import start_span_async

log = logging.getLogger("memoize_deep.entry")


class CacheEntry:
    """Cached value for one canonical key plus the coordination of its fetches.

    At most one fetch task and at most one waiting perform cycle exist at any
    time. Callers that arrive while a cycle is outstanding get that cycle's
    outcome, and the timestamp only moves when a fetch settles.
    """

    def __init__(
        self,
        key: str,
        default_value: Any = UNSET,
        name: str = "memoized",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.key = key
        self.name = name
        self.value: Any = default_value
        self.timestamp: Optional[float] = None
        self._clock = clock
        self._last_error: Optional[Exception] = None
        self._last_error_tb: Optional[TracebackType] = None
        self._fetch_task: Optional[asyncio.Task] = None
        self._perform_task: Optional[asyncio.Task] = None

    @property
    def has_value(self) -> bool:
        return self.value is not UNSET

    @property
    def has_completed_first_cycle(self) -> bool:
        return self.timestamp is not None

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch_task is not None

    @property
    def perform_in_flight(self) -> bool:
        return self._perform_task is not None

    def is_fresh(self, max_age: float) -> bool:
        if self.timestamp is None:
            return False
        return self._clock() - self.timestamp <= max_age

    async def perform(
        self,
        fetch: Callable[..., Any],
        max_age: float,
        args: Sequence[Any],
        wait_policy: WaitPolicy = WaitPolicy.WAIT,
        on_error: Optional[Callable[[Exception], Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if self._perform_task is not None:
            metrics.calls_total.labels(self.name, "coalesced").inc()
            return await asyncio.shield(self._perform_task)

        if self.is_fresh(max_age):
            metrics.calls_total.labels(self.name, "fresh").inc()
            return self._resolve(wait_policy)

        metrics.calls_total.labels(self.name, "refresh").inc()
        fetch_task = self._fetch_task
        if fetch_task is None:
            fetch_task = self._start_fetch(fetch, args, kwargs or {}, wait_policy, on_error)

        # without any value to hand out the caller has to wait, whatever the policy
        if wait_policy is WaitPolicy.NO_WAIT and self.has_value:
            return self.value

        self._perform_task = asyncio.ensure_future(self._wait_for(fetch_task, wait_policy))
        return await asyncio.shield(self._perform_task)

    async def _wait_for(self, fetch_task: asyncio.Task, wait_policy: WaitPolicy) -> Any:
        try:
            await asyncio.shield(fetch_task)
            return self._resolve(wait_policy)
        finally:
            self._perform_task = None

    def _resolve(self, wait_policy: WaitPolicy) -> Any:
        if self.has_value:
            return self.value
        # only reachable when every fetch so far failed and there is no default
        if wait_policy is WaitPolicy.WAIT and self._last_error is not None:
            # always raised with the traceback of the failed fetch
            raise self._last_error.with_traceback(self._last_error_tb)
        return None

    def _start_fetch(self, fetch, args, kwargs, wait_policy, on_error) -> asyncio.Task:
        task = asyncio.ensure_future(self._fetch(fetch, args, kwargs, wait_policy, on_error))
        self._fetch_task = task
        return task

    async def _fetch(self, fetch, args, kwargs, wait_policy: WaitPolicy, on_error) -> None:
        metrics.fetches_total.labels(self.name).inc()
        log.debug("fetch started", extra={"function": self.name, "cache_key": self.key})
        started = time.perf_counter()
        try:
            async with start_span_async(
                "memoize.fetch", {"memoize.function": self.name, "memoize.cache_key": self.key}
            ):
                result = fetch(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
        except Exception as exc:
            metrics.fetch_failures_total.labels(self.name).inc()
            self._last_error = exc
            self._last_error_tb = exc.__traceback__
            if wait_policy is WaitPolicy.WAIT:
                raise
            log.debug(
                "fetch failed, keeping previous value",
                extra={"function": self.name, "cache_key": self.key, "error": repr(exc)},
            )
            await self._route_error(exc, on_error)
        else:
            self.value = result
            self._last_error = None
            self._last_error_tb = None
        finally:
            metrics.fetch_latency_seconds.labels(self.name).observe(time.perf_counter() - started)
            now = self._clock()
            if self.timestamp is None or now > self.timestamp:
                self.timestamp = now
            self._fetch_task = None
            log.debug("fetch settled", extra={"function": self.name, "cache_key": self.key})

    async def _route_error(self, exc: Exception, on_error) -> None:
        if on_error is None:
            return
        try:
            result = on_error(exc)
            if inspect.isawaitable(result):
                await result
        except Exception:
            metrics.on_error_failures_total.labels(self.name).inc()
            log.exception("on_error handler raised", extra={"function": self.name, "cache_key": self.key})
