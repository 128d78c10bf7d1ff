"""Collaborator executor.

Every adapter call (vision, places, LLM) runs through ``ToolExecutor.execute``,
which applies, in order: run cancellation, the per-tool circuit breaker, the
TTL cache for cacheable requests, and then up to two attempts bounded by a
soft per-attempt timeout and a hard overall timeout. Failures come back as a
``ToolResponse`` with ``ok=False``; nothing is raised to the adapter.
"""

import hashlib
import json
import logging
import random
import threading
import time
from collections import deque
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Literal, Protocol

from compass.config import Settings
from compass.exec.context import RunContext
from compass.exec.types import (
    ExecutorErrorKind,
    ToolCallable,
    ToolName,
    ToolRequest,
    ToolResponse,
)
from compass.metrics.core import record_tool_call
from compass.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)

BreakerState = Literal["closed", "open", "half_open"]

MAX_ATTEMPTS = 2


class SimpleCache(Protocol):
    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None: ...


class InMemoryCache:
    """Process-local TTL cache keyed by request digest."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if time.monotonic() > expires_at:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl_seconds, value)


class CircuitBreaker:
    """Failure-window breaker for one tool.

    ``failure_threshold`` failures inside ``timeout_seconds`` open it. After
    ``half_open_timeout_seconds`` one trial call is let through; its outcome
    closes or re-opens the breaker.
    """

    def __init__(
        self,
        failure_threshold: int,
        timeout_seconds: int,
        half_open_timeout_seconds: int = 30,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.half_open_timeout_seconds = half_open_timeout_seconds
        self.state: BreakerState = "closed"
        self._failures: deque[float] = deque()
        self._opened_at = 0.0
        self._lock = threading.Lock()

    def _open(self, now: float) -> None:
        self.state = "open"
        self._opened_at = now

    def is_open(self) -> bool:
        """True while calls must be short-circuited; may move open to half-open."""
        with self._lock:
            if self.state != "open":
                return False
            if time.monotonic() - self._opened_at >= self.half_open_timeout_seconds:
                self.state = "half_open"
                return False
            return True

    def record_failure(self) -> None:
        with self._lock:
            now = time.monotonic()
            self._failures.append(now)
            while self._failures and now - self._failures[0] > self.timeout_seconds:
                self._failures.popleft()

            if self.state == "half_open":
                self._open(now)
            elif self.state == "closed" and len(self._failures) >= self.failure_threshold:
                self._open(now)

    def record_success(self) -> None:
        with self._lock:
            if self.state == "half_open":
                self.state = "closed"
                self._failures.clear()


def cache_key(request: ToolRequest) -> str:
    """Stable digest of a request's tool name and arguments."""
    payload = json.dumps(
        {"name": request.name, "args": request.args}, sort_keys=True, ensure_ascii=True
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ToolExecutor:
    """Runs named collaborator tools with every call policy applied."""

    def __init__(
        self,
        tools: Mapping[ToolName, ToolCallable],
        settings: Settings,
        cache: SimpleCache | None = None,
        rng: random.Random | None = None,
        metrics: MetricsClient | None = None,
    ) -> None:
        """
        Args:
            tools: Callables by tool name; each takes and returns a dict
            settings: Timeout, retry, breaker and cache-TTL policy
            cache: Cache for requests marked ``cacheable``
            rng: Jitter source, seedable in tests
            metrics: In-process metrics client
        """
        self.tools = dict(tools)
        self.settings = settings
        self.cache = cache
        self.rng = rng or random.Random()
        self.metrics = metrics
        self.breakers: dict[str, CircuitBreaker] = {}
        self._breakers_lock = threading.Lock()
        self.pool = ThreadPoolExecutor(max_workers=8)

    def breaker_for(self, name: ToolName) -> CircuitBreaker:
        with self._breakers_lock:
            breaker = self.breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(
                    failure_threshold=self.settings.breaker_failure_threshold,
                    timeout_seconds=self.settings.breaker_timeout_s,
                    half_open_timeout_seconds=self.settings.breaker_half_open_s,
                )
                self.breakers[name] = breaker
            return breaker

    def _attempt(
        self, tool: ToolCallable, args: dict[str, Any], timeout_s: float
    ) -> tuple[dict[str, Any] | None, str | None]:
        """One bounded call; returns ``(data, None)`` or ``(None, error)``."""
        future = self.pool.submit(tool, args)
        try:
            data = future.result(timeout=timeout_s)
        except FuturesTimeoutError:
            future.cancel()
            return None, "timeout"
        except Exception as e:
            logger.warning(
                "tool_call_failed",
                extra={"error_type": type(e).__name__, "error": str(e)},
            )
            return None, str(e) or type(e).__name__
        if data is None:
            return None, "empty_result"
        return data, None

    def _finish(
        self,
        request: ToolRequest,
        started: float,
        *,
        ok: bool,
        from_cache: bool = False,
        retries: int = 0,
        error_kind: ExecutorErrorKind | None = None,
    ) -> int:
        latency_ms = int((time.monotonic() - started) * 1000)
        record_tool_call(
            tool=request.name,
            latency_ms=latency_ms,
            ok=ok,
            from_cache=from_cache,
            retries=retries,
            error_kind=error_kind,
            metrics=self.metrics,
        )
        breaker = self.breakers.get(request.name)
        if self.metrics is not None and breaker is not None:
            self.metrics.set_breaker_state(request.name, breaker.state)
        return latency_ms

    def execute(self, request: ToolRequest, ctx: RunContext) -> ToolResponse:
        """Run ``request`` for the run in ``ctx``.

        Returns:
            ToolResponse; ``error`` is one of "cancelled", "circuit_open",
            "timeout", "hard_timeout", "empty_result" or the tool's message
        """
        started = time.monotonic()

        if ctx.is_cancelled:
            latency = self._finish(request, started, ok=False)
            return ToolResponse(ok=False, error="cancelled", latency_ms=latency)

        breaker = self.breaker_for(request.name)
        if breaker.is_open():
            latency = self._finish(request, started, ok=False, error_kind="breaker_open")
            return ToolResponse(
                ok=False, error="circuit_open", latency_ms=latency, breaker_open=True
            )

        key = cache_key(request) if self.cache is not None and request.cacheable else None
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                latency = self._finish(request, started, ok=True, from_cache=True)
                return ToolResponse(
                    ok=True, data=cached, from_cache=True, latency_ms=latency
                )

        tool = self.tools[request.name]
        soft_s = (request.timeout_soft_ms or self.settings.soft_timeout_s * 1000) / 1000
        hard_s = (request.timeout_hard_ms or self.settings.hard_timeout_s * 1000) / 1000

        data: dict[str, Any] | None = None
        error: str | None = None
        error_kind: ExecutorErrorKind | None = None
        retries = 0

        for attempt in range(MAX_ATTEMPTS):
            remaining_s = hard_s - (time.monotonic() - started)
            if remaining_s <= 0:
                error, error_kind = "hard_timeout", "timeout_hard"
                break
            if attempt:
                if ctx.is_cancelled:
                    error, error_kind = "cancelled", None
                    break
                jitter_ms = self.rng.randint(
                    self.settings.retry_jitter_min_ms, self.settings.retry_jitter_max_ms
                )
                time.sleep(jitter_ms / 1000)
                remaining_s = hard_s - (time.monotonic() - started)
                if remaining_s <= 0:
                    error, error_kind = "hard_timeout", "timeout_hard"
                    break

            retries = attempt
            data, error = self._attempt(tool, request.args, min(soft_s, remaining_s))
            if data is not None:
                error_kind = None
                break
            if error == "timeout":
                over_hard = time.monotonic() - started >= hard_s
                error_kind = "timeout_hard" if over_hard else "timeout_soft"
            else:
                error_kind = "tool_error"

        ok = data is not None
        if ok:
            breaker.record_success()
            if key is not None:
                self.cache.set(key, data, self.settings.places_ttl_hours * 3600)
        else:
            breaker.record_failure()

        latency = self._finish(
            request, started, ok=ok, retries=retries, error_kind=error_kind
        )
        return ToolResponse(
            ok=ok,
            data=data,
            error=None if ok else error,
            latency_ms=latency,
            retries=retries,
        )

    def shutdown(self) -> None:
        self.pool.shutdown(wait=False, cancel_futures=True)
