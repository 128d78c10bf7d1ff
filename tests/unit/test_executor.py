"""Unit tests for ToolExecutor."""

import threading
import time
from typing import Any

import pytest

from compass.config import Settings
from compass.exec import (
    CircuitBreaker,
    InMemoryCache,
    RunContext,
    ToolExecutor,
    ToolRequest,
    cache_key,
)
from compass.metrics.registry import MetricsClient


class CountingTool:
    """Tool that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int = 0, result: dict[str, Any] | None = None) -> None:
        self.failures = failures
        self.result = result if result is not None else {"value": 42}
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, args: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self.calls += 1
            attempt = self.calls
        if attempt <= self.failures:
            raise RuntimeError("upstream unavailable")
        return {**self.result, "args": args}


@pytest.fixture
def cache() -> InMemoryCache:
    """Create a fresh cache."""
    return InMemoryCache()


def _executor(
    tool, settings: Settings, metrics: MetricsClient, cache=None
) -> ToolExecutor:
    return ToolExecutor(
        tools={"places_search": tool},
        settings=settings,
        cache=cache,
        metrics=metrics,
    )


# === Success and retry ===


def test_successful_call(settings, metrics, ctx) -> None:
    tool = CountingTool()
    executor = _executor(tool, settings, metrics)

    response = executor.execute(ToolRequest(name="places_search", args={"q": 1}), ctx)

    assert response.ok
    assert response.data == {"value": 42, "args": {"q": 1}}
    assert response.retries == 0
    assert tool.calls == 1
    assert metrics.tool_latencies["places_search"][0][0] == "ok"


def test_one_retry_recovers(settings, metrics, ctx) -> None:
    """Test that a single failure is retried once and succeeds."""
    tool = CountingTool(failures=1)
    executor = _executor(tool, settings, metrics)

    response = executor.execute(ToolRequest(name="places_search"), ctx)

    assert response.ok
    assert response.retries == 1
    assert tool.calls == 2
    assert metrics.tool_retries["places_search"] == 1


def test_persistent_failure_returns_error(settings, metrics, ctx) -> None:
    """Test that two failed attempts produce an error response, not an exception."""
    tool = CountingTool(failures=5)
    executor = _executor(tool, settings, metrics)

    response = executor.execute(ToolRequest(name="places_search"), ctx)

    assert not response.ok
    assert response.error == "upstream unavailable"
    assert tool.calls == 2
    assert metrics.get_tool_error_count("places_search", "tool_error") == 1


def test_empty_result_is_a_failure(settings, metrics, ctx) -> None:
    executor = _executor(lambda args: None, settings, metrics)
    response = executor.execute(ToolRequest(name="places_search"), ctx)
    assert not response.ok
    assert response.error == "empty_result"


# === Timeout Tests ===


def test_slow_tool_times_out(settings, metrics, ctx) -> None:
    """Test that a tool slower than the soft timeout fails on both attempts."""

    def slow(args: dict[str, Any]) -> dict[str, Any]:
        time.sleep(0.5)
        return {"late": True}

    executor = _executor(slow, settings, metrics)
    response = executor.execute(
        ToolRequest(name="places_search", timeout_soft_ms=100, timeout_hard_ms=300),
        ctx,
    )

    assert not response.ok
    assert response.error in ("timeout", "hard_timeout")
    assert response.latency_ms < 500


# === Circuit Breaker Tests ===


def test_breaker_opens_after_threshold(metrics, ctx) -> None:
    """Test that repeated failures open the breaker and short-circuit calls."""
    settings = Settings(
        _env_file=None,
        breaker_failure_threshold=2,
        retry_jitter_min_ms=0,
        retry_jitter_max_ms=0,
    )
    tool = CountingTool(failures=100)
    executor = _executor(tool, settings, metrics)

    executor.execute(ToolRequest(name="places_search"), ctx)
    executor.execute(ToolRequest(name="places_search"), ctx)
    calls_before = tool.calls
    response = executor.execute(ToolRequest(name="places_search"), ctx)

    assert not response.ok
    assert response.breaker_open
    assert response.error == "circuit_open"
    assert tool.calls == calls_before
    assert metrics.breaker_opens["places_search"] == 1
    assert metrics.breaker_states["places_search"] == "open"


def test_breaker_half_open_trial_closes_on_success() -> None:
    breaker = CircuitBreaker(
        failure_threshold=1, timeout_seconds=60, half_open_timeout_seconds=0
    )
    breaker.record_failure()
    assert breaker.state == "open"

    # Zero half-open delay: the next check lets a trial call through.
    assert not breaker.is_open()
    assert breaker.state == "half_open"
    breaker.record_success()
    assert breaker.state == "closed"


def test_breaker_half_open_failure_reopens() -> None:
    breaker = CircuitBreaker(
        failure_threshold=1, timeout_seconds=60, half_open_timeout_seconds=0
    )
    breaker.record_failure()
    breaker.is_open()
    breaker.record_failure()
    assert breaker.state == "open"


# === Cache Tests ===


def test_cacheable_requests_hit_cache(settings, metrics, ctx, cache) -> None:
    """Test that an identical cacheable request is served from cache."""
    tool = CountingTool()
    executor = _executor(tool, settings, metrics, cache=cache)
    request = ToolRequest(name="places_search", args={"query": "Senso-ji"}, cacheable=True)

    first = executor.execute(request, ctx)
    second = executor.execute(request, ctx)

    assert first.ok and not first.from_cache
    assert second.ok and second.from_cache
    assert second.data == first.data
    assert tool.calls == 1
    assert metrics.tool_cache_hits["places_search"] == 1


def test_non_cacheable_requests_skip_cache(settings, metrics, ctx, cache) -> None:
    tool = CountingTool()
    executor = _executor(tool, settings, metrics, cache=cache)
    request = ToolRequest(name="places_search", args={"query": "Senso-ji"})

    executor.execute(request, ctx)
    executor.execute(request, ctx)

    assert tool.calls == 2


def test_cache_key_ignores_argument_order() -> None:
    first = ToolRequest(name="places_search", args={"a": 1, "b": 2})
    second = ToolRequest(name="places_search", args={"b": 2, "a": 1})
    other_tool = ToolRequest(name="place_details", args={"a": 1, "b": 2})
    assert cache_key(first) == cache_key(second)
    assert cache_key(first) != cache_key(other_tool)


def test_cache_entries_expire(cache) -> None:
    cache.set("k", {"v": 1}, ttl_seconds=0)
    time.sleep(0.01)
    assert cache.get("k") is None


# === Cancellation Tests ===


def test_cancelled_run_makes_no_calls(settings, metrics) -> None:
    """Test that a cancelled context short-circuits before the tool runs."""
    tool = CountingTool()
    executor = _executor(tool, settings, metrics)
    ctx = RunContext("cancelled-run")
    ctx.cancel()

    response = executor.execute(ToolRequest(name="places_search"), ctx)

    assert not response.ok
    assert response.error == "cancelled"
    assert tool.calls == 0
