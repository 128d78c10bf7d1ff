"""Shared pytest fixtures."""

import pytest

from compass.config import Settings
from compass.exec.context import RunContext
from compass.metrics.registry import MetricsClient


@pytest.fixture
def settings() -> Settings:
    """Settings with fast timeouts, no jitter and collaborators disabled."""
    return Settings(
        _env_file=None,
        openai_api_key="dummy-test",
        google_maps_api_key="dummy-test",
        soft_timeout_s=1.0,
        hard_timeout_s=2.0,
        retry_jitter_min_ms=0,
        retry_jitter_max_ms=0,
    )


@pytest.fixture
def metrics() -> MetricsClient:
    """Create a fresh metrics client."""
    return MetricsClient()


@pytest.fixture
def ctx() -> RunContext:
    return RunContext("test-run")
