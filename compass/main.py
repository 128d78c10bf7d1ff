"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compass import __version__
from compass.api.demo import router as demo_router
from compass.api.health import router as health_router
from compass.api.plan import router as plan_router
from compass.config import Settings, get_settings
from compass.graph.runner import Collaborators
from compass.graph.store import RunStore, get_run_store
from compass.metrics.registry import MetricsClient, get_metrics

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    collaborators: Collaborators | None = None,
    store: RunStore | None = None,
    metrics: MetricsClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings override; defaults to the environment
        collaborators: Adapter set override, mainly for tests
        store: Run store override
        metrics: Metrics client override

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics()
    owns_collaborators = collaborators is None
    collaborators = collaborators or Collaborators.from_settings(settings, metrics)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("app_starting", extra={"version": __version__})
        yield
        if owns_collaborators:
            collaborators.close()

    app = FastAPI(
        title="Compass API",
        description="Turns travel screenshots into day-by-day itineraries",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.collaborators = collaborators
    app.state.run_store = store or get_run_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(plan_router)
    app.include_router(demo_router)
    return app


# Create app instance for uvicorn
app = create_app()
