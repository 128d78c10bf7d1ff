"""FastAPI dependencies resolved from application state."""

from fastapi import Request

from compass.config import Settings
from compass.graph.runner import Collaborators
from compass.graph.store import RunStore
from compass.metrics.registry import MetricsClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RunStore:
    return request.app.state.run_store


def get_collaborators(request: Request) -> Collaborators:
    return request.app.state.collaborators


def get_app_metrics(request: Request) -> MetricsClient:
    return request.app.state.metrics
