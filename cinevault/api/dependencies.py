"""FastAPI dependencies for the Cinevault API."""
from typing import Iterator

from fastapi import Depends, Request

from .services import pipeline
from .services.queue import JobQueueService
from .services.resolution import ResolutionService
from .settings import CinevaultSettings
from .state import AppState
from .stores.config_store import ConfigStore
from .stores.session_store import SessionStore
from .stores.unmatched_store import UnmatchedStore


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> CinevaultSettings:
    return app_state.settings


def get_config_store(app_state: AppState = Depends(get_app_state)) -> ConfigStore:
    """Return the configuration store dependency."""
    return app_state.config_store


def get_session_store(app_state: AppState = Depends(get_app_state)) -> SessionStore:
    return app_state.session_store


def get_unmatched_store(app_state: AppState = Depends(get_app_state)) -> UnmatchedStore:
    return app_state.unmatched_store


def get_job_queue(app_state: AppState = Depends(get_app_state)) -> JobQueueService:
    return app_state.job_queue


def get_resolution_service(app_state: AppState = Depends(get_app_state)) -> Iterator[ResolutionService]:
    """Provide a resolution service bound to the current provider keys."""

    config = app_state.config_store.read()
    providers = pipeline.create_providers(app_state.settings, config)
    try:
        yield pipeline.build_resolution_service(app_state.engine, providers)
    finally:
        providers.close()
