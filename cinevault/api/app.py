"""Application factory for the Cinevault API."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import config, health, imports
from .settings import CinevaultSettings
from .state import AppState


def create_app(settings: CinevaultSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or CinevaultSettings()
    app_state = AppState(settings=resolved_settings)

    app = FastAPI(title="Cinevault API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        health.router,
        config.router,
        imports.router,
    ):
        app.include_router(router)

    return app
