"""Shared state container for the Cinevault API."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .db import create_engine_from_settings, init_database
from .services.queue import JobQueueService
from .settings import CinevaultSettings
from .stores.config_store import ConfigStore
from .stores.record_store import RecordStore
from .stores.session_store import SessionStore
from .stores.unmatched_store import UnmatchedStore
from .utils.paths import ensure_directory


@dataclass(slots=True)
class AppState:
    """Encapsulates mutable application state shared across routers."""

    settings: CinevaultSettings
    config_store: ConfigStore
    session_store: SessionStore
    unmatched_store: UnmatchedStore
    record_store: RecordStore
    job_queue: JobQueueService
    engine: Engine

    def __init__(self, settings: CinevaultSettings) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine, settings)
        ensure_directory(settings.upload_path)
        self.config_store = ConfigStore(self.engine)
        self.session_store = SessionStore(self.engine)
        self.unmatched_store = UnmatchedStore(self.engine)
        self.record_store = RecordStore(self.engine)
        self.job_queue = JobQueueService(settings)

    def session(self) -> Session:
        """Instantiate a SQLModel session for dependencies."""

        return Session(self.engine)
