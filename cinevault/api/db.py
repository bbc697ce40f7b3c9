"""Database helpers for the Cinevault API."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .models import ConfigRecord
from .schemas import ConfigModel
from .settings import CinevaultSettings


def _ensure_sqlite_path(database_url: str) -> None:
    """Create parent directories when using a SQLite URL."""

    if database_url.startswith("sqlite:///"):
        path_part = database_url.removeprefix("sqlite:///").split("?")[0]
        if path_part:
            db_path = Path(path_part)
            db_path.parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_settings(settings: CinevaultSettings) -> Engine:
    """Create a SQLModel engine using service settings."""

    _ensure_sqlite_path(settings.database_url)
    is_sqlite = settings.database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)
    if is_sqlite:
        # Unmatched items cascade with their session.
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(engine: Engine, settings: CinevaultSettings) -> None:
    """Create tables and seed default configuration."""

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        record = session.get(ConfigRecord, 1)
        if record is None:
            defaults = ConfigRecord(
                id=1,
                tmdb_api_key=settings.default_tmdb_api_key,
                omdb_api_key=settings.default_omdb_api_key,
                import_batch_size=settings.import_batch_size,
                import_batch_delay_seconds=settings.import_batch_delay_seconds,
            )
            session.add(defaults)
            session.commit()


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a SQLModel session that commits on success and rolls back on error."""

    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def joined_scope(engine: Engine, session: Session | None = None) -> Iterator[Session]:
    """Reuse the caller's session when given, otherwise open a committing scope."""

    if session is not None:
        yield session
        return
    with session_scope(engine) as scoped:
        yield scoped


def read_config(session: Session) -> ConfigModel:
    """Fetch the persisted configuration as a Pydantic model."""

    record = session.get(ConfigRecord, 1)
    if record is None:
        raise RuntimeError("Configuration record missing from database")
    return ConfigModel(
        tmdb_api_key=record.tmdb_api_key,
        omdb_api_key=record.omdb_api_key,
        import_batch_size=record.import_batch_size,
        import_batch_delay_seconds=record.import_batch_delay_seconds,
    )
