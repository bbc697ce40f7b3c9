"""Database-backed configuration store for the Cinevault API."""
from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Any

from sqlmodel import Session, select

from ..db import read_config
from ..models import ConfigRecord
from ..schemas import ConfigModel, ConfigUpdate


class ConfigStore:
    """Thread-safe interface over the persisted import configuration."""

    def __init__(self, engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def read(self) -> ConfigModel:
        """Return the current configuration model."""

        with Session(self._engine) as session:
            return read_config(session)

    def update(self, update: ConfigUpdate) -> ConfigModel:
        """Apply updates to the stored configuration."""

        update_payload = _extract_update(update)
        with self._lock, Session(self._engine) as session:
            record = session.exec(select(ConfigRecord).where(ConfigRecord.id == 1)).one_or_none()
            if record is None:
                raise RuntimeError("Configuration record missing from database")
            for key, value in update_payload.items():
                setattr(record, key, value)
            record.updated_at = datetime.utcnow()
            session.add(record)
            session.commit()
            session.refresh(record)
            return ConfigModel(
                tmdb_api_key=record.tmdb_api_key,
                omdb_api_key=record.omdb_api_key,
                import_batch_size=record.import_batch_size,
                import_batch_delay_seconds=record.import_batch_delay_seconds,
            )


def _extract_update(update: ConfigUpdate) -> dict[str, Any]:
    """Extract a payload suitable for model updates.

    API keys may be cleared explicitly with ``null``; numeric tunables ignore
    ``null`` so they always keep a usable value.
    """

    payload = update.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in payload.items()
        if value is not None or key in {"tmdb_api_key", "omdb_api_key"}
    }
