"""Catalog record store used by the import pipeline for lookups and inserts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..db import joined_scope
from ..models import CastMemberRecord, CatalogRecord, CrewMemberRecord
from ..schemas import CatalogRecordModel

logger = logging.getLogger(__name__)


def title_key(title: str) -> str:
    """Return the case-insensitive uniqueness key for a record title."""

    return title.strip().lower()


@dataclass(slots=True)
class PersistResult:
    record: CatalogRecordModel
    created: bool


class RecordStore:
    """Lookup and insert access to catalog records.

    The UNIQUE constraints on ``title_key``, ``tmdb_id`` and ``imdb_id`` are the
    authoritative duplicate guard; the ``find_*`` helpers are fast paths.
    """

    def __init__(self, engine) -> None:
        self._engine = engine

    def find_by_title(self, title: str, *, session: Session | None = None) -> CatalogRecordModel | None:
        """Return the record whose title matches case-insensitively."""

        statement = select(CatalogRecord).where(CatalogRecord.title_key == title_key(title))
        return self._first(statement, session)

    def find_by_tmdb_id(self, tmdb_id: int, *, session: Session | None = None) -> CatalogRecordModel | None:
        statement = select(CatalogRecord).where(CatalogRecord.tmdb_id == tmdb_id)
        return self._first(statement, session)

    def find_by_imdb_id(self, imdb_id: str, *, session: Session | None = None) -> CatalogRecordModel | None:
        statement = select(CatalogRecord).where(CatalogRecord.imdb_id == imdb_id)
        return self._first(statement, session)

    def find_conflict(
        self,
        *,
        title: str,
        tmdb_id: int,
        imdb_id: str | None = None,
        session: Session | None = None,
    ) -> CatalogRecordModel | None:
        """Return any record sharing the TMDB id, the title or the IMDb id."""

        existing = self.find_by_tmdb_id(tmdb_id, session=session)
        if existing is None:
            existing = self.find_by_title(title, session=session)
        if existing is None and imdb_id:
            existing = self.find_by_imdb_id(imdb_id, session=session)
        return existing

    def insert(
        self,
        fields: dict[str, Any],
        *,
        cast: list[dict[str, Any]] | None = None,
        crew: list[dict[str, Any]] | None = None,
        session: Session | None = None,
    ) -> CatalogRecordModel:
        """Insert a record with its cast and crew, raising ``IntegrityError`` on duplicates."""

        record = CatalogRecord(**fields, title_key=title_key(fields["title"]))
        with joined_scope(self._engine, session) as scoped:
            scoped.add(record)
            scoped.flush()
            for member in cast or []:
                scoped.add(CastMemberRecord(record_id=record.id, **member))
            for member in crew or []:
                scoped.add(CrewMemberRecord(record_id=record.id, **member))
            scoped.flush()
            scoped.refresh(record)
            return _to_model(record)

    def persist(
        self,
        fields: dict[str, Any],
        *,
        cast: list[dict[str, Any]] | None = None,
        crew: list[dict[str, Any]] | None = None,
    ) -> PersistResult:
        """Insert a record unless a concurrent writer already created it."""

        try:
            return PersistResult(self.insert(fields, cast=cast, crew=crew), created=True)
        except IntegrityError:
            existing = self.find_conflict(
                title=fields["title"], tmdb_id=fields["tmdb_id"], imdb_id=fields.get("imdb_id")
            )
            if existing is None:
                raise
            logger.debug("Record %r was created concurrently, reusing id %s", fields["title"], existing.id)
            return PersistResult(existing, created=False)

    def _first(self, statement, session: Session | None) -> CatalogRecordModel | None:
        if session is not None:
            record = session.exec(statement).first()
            return _to_model(record) if record else None
        with Session(self._engine) as scoped:
            record = scoped.exec(statement).first()
            return _to_model(record) if record else None


def _to_model(record: CatalogRecord) -> CatalogRecordModel:
    """Convert a catalog record into the public response model."""

    return CatalogRecordModel(
        id=record.id,
        title=record.title,
        tmdb_id=record.tmdb_id,
        imdb_id=record.imdb_id,
        media_type=record.media_type,
        original_title=record.original_title,
        genre=record.genre,
        director=record.director,
        cast=list(record.cast or []),
        release_date=record.release_date,
        runtime=record.runtime,
        tmdb_rating=record.tmdb_rating,
        imdb_rating=record.imdb_rating,
        rotten_tomato_rating=record.rotten_tomato_rating,
        poster_path=record.poster_path,
        backdrop_path=record.backdrop_path,
        format=record.format,
        price=record.price,
        comments=record.comments,
        acquired_date=record.acquired_date,
        import_id=record.import_id,
        created_at=record.created_at,
    )
