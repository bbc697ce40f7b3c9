"""Manual resolution of rows the import pipeline could not match."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from ..db import session_scope
from ..errors import UnmatchedItemNotFoundError
from ..schemas import CatalogRecordModel
from ..stores.record_store import RecordStore
from ..stores.session_store import SessionStore
from ..stores.unmatched_store import UnmatchedStore
from .catalog_resolver import CatalogResolver
from .enricher import EnrichedRecord, Enricher, build_record_payload

logger = logging.getLogger(__name__)


class ResolutionService:
    """Search again, resolve or ignore unmatched items of a session."""

    def __init__(
        self,
        engine: Engine,
        sessions: SessionStore,
        unmatched: UnmatchedStore,
        records: RecordStore,
        resolver: CatalogResolver,
        enricher: Enricher,
    ) -> None:
        self._engine = engine
        self._sessions = sessions
        self._unmatched = unmatched
        self._records = records
        self._resolver = resolver
        self._enricher = enricher

    def search_again(self, title: str, year: Optional[int | str] = None) -> List[Dict[str, Any]]:
        """Raw provider search, returned unfiltered so the user can choose."""

        return self._resolver.search(title, year)

    def resolve(self, session_id: str, title: str, candidate: Mapping[str, Any]) -> CatalogRecordModel:
        """Create (or reuse) the record for ``candidate`` and drop the unmatched item.

        The provider calls happen before the database transaction; the record
        insert, item delete and counter update then commit together.
        """

        self._sessions.require(session_id)
        item = self._unmatched.find_by_title(session_id, title)
        if item is None:
            raise UnmatchedItemNotFoundError(session_id, title)

        enriched = self._enricher.enrich(candidate)
        payload = build_record_payload(enriched, item.row_data or {"title": item.title}, session_id)
        try:
            record = self._settle(session_id, item.id, title, payload, enriched)
        except IntegrityError:
            # A concurrent writer inserted the same record between our lookup and insert.
            logger.debug("Retrying resolution of %r after a concurrent insert", title)
            record = self._settle(session_id, item.id, title, payload, enriched)

        logger.info("Import %s: %r resolved to record %s", session_id, title, record.id)
        return record

    def ignore(self, session_id: str, title: str) -> None:
        """Discard an unmatched item; the row counts as processed."""

        self._sessions.require(session_id)
        item = self._unmatched.find_by_title(session_id, title)
        if item is None:
            raise UnmatchedItemNotFoundError(session_id, title)

        with session_scope(self._engine) as session:
            if not self._unmatched.delete_by_id(item.id, session=session):
                raise UnmatchedItemNotFoundError(session_id, title)
            self._sessions.advance(session_id, processed=1, session=session)
            self._sessions.complete_if_drained(session_id, session=session)
        logger.info("Import %s: %r ignored", session_id, title)

    def _settle(
        self,
        session_id: str,
        item_id: str,
        title: str,
        payload: Dict[str, Any],
        enriched: EnrichedRecord,
    ) -> CatalogRecordModel:
        with session_scope(self._engine) as session:
            record = self._records.find_conflict(
                title=payload["title"],
                tmdb_id=payload["tmdb_id"],
                imdb_id=payload.get("imdb_id"),
                session=session,
            )
            if record is None:
                record = self._records.insert(
                    payload, cast=enriched.cast, crew=enriched.crew, session=session
                )
            if not self._unmatched.delete_by_id(item_id, session=session):
                raise UnmatchedItemNotFoundError(session_id, title)
            self._sessions.advance(session_id, processed=1, manual_resolved=1, session=session)
            self._sessions.complete_if_drained(session_id, session=session)
            return record
