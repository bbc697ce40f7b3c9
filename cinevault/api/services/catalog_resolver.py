"""Resolve a row title to an existing record or a TMDB candidate."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ...providers.tmdb import TMDBClient
from ..schemas import CatalogRecordModel
from ..stores.record_store import RecordStore
from .matching import select_candidate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExistingRecord:
    record: CatalogRecordModel


@dataclass(slots=True)
class Confident:
    candidate: Dict[str, Any]


@dataclass(slots=True)
class Ambiguous:
    candidates: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class NotFound:
    pass


Resolution = Union[ExistingRecord, Confident, Ambiguous, NotFound]


class CatalogResolver:
    """Read-only lookup combining the local catalog with TMDB search."""

    def __init__(self, tmdb: TMDBClient, records: RecordStore) -> None:
        self._tmdb = tmdb
        self._records = records

    def search(self, query: str, year: Optional[int | str] = None) -> List[Dict[str, Any]]:
        return self._tmdb.search_all(query, year)

    def resolve(self, title: str, original_title: Optional[str] = None) -> Resolution:
        existing = self._records.find_by_title(title)
        if existing is not None:
            logger.debug("Title %r already in catalog as record %s", title, existing.id)
            return ExistingRecord(existing)

        search_title = original_title or title
        outcome = select_candidate(search_title, self.search(search_title))
        if outcome.not_found:
            return NotFound()
        if outcome.ambiguous:
            logger.debug("Title %r matched %d candidates", search_title, len(outcome.candidates))
            return Ambiguous(outcome.candidates)

        candidate = outcome.candidate
        existing = self._records.find_by_tmdb_id(candidate["id"])
        if existing is not None:
            logger.debug("TMDB id %s already in catalog as record %s", candidate["id"], existing.id)
            return ExistingRecord(existing)
        return Confident(candidate)
