"""Drive an import session over its rows in bounded concurrent batches."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..db import session_scope
from ..errors import CsvReadError, MissingTitleError
from ..schemas import ImportSessionModel
from ..stores.record_store import RecordStore
from ..stores.session_store import SessionStore
from ..stores.unmatched_store import UnmatchedStore
from .catalog_resolver import CatalogResolver, Confident, ExistingRecord
from .enricher import Enricher, build_record_payload
from .normalizer import display_title, map_fields, normalize, read_csv_rows

logger = logging.getLogger(__name__)

# Storage failures abort the session; any other row failure parks the row.
SESSION_ERRORS = (SQLAlchemyError,)


@dataclass(slots=True)
class RowOutcome:
    position: int
    auto_resolved: bool = False
    title: Optional[str] = None
    original_title: Optional[str] = None
    row_data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class SessionCoordinator:
    """Run one import session end to end.

    Rows inside a batch run on a thread pool bounded by the batch size;
    batches run strictly one after another. Each batch's unmatched items and
    counter deltas are committed together once the batch's records are
    persisted.
    """

    def __init__(
        self,
        engine: Engine,
        sessions: SessionStore,
        unmatched: UnmatchedStore,
        records: RecordStore,
        resolver: CatalogResolver,
        enricher: Enricher,
        *,
        batch_size: int = 10,
        batch_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._engine = engine
        self._sessions = sessions
        self._unmatched = unmatched
        self._records = records
        self._resolver = resolver
        self._enricher = enricher
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    def run_import_file(
        self, session_id: str, path: str | Path, column_mapping: Mapping[str, str]
    ) -> ImportSessionModel:
        """Import an uploaded CSV file and remove it afterwards."""

        try:
            try:
                rows = read_csv_rows(path)
            except CsvReadError as exc:
                logger.error("Import %s could not read its CSV file: %s", session_id, exc)
                return self._sessions.mark_failed(session_id, error_message=str(exc))
            return self.run_import(session_id, rows, column_mapping)
        finally:
            Path(path).unlink(missing_ok=True)

    def run_import(
        self,
        session_id: str,
        rows: List[Mapping[str, Any]],
        column_mapping: Mapping[str, str],
    ) -> ImportSessionModel:
        """Process ``rows`` for a PENDING session and return its final snapshot.

        A session that fails ends in FAILED with ``error_message`` set; the
        failure is reported through the returned snapshot, not raised.
        """

        if not rows:
            logger.error("Import %s has no rows to import", session_id)
            return self._sessions.mark_failed(session_id, error_message="No rows to import")

        self._sessions.mark_processing(session_id, total=len(rows))
        logger.info(
            "Import %s started: %d rows in batches of %d", session_id, len(rows), self.batch_size
        )
        try:
            batches = [
                (start, rows[start:start + self.batch_size])
                for start in range(0, len(rows), self.batch_size)
            ]
            for index, (start, batch) in enumerate(batches, start=1):
                if index > 1 and self.batch_delay_seconds > 0:
                    self._sleep(self.batch_delay_seconds)
                outcomes = self._run_batch(session_id, start, batch, column_mapping)
                self._commit_batch(session_id, outcomes)
                logger.info(
                    "Import %s batch %d/%d done: %d auto-resolved, %d unmatched",
                    session_id,
                    index,
                    len(batches),
                    sum(1 for outcome in outcomes if outcome.auto_resolved),
                    sum(1 for outcome in outcomes if not outcome.auto_resolved),
                )
            final = self._sessions.finish_processing(session_id)
        except Exception as exc:
            logger.exception("Import %s failed (%d rows)", session_id, len(rows))
            return self._sessions.mark_failed(session_id, error_message=str(exc) or type(exc).__name__)

        logger.info(
            "Import %s finished as %s: %d/%d processed, %d auto-resolved",
            session_id,
            final.status,
            final.processed,
            final.total,
            final.auto_resolved,
        )
        return final

    def _run_batch(
        self,
        session_id: str,
        start: int,
        batch: List[Mapping[str, Any]],
        column_mapping: Mapping[str, str],
    ) -> List[RowOutcome]:
        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="cinevault-row") as pool:
            futures = [
                pool.submit(self._process_row, session_id, start + offset + 1, raw_row, column_mapping)
                for offset, raw_row in enumerate(batch)
            ]
            return [future.result() for future in futures]

    def _process_row(
        self,
        session_id: str,
        position: int,
        raw_row: Mapping[str, Any],
        column_mapping: Mapping[str, str],
    ) -> RowOutcome:
        try:
            row = normalize(raw_row, column_mapping)
        except MissingTitleError as exc:
            partial = map_fields(raw_row, column_mapping)
            logger.debug("Import %s row %d has no title", session_id, position)
            return RowOutcome(
                position=position,
                title=display_title(partial, position),
                original_title=partial.get("original_title"),
                row_data=partial,
                error=str(exc),
            )

        outcome = RowOutcome(
            position=position,
            title=row["title"],
            original_title=row.get("original_title"),
            row_data=row,
        )
        try:
            resolution = self._resolver.resolve(row["title"], row.get("original_title"))
            if isinstance(resolution, ExistingRecord):
                outcome.auto_resolved = True
            elif isinstance(resolution, Confident):
                enriched = self._enricher.enrich(resolution.candidate)
                payload = build_record_payload(enriched, row, session_id)
                result = self._records.persist(payload, cast=enriched.cast, crew=enriched.crew)
                if not result.created:
                    logger.debug("Import %s row %d already in catalog", session_id, position)
                outcome.auto_resolved = True
        except SESSION_ERRORS:
            raise
        except Exception as exc:
            logger.warning("Import %s row %d could not be resolved: %s", session_id, position, exc)
            outcome.error = str(exc) or type(exc).__name__
        logger.debug(
            "Import %s row %d %s",
            session_id,
            position,
            "resolved" if outcome.auto_resolved else "unmatched",
        )
        return outcome

    def _commit_batch(self, session_id: str, outcomes: List[RowOutcome]) -> None:
        resolved = sum(1 for outcome in outcomes if outcome.auto_resolved)
        with session_scope(self._engine) as session:
            for outcome in outcomes:
                if outcome.auto_resolved:
                    continue
                self._unmatched.create(
                    session_id,
                    outcome.title or f"Row {outcome.position}",
                    outcome.original_title,
                    outcome.row_data,
                    outcome.error,
                    session=session,
                )
            if resolved:
                self._sessions.advance(
                    session_id, processed=resolved, auto_resolved=resolved, session=session
                )
