"""Database-backed store for import sessions and their lifecycle."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import uuid4

from sqlalchemy import func, update
from sqlmodel import Session, select

from ..db import joined_scope
from ..errors import InvalidTransitionError, SessionNotFoundError
from ..models import ImportSessionRecord, UnmatchedItemRecord
from ..schemas import ImportSessionModel

PENDING = "PENDING"
PROCESSING = "PROCESSING"
COMPLETED = "COMPLETED"
PENDING_RESOLUTION = "PENDING_RESOLUTION"
FAILED = "FAILED"

# Target status -> statuses it may be entered from.
_ALLOWED_SOURCES: dict[str, tuple[str, ...]] = {
    PROCESSING: (PENDING,),
    PENDING_RESOLUTION: (PROCESSING,),
    COMPLETED: (PROCESSING, PENDING_RESOLUTION),
    FAILED: (PENDING, PROCESSING),
}


class SessionStore:
    """CRUD and state-machine interface for import sessions.

    Counters only ever grow and every status change is a compare-and-set
    against the allowed source statuses, so pollers never observe a session
    moving backwards.
    """

    def __init__(self, engine) -> None:
        self._engine = engine

    def create(self) -> ImportSessionModel:
        """Create a PENDING session and return its model representation."""

        record = ImportSessionRecord(id=uuid4().hex, status=PENDING)
        with Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_model(record)

    def get(self, session_id: str) -> ImportSessionModel | None:
        """Fetch a single session by identifier."""

        with Session(self._engine) as session:
            record = session.get(ImportSessionRecord, session_id)
            return _to_model(record) if record else None

    def require(self, session_id: str) -> ImportSessionModel:
        """Fetch a session, raising when it does not exist."""

        model = self.get(session_id)
        if model is None:
            raise SessionNotFoundError(session_id)
        return model

    def list(self, *, limit: int = 50, statuses: list[str] | None = None) -> list[ImportSessionModel]:
        """Return the most recent sessions with an optional status filter."""

        statement = select(ImportSessionRecord)
        if statuses:
            normalized = sorted({status.upper() for status in statuses if status})
            if normalized:
                statement = statement.where(ImportSessionRecord.status.in_(normalized))
        statement = statement.order_by(ImportSessionRecord.created_at.desc()).limit(limit)
        with Session(self._engine) as session:
            records: Iterable[ImportSessionRecord] = session.exec(statement)
            return [_to_model(record) for record in records]

    def mark_processing(self, session_id: str, *, total: int) -> ImportSessionModel:
        """Enter PROCESSING and record the number of rows to import."""

        with joined_scope(self._engine) as session:
            self._transition(session, session_id, PROCESSING, total=total)
        return self.require(session_id)

    def mark_failed(self, session_id: str, *, error_message: str) -> ImportSessionModel:
        """Enter FAILED, keeping the reason for diagnostics."""

        with joined_scope(self._engine) as session:
            self._transition(session, session_id, FAILED, error_message=error_message)
        return self.require(session_id)

    def finish_processing(self, session_id: str) -> ImportSessionModel:
        """Leave PROCESSING for COMPLETED or PENDING_RESOLUTION."""

        with joined_scope(self._engine) as session:
            if self._remaining(session, session_id) == 0:
                self._transition(session, session_id, COMPLETED)
            else:
                self._transition(session, session_id, PENDING_RESOLUTION)
        with joined_scope(self._engine) as session:
            # Items may have been settled while the last batch was committing.
            self.complete_if_drained(session_id, session=session)
        return self.require(session_id)

    def advance(
        self,
        session_id: str,
        *,
        processed: int = 0,
        auto_resolved: int = 0,
        manual_resolved: int = 0,
        session: Session | None = None,
    ) -> None:
        """Atomically add non-negative deltas to the session counters."""

        if min(processed, auto_resolved, manual_resolved) < 0:
            raise ValueError("Session counters cannot decrease")
        statement = (
            update(ImportSessionRecord)
            .where(ImportSessionRecord.id == session_id)
            .values(
                processed=ImportSessionRecord.processed + processed,
                auto_resolved=ImportSessionRecord.auto_resolved + auto_resolved,
                manual_resolved=ImportSessionRecord.manual_resolved + manual_resolved,
                updated_at=datetime.utcnow(),
            )
        )
        with joined_scope(self._engine, session) as scoped:
            result = scoped.exec(statement)
            if result.rowcount == 0:
                raise SessionNotFoundError(session_id)

    def complete_if_drained(self, session_id: str, *, session: Session | None = None) -> bool:
        """Move a PENDING_RESOLUTION session to COMPLETED once no items remain."""

        with joined_scope(self._engine, session) as scoped:
            if self._remaining(scoped, session_id) > 0:
                return False
            statement = (
                update(ImportSessionRecord)
                .where(ImportSessionRecord.id == session_id)
                .where(ImportSessionRecord.status == PENDING_RESOLUTION)
                .values(status=COMPLETED, updated_at=datetime.utcnow())
            )
            return scoped.exec(statement).rowcount > 0

    def _remaining(self, session: Session, session_id: str) -> int:
        return session.exec(
            select(func.count())
            .select_from(UnmatchedItemRecord)
            .where(UnmatchedItemRecord.session_id == session_id)
        ).one()

    def _transition(self, session: Session, session_id: str, target: str, **values) -> None:
        statement = (
            update(ImportSessionRecord)
            .where(ImportSessionRecord.id == session_id)
            .where(ImportSessionRecord.status.in_(_ALLOWED_SOURCES[target]))
            .values(status=target, updated_at=datetime.utcnow(), **values)
        )
        if session.exec(statement).rowcount:
            return
        record = session.get(ImportSessionRecord, session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        raise InvalidTransitionError(session_id, record.status, target)


def _to_model(record: ImportSessionRecord) -> ImportSessionModel:
    """Convert an ImportSessionRecord into the public response model."""

    return ImportSessionModel(
        id=record.id,
        status=record.status,
        total=record.total,
        processed=record.processed,
        auto_resolved=record.auto_resolved,
        manual_resolved=record.manual_resolved,
        error_message=record.error_message,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
