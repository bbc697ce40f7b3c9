"""Persistence helpers for rows awaiting manual resolution."""
from __future__ import annotations

from typing import Any, Iterable
from uuid import uuid4

from sqlalchemy import delete, func
from sqlmodel import Session, select

from ..db import joined_scope
from ..models import UnmatchedItemRecord
from ..schemas import UnmatchedItemModel


class UnmatchedStore:
    """Durable holding area for unresolved rows, keyed by session and title."""

    def __init__(self, engine) -> None:
        self._engine = engine

    def create(
        self,
        session_id: str,
        title: str,
        original_title: str | None,
        row_data: dict[str, Any],
        error: str | None = None,
        *,
        session: Session | None = None,
    ) -> UnmatchedItemModel:
        """Persist a new unmatched item for the given session."""

        record = UnmatchedItemRecord(
            id=uuid4().hex,
            session_id=session_id,
            title=title,
            original_title=original_title,
            row_data=dict(row_data),
            error_message=error,
        )
        with joined_scope(self._engine, session) as scoped:
            scoped.add(record)
            scoped.flush()
            scoped.refresh(record)
            return _to_model(record)

    def list_by_session(self, session_id: str) -> list[UnmatchedItemModel]:
        """Return the session's outstanding items, oldest first."""

        statement = (
            select(UnmatchedItemRecord)
            .where(UnmatchedItemRecord.session_id == session_id)
            .order_by(UnmatchedItemRecord.created_at.asc(), UnmatchedItemRecord.id.asc())
        )
        with Session(self._engine) as session:
            records: Iterable[UnmatchedItemRecord] = session.exec(statement)
            return [_to_model(record) for record in records]

    def find_by_title(self, session_id: str, title: str) -> UnmatchedItemModel | None:
        """Return the oldest item in the session carrying ``title``."""

        statement = (
            select(UnmatchedItemRecord)
            .where(UnmatchedItemRecord.session_id == session_id)
            .where(UnmatchedItemRecord.title == title)
            .order_by(UnmatchedItemRecord.created_at.asc(), UnmatchedItemRecord.id.asc())
            .limit(1)
        )
        with Session(self._engine) as session:
            record = session.exec(statement).first()
            return _to_model(record) if record else None

    def count_by_session(self, session_id: str) -> int:
        with Session(self._engine) as session:
            return session.exec(
                select(func.count())
                .select_from(UnmatchedItemRecord)
                .where(UnmatchedItemRecord.session_id == session_id)
            ).one()

    def delete_by_id(self, item_id: str, *, session: Session | None = None) -> bool:
        """Delete an item; ``False`` means another caller already removed it."""

        statement = delete(UnmatchedItemRecord).where(UnmatchedItemRecord.id == item_id)
        with joined_scope(self._engine, session) as scoped:
            return scoped.exec(statement).rowcount > 0


def _to_model(record: UnmatchedItemRecord) -> UnmatchedItemModel:
    """Convert a database record into the API response model."""

    return UnmatchedItemModel(
        id=record.id,
        session_id=record.session_id,
        title=record.title,
        original_title=record.original_title,
        row_data=record.row_data or {},
        error_message=record.error_message,
        created_at=record.created_at,
    )
