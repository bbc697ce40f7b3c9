"""Database models for the Cinevault API."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class ConfigRecord(SQLModel, table=True):
    """Persisted configuration row for runtime-editable import settings."""

    __tablename__ = "cinevault_config"

    id: int | None = Field(default=None, primary_key=True)
    tmdb_api_key: str | None = Field(default=None)
    omdb_api_key: str | None = Field(default=None)
    import_batch_size: int = Field(default=10)
    import_batch_delay_seconds: float = Field(default=1.0)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class ImportSessionRecord(SQLModel, table=True):
    """One run of the import pipeline over one uploaded file."""

    __tablename__ = "import_sessions"

    id: str = Field(primary_key=True, index=True)
    status: str = Field(default="PENDING", index=True)
    total: int = Field(default=0)
    processed: int = Field(default=0)
    auto_resolved: int = Field(default=0)
    manual_resolved: int = Field(default=0)
    error_message: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class UnmatchedItemRecord(SQLModel, table=True):
    """Row that could not be resolved automatically and awaits a user decision."""

    __tablename__ = "unmatched_items"

    id: str = Field(primary_key=True, index=True)
    session_id: str = Field(
        foreign_key="import_sessions.id", index=True, ondelete="CASCADE"
    )
    title: str = Field(index=True)
    original_title: str | None = Field(default=None)
    row_data: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    error_message: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)


class CatalogRecord(SQLModel, table=True):
    """Enriched catalog entry in the user's collection."""

    __tablename__ = "catalog_records"

    id: int | None = Field(default=None, primary_key=True)
    title: str
    title_key: str = Field(index=True, unique=True)
    tmdb_id: int = Field(index=True, unique=True)
    imdb_id: str | None = Field(default=None, index=True, unique=True)
    media_type: str = Field(default="movie", index=True)
    original_title: str | None = Field(default=None)
    original_language: str | None = Field(default=None)
    genre: str | None = Field(default=None)
    director: str | None = Field(default=None)
    cast: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    release_date: str | None = Field(default=None)
    runtime: int | None = Field(default=None)
    plot: str | None = Field(default=None)
    tmdb_rating: float | None = Field(default=None)
    imdb_rating: float | None = Field(default=None)
    rotten_tomato_rating: int | None = Field(default=None)
    rotten_tomatoes_link: str | None = Field(default=None)
    popularity: float | None = Field(default=None)
    vote_count: int | None = Field(default=None)
    budget: int | None = Field(default=None)
    revenue: int | None = Field(default=None)
    status: str | None = Field(default=None)
    trailer_key: str | None = Field(default=None)
    trailer_site: str | None = Field(default=None)
    poster_path: str | None = Field(default=None)
    backdrop_path: str | None = Field(default=None)
    format: str | None = Field(default=None)
    price: float | None = Field(default=None)
    comments: str | None = Field(default=None)
    acquired_date: str | None = Field(default=None)
    import_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class CastMemberRecord(SQLModel, table=True):
    """Top-billed cast member attached to a catalog record."""

    __tablename__ = "catalog_cast"

    id: int | None = Field(default=None, primary_key=True)
    record_id: int = Field(foreign_key="catalog_records.id", index=True, ondelete="CASCADE")
    tmdb_person_id: int | None = Field(default=None)
    name: str
    character: str | None = Field(default=None)
    profile_path: str | None = Field(default=None)
    local_profile_path: str | None = Field(default=None)
    order_index: int = Field(default=0)


class CrewMemberRecord(SQLModel, table=True):
    """Crew member (director) attached to a catalog record."""

    __tablename__ = "catalog_crew"

    id: int | None = Field(default=None, primary_key=True)
    record_id: int = Field(foreign_key="catalog_records.id", index=True, ondelete="CASCADE")
    tmdb_person_id: int | None = Field(default=None)
    name: str
    job: str
    department: str | None = Field(default=None)
    profile_path: str | None = Field(default=None)
    local_profile_path: str | None = Field(default=None)
