"""Pydantic models exposed by the Cinevault API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


ImportStatus = Literal[
    "PENDING",
    "PROCESSING",
    "COMPLETED",
    "PENDING_RESOLUTION",
    "FAILED",
]

MediaType = Literal["movie", "tv"]


class ComponentHealth(BaseModel):
    """Connectivity status of one backing service."""

    status: Literal["ok", "error"] = Field(default="ok")
    detail: str | None = Field(
        default=None, description="Optional diagnostic message when the component is unavailable."
    )


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")
    database: ComponentHealth = Field(
        default_factory=ComponentHealth,
        description="Health information for the catalog database.",
    )
    queue: ComponentHealth = Field(
        default_factory=ComponentHealth,
        description="Health information for the import queue.",
    )


class ConfigModel(BaseModel):
    """Represents the persisted import configuration."""

    tmdb_api_key: str | None = Field(default=None, description="TMDB API key if configured.")
    omdb_api_key: str | None = Field(default=None, description="OMDb API key if configured.")
    import_batch_size: int = Field(
        default=10, ge=1, le=100, description="Rows processed concurrently per batch."
    )
    import_batch_delay_seconds: float = Field(
        default=1.0, ge=0, description="Pause between batches in seconds."
    )


class ConfigUpdate(BaseModel):
    """Subset of configuration fields allowed to be updated at runtime."""

    tmdb_api_key: str | None = Field(default=None)
    omdb_api_key: str | None = Field(default=None)
    import_batch_size: int | None = Field(default=None, ge=1, le=100)
    import_batch_delay_seconds: float | None = Field(default=None, ge=0)


class CandidateModel(BaseModel):
    """External search result before detail enrichment."""

    id: int
    title: str
    original_title: str | None = None
    release_date: str | None = None
    overview: str | None = None
    poster_path: str | None = None
    vote_average: float | None = Field(
        default=None, description="Average rating reported by the catalog provider."
    )
    vote_count: int | None = None
    popularity: float | None = None
    media_type: MediaType = "movie"


class UnmatchedItemModel(BaseModel):
    """Row awaiting manual resolution or dismissal."""

    id: str
    session_id: str
    title: str
    original_title: str | None = None
    row_data: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None
    created_at: datetime


class ImportSessionModel(BaseModel):
    """Represents one import session and its counters."""

    id: str
    status: ImportStatus
    total: int = Field(ge=0)
    processed: int = Field(ge=0)
    auto_resolved: int = Field(ge=0)
    manual_resolved: int = Field(ge=0)
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class ImportStatusModel(ImportSessionModel):
    """Session snapshot returned to pollers, including outstanding unmatched rows."""

    unmatched: list[UnmatchedItemModel] = Field(default_factory=list)


class CatalogRecordModel(BaseModel):
    """Persisted catalog entry returned after a successful resolution."""

    id: int
    title: str
    tmdb_id: int
    imdb_id: str | None = None
    media_type: MediaType
    original_title: str | None = None
    genre: str | None = None
    director: str | None = None
    cast: list[str] = Field(default_factory=list)
    release_date: str | None = None
    runtime: int | None = None
    tmdb_rating: float | None = None
    imdb_rating: float | None = None
    rotten_tomato_rating: int | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    format: str | None = None
    price: float | None = None
    comments: str | None = None
    acquired_date: str | None = None
    import_id: str | None = None
    created_at: datetime


class CsvUploadResponse(BaseModel):
    """Headers detected in an uploaded CSV, used to build the column mapping."""

    headers: list[str]
    file_path: str


class ImportRunRequest(BaseModel):
    """Rows (or a previously uploaded CSV) plus the column mapping to import."""

    column_mapping: dict[str, str] = Field(
        ..., description="Canonical field name to CSV column header."
    )
    file_path: str | None = Field(
        default=None, description="Path returned by the CSV upload endpoint."
    )
    rows: list[dict[str, str]] | None = Field(
        default=None, description="Raw rows keyed by CSV column header."
    )

    @model_validator(mode="after")
    def _require_source(self) -> "ImportRunRequest":
        if (self.file_path is None) == (self.rows is None):
            raise ValueError("Provide exactly one of file_path or rows")
        return self


class ImportAcceptedResponse(BaseModel):
    """Returned when an import job has been queued."""

    import_id: str
    status: ImportStatus


class SuggestionsResponse(BaseModel):
    suggestions: list[CandidateModel]


class ResolveRequest(BaseModel):
    """User choice for an unmatched row."""

    title: str = Field(..., description="Title of the unmatched row being resolved.")
    candidate: CandidateModel


class ResolveResponse(BaseModel):
    success: bool = True
    record: CatalogRecordModel


class IgnoreRequest(BaseModel):
    title: str = Field(..., description="Title of the unmatched row to dismiss.")


class IgnoreResponse(BaseModel):
    success: bool = True
    message: str = "Row ignored"
