"""Runtime configuration for the Cinevault API."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.paths import default_images_path, default_upload_path


class CinevaultSettings(BaseSettings):
    """Environment-aware settings for the Cinevault API service and worker."""

    database_url: str = Field(
        default="sqlite:///./data/cinevault.db",
        description="Connection URL for the catalog database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis-backed import queue.",
    )
    redis_queue_name: str = Field(
        default="cinevault-imports",
        description="RQ queue name used for import jobs.",
    )
    queue_worker_name: str = Field(
        default="cinevault-worker",
        description="Identifier used when reporting import worker executions.",
    )
    default_tmdb_api_key: str | None = Field(
        default=None, description="TMDB API key seeded into the persisted configuration."
    )
    default_omdb_api_key: str | None = Field(
        default=None, description="OMDb API key seeded into the persisted configuration."
    )
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3", description="Base URL of the TMDB v3 API."
    )
    tmdb_image_base_url: str = Field(
        default="https://image.tmdb.org/t/p/original",
        description="Base URL used when downloading TMDB artwork.",
    )
    omdb_base_url: str = Field(
        default="https://www.omdbapi.com/", description="Base URL of the OMDb API."
    )
    images_path: str = Field(
        default_factory=default_images_path,
        description="Directory where downloaded posters, backdrops and profiles are stored.",
    )
    upload_path: str = Field(
        default_factory=default_upload_path,
        description="Directory where uploaded CSV files wait for processing.",
    )
    import_batch_size: int = Field(
        default=10, ge=1, le=100, description="Rows processed concurrently per import batch."
    )
    import_batch_delay_seconds: float = Field(
        default=1.0, ge=0, description="Pause between import batches to respect provider rate limits."
    )
    provider_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout applied to every external provider call."
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024, description="Maximum accepted CSV upload size in bytes."
    )
    log_level: str = Field(default="INFO", description="Root log level for API and worker.")

    model_config = SettingsConfigDict(
        env_prefix="CINEVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
