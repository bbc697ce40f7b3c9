"""Wiring of providers, stores and services for one unit of import work."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from ...providers import ArtworkClient, OMDbClient, TMDBClient
from ..schemas import ConfigModel
from ..settings import CinevaultSettings
from ..stores.record_store import RecordStore
from ..stores.session_store import SessionStore
from ..stores.unmatched_store import UnmatchedStore
from ..utils.paths import ensure_artwork_directories
from .catalog_resolver import CatalogResolver
from .coordinator import SessionCoordinator
from .enricher import Enricher
from .resolution import ResolutionService


@dataclass(slots=True)
class Providers:
    tmdb: TMDBClient
    omdb: OMDbClient
    artwork: ArtworkClient

    def close(self) -> None:
        self.tmdb.close()
        self.omdb.close()
        self.artwork.close()


def create_providers(settings: CinevaultSettings, config: ConfigModel) -> Providers:
    """Build provider clients using the persisted API keys."""

    timeout = settings.provider_timeout_seconds
    return Providers(
        tmdb=TMDBClient(config.tmdb_api_key, base_url=settings.tmdb_base_url, timeout=timeout),
        omdb=OMDbClient(config.omdb_api_key, base_url=settings.omdb_base_url, timeout=timeout),
        artwork=ArtworkClient(
            ensure_artwork_directories(settings.images_path),
            base_url=settings.tmdb_image_base_url,
            timeout=timeout,
        ),
    )


def build_coordinator(engine: Engine, providers: Providers, config: ConfigModel) -> SessionCoordinator:
    records = RecordStore(engine)
    return SessionCoordinator(
        engine,
        SessionStore(engine),
        UnmatchedStore(engine),
        records,
        CatalogResolver(providers.tmdb, records),
        Enricher(providers.tmdb, providers.omdb, providers.artwork),
        batch_size=config.import_batch_size,
        batch_delay_seconds=config.import_batch_delay_seconds,
    )


def build_resolution_service(engine: Engine, providers: Providers) -> ResolutionService:
    records = RecordStore(engine)
    return ResolutionService(
        engine,
        SessionStore(engine),
        UnmatchedStore(engine),
        records,
        CatalogResolver(providers.tmdb, records),
        Enricher(providers.tmdb, providers.omdb, providers.artwork),
    )
