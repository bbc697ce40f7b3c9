"""Shared fixtures and provider stubs for the Cinevault test-suite."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cinevault.api.db import create_engine_from_settings, init_database  # noqa: E402
from cinevault.api.errors import ProviderError  # noqa: E402
from cinevault.api.services.catalog_resolver import CatalogResolver  # noqa: E402
from cinevault.api.services.coordinator import SessionCoordinator  # noqa: E402
from cinevault.api.services.enricher import Enricher  # noqa: E402
from cinevault.api.services.pipeline import Providers  # noqa: E402
from cinevault.api.services.resolution import ResolutionService  # noqa: E402
from cinevault.api.settings import CinevaultSettings  # noqa: E402
from cinevault.api.stores.record_store import RecordStore  # noqa: E402
from cinevault.api.stores.session_store import SessionStore  # noqa: E402
from cinevault.api.stores.unmatched_store import UnmatchedStore  # noqa: E402


def candidate(
    tmdb_id: int,
    title: str,
    *,
    vote_average: float | None = 7.5,
    popularity: float = 10.0,
    media_type: str = "movie",
    release_date: str | None = "2001-04-25",
) -> dict[str, Any]:
    """Build a search result shaped like ``TMDBClient.search_all`` output."""

    return {
        "id": tmdb_id,
        "title": title,
        "original_title": title,
        "release_date": release_date,
        "overview": f"Overview of {title}",
        "poster_path": f"/poster-{tmdb_id}.jpg",
        "vote_average": vote_average,
        "vote_count": 100,
        "popularity": popularity,
        "media_type": media_type,
    }


def detail(
    tmdb_id: int,
    title: str,
    *,
    imdb_id: str | None = None,
    media_type: str = "movie",
    cast_size: int = 3,
) -> dict[str, Any]:
    """Build a detail payload shaped like ``TMDBClient.fetch_detail`` output."""

    return {
        "id": tmdb_id,
        "media_type": media_type,
        "title": title,
        "original_title": title,
        "original_language": "fr",
        "overview": f"Plot of {title}",
        "release_date": "2001-04-25",
        "genres": ["Comedy", "Romance"],
        "runtime": 122,
        "budget": 10_000_000,
        "revenue": 170_000_000,
        "status": "Released",
        "popularity": 42.0,
        "vote_average": 7.9,
        "vote_count": 11000,
        "imdb_id": imdb_id,
        "poster_path": f"/poster-{tmdb_id}.jpg",
        "backdrop_path": f"/backdrop-{tmdb_id}.jpg",
        "cast": [
            {
                "id": 1000 + index,
                "name": f"Actor {index}",
                "character": f"Role {index}",
                "profile_path": f"/actor-{index}.jpg",
            }
            for index in range(cast_size)
        ],
        "crew": [
            {"id": 1, "name": "Someone Else", "job": "Producer", "department": "Production", "profile_path": None},
            {"id": 2, "name": "Jean-Pierre Jeunet", "job": "Director", "department": "Directing", "profile_path": "/jpj.jpg"},
            {"id": 3, "name": "Second Director", "job": "Director", "department": "Directing", "profile_path": None},
        ],
        "videos": [
            {"key": "teaser", "site": "YouTube", "type": "Teaser"},
            {"key": "vimeo-trailer", "site": "Vimeo", "type": "Trailer"},
            {"key": "yt-trailer", "site": "YouTube", "type": "Trailer"},
        ],
    }


class StubTMDB:
    """In-memory stand-in for ``TMDBClient``."""

    def __init__(self) -> None:
        self.results: dict[str, list[dict[str, Any]]] = {}
        self.details: dict[int, dict[str, Any]] = {}
        self.failing_searches: set[str] = set()
        self.failing_details: set[int] = set()
        self.search_calls: list[tuple[str, Any]] = []
        self.detail_calls: list[int] = []

    def add(self, query: str, *candidates: dict[str, Any]) -> None:
        self.results[query] = list(candidates)
        for item in candidates:
            self.details.setdefault(item["id"], detail(item["id"], item["title"]))

    def search_all(self, query: str, year: Any = None) -> list[dict[str, Any]]:
        self.search_calls.append((query, year))
        if query in self.failing_searches:
            raise ProviderError(f"TMDB search timed out for {query}")
        return [dict(item) for item in self.results.get(query, [])]

    def fetch_detail(self, tmdb_id: int, media_type: str) -> dict[str, Any]:
        self.detail_calls.append(tmdb_id)
        if tmdb_id in self.failing_details or tmdb_id not in self.details:
            raise ProviderError(f"TMDB detail request failed for {tmdb_id}")
        return dict(self.details[tmdb_id])

    def close(self) -> None:
        pass


class StubOMDb:
    def __init__(self, ratings: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.ratings = ratings or {}
        self.error = error
        self.calls: list[Any] = []

    def fetch_ratings(self, *, imdb_id: str | None = None, title: str | None = None, year: Any = None) -> dict[str, Any]:
        self.calls.append(imdb_id or (title, year))
        if self.error:
            raise self.error
        return dict(self.ratings)

    def close(self) -> None:
        pass


class StubArtwork:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.downloads: list[tuple[str, str]] = []

    def _download(self, kind: str, image_path: str | None) -> str | None:
        if not image_path or self.fail:
            return None
        self.downloads.append((kind, image_path))
        return f"/images/{kind}{image_path}"

    def download_poster(self, image_path: str | None, tmdb_id: int) -> str | None:
        return self._download("posters", image_path)

    def download_backdrop(self, image_path: str | None, tmdb_id: int) -> str | None:
        return self._download("backdrops", image_path)

    def download_profile(self, image_path: str | None, tmdb_id: int) -> str | None:
        return self._download("profiles", image_path)

    def close(self) -> None:
        pass


@pytest.fixture()
def settings(tmp_path: Path) -> CinevaultSettings:
    return CinevaultSettings(
        database_url=f"sqlite:///{tmp_path / 'cinevault.db'}",
        redis_url="fakeredis://",
        images_path=str(tmp_path / "images"),
        upload_path=str(tmp_path / "uploads"),
        import_batch_delay_seconds=0,
    )


@pytest.fixture()
def engine(settings: CinevaultSettings):
    engine = create_engine_from_settings(settings)
    init_database(engine, settings)
    yield engine
    engine.dispose()


@pytest.fixture()
def providers() -> Providers:
    return Providers(tmdb=StubTMDB(), omdb=StubOMDb(), artwork=StubArtwork())  # type: ignore[arg-type]


@pytest.fixture()
def session_store(engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture()
def unmatched_store(engine) -> UnmatchedStore:
    return UnmatchedStore(engine)


@pytest.fixture()
def record_store(engine) -> RecordStore:
    return RecordStore(engine)


@pytest.fixture()
def enricher(providers: Providers) -> Enricher:
    return Enricher(providers.tmdb, providers.omdb, providers.artwork)  # type: ignore[arg-type]


@pytest.fixture()
def resolver(providers: Providers, record_store: RecordStore) -> CatalogResolver:
    return CatalogResolver(providers.tmdb, record_store)  # type: ignore[arg-type]


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def coordinator(
    engine,
    session_store: SessionStore,
    unmatched_store: UnmatchedStore,
    record_store: RecordStore,
    resolver: CatalogResolver,
    enricher: Enricher,
    sleeps: list[float],
) -> SessionCoordinator:
    return SessionCoordinator(
        engine,
        session_store,
        unmatched_store,
        record_store,
        resolver,
        enricher,
        batch_size=2,
        batch_delay_seconds=0.5,
        sleep=sleeps.append,
    )


@pytest.fixture()
def resolution(
    engine,
    session_store: SessionStore,
    unmatched_store: UnmatchedStore,
    record_store: RecordStore,
    resolver: CatalogResolver,
    enricher: Enricher,
) -> ResolutionService:
    return ResolutionService(engine, session_store, unmatched_store, record_store, resolver, enricher)
