"""Turn a chosen search candidate into a fully populated catalog record payload."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from ...providers.artwork import ArtworkClient
from ...providers.base import ProviderError
from ...providers.omdb import OMDbClient
from ...providers.tmdb import TMDBClient
from ..errors import ProviderUnavailableError
from .normalizer import parse_price

logger = logging.getLogger(__name__)

CAST_LIMIT = 10
DIRECTOR_JOB = "Director"
ROTTEN_TOMATOES_SEARCH_URL = "https://www.rottentomatoes.com/search?search={query}"


@dataclass(slots=True)
class EnrichedRecord:
    """Provider data gathered for one candidate, ready to be merged with CSV fields."""

    detail: Dict[str, Any]
    media_type: str
    ratings: Dict[str, Any] = field(default_factory=dict)
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    cast: List[Dict[str, Any]] = field(default_factory=list)
    crew: List[Dict[str, Any]] = field(default_factory=list)
    trailer: Optional[Dict[str, Any]] = None

    @property
    def tmdb_id(self) -> int:
        return self.detail["id"]

    @property
    def imdb_id(self) -> Optional[str]:
        return self.ratings.get("imdb_id") or self.detail.get("imdb_id")

    @property
    def director(self) -> Optional[str]:
        return self.crew[0]["name"] if self.crew else None


class Enricher:
    def __init__(self, tmdb: TMDBClient, omdb: OMDbClient, artwork: ArtworkClient) -> None:
        self._tmdb = tmdb
        self._omdb = omdb
        self._artwork = artwork

    def enrich(self, candidate: Mapping[str, Any]) -> EnrichedRecord:
        """Fetch details, ratings and artwork for ``candidate``.

        Only the TMDB detail fetch is mandatory; it raises
        :class:`ProviderUnavailableError` on failure. Ratings and artwork
        degrade to empty values.
        """

        tmdb_id = candidate["id"]
        media_type = candidate.get("media_type") or "movie"
        try:
            detail = self._tmdb.fetch_detail(tmdb_id, media_type)
        except (ProviderError, httpx.HTTPError) as exc:
            raise ProviderUnavailableError(
                f"TMDB details unavailable for {media_type} {tmdb_id}: {exc}"
            ) from exc
        if not detail.get("id"):
            raise ProviderUnavailableError(f"TMDB returned no details for {media_type} {tmdb_id}")

        enriched = EnrichedRecord(detail=detail, media_type=media_type)
        enriched.ratings = self._ratings(detail)
        enriched.poster_path = self._artwork.download_poster(detail.get("poster_path"), tmdb_id)
        enriched.backdrop_path = self._artwork.download_backdrop(detail.get("backdrop_path"), tmdb_id)
        enriched.cast = self._cast(detail, tmdb_id)
        enriched.crew = self._director(detail, tmdb_id)
        enriched.trailer = _trailer(detail.get("videos") or [])
        logger.debug(
            "Enriched %s %s (%d cast, director=%s)",
            media_type,
            tmdb_id,
            len(enriched.cast),
            enriched.director,
        )
        return enriched

    def _ratings(self, detail: Mapping[str, Any]) -> Dict[str, Any]:
        """Look ratings up by IMDb id, or by title and release year when TMDB has none."""

        imdb_id = detail.get("imdb_id")
        title = detail.get("title")
        if not imdb_id and not title:
            return {}
        try:
            if imdb_id:
                return self._omdb.fetch_ratings(imdb_id=imdb_id)
            return self._omdb.fetch_ratings(title=title, year=_release_year(detail.get("release_date")))
        except (ProviderError, httpx.HTTPError) as exc:
            logger.warning("OMDb ratings unavailable for %s: %s", imdb_id or title, exc)
            return {}

    def _cast(self, detail: Mapping[str, Any], tmdb_id: int) -> List[Dict[str, Any]]:
        members = []
        for index, member in enumerate((detail.get("cast") or [])[:CAST_LIMIT]):
            if not member.get("name"):
                continue
            members.append(
                {
                    "tmdb_person_id": member.get("id"),
                    "name": member["name"],
                    "character": member.get("character"),
                    "profile_path": member.get("profile_path"),
                    "local_profile_path": self._artwork.download_profile(member.get("profile_path"), tmdb_id),
                    "order_index": index,
                }
            )
        return members

    def _director(self, detail: Mapping[str, Any], tmdb_id: int) -> List[Dict[str, Any]]:
        for member in detail.get("crew") or []:
            if member.get("job") == DIRECTOR_JOB and member.get("name"):
                return [
                    {
                        "tmdb_person_id": member.get("id"),
                        "name": member["name"],
                        "job": DIRECTOR_JOB,
                        "department": member.get("department"),
                        "profile_path": member.get("profile_path"),
                        "local_profile_path": self._artwork.download_profile(member.get("profile_path"), tmdb_id),
                    }
                ]
        return []


def _release_year(release_date: Optional[str]) -> Optional[int]:
    if release_date and release_date[:4].isdigit():
        return int(release_date[:4])
    return None


def _trailer(videos: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for video in videos:
        if video.get("type") == "Trailer" and video.get("site") == "YouTube":
            return video
    return None


def build_record_payload(
    enriched: EnrichedRecord,
    row: Mapping[str, Any],
    session_id: Optional[str],
) -> Dict[str, Any]:
    """Merge the user's CSV fields with provider data into ``CatalogRecord`` columns."""

    detail = enriched.detail
    title = (row.get("title") or detail.get("title") or "").strip()
    trailer = enriched.trailer or {}
    genres = detail.get("genres") or []
    return {
        "title": title,
        "tmdb_id": enriched.tmdb_id,
        "imdb_id": enriched.imdb_id,
        "media_type": enriched.media_type,
        "original_title": detail.get("original_title"),
        "original_language": detail.get("original_language"),
        "genre": ", ".join(genres) if genres else None,
        "director": enriched.director,
        "cast": [member["name"] for member in enriched.cast],
        "release_date": detail.get("release_date"),
        "runtime": detail.get("runtime"),
        "plot": detail.get("overview"),
        "tmdb_rating": detail.get("vote_average"),
        "imdb_rating": enriched.ratings.get("imdb_rating"),
        "rotten_tomato_rating": enriched.ratings.get("rotten_tomato_rating"),
        "rotten_tomatoes_link": ROTTEN_TOMATOES_SEARCH_URL.format(query=quote(title, safe="")),
        "popularity": detail.get("popularity"),
        "vote_count": detail.get("vote_count"),
        "budget": detail.get("budget"),
        "revenue": detail.get("revenue"),
        "status": detail.get("status"),
        "trailer_key": trailer.get("key"),
        "trailer_site": trailer.get("site"),
        "poster_path": enriched.poster_path,
        "backdrop_path": enriched.backdrop_path,
        "format": row.get("format") or None,
        "price": parse_price(row.get("price")),
        "comments": row.get("comments") or None,
        "acquired_date": row.get("acquired_date") or date.today().isoformat(),
        "import_id": session_id,
    }
