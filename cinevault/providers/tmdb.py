"""
TMDB search and detail client.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import ProviderClient, ProviderError

logger = logging.getLogger(__name__)

DETAIL_APPENDS = "credits,videos,external_ids"


class TMDBClient(ProviderClient):
    DEFAULT_BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.api_key = api_key
        self.enabled = bool(api_key)

    def search_all(self, query: str, year: Optional[int | str] = None) -> List[Dict[str, Any]]:
        """Search movies and TV shows, most popular first."""

        if not self.enabled:
            logger.warning("TMDB API key not configured, returning no search results")
            return []
        results = self.search_movies(query, year) + self.search_tv(query, year)
        return sorted(results, key=lambda item: item.get("popularity") or 0, reverse=True)

    def search_movies(self, query: str, year: Optional[int | str] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"query": query, "include_adult": "false"}
        if year:
            params["year"] = year
        payload = self._get("/search/movie", params)
        return [_candidate(item, "movie") for item in payload.get("results") or []]

    def search_tv(self, query: str, year: Optional[int | str] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"query": query, "include_adult": "false"}
        if year:
            params["first_air_date_year"] = year
        payload = self._get("/search/tv", params)
        return [_candidate(item, "tv") for item in payload.get("results") or []]

    def fetch_detail(self, tmdb_id: int, media_type: str) -> Dict[str, Any]:
        """Fetch details, credits, videos and external ids in one request."""

        if not self.enabled:
            raise ProviderError("TMDB API key not configured")
        path = f"/tv/{tmdb_id}" if media_type == "tv" else f"/movie/{tmdb_id}"
        data = self._get(path, {"append_to_response": DETAIL_APPENDS})
        return _detail(data, media_type)

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._get_json(path, {"api_key": self.api_key, **params})


def _candidate(item: Dict[str, Any], media_type: str) -> Dict[str, Any]:
    if media_type == "tv":
        title = item.get("name") or item.get("original_name") or ""
        original_title = item.get("original_name")
        release_date = item.get("first_air_date")
    else:
        title = item.get("title") or item.get("original_title") or ""
        original_title = item.get("original_title")
        release_date = item.get("release_date")
    return {
        "id": item.get("id"),
        "title": title,
        "original_title": original_title,
        "release_date": release_date or None,
        "overview": item.get("overview"),
        "poster_path": item.get("poster_path"),
        "vote_average": item.get("vote_average"),
        "vote_count": item.get("vote_count"),
        "popularity": item.get("popularity"),
        "media_type": media_type,
    }


def _detail(data: Dict[str, Any], media_type: str) -> Dict[str, Any]:
    credits = data.get("credits") or {}
    external_ids = data.get("external_ids") or {}
    if media_type == "tv":
        run_times = data.get("episode_run_time") or []
        title = data.get("name")
        original_title = data.get("original_name")
        release_date = data.get("first_air_date")
        runtime = run_times[0] if run_times else None
    else:
        title = data.get("title")
        original_title = data.get("original_title")
        release_date = data.get("release_date")
        runtime = data.get("runtime")

    return {
        "id": data.get("id"),
        "media_type": media_type,
        "title": title,
        "original_title": original_title,
        "original_language": data.get("original_language"),
        "overview": data.get("overview"),
        "release_date": release_date or None,
        "genres": [genre.get("name") for genre in data.get("genres") or [] if genre.get("name")],
        "runtime": runtime,
        "budget": data.get("budget"),
        "revenue": data.get("revenue"),
        "status": data.get("status"),
        "popularity": data.get("popularity"),
        "vote_average": data.get("vote_average"),
        "vote_count": data.get("vote_count"),
        "imdb_id": external_ids.get("imdb_id") or data.get("imdb_id"),
        "poster_path": data.get("poster_path"),
        "backdrop_path": data.get("backdrop_path"),
        "cast": [
            {
                "id": member.get("id"),
                "name": member.get("name"),
                "character": member.get("character"),
                "profile_path": member.get("profile_path"),
            }
            for member in credits.get("cast") or []
        ],
        "crew": [
            {
                "id": member.get("id"),
                "name": member.get("name"),
                "job": member.get("job"),
                "department": member.get("department"),
                "profile_path": member.get("profile_path"),
            }
            for member in credits.get("crew") or []
        ],
        "videos": (data.get("videos") or {}).get("results") or [],
    }
