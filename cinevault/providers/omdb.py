"""
OMDb client used for supplementary IMDb and Rotten Tomatoes ratings.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import ProviderClient

logger = logging.getLogger(__name__)

_MISSING = "N/A"


class OMDbClient(ProviderClient):
    DEFAULT_BASE_URL = "https://www.omdbapi.com/"

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

    def fetch_ratings(
        self,
        *,
        imdb_id: Optional[str] = None,
        title: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Return ``imdb_id``, ``imdb_rating`` and ``rotten_tomato_rating`` when known."""

        if not self.enabled:
            logger.debug("OMDb API key not configured, skipping ratings")
            return {}

        params: Dict[str, Any] = {"apikey": self.api_key}
        if imdb_id:
            params["i"] = imdb_id
        elif title:
            params["t"] = title
            if year:
                params["y"] = year
        else:
            return {}

        data = self._get_json("", params)
        if data.get("Response") == "False":
            logger.debug("OMDb has no entry for %s", imdb_id or title)
            return {}

        return {
            "imdb_id": _value(data.get("imdbID")),
            "imdb_rating": _float(data.get("imdbRating")),
            "rotten_tomato_rating": _rotten_tomatoes(data.get("Ratings") or []),
        }


def _value(raw: Optional[str]) -> Optional[str]:
    if not raw or raw == _MISSING:
        return None
    return raw


def _float(raw: Optional[str]) -> Optional[float]:
    value = _value(raw)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _rotten_tomatoes(ratings: list[Dict[str, Any]]) -> Optional[int]:
    for rating in ratings:
        if rating.get("Source") == "Rotten Tomatoes":
            try:
                return int(str(rating.get("Value", "")).rstrip("%"))
            except ValueError:
                return None
    return None
