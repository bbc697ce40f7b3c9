"""
External metadata providers for Cinevault.

Thin HTTPX clients for TMDB search/details, OMDb ratings and TMDB artwork
downloads used by the import pipeline.
"""

from .artwork import ArtworkClient
from .base import ProviderError
from .omdb import OMDbClient
from .tmdb import TMDBClient

__all__ = ["ArtworkClient", "OMDbClient", "ProviderError", "TMDBClient"]
