"""
Artwork downloader storing TMDB images below the local images directory.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import httpx

from .base import ProviderClient

logger = logging.getLogger(__name__)


class ArtworkClient(ProviderClient):
    DEFAULT_BASE_URL = "https://image.tmdb.org/t/p/original"

    def __init__(
        self,
        images_path: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url.rstrip("/"), timeout=timeout, transport=transport)
        self.images_path = Path(images_path)

    def download(
        self,
        image_path: Optional[str],
        kind: str,
        tmdb_id: int,
        filename: Optional[str] = None,
    ) -> Optional[str]:
        """Download ``image_path`` and return its public ``/images/...`` path.

        Returns ``None`` when there is nothing to download or the download
        fails; artwork is never required for a record to be created.
        """

        if not image_path:
            return None
        if filename is None:
            extension = Path(image_path).suffix or ".jpg"
            filename = f"{tmdb_id}_{time.time_ns()}{extension}"
        filename = Path(filename).name
        if filename in ("", ".", ".."):
            logger.warning("Refusing to store %s image %s under an unsafe name", kind, image_path)
            return None

        target = self.images_path / kind / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with self._client.stream("GET", image_path) as response:
                response.raise_for_status()
                with target.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        handle.write(chunk)
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Failed to download %s image %s: %s", kind, image_path, exc)
            target.unlink(missing_ok=True)
            return None

        logger.debug("Downloaded %s image %s", kind, filename)
        return f"/images/{kind}/{filename}"

    def download_poster(self, image_path: Optional[str], tmdb_id: int) -> Optional[str]:
        return self.download(image_path, "posters", tmdb_id)

    def download_backdrop(self, image_path: Optional[str], tmdb_id: int) -> Optional[str]:
        return self.download(image_path, "backdrops", tmdb_id)

    def download_profile(self, image_path: Optional[str], tmdb_id: int) -> Optional[str]:
        if not image_path:
            return None
        # TMDB profile paths are unique, so they double as file names.
        return self.download(image_path, "profiles", tmdb_id, filename=Path(image_path).name)
