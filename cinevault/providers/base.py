"""Shared plumbing for the external metadata provider clients."""
from __future__ import annotations

from typing import Any

import httpx


class ProviderError(RuntimeError):
    """Raised when an external metadata provider call fails."""


class ProviderClient:
    """Owns one pooled HTTPX client with a fixed per-request timeout."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Request to {path} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"{path} responded with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Failed to contact provider: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"{path} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ProviderError(f"{path} response must be an object")
        return payload
