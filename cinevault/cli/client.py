"""HTTP client helpers for the Cinevault CLI."""
from __future__ import annotations

import httpx

DEFAULT_HEADERS = {"Accept": "application/json", "User-Agent": "cinevault-cli/0.1.0"}


def create_client(base_url: str, *, timeout: float = 30.0, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Open a JSON client against the Cinevault API."""

    return httpx.Client(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        transport=transport,
        headers=DEFAULT_HEADERS,
    )
