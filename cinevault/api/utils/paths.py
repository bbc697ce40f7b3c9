"""Filesystem helpers for catalog storage paths."""
from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir


APP_NAME = "Cinevault"
APP_AUTHOR = "Cinevault"

ARTWORK_KINDS = ("posters", "backdrops", "profiles")


def default_images_path() -> str:
    """Return the platform-appropriate default artwork directory."""

    base_dir = Path(user_data_dir(APP_NAME, APP_AUTHOR))
    return str(base_dir / "images")


def default_upload_path() -> str:
    """Return the platform-appropriate directory for pending CSV uploads."""

    base_dir = Path(user_data_dir(APP_NAME, APP_AUTHOR))
    return str(base_dir / "uploads")


def ensure_directory(path: str) -> str:
    """Expand and create the directory if it does not exist."""

    resolved = Path(path).expanduser()
    resolved.mkdir(parents=True, exist_ok=True)
    return str(resolved.resolve())


def ensure_artwork_directories(images_path: str) -> str:
    """Create the per-kind artwork folders below ``images_path``."""

    root = ensure_directory(images_path)
    for kind in ARTWORK_KINDS:
        (Path(root) / kind).mkdir(parents=True, exist_ok=True)
    return root
