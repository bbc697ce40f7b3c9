"""Tests for CSV row normalisation helpers."""
from __future__ import annotations

from pathlib import Path

import pytest

from cinevault.api.errors import CsvReadError, MissingTitleError
from cinevault.api.services.normalizer import (
    display_title,
    normalize,
    parse_price,
    read_csv_headers,
    read_csv_rows,
)

MAPPING = {
    "title": "Film",
    "original_title": "Original",
    "year": "Year",
    "format": "Format",
    "price": "Price",
    "comments": "",
}


def test_normalize_maps_and_trims_columns() -> None:
    raw = {"Film": "  Amélie ", "Original": "Le Fabuleux Destin d'Amélie Poulain", "Year": "2001", "Format": "Blu-ray", "Price": "$12.99"}

    row = normalize(raw, MAPPING)

    assert row == {
        "title": "Amélie",
        "original_title": "Le Fabuleux Destin d'Amélie Poulain",
        "year": "2001",
        "format": "Blu-ray",
        "price": "$12.99",
    }


def test_normalize_omits_blank_missing_and_unmapped_fields() -> None:
    raw = {"Film": "Heat", "Original": "   ", "Comments": "ignored because unmapped"}

    row = normalize(raw, MAPPING)

    assert row == {"title": "Heat"}
    assert "comments" not in row
    assert "original_title" not in row


def test_normalize_carries_unknown_canonical_keys() -> None:
    row = normalize({"Film": "Heat", "Shelf": "B2"}, {"title": "Film", "shelf": "Shelf"})

    assert row == {"title": "Heat", "shelf": "B2"}


@pytest.mark.parametrize("raw", [{"Film": ""}, {"Film": "   "}, {"Other": "Heat"}])
def test_normalize_requires_title(raw: dict[str, str]) -> None:
    with pytest.raises(MissingTitleError) as exc_info:
        normalize(raw, MAPPING)

    assert str(exc_info.value) == "No title provided"


def test_display_title_falls_back_to_original_title_then_row_number() -> None:
    assert display_title({"original_title": "Amélie"}, 3) == "Amélie"
    assert display_title({}, 7) == "Row 7"


@pytest.mark.parametrize(
    ("text", "expected"),
    [("$12.99", 12.99), ("1,299.50 €", 1299.5), ("-3", -3.0), ("free", None), ("", None), (None, None)],
)
def test_parse_price(text: str | None, expected: float | None) -> None:
    assert parse_price(text) == expected


def test_read_csv_rows_handles_bom_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "collection.csv"
    path.write_text("﻿Title ,Year\nAmélie,2001\n,\nHeat,1995\n", encoding="utf-8")

    assert read_csv_headers(path) == ["Title", "Year"]
    assert read_csv_rows(path) == [
        {"Title": "Amélie", "Year": "2001"},
        {"Title": "Heat", "Year": "1995"},
    ]


def test_read_csv_rows_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CsvReadError):
        read_csv_rows(tmp_path / "missing.csv")


def test_read_csv_headers_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(CsvReadError):
        read_csv_headers(path)


def test_read_csv_rows_rejects_binary_content(tmp_path: Path) -> None:
    path = tmp_path / "image.csv"
    path.write_bytes(b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x80\x81")

    with pytest.raises(CsvReadError):
        read_csv_rows(path)
