"""Row normalisation and CSV reading for the import pipeline."""
from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Iterator, Mapping

from ..errors import CsvReadError, MissingTitleError

NormalizedRow = dict[str, str]

_PRICE_JUNK = re.compile(r"[^\d.-]")


def map_fields(raw_row: Mapping[str, str | None], column_mapping: Mapping[str, str]) -> NormalizedRow:
    """Copy mapped, non-blank cells onto their canonical field names."""

    row: NormalizedRow = {}
    for field, column in column_mapping.items():
        if not column:
            continue
        value = raw_row.get(column)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            row[field] = value
    return row


def normalize(raw_row: Mapping[str, str | None], column_mapping: Mapping[str, str]) -> NormalizedRow:
    """Map a raw CSV row onto canonical fields.

    The pipeline reads ``title``, ``original_title``, ``year``, ``format``,
    ``price``, ``comments`` and ``acquired_date``; any other mapped field is
    carried through unchanged.

    Fields without a mapping, or whose source cell is missing or blank, are
    left out entirely so downstream code can tell "unspecified" apart from a
    value. Raises :class:`MissingTitleError` when no title survives.
    """

    row = map_fields(raw_row, column_mapping)
    if not row.get("title"):
        raise MissingTitleError()
    return row


def display_title(row: Mapping[str, str | None], position: int) -> str:
    """Best available label for a row that may lack a title."""

    return (row.get("title") or row.get("original_title") or f"Row {position}").strip()


def parse_price(value: str | None) -> float | None:
    """Parse a user-entered price such as ``"$12.99"``; ``None`` when unparsable."""

    if not value:
        return None
    cleaned = _PRICE_JUNK.sub("", value)
    try:
        return float(cleaned)
    except ValueError:
        return None


def read_csv_headers(path: str | Path) -> list[str]:
    """Return the header row of an uploaded CSV file."""

    try:
        with Path(path).open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle)
            header = next(reader, None)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise CsvReadError(f"Unable to read CSV file: {exc}") from exc
    if not header:
        raise CsvReadError("CSV file has no header row")
    return [column.strip() for column in header]


def read_csv_rows(path: str | Path) -> list[dict[str, str]]:
    """Load every data row of a CSV file keyed by header."""

    try:
        return list(_iter_rows(Path(path)))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise CsvReadError(f"Unable to read CSV file: {exc}") from exc


def _iter_rows(path: Path) -> Iterator[dict[str, str]]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            return
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        for row in reader:
            if not any((value or "").strip() for key, value in row.items() if key is not None):
                continue
            yield {key: value or "" for key, value in row.items() if key is not None}
