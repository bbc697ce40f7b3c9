"""Command line interface for the Cinevault API."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import httpx
import typer

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the Cinevault import service.")
config_app = typer.Typer(help="Manage provider keys and import tuning.")
app.add_typer(config_app, name="config")
imports_app = typer.Typer(help="Upload CSV files and work through import sessions.")
app.add_typer(imports_app, name="imports")


IMPORT_STATUS_CHOICES = {"PENDING", "PROCESSING", "COMPLETED", "PENDING_RESOLUTION", "FAILED"}


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Cinevault API service.",
        show_default=True,
        envvar="CINEVAULT_API_BASE",
    )


def _echo_json(response: httpx.Response) -> None:
    typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


def _fail_on_client_error(response: httpx.Response, not_found: str = "Import not found") -> None:
    """Exit with the API's error detail for 4xx/5xx responses the user can act on."""

    if response.status_code == 404:
        typer.echo(_detail(response) or not_found, err=True)
        raise typer.Exit(code=1)
    if response.status_code in {400, 409, 413, 502, 503}:
        typer.echo(_detail(response) or f"Request failed ({response.status_code})", err=True)
        raise typer.Exit(code=1)
    response.raise_for_status()


def _detail(response: httpx.Response) -> Optional[str]:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return None
    return detail if isinstance(detail, str) else None


def _parse_mapping(entries: List[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        field, sep, column = entry.partition("=")
        if not sep or not field.strip() or not column.strip():
            typer.echo(f"Invalid mapping {entry!r}; expected FIELD=COLUMN", err=True)
            raise typer.Exit(code=1)
        mapping[field.strip()] = column.strip()
    if "title" not in mapping:
        typer.echo("A mapping for the title field is required (e.g. --map title=Title).", err=True)
        raise typer.Exit(code=1)
    return mapping


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        response = client.get("/health")
        response.raise_for_status()
        _echo_json(response)


@config_app.command("show")
def show_config(api_base: str = _api_base_option()) -> None:
    """Display the persisted configuration."""

    with create_client(api_base) as client:
        response = client.get("/config")
        response.raise_for_status()
        _echo_json(response)


@config_app.command("update")
def update_config(
    tmdb_api_key: Optional[str] = typer.Option(None, help="TMDB API key to persist."),
    clear_tmdb_api_key: bool = typer.Option(
        False,
        "--clear-tmdb-api-key/--no-clear-tmdb-api-key",
        help="Remove the persisted TMDB API key.",
        show_default=False,
    ),
    omdb_api_key: Optional[str] = typer.Option(None, help="OMDb API key to persist."),
    clear_omdb_api_key: bool = typer.Option(
        False,
        "--clear-omdb-api-key/--no-clear-omdb-api-key",
        help="Remove the persisted OMDb API key.",
        show_default=False,
    ),
    batch_size: Optional[int] = typer.Option(
        None, min=1, max=100, help="Rows processed concurrently per batch."
    ),
    batch_delay: Optional[float] = typer.Option(
        None, min=0, help="Pause between batches in seconds."
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Update configuration fields with the provided values."""

    if tmdb_api_key is not None and clear_tmdb_api_key:
        typer.echo("Cannot set and clear the TMDB API key in the same command.", err=True)
        raise typer.Exit(code=1)
    if omdb_api_key is not None and clear_omdb_api_key:
        typer.echo("Cannot set and clear the OMDb API key in the same command.", err=True)
        raise typer.Exit(code=1)

    payload: dict[str, object] = {}
    if clear_tmdb_api_key:
        payload["tmdb_api_key"] = None
    elif tmdb_api_key is not None:
        payload["tmdb_api_key"] = tmdb_api_key
    if clear_omdb_api_key:
        payload["omdb_api_key"] = None
    elif omdb_api_key is not None:
        payload["omdb_api_key"] = omdb_api_key
    if batch_size is not None:
        payload["import_batch_size"] = batch_size
    if batch_delay is not None:
        payload["import_batch_delay_seconds"] = batch_delay

    if not payload:
        typer.echo("No updates supplied.")
        raise typer.Exit(code=1)

    with create_client(api_base) as client:
        response = client.put("/config", json=payload)
        response.raise_for_status()
        _echo_json(response)


@imports_app.command("upload")
def upload_csv(
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file to upload."),
    api_base: str = _api_base_option(),
) -> None:
    """Upload a CSV and print its headers and stored path."""

    with create_client(api_base) as client, csv_file.open("rb") as handle:
        response = client.post("/imports/csv", files={"file": (csv_file.name, handle, "text/csv")})
        _fail_on_client_error(response)
        _echo_json(response)


@imports_app.command("process")
def process_csv(
    csv_file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="CSV file to upload and import."
    ),
    mapping: List[str] = typer.Option(
        ...,
        "--map",
        "-m",
        help="Column mapping as FIELD=COLUMN (repeat the flag), e.g. --map title=Title.",
    ),
    file_path: Optional[str] = typer.Option(
        None,
        "--file-path",
        help="Server path returned by a previous upload, instead of CSV_FILE.",
    ),
    import_id: Optional[str] = typer.Option(
        None,
        "--import-id",
        help="Run an existing PENDING session instead of creating a new one.",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Upload (if needed) and queue a CSV import."""

    if (csv_file is None) == (file_path is None):
        typer.echo("Provide either CSV_FILE or --file-path.", err=True)
        raise typer.Exit(code=1)
    column_mapping = _parse_mapping(mapping)

    with create_client(api_base) as client:
        if csv_file is not None:
            with csv_file.open("rb") as handle:
                upload = client.post(
                    "/imports/csv", files={"file": (csv_file.name, handle, "text/csv")}
                )
            _fail_on_client_error(upload)
            file_path = upload.json()["file_path"]

        body = {"column_mapping": column_mapping, "file_path": file_path}
        if import_id:
            response = client.post(f"/imports/{import_id}/run", json=body)
        else:
            response = client.post("/imports/process", json=body)
        _fail_on_client_error(response)
        _echo_json(response)


@imports_app.command("status")
def import_status(
    import_id: str = typer.Argument(..., help="Identifier of the import session."),
    api_base: str = _api_base_option(),
) -> None:
    """Display counters and outstanding unmatched rows for a session."""

    with create_client(api_base) as client:
        response = client.get(f"/imports/{import_id}")
        _fail_on_client_error(response)
        _echo_json(response)


@imports_app.command("list")
def list_imports(
    limit: int = typer.Option(10, min=1, max=100, help="Number of recent sessions to display."),
    statuses: Optional[List[str]] = typer.Option(
        None,
        "--status",
        help="Filter results to specific session statuses (repeat the flag).",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Display recent import sessions."""

    params: dict[str, object] = {"limit": limit}
    if statuses:
        normalized_statuses: list[str] = []
        for status in statuses:
            value = status.upper()
            if value not in IMPORT_STATUS_CHOICES:
                typer.echo(
                    "Invalid status value. Allowed values: "
                    + ", ".join(sorted(IMPORT_STATUS_CHOICES)),
                    err=True,
                )
                raise typer.Exit(code=1)
            normalized_statuses.append(value)
        params["status"] = normalized_statuses

    with create_client(api_base) as client:
        response = client.get("/imports", params=params)
        response.raise_for_status()
        _echo_json(response)


@imports_app.command("suggest")
def suggest(
    import_id: str = typer.Argument(..., help="Identifier of the import session."),
    title: str = typer.Argument(..., help="Title to search for."),
    year: Optional[int] = typer.Option(None, min=1870, max=2100, help="Optional release year."),
    api_base: str = _api_base_option(),
) -> None:
    """Search the catalog provider again for an unmatched row."""

    params: dict[str, object] = {"title": title}
    if year is not None:
        params["year"] = year
    with create_client(api_base) as client:
        response = client.get(f"/imports/{import_id}/suggestions", params=params)
        _fail_on_client_error(response)
        _echo_json(response)


@imports_app.command("resolve")
def resolve(
    import_id: str = typer.Argument(..., help="Identifier of the import session."),
    title: str = typer.Argument(..., help="Title of the unmatched row."),
    tmdb_id: int = typer.Option(..., "--tmdb-id", help="TMDB id of the chosen candidate."),
    search: Optional[str] = typer.Option(
        None, help="Search query used to find the candidate (defaults to TITLE)."
    ),
    year: Optional[int] = typer.Option(None, min=1870, max=2100, help="Optional release year."),
    api_base: str = _api_base_option(),
) -> None:
    """Resolve an unmatched row to the search result with the given TMDB id."""

    params: dict[str, object] = {"title": search or title}
    if year is not None:
        params["year"] = year

    with create_client(api_base) as client:
        suggestions = client.get(f"/imports/{import_id}/suggestions", params=params)
        _fail_on_client_error(suggestions)
        candidate = next(
            (item for item in suggestions.json()["suggestions"] if item["id"] == tmdb_id),
            None,
        )
        if candidate is None:
            typer.echo(f"No search result with TMDB id {tmdb_id}", err=True)
            raise typer.Exit(code=1)

        response = client.post(
            f"/imports/{import_id}/resolve", json={"title": title, "candidate": candidate}
        )
        _fail_on_client_error(response, not_found="Unmatched row not found")
        _echo_json(response)


@imports_app.command("ignore")
def ignore(
    import_id: str = typer.Argument(..., help="Identifier of the import session."),
    title: str = typer.Argument(..., help="Title of the unmatched row to dismiss."),
    api_base: str = _api_base_option(),
) -> None:
    """Dismiss an unmatched row."""

    with create_client(api_base) as client:
        response = client.post(f"/imports/{import_id}/ignore", json={"title": title})
        _fail_on_client_error(response, not_found="Unmatched row not found")
        _echo_json(response)
