"""Tests for the Cinevault API application factory and import endpoints."""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from rq.worker import SimpleWorker

from cinevault.api import create_app
from cinevault.api.schemas import ConfigModel, ImportStatusModel
from cinevault.api.services import pipeline
from cinevault.api.settings import CinevaultSettings

from conftest import candidate

CSV_BYTES = "Title,Format,Price\nAmélie,DVD,$9.99\nUnknownxyz,VHS,4\n".encode("utf-8")
MAPPING = {"title": "Title", "format": "Format", "price": "Price"}


@pytest.fixture()
def client(settings: CinevaultSettings, providers, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Provide a test client backed by an isolated SQLite database and stub providers."""

    monkeypatch.setattr(pipeline, "create_providers", lambda settings, config: providers)
    app = create_app(settings=settings)
    return TestClient(app)


def drain_jobs(client: TestClient) -> None:
    """Drain queued jobs using an in-process RQ worker."""

    app_state = client.app.state.app_state
    worker = SimpleWorker([app_state.job_queue.queue], connection=app_state.job_queue.connection)
    worker.work(burst=True)


def _upload(client: TestClient, content: bytes = CSV_BYTES, name: str = "collection.csv"):
    return client.post("/imports/csv", files={"file": (name, content, "text/csv")})


def _pending_import(client: TestClient, providers) -> str:
    providers.tmdb.add("Amélie", candidate(194, "Amélie"))
    file_path = _upload(client).json()["file_path"]
    response = client.post("/imports/process", json={"column_mapping": MAPPING, "file_path": file_path})
    assert response.status_code == 202
    drain_jobs(client)
    return response.json()["import_id"]


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    """The /health endpoint should respond with an OK status payload."""

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.1.0",
        "database": {"status": "ok", "detail": None},
        "queue": {"status": "ok", "detail": None},
    }


def test_config_round_trip_updates_database_store(client: TestClient) -> None:
    """PUT /config should persist updates to the database-backed store."""

    new_payload = {
        "tmdb_api_key": "tmdb-token",
        "omdb_api_key": "omdb-token",
        "import_batch_size": 5,
        "import_batch_delay_seconds": 0.25,
    }

    put_response = client.put("/config", json=new_payload)
    assert put_response.status_code == 200
    updated = ConfigModel.model_validate(put_response.json())
    for key, value in new_payload.items():
        assert getattr(updated, key) == value

    persisted = ConfigModel.model_validate(client.get("/config").json())
    for key, value in new_payload.items():
        assert getattr(persisted, key) == value


def test_config_update_allows_clearing_api_keys(client: TestClient) -> None:
    """Setting a key to null or blank should clear the persisted value."""

    client.put("/config", json={"tmdb_api_key": "token", "omdb_api_key": "other"})

    cleared = client.put("/config", json={"tmdb_api_key": None, "omdb_api_key": "  "}).json()

    assert cleared["tmdb_api_key"] is None
    assert cleared["omdb_api_key"] is None
    assert cleared["import_batch_size"] == 10


def test_config_rejects_out_of_range_batch_size(client: TestClient) -> None:
    assert client.put("/config", json={"import_batch_size": 0}).status_code == 422
    assert client.put("/config", json={"import_batch_size": 101}).status_code == 422


def test_upload_returns_headers_and_stores_file(client: TestClient, settings: CinevaultSettings) -> None:
    response = _upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["headers"] == ["Title", "Format", "Price"]
    stored = Path(body["file_path"])
    assert stored.parent == Path(settings.upload_path).resolve()
    assert stored.read_bytes() == CSV_BYTES


def test_upload_rejects_non_csv_files(client: TestClient) -> None:
    response = _upload(client, name="collection.xlsx")

    assert response.status_code == 400
    assert response.json()["detail"] == "Only CSV files are allowed"


def test_upload_rejects_oversized_files(settings: CinevaultSettings, providers, monkeypatch) -> None:
    monkeypatch.setattr(pipeline, "create_providers", lambda settings, config: providers)
    small = settings.model_copy(update={"max_upload_bytes": 16})
    client = TestClient(create_app(settings=small))

    response = _upload(client)

    assert response.status_code == 413
    assert list(Path(small.upload_path).iterdir()) == []


def test_process_import_runs_through_worker(client: TestClient, providers) -> None:
    import_id = _pending_import(client, providers)

    response = client.get(f"/imports/{import_id}")

    assert response.status_code == 200
    status = ImportStatusModel.model_validate(response.json())
    assert status.status == "PENDING_RESOLUTION"
    assert (status.total, status.processed, status.auto_resolved) == (2, 1, 1)
    assert [item.title for item in status.unmatched] == ["Unknownxyz"]
    assert status.unmatched[0].row_data == {"title": "Unknownxyz", "format": "VHS", "price": "4"}


def test_process_accepts_inline_rows(client: TestClient, providers) -> None:
    providers.tmdb.add("Heat", candidate(949, "Heat"))

    response = client.post(
        "/imports/process",
        json={"column_mapping": {"title": "Film"}, "rows": [{"Film": "Heat"}]},
    )
    assert response.status_code == 202
    assert response.json()["status"] == "PENDING"
    drain_jobs(client)

    status = client.get(f"/imports/{response.json()['import_id']}").json()
    assert status["status"] == "COMPLETED"
    assert status["processed"] == status["total"] == 1


def test_process_rejects_ambiguous_sources(client: TestClient) -> None:
    payload = {"column_mapping": MAPPING, "rows": [{"Title": "Heat"}], "file_path": "/tmp/x.csv"}

    assert client.post("/imports/process", json=payload).status_code == 422
    assert client.post("/imports/process", json={"column_mapping": MAPPING}).status_code == 422


def test_process_rejects_files_outside_upload_directory(client: TestClient, tmp_path: Path) -> None:
    outside = tmp_path / "elsewhere.csv"
    outside.write_text("Title\nHeat\n", encoding="utf-8")

    response = client.post("/imports/process", json={"column_mapping": MAPPING, "file_path": str(outside)})

    assert response.status_code == 400
    assert outside.exists()


def test_empty_csv_fails_the_import(client: TestClient) -> None:
    file_path = _upload(client, content=b"Title,Format\n").json()["file_path"]

    import_id = client.post(
        "/imports/process", json={"column_mapping": MAPPING, "file_path": file_path}
    ).json()["import_id"]
    drain_jobs(client)

    status = client.get(f"/imports/{import_id}").json()
    assert status["status"] == "FAILED"
    assert status["error_message"] == "No rows to import"


def test_run_existing_session_and_reject_rerun(client: TestClient, providers) -> None:
    providers.tmdb.add("Heat", candidate(949, "Heat"))
    created = client.post("/imports")
    assert created.status_code == 201
    import_id = created.json()["id"]
    body = {"column_mapping": {"title": "Film"}, "rows": [{"Film": "Heat"}]}

    response = client.post(f"/imports/{import_id}/run", json=body)
    assert response.status_code == 202
    drain_jobs(client)

    assert client.get(f"/imports/{import_id}").json()["status"] == "COMPLETED"
    assert client.post(f"/imports/{import_id}/run", json=body).status_code == 409
    assert client.post("/imports/missing/run", json=body).status_code == 404


def test_list_imports_filters_by_status(client: TestClient) -> None:
    first = client.post("/imports").json()
    client.post("/imports/process", json={"column_mapping": MAPPING, "rows": []})
    drain_jobs(client)

    pending = client.get("/imports", params={"status": "PENDING"}).json()
    failed = client.get("/imports", params={"status": "failed"}).json()

    assert [item["id"] for item in pending] == [first["id"]]
    assert len(failed) == 1
    assert len(client.get("/imports").json()) == 2


def test_unknown_import_returns_404(client: TestClient) -> None:
    assert client.get("/imports/missing").status_code == 404
    assert client.get("/imports/missing/suggestions", params={"title": "Heat"}).status_code == 404
    assert client.post("/imports/missing/ignore", json={"title": "Heat"}).status_code == 404


def test_suggest_resolve_and_ignore_flow(client: TestClient, providers) -> None:
    import_id = _pending_import(client, providers)
    providers.tmdb.add("The Unknown", candidate(555, "The Unknown"), candidate(556, "The Unknown 2", vote_average=None))

    suggestions = client.get(f"/imports/{import_id}/suggestions", params={"title": "The Unknown"})
    assert suggestions.status_code == 200
    choices = suggestions.json()["suggestions"]
    assert [item["id"] for item in choices] == [555, 556]

    resolved = client.post(
        f"/imports/{import_id}/resolve", json={"title": "Unknownxyz", "candidate": choices[0]}
    )
    assert resolved.status_code == 200
    record = resolved.json()["record"]
    assert record["title"] == "Unknownxyz"
    assert record["tmdb_id"] == 555
    assert record["format"] == "VHS"

    status = client.get(f"/imports/{import_id}").json()
    assert status["status"] == "COMPLETED"
    assert status["manual_resolved"] == 1
    assert status["processed"] == status["total"] == 2
    assert status["unmatched"] == []

    again = client.post(f"/imports/{import_id}/ignore", json={"title": "Unknownxyz"})
    assert again.status_code == 404


def test_ignore_completes_session(client: TestClient, providers) -> None:
    import_id = _pending_import(client, providers)

    response = client.post(f"/imports/{import_id}/ignore", json={"title": "Unknownxyz"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Ignored Unknownxyz"}
    status = client.get(f"/imports/{import_id}").json()
    assert status["status"] == "COMPLETED"
    assert (status["processed"], status["manual_resolved"]) == (2, 0)


def test_resolve_reports_provider_outage(client: TestClient, providers) -> None:
    import_id = _pending_import(client, providers)
    providers.tmdb.failing_details.add(777)

    response = client.post(
        f"/imports/{import_id}/resolve",
        json={"title": "Unknownxyz", "candidate": candidate(777, "Broken")},
    )

    assert response.status_code == 502
    assert client.get(f"/imports/{import_id}").json()["status"] == "PENDING_RESOLUTION"
