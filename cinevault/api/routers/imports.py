"""Bulk import endpoints: upload, run, poll and resolve."""
from pathlib import Path
from typing import Annotated
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from ..dependencies import (
    get_job_queue,
    get_resolution_service,
    get_session_store,
    get_settings,
    get_unmatched_store,
)
from ..errors import (
    CsvReadError,
    InvalidTransitionError,
    ProviderError,
    SessionNotFoundError,
    UnmatchedItemNotFoundError,
)
from ..schemas import (
    CandidateModel,
    CsvUploadResponse,
    IgnoreRequest,
    IgnoreResponse,
    ImportAcceptedResponse,
    ImportRunRequest,
    ImportSessionModel,
    ImportStatusModel,
    ResolveRequest,
    ResolveResponse,
    SuggestionsResponse,
)
from ..services.normalizer import read_csv_headers
from ..services.queue import JobQueueError, JobQueueService
from ..services.resolution import ResolutionService
from ..settings import CinevaultSettings
from ..stores.session_store import PENDING, SessionStore
from ..stores.unmatched_store import UnmatchedStore
from ..utils.paths import ensure_directory

router = APIRouter(prefix="/imports", tags=["imports"])

_UPLOAD_CHUNK_BYTES = 64 * 1024


@router.post("/csv", response_model=CsvUploadResponse)
def upload_csv(
    file: UploadFile = File(...),
    settings: CinevaultSettings = Depends(get_settings),
) -> CsvUploadResponse:
    """Store an uploaded CSV and return its headers for column mapping."""

    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    upload_dir = Path(ensure_directory(settings.upload_path))
    target = upload_dir / f"{uuid4().hex}.csv"
    written = 0
    with target.open("wb") as handle:
        while chunk := file.file.read(_UPLOAD_CHUNK_BYTES):
            written += len(chunk)
            if written > settings.max_upload_bytes:
                handle.close()
                target.unlink(missing_ok=True)
                raise HTTPException(status_code=413, detail="CSV file is too large")
            handle.write(chunk)

    try:
        headers = read_csv_headers(target)
    except CsvReadError as exc:
        target.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return CsvUploadResponse(headers=headers, file_path=str(target))


@router.post("", response_model=ImportSessionModel, status_code=201)
def create_import(store: SessionStore = Depends(get_session_store)) -> ImportSessionModel:
    """Create an empty PENDING session."""

    return store.create()


@router.get("", response_model=list[ImportSessionModel])
def list_imports(
    limit: int = Query(default=50, ge=1, le=100),
    statuses: Annotated[
        list[str] | None,
        Query(
            alias="status",
            description=(
                "Filter results to one or more session statuses. Repeat the query parameter "
                "to include multiple statuses."
            ),
        ),
    ] = None,
    store: SessionStore = Depends(get_session_store),
) -> list[ImportSessionModel]:
    """Return the most recent import sessions."""

    return store.list(limit=limit, statuses=statuses)


@router.post("/process", response_model=ImportAcceptedResponse, status_code=202)
def process_import(
    request: ImportRunRequest,
    store: SessionStore = Depends(get_session_store),
    queue: JobQueueService = Depends(get_job_queue),
    settings: CinevaultSettings = Depends(get_settings),
) -> ImportAcceptedResponse:
    """Create a session and queue its import in one call."""

    _check_upload_path(request, settings)
    session = store.create()
    return _enqueue(store, queue, session.id, request)


@router.post("/{import_id}/run", response_model=ImportAcceptedResponse, status_code=202)
def run_import(
    import_id: str,
    request: ImportRunRequest,
    store: SessionStore = Depends(get_session_store),
    queue: JobQueueService = Depends(get_job_queue),
    settings: CinevaultSettings = Depends(get_settings),
) -> ImportAcceptedResponse:
    """Queue the import of an existing PENDING session."""

    session = store.get(import_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Import not found")
    if session.status != PENDING:
        raise HTTPException(status_code=409, detail=f"Import is already {session.status}")
    _check_upload_path(request, settings)
    return _enqueue(store, queue, import_id, request)


@router.get("/{import_id}", response_model=ImportStatusModel)
def get_import(
    import_id: str,
    store: SessionStore = Depends(get_session_store),
    unmatched: UnmatchedStore = Depends(get_unmatched_store),
) -> ImportStatusModel:
    """Return the session counters together with its outstanding unmatched rows."""

    session = store.get(import_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Import not found")
    return ImportStatusModel(**session.model_dump(), unmatched=unmatched.list_by_session(import_id))


@router.get("/{import_id}/suggestions", response_model=SuggestionsResponse)
def get_suggestions(
    import_id: str,
    title: str = Query(..., min_length=1),
    year: int | None = Query(default=None, ge=1870, le=2100),
    store: SessionStore = Depends(get_session_store),
    service: ResolutionService = Depends(get_resolution_service),
) -> SuggestionsResponse:
    """Search the catalog provider again for an unmatched row."""

    if store.get(import_id) is None:
        raise HTTPException(status_code=404, detail="Import not found")
    try:
        results = service.search_again(title, year)
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SuggestionsResponse(
        suggestions=[CandidateModel.model_validate(item) for item in results if item.get("id")]
    )


@router.post("/{import_id}/resolve", response_model=ResolveResponse)
def resolve_item(
    import_id: str,
    request: ResolveRequest,
    service: ResolutionService = Depends(get_resolution_service),
) -> ResolveResponse:
    """Create the record for the chosen candidate and settle the unmatched row."""

    try:
        record = service.resolve(import_id, request.title, request.candidate.model_dump())
    except (SessionNotFoundError, UnmatchedItemNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ResolveResponse(record=record)


@router.post("/{import_id}/ignore", response_model=IgnoreResponse)
def ignore_item(
    import_id: str,
    request: IgnoreRequest,
    service: ResolutionService = Depends(get_resolution_service),
) -> IgnoreResponse:
    """Dismiss an unmatched row."""

    try:
        service.ignore(import_id, request.title)
    except (SessionNotFoundError, UnmatchedItemNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return IgnoreResponse(message=f"Ignored {request.title}")


def _check_upload_path(request: ImportRunRequest, settings: CinevaultSettings) -> None:
    if request.file_path is None:
        return
    upload_dir = Path(settings.upload_path).expanduser().resolve()
    candidate = Path(request.file_path).expanduser().resolve()
    if candidate.parent != upload_dir or not candidate.is_file():
        raise HTTPException(status_code=400, detail="Unknown upload file_path")


def _enqueue(
    store: SessionStore,
    queue: JobQueueService,
    import_id: str,
    request: ImportRunRequest,
) -> ImportAcceptedResponse:
    try:
        queue.enqueue_import(
            store,
            import_id,
            column_mapping=request.column_mapping,
            file_path=request.file_path,
            rows=request.rows,
        )
    except JobQueueError as exc:  # pragma: no cover - queue failures
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except InvalidTransitionError as exc:  # pragma: no cover - session changed underneath us
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ImportAcceptedResponse(import_id=import_id, status=store.require(import_id).status)
