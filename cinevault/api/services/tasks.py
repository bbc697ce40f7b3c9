"""RQ task entrypoints executed by background workers."""
from __future__ import annotations

import logging
from typing import Any

from rq import get_current_job

from ..db import create_engine_from_settings
from ..settings import CinevaultSettings
from ..stores.config_store import ConfigStore
from . import pipeline

logger = logging.getLogger(__name__)


def execute_import_job(
    *,
    session_id: str,
    column_mapping: dict[str, str],
    settings: dict[str, Any],
    worker_name: str,
    file_path: str | None = None,
    rows: list[dict[str, str]] | None = None,
) -> str:
    """Background worker entrypoint running one import session."""

    resolved_settings = CinevaultSettings.model_validate(settings)
    engine = create_engine_from_settings(resolved_settings)

    current_job = get_current_job()  # pragma: no branch - helper for diagnostics
    worker_id = worker_name
    if current_job and getattr(current_job, "worker_name", None):  # pragma: no cover - runtime path
        worker_id = current_job.worker_name  # type: ignore[assignment]
    logger.info("Worker %s picked up import %s", worker_id, session_id)

    config = ConfigStore(engine).read()
    providers = pipeline.create_providers(resolved_settings, config)
    try:
        coordinator = pipeline.build_coordinator(engine, providers, config)
        if file_path is not None:
            result = coordinator.run_import_file(session_id, file_path, column_mapping)
        else:
            result = coordinator.run_import(session_id, rows or [], column_mapping)
        return result.status
    finally:
        providers.close()
        engine.dispose()
