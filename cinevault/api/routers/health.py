"""Health endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..dependencies import get_app_state, get_job_queue
from ..schemas import ComponentHealth, HealthStatus
from ..services.queue import JobQueueService
from ..state import AppState

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
def get_health(
    app_state: AppState = Depends(get_app_state),
    queue: JobQueueService = Depends(get_job_queue),
) -> HealthStatus:
    """Return service heartbeat information for the database and import queue."""

    database_status = ComponentHealth(status="ok")
    try:
        with app_state.session() as session:
            session.connection().execute(text("SELECT 1"))
    except SQLAlchemyError:
        database_status = ComponentHealth(status="error", detail="database_unreachable")

    queue_status = ComponentHealth(status="ok")
    if not queue.ping():
        queue_status = ComponentHealth(status="error", detail="queue_unreachable")
    return HealthStatus(database=database_status, queue=queue_status)
