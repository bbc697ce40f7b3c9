"""Redis-backed job queue integration for import sessions."""
from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.job import Job

try:  # pragma: no cover - optional dependency for test environments
    import fakeredis
except ModuleNotFoundError:  # pragma: no cover - runtime path without fakeredis
    fakeredis = None  # type: ignore[assignment]

from ..settings import CinevaultSettings
from ..stores.session_store import SessionStore
from .tasks import execute_import_job

logger = logging.getLogger(__name__)

# Whole-file imports can take minutes with the inter-batch delay.
IMPORT_JOB_TIMEOUT = 60 * 60


class JobQueueError(RuntimeError):
    """Raised when the queue cannot accept a job."""


def import_job_id(session_id: str) -> str:
    return f"import-{session_id}"


class JobQueueService:
    """Encapsulates the Redis queue connection and enqueue workflow."""

    def __init__(self, settings: CinevaultSettings) -> None:
        self._settings = settings
        self._connection = self._create_connection(settings)
        self._queue = Queue(settings.redis_queue_name, connection=self._connection)

    @staticmethod
    def _create_connection(settings: CinevaultSettings) -> Redis:
        """Instantiate a Redis connection, supporting fakeredis for tests."""

        url = settings.redis_url
        if url.startswith("fakeredis://"):
            if fakeredis is None:  # pragma: no cover - safety branch
                msg = "fakeredis is required for fakeredis:// URLs"
                raise JobQueueError(msg)
            return fakeredis.FakeRedis()  # type: ignore[return-value]
        return Redis.from_url(url)

    @property
    def queue(self) -> Queue:
        """Expose the underlying RQ queue for workers and diagnostics."""

        return self._queue

    @property
    def connection(self) -> Redis:
        """Return the Redis connection used by the queue."""

        return self._connection

    def ping(self) -> bool:
        """Check whether the queue backend is reachable."""

        try:
            return bool(self._connection.ping())
        except RedisError:
            return False

    def enqueue_import(
        self,
        session_store: SessionStore,
        session_id: str,
        *,
        column_mapping: dict[str, str],
        file_path: str | None = None,
        rows: list[dict[str, str]] | None = None,
    ) -> Job:
        """Queue ``runImport`` for a PENDING session.

        When Redis refuses the job the session is marked FAILED so pollers do
        not wait on work that will never start.
        """

        try:
            job = self._queue.enqueue(
                execute_import_job,
                job_id=import_job_id(session_id),
                job_timeout=IMPORT_JOB_TIMEOUT,
                kwargs={
                    "session_id": session_id,
                    "column_mapping": column_mapping,
                    "file_path": file_path,
                    "rows": rows,
                    "settings": self._settings.model_dump(),
                    "worker_name": self._settings.queue_worker_name,
                },
            )
        except RedisError as exc:  # pragma: no cover - failure path
            logger.error("Failed to enqueue import %s: %s", session_id, exc)
            session_store.mark_failed(session_id, error_message="queue_unavailable")
            raise JobQueueError("Unable to enqueue import job") from exc

        logger.info("Queued import %s as job %s", session_id, job.id)
        return job
