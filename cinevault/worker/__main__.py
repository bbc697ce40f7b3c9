"""Entry point for running the Cinevault import RQ worker."""
from __future__ import annotations

import argparse
import logging
import os
import sys

from rq import Worker, SimpleWorker

from cinevault.api.db import create_engine_from_settings, init_database
from cinevault.api.settings import CinevaultSettings
from cinevault.api.services.queue import JobQueueService
from cinevault.api.utils.paths import ensure_artwork_directories

logger = logging.getLogger("cinevault.worker")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Process queued Cinevault CSV imports.")
    parser.add_argument(
        "--burst",
        action="store_true",
        help="Drain the import queue and exit instead of waiting for new jobs.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Start an RQ worker bound to the configured import queue."""

    args = parse_args(argv)
    settings = CinevaultSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Jobs open their own engine; the schema and artwork folders must exist first.
    engine = create_engine_from_settings(settings)
    try:
        init_database(engine, settings)
    finally:
        engine.dispose()
    ensure_artwork_directories(settings.images_path)

    queue_service = JobQueueService(settings)
    if not queue_service.ping():
        logger.error("Redis is unreachable at %s; worker not started", settings.redis_url)
        return 1

    worker_class = SimpleWorker if os.name == "nt" else Worker
    worker = worker_class(
        [queue_service.queue],
        connection=queue_service.connection,
        name=settings.queue_worker_name,
    )
    logger.info(
        "Worker %s listening on queue %s (burst=%s)",
        settings.queue_worker_name,
        settings.redis_queue_name,
        args.burst,
    )
    worker.work(burst=args.burst, with_scheduler=False)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entrypoint
    sys.exit(main())
