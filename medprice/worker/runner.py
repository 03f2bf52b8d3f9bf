"""
Auto-process worker entry point.

    python -m medprice.worker.runner            # long-running worker
    python -m medprice.worker.runner --burst    # drain the queue and exit
"""

import argparse
import os
import socket

import structlog
from redis import Redis
from rq import Worker

from medprice.config import settings
from medprice.observability.logging import setup_logging

logger = structlog.get_logger(__name__)


def log_failed_job(job, exc_type, exc_value, traceback) -> bool:
    """rq exception handler: record the failure and let rq move the job to the failed registry."""
    logger.error(
        "worker_job_failed",
        job_id=job.id,
        func=job.func_name,
        args=job.args,
        error_type=exc_type.__name__,
        error=str(exc_value),
    )
    return True


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the report auto-process worker.")
    parser.add_argument(
        "--queue",
        action="append",
        dest="queues",
        help=f"Queue to listen on (repeatable, default: {settings.QUEUE_NAME})",
    )
    parser.add_argument("--burst", action="store_true", help="Exit once the queue is empty")
    return parser.parse_args(argv)


def main(argv=None):
    setup_logging()
    args = parse_args(argv)
    queues = args.queues or [settings.QUEUE_NAME]

    worker = Worker(
        queues=queues,
        connection=Redis.from_url(settings.REDIS_URL),
        name=f"auto-process-{socket.gethostname()}-{os.getpid()}",
        exception_handlers=[log_failed_job],
    )
    logger.info("worker_starting", queues=queues, burst=args.burst)
    worker.work(burst=args.burst, with_scheduler=False)


if __name__ == "__main__":
    main()
