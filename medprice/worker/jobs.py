"""
Background auto-processing on the rq queue.

Reports submitted with AUTO_ENQUEUE_ON_CREATE are scored here instead of in
the request. Each job owns a fresh event loop and a fresh engine pool.
"""

import asyncio

import structlog
from redis import Redis
from rq import Queue

from medprice.config import settings
from medprice.errors import ReportError
from medprice.observability.logging import report_log_context
from medprice.observability.metrics import worker_jobs_active

logger = structlog.get_logger(__name__)

RESULT_TTL_SECONDS = 24 * 3600
FAILURE_TTL_SECONDS = 7 * 24 * 3600


def get_queue() -> Queue:
    return Queue(settings.QUEUE_NAME, connection=Redis.from_url(settings.REDIS_URL))


def enqueue_auto_process(report_id: int) -> str:
    """Queue one report for auto-processing and return the rq job id."""
    job = get_queue().enqueue(
        process_report_job,
        report_id,
        job_timeout=settings.JOB_TIMEOUT_SECONDS,
        result_ttl=RESULT_TTL_SECONDS,
        failure_ttl=FAILURE_TTL_SECONDS,
        description=f"auto-process report {report_id}",
    )
    logger.info("auto_process_enqueued", report_id=report_id, job_id=job.id)
    return job.id


def process_report_job(report_id: int) -> dict:
    """rq entry point. Returns the run result as JSON-safe data."""
    with report_log_context(report_id):
        worker_jobs_active.inc()
        try:
            result = asyncio.run(_process_report_async(report_id))
        except ReportError as e:
            # Refusals (high anomaly, terminal status) are final; rq records them as failed
            logger.warning("auto_process_job_refused", error_code=e.error_code, error=e.message)
            raise
        finally:
            worker_jobs_active.dec()
        logger.info("auto_process_job_done", status=result["status"])
        return result


async def _process_report_async(report_id: int) -> dict:
    from medprice.models.database import async_session_factory, close_db
    from medprice.pipeline.orchestrator import AutoProcessPipeline

    try:
        async with async_session_factory() as session:
            result = await AutoProcessPipeline().process(session, report_id)
    finally:
        await close_db()
    return result.model_dump(mode="json")
