"""
Liveness and readiness probes.
/health answers 200 even when the database is down so the process is not
restarted over a database outage; /health/ready is the strict one.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from medprice.config import settings
from medprice.models.database import async_session_factory
from medprice.models.enums import ReportStatus
from medprice.models.tables import Report

router = APIRouter(tags=["health"])


async def _pending_count() -> int:
    async with async_session_factory() as session:
        return await session.scalar(
            select(func.count(Report.id)).where(
                Report.status == ReportStatus.PENDING.value,
                Report.is_active.is_(True),
            )
        )


async def _redis_ok() -> bool:
    from redis.asyncio import Redis
    from redis.exceptions import RedisError

    client = Redis.from_url(settings.REDIS_URL, socket_timeout=2, socket_connect_timeout=2)
    try:
        return bool(await client.ping())
    except (RedisError, OSError):
        return False
    finally:
        await client.aclose()


@router.get("/health")
async def health_check():
    body = {"version": settings.APP_VERSION}
    try:
        body["pending_reports"] = await _pending_count()
        body["status"] = "healthy"
        body["database"] = "connected"
    except (SQLAlchemyError, OSError) as e:
        body["status"] = "degraded"
        body["database"] = "unreachable"
        body["database_error"] = str(e)[:200]
    return body


@router.get("/health/ready")
async def readiness_check():
    """Database must answer; Redis too when reports are auto-enqueued on submit."""
    checks = {}
    try:
        await _pending_count()
        checks["database"] = True
    except (SQLAlchemyError, OSError):
        checks["database"] = False

    if settings.AUTO_ENQUEUE_ON_CREATE:
        checks["queue"] = await _redis_ok()

    ready = all(checks.values())
    return JSONResponse(status_code=200 if ready else 503, content={"ready": ready, **checks})
