"""
FastAPI dependency injection.
Provides DB sessions, the admin mailer, the auto-process pipeline and API key validation.
"""

import secrets
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.config import settings
from medprice.errors import UnauthorizedError
from medprice.models.database import get_session
from medprice.notify.email import AdminMailer
from medprice.pipeline.orchestrator import AutoProcessPipeline


# ── Singleton instances ──────────────────────────────────────
_mailer: Optional[AdminMailer] = None


def get_mailer() -> AdminMailer:
    """Get or create the admin mailer singleton."""
    global _mailer
    if _mailer is None:
        _mailer = AdminMailer()
    return _mailer


def get_pipeline(mailer: AdminMailer = Depends(get_mailer)) -> AutoProcessPipeline:
    return AutoProcessPipeline(mailer=mailer)


async def get_db() -> AsyncSession:
    """Yield an async DB session."""
    async for session in get_session():
        yield session


async def verify_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[str]:
    """Admin endpoints require X-API-Key once API_KEY is set; unset means open (local dev)."""
    if settings.API_KEY is None:
        return None
    if x_api_key is None or not secrets.compare_digest(x_api_key, settings.API_KEY):
        raise UnauthorizedError()
    return x_api_key
