"""
Trust feedback loop.

After an admin acts on an auto-resolved report, the admin's verdict tells us
whether the automatic decision held. A held decision nudges the reporting
user's and the provider's trust up; an override nudges them down.
"""

from typing import Optional

import structlog
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.config import settings
from medprice.models.enums import ReportStatus
from medprice.models.tables import Provider, Report, ReportLog, UserProfile
from medprice.observability.metrics import auto_overrides_total
from medprice.scoring.trust import next_provider_trust, next_user_trust, next_weight
from medprice.services.weights import get_weights_row, weights_from_row

logger = structlog.get_logger(__name__)


class AutoEvaluation(BaseModel):
    success: bool
    auto_log_id: int
    verdict_log_id: int
    user_trust: Optional[float] = None
    provider_trust: Optional[float] = None


async def evaluate_auto_result(session: AsyncSession, report_id: int) -> Optional[AutoEvaluation]:
    """
    Judge the latest automatic decision against the admin action that followed it.

    Only the two most recent logs are compared. Returns None unless the
    previous log is an automatic auto_done and the latest one is manual.
    """
    result = await session.execute(
        select(ReportLog)
        .where(ReportLog.report_id == report_id)
        .order_by(ReportLog.id.desc())
        .limit(2)
    )
    logs = list(result.scalars().all())
    if len(logs) < 2:
        return None

    latest, previous = logs[0], logs[1]
    if not previous.auto or previous.new_status != ReportStatus.AUTO_DONE.value:
        return None
    if latest.auto:
        return None

    return AutoEvaluation(
        success=latest.new_status == ReportStatus.COMPLETED.value,
        auto_log_id=previous.id,
        verdict_log_id=latest.id,
    )


async def update_user_trust(session: AsyncSession, user_id: str, success: bool) -> Optional[float]:
    profile = await session.get(UserProfile, user_id)
    if profile is None:
        return None
    profile.trust_score = next_user_trust(profile.trust_score, success)
    return profile.trust_score


async def update_provider_trust(session: AsyncSession, provider_id: int, success: bool) -> Optional[float]:
    provider = await session.get(Provider, provider_id)
    if provider is None:
        return None
    provider.auto_trust_score = next_provider_trust(provider.auto_trust_score, success)
    return provider.auto_trust_score


async def adjust_auto_weights(session: AsyncSession, success: bool) -> None:
    """Nudge the similarity/duplicate/provider weights; priority is left to admins."""
    row = await get_weights_row(session)
    if row is None:
        return
    current = weights_from_row(row)
    row.weight_similarity = next_weight(current.similarity, success)
    row.weight_duplicate = next_weight(current.duplicate, success)
    row.weight_provider = next_weight(current.provider, success)


async def run_trust_feedback(session: AsyncSession, report: Report) -> Optional[AutoEvaluation]:
    """Evaluate and apply trust adjustments. Caller commits."""
    evaluation = await evaluate_auto_result(session, report.id)
    if evaluation is None:
        return None

    if report.user_id:
        evaluation.user_trust = await update_user_trust(session, report.user_id, evaluation.success)
    if report.provider_id:
        evaluation.provider_trust = await update_provider_trust(
            session, report.provider_id, evaluation.success
        )
    if settings.AUTO_TUNE_WEIGHTS:
        await adjust_auto_weights(session, evaluation.success)

    await session.flush()

    if not evaluation.success:
        auto_overrides_total.inc()

    logger.info(
        "trust_feedback_applied",
        report_id=report.id,
        success=evaluation.success,
        user_trust=evaluation.user_trust,
        provider_trust=evaluation.provider_trust,
    )
    return evaluation
