"""
Auto-process orchestrator: runs one report through scoring and triage.

Stages: LOAD → GUARD → SCORE → DECIDE → PERSIST → LOG

Trust feedback is not a stage here: it needs the admin verdict that follows
an auto_done decision, so it runs in apply_manual_transition.
"""

import time
from typing import Optional

import structlog
from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.config import settings
from medprice.errors import (
    HighAnomalyBlockedError,
    InvalidTransitionError,
    PersistenceError,
    ReportError,
    ReportNotFoundError,
    StatusConflictError,
)
from medprice.models.enums import ReportStatus
from medprice.models.tables import Report, utcnow
from medprice.notify.email import AdminMailer, MailError
from medprice.notify.high_risk import notify_high_risk
from medprice.observability.logging import report_log_context
from medprice.observability.metrics import (
    auto_process_blocked_total,
    auto_process_duration_seconds,
    auto_process_failed_total,
    auto_process_runs_total,
    auto_scores,
    duplicate_scores,
)
from medprice.pipeline.diff import build_diff_summary, snapshot
from medprice.pipeline.transitions import (
    AUTO_SOURCE_STATUSES,
    TERMINAL_STATUSES,
    append_report_log,
    transition_report,
)
from medprice.schemas.reports import AutoProcessResponse, Snapshot
from medprice.scoring.auto_score import AutoScoreResult, calc_auto_process_score
from medprice.scoring.duplicate import DuplicateResult, calc_duplicate_score
from medprice.scoring.explain import generate_explanation
from medprice.scoring.recommend import (
    Recommendation,
    evaluate_auto_recommendation,
    next_status_for,
)
from medprice.services.weights import load_auto_weights

logger = structlog.get_logger(__name__)


class AutoProcessResult(BaseModel):
    """Everything one auto-process run decided and wrote."""
    report_id: int
    old_status: str
    status: str
    diff_summary: str
    before: Snapshot
    after: Snapshot
    auto: AutoScoreResult
    duplicate: DuplicateResult
    recommendation: Recommendation
    duplicate_warning: bool = False
    explanation: str = ""
    log_id: int

    def to_response(self) -> AutoProcessResponse:
        return AutoProcessResponse(
            status=self.status,
            diff_summary=self.diff_summary,
            before=self.before,
            after=self.after,
            auto_score=self.auto.auto_score,
            duplicate_score=self.duplicate.score,
            recommendation=self.recommendation.level.value,
            explanation=self.explanation,
        )


class AutoProcessPipeline:
    """
    Scores a single report, moves it to auto_done or manual_required, and
    records the run in the report log.

    Reports already past pending/processing are re-scored and logged but
    keep their status. Terminal reports are refused.
    """

    def __init__(
        self,
        mailer: Optional[AdminMailer] = None,
        high_anomaly: Optional[float] = None,
        medium_duplicate: Optional[float] = None,
        lookback_hours: Optional[int] = None,
    ):
        self.mailer = mailer or AdminMailer()
        self.high_anomaly = settings.HIGH_ANOMALY if high_anomaly is None else high_anomaly
        self.medium_duplicate = (
            settings.MEDIUM_DUPLICATE if medium_duplicate is None else medium_duplicate
        )
        self.lookback_hours = lookback_hours or settings.DUPLICATE_LOOKBACK_HOURS

    async def process(self, session: AsyncSession, report_id: int) -> AutoProcessResult:
        with report_log_context(report_id):
            return await self._process(session, report_id)

    async def _process(self, session: AsyncSession, report_id: int) -> AutoProcessResult:
        started_at = time.time()
        try:
            result = await self._run(session, report_id)
        except HighAnomalyBlockedError:
            auto_process_blocked_total.labels(reason="high_anomaly").inc()
            raise
        except ReportError as e:
            auto_process_failed_total.labels(error_code=e.error_code).inc()
            logger.warning("auto_process_failed", error_code=e.error_code, error=e.message)
            raise
        finally:
            auto_process_duration_seconds.observe(time.time() - started_at)

        auto_process_runs_total.labels(
            recommendation=result.recommendation.level.value,
            status=result.status,
        ).inc()
        auto_scores.observe(result.auto.auto_score)
        duplicate_scores.observe(result.duplicate.score)

        logger.info(
            "auto_process_completed",
            old_status=result.old_status,
            status=result.status,
            auto_score=result.auto.auto_score,
            duplicate_score=result.duplicate.score,
            recommendation=result.recommendation.level.value,
            duration_ms=int((time.time() - started_at) * 1000),
        )
        return result

    async def _run(self, session: AsyncSession, report_id: int) -> AutoProcessResult:
        # ── LOAD ──
        report = await session.get(Report, report_id)
        if report is None:
            raise ReportNotFoundError(report_id)

        current = ReportStatus(report.status)
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(current.value, ReportStatus.AUTO_DONE.value)

        # ── GUARD ──
        await self._guard_high_anomaly(report)

        before = snapshot(report)

        # ── SCORE ──
        weights = await load_auto_weights(session)
        auto = calc_auto_process_score(report, weights)
        duplicate = await calc_duplicate_score(session, report, self.lookback_hours)
        recommendation = evaluate_auto_recommendation(auto.auto_score, duplicate.score)

        # ── DECIDE ──
        if current in AUTO_SOURCE_STATUSES:
            new_status = next_status_for(recommendation, auto)
        else:
            new_status = current

        # ── PERSIST ──
        scoring_fields = {
            "duplicate_score": float(duplicate.score),
            "recommendation": recommendation.level.value,
        }
        if new_status != current:
            await transition_report(
                session, report, new_status, expected_status=current.value, **scoring_fields
            )
        else:
            await self._store_scores(session, report, current, scoring_fields)

        after = snapshot(report)
        diff_summary = build_diff_summary(before, after)
        duplicate_warning = duplicate.score >= self.medium_duplicate
        explanation = generate_explanation(
            auto.auto_score, duplicate.score, len(report.content or ""), report.priority
        )

        # ── LOG ──
        log_row = await append_report_log(
            session,
            report_id=report.id,
            old_status=current.value,
            new_status=new_status.value,
            auto=True,
            reason=explanation,
            actor_id=settings.SYSTEM_ACTOR_ID,
            detail={
                "auto": auto.model_dump(mode="json"),
                "duplicate": duplicate.model_dump(mode="json"),
                "recommendation": recommendation.model_dump(mode="json"),
                "duplicate_warning": duplicate_warning,
                "before": before.model_dump(),
                "after": after.model_dump(),
                "diff_summary": diff_summary,
            },
        )
        await self._commit(session, "UPDATE_FAILED")

        return AutoProcessResult(
            report_id=report.id,
            old_status=current.value,
            status=new_status.value,
            diff_summary=diff_summary,
            before=before,
            after=after,
            auto=auto,
            duplicate=duplicate,
            recommendation=recommendation,
            duplicate_warning=duplicate_warning,
            explanation=explanation,
            log_id=log_row.id,
        )

    async def _guard_high_anomaly(self, report: Report) -> None:
        """Refuse high-anomaly reports and alert the admin once."""
        anomaly = report.anomaly_score or 0
        if anomaly < self.high_anomaly:
            return

        logger.warning(
            "high_anomaly_blocked",
            report_id=report.id,
            anomaly_score=report.anomaly_score,
            threshold=self.high_anomaly,
        )
        try:
            await notify_high_risk(self.mailer, report.id, report.anomaly_score)
        except MailError as e:
            logger.error("high_anomaly_notify_failed", report_id=report.id, error=str(e))
        raise HighAnomalyBlockedError(report.id, report.anomaly_score)

    async def _store_scores(
        self,
        session: AsyncSession,
        report: Report,
        current: ReportStatus,
        fields: dict,
    ) -> None:
        """Write score fields without a status change, still guarded on status."""
        try:
            result = await session.execute(
                update(Report)
                .where(Report.id == report.id, Report.status == current.value)
                .values(updated_at=utcnow(), **fields)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
        if result.rowcount == 0:
            raise StatusConflictError(report.id, current.value)
        await session.refresh(report)

    async def _commit(self, session: AsyncSession, error_code: str) -> None:
        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(str(e), error_code) from e
