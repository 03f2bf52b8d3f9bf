"""
Report status state machine.

Every status write goes through transition_report(), which checks the
allowed-transition table and performs a compare-and-swap on the prior status
so two concurrent writers cannot silently overwrite each other.
"""

from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.errors import (
    InvalidTransitionError,
    PersistenceError,
    ReportNotFoundError,
    StatusConflictError,
)
from medprice.models.enums import ReportStatus
from medprice.models.tables import Report, ReportLog, utcnow
from medprice.observability.metrics import manual_transitions_total
from medprice.pipeline.feedback import run_trust_feedback

logger = structlog.get_logger(__name__)


ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({
        ReportStatus.PROCESSING,
        ReportStatus.AUTO_DONE,
        ReportStatus.MANUAL_REQUIRED,
        ReportStatus.REJECTED,
    }),
    ReportStatus.PROCESSING: frozenset({
        ReportStatus.AUTO_DONE,
        ReportStatus.MANUAL_REQUIRED,
    }),
    ReportStatus.AUTO_DONE: frozenset({
        ReportStatus.COMPLETED,
        ReportStatus.REJECTED,
        ReportStatus.MANUAL_REQUIRED,
    }),
    ReportStatus.MANUAL_REQUIRED: frozenset({
        ReportStatus.COMPLETED,
        ReportStatus.REJECTED,
    }),
    ReportStatus.COMPLETED: frozenset(),
    ReportStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Statuses the auto-process pipeline may move a report out of
AUTO_SOURCE_STATUSES = frozenset({ReportStatus.PENDING, ReportStatus.PROCESSING})


def is_allowed(old_status: ReportStatus, new_status: ReportStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(old_status, frozenset())


def validate_transition(old_status: str, new_status: str) -> None:
    try:
        old, new = ReportStatus(old_status), ReportStatus(new_status)
    except ValueError:
        raise InvalidTransitionError(old_status, new_status)
    if not is_allowed(old, new):
        raise InvalidTransitionError(old.value, new.value)


async def transition_report(
    session: AsyncSession,
    report: Report,
    new_status: ReportStatus,
    expected_status: Optional[str] = None,
    **fields,
) -> Report:
    """
    Move a report to new_status if it is still in expected_status.
    Extra keyword fields are written in the same UPDATE. Does not commit.
    """
    expected = expected_status or report.status
    validate_transition(expected, new_status.value)

    try:
        result = await session.execute(
            update(Report)
            .where(Report.id == report.id, Report.status == expected)
            .values(status=new_status.value, updated_at=utcnow(), **fields)
            .execution_options(synchronize_session=False)
        )
    except SQLAlchemyError as e:
        logger.error("status_update_failed", report_id=report.id, error=str(e))
        raise PersistenceError(str(e)) from e

    if result.rowcount == 0:
        logger.warning(
            "status_conflict",
            report_id=report.id,
            expected_status=expected,
            new_status=new_status.value,
        )
        raise StatusConflictError(report.id, expected)

    await session.refresh(report)
    return report


async def append_report_log(
    session: AsyncSession,
    report_id: int,
    old_status: Optional[str],
    new_status: str,
    auto: bool,
    reason: Optional[str] = None,
    detail: Optional[dict] = None,
    actor_id: Optional[str] = None,
) -> ReportLog:
    """Insert one audit row. Logs are never updated or deleted."""
    log = ReportLog(
        report_id=report_id,
        actor_id=actor_id,
        old_status=old_status,
        new_status=new_status,
        auto=auto,
        reason=reason,
        detail=detail,
    )
    session.add(log)
    try:
        await session.flush()
    except SQLAlchemyError as e:
        logger.error("report_log_write_failed", report_id=report_id, error=str(e))
        raise PersistenceError(str(e), "LOG_WRITE_FAILED") from e
    return log


async def apply_manual_transition(
    session: AsyncSession,
    report_id: int,
    new_status: ReportStatus,
    reason: str,
    actor_id: Optional[str] = None,
) -> tuple[str, Report]:
    """
    Admin status change: validate, CAS-update, log, commit, then run trust feedback.
    Returns (old_status, report).
    """
    report = await session.get(Report, report_id)
    if report is None:
        raise ReportNotFoundError(report_id)

    old_status = report.status
    await transition_report(session, report, new_status, expected_status=old_status)
    await append_report_log(
        session,
        report_id=report.id,
        old_status=old_status,
        new_status=new_status.value,
        auto=False,
        reason=reason,
        actor_id=actor_id,
    )
    await session.commit()

    manual_transitions_total.labels(old_status=old_status, new_status=new_status.value).inc()
    logger.info(
        "manual_transition_applied",
        report_id=report.id,
        old_status=old_status,
        new_status=new_status.value,
        actor_id=actor_id,
    )

    try:
        await run_trust_feedback(session, report)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(str(e), "TRUST_UPDATE_FAILED") from e

    return old_status, report
