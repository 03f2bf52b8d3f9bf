"""
/api/reports endpoints.
Report intake, listing, admin transitions, auto-processing and diffs.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.config import settings
from medprice.dependencies import get_db, get_pipeline, verify_api_key
from medprice.errors import InvalidIdError, ReportError, ReportNotFoundError
from medprice.models.enums import ListFilter, ListSort, ReportStatus
from medprice.models.tables import Report, ReportLog
from medprice.observability.metrics import reports_submitted_total
from medprice.pipeline.diff import NO_CHANGES, compute_line_diff
from medprice.pipeline.orchestrator import AutoProcessPipeline
from medprice.pipeline.transitions import apply_manual_transition
from medprice.schemas.reports import (
    AutoProcessResponse,
    DiffResponse,
    ErrorResponse,
    ManualReviewRequest,
    ReportCreate,
    ReportListResponse,
    ReportLogEntry,
    ReportLogListResponse,
    ReportStatsResponse,
    ReportSummary,
    Snapshot,
    StatusUpdateRequest,
    TransitionResponse,
)
from medprice.scoring.classifier import auto_classify
from medprice.services.stats import get_report_stats

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

PRIORITY_RANK = {"high": 3, "normal": 2, "low": 1}


def parse_report_id(raw_id: str) -> int:
    """Path ids arrive as text so a bad id yields INVALID_ID rather than a 422."""
    try:
        report_id = int(raw_id)
    except (TypeError, ValueError):
        raise InvalidIdError(raw_id)
    if report_id <= 0:
        raise InvalidIdError(raw_id)
    return report_id


async def _get_report(session: AsyncSession, raw_id: str) -> Report:
    report_id = parse_report_id(raw_id)
    report = await session.get(Report, report_id)
    if report is None:
        raise ReportNotFoundError(report_id)
    return report


# ── Listing & intake ─────────────────────────────────────────

@router.get("", response_model=ReportListResponse)
async def list_reports(
    filter_: ListFilter = Query(ListFilter.ALL, alias="filter"),
    sort: ListSort = Query(ListSort.LATEST),
    limit: int = Query(100, ge=1, le=500),
    session: AsyncSession = Depends(get_db),
):
    """List active reports. filter=auto shows pending ones, completed shows finished ones."""
    query = select(Report).where(Report.is_active.is_(True))

    if filter_ == ListFilter.AUTO:
        query = query.where(Report.status == ReportStatus.PENDING.value)
    elif filter_ == ListFilter.COMPLETED:
        query = query.where(
            Report.status.in_([ReportStatus.COMPLETED.value, ReportStatus.AUTO_DONE.value])
        )

    if sort == ListSort.PRIORITY:
        query = query.order_by(
            case(PRIORITY_RANK, value=Report.priority, else_=0).desc(),
            Report.updated_at.desc(),
        )
    else:
        query = query.order_by(Report.updated_at.desc(), Report.id.desc())

    result = await session.execute(query.limit(limit))
    reports = result.scalars().all()
    return ReportListResponse(data=[ReportSummary.model_validate(r) for r in reports])


@router.post("", response_model=ReportSummary, status_code=status.HTTP_201_CREATED)
async def create_report(
    body: ReportCreate,
    session: AsyncSession = Depends(get_db),
):
    """Submit a report. Missing categories are filled by the keyword classifier."""
    category = body.category or auto_classify(body.content).value
    report = Report(
        user_id=body.user_id,
        provider_id=body.provider_id,
        category=category,
        content=body.content,
        price=body.price,
        priority=body.priority.value,
        status=ReportStatus.PENDING.value,
    )
    session.add(report)
    await session.commit()

    reports_submitted_total.labels(category=category).inc()
    logger.info(
        "report_submitted",
        report_id=report.id,
        provider_id=report.provider_id,
        category=category,
        classified=body.category is None,
    )

    if settings.AUTO_ENQUEUE_ON_CREATE:
        try:
            from medprice.worker.jobs import enqueue_auto_process
            enqueue_auto_process(report.id)
        except Exception as enqueue_err:
            # Redis unavailable; the report is still accepted
            logger.warning("enqueue_failed", report_id=report.id, error=str(enqueue_err))

    return ReportSummary.model_validate(report)


@router.get("/stats", response_model=ReportStatsResponse)
async def report_stats(session: AsyncSession = Depends(get_db)):
    """Status counts and last-week auto-processing outcomes."""
    return ReportStatsResponse(**await get_report_stats(session))


# ── Single report ────────────────────────────────────────────

@router.get("/{report_id}", response_model=ReportSummary)
async def get_report(report_id: str, session: AsyncSession = Depends(get_db)):
    return ReportSummary.model_validate(await _get_report(session, report_id))


@router.get("/{report_id}/logs", response_model=ReportLogListResponse)
async def get_report_logs(report_id: str, session: AsyncSession = Depends(get_db)):
    """Full audit trail, newest first."""
    report = await _get_report(session, report_id)
    result = await session.execute(
        select(ReportLog)
        .where(ReportLog.report_id == report.id)
        .order_by(ReportLog.id.desc())
    )
    return ReportLogListResponse(
        data=[ReportLogEntry.model_validate(log) for log in result.scalars().all()]
    )


@router.api_route(
    "/{report_id}/auto",
    methods=["POST", "GET"],
    response_model=AutoProcessResponse,
    dependencies=[Depends(verify_api_key)],
)
async def auto_process_report(
    report_id: str,
    session: AsyncSession = Depends(get_db),
    pipeline: AutoProcessPipeline = Depends(get_pipeline),
):
    """Run the auto-process pipeline on one report."""
    result = await pipeline.process(session, parse_report_id(report_id))
    return result.to_response()


@router.get("/{report_id}/diff", response_model=DiffResponse)
async def get_report_diff(report_id: str, session: AsyncSession = Depends(get_db)):
    """Before/after snapshot stored by the most recent automatic run."""
    parsed_id = parse_report_id(report_id)
    result = await session.execute(
        select(ReportLog)
        .where(ReportLog.report_id == parsed_id, ReportLog.auto.is_(True))
        .order_by(ReportLog.id.desc())
        .limit(1)
    )
    log = result.scalar_one_or_none()
    if log is None or not log.detail:
        raise ReportError(f"No automatic diff recorded for report {parsed_id}", "NO_DIFF_FOUND", 404)

    detail = log.detail
    before = Snapshot(**detail["before"]) if detail.get("before") else None
    after = Snapshot(**detail["after"]) if detail.get("after") else None
    return DiffResponse(
        summary=detail.get("diff_summary") or NO_CHANGES,
        before=before,
        after=after,
        memo_diff=compute_line_diff(
            before.memo if before else None,
            after.memo if after else None,
        ),
    )


# ── Admin transitions ────────────────────────────────────────

async def _manual_transition(
    session: AsyncSession,
    raw_id: str,
    new_status: ReportStatus,
    reason: str,
    actor_id: Optional[str],
) -> TransitionResponse:
    old_status, report = await apply_manual_transition(
        session, parse_report_id(raw_id), new_status, reason, actor_id
    )
    return TransitionResponse(status=report.status, old_status=old_status)


@router.patch(
    "/{report_id}/status",
    response_model=TransitionResponse,
    dependencies=[Depends(verify_api_key)],
)
async def update_report_status(
    report_id: str,
    body: StatusUpdateRequest,
    session: AsyncSession = Depends(get_db),
):
    return await _manual_transition(
        session, report_id, body.status, body.reason or "Manual status change by admin", body.actor_id
    )


@router.post(
    "/{report_id}/manual",
    response_model=TransitionResponse,
    dependencies=[Depends(verify_api_key)],
)
async def send_to_manual_review(
    report_id: str,
    body: ManualReviewRequest,
    session: AsyncSession = Depends(get_db),
):
    reason = body.reason.strip()
    if not reason:
        raise ReportError("A reason is required", "REASON_REQUIRED", 400)
    return await _manual_transition(
        session, report_id, ReportStatus.MANUAL_REQUIRED, f"Manual review: {reason}", body.actor_id
    )


@router.post(
    "/{report_id}/complete",
    response_model=TransitionResponse,
    dependencies=[Depends(verify_api_key)],
)
async def complete_report(
    report_id: str,
    actor_id: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db),
):
    return await _manual_transition(
        session, report_id, ReportStatus.COMPLETED, "Marked completed by admin", actor_id
    )
