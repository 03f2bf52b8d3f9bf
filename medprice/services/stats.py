"""
Report queue and auto-processing statistics.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.models.enums import ReportStatus
from medprice.models.tables import Report, ReportLog
from medprice.observability.metrics import pending_reports

STATS_WINDOW_DAYS = 7


async def get_report_stats(session: AsyncSession, now: Optional[datetime] = None) -> dict:
    """Status counts for active reports plus auto-process outcomes over the last week."""
    result = await session.execute(
        select(Report.status, func.count(Report.id))
        .where(Report.is_active.is_(True))
        .group_by(Report.status)
    )
    counts = {row[0]: row[1] for row in result.all()}
    by_status = {s.value: counts.get(s.value, 0) for s in ReportStatus}

    since = (now or datetime.now(timezone.utc)) - timedelta(days=STATS_WINDOW_DAYS)

    auto_runs = await session.scalar(
        select(func.count(ReportLog.id)).where(
            ReportLog.auto.is_(True),
            ReportLog.created_at >= since,
        )
    )
    auto_done = await session.scalar(
        select(func.count(ReportLog.id)).where(
            ReportLog.auto.is_(True),
            ReportLog.new_status == ReportStatus.AUTO_DONE.value,
            ReportLog.old_status != ReportStatus.AUTO_DONE.value,
            ReportLog.created_at >= since,
        )
    )
    # An override is an admin moving an auto_done report anywhere but completed
    overridden = await session.scalar(
        select(func.count(ReportLog.id)).where(
            ReportLog.auto.is_(False),
            ReportLog.old_status == ReportStatus.AUTO_DONE.value,
            ReportLog.new_status != ReportStatus.COMPLETED.value,
            ReportLog.created_at >= since,
        )
    )

    pending_reports.set(by_status[ReportStatus.PENDING.value])

    auto_done = auto_done or 0
    overridden = overridden or 0
    return {
        "total": sum(counts.values()),
        "by_status": by_status,
        "auto_runs_7d": auto_runs or 0,
        "auto_done_7d": auto_done,
        "overridden_7d": overridden,
        "override_rate": round(overridden / auto_done, 4) if auto_done else 0.0,
    }
