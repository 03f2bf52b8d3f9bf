"""
Duplicate report detection.

Similarity is a crude character-set overlap, not an edit distance: it counts
characters of `a` that occur anywhere in `b`. Short strings sharing common
characters (Korean particles, digits) score high; callers should treat the
result as a heuristic.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.config import settings
from medprice.models.tables import Report


class DuplicateMatch(BaseModel):
    id: int
    similarity: float
    time_diff_minutes: int


class DuplicateResult(BaseModel):
    score: int = 0
    matched_count: int = 0
    matches: list[DuplicateMatch] = []
    top_similarity: float = 0.0
    message: str = "No similar reports"


MIN_SIMILARITY = 0.3


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    if not a or not b:
        return 0.0
    common = sum(1 for ch in a if ch in b)
    return common / max(len(a), len(b))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _similarity_points(similarity: float) -> int:
    if similarity >= 0.8:
        return 50
    if similarity >= 0.6:
        return 30
    if similarity >= 0.4:
        return 10
    return 0


def _recency_points(diff_minutes: int) -> int:
    if diff_minutes < 120:
        return 20
    if diff_minutes < 360:
        return 10
    return 0


def score_duplicates(
    content: Optional[str],
    created_at: datetime,
    candidates: Iterable[Any],
) -> DuplicateResult:
    """Score a report's content against candidate reports (id/content/created_at)."""
    score = 0
    matches: list[DuplicateMatch] = []
    created_at = _as_utc(created_at)

    for other in candidates:
        similarity = text_similarity(content, other.content)
        if similarity < MIN_SIMILARITY:
            continue

        diff_seconds = abs((created_at - _as_utc(other.created_at)).total_seconds())
        diff_minutes = round(diff_seconds / 60)

        matches.append(
            DuplicateMatch(
                id=other.id,
                similarity=round(similarity, 2),
                time_diff_minutes=diff_minutes,
            )
        )
        score += _similarity_points(similarity) + _recency_points(diff_minutes)

    score = min(score, 100)
    matches.sort(key=lambda m: m.similarity, reverse=True)

    return DuplicateResult(
        score=score,
        matched_count=len(matches),
        matches=matches,
        top_similarity=matches[0].similarity if matches else 0.0,
        message=(
            f"Found {len(matches)} similar report(s) for the same provider"
            if matches
            else "No similar reports"
        ),
    )


async def calc_duplicate_score(
    session: AsyncSession,
    report: Report,
    lookback_hours: Optional[int] = None,
    now: Optional[datetime] = None,
) -> DuplicateResult:
    """Compare a report with other reports for its provider inside the lookback window."""
    if report.provider_id is None:
        return DuplicateResult()

    lookback_hours = lookback_hours or settings.DUPLICATE_LOOKBACK_HOURS
    since = (now or datetime.now(timezone.utc)) - timedelta(hours=lookback_hours)

    result = await session.execute(
        select(Report.id, Report.content, Report.created_at).where(
            Report.id != report.id,
            Report.provider_id == report.provider_id,
            Report.created_at >= since,
        )
    )
    return score_duplicates(report.content, report.created_at, result.all())
