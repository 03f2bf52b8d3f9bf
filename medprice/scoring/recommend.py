"""
Recommendation combinator and next-status mapping.
"""

from pydantic import BaseModel

from medprice.models.enums import RecommendationLevel, ReportStatus
from medprice.scoring.auto_score import AutoScoreResult

BLOCK_DUPLICATE_SCORE = 60
RECOMMENDED_AUTO_SCORE = 80
POSSIBLE_AUTO_SCORE = 50


class Recommendation(BaseModel):
    level: RecommendationLevel
    message: str


def evaluate_auto_recommendation(auto_score: float, duplicate_score: float) -> Recommendation:
    """Duplicate blocking takes precedence over any auto score."""
    if duplicate_score >= BLOCK_DUPLICATE_SCORE:
        return Recommendation(
            level=RecommendationLevel.BLOCKED,
            message="Likely duplicate report; automatic processing is blocked.",
        )
    if auto_score >= RECOMMENDED_AUTO_SCORE:
        return Recommendation(
            level=RecommendationLevel.RECOMMENDED,
            message="Automatic processing is strongly recommended.",
        )
    if auto_score >= POSSIBLE_AUTO_SCORE:
        return Recommendation(
            level=RecommendationLevel.POSSIBLE,
            message="Automatic processing is possible.",
        )
    return Recommendation(
        level=RecommendationLevel.NOT_RECOMMENDED,
        message="Automatic processing is not recommended.",
    )


def next_status_for(recommendation: Recommendation, auto_result: AutoScoreResult) -> ReportStatus:
    """Only a recommended run that also clears the weighted threshold auto-resolves."""
    if recommendation.level == RecommendationLevel.RECOMMENDED and auto_result.auto:
        return ReportStatus.AUTO_DONE
    return ReportStatus.MANUAL_REQUIRED
