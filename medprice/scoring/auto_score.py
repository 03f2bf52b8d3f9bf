"""
Auto-process scoring - weighted additive model over report completeness.

Each present signal adds a fixed base contribution scaled by one of the
admin-tunable weights. The acceptance threshold is scaled by the priority
weight, so raising it makes auto-approval harder.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel

from medprice.config import settings
from medprice.schemas.weights import AutoWeights


class AutoScoreResult(BaseModel):
    """Auto-process score for a single report."""
    auto_score: float = 0.0
    auto: bool = False
    threshold: int = 70
    reason: str = ""
    reasons: list[str] = []
    weights: AutoWeights = AutoWeights()


# ── Base contributions (before weighting) ────────────────────
CATEGORY_POINTS = 20
CONTENT_LONG_POINTS = 30
CONTENT_SHORT_POINTS = 15
PROVIDER_POINTS = 20
PRICE_POINTS = 30

CONTENT_LONG_MIN = 30
CONTENT_SHORT_MIN = 10

THRESHOLD_MIN = 40
THRESHOLD_MAX = 90


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calc_threshold(priority_weight: float, base: Optional[int] = None) -> int:
    """Acceptance threshold: clamp(round(base * priority_weight), 40, 90)."""
    base = settings.AUTO_BASE_THRESHOLD if base is None else base
    # Half-up rounding, not banker's rounding
    rounded = math.floor(base * priority_weight + 0.5)
    return int(_clamp(rounded, THRESHOLD_MIN, THRESHOLD_MAX))


def calc_auto_process_score(
    report: Any,
    weights: Optional[AutoWeights] = None,
) -> AutoScoreResult:
    """
    Score a report for automatic processing.

    `report` is anything exposing category/content/provider_id/price
    attributes (an ORM Report or a plain namespace). Missing fields add
    nothing; this function does not raise on absent data.
    """
    w = weights or AutoWeights()
    score = 0.0
    reasons: list[str] = []

    # 1) Category
    if getattr(report, "category", None):
        score += CATEGORY_POINTS * w.priority
        reasons.append("category provided")

    # 2) Content length
    content = getattr(report, "content", None)
    if isinstance(content, str):
        length = len(content)
        if length >= CONTENT_LONG_MIN:
            score += CONTENT_LONG_POINTS * w.similarity
            reasons.append(f"content is detailed ({CONTENT_LONG_MIN}+ chars)")
        elif length >= CONTENT_SHORT_MIN:
            score += CONTENT_SHORT_POINTS * w.similarity
            reasons.append(f"content has {CONTENT_SHORT_MIN}+ chars")

    # 3) Provider linked
    if getattr(report, "provider_id", None):
        score += PROVIDER_POINTS * w.provider
        reasons.append("provider selected")

    # 4) Price present
    if getattr(report, "price", None):
        score += PRICE_POINTS * w.similarity
        reasons.append("price included")

    score = round(_clamp(score, 0.0, 100.0), 2)
    threshold = calc_threshold(w.priority)
    auto = score >= threshold

    return AutoScoreResult(
        auto_score=score,
        auto=auto,
        threshold=threshold,
        reason=(
            "Meets the automatic processing threshold."
            if auto
            else "Auto-process score is below the threshold."
        ),
        reasons=reasons,
        weights=w,
    )
