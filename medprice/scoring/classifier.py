"""
Keyword classifier for reports submitted without a category.
"""

from typing import Optional

from medprice.models.enums import ReportCategory

# Checked in order; first hit wins
CATEGORY_KEYWORDS: list[tuple[ReportCategory, tuple[str, ...]]] = [
    (ReportCategory.PRICE_ERROR, ("가격", "비용", "요금", "price", "cost", "fee")),
    (ReportCategory.INFO_UPDATE, ("주소", "위치", "옮겼", "이사", "address", "moved", "location")),
    (ReportCategory.OPERATION_CHANGE, ("시간", "휴무", "진료", "hours", "closed", "schedule")),
]


def auto_classify(content: Optional[str]) -> ReportCategory:
    text = (content or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return ReportCategory.OTHER
