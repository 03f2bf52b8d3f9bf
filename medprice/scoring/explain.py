"""
Human-readable explanation of an auto-process decision, stored as the log reason.
"""

from typing import Optional

from medprice.models.enums import ReportPriority


def generate_explanation(
    auto_score: float,
    duplicate_score: float,
    content_length: int,
    priority: Optional[str] = None,
) -> str:
    parts = []

    if auto_score >= 80:
        parts.append("Auto-process score is high; the report suits automatic processing.")
    elif auto_score >= 50:
        parts.append("Auto-process score is above the baseline; automatic processing is possible.")
    else:
        parts.append("Auto-process score is low and misses the automatic processing bar.")

    if duplicate_score >= 60:
        parts.append("A likely duplicate was found, which blocks automatic processing.")
    elif duplicate_score >= 30:
        parts.append("Some similar reports were found but not enough to block.")
    else:
        parts.append("Duplicate risk is low.")

    if content_length < 10:
        parts.append("The report text is too short.")
    elif content_length < 30:
        parts.append("The report text is short but acceptable.")
    else:
        parts.append("The report text is specific enough.")

    if priority == ReportPriority.HIGH.value:
        parts.append("Priority is HIGH, which limits automatic processing.")
    else:
        parts.append(f"Priority is {priority or ReportPriority.NORMAL.value} and does not affect the decision.")

    return " ".join(parts)
