"""
Python enums for report workflow columns.
Values are stored verbatim in the database; do not rename them.
"""

from enum import Enum


class ReportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    MANUAL_REQUIRED = "manual_required"
    AUTO_DONE = "auto_done"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ReportPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class RecommendationLevel(str, Enum):
    """Outcome of combining the auto score with the duplicate score."""
    BLOCKED = "blocked"
    RECOMMENDED = "recommended"
    POSSIBLE = "possible"
    NOT_RECOMMENDED = "not_recommended"


class ReportCategory(str, Enum):
    PRICE_ERROR = "price_error"
    INFO_UPDATE = "info_update"
    OPERATION_CHANGE = "operation_change"
    OTHER = "other"


class ListFilter(str, Enum):
    ALL = "all"
    AUTO = "auto"
    COMPLETED = "completed"


class ListSort(str, Enum):
    LATEST = "latest"
    PRIORITY = "priority"
