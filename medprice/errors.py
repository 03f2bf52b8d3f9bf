"""
Error types surfaced by the report endpoints.
Each carries a machine-readable code and the HTTP status it maps to.
"""

from typing import Optional


class ReportError(Exception):
    """Base error for report operations."""

    def __init__(
        self,
        message: str,
        error_code: str = "ERR_REPORT",
        status_code: int = 400,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidIdError(ReportError):
    def __init__(self, raw_id: str):
        super().__init__(f"Invalid report id: {raw_id!r}", "INVALID_ID", 400)


class ReportNotFoundError(ReportError):
    def __init__(self, report_id: int):
        super().__init__(f"Report {report_id} not found", "REPORT_NOT_FOUND", 404)


class InvalidTransitionError(ReportError):
    def __init__(self, old_status: str, new_status: str):
        self.old_status = old_status
        self.new_status = new_status
        super().__init__(
            f"Transition {old_status} -> {new_status} is not allowed",
            "INVALID_TRANSITION",
            409,
        )


class StatusConflictError(ReportError):
    """The report's status changed between our read and our write."""

    def __init__(self, report_id: int, expected_status: str):
        super().__init__(
            f"Report {report_id} is no longer in status {expected_status}",
            "STATUS_CONFLICT",
            409,
        )


class HighAnomalyBlockedError(ReportError):
    def __init__(self, report_id: int, anomaly_score: Optional[float]):
        self.anomaly_score = anomaly_score
        super().__init__(
            f"Report {report_id} has anomaly score {anomaly_score} and cannot be auto-processed",
            "HIGH_ANOMALY_BLOCKED",
            409,
        )


class PersistenceError(ReportError):
    """Database write failed; the driver message is passed through."""

    def __init__(self, message: str, error_code: str = "UPDATE_FAILED"):
        super().__init__(message, error_code, 500)


class UnauthorizedError(ReportError):
    def __init__(self):
        super().__init__("Invalid or missing API key", "UNAUTHORIZED", 401)
