"""
Pydantic request/response schemas for the /api/reports endpoints.
Response keys follow the camelCase shape the web front end reads.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from medprice.models.enums import ReportPriority, ReportStatus


# ── Request Schemas ──────────────────────────────────────────

class ReportCreate(BaseModel):
    """A user-submitted price correction report."""
    content: str = Field(min_length=1, max_length=5000)
    category: Optional[str] = None
    provider_id: Optional[int] = None
    price: Optional[int] = Field(default=None, ge=0)
    priority: ReportPriority = ReportPriority.NORMAL
    user_id: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: ReportStatus
    reason: Optional[str] = None
    actor_id: Optional[str] = None


class ManualReviewRequest(BaseModel):
    reason: str = Field(min_length=1)
    actor_id: Optional[str] = None


# ── Response Schemas ─────────────────────────────────────────

class Snapshot(BaseModel):
    """The fields compared by the before/after diff."""
    status: Optional[str] = None
    memo: Optional[str] = None


class ReportSummary(BaseModel):
    id: int
    category: Optional[str] = None
    status: str
    priority: str
    content: Optional[str] = None
    provider_id: Optional[int] = None
    price: Optional[int] = None
    anomaly_score: Optional[float] = None
    duplicate_score: Optional[float] = None
    recommendation: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReportListResponse(BaseModel):
    ok: bool = True
    data: list[ReportSummary]


class ReportLogEntry(BaseModel):
    id: int
    report_id: int
    actor_id: Optional[str] = None
    old_status: Optional[str] = None
    new_status: str
    auto: bool
    reason: Optional[str] = None
    detail: Optional[dict] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReportLogListResponse(BaseModel):
    ok: bool = True
    data: list[ReportLogEntry]


class TransitionResponse(BaseModel):
    ok: bool = True
    status: str
    old_status: str = Field(serialization_alias="oldStatus")


class AutoProcessResponse(BaseModel):
    ok: bool = True
    status: str
    diff_summary: str = Field(serialization_alias="diffSummary")
    before: Snapshot
    after: Snapshot
    auto_score: float = Field(serialization_alias="autoScore")
    duplicate_score: float = Field(serialization_alias="duplicateScore")
    recommendation: str
    explanation: str = ""


class DiffLine(BaseModel):
    type: str
    old_line: str = Field(serialization_alias="oldLine")
    new_line: str = Field(serialization_alias="newLine")


class DiffResponse(BaseModel):
    ok: bool = True
    summary: str
    before: Optional[Snapshot] = None
    after: Optional[Snapshot] = None
    memo_diff: list[DiffLine] = Field(default_factory=list, serialization_alias="memoDiff")


class ReportStatsResponse(BaseModel):
    ok: bool = True
    total: int
    by_status: dict[str, int] = Field(serialization_alias="byStatus")
    auto_runs_7d: int = Field(serialization_alias="autoRuns7d")
    auto_done_7d: int = Field(serialization_alias="autoDone7d")
    overridden_7d: int = Field(serialization_alias="overridden7d")
    override_rate: float = Field(serialization_alias="overrideRate")


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: Optional[str] = None
