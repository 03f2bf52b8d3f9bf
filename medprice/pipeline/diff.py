"""
Before/after snapshots and diffs for auto-process logging.
"""

from typing import Optional

from medprice.models.tables import Report
from medprice.schemas.reports import DiffLine, Snapshot

NO_CHANGES = "No changes"


def snapshot(report: Report) -> Snapshot:
    return Snapshot(status=report.status, memo=report.memo)


def build_diff_summary(before: Snapshot, after: Snapshot) -> str:
    """Field-level summary limited to memo and status."""
    changes = []
    if (before.memo or "") != (after.memo or ""):
        changes.append("memo changed")
    if before.status != after.status:
        changes.append(f"status({before.status or '-'}→{after.status or '-'})")
    return ", ".join(changes) if changes else NO_CHANGES


def compute_line_diff(old_text: Optional[str], new_text: Optional[str]) -> list[DiffLine]:
    """Positional line-by-line comparison; no alignment of inserted lines."""
    old_lines = (old_text or "").split("\n")
    new_lines = (new_text or "").split("\n")

    rows = []
    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else ""
        new_line = new_lines[i] if i < len(new_lines) else ""

        if old_line == new_line:
            kind = "same"
        elif not old_line:
            kind = "added"
        elif not new_line:
            kind = "removed"
        else:
            kind = "changed"
        rows.append(DiffLine(type=kind, old_line=old_line, new_line=new_line))
    return rows
