"""
Prometheus metrics for the price reporting service.
"""

from prometheus_client import Counter, Histogram, Gauge


# ── Report intake ────────────────────────────────────────────
reports_submitted_total = Counter(
    "reports_submitted_total",
    "Total reports submitted by users",
    ["category"],
)

# ── Auto-processing ──────────────────────────────────────────
auto_process_runs_total = Counter(
    "auto_process_runs_total",
    "Auto-process runs that reached a recommendation",
    ["recommendation", "status"],
)

auto_process_blocked_total = Counter(
    "auto_process_blocked_total",
    "Auto-process runs refused before scoring",
    ["reason"],
)

auto_process_failed_total = Counter(
    "auto_process_failed_total",
    "Auto-process runs aborted by an error",
    ["error_code"],
)

auto_process_duration_seconds = Histogram(
    "auto_process_duration_seconds",
    "Time to auto-process a single report end-to-end",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5],
)

auto_scores = Histogram(
    "auto_scores",
    "Distribution of auto-process scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

duplicate_scores = Histogram(
    "duplicate_scores",
    "Distribution of duplicate scores",
    buckets=[0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

# ── Admin review ─────────────────────────────────────────────
manual_transitions_total = Counter(
    "manual_transitions_total",
    "Status transitions applied by admins",
    ["old_status", "new_status"],
)

auto_overrides_total = Counter(
    "auto_overrides_total",
    "Auto-processed reports whose outcome an admin reversed",
)

pending_reports = Gauge(
    "pending_reports",
    "Reports waiting in the pending state at last stats read",
)

# ── Notifications ────────────────────────────────────────────
admin_notifications_total = Counter(
    "admin_notifications_total",
    "Admin alert mails attempted",
    ["kind", "outcome"],
)

# ── Worker ───────────────────────────────────────────────────
worker_jobs_active = Gauge(
    "worker_jobs_active",
    "Number of currently active worker jobs",
)
