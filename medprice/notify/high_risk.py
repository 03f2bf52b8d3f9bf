"""
High-risk report alert.
"""

from html import escape
from typing import Optional

from medprice.config import settings
from medprice.notify.email import AdminMailer


def build_high_risk_mail(report_id: int, anomaly_score: Optional[float]) -> tuple[str, str]:
    subject = f"[ALERT] High-risk report submitted (#{report_id})"
    link = f"{settings.APP_BASE_URL.rstrip('/')}/admin/reports/{report_id}"
    score = "-" if anomaly_score is None else escape(str(anomaly_score))
    html = (
        "<h3>A high-risk report needs manual review</h3>"
        f"<p><b>Report ID:</b> {report_id}</p>"
        f"<p><b>Anomaly score:</b> {score}</p>"
        f'<p>Open in the admin console: <a href="{escape(link)}">{escape(link)}</a></p>'
    )
    return subject, html


async def notify_high_risk(mailer: AdminMailer, report_id: int, anomaly_score: Optional[float]) -> bool:
    subject, html = build_high_risk_mail(report_id, anomaly_score)
    return await mailer.send_admin_mail(subject, html, kind="high_risk")
