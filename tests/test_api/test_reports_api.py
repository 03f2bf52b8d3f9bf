"""
Tests for the /api/reports endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from medprice.dependencies import get_db
from medprice.main import app
from medprice.models.tables import Provider, Report, ReportLog

pytestmark = pytest.mark.anyio

CONTENT = "도수치료 1회 가격이 8만원에서 12만원으로 인상되었습니다. 확인 부탁드립니다."


@pytest.fixture
def stamp():
    base = datetime.now(timezone.utc)

    def _stamp(minutes: int = 0) -> datetime:
        return base - timedelta(minutes=minutes)
    return _stamp


@pytest.fixture
async def clinic(seed):
    (row,) = await seed(Provider(name="서초 연세의원", region="서울"))
    return row


@pytest.fixture
def new_report(seed, clinic):
    async def _new(**fields):
        values = {
            "provider_id": clinic.id,
            "category": "price_error",
            "content": CONTENT,
            "price": 120000,
            "status": "pending",
            "priority": "normal",
        }
        values.update(fields)
        (row,) = await seed(Report(**values))
        return row
    return _new


class TestAutoEndpoint:

    async def test_auto_process_response(self, client, new_report):
        report = await new_report()
        resp = await client.post(f"/api/reports/{report.id}/auto")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["status"] == "auto_done"
        assert body["diffSummary"] == "status(pending→auto_done)"
        assert body["before"] == {"status": "pending", "memo": None}
        assert body["after"]["status"] == "auto_done"
        assert body["autoScore"] == 100
        assert body["duplicateScore"] == 0
        assert body["recommendation"] == "recommended"
        assert body["explanation"]

    async def test_get_method_also_runs(self, client, new_report):
        report = await new_report()
        resp = await client.get(f"/api/reports/{report.id}/auto")
        assert resp.status_code == 200

    @pytest.mark.parametrize("raw_id", ["abc", "0", "-3", "1.5"])
    async def test_invalid_id(self, client, raw_id):
        resp = await client.post(f"/api/reports/{raw_id}/auto")
        assert resp.status_code == 400
        body = resp.json()
        assert body["ok"] is False
        assert body["error"] == "INVALID_ID"

    async def test_unknown_report(self, client):
        resp = await client.post("/api/reports/999/auto")
        assert resp.status_code == 404
        assert resp.json()["error"] == "REPORT_NOT_FOUND"

    async def test_high_anomaly_blocked(self, client, new_report, mailer):
        report = await new_report(anomaly_score=90)
        resp = await client.post(f"/api/reports/{report.id}/auto")

        assert resp.status_code == 409
        assert resp.json()["error"] == "HIGH_ANOMALY_BLOCKED"
        assert len(mailer.sent) == 1

        detail = await client.get(f"/api/reports/{report.id}")
        assert detail.json()["status"] == "pending"

    async def test_terminal_report_refused(self, client, new_report):
        report = await new_report(status="rejected")
        resp = await client.post(f"/api/reports/{report.id}/auto")
        assert resp.status_code == 409
        assert resp.json()["error"] == "INVALID_TRANSITION"

    async def test_commit_failure_is_update_failed(self, client, new_report, session_factory):
        report = await new_report()

        async def _broken_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        async def _get_db():
            async with session_factory() as s:
                s.commit = _broken_commit
                yield s

        app.dependency_overrides[get_db] = _get_db
        resp = await client.post(f"/api/reports/{report.id}/auto")

        assert resp.status_code == 500
        body = resp.json()
        assert body["ok"] is False
        assert body["error"] == "UPDATE_FAILED"
        assert "database is locked" in body["message"]

    async def test_error_body_is_documented(self, client):
        schema = (await client.get("/openapi.json")).json()
        responses = schema["paths"]["/api/reports/{report_id}/auto"]["post"]["responses"]
        assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
        error = schema["components"]["schemas"]["ErrorResponse"]
        assert set(error["properties"]) == {"ok", "error", "message"}


class TestDiffEndpoint:

    async def test_no_diff_before_auto_run(self, client, new_report):
        report = await new_report()
        resp = await client.get(f"/api/reports/{report.id}/diff")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NO_DIFF_FOUND"

    async def test_diff_after_auto_run(self, client, new_report):
        report = await new_report()
        await client.post(f"/api/reports/{report.id}/auto")

        resp = await client.get(f"/api/reports/{report.id}/diff")
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"] == "status(pending→auto_done)"
        assert body["before"]["status"] == "pending"
        assert body["after"]["status"] == "auto_done"
        assert body["memoDiff"] == [{"type": "same", "oldLine": "", "newLine": ""}]

    async def test_manual_logs_are_not_diffs(self, client, new_report, seed):
        report = await new_report()
        await seed(ReportLog(report_id=report.id, old_status="pending", new_status="manual_required", auto=False))
        resp = await client.get(f"/api/reports/{report.id}/diff")
        assert resp.status_code == 404

    async def test_invalid_id(self, client):
        resp = await client.get("/api/reports/x/diff")
        assert resp.status_code == 400


class TestAdminTransitions:

    async def test_manual_review(self, client, new_report):
        report = await new_report()
        resp = await client.post(
            f"/api/reports/{report.id}/manual",
            json={"reason": "가격 근거 확인 필요", "actor_id": "admin-1"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "status": "manual_required", "oldStatus": "pending"}

        logs = (await client.get(f"/api/reports/{report.id}/logs")).json()["data"]
        assert len(logs) == 1
        assert logs[0]["auto"] is False
        assert logs[0]["reason"] == "Manual review: 가격 근거 확인 필요"
        assert logs[0]["actor_id"] == "admin-1"

    async def test_manual_review_needs_reason(self, client, new_report):
        report = await new_report()
        resp = await client.post(f"/api/reports/{report.id}/manual", json={"reason": "   "})
        assert resp.status_code == 400
        assert resp.json()["error"] == "REASON_REQUIRED"

    async def test_complete_after_auto(self, client, new_report):
        report = await new_report()
        await client.post(f"/api/reports/{report.id}/auto")

        resp = await client.post(f"/api/reports/{report.id}/complete")
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert resp.json()["oldStatus"] == "auto_done"

    async def test_patch_status(self, client, new_report):
        report = await new_report()
        resp = await client.patch(f"/api/reports/{report.id}/status", json={"status": "rejected"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"

    async def test_patch_invalid_transition(self, client, new_report):
        report = await new_report()
        resp = await client.patch(f"/api/reports/{report.id}/status", json={"status": "completed"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "INVALID_TRANSITION"

    async def test_patch_unknown_status_value(self, client, new_report):
        report = await new_report()
        resp = await client.patch(f"/api/reports/{report.id}/status", json={"status": "archived"})
        assert resp.status_code == 422


class TestListAndCreate:

    async def test_create_classifies_missing_category(self, client, clinic):
        resp = await client.post(
            "/api/reports",
            json={"content": "주소가 이전되었어요", "provider_id": clinic.id},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["category"] == "info_update"
        assert body["status"] == "pending"
        assert body["priority"] == "normal"

    async def test_create_keeps_given_category(self, client):
        resp = await client.post("/api/reports", json={"content": "기타 문의", "category": "other"})
        assert resp.status_code == 201
        assert resp.json()["category"] == "other"

    async def test_create_rejects_empty_content(self, client):
        resp = await client.post("/api/reports", json={"content": ""})
        assert resp.status_code == 422

    async def test_list_filters(self, client, new_report):
        pending = await new_report()
        done = await new_report(status="completed")
        await new_report(status="manual_required")

        all_ids = {r["id"] for r in (await client.get("/api/reports")).json()["data"]}
        assert len(all_ids) == 3

        auto = (await client.get("/api/reports", params={"filter": "auto"})).json()["data"]
        assert [r["id"] for r in auto] == [pending.id]

        completed = (await client.get("/api/reports", params={"filter": "completed"})).json()["data"]
        assert [r["id"] for r in completed] == [done.id]

    async def test_list_hides_inactive(self, client, new_report):
        await new_report(is_active=False)
        resp = await client.get("/api/reports")
        assert resp.json()["data"] == []

    async def test_list_priority_sort(self, client, new_report, stamp):
        low = await new_report(priority="low", updated_at=stamp(0))
        high = await new_report(priority="high", updated_at=stamp(30))
        normal = await new_report(priority="normal", updated_at=stamp(10))

        data = (await client.get("/api/reports", params={"sort": "priority"})).json()["data"]
        assert [r["id"] for r in data] == [high.id, normal.id, low.id]

    async def test_get_report(self, client, new_report):
        report = await new_report()
        resp = await client.get(f"/api/reports/{report.id}")
        assert resp.status_code == 200
        assert resp.json()["content"] == CONTENT


class TestStats:

    async def test_counts_and_override_rate(self, client, new_report):
        first = await new_report()
        second = await new_report(content="Clinic fee changed: massage therapy now costs more than listed")
        await new_report(status="manual_required", provider_id=None)

        await client.post(f"/api/reports/{first.id}/auto")
        await client.post(f"/api/reports/{second.id}/auto")
        await client.post(f"/api/reports/{first.id}/complete")
        await client.patch(f"/api/reports/{second.id}/status", json={"status": "rejected"})

        body = (await client.get("/api/reports/stats")).json()
        assert body["total"] == 3
        assert body["byStatus"]["completed"] == 1
        assert body["byStatus"]["rejected"] == 1
        assert body["byStatus"]["manual_required"] == 1
        assert body["autoRuns7d"] == 2
        assert body["autoDone7d"] == 2
        assert body["overridden7d"] == 1
        assert body["overrideRate"] == 0.5
