"""
Tests for the report status state machine.
"""

import pytest
from sqlalchemy import select

from medprice.errors import InvalidTransitionError, ReportNotFoundError, StatusConflictError
from medprice.models.enums import ReportStatus
from medprice.models.tables import ReportLog
from medprice.pipeline.transitions import (
    TERMINAL_STATUSES,
    append_report_log,
    apply_manual_transition,
    is_allowed,
    transition_report,
    validate_transition,
)


class TestTransitionTable:

    @pytest.mark.parametrize(
        "old,new",
        [
            ("pending", "processing"),
            ("pending", "auto_done"),
            ("pending", "manual_required"),
            ("processing", "auto_done"),
            ("auto_done", "completed"),
            ("auto_done", "rejected"),
            ("auto_done", "manual_required"),
            ("manual_required", "completed"),
            ("manual_required", "rejected"),
        ],
    )
    def test_allowed(self, old, new):
        validate_transition(old, new)

    @pytest.mark.parametrize(
        "old,new",
        [
            ("pending", "completed"),
            ("completed", "auto_done"),
            ("rejected", "pending"),
            ("manual_required", "auto_done"),
            ("auto_done", "pending"),
            ("pending", "archived"),
        ],
    )
    def test_refused(self, old, new):
        with pytest.raises(InvalidTransitionError) as exc:
            validate_transition(old, new)
        assert exc.value.error_code == "INVALID_TRANSITION"
        assert exc.value.status_code == 409

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {ReportStatus.COMPLETED, ReportStatus.REJECTED}

    def test_no_self_transitions(self):
        for s in ReportStatus:
            assert not is_allowed(s, s)


@pytest.mark.anyio
class TestTransitionWrites:

    async def test_transition_updates_status(self, session, make_report):
        report = await make_report()
        await transition_report(session, report, ReportStatus.MANUAL_REQUIRED)
        await session.commit()
        assert report.status == "manual_required"

    async def test_stale_expected_status_conflicts(self, session, make_report):
        report = await make_report()
        with pytest.raises(StatusConflictError) as exc:
            # allowed edge, but the row is not in manual_required
            await transition_report(
                session, report, ReportStatus.COMPLETED, expected_status="manual_required"
            )
        assert exc.value.error_code == "STATUS_CONFLICT"
        await session.rollback()
        await session.refresh(report)
        assert report.status == "pending"

    async def test_second_writer_loses(self, session, make_report):
        report = await make_report()
        await transition_report(session, report, ReportStatus.AUTO_DONE, expected_status="pending")
        with pytest.raises(StatusConflictError):
            await transition_report(
                session, report, ReportStatus.MANUAL_REQUIRED, expected_status="pending"
            )

    async def test_invalid_edge_not_written(self, session, make_report):
        report = await make_report()
        with pytest.raises(InvalidTransitionError):
            await transition_report(session, report, ReportStatus.COMPLETED)
        assert report.status == "pending"

    async def test_append_log(self, session, make_report):
        report = await make_report()
        log = await append_report_log(
            session, report.id, "pending", "manual_required", auto=False, reason="check", actor_id="admin"
        )
        await session.commit()
        assert log.id is not None
        assert log.detail is None

    async def test_manual_transition_logs_and_returns_old(self, session, make_report):
        report = await make_report()
        old, updated = await apply_manual_transition(
            session, report.id, ReportStatus.MANUAL_REQUIRED, "needs a look", actor_id="admin-1"
        )
        assert old == "pending"
        assert updated.status == "manual_required"

        logs = (await session.execute(select(ReportLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].auto is False
        assert logs[0].actor_id == "admin-1"
        assert logs[0].reason == "needs a look"

    async def test_manual_transition_unknown_report(self, session):
        with pytest.raises(ReportNotFoundError):
            await apply_manual_transition(session, 404, ReportStatus.COMPLETED, "x")
