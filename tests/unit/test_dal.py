"""Unit tests for repositories against a mocked AsyncSession."""

from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace

from flowline.dal.approvals import ApprovalStepRepository
from flowline.dal.audit import AuditRepository
from flowline.dal.employees import DelegationRepository
from flowline.dal.follow_ups import FollowUpRepository
from flowline.dal.notifications import NotificationRepository
from flowline.dal.workflow_rules import ExecutionLogRepository, WorkflowRuleRepository
from flowline.storage.entities import ApprovalStepStatus
from tests.helpers.db import execute_result

NOW = datetime(2026, 3, 10, 8, 0, tzinfo=UTC)


class TestApprovalStepRepository:
    async def test_add_creates_pending_step(self, mock_session):
        step = await ApprovalStepRepository(mock_session).add("mirv", "mi-1", 2, "site_manager")

        assert (step.level, step.approver_role, step.status) == (2, "site_manager", "pending")
        mock_session.add.assert_called_once_with(step)
        mock_session.flush.assert_awaited_once()

    async def test_decide_wins_when_row_updated(self, mock_session):
        mock_session.execute.return_value = execute_result(rowcount=1)
        repo = ApprovalStepRepository(mock_session)
        assert await repo.decide("step-1", ApprovalStepStatus.APPROVED, "wm", None, NOW)

    async def test_decide_loses_when_already_decided(self, mock_session):
        mock_session.execute.return_value = execute_result(rowcount=0)
        repo = ApprovalStepRepository(mock_session)
        assert not await repo.decide("step-1", ApprovalStepStatus.REJECTED, "wm", "no", NOW)

    async def test_skip_returns_count(self, mock_session):
        mock_session.execute.return_value = execute_result(rowcount=2)
        repo = ApprovalStepRepository(mock_session)
        assert await repo.skip_pending_after("mirv", "mi-1", 1) == 2

    async def test_existing_levels(self, mock_session):
        mock_session.execute.return_value = execute_result(scalars=[1, 2])
        assert await ApprovalStepRepository(mock_session).existing_levels("mirv", "mi-1") == {1, 2}


class TestDelegationRepository:
    async def test_has_active_delegation(self, mock_session):
        mock_session.execute.return_value = execute_result(first=("rule", "employee"))
        repo = DelegationRepository(mock_session)
        assert await repo.has_active_delegation("clerk", "site_manager", "mirv", date(2026, 3, 10))

    async def test_no_delegation(self, mock_session):
        mock_session.execute.return_value = execute_result(first=None)
        repo = DelegationRepository(mock_session)
        today = date(2026, 3, 10)
        assert not await repo.has_active_delegation("clerk", "site_manager", "mirv", today)

    async def test_delegated_roles(self, mock_session):
        rows = [
            (SimpleNamespace(scope="all"), SimpleNamespace(system_role="site_manager")),
            (SimpleNamespace(scope="mrrv"), SimpleNamespace(system_role="warehouse_manager")),
        ]
        mock_session.execute.return_value = execute_result(rows=rows)
        roles = await DelegationRepository(mock_session).delegated_roles("clerk", date(2026, 3, 10))
        assert roles == [("site_manager", "all"), ("warehouse_manager", "mrrv")]


class TestWorkflowRuleRepositories:
    async def test_set_next_run(self, mock_session):
        await WorkflowRuleRepository(mock_session).set_next_run("rule-1", NOW, NOW)
        mock_session.execute.assert_awaited_once()

    async def test_execution_log(self, mock_session):
        entry = await ExecutionLogRepository(mock_session).add(
            rule_id="rule-1",
            event_type="scheduled:rule_triggered",
            entity_type="mrrv",
            entity_id="rule-1",
            success=False,
            event_data={"type": "scheduled:rule_triggered"},
            actions_run=[{"type": "webhook", "status": "failed", "error": "down"}],
            error="down",
        )
        assert entry.matched is True
        assert entry.error == "down"
        mock_session.add.assert_called_once_with(entry)


class TestWriters:
    async def test_audit_record(self, mock_session):
        entry = await AuditRepository(mock_session).record(
            table_name="mirv",
            record_id="mi-1",
            action="update",
            new_values={"status": "approved"},
            performed_by_id="pd",
        )
        assert entry.new_values == {"status": "approved"}
        assert entry.old_values is None
        mock_session.flush.assert_awaited_once()

    async def test_notification_exists_since(self, mock_session):
        mock_session.execute.return_value = execute_result(first=("n-1",))
        repo = NotificationRepository(mock_session)
        assert await repo.exists_since("mirv", "mi-1", "SLA Breached", NOW)

    async def test_gate_pass_with_items(self, mock_session):
        gate_pass = await FollowUpRepository(mock_session).create_gate_pass(
            [{"item_id": "item-1", "quantity": Decimal("4"), "uom_id": "uom-ea"}],
            gate_pass_number="GP-2026-00001",
            pass_type="outbound",
            status="draft",
        )
        assert gate_pass.gate_pass_number == "GP-2026-00001"
        assert [i.item_id for i in gate_pass.items] == ["item-1"]
        mock_session.add.assert_called_once_with(gate_pass)

    async def test_first_project_warehouse_without_project(self, mock_session):
        assert await FollowUpRepository(mock_session).first_project_warehouse(None) is None
        mock_session.execute.assert_not_awaited()
