"""Unit tests for best-effort approval notifications."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from flowline.approvals.notifier import APPROVAL_NOTIFICATION_TYPE, ApprovalNotifier


def _repos(employees=(), create_error=None):
    employee_repo = MagicMock()
    employee_repo.list_active_by_role = AsyncMock(return_value=list(employees))
    notification_repo = MagicMock()
    notification_repo.create = AsyncMock(side_effect=create_error)
    return employee_repo, notification_repo


class TestApprovalNotifier:
    async def test_notify_role(self, mock_session):
        employee_repo, notification_repo = _repos(
            [SimpleNamespace(id="e1"), SimpleNamespace(id="e2")]
        )
        with (
            patch("flowline.approvals.notifier.EmployeeRepository", return_value=employee_repo),
            patch(
                "flowline.approvals.notifier.NotificationRepository",
                return_value=notification_repo,
            ),
        ):
            sent = await ApprovalNotifier(mock_session).notify_role(
                "site_manager", "MI Pending Approval", "body", "mirv", "mi-1"
            )

        assert sent == 2
        mock_session.begin_nested.assert_called_once()
        kwargs = notification_repo.create.await_args.kwargs
        assert kwargs["recipient_id"] == "e2"
        assert kwargs["notification_type"] == APPROVAL_NOTIFICATION_TYPE
        assert kwargs["reference_table"] == "mirv"

    async def test_notify_role_failure_is_contained(self, mock_session):
        employee_repo, notification_repo = _repos(
            [SimpleNamespace(id="e1")], create_error=RuntimeError("insert failed")
        )
        with (
            patch("flowline.approvals.notifier.EmployeeRepository", return_value=employee_repo),
            patch(
                "flowline.approvals.notifier.NotificationRepository",
                return_value=notification_repo,
            ),
        ):
            sent = await ApprovalNotifier(mock_session).notify_role(
                "site_manager", "t", "b", "mirv", "mi-1"
            )
        assert sent == 0

    async def test_notify_user(self, mock_session):
        _, notification_repo = _repos()
        with patch(
            "flowline.approvals.notifier.NotificationRepository", return_value=notification_repo
        ):
            ok = await ApprovalNotifier(mock_session).notify_user(
                "requester", "MI Approved", "body", "mirv", "mi-1"
            )
        assert ok is True
        assert notification_repo.create.await_args.kwargs["recipient_id"] == "requester"

    async def test_notify_user_without_id(self, mock_session):
        notifier = ApprovalNotifier(mock_session)
        assert await notifier.notify_user(None, "t", "b", "mirv", "1") is False
        mock_session.begin_nested.assert_not_called()

    async def test_notify_user_failure_is_contained(self, mock_session):
        _, notification_repo = _repos(create_error=RuntimeError("insert failed"))
        with patch(
            "flowline.approvals.notifier.NotificationRepository", return_value=notification_repo
        ):
            ok = await ApprovalNotifier(mock_session).notify_user(
                "requester", "t", "b", "mirv", "mi-1"
            )
        assert ok is False
