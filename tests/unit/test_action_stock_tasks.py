"""Unit tests for the reserve_stock and assign_task actions."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flowline.actions.stock import reserve_stock
from flowline.actions.tasks import assign_task
from flowline.events import SystemEvent
from flowline.exceptions import ValidationError
from tests.helpers.db import make_session


def _event(performed_by_id=None) -> SystemEvent:
    return SystemEvent(
        type="document:approved",
        entity_type="mirv",
        entity_id="mi-1",
        action="approve",
        performed_by_id=performed_by_id,
    )


class TestReserveStockAction:
    async def test_requires_items_list(self):
        with pytest.raises(ValidationError):
            await reserve_stock({"items": {"itemId": "x"}}, _event())

    async def test_reserves_each_item_and_continues_on_shortage(self):
        session = make_session()
        reserve = AsyncMock(side_effect=[False, True])
        items = [
            {"itemId": "item-1", "warehouseId": "wh-1", "quantity": 5},
            {"itemId": "item-2", "warehouseId": "wh-1", "quantity": 2},
        ]
        with (
            patch("flowline.storage.get_committing_session", return_value=session),
            patch("flowline.services.inventory.reserve_stock", reserve),
        ):
            await reserve_stock({"items": items}, _event())

        assert reserve.await_count == 2
        assert reserve.await_args_list[0].args == (session, "item-1", "wh-1", 5)
        assert reserve.await_args_list[1].args == (session, "item-2", "wh-1", 2)

    async def test_incomplete_item_rejected_before_any_reservation(self):
        reserve = AsyncMock(return_value=True)
        items = [
            {"itemId": "item-1", "warehouseId": "wh-1", "quantity": 1},
            {"itemId": "item-2", "quantity": 1},
        ]
        with patch("flowline.services.inventory.reserve_stock", reserve):
            with pytest.raises(ValidationError, match="item 1 is missing warehouseId"):
                await reserve_stock({"items": items}, _event())

        reserve.assert_not_awaited()

    async def test_non_object_item_rejected(self):
        with pytest.raises(ValidationError, match="item 0 must be an object"):
            await reserve_stock({"items": ["item-1"]}, _event())

    async def test_each_item_commits_in_its_own_session(self):
        first, second = make_session(), make_session()
        reserve = AsyncMock(side_effect=[True, RuntimeError("db down")])
        items = [
            {"itemId": "item-1", "warehouseId": "wh-1", "quantity": 1},
            {"itemId": "item-2", "warehouseId": "wh-1", "quantity": 1},
        ]
        with (
            patch("flowline.storage.get_committing_session", side_effect=[first, second]),
            patch("flowline.services.inventory.reserve_stock", reserve),
        ):
            with pytest.raises(RuntimeError):
                await reserve_stock({"items": items}, _event())

        assert reserve.await_args_list[0].args[0] is first
        assert reserve.await_args_list[1].args[0] is second
        first.__aexit__.assert_awaited_once_with(None, None, None)
        assert second.__aexit__.await_args.args[0] is RuntimeError


class TestAssignTask:
    async def _run(self, params, event, employee=None):
        session = make_session()
        tasks = MagicMock()
        tasks.create = AsyncMock()
        employees = MagicMock()
        employees.first_active_by_role = AsyncMock(return_value=employee)
        with (
            patch("flowline.storage.get_committing_session", return_value=session),
            patch("flowline.dal.notifications.TaskRepository", return_value=tasks),
            patch("flowline.dal.employees.EmployeeRepository", return_value=employees),
        ):
            await assign_task(params, event)
        return tasks.create.await_args.kwargs, employees

    async def test_defaults(self):
        kwargs, employees = await self._run({}, _event())
        assert kwargs["title"] == "Follow up on mirv mi-1"
        assert kwargs["priority"] == "medium"
        assert kwargs["assignee_id"] is None
        assert kwargs["due_date"] is None
        assert kwargs["reference_table"] == "mirv"
        employees.first_active_by_role.assert_not_awaited()

    async def test_explicit_assignee(self):
        kwargs, _ = await self._run(
            {
                "title": "Count stock",
                "assigneeId": "emp-1",
                "priority": "high",
                "dueDate": "2026-03-12T09:00:00",
            },
            _event(performed_by_id="user-1"),
        )
        assert kwargs["assignee_id"] == "emp-1"
        assert kwargs["created_by_id"] == "user-1"
        assert kwargs["due_date"] == datetime(2026, 3, 12, 9, 0)

    async def test_role_assignee(self):
        kwargs, employees = await self._run(
            {"assigneeRole": "storekeeper"},
            _event(),
            employee=SimpleNamespace(id="emp-9"),
        )
        employees.first_active_by_role.assert_awaited_once_with("storekeeper")
        assert kwargs["assignee_id"] == "emp-9"
        assert kwargs["created_by_id"] == "emp-9"

    async def test_bad_due_date(self):
        with pytest.raises(ValidationError, match="dueDate"):
            await assign_task({"dueDate": "next tuesday"}, _event())
