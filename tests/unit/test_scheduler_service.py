"""Unit tests for the APScheduler service wrapper."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flowline.scheduler.service import (
    RULES_JOB_ID,
    SLA_JOB_ID,
    SchedulerService,
    _execute_scheduled_rules,
    _execute_sla_check,
)


@pytest.fixture
def service(test_settings):
    with patch("flowline.scheduler.service.get_settings", return_value=test_settings):
        svc = SchedulerService()
    svc._scheduler = MagicMock()
    yield svc
    SchedulerService._instance = None


class TestSchedulerService:
    async def test_start_initializes_rules_and_adds_jobs(self, service, test_settings):
        init = AsyncMock(return_value=2)
        with (
            patch("flowline.scheduler.service.get_settings", return_value=test_settings),
            patch("flowline.scheduler.rules.initialize_scheduled_rules", init),
        ):
            await service.start()

        init.assert_awaited_once()
        service._scheduler.start.assert_called_once()
        job_ids = [c.kwargs["id"] for c in service._scheduler.add_job.call_args_list]
        assert job_ids == [RULES_JOB_ID, SLA_JOB_ID]
        assert service.running
        assert SchedulerService.get_instance() is service

    async def test_start_survives_initialization_failure(self, service, test_settings):
        init = AsyncMock(side_effect=RuntimeError("relation does not exist"))
        with (
            patch("flowline.scheduler.service.get_settings", return_value=test_settings),
            patch("flowline.scheduler.rules.initialize_scheduled_rules", init),
        ):
            await service.start()

        assert service.running

    async def test_disabled(self, service, test_settings):
        test_settings.scheduler_enabled = False
        with patch("flowline.scheduler.service.get_settings", return_value=test_settings):
            await service.start()

        service._scheduler.start.assert_not_called()
        assert not service.running

    async def test_stop(self, service, test_settings):
        with (
            patch("flowline.scheduler.service.get_settings", return_value=test_settings),
            patch("flowline.scheduler.rules.initialize_scheduled_rules", AsyncMock()),
        ):
            await service.start()
        await service.stop()

        service._scheduler.shutdown.assert_called_once_with(wait=False)
        assert not service.running
        assert SchedulerService.get_instance() is None

    async def test_stop_when_not_running(self, service):
        await service.stop()
        service._scheduler.shutdown.assert_not_called()


class TestJobs:
    async def test_rules_job_contains_errors(self):
        with patch(
            "flowline.scheduler.rules.process_scheduled_rules",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            await _execute_scheduled_rules()

    async def test_sla_job(self):
        check = AsyncMock(return_value=0)
        with patch("flowline.scheduler.sla.check_sla_breaches", check):
            await _execute_sla_check()
        check.assert_awaited_once()
