"""Unit tests for the change_status action."""

from unittest.mock import patch

import pytest

from flowline.actions.status import change_status, current_status_from
from flowline.events import SystemEvent
from flowline.exceptions import InvalidTransitionError, UnknownEntityTypeError, ValidationError
from tests.helpers.db import execute_result, make_session


def _event(entity_type="mrrv", **payload) -> SystemEvent:
    return SystemEvent(
        type="document:status_changed",
        entity_type=entity_type,
        entity_id="doc-1",
        action="status_change",
        payload=payload,
    )


class TestCurrentStatus:
    def test_prefers_new_values(self):
        event = _event(newValues={"status": "approved"}, status="draft")
        assert current_status_from(event) == "approved"

    def test_falls_back_to_status(self):
        assert current_status_from(_event(status="draft")) == "draft"

    def test_none_when_absent(self):
        assert current_status_from(_event()) is None


class TestChangeStatus:
    async def test_requires_target(self):
        with pytest.raises(ValidationError):
            await change_status({}, _event())

    async def test_unknown_entity_type(self):
        with pytest.raises(UnknownEntityTypeError):
            await change_status({"targetStatus": "approved"}, _event(entity_type="widget"))

    async def test_rejects_invalid_transition_before_writing(self):
        session = make_session()
        with patch("flowline.storage.get_committing_session", return_value=session):
            with pytest.raises(InvalidTransitionError):
                await change_status({"targetStatus": "stored"}, _event(status="draft"))
        session.execute.assert_not_awaited()

    async def test_valid_transition_updates_document(self):
        session = make_session()
        session.execute.return_value = execute_result(rowcount=1)
        with patch("flowline.storage.get_committing_session", return_value=session):
            await change_status(
                {"targetStatus": "qc_pending"},
                _event(newValues={"status": "approved"}),
            )
        session.execute.assert_awaited_once()

    async def test_without_current_status_skips_check(self):
        session = make_session()
        session.execute.return_value = execute_result(rowcount=1)
        with patch("flowline.storage.get_committing_session", return_value=session):
            await change_status({"targetStatus": "stored"}, _event())
        session.execute.assert_awaited_once()
