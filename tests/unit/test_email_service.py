"""Unit tests for templated email queueing."""

from types import SimpleNamespace

import pytest

from flowline.exceptions import ValidationError
from flowline.services.email import queue_templated_email, render_template, resolve_recipients
from tests.helpers.db import execute_result


def _template(active=True):
    return SimpleNamespace(
        id="tpl-1",
        code="grn_approved",
        subject="{{ label }} {{ documentNumber }} approved",
        body_html="<p>Hello {{ name }}</p>",
        is_active=active,
    )


class TestRenderTemplate:
    def test_renders_variables(self):
        assert render_template("GRN {{ n }}", {"n": "GRN-2026-00001"}) == "GRN GRN-2026-00001"

    def test_escapes_html(self):
        assert render_template("<b>{{ x }}</b>", {"x": "<script>"}) == "<b>&lt;script&gt;</b>"

    def test_missing_variable_renders_empty(self):
        assert render_template("[{{ missing }}]", {}) == "[]"

    def test_syntax_error(self):
        with pytest.raises(ValidationError, match="rendering failed"):
            render_template("{{ unclosed", {})


class TestResolveRecipients:
    async def test_plain_address(self, mock_session):
        assert await resolve_recipients(mock_session, "qc@example.com") == ["qc@example.com"]
        mock_session.execute.assert_not_awaited()

    async def test_role_expands_to_employee_addresses(self, mock_session):
        mock_session.execute.return_value = execute_result(
            scalars=[SimpleNamespace(email="a@example.com"), SimpleNamespace(email=None)]
        )
        assert await resolve_recipients(mock_session, "role:storekeeper") == ["a@example.com"]


class TestQueueTemplatedEmail:
    async def test_queues_one_email_per_recipient(self, mock_session):
        mock_session.execute.side_effect = [
            execute_result(scalar=_template()),
            execute_result(
                scalars=[
                    SimpleNamespace(email="a@example.com"),
                    SimpleNamespace(email="b@example.com"),
                ]
            ),
        ]
        count = await queue_templated_email(
            mock_session,
            "grn_approved",
            "role:warehouse_manager",
            {"label": "GRN", "documentNumber": "GRN-2026-00004", "name": "Team"},
            reference_table="mrrv",
            reference_id="grn-4",
        )

        assert count == 2
        queued = [c.args[0] for c in mock_session.add.call_args_list]
        assert [e.to_email for e in queued] == ["a@example.com", "b@example.com"]
        assert queued[0].subject == "GRN GRN-2026-00004 approved"
        assert queued[0].body_html == "<p>Hello Team</p>"
        assert queued[0].status == "queued"
        assert queued[0].template_id == "tpl-1"
        assert queued[0].reference_id == "grn-4"

    async def test_missing_template(self, mock_session):
        mock_session.execute.return_value = execute_result(scalar=None)
        assert await queue_templated_email(mock_session, "nope", "a@example.com") == 0
        mock_session.add.assert_not_called()

    async def test_inactive_template(self, mock_session):
        mock_session.execute.return_value = execute_result(scalar=_template(active=False))
        assert await queue_templated_email(mock_session, "grn_approved", "a@example.com") == 0
        mock_session.add.assert_not_called()

    async def test_no_recipients(self, mock_session):
        mock_session.execute.side_effect = [
            execute_result(scalar=_template()),
            execute_result(scalars=[]),
        ]
        assert await queue_templated_email(mock_session, "grn_approved", "role:nobody") == 0
