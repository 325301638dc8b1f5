"""Unit tests for the Flowline exception hierarchy."""

import pytest

from flowline.exceptions import (
    ApprovalConflictError,
    AuthorizationError,
    ConfigurationError,
    FlowlineError,
    InvalidCronExpressionError,
    InvalidTransitionError,
    NotFoundError,
    UnknownActionError,
    UnknownEntityTypeError,
    UpstreamError,
    ValidationError,
    describe_error,
)


class TestFlowlineError:
    def test_generates_correlation_id(self):
        err = FlowlineError("boom")
        assert err.correlation_id
        assert str(err) == "boom"

    def test_keeps_given_correlation_id(self):
        err = FlowlineError("boom", correlation_id="abc-123")
        assert err.correlation_id == "abc-123"

    def test_correlation_ids_are_unique(self):
        assert FlowlineError("a").correlation_id != FlowlineError("b").correlation_id

    @pytest.mark.parametrize(
        "exc",
        [
            ValidationError("x"),
            UnknownActionError("nope"),
            UnknownEntityTypeError("widget"),
            InvalidTransitionError("mrrv", "draft", "stored"),
            NotFoundError("missing"),
            AuthorizationError("denied"),
            ApprovalConflictError("raced"),
            UpstreamError("down"),
            InvalidCronExpressionError("bad"),
            ConfigurationError("cfg"),
        ],
    )
    def test_all_errors_derive_from_base(self, exc):
        assert isinstance(exc, FlowlineError)


class TestSubclassContext:
    def test_unknown_action_message(self):
        err = UnknownActionError("teleport")
        assert err.action_type == "teleport"
        assert str(err) == "Unknown action type: teleport"

    def test_unknown_entity_type(self):
        err = UnknownEntityTypeError("widget", correlation_id="c1")
        assert err.entity_type == "widget"
        assert err.correlation_id == "c1"

    def test_invalid_transition_fields(self):
        err = InvalidTransitionError("mrrv", "draft", "stored")
        assert (err.entity_type, err.current, err.target) == ("mrrv", "draft", "stored")
        assert "draft -> stored" in str(err)

    def test_upstream_error_carries_response(self):
        err = UpstreamError("Webhook failed", status_code=502, response_text="bad gateway")
        assert err.status_code == 502
        assert err.response_text == "bad gateway"

    def test_upstream_error_defaults(self):
        err = UpstreamError("timeout")
        assert err.status_code is None
        assert err.response_text is None


class TestDescribeError:
    def test_exception_message(self):
        assert describe_error(ValueError("bad value")) == "bad value"

    def test_exception_without_message_uses_class_name(self):
        assert describe_error(RuntimeError()) == "RuntimeError"

    def test_non_exception_is_stringified(self):
        assert describe_error({"code": 1}) == "{'code': 1}"
