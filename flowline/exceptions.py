"""Flowline exception hierarchy.

Base exceptions for all engine layers with correlation ID support.

Usage:
    from flowline.exceptions import UpstreamError, ValidationError

    try:
        await execute_actions(ActionType.WEBHOOK, params, event)
    except UpstreamError as e:
        logger.error("Webhook failed (%s): %s", e.correlation_id, e)
"""

import uuid
from typing import Any


class FlowlineError(Exception):
    """Base exception for all Flowline errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ValidationError(FlowlineError):
    """Missing or malformed action parameters and inputs."""

    pass


class UnknownActionError(FlowlineError):
    """No handler is registered for the requested action type."""

    def __init__(self, action_type: str, **kwargs: Any):
        self.action_type = action_type
        super().__init__(f"Unknown action type: {action_type}", **kwargs)


class UnknownEntityTypeError(FlowlineError):
    """Document type with no entry in the document model mapping."""

    def __init__(self, entity_type: str, **kwargs: Any):
        self.entity_type = entity_type
        super().__init__(f"Unknown entity type: {entity_type}", **kwargs)


class InvalidTransitionError(FlowlineError):
    """Status change not permitted by the document state machine."""

    def __init__(self, entity_type: str, current: str, target: str, **kwargs: Any):
        self.entity_type = entity_type
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid status transition for {entity_type}: {current} -> {target}",
            **kwargs,
        )


class NotFoundError(FlowlineError):
    """A referenced record does not exist."""

    def __init__(self, message: str, *, entity: str | None = None, **kwargs: Any):
        self.entity = entity
        super().__init__(message, **kwargs)


class AuthorizationError(FlowlineError):
    """User may not act on the current approval step."""

    def __init__(self, message: str, *, user_id: str | None = None, **kwargs: Any):
        self.user_id = user_id
        super().__init__(message, **kwargs)


class ApprovalConflictError(FlowlineError):
    """The approval step was decided concurrently by someone else."""

    pass


class UpstreamError(FlowlineError):
    """Errors from outbound calls (webhooks).

    Carries the remote status code and response body when the remote
    answered; both are None for network failures and timeouts.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_text: str | None = None,
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message, correlation_id=correlation_id)


class InvalidCronExpressionError(FlowlineError):
    """Malformed cron expression, or one that never matches."""

    def __init__(self, message: str, *, expression: str | None = None, **kwargs: Any):
        self.expression = expression
        super().__init__(message, **kwargs)


class ConfigurationError(FlowlineError):
    """Errors from application configuration."""

    pass


def describe_error(error: BaseException | object) -> str:
    """Render any raised value as a message for logs and execution records."""
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    return str(error)
