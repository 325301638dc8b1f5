"""Templated email queueing.

Templates are looked up by code, rendered once with Jinja2 in a
sandboxed environment, and written as ``queued`` EmailLog rows. Actual
delivery belongs to the mail worker.
"""

import logging
from typing import Any

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.exceptions import ValidationError

logger = logging.getLogger(__name__)

ROLE_RECIPIENT_PREFIX = "role:"

_env = SandboxedEnvironment(autoescape=True, trim_blocks=True, lstrip_blocks=True)


def render_template(source: str, variables: dict[str, Any]) -> str:
    """Render a template string with ``variables``.

    Raises:
        ValidationError: If the template cannot be compiled or rendered.
    """
    try:
        return _env.from_string(source).render(**variables)
    except TemplateError as e:
        raise ValidationError(f"Email template rendering failed: {e}") from e


async def resolve_recipients(session: AsyncSession, to: str) -> list[str]:
    """Expand ``role:<name>`` into active employees' addresses."""
    if not to.startswith(ROLE_RECIPIENT_PREFIX):
        return [to]

    from flowline.dal.employees import EmployeeRepository

    role = to[len(ROLE_RECIPIENT_PREFIX) :]
    employees = await EmployeeRepository(session).list_active_by_role(role)
    return [e.email for e in employees if e.email]


async def queue_templated_email(
    session: AsyncSession,
    template_code: str,
    to: str,
    variables: dict[str, Any] | None = None,
    reference_table: str | None = None,
    reference_id: str | None = None,
) -> int:
    """Render a template and queue one email per recipient.

    A missing or inactive template is logged and skipped.

    Returns:
        Number of emails queued.
    """
    from flowline.dal.notifications import EmailRepository

    repo = EmailRepository(session)
    template = await repo.get_template(template_code)
    if template is None:
        logger.error("[Email] Template not found: %s", template_code)
        return 0
    if not template.is_active:
        logger.info("[Email] Template '%s' is inactive, skipping", template_code)
        return 0

    recipients = await resolve_recipients(session, to)
    if not recipients:
        logger.info("[Email] No recipients resolved for '%s'", template_code)
        return 0

    variables = variables or {}
    subject = render_template(template.subject, variables)
    body_html = render_template(template.body_html, variables)

    for email in recipients:
        await repo.queue(
            to_email=email,
            subject=subject,
            body_html=body_html,
            template_id=template.id,
            reference_table=reference_table,
            reference_id=reference_id,
        )
    return len(recipients)
