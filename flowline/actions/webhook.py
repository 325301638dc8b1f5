"""webhook handler: POST JSON to an external URL."""

import logging
from typing import Any

import httpx

from flowline.events import SystemEvent
from flowline.exceptions import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 10.0


async def webhook(params: dict[str, Any], event: SystemEvent) -> None:
    """POST ``params.body`` (or the event itself) to ``params.url``.

    Raises:
        UpstreamError: On a non-2xx response, a timeout or a network failure.
    """
    url = params.get("url")
    if not url:
        raise ValidationError("webhook requires url")

    headers = {"Content-Type": "application/json", **(params.get("headers") or {})}
    body = params.get("body") or event.to_dict()

    try:
        async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json=body, headers=headers)
    except httpx.TimeoutException as e:
        raise UpstreamError(f"Webhook timed out after {WEBHOOK_TIMEOUT_SECONDS:g}s: {url}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Webhook request failed: {e}") from e

    if not response.is_success:
        raise UpstreamError(
            f"Webhook failed: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
            response_text=response.text,
        )

    logger.info("[Action:webhook] POST %s -> %d", url, response.status_code)
