"""Delivery of report payloads to a Slack incoming webhook."""

from __future__ import annotations

import logging
from typing import Any, Dict

import requests

LOG = logging.getLogger(__name__)


class SlackDeliveryError(RuntimeError):
    """The webhook answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Slack webhook returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body


def post_payload(
    webhook_url: str,
    payload: Dict[str, Any],
    session: requests.Session | None = None,
    timeout: float = 30,
) -> None:
    """POST one Block Kit payload to the webhook.

    Raises
    ------
    SlackDeliveryError
        If the webhook does not answer 2xx.
    requests.RequestException
        On network failure.
    """
    http = session or requests
    response = http.post(webhook_url, json=payload, timeout=timeout)
    if not response.ok:
        raise SlackDeliveryError(response.status_code, response.text)
    LOG.info("Posted Slack message: %s", payload.get("text", ""))
