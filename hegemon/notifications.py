# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Notifications - Webhook delivery of run outcomes.
"""

from typing import Protocol

import httpx
import structlog

from hegemon.config import LoggingConfig

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0


class NotificationSender(Protocol):
    """Anything that can deliver a run-outcome message."""

    def send_if_needed(self, logging_config: LoggingConfig, message: str) -> None:
        """Deliver message if logging_config asks for notifications."""
        ...


class WebhookNotifier:
    """
    POST notifications as JSON to ``logging.notificationEndpoint``.

    Delivery is best-effort: HTTP errors are logged as warnings and never
    propagate into the run that triggered them.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self._client = client
        self._timeout = timeout

    def send_if_needed(self, logging_config: LoggingConfig, message: str) -> None:
        if not logging_config.enable_notifications:
            return
        endpoint = logging_config.notification_endpoint
        if not endpoint:
            logger.warning("notification_endpoint_missing", message=message)
            return

        payload = {"message": message, "source": "hegemon"}
        try:
            if self._client is not None:
                response = self._client.post(endpoint, json=payload, timeout=self._timeout)
            else:
                response = httpx.post(endpoint, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "notification_failed",
                endpoint=endpoint,
                error=str(e),
            )
            return

        logger.debug("notification_sent", endpoint=endpoint, status=response.status_code)
