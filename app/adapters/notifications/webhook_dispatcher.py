"""Webhook notification dispatcher — implements NotificationDispatcher over HTTP."""

from __future__ import annotations

import logging

import httpx

from app.application.ports.notification_dispatcher import NotificationDispatcher
from app.config import settings
from app.domain.value_objects.enums import AssignmentMethod

logger = logging.getLogger(__name__)


class WebhookNotificationDispatcher(NotificationDispatcher):
    """POSTs one JSON document per notification to the delivery service.

    Non-2xx responses and transport errors raise, so the relay can record the
    failure and retry the outbox event later.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_timeout_seconds
        self._transport = transport

    async def notify_assignment(
        self,
        request_id: str,
        client_id: str,
        ca_id: str,
        method: AssignmentMethod,
        reason: str | None = None,
    ) -> None:
        await self._post(
            {
                "type": "request-assigned",
                "request_id": request_id,
                "client_id": client_id,
                "ca_id": ca_id,
                "method": method.value,
                "reason": reason,
                "recipients": ["client", "ca"],
            }
        )

    async def notify_manual_required(self, firm_id: str, request_id: str, reason: str) -> None:
        await self._post(
            {
                "type": "manual-assignment-required",
                "firm_id": firm_id,
                "request_id": request_id,
                "reason": reason,
                "recipients": ["firm_admins"],
            }
        )

    async def _post(self, payload: dict) -> None:
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(self._url, json=payload)
            response.raise_for_status()
        logger.info(
            "Delivered %s notification for request %s", payload["type"], payload["request_id"]
        )
