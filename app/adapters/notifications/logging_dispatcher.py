"""Logging notification dispatcher — used when no webhook is configured."""

import logging

from app.application.ports.notification_dispatcher import NotificationDispatcher
from app.domain.value_objects.enums import AssignmentMethod

logger = logging.getLogger(__name__)


class LoggingNotificationDispatcher(NotificationDispatcher):
    async def notify_assignment(
        self,
        request_id: str,
        client_id: str,
        ca_id: str,
        method: AssignmentMethod,
        reason: str | None = None,
    ) -> None:
        logger.info(
            "[notify] request %s assigned to CA %s (%s) → client %s%s",
            request_id, ca_id, method.value, client_id,
            f" ({reason})" if reason else "",
        )

    async def notify_manual_required(self, firm_id: str, request_id: str, reason: str) -> None:
        logger.info(
            "[notify] firm %s admins: manual assignment required for request %s (%s)",
            firm_id, request_id, reason,
        )
