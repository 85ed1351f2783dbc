"""RelayNotificationsUseCase — drains the outbox into the notification dispatcher."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.assignment_outbox import AssignmentOutbox
from app.application.ports.notification_dispatcher import NotificationDispatcher
from app.domain.entities.assignment_event import AssignmentEvent
from app.domain.value_objects.enums import AssignmentEventKind, AssignmentMethod

logger = logging.getLogger(__name__)


@dataclass
class RelaySummary:
    delivered: int = 0
    failed: int = 0


class RelayNotificationsUseCase:
    """Deliver pending assignment events; failures are recorded, never raised."""

    def __init__(
        self,
        outbox: AssignmentOutbox,
        dispatcher: NotificationDispatcher,
        max_attempts: int = 5,
    ):
        self._outbox = outbox
        self._dispatcher = dispatcher
        self._max_attempts = max_attempts

    async def execute(self, limit: int = 50) -> RelaySummary:
        events = await self._outbox.get_pending(limit, self._max_attempts)
        summary = RelaySummary()

        for event in events:
            try:
                await self._deliver(event)
            except Exception as e:
                logger.exception(
                    "Delivery of %s event %s for request %s failed (attempt %d)",
                    event.kind.value, event.id, event.request_id, event.attempts + 1,
                )
                await self._outbox.mark_failed(event.id, str(e) or type(e).__name__)
                summary.failed += 1
                continue
            await self._outbox.mark_delivered(event.id)
            summary.delivered += 1

        if events:
            logger.info(
                "Relay complete: %d delivered, %d failed", summary.delivered, summary.failed
            )
        return summary

    async def _deliver(self, event: AssignmentEvent) -> None:
        if event.kind == AssignmentEventKind.MANUAL_REQUIRED:
            await self._dispatcher.notify_manual_required(
                event.firm_id,
                event.request_id,
                event.reason or "Auto-assignment is disabled for your firm",
            )
            return

        await self._dispatcher.notify_assignment(
            request_id=event.request_id,
            client_id=event.client_id or "",
            ca_id=event.ca_id or "",
            method=event.method or AssignmentMethod.MANUAL,
            reason=event.reason,
        )
