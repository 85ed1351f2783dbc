"""Tests for RelayNotificationsUseCase with in-memory fakes."""

from __future__ import annotations

import pytest

from app.application.ports.assignment_outbox import AssignmentOutbox
from app.application.ports.notification_dispatcher import NotificationDispatcher
from app.application.use_cases.relay_notifications import RelayNotificationsUseCase
from app.domain.entities.assignment_event import AssignmentEvent
from app.domain.value_objects.enums import AssignmentEventKind, AssignmentMethod

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeOutbox(AssignmentOutbox):
    def __init__(self, events: list[AssignmentEvent]):
        self.events = {e.id: e for e in events}
        self.delivered: list[str] = []
        self.failures: dict[str, str] = {}

    async def enqueue(self, event):
        self.events[event.id] = event
        return event

    async def get_pending(self, limit, max_attempts):
        pending = [
            e for e in self.events.values()
            if e.id not in self.delivered and e.attempts < max_attempts
        ]
        return pending[:limit]

    async def mark_delivered(self, event_id):
        self.delivered.append(event_id)
        self.events[event_id].attempts += 1

    async def mark_failed(self, event_id, error):
        self.failures[event_id] = error
        self.events[event_id].attempts += 1


class FakeDispatcher(NotificationDispatcher):
    def __init__(self, fail_for: set[str] | None = None):
        self.assignments = []
        self.manual_required = []
        self._fail_for = fail_for or set()

    async def notify_assignment(self, request_id, client_id, ca_id, method, reason=None):
        if request_id in self._fail_for:
            raise ConnectionError("webhook unreachable")
        self.assignments.append((request_id, client_id, ca_id, method, reason))

    async def notify_manual_required(self, firm_id, request_id, reason):
        if request_id in self._fail_for:
            raise ConnectionError("webhook unreachable")
        self.manual_required.append((firm_id, request_id, reason))


def _assigned(event_id, request_id="r-1", attempts=0) -> AssignmentEvent:
    return AssignmentEvent(
        id=event_id, kind=AssignmentEventKind.ASSIGNED, request_id=request_id,
        firm_id="firm-1", client_id="client-1", ca_id="ca-1",
        method=AssignmentMethod.AUTO, attempts=attempts,
    )


def _manual_required(event_id, request_id="r-2", reason="Firm has auto-assignment disabled"):
    return AssignmentEvent(
        id=event_id, kind=AssignmentEventKind.MANUAL_REQUIRED, request_id=request_id,
        firm_id="firm-1", client_id="client-1", reason=reason,
    )


# ─── Tests ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_relay_routes_events_by_kind():
    outbox = FakeOutbox([_assigned("ev-1"), _manual_required("ev-2")])
    dispatcher = FakeDispatcher()

    summary = await RelayNotificationsUseCase(outbox, dispatcher).execute()

    assert summary.delivered == 2
    assert summary.failed == 0
    assert dispatcher.assignments == [("r-1", "client-1", "ca-1", AssignmentMethod.AUTO, None)]
    assert dispatcher.manual_required == [("firm-1", "r-2", "Firm has auto-assignment disabled")]
    assert outbox.delivered == ["ev-1", "ev-2"]


@pytest.mark.asyncio
async def test_relay_records_failures_and_continues():
    outbox = FakeOutbox([_assigned("ev-1", request_id="r-bad"), _assigned("ev-2")])
    dispatcher = FakeDispatcher(fail_for={"r-bad"})

    summary = await RelayNotificationsUseCase(outbox, dispatcher).execute()

    assert summary.delivered == 1
    assert summary.failed == 1
    assert outbox.failures == {"ev-1": "webhook unreachable"}
    assert outbox.delivered == ["ev-2"]


@pytest.mark.asyncio
async def test_failed_event_is_retried_until_max_attempts():
    outbox = FakeOutbox([_assigned("ev-1", request_id="r-bad")])
    relay = RelayNotificationsUseCase(outbox, FakeDispatcher(fail_for={"r-bad"}), max_attempts=2)

    assert (await relay.execute()).failed == 1
    assert (await relay.execute()).failed == 1
    third = await relay.execute()
    assert third.failed == 0 and third.delivered == 0
    assert outbox.events["ev-1"].attempts == 2


@pytest.mark.asyncio
async def test_relay_respects_limit():
    outbox = FakeOutbox([_assigned(f"ev-{i}", request_id=f"r-{i}") for i in range(5)])
    summary = await RelayNotificationsUseCase(outbox, FakeDispatcher()).execute(limit=2)
    assert summary.delivered == 2


@pytest.mark.asyncio
async def test_manual_required_without_reason_uses_default():
    outbox = FakeOutbox([_manual_required("ev-1", reason=None)])
    dispatcher = FakeDispatcher()
    await RelayNotificationsUseCase(outbox, dispatcher).execute()
    assert dispatcher.manual_required[0][2] == "Auto-assignment is disabled for your firm"
