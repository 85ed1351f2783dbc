"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.clock.system_clock import SystemClock
from app.adapters.notifications.logging_dispatcher import LoggingNotificationDispatcher
from app.adapters.notifications.webhook_dispatcher import WebhookNotificationDispatcher
from app.adapters.persistence.database import async_session_factory, get_session
from app.adapters.persistence.oracles import (
    SqlAvailabilityOracle,
    SqlFirmDirectory,
    SqlHistoryOracle,
)
from app.adapters.persistence.repositories import SqlAssignmentOutbox, SqlServiceRequestRepository
from app.application.services.candidate_filter import CandidateFilter
from app.application.services.candidate_profiles import CandidateProfileBuilder
from app.application.use_cases.assignment_orchestrator import AssignmentOrchestrator
from app.application.use_cases.assignment_reports import AssignmentReportsUseCase
from app.application.use_cases.relay_notifications import RelayNotificationsUseCase, RelaySummary
from app.config import settings

logger = logging.getLogger(__name__)

# Singleton adapters (stateless; oracles open their own sessions per call)
_clock = SystemClock()
_directory = SqlFirmDirectory(async_session_factory)
_availability = SqlAvailabilityOracle(async_session_factory)
_history = SqlHistoryOracle(async_session_factory)
# Shared by every request: caps concurrent oracle sessions below the pool size
_read_slots = asyncio.Semaphore(settings.oracle_max_concurrency)

if settings.notification_webhook_url:
    _dispatcher = WebhookNotificationDispatcher()
    logger.info("Delivering notifications to %s", settings.notification_webhook_url)
else:
    _dispatcher = LoggingNotificationDispatcher()


def get_orchestrator(session: AsyncSession = Depends(get_session)) -> AssignmentOrchestrator:
    return AssignmentOrchestrator(
        request_repo=SqlServiceRequestRepository(session),
        directory=_directory,
        candidate_filter=CandidateFilter(_directory),
        profile_builder=CandidateProfileBuilder(
            availability=_availability,
            history=_history,
            clock=_clock,
            timeout_seconds=settings.oracle_timeout_seconds,
            window_days=settings.availability_window_days,
            read_slots=_read_slots,
        ),
        outbox=SqlAssignmentOutbox(session),
        clock=_clock,
        business_hours=settings.business_hours(),
        weights=settings.scoring_weights(),
        threshold=settings.auto_assignment_threshold,
    )


def get_reports_uc(session: AsyncSession = Depends(get_session)) -> AssignmentReportsUseCase:
    return AssignmentReportsUseCase(SqlServiceRequestRepository(session), _clock)


def get_relay_uc(session: AsyncSession = Depends(get_session)) -> RelayNotificationsUseCase:
    return RelayNotificationsUseCase(
        outbox=SqlAssignmentOutbox(session),
        dispatcher=_dispatcher,
        max_attempts=settings.outbox_max_attempts,
    )


async def run_relay() -> RelaySummary:
    """Drain the outbox in a session of its own (used after the response is sent)."""
    async with async_session_factory() as session:
        summary = await get_relay_uc(session).execute()
        await session.commit()
    return summary


def get_relay_runner() -> Callable[[], Awaitable[RelaySummary]]:
    return run_relay
