"""Read-only assignment reports for firm admins and CAs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import timedelta

from app.application.ports.clock import Clock
from app.application.ports.service_request_repo import ServiceRequestRepository
from app.domain.entities.service_request import ServiceRequest
from app.domain.errors import ValidationError
from app.domain.value_objects.enums import ServiceRequestStatus, StatsPeriod

PERIOD_LENGTH = {
    StatsPeriod.DAY: timedelta(days=1),
    StatsPeriod.WEEK: timedelta(days=7),
    StatsPeriod.MONTH: timedelta(days=30),
}

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass(frozen=True)
class RequestListing:
    requests: list[ServiceRequest] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(1, 20, 0))


@dataclass(frozen=True)
class AssignmentStats:
    firm_id: str
    period: StatsPeriod
    total_assignments: int
    auto_assignments: int
    manual_assignments: int
    pending_assignments: int
    auto_assignment_rate: int
    average_auto_score: int


def _validate_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("page must be at least 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")


class AssignmentReportsUseCase:
    def __init__(self, request_repo: ServiceRequestRepository, clock: Clock):
        self._requests = request_repo
        self._clock = clock

    async def pending_for_firm(self, firm_id: str, page: int = 1, limit: int = 20) -> RequestListing:
        _validate_page(page, limit)
        result = await self._requests.list_pending(firm_id, (page - 1) * limit, limit)
        return RequestListing(result.items, Pagination(page, limit, result.total))

    async def assigned_to_ca(
        self,
        ca_id: str,
        status: ServiceRequestStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> RequestListing:
        _validate_page(page, limit)
        result = await self._requests.list_assigned(ca_id, status, (page - 1) * limit, limit)
        return RequestListing(result.items, Pagination(page, limit, result.total))

    async def stats_for_firm(
        self, firm_id: str, period: StatsPeriod = StatsPeriod.WEEK
    ) -> AssignmentStats:
        since = self._clock.now() - PERIOD_LENGTH[period]
        counts = await self._requests.count_assignments(firm_id, since)
        rate = round(counts.auto / counts.total_assigned * 100) if counts.total_assigned else 0
        return AssignmentStats(
            firm_id=firm_id,
            period=period,
            total_assignments=counts.total_assigned,
            auto_assignments=counts.auto,
            manual_assignments=counts.manual,
            pending_assignments=counts.pending,
            auto_assignment_rate=rate,
            average_auto_score=round(counts.average_auto_score or 0),
        )
