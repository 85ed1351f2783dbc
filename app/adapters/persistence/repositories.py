"""SQLAlchemy repository implementations (request-scoped session)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import AssignmentEventModel, ServiceRequestModel
from app.application.ports.assignment_outbox import AssignmentOutbox
from app.application.ports.service_request_repo import (
    AssignmentCounts,
    RequestPage,
    ServiceRequestRepository,
)
from app.domain.entities.assignment import AssignmentCommit
from app.domain.entities.assignment_event import AssignmentEvent
from app.domain.entities.service_request import ServiceRequest
from app.domain.value_objects.enums import (
    AssignmentEventKind,
    AssignmentMethod,
    ServiceRequestStatus,
    ServiceType,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def _request_to_domain(m: ServiceRequestModel) -> ServiceRequest:
    return ServiceRequest(
        id=m.id,
        client_id=m.client_id,
        service_type=ServiceType(m.service_type),
        firm_id=m.firm_id,
        status=ServiceRequestStatus(m.status),
        ca_id=m.ca_id,
        assignment_method=AssignmentMethod(m.assignment_method) if m.assignment_method else None,
        auto_assignment_score=m.auto_assignment_score,
        assigned_by_user_id=m.assigned_by_user_id,
        created_at=m.created_at,
    )


def _event_to_domain(m: AssignmentEventModel) -> AssignmentEvent:
    return AssignmentEvent(
        id=m.id,
        kind=AssignmentEventKind(m.kind),
        request_id=m.request_id,
        firm_id=m.firm_id,
        client_id=m.client_id,
        ca_id=m.ca_id,
        method=AssignmentMethod(m.method) if m.method else None,
        reason=m.reason,
        attempts=m.attempts,
        last_error=m.last_error,
        created_at=m.created_at,
    )


def pending_events_query(limit: int, max_attempts: int) -> Select:
    """Undelivered events, row-locked until the relay's transaction ends.

    Rows locked by a concurrent relay are skipped, so each event is dispatched
    by one relay only. SQLite renders no FOR UPDATE clause.
    """
    return (
        select(AssignmentEventModel)
        .where(
            AssignmentEventModel.delivered_at.is_(None),
            AssignmentEventModel.attempts < max_attempts,
        )
        .order_by(AssignmentEventModel.created_at, AssignmentEventModel.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlServiceRequestRepository(ServiceRequestRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, request_id: str) -> ServiceRequest | None:
        m = await self._s.get(ServiceRequestModel, request_id, populate_existing=True)
        return _request_to_domain(m) if m else None

    async def commit_assignment(self, commit: AssignmentCommit) -> bool:
        if commit.expected_ca_id is None:
            precondition = ServiceRequestModel.ca_id.is_(None)
        else:
            precondition = ServiceRequestModel.ca_id == commit.expected_ca_id

        values: dict[str, object] = {
            "ca_id": commit.ca_id,
            "assignment_method": commit.method.value,
            "auto_assignment_score": commit.score,
            "assigned_by_user_id": commit.assigned_by_user_id,
        }
        if commit.new_status is not None:
            values["status"] = commit.new_status.value

        result = await self._s.execute(
            update(ServiceRequestModel)
            .where(ServiceRequestModel.id == commit.request_id, precondition)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount == 1

    async def list_pending(self, firm_id: str, offset: int, limit: int) -> RequestPage:
        conditions = (
            ServiceRequestModel.firm_id == firm_id,
            ServiceRequestModel.ca_id.is_(None),
            ServiceRequestModel.status == ServiceRequestStatus.PENDING.value,
        )
        total = await self._s.scalar(
            select(func.count()).select_from(ServiceRequestModel).where(*conditions)
        )
        result = await self._s.execute(
            select(ServiceRequestModel)
            .where(*conditions)
            .order_by(ServiceRequestModel.created_at.asc(), ServiceRequestModel.id)
            .offset(offset)
            .limit(limit)
        )
        return RequestPage(
            items=[_request_to_domain(m) for m in result.scalars()],
            total=total or 0,
        )

    async def list_assigned(
        self,
        ca_id: str,
        status: ServiceRequestStatus | None,
        offset: int,
        limit: int,
    ) -> RequestPage:
        conditions = [ServiceRequestModel.ca_id == ca_id]
        if status is not None:
            conditions.append(ServiceRequestModel.status == status.value)

        total = await self._s.scalar(
            select(func.count()).select_from(ServiceRequestModel).where(*conditions)
        )
        result = await self._s.execute(
            select(ServiceRequestModel)
            .where(*conditions)
            .order_by(ServiceRequestModel.created_at.desc(), ServiceRequestModel.id)
            .offset(offset)
            .limit(limit)
        )
        return RequestPage(
            items=[_request_to_domain(m) for m in result.scalars()],
            total=total or 0,
        )

    async def count_assignments(self, firm_id: str, since: datetime) -> AssignmentCounts:
        in_period = (
            ServiceRequestModel.firm_id == firm_id,
            ServiceRequestModel.created_at >= since,
        )

        async def count(*conditions) -> int:
            value = await self._s.scalar(
                select(func.count()).select_from(ServiceRequestModel).where(*conditions)
            )
            return value or 0

        total = await count(*in_period, ServiceRequestModel.ca_id.is_not(None))
        auto = await count(
            *in_period, ServiceRequestModel.assignment_method == AssignmentMethod.AUTO.value
        )
        manual = await count(
            *in_period, ServiceRequestModel.assignment_method == AssignmentMethod.MANUAL.value
        )
        pending = await count(
            ServiceRequestModel.firm_id == firm_id,
            ServiceRequestModel.ca_id.is_(None),
            ServiceRequestModel.status == ServiceRequestStatus.PENDING.value,
        )
        avg_score = await self._s.scalar(
            select(func.avg(ServiceRequestModel.auto_assignment_score)).where(
                *in_period, ServiceRequestModel.auto_assignment_score.is_not(None)
            )
        )
        return AssignmentCounts(
            total_assigned=total,
            auto=auto,
            manual=manual,
            pending=pending,
            average_auto_score=float(avg_score) if avg_score is not None else None,
        )


class SqlAssignmentOutbox(AssignmentOutbox):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def enqueue(self, event: AssignmentEvent) -> AssignmentEvent:
        m = AssignmentEventModel(
            kind=event.kind.value,
            request_id=event.request_id,
            firm_id=event.firm_id,
            client_id=event.client_id,
            ca_id=event.ca_id,
            method=event.method.value if event.method else None,
            reason=event.reason,
            attempts=0,
            created_at=event.created_at or datetime.now(timezone.utc),
        )
        # Savepoint: a failed insert must leave the caller's assignment committable.
        async with self._s.begin_nested():
            self._s.add(m)
            await self._s.flush()
        event.id = m.id
        event.created_at = m.created_at
        return event

    async def get_pending(self, limit: int, max_attempts: int) -> list[AssignmentEvent]:
        result = await self._s.execute(pending_events_query(limit, max_attempts))
        return [_event_to_domain(m) for m in result.scalars()]

    async def mark_delivered(self, event_id: str) -> None:
        await self._s.execute(
            update(AssignmentEventModel)
            .where(
                AssignmentEventModel.id == event_id,
                AssignmentEventModel.delivered_at.is_(None),
            )
            .values(
                delivered_at=datetime.now(timezone.utc),
                attempts=AssignmentEventModel.attempts + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()

    async def mark_failed(self, event_id: str, error: str) -> None:
        await self._s.execute(
            update(AssignmentEventModel)
            .where(AssignmentEventModel.id == event_id)
            .values(attempts=AssignmentEventModel.attempts + 1, last_error=error[:2000])
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
