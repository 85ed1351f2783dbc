"""Read-only collaborators backed by SQL.

Each call opens its own short-lived session so candidate reads can fan out
concurrently without sharing an AsyncSession. Database failures surface as
CollaboratorUnavailableError.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload, selectinload

from app.adapters.persistence.models import (
    AvailabilitySlotModel,
    CharteredAccountantModel,
    FirmMembershipModel,
    FirmModel,
    ServiceRequestModel,
)
from app.application.ports.availability_oracle import AvailabilityOracle, SlotCounts
from app.application.ports.firm_directory import FirmDirectory
from app.application.ports.history_oracle import HistoryOracle, RatingHistory
from app.domain.entities.firm import FirmConfig, FirmMember
from app.domain.errors import CollaboratorUnavailableError
from app.domain.value_objects.enums import (
    FirmRole,
    ServiceRequestStatus,
    ServiceType,
    VerificationStatus,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (ServiceRequestStatus.ACCEPTED.value, ServiceRequestStatus.IN_PROGRESS.value)
PRIOR_WORK_STATUSES = (ServiceRequestStatus.COMPLETED.value, ServiceRequestStatus.IN_PROGRESS.value)

_SERVICE_TYPES = {t.value for t in ServiceType}


def _parse_specializations(values: list[str] | None) -> tuple[ServiceType | str, ...]:
    # Unknown codes are kept in place; they never match a request but must not
    # shift a secondary specialization into the primary slot.
    return tuple(ServiceType(v) if v in _SERVICE_TYPES else v for v in (values or []))


def _membership_to_domain(m: FirmMembershipModel) -> FirmMember:
    return FirmMember(
        ca_id=m.ca_id,
        user_id=m.ca.user_id,
        firm_id=m.firm_id,
        name=m.ca.name,
        email=m.ca.email,
        role=FirmRole(m.role),
        verification_status=VerificationStatus(m.ca.verification_status),
        specializations=_parse_specializations(m.ca.specializations),
        can_work_independently=m.can_work_independently,
        is_active=m.is_active,
    )


class _SqlOracle:
    collaborator = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    def _unavailable(self, e: SQLAlchemyError) -> CollaboratorUnavailableError:
        logger.error("%s query failed: %s", self.collaborator, e)
        return CollaboratorUnavailableError(self.collaborator, type(e).__name__)


class SqlFirmDirectory(_SqlOracle, FirmDirectory):
    collaborator = "FirmDirectory"

    async def get_active_members(self, firm_id: str) -> list[FirmMember]:
        try:
            async with self._sessions() as s:
                result = await s.execute(
                    select(FirmMembershipModel)
                    .options(joinedload(FirmMembershipModel.ca))
                    .where(
                        FirmMembershipModel.firm_id == firm_id,
                        FirmMembershipModel.is_active.is_(True),
                    )
                    .order_by(FirmMembershipModel.ca_id)
                )
                return [_membership_to_domain(m) for m in result.scalars()]
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e

    async def get_firm_config(self, firm_id: str) -> FirmConfig | None:
        try:
            async with self._sessions() as s:
                m = await s.get(FirmModel, firm_id)
                if m is None:
                    return None
                return FirmConfig(
                    firm_id=m.id, name=m.name, auto_assignment_enabled=m.auto_assignment_enabled
                )
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e

    async def get_active_member(self, firm_id: str, ca_id: str) -> FirmMember | None:
        return await self._find_member(
            FirmMembershipModel.firm_id == firm_id,
            FirmMembershipModel.ca_id == ca_id,
        )

    async def get_firm_admin(self, firm_id: str, user_id: str) -> FirmMember | None:
        return await self._find_member(
            FirmMembershipModel.firm_id == firm_id,
            FirmMembershipModel.role == FirmRole.FIRM_ADMIN.value,
            FirmMembershipModel.ca.has(CharteredAccountantModel.user_id == user_id),
        )

    async def _find_member(self, *conditions) -> FirmMember | None:
        try:
            async with self._sessions() as s:
                result = await s.execute(
                    select(FirmMembershipModel)
                    .options(joinedload(FirmMembershipModel.ca))
                    .where(FirmMembershipModel.is_active.is_(True), *conditions)
                    .limit(1)
                )
                m = result.scalars().first()
                return _membership_to_domain(m) if m else None
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e


class SqlAvailabilityOracle(_SqlOracle, AvailabilityOracle):
    collaborator = "AvailabilityOracle"

    async def count_slots(self, ca_id: str, start: datetime, end: datetime) -> SlotCounts:
        try:
            async with self._sessions() as s:
                result = await s.execute(
                    select(AvailabilitySlotModel.is_booked, func.count())
                    .where(
                        AvailabilitySlotModel.ca_id == ca_id,
                        AvailabilitySlotModel.date >= start,
                        AvailabilitySlotModel.date <= end,
                    )
                    .group_by(AvailabilitySlotModel.is_booked)
                )
                counts = {bool(booked): n for booked, n in result.all()}
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e
        return SlotCounts(free=counts.get(False, 0), booked=counts.get(True, 0))


class SqlHistoryOracle(_SqlOracle, HistoryOracle):
    collaborator = "HistoryOracle"

    async def count_active_assignments(self, ca_id: str) -> int:
        try:
            async with self._sessions() as s:
                value = await s.scalar(
                    select(func.count())
                    .select_from(ServiceRequestModel)
                    .where(
                        ServiceRequestModel.ca_id == ca_id,
                        ServiceRequestModel.status.in_(ACTIVE_STATUSES),
                    )
                )
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e
        return value or 0

    async def completed_with_rating(self, ca_id: str, service_type: ServiceType) -> RatingHistory:
        try:
            async with self._sessions() as s:
                result = await s.execute(
                    select(ServiceRequestModel)
                    .options(selectinload(ServiceRequestModel.reviews))
                    .where(
                        ServiceRequestModel.ca_id == ca_id,
                        ServiceRequestModel.service_type == service_type.value,
                        ServiceRequestModel.status == ServiceRequestStatus.COMPLETED.value,
                    )
                    .order_by(ServiceRequestModel.id)
                )
                completed = list(result.scalars())
                # One rating per request: its first review.
                ratings = tuple(
                    float(min(r.reviews, key=lambda rv: (rv.created_at, rv.id)).rating)
                    for r in completed
                    if r.reviews
                )
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e
        return RatingHistory(completed=len(completed), ratings=ratings)

    async def has_prior_work(self, ca_id: str, client_id: str) -> bool:
        try:
            async with self._sessions() as s:
                value = await s.scalar(
                    select(func.count())
                    .select_from(ServiceRequestModel)
                    .where(
                        ServiceRequestModel.ca_id == ca_id,
                        ServiceRequestModel.client_id == client_id,
                        ServiceRequestModel.status.in_(PRIOR_WORK_STATUSES),
                    )
                )
        except SQLAlchemyError as e:
            raise self._unavailable(e) from e
        return (value or 0) > 0
