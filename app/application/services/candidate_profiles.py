"""CandidateProfileBuilder — gathers oracle facts for each eligible candidate."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import timedelta
from typing import TypeVar

from app.application.ports.availability_oracle import AvailabilityOracle
from app.application.ports.clock import Clock
from app.application.ports.history_oracle import HistoryOracle
from app.domain.entities.candidate import CandidateProfile
from app.domain.entities.firm import FirmMember
from app.domain.entities.service_request import ServiceRequest
from app.domain.errors import CollaboratorUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CandidateProfileBuilder:
    """Builds one CandidateProfile per member with all reads in parallel.

    Every oracle call is bounded by ``timeout_seconds``. A call that times out
    or reports its collaborator unavailable yields ``None`` for that fact, and
    the scorer falls back to the factor's default.

    ``read_slots`` bounds how many reads are in flight at once. A read waits
    for a slot before its timeout starts, so a queued read is not penalised.
    """

    def __init__(
        self,
        availability: AvailabilityOracle,
        history: HistoryOracle,
        clock: Clock,
        timeout_seconds: float = 0.3,
        window_days: int = 7,
        read_slots: asyncio.Semaphore | None = None,
    ):
        self._availability = availability
        self._history = history
        self._clock = clock
        self._timeout = timeout_seconds
        self._window = timedelta(days=window_days)
        self._read_slots = read_slots

    async def build_all(
        self,
        members: list[FirmMember] | tuple[FirmMember, ...],
        request: ServiceRequest,
    ) -> list[CandidateProfile]:
        return list(await asyncio.gather(*(self.build(m, request) for m in members)))

    async def build(self, member: FirmMember, request: ServiceRequest) -> CandidateProfile:
        start = self._clock.now()
        end = start + self._window
        ca_id = member.ca_id

        slots, active, history, prior = await asyncio.gather(
            self._read("availability", ca_id, self._availability.count_slots(ca_id, start, end)),
            self._read("workload", ca_id, self._history.count_active_assignments(ca_id)),
            self._read(
                "rating history", ca_id,
                self._history.completed_with_rating(ca_id, request.service_type),
            ),
            self._read("prior work", ca_id, self._history.has_prior_work(ca_id, request.client_id)),
        )

        return CandidateProfile(
            member=member,
            free_slots=slots.free if slots is not None else None,
            booked_slots=slots.booked if slots is not None else None,
            active_assignments=active,
            ratings=history.ratings if history is not None else None,
            completed_count=history.completed if history is not None else None,
            has_prior_work=prior,
        )

    async def _read(self, what: str, ca_id: str, call: Awaitable[T]) -> T | None:
        if self._read_slots is None:
            return await self._bounded(what, ca_id, call)
        async with self._read_slots:
            return await self._bounded(what, ca_id, call)

    async def _bounded(self, what: str, ca_id: str, call: Awaitable[T]) -> T | None:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "CA %s: %s read timed out after %.3fs, using default", ca_id, what, self._timeout
            )
        except CollaboratorUnavailableError as e:
            logger.warning("CA %s: %s read failed (%s), using default", ca_id, what, e)
        return None
