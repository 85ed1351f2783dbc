"""Port interface for service request persistence."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from app.domain.entities.assignment import AssignmentCommit
from app.domain.entities.service_request import ServiceRequest
from app.domain.value_objects.enums import ServiceRequestStatus


@dataclass(frozen=True)
class RequestPage:
    items: list[ServiceRequest] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class AssignmentCounts:
    total_assigned: int = 0
    auto: int = 0
    manual: int = 0
    pending: int = 0
    average_auto_score: float | None = None


class ServiceRequestRepository(ABC):
    @abstractmethod
    async def get_by_id(self, request_id: str) -> ServiceRequest | None:
        ...

    @abstractmethod
    async def commit_assignment(self, commit: AssignmentCommit) -> bool:
        """Single conditional write of the assignment fields.

        Must apply only if the stored ca_id still equals commit.expected_ca_id.
        Returns False (and changes nothing) when the precondition fails.
        """
        ...

    @abstractmethod
    async def list_pending(self, firm_id: str, offset: int, limit: int) -> RequestPage:
        """Unassigned PENDING requests of a firm, oldest first."""
        ...

    @abstractmethod
    async def list_assigned(
        self,
        ca_id: str,
        status: ServiceRequestStatus | None,
        offset: int,
        limit: int,
    ) -> RequestPage:
        """Requests assigned to a CA, newest first."""
        ...

    @abstractmethod
    async def count_assignments(self, firm_id: str, since: datetime) -> AssignmentCounts:
        ...
