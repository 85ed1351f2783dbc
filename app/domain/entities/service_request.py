"""ServiceRequest entity — a client's request for work, bound to a firm."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import (
    AssignmentMethod,
    AssignmentState,
    ServiceRequestStatus,
    ServiceType,
)


@dataclass
class ServiceRequest:
    id: str
    client_id: str
    service_type: ServiceType
    firm_id: str | None = None
    status: ServiceRequestStatus = ServiceRequestStatus.PENDING
    ca_id: str | None = None
    assignment_method: AssignmentMethod | None = None
    auto_assignment_score: int | None = None
    assigned_by_user_id: str | None = None
    created_at: datetime | None = None

    def is_assigned(self) -> bool:
        return self.ca_id is not None

    @property
    def assignment_state(self) -> AssignmentState:
        if self.ca_id is None:
            return AssignmentState.UNASSIGNED
        if self.assignment_method == AssignmentMethod.AUTO:
            return AssignmentState.ASSIGNED_AUTO
        return AssignmentState.ASSIGNED_MANUAL
