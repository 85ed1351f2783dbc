"""Assignment write model — the single conditional mutation of a request."""

from dataclasses import dataclass

from app.domain.value_objects.enums import AssignmentMethod, ServiceRequestStatus


@dataclass(frozen=True)
class AssignmentCommit:
    """Conditional write of the assignment fields.

    Applies only while the stored ``ca_id`` still equals ``expected_ca_id``
    (``None`` means "still unassigned").
    """

    request_id: str
    ca_id: str
    method: AssignmentMethod
    expected_ca_id: str | None = None
    score: int | None = None
    assigned_by_user_id: str | None = None
    new_status: ServiceRequestStatus | None = None
