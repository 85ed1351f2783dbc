"""AssignmentResult — what every orchestrator operation returns."""

from dataclasses import dataclass, field

from app.domain.entities.candidate import ScoredCandidate
from app.domain.value_objects.enums import AssignmentOutcome, AssignmentState


@dataclass(frozen=True)
class AssignedTo:
    ca_id: str
    firm_id: str
    name: str | None = None


@dataclass(frozen=True)
class NotificationsSent:
    client: bool = False
    ca: bool = False
    firm_admin: bool = False


@dataclass
class AssignmentResult:
    success: bool
    method: AssignmentOutcome
    request_id: str
    state: AssignmentState
    assigned_to: AssignedTo | None = None
    score: int | None = None
    reasons: list[str] = field(default_factory=list)
    alternatives: list[ScoredCandidate] = field(default_factory=list)
    notifications: NotificationsSent = field(default_factory=NotificationsSent)
