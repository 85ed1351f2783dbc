"""AssignmentEvent — outbox record consumed by the notification relay."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import AssignmentEventKind, AssignmentMethod


@dataclass
class AssignmentEvent:
    id: str | None
    kind: AssignmentEventKind
    request_id: str
    firm_id: str
    client_id: str | None = None
    ca_id: str | None = None
    method: AssignmentMethod | None = None
    reason: str | None = None
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime | None = None
