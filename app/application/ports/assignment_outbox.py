"""Port interface for the notification outbox."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment_event import AssignmentEvent


class AssignmentOutbox(ABC):
    @abstractmethod
    async def enqueue(self, event: AssignmentEvent) -> AssignmentEvent:
        """Store the event in the caller's unit of work and return it with an id."""
        ...

    @abstractmethod
    async def get_pending(self, limit: int, max_attempts: int) -> list[AssignmentEvent]:
        """Claim undelivered events with fewer than max_attempts tries, oldest first.

        A claimed event is not returned to a concurrent caller until the
        claiming unit of work ends.
        """
        ...

    @abstractmethod
    async def mark_delivered(self, event_id: str) -> None:
        ...

    @abstractmethod
    async def mark_failed(self, event_id: str, error: str) -> None:
        ...
