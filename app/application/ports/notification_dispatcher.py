"""Port interface for notification delivery."""

from abc import ABC, abstractmethod

from app.domain.value_objects.enums import AssignmentMethod


class NotificationDispatcher(ABC):
    @abstractmethod
    async def notify_assignment(
        self,
        request_id: str,
        client_id: str,
        ca_id: str,
        method: AssignmentMethod,
        reason: str | None = None,
    ) -> None:
        """Tell the client and the assigned CA about a committed assignment."""
        ...

    @abstractmethod
    async def notify_manual_required(self, firm_id: str, request_id: str, reason: str) -> None:
        """Tell the firm's admins that a request needs manual assignment."""
        ...
