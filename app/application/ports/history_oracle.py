"""Port interface for a CA's past and current work."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from app.domain.value_objects.enums import ServiceType


@dataclass(frozen=True)
class RatingHistory:
    """Completed requests of one service type and the ratings they received."""

    completed: int = 0
    ratings: tuple[float, ...] = field(default_factory=tuple)


class HistoryOracle(ABC):
    @abstractmethod
    async def count_active_assignments(self, ca_id: str) -> int:
        """Requests currently ACCEPTED or IN_PROGRESS for this CA."""
        ...

    @abstractmethod
    async def completed_with_rating(self, ca_id: str, service_type: ServiceType) -> RatingHistory:
        ...

    @abstractmethod
    async def has_prior_work(self, ca_id: str, client_id: str) -> bool:
        """True if the CA has completed or is working on a request of this client."""
        ...
