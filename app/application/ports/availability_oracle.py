"""Port interface for calendar availability of a CA."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SlotCounts:
    free: int
    booked: int

    @property
    def total(self) -> int:
        return self.free + self.booked


class AvailabilityOracle(ABC):
    @abstractmethod
    async def count_slots(self, ca_id: str, start: datetime, end: datetime) -> SlotCounts:
        """Count free and booked slots whose date falls in [start, end]."""
        ...
