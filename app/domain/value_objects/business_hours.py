"""BusinessHours value object — weekday working window of a firm."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class BusinessHours:
    start_hour: int = 9
    end_hour: int = 18
    timezone: str = "Asia/Kolkata"

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Invalid business hours window: {self.start_hour}-{self.end_hour}"
            )

    def is_after_hours(self, moment: datetime) -> bool:
        """True on weekends and outside [start_hour, end_hour) on weekdays.

        Naive datetimes are taken to be in the calendar's own timezone.
        """
        tz = ZoneInfo(self.timezone)
        local = moment.astimezone(tz) if moment.tzinfo else moment.replace(tzinfo=tz)
        if local.weekday() in (SATURDAY, SUNDAY):
            return True
        return local.hour < self.start_hour or local.hour >= self.end_hour
