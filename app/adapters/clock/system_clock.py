"""System clock adapter — implements Clock with the real UTC time."""

from datetime import datetime, timezone

from app.application.ports.clock import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
