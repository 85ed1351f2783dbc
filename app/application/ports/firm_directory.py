"""Port interface for the firm/member directory (read-only)."""

from abc import ABC, abstractmethod

from app.domain.entities.firm import FirmConfig, FirmMember


class FirmDirectory(ABC):
    @abstractmethod
    async def get_active_members(self, firm_id: str) -> list[FirmMember]:
        """All active memberships of the firm, ordered by ca_id."""
        ...

    @abstractmethod
    async def get_firm_config(self, firm_id: str) -> FirmConfig | None:
        ...

    @abstractmethod
    async def get_active_member(self, firm_id: str, ca_id: str) -> FirmMember | None:
        ...

    @abstractmethod
    async def get_firm_admin(self, firm_id: str, user_id: str) -> FirmMember | None:
        """Active FIRM_ADMIN membership of the given user, if any."""
        ...
