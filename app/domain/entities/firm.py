"""Firm-side entities — membership facts supplied by the firm directory."""

from dataclasses import dataclass, field

from app.domain.value_objects.enums import FirmRole, ServiceType, VerificationStatus


@dataclass(frozen=True)
class FirmConfig:
    firm_id: str
    name: str
    auto_assignment_enabled: bool = True


@dataclass(frozen=True)
class FirmMember:
    """An active (or former) CA membership within a firm."""

    ca_id: str
    user_id: str
    firm_id: str
    name: str
    role: FirmRole
    verification_status: VerificationStatus
    # Ordered, index 0 is the primary. Codes outside ServiceType stay plain strings.
    specializations: tuple[ServiceType | str, ...] = field(default_factory=tuple)
    can_work_independently: bool = False
    is_active: bool = True
    email: str | None = None

    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED

    def is_firm_admin(self) -> bool:
        return self.role == FirmRole.FIRM_ADMIN and self.is_active

    def specializes_in(self, service_type: ServiceType) -> bool:
        return service_type in self.specializations

    def specialization_codes(self) -> tuple[str, ...]:
        return tuple(s.value if isinstance(s, ServiceType) else s for s in self.specializations)
