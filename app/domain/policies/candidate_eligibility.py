"""CandidateEligibilityPolicy — which firm members may take a given request."""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.entities.firm import FirmMember
from app.domain.value_objects.enums import ServiceType


@dataclass(frozen=True)
class EligibilityReport:
    """Outcome of filtering one firm's members for one request."""

    eligible: tuple[FirmMember, ...]
    unverified: int = 0
    missing_specialization: int = 0
    after_hours_restricted: int = 0
    considered: int = field(default=0)

    def explain(self, service_type: ServiceType) -> str:
        """Human-readable reason for an empty eligible set."""
        parts = []
        if self.unverified:
            parts.append(f"{self.unverified} not verified")
        if self.missing_specialization:
            parts.append(f"{self.missing_specialization} without {service_type.value} specialization")
        if self.after_hours_restricted:
            parts.append(f"{self.after_hours_restricted} not permitted to work after hours")
        detail = f" ({', '.join(parts)})" if parts else ""
        return (
            f"No eligible candidates available for this request: "
            f"{self.considered} active member(s) considered{detail}"
        )


def is_eligible(
    member: FirmMember,
    service_type: ServiceType,
    is_after_hours: bool,
) -> bool:
    """Pure check of the eligibility rules for a single member.

    Business rules:
      1. Member must be active and VERIFIED.
      2. Member's specialization list must contain the service type.
      3. After business hours the membership must allow independent work.
    """
    if not member.is_active or not member.is_verified():
        return False
    if not member.specializes_in(service_type):
        return False
    if is_after_hours and not member.can_work_independently:
        return False
    return True


def filter_eligible(
    members: list[FirmMember],
    service_type: ServiceType,
    is_after_hours: bool,
) -> EligibilityReport:
    """Apply the eligibility rules to every member, keeping input order."""
    eligible: list[FirmMember] = []
    unverified = missing = restricted = 0

    for member in members:
        if not member.is_active or not member.is_verified():
            unverified += 1
        elif not member.specializes_in(service_type):
            missing += 1
        elif is_after_hours and not member.can_work_independently:
            restricted += 1
        else:
            eligible.append(member)

    return EligibilityReport(
        eligible=tuple(eligible),
        unverified=unverified,
        missing_specialization=missing,
        after_hours_restricted=restricted,
        considered=len(members),
    )
