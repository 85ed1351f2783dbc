"""Candidate entities — per-pass scoring inputs and outputs."""

from dataclasses import dataclass, field

from app.domain.entities.firm import FirmMember


@dataclass(frozen=True)
class CandidateProfile:
    """Everything the scorer needs about one candidate, gathered once per pass.

    Read-derived facts are ``None`` when the oracle could not answer in time;
    the scorer substitutes the documented default for that factor.
    """

    member: FirmMember
    free_slots: int | None = None
    booked_slots: int | None = None
    active_assignments: int | None = None
    ratings: tuple[float, ...] | None = None
    completed_count: int | None = None
    has_prior_work: bool | None = None

    @property
    def ca_id(self) -> str:
        return self.member.ca_id


@dataclass(frozen=True)
class ScoreBreakdown:
    """Each factor as an integer percentage (0-100)."""

    availability: int
    specialization: int
    workload: int
    success_rate: int

    def as_dict(self) -> dict[str, int]:
        return {
            "availability": self.availability,
            "specialization": self.specialization,
            "workload": self.workload,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    ca_id: str
    firm_id: str
    name: str
    score: int
    breakdown: ScoreBreakdown
    reasons: tuple[str, ...] = field(default_factory=tuple)
    specializations: tuple[str, ...] = field(default_factory=tuple)
