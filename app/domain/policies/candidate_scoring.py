"""CandidateScoringPolicy — weighted 0-100 suitability score per candidate.

Four factors, each normalised to [0, 1]:

  availability    1 - booked/total over the look-ahead window (default 0.3)
  specialization  1.0 primary, 0.7 secondary, 0.0 otherwise
  workload        step function of currently active assignments
  success_rate    average rating / 5 with an experience factor (default 0.5)

The weighted sum gets a 5% variety bonus when the candidate has never served
the client and the sum already exceeds 0.5. Nothing here reads a clock or a
random source: identical profiles always produce identical scores.
"""

from __future__ import annotations

import math

from app.domain.entities.candidate import CandidateProfile, ScoreBreakdown, ScoredCandidate
from app.domain.value_objects.enums import ServiceType
from app.domain.value_objects.scoring_weights import DEFAULT_WEIGHTS, ScoringWeights

AVAILABILITY_DEFAULT = 0.3
SECONDARY_SPECIALIZATION = 0.7
WORKLOAD_UNKNOWN_DEFAULT = 0.6
SUCCESS_RATE_DEFAULT = 0.5
MAX_RATING = 5.0
EXPERIENCED_COMPLETED = 10
NOVICE_COMPLETED = 3
VARIETY_BONUS = 1.05
VARIETY_MIN_SCORE = 0.5

# Reason thresholds
HIGH_AVAILABILITY = 0.7
LOW_WORKLOAD = 0.8
HIGH_SUCCESS_RATE = 0.8


def to_percent(value: float) -> int:
    """Round a [0, 1] factor to an integer percentage, halves rounding up."""
    return int(math.floor(value * 100 + 0.5))


def availability_score(free_slots: int | None, booked_slots: int | None) -> float:
    if free_slots is None or booked_slots is None:
        return AVAILABILITY_DEFAULT
    total = free_slots + booked_slots
    if total <= 0:
        return AVAILABILITY_DEFAULT
    return 1.0 - booked_slots / total


def specialization_score(
    specializations: tuple[ServiceType | str, ...],
    service_type: ServiceType,
) -> float:
    if not specializations:
        return 0.0
    if specializations[0] == service_type:
        return 1.0
    if service_type in specializations:
        return SECONDARY_SPECIALIZATION
    return 0.0


def workload_score(active_assignments: int | None) -> float:
    if active_assignments is None:
        return WORKLOAD_UNKNOWN_DEFAULT
    if active_assignments <= 0:
        return 1.0
    if active_assignments <= 2:
        return 0.9
    if active_assignments <= 5:
        return 0.6
    return 0.2


def success_rate_score(
    ratings: tuple[float, ...] | None,
    completed_count: int | None = None,
) -> float:
    """Average rating normalised to [0, 1], adjusted for experience.

    ``completed_count`` is the number of completed requests of this service
    type (rated or not); it defaults to the number of ratings.
    """
    if not ratings:
        return SUCCESS_RATE_DEFAULT

    completed = completed_count if completed_count is not None else len(ratings)
    rating_score = (sum(ratings) / len(ratings)) / MAX_RATING

    if completed >= EXPERIENCED_COMPLETED:
        return min(rating_score * 1.1, 1.0)
    if completed < NOVICE_COMPLETED:
        return rating_score * 0.9
    return rating_score


def apply_variety_bonus(weighted: float, has_prior_work: bool | None) -> float:
    """5% boost for a fresh CA-client pairing; unknown history gets no bonus."""
    if has_prior_work is False and weighted > VARIETY_MIN_SCORE:
        return min(weighted * VARIETY_BONUS, 1.0)
    return weighted


def score_candidate(
    profile: CandidateProfile,
    service_type: ServiceType,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ScoredCandidate:
    """Score one candidate profile for a request of ``service_type``."""
    member = profile.member
    reasons: list[str] = []

    availability = availability_score(profile.free_slots, profile.booked_slots)
    if profile.free_slots is None or profile.booked_slots is None:
        reasons.append("Availability data unavailable, default applied")
    elif availability > HIGH_AVAILABILITY:
        reasons.append(f"High availability ({to_percent(availability)}%)")

    specialization = specialization_score(member.specializations, service_type)
    if specialization == 1.0:
        reasons.append("Primary specialization match")
    elif specialization > 0:
        reasons.append("Secondary specialization match")

    workload = workload_score(profile.active_assignments)
    if workload > LOW_WORKLOAD:
        reasons.append("Low current workload")

    success = success_rate_score(profile.ratings, profile.completed_count)
    if success > HIGH_SUCCESS_RATE:
        reasons.append("High success rate with similar requests")

    if profile.has_prior_work is False:
        reasons.append("New CA for this client (variety)")

    weighted = (
        availability * weights.availability
        + specialization * weights.specialization
        + workload * weights.workload
        + success * weights.success_rate
    )
    final = min(max(apply_variety_bonus(weighted, profile.has_prior_work), 0.0), 1.0)

    return ScoredCandidate(
        ca_id=member.ca_id,
        firm_id=member.firm_id,
        name=member.name,
        score=to_percent(final),
        breakdown=ScoreBreakdown(
            availability=to_percent(availability),
            specialization=to_percent(specialization),
            workload=to_percent(workload),
            success_rate=to_percent(success),
        ),
        reasons=tuple(reasons),
        specializations=member.specialization_codes(),
    )


def rank_candidates(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort by score descending; exact ties go to the lowest ``ca_id``."""
    return sorted(candidates, key=lambda c: (-c.score, c.ca_id))
