"""ScoringWeights value object — immutable factor weights for candidate scoring."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringWeights:
    availability: float = 0.40
    specialization: float = 0.30
    workload: float = 0.20
    success_rate: float = 0.10

    def __post_init__(self) -> None:
        weights = (self.availability, self.specialization, self.workload, self.success_rate)
        if any(w < 0 for w in weights):
            raise ValueError("Scoring weights must be non-negative")
        if not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
            raise ValueError(f"Scoring weights must sum to 1.0, got {sum(weights):.4f}")


DEFAULT_WEIGHTS = ScoringWeights()
