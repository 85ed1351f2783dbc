"""Assignment error hierarchy.

Errors are grouped by how the caller should react:

- ``ValidationError``: bad input or missing records; caller's mistake.
- ``StateConflictError``: the request is not in the expected assignment state,
  including a lost race at commit time.
- ``EligibilityExhaustedError``: nobody can be auto-assigned; the orchestrator
  recovers these into a manual-required result.
- ``PermissionDeniedError``: a non-admin invoked an admin-only operation.
- ``CollaboratorUnavailableError``: a read-only collaborator timed out or failed.
"""

from __future__ import annotations


class AssignmentError(Exception):
    """Base class for all assignment engine errors."""


# ─── Validation ─────────────────────────────────────────────────────


class ValidationError(AssignmentError):
    pass


class RequestNotFound(ValidationError):
    def __init__(self, request_id: str):
        super().__init__(f"Service request not found: {request_id}")
        self.request_id = request_id


class FirmNotFound(ValidationError):
    def __init__(self, firm_id: str):
        super().__init__(f"Firm not found: {firm_id}")
        self.firm_id = firm_id


class NoFirmAssigned(ValidationError):
    def __init__(self, request_id: str):
        super().__init__(f"Request {request_id} must be assigned to a firm first")
        self.request_id = request_id


class CandidateNotMember(ValidationError):
    def __init__(self, ca_id: str, firm_id: str):
        super().__init__(f"CA {ca_id} is not an active member of firm {firm_id}")
        self.ca_id = ca_id
        self.firm_id = firm_id


class CandidateNotVerified(ValidationError):
    def __init__(self, ca_id: str):
        super().__init__(f"CA {ca_id} must be verified")
        self.ca_id = ca_id


class SpecializationMismatch(ValidationError):
    def __init__(self, ca_id: str, service_type: str):
        super().__init__(
            f"CA {ca_id} does not specialize in {service_type}. "
            "Set override_specialization=true to force assignment."
        )
        self.ca_id = ca_id
        self.service_type = service_type


# ─── State ──────────────────────────────────────────────────────────


class StateConflictError(AssignmentError):
    pass


class AlreadyAssigned(StateConflictError):
    def __init__(self, request_id: str, ca_id: str | None = None):
        super().__init__(f"Request {request_id} is already assigned")
        self.request_id = request_id
        self.ca_id = ca_id


# ─── Eligibility (recovered locally) ────────────────────────────────


class EligibilityExhaustedError(AssignmentError):
    pass


class NoActiveMembers(EligibilityExhaustedError):
    def __init__(self, firm_id: str):
        super().__init__("No active members available in firm")
        self.firm_id = firm_id


class NoEligibleCandidates(EligibilityExhaustedError):
    def __init__(self, firm_id: str, explanation: str | None = None):
        super().__init__(explanation or "No eligible candidates available for this request")
        self.firm_id = firm_id


class ScoreBelowThreshold(EligibilityExhaustedError):
    def __init__(self, top_score: int, threshold: int):
        super().__init__(
            f"No suitable candidate found (highest score {top_score} below threshold {threshold})"
        )
        self.top_score = top_score
        self.threshold = threshold


# ─── Permission / collaborators ─────────────────────────────────────


class PermissionDeniedError(AssignmentError):
    pass


class CollaboratorUnavailableError(AssignmentError):
    def __init__(self, collaborator: str, detail: str | None = None):
        message = f"{collaborator} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.collaborator = collaborator
