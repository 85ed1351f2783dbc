"""AssignmentOrchestrator — auto / manual / override assignment of service requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.assignment_outbox import AssignmentOutbox
from app.application.ports.clock import Clock
from app.application.ports.firm_directory import FirmDirectory
from app.application.ports.service_request_repo import ServiceRequestRepository
from app.application.services.candidate_filter import CandidateFilter
from app.application.services.candidate_profiles import CandidateProfileBuilder
from app.domain.entities.assignment import AssignmentCommit
from app.domain.entities.assignment_event import AssignmentEvent
from app.domain.entities.assignment_result import (
    AssignedTo,
    AssignmentResult,
    NotificationsSent,
)
from app.domain.entities.candidate import ScoredCandidate
from app.domain.entities.firm import FirmConfig, FirmMember
from app.domain.entities.service_request import ServiceRequest
from app.domain.errors import (
    AlreadyAssigned,
    CandidateNotMember,
    CandidateNotVerified,
    EligibilityExhaustedError,
    FirmNotFound,
    NoActiveMembers,
    NoEligibleCandidates,
    NoFirmAssigned,
    PermissionDeniedError,
    RequestNotFound,
    ScoreBelowThreshold,
    SpecializationMismatch,
    StateConflictError,
    ValidationError,
)
from app.domain.policies.candidate_scoring import rank_candidates, score_candidate
from app.domain.value_objects.business_hours import BusinessHours
from app.domain.value_objects.enums import (
    AssignmentEventKind,
    AssignmentMethod,
    AssignmentOutcome,
    AssignmentState,
    ServiceRequestStatus,
)
from app.domain.value_objects.scoring_weights import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

AUTO_ASSIGNMENT_THRESHOLD = 50
MAX_ALTERNATIVES = 3


@dataclass(frozen=True)
class ManualAssignmentCommand:
    request_id: str
    ca_id: str
    admin_user_id: str
    reason: str | None = None
    override_specialization: bool = False


@dataclass(frozen=True)
class OverrideAssignmentCommand:
    request_id: str
    new_ca_id: str
    admin_user_id: str
    reason: str


class AssignmentOrchestrator:
    """Decides who handles a service request and commits the decision.

    The only mutation is ``ServiceRequestRepository.commit_assignment``, a
    conditional write; notifications go through the outbox in the same unit
    of work and are delivered later by the relay.
    """

    def __init__(
        self,
        request_repo: ServiceRequestRepository,
        directory: FirmDirectory,
        candidate_filter: CandidateFilter,
        profile_builder: CandidateProfileBuilder,
        outbox: AssignmentOutbox,
        clock: Clock,
        business_hours: BusinessHours | None = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        threshold: int = AUTO_ASSIGNMENT_THRESHOLD,
    ):
        self._requests = request_repo
        self._directory = directory
        self._filter = candidate_filter
        self._profiles = profile_builder
        self._outbox = outbox
        self._clock = clock
        self._hours = business_hours or BusinessHours()
        self._weights = weights
        self._threshold = threshold

    # ─── Auto path ──────────────────────────────────────────────────

    async def assign_service_request(self, request_id: str) -> AssignmentResult:
        """Try to auto-assign; fall back to a manual-required result.

        Raises:
            RequestNotFound, NoFirmAssigned, FirmNotFound: bad request id / data.
            AlreadyAssigned: the request already has a CA.
            StateConflictError: another assignment won the commit race.
        """
        request = await self._load_request(request_id)
        if request.is_assigned():
            raise AlreadyAssigned(request.id, request.ca_id)
        firm_id = self._require_firm(request)
        firm = await self._load_firm(firm_id)

        if not firm.auto_assignment_enabled:
            logger.info("Request %s: firm %s has auto-assignment disabled", request.id, firm_id)
            return await self._manual_required(
                request, firm_id, "Firm has auto-assignment disabled"
            )

        try:
            ranked = await self._rank(request, firm_id)
            top = ranked[0]
            if top.score < self._threshold:
                raise ScoreBelowThreshold(top.score, self._threshold)
        except EligibilityExhaustedError as e:
            logger.info("Request %s: auto-assignment not possible: %s", request.id, e)
            return await self._manual_required(request, firm_id, str(e))

        committed = await self._requests.commit_assignment(
            AssignmentCommit(
                request_id=request.id,
                ca_id=top.ca_id,
                method=AssignmentMethod.AUTO,
                expected_ca_id=None,
                score=top.score,
                new_status=ServiceRequestStatus.ACCEPTED,
            )
        )
        if not committed:
            logger.warning("Request %s: lost auto-assignment commit race", request.id)
            raise StateConflictError(f"Request {request.id} was assigned concurrently")

        logger.info(
            "Request %s auto-assigned to CA %s (score=%d)", request.id, top.ca_id, top.score
        )
        notifications = await self._emit_assigned(request, top.ca_id, AssignmentMethod.AUTO)

        return AssignmentResult(
            success=True,
            method=AssignmentOutcome.AUTO,
            request_id=request.id,
            state=AssignmentState.ASSIGNED_AUTO,
            assigned_to=AssignedTo(ca_id=top.ca_id, firm_id=firm_id, name=top.name),
            score=top.score,
            reasons=list(top.reasons),
            alternatives=ranked[1 : 1 + MAX_ALTERNATIVES],
            notifications=notifications,
        )

    # ─── Admin paths ────────────────────────────────────────────────

    async def manual_assignment(self, cmd: ManualAssignmentCommand) -> AssignmentResult:
        request = await self._load_request(cmd.request_id)
        firm_id = self._require_firm(request)
        await self._require_admin(firm_id, cmd.admin_user_id, "manually assign requests")
        if request.is_assigned():
            raise AlreadyAssigned(request.id, request.ca_id)

        member = await self._require_assignable_member(firm_id, cmd.ca_id)
        if not member.specializes_in(request.service_type) and not cmd.override_specialization:
            raise SpecializationMismatch(member.ca_id, request.service_type.value)

        await self._commit_manual(
            request, member, cmd.admin_user_id,
            expected_ca_id=None, new_status=ServiceRequestStatus.ACCEPTED,
        )
        logger.info(
            "Request %s manually assigned to CA %s by %s",
            request.id, member.ca_id, cmd.admin_user_id,
        )
        notifications = await self._emit_assigned(
            request, member.ca_id, AssignmentMethod.MANUAL, cmd.reason
        )

        return AssignmentResult(
            success=True,
            method=AssignmentOutcome.MANUAL,
            request_id=request.id,
            state=AssignmentState.ASSIGNED_MANUAL,
            assigned_to=AssignedTo(ca_id=member.ca_id, firm_id=firm_id, name=member.name),
            reasons=[cmd.reason] if cmd.reason else ["Manually assigned by firm admin"],
            notifications=notifications,
        )

    async def override_assignment(self, cmd: OverrideAssignmentCommand) -> AssignmentResult:
        if not cmd.reason or not cmd.reason.strip():
            raise ValidationError("An override requires a reason")

        request = await self._load_request(cmd.request_id)
        firm_id = self._require_firm(request)
        await self._require_admin(firm_id, cmd.admin_user_id, "override assignments")

        if request.ca_id == cmd.new_ca_id:
            raise ValidationError(f"Request {request.id} is already assigned to CA {cmd.new_ca_id}")
        member = await self._require_assignable_member(firm_id, cmd.new_ca_id)

        new_status = (
            ServiceRequestStatus.ACCEPTED
            if request.status == ServiceRequestStatus.PENDING
            else None
        )
        await self._commit_manual(
            request, member, cmd.admin_user_id,
            expected_ca_id=request.ca_id, new_status=new_status,
        )
        logger.info(
            "Request %s overridden: CA %s → %s by %s (%s)",
            request.id, request.ca_id, member.ca_id, cmd.admin_user_id, cmd.reason,
        )
        notifications = await self._emit_assigned(
            request, member.ca_id, AssignmentMethod.MANUAL, cmd.reason
        )

        return AssignmentResult(
            success=True,
            method=AssignmentOutcome.MANUAL,
            request_id=request.id,
            state=AssignmentState.ASSIGNED_MANUAL,
            assigned_to=AssignedTo(ca_id=member.ca_id, firm_id=firm_id, name=member.name),
            reasons=[cmd.reason],
            notifications=notifications,
        )

    # ─── Read-only ──────────────────────────────────────────────────

    async def get_recommendations(self, request_id: str, limit: int = 5) -> list[ScoredCandidate]:
        """Ranked candidates for admin review; never commits anything."""
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        request = await self._load_request(request_id)
        firm_id = self._require_firm(request)

        try:
            ranked = await self._rank(request, firm_id)
        except (NoActiveMembers, NoEligibleCandidates) as e:
            logger.info("Request %s: no recommendations: %s", request.id, e)
            return []
        return ranked[:limit]

    # ─── Helpers ────────────────────────────────────────────────────

    async def _rank(self, request: ServiceRequest, firm_id: str) -> list[ScoredCandidate]:
        is_after_hours = self._hours.is_after_hours(self._clock.now())
        report = await self._filter.filter(firm_id, request, is_after_hours)
        if not report.eligible:
            raise NoEligibleCandidates(firm_id, report.explain(request.service_type))

        profiles = await self._profiles.build_all(report.eligible, request)
        scored = [score_candidate(p, request.service_type, self._weights) for p in profiles]
        return rank_candidates(scored)

    async def _load_request(self, request_id: str) -> ServiceRequest:
        request = await self._requests.get_by_id(request_id)
        if request is None:
            raise RequestNotFound(request_id)
        return request

    @staticmethod
    def _require_firm(request: ServiceRequest) -> str:
        if not request.firm_id:
            raise NoFirmAssigned(request.id)
        return request.firm_id

    async def _load_firm(self, firm_id: str) -> FirmConfig:
        firm = await self._directory.get_firm_config(firm_id)
        if firm is None:
            raise FirmNotFound(firm_id)
        return firm

    async def _require_admin(self, firm_id: str, user_id: str, action: str) -> FirmMember:
        admin = await self._directory.get_firm_admin(firm_id, user_id)
        if admin is None or not admin.is_firm_admin():
            raise PermissionDeniedError(f"Only firm admins can {action}")
        return admin

    async def _require_assignable_member(self, firm_id: str, ca_id: str) -> FirmMember:
        member = await self._directory.get_active_member(firm_id, ca_id)
        if member is None or not member.is_active:
            raise CandidateNotMember(ca_id, firm_id)
        if not member.is_verified():
            raise CandidateNotVerified(ca_id)
        return member

    async def _commit_manual(
        self,
        request: ServiceRequest,
        member: FirmMember,
        admin_user_id: str,
        expected_ca_id: str | None,
        new_status: ServiceRequestStatus | None,
    ) -> None:
        committed = await self._requests.commit_assignment(
            AssignmentCommit(
                request_id=request.id,
                ca_id=member.ca_id,
                method=AssignmentMethod.MANUAL,
                expected_ca_id=expected_ca_id,
                score=None,
                assigned_by_user_id=admin_user_id,
                new_status=new_status,
            )
        )
        if not committed:
            logger.warning("Request %s: manual commit lost to a concurrent change", request.id)
            raise StateConflictError(f"Request {request.id} assignment changed concurrently")

    async def _manual_required(
        self, request: ServiceRequest, firm_id: str, reason: str
    ) -> AssignmentResult:
        queued = await self._emit(
            AssignmentEvent(
                id=None,
                kind=AssignmentEventKind.MANUAL_REQUIRED,
                request_id=request.id,
                firm_id=firm_id,
                client_id=request.client_id,
                reason=reason,
            )
        )
        reasons = [reason]
        reasons.append(
            "Notification queued for firm admin" if queued
            else "Firm admin notification could not be queued"
        )
        return AssignmentResult(
            success=False,
            method=AssignmentOutcome.MANUAL_REQUIRED,
            request_id=request.id,
            state=AssignmentState.MANUAL_PENDING,
            reasons=reasons,
            notifications=NotificationsSent(firm_admin=queued),
        )

    async def _emit_assigned(
        self,
        request: ServiceRequest,
        ca_id: str,
        method: AssignmentMethod,
        reason: str | None = None,
    ) -> NotificationsSent:
        queued = await self._emit(
            AssignmentEvent(
                id=None,
                kind=AssignmentEventKind.ASSIGNED,
                request_id=request.id,
                firm_id=request.firm_id or "",
                client_id=request.client_id,
                ca_id=ca_id,
                method=method,
                reason=reason,
            )
        )
        return NotificationsSent(client=queued, ca=queued, firm_admin=False)

    async def _emit(self, event: AssignmentEvent) -> bool:
        try:
            await self._outbox.enqueue(event)
        except Exception:
            logger.exception(
                "Failed to queue %s notification for request %s",
                event.kind.value, event.request_id,
            )
            return False
        return True
