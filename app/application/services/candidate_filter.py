"""CandidateFilter — narrows a firm's active members to eligible candidates."""

from __future__ import annotations

import logging

from app.application.ports.firm_directory import FirmDirectory
from app.domain.entities.service_request import ServiceRequest
from app.domain.errors import NoActiveMembers
from app.domain.policies.candidate_eligibility import EligibilityReport, filter_eligible

logger = logging.getLogger(__name__)


class CandidateFilter:
    """Pure read + filter over the firm directory; no side effects."""

    def __init__(self, directory: FirmDirectory):
        self._directory = directory

    async def filter(
        self,
        firm_id: str,
        request: ServiceRequest,
        is_after_hours: bool,
    ) -> EligibilityReport:
        """Return the eligibility report for ``request`` within ``firm_id``.

        Raises:
            NoActiveMembers: the firm has no active members at all.
            CollaboratorUnavailableError: the directory cannot be reached.
        """
        members = await self._directory.get_active_members(firm_id)
        if not members:
            raise NoActiveMembers(firm_id)

        report = filter_eligible(members, request.service_type, is_after_hours)
        logger.info(
            "Request %s: %d/%d members eligible for %s (after_hours=%s)",
            request.id, len(report.eligible), report.considered,
            request.service_type.value, is_after_hours,
        )
        return report
