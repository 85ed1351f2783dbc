"""Assignment endpoints — auto / manual / override assignment and reports."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.assignment_orchestrator import (
    AssignmentOrchestrator,
    ManualAssignmentCommand,
    OverrideAssignmentCommand,
)
from app.application.use_cases.assignment_reports import (
    AssignmentReportsUseCase,
    RequestListing,
)
from app.domain.entities.assignment_result import AssignmentResult
from app.domain.entities.candidate import ScoredCandidate
from app.domain.entities.service_request import ServiceRequest
from app.domain.errors import (
    AssignmentError,
    CollaboratorUnavailableError,
    FirmNotFound,
    PermissionDeniedError,
    RequestNotFound,
    StateConflictError,
    ValidationError,
)
from app.domain.value_objects.enums import ServiceRequestStatus, StatsPeriod
from app.infrastructure.api.dependencies import (
    get_orchestrator,
    get_relay_runner,
    get_reports_uc,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


class ManualAssignmentBody(BaseModel):
    request_id: str
    ca_id: str
    reason: str | None = None
    override_specialization: bool = False


class OverrideAssignmentBody(BaseModel):
    new_ca_id: str
    reason: str = Field(min_length=1)


# ─── Mutations ──────────────────────────────────────────────────────


@router.post("/auto-assign/{request_id}")
async def auto_assign(
    request_id: str,
    background_tasks: BackgroundTasks,
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
    session: AsyncSession = Depends(get_session),
    run_relay: Callable[[], Awaitable] = Depends(get_relay_runner),
):
    """Auto-assign a request to the best-scoring CA of its firm."""
    try:
        result = await orchestrator.assign_service_request(request_id)
    except AssignmentError as e:
        await session.rollback()
        raise _http_error(e)

    await session.commit()
    background_tasks.add_task(_relay_quietly, run_relay)
    return _serialize_result(result)


@router.post("/manual")
async def manual_assign(
    body: ManualAssignmentBody,
    background_tasks: BackgroundTasks,
    x_user_id: str | None = Header(default=None),
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
    session: AsyncSession = Depends(get_session),
    run_relay: Callable[[], Awaitable] = Depends(get_relay_runner),
):
    """Assign a request to a chosen CA (firm admins only)."""
    cmd = ManualAssignmentCommand(
        request_id=body.request_id,
        ca_id=body.ca_id,
        admin_user_id=_require_user(x_user_id),
        reason=body.reason,
        override_specialization=body.override_specialization,
    )
    try:
        result = await orchestrator.manual_assignment(cmd)
    except AssignmentError as e:
        await session.rollback()
        raise _http_error(e)

    await session.commit()
    background_tasks.add_task(_relay_quietly, run_relay)
    return _serialize_result(result)


@router.post("/override/{request_id}")
async def override_assignment(
    request_id: str,
    body: OverrideAssignmentBody,
    background_tasks: BackgroundTasks,
    x_user_id: str | None = Header(default=None),
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
    session: AsyncSession = Depends(get_session),
    run_relay: Callable[[], Awaitable] = Depends(get_relay_runner),
):
    """Reassign a request to another CA (firm admins only, reason required)."""
    cmd = OverrideAssignmentCommand(
        request_id=request_id,
        new_ca_id=body.new_ca_id,
        admin_user_id=_require_user(x_user_id),
        reason=body.reason,
    )
    try:
        result = await orchestrator.override_assignment(cmd)
    except AssignmentError as e:
        await session.rollback()
        raise _http_error(e)

    await session.commit()
    background_tasks.add_task(_relay_quietly, run_relay)
    return _serialize_result(result)


# ─── Read-only ──────────────────────────────────────────────────────


@router.get("/recommendations/{request_id}")
async def recommendations(
    request_id: str,
    limit: int = Query(default=5, ge=1, le=50),
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
):
    """Ranked candidates for a request, without assigning anyone."""
    try:
        ranked = await orchestrator.get_recommendations(request_id, limit)
    except AssignmentError as e:
        raise _http_error(e)

    return {
        "request_id": request_id,
        "total": len(ranked),
        "recommendations": [_serialize_candidate(c) for c in ranked],
    }


@router.get("/firm/{firm_id}/pending")
async def pending_for_firm(
    firm_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    reports: AssignmentReportsUseCase = Depends(get_reports_uc),
):
    """Unassigned pending requests of a firm, oldest first."""
    try:
        listing = await reports.pending_for_firm(firm_id, page, limit)
    except AssignmentError as e:
        raise _http_error(e)
    return _serialize_listing(listing)


@router.get("/ca/{ca_id}/assigned")
async def assigned_to_ca(
    ca_id: str,
    status: ServiceRequestStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    reports: AssignmentReportsUseCase = Depends(get_reports_uc),
):
    """Requests assigned to a CA, newest first."""
    try:
        listing = await reports.assigned_to_ca(ca_id, status, page, limit)
    except AssignmentError as e:
        raise _http_error(e)
    return _serialize_listing(listing)


@router.get("/stats/firm/{firm_id}")
async def firm_stats(
    firm_id: str,
    period: StatsPeriod = StatsPeriod.WEEK,
    reports: AssignmentReportsUseCase = Depends(get_reports_uc),
):
    """Assignment statistics of a firm over the last day / week / month."""
    stats = await reports.stats_for_firm(firm_id, period)
    return {
        "firm_id": stats.firm_id,
        "period": stats.period.value,
        "total_assignments": stats.total_assignments,
        "auto_assignments": stats.auto_assignments,
        "manual_assignments": stats.manual_assignments,
        "pending_assignments": stats.pending_assignments,
        "auto_assignment_rate": stats.auto_assignment_rate,
        "average_auto_score": stats.average_auto_score,
    }


# ─── Helpers ────────────────────────────────────────────────────────


def _require_user(x_user_id: str | None) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return x_user_id


def _http_error(e: AssignmentError) -> HTTPException:
    """Map an assignment error to the HTTP status the caller should see."""
    if isinstance(e, (RequestNotFound, FirmNotFound)):
        status_code = 404
    elif isinstance(e, ValidationError):
        status_code = 400
    elif isinstance(e, PermissionDeniedError):
        status_code = 403
    elif isinstance(e, StateConflictError):
        status_code = 409
    elif isinstance(e, CollaboratorUnavailableError):
        status_code = 503
    else:
        logger.error("Unmapped assignment error: %r", e)
        status_code = 500
    return HTTPException(status_code=status_code, detail=str(e))


async def _relay_quietly(run_relay: Callable[[], Awaitable]) -> None:
    try:
        await run_relay()
    except Exception:
        logger.exception("Background notification relay failed")


def _serialize_result(r: AssignmentResult) -> dict:
    return {
        "success": r.success,
        "method": r.method.value,
        "request_id": r.request_id,
        "state": r.state.value,
        "assigned_to": {
            "ca_id": r.assigned_to.ca_id,
            "firm_id": r.assigned_to.firm_id,
            "name": r.assigned_to.name,
        } if r.assigned_to else None,
        "score": r.score,
        "reasons": list(r.reasons),
        "alternatives": [_serialize_candidate(c) for c in r.alternatives],
        "notifications": {
            "client": r.notifications.client,
            "ca": r.notifications.ca,
            "firm_admin": r.notifications.firm_admin,
        },
    }


def _serialize_candidate(c: ScoredCandidate) -> dict:
    return {
        "ca_id": c.ca_id,
        "firm_id": c.firm_id,
        "name": c.name,
        "score": c.score,
        "breakdown": c.breakdown.as_dict(),
        "reasons": list(c.reasons),
        "specializations": list(c.specializations),
    }


def _serialize_request(r: ServiceRequest) -> dict:
    return {
        "id": r.id,
        "client_id": r.client_id,
        "firm_id": r.firm_id,
        "ca_id": r.ca_id,
        "service_type": r.service_type.value,
        "status": r.status.value,
        "assignment_method": r.assignment_method.value if r.assignment_method else None,
        "auto_assignment_score": r.auto_assignment_score,
        "assignment_state": r.assignment_state.value,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


def _serialize_listing(listing: RequestListing) -> dict:
    p = listing.pagination
    return {
        "requests": [_serialize_request(r) for r in listing.requests],
        "pagination": {"page": p.page, "limit": p.limit, "total": p.total, "pages": p.pages},
    }
