"""Tests for the SQLAlchemy repositories and oracles (SQLite via aiosqlite)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from app.adapters.persistence.models import (
    AssignmentEventModel,
    AvailabilitySlotModel,
    CharteredAccountantModel,
    FirmMembershipModel,
    FirmModel,
    ReviewModel,
    ServiceRequestModel,
)
from app.adapters.persistence.oracles import (
    SqlAvailabilityOracle,
    SqlFirmDirectory,
    SqlHistoryOracle,
)
from app.adapters.persistence.repositories import (
    SqlAssignmentOutbox,
    SqlServiceRequestRepository,
    pending_events_query,
)
from app.domain.entities.assignment import AssignmentCommit
from app.domain.entities.assignment_event import AssignmentEvent
from app.domain.entities.candidate import CandidateProfile
from app.domain.policies.candidate_scoring import score_candidate
from app.domain.value_objects.enums import (
    AssignmentEventKind,
    AssignmentMethod,
    FirmRole,
    ServiceRequestStatus,
    ServiceType,
    VerificationStatus,
)

T0 = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)


async def _seed(session_factory):
    async with session_factory() as s:
        s.add_all([
            FirmModel(id="firm-1", name="Sharma & Co", auto_assignment_enabled=True),
            CharteredAccountantModel(
                id="ca-admin", user_id="u-admin", name="Admin", email="admin@sharma.test",
                specializations=["AUDIT"], verification_status="VERIFIED",
            ),
            CharteredAccountantModel(
                id="ca-1", user_id="u-1", name="Asha",
                specializations=["GST_FILING", "AUDIT", "SOMETHING_ELSE"],
                verification_status="VERIFIED",
            ),
            CharteredAccountantModel(
                id="ca-2", user_id="u-2", name="Ravi",
                specializations=["AUDIT"], verification_status="PENDING",
            ),
        ])
        await s.flush()
        s.add_all([
            FirmMembershipModel(firm_id="firm-1", ca_id="ca-admin", role="FIRM_ADMIN"),
            FirmMembershipModel(
                firm_id="firm-1", ca_id="ca-1", role="SENIOR_CA", can_work_independently=True,
            ),
            FirmMembershipModel(firm_id="firm-1", ca_id="ca-2", role="JUNIOR_CA", is_active=False),
            ServiceRequestModel(
                id="r-1", client_id="client-1", firm_id="firm-1",
                service_type="GST_FILING", status="PENDING", created_at=T0,
            ),
            ServiceRequestModel(
                id="r-2", client_id="client-2", firm_id="firm-1",
                service_type="AUDIT", status="PENDING", created_at=T0 + timedelta(hours=1),
            ),
            ServiceRequestModel(
                id="r-3", client_id="client-1", firm_id="firm-1", ca_id="ca-1",
                service_type="GST_FILING", status="COMPLETED", assignment_method="AUTO",
                auto_assignment_score=80, created_at=T0 - timedelta(days=2),
            ),
            ServiceRequestModel(
                id="r-4", client_id="client-3", firm_id="firm-1", ca_id="ca-1",
                service_type="GST_FILING", status="IN_PROGRESS", assignment_method="MANUAL",
                created_at=T0 - timedelta(days=1),
            ),
            ServiceRequestModel(
                id="r-5", client_id="client-3", firm_id="firm-1", ca_id="ca-1",
                service_type="GST_FILING", status="COMPLETED", assignment_method="AUTO",
                auto_assignment_score=70, created_at=T0 - timedelta(days=40),
            ),
        ])
        await s.flush()
        s.add_all([
            ReviewModel(request_id="r-3", rating=4, created_at=T0 - timedelta(days=1)),
            ReviewModel(request_id="r-3", rating=1, created_at=T0),
            ReviewModel(request_id="r-5", rating=5, created_at=T0 - timedelta(days=30)),
            AvailabilitySlotModel(ca_id="ca-1", date=T0 + timedelta(days=1), is_booked=False),
            AvailabilitySlotModel(ca_id="ca-1", date=T0 + timedelta(days=2), is_booked=False),
            AvailabilitySlotModel(ca_id="ca-1", date=T0 + timedelta(days=3), is_booked=True),
            AvailabilitySlotModel(ca_id="ca-1", date=T0 + timedelta(days=20), is_booked=False),
        ])
        await s.commit()


# ─── SqlServiceRequestRepository ─────────────────────────────────────


@pytest.mark.asyncio
async def test_get_by_id_maps_to_domain(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        repo = SqlServiceRequestRepository(s)
        request = await repo.get_by_id("r-3")
        assert request.service_type == ServiceType.GST_FILING
        assert request.status == ServiceRequestStatus.COMPLETED
        assert request.assignment_method == AssignmentMethod.AUTO
        assert request.auto_assignment_score == 80
        assert await repo.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_commit_assignment_is_conditional(session_factory):
    await _seed(session_factory)
    first = AssignmentCommit(
        request_id="r-1", ca_id="ca-1", method=AssignmentMethod.AUTO,
        expected_ca_id=None, score=91, new_status=ServiceRequestStatus.ACCEPTED,
    )
    async with session_factory() as s:
        repo = SqlServiceRequestRepository(s)
        assert await repo.commit_assignment(first) is True
        assert await repo.commit_assignment(first) is False
        await s.commit()

    async with session_factory() as s:
        stored = await SqlServiceRequestRepository(s).get_by_id("r-1")
    assert stored.ca_id == "ca-1"
    assert stored.assignment_method == AssignmentMethod.AUTO
    assert stored.auto_assignment_score == 91
    assert stored.status == ServiceRequestStatus.ACCEPTED


@pytest.mark.asyncio
async def test_override_commit_requires_prior_assignee(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        repo = SqlServiceRequestRepository(s)
        stale = AssignmentCommit(
            request_id="r-4", ca_id="ca-admin", method=AssignmentMethod.MANUAL,
            expected_ca_id="ca-2", assigned_by_user_id="u-admin",
        )
        assert await repo.commit_assignment(stale) is False

        current = AssignmentCommit(
            request_id="r-4", ca_id="ca-admin", method=AssignmentMethod.MANUAL,
            expected_ca_id="ca-1", assigned_by_user_id="u-admin",
        )
        assert await repo.commit_assignment(current) is True
        await s.commit()

    async with session_factory() as s:
        stored = await SqlServiceRequestRepository(s).get_by_id("r-4")
    assert stored.ca_id == "ca-admin"
    assert stored.assigned_by_user_id == "u-admin"
    assert stored.status == ServiceRequestStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_list_pending_oldest_first(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        page = await SqlServiceRequestRepository(s).list_pending("firm-1", offset=0, limit=10)
    assert [r.id for r in page.items] == ["r-1", "r-2"]
    assert page.total == 2


@pytest.mark.asyncio
async def test_list_assigned_newest_first_with_status_filter(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        repo = SqlServiceRequestRepository(s)
        everything = await repo.list_assigned("ca-1", None, offset=0, limit=10)
        completed = await repo.list_assigned(
            "ca-1", ServiceRequestStatus.COMPLETED, offset=0, limit=1
        )
    assert [r.id for r in everything.items] == ["r-4", "r-3", "r-5"]
    assert [r.id for r in completed.items] == ["r-3"]
    assert completed.total == 2


@pytest.mark.asyncio
async def test_count_assignments_within_period(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        counts = await SqlServiceRequestRepository(s).count_assignments(
            "firm-1", since=T0 - timedelta(days=7)
        )
    assert counts.total_assigned == 2
    assert counts.auto == 1
    assert counts.manual == 1
    assert counts.pending == 2
    assert counts.average_auto_score == pytest.approx(80.0)


# ─── SqlAssignmentOutbox ─────────────────────────────────────────────


def _event(request_id, created_at, kind=AssignmentEventKind.ASSIGNED) -> AssignmentEvent:
    return AssignmentEvent(
        id=None, kind=kind, request_id=request_id, firm_id="firm-1",
        client_id="client-1", ca_id="ca-1", method=AssignmentMethod.AUTO,
        created_at=created_at,
    )


@pytest.mark.asyncio
async def test_outbox_enqueue_and_pending_order(session_factory):
    async with session_factory() as s:
        outbox = SqlAssignmentOutbox(s)
        late = await outbox.enqueue(_event("r-2", T0 + timedelta(minutes=5)))
        early = await outbox.enqueue(_event("r-1", T0))
        await s.commit()
    assert late.id and early.id

    async with session_factory() as s:
        pending = await SqlAssignmentOutbox(s).get_pending(limit=10, max_attempts=5)
    assert [e.request_id for e in pending] == ["r-1", "r-2"]
    assert pending[0].kind == AssignmentEventKind.ASSIGNED
    assert pending[0].method == AssignmentMethod.AUTO


@pytest.mark.asyncio
async def test_outbox_delivery_and_failures(session_factory):
    async with session_factory() as s:
        outbox = SqlAssignmentOutbox(s)
        ok = await outbox.enqueue(_event("r-1", T0))
        bad = await outbox.enqueue(_event("r-2", T0 + timedelta(minutes=1)))
        await s.commit()

    async with session_factory() as s:
        outbox = SqlAssignmentOutbox(s)
        await outbox.mark_delivered(ok.id)
        await outbox.mark_failed(bad.id, "HTTP 502")
        await s.commit()

    async with session_factory() as s:
        pending = await SqlAssignmentOutbox(s).get_pending(limit=10, max_attempts=5)
        assert [e.id for e in pending] == [bad.id]
        assert pending[0].attempts == 1
        assert pending[0].last_error == "HTTP 502"
        assert await SqlAssignmentOutbox(s).get_pending(limit=10, max_attempts=1) == []


@pytest.mark.asyncio
async def test_failed_outbox_insert_keeps_assignment_committable(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        assigned = await SqlServiceRequestRepository(s).commit_assignment(AssignmentCommit(
            request_id="r-1", ca_id="ca-1", method=AssignmentMethod.AUTO,
            expected_ca_id=None, score=91, new_status=ServiceRequestStatus.ACCEPTED,
        ))
        assert assigned is True

        # firm_id is NOT NULL, so the insert fails at flush.
        broken = AssignmentEvent(
            id=None, kind=AssignmentEventKind.ASSIGNED, request_id="r-1", firm_id=None,
            client_id="client-1", ca_id="ca-1", method=AssignmentMethod.AUTO,
        )
        with pytest.raises(IntegrityError):
            await SqlAssignmentOutbox(s).enqueue(broken)

        await s.commit()

    async with session_factory() as s:
        stored = await SqlServiceRequestRepository(s).get_by_id("r-1")
        assert stored.ca_id == "ca-1"
        assert stored.status == ServiceRequestStatus.ACCEPTED
        assert await SqlAssignmentOutbox(s).get_pending(limit=10, max_attempts=5) == []


def test_pending_events_skip_rows_claimed_by_another_relay():
    sql = str(pending_events_query(10, 5).compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE SKIP LOCKED" in sql


@pytest.mark.asyncio
async def test_outbox_event_is_delivered_once(session_factory):
    async with session_factory() as s:
        event = await SqlAssignmentOutbox(s).enqueue(_event("r-1", T0))
        await s.commit()

    async with session_factory() as s:
        outbox = SqlAssignmentOutbox(s)
        await outbox.mark_delivered(event.id)
        await outbox.mark_delivered(event.id)
        await s.commit()

    async with session_factory() as s:
        stored = await s.get(AssignmentEventModel, event.id)
        assert stored.delivered_at is not None
        assert stored.attempts == 1


# ─── Oracles ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_directory_lists_active_members(session_factory):
    await _seed(session_factory)
    directory = SqlFirmDirectory(session_factory)

    members = await directory.get_active_members("firm-1")

    assert [m.ca_id for m in members] == ["ca-1", "ca-admin"]
    asha = members[0]
    assert asha.role == FirmRole.SENIOR_CA
    assert asha.verification_status == VerificationStatus.VERIFIED
    assert asha.specializations == (ServiceType.GST_FILING, ServiceType.AUDIT, "SOMETHING_ELSE")
    assert asha.can_work_independently is True


@pytest.mark.asyncio
async def test_directory_lookups(session_factory):
    await _seed(session_factory)
    directory = SqlFirmDirectory(session_factory)

    config = await directory.get_firm_config("firm-1")
    assert config.name == "Sharma & Co"
    assert config.auto_assignment_enabled is True
    assert await directory.get_firm_config("firm-x") is None

    assert (await directory.get_active_member("firm-1", "ca-1")).name == "Asha"
    assert await directory.get_active_member("firm-1", "ca-2") is None

    admin = await directory.get_firm_admin("firm-1", "u-admin")
    assert admin.ca_id == "ca-admin"
    assert admin.is_firm_admin()
    assert await directory.get_firm_admin("firm-1", "u-1") is None


@pytest.mark.asyncio
async def test_unknown_specialization_keeps_its_position(session_factory):
    await _seed(session_factory)
    async with session_factory() as s:
        s.add(CharteredAccountantModel(
            id="ca-3", user_id="u-3", name="Meera",
            specializations=["LEGACY_TYPE", "GST_FILING"], verification_status="VERIFIED",
        ))
        await s.flush()
        s.add(FirmMembershipModel(firm_id="firm-1", ca_id="ca-3", role="SENIOR_CA"))
        await s.commit()

    meera = await SqlFirmDirectory(session_factory).get_active_member("firm-1", "ca-3")
    assert meera.specializations == ("LEGACY_TYPE", ServiceType.GST_FILING)
    assert meera.specializes_in(ServiceType.GST_FILING)

    scored = score_candidate(CandidateProfile(member=meera), ServiceType.GST_FILING)
    assert scored.breakdown.specialization == 70
    assert scored.specializations == ("LEGACY_TYPE", "GST_FILING")


@pytest.mark.asyncio
async def test_availability_counts_slots_in_window(session_factory):
    await _seed(session_factory)
    counts = await SqlAvailabilityOracle(session_factory).count_slots(
        "ca-1", T0, T0 + timedelta(days=7)
    )
    assert counts.free == 2
    assert counts.booked == 1
    assert counts.total == 3


@pytest.mark.asyncio
async def test_history_oracle(session_factory):
    await _seed(session_factory)
    history = SqlHistoryOracle(session_factory)

    assert await history.count_active_assignments("ca-1") == 1
    assert await history.count_active_assignments("ca-admin") == 0

    rated = await history.completed_with_rating("ca-1", ServiceType.GST_FILING)
    assert rated.completed == 2
    assert sorted(rated.ratings) == [4.0, 5.0]
    assert (await history.completed_with_rating("ca-1", ServiceType.AUDIT)).completed == 0

    assert await history.has_prior_work("ca-1", "client-1") is True
    assert await history.has_prior_work("ca-1", "client-2") is False
