"""Tests for CandidateEligibilityPolicy."""

from app.domain.entities.firm import FirmMember
from app.domain.policies.candidate_eligibility import filter_eligible, is_eligible
from app.domain.value_objects.enums import FirmRole, ServiceType, VerificationStatus

GST = ServiceType.GST_FILING


def _member(
    ca_id="ca-1", specs=(GST,), verified=True, independent=False, active=True,
) -> FirmMember:
    return FirmMember(
        ca_id=ca_id, user_id=f"u-{ca_id}", firm_id="firm-1", name=ca_id,
        role=FirmRole.JUNIOR_CA,
        verification_status=VerificationStatus.VERIFIED if verified else VerificationStatus.PENDING,
        specializations=tuple(specs), can_work_independently=independent, is_active=active,
    )


def test_verified_specialist_is_eligible():
    assert is_eligible(_member(), GST, is_after_hours=False)


def test_unverified_member_is_not_eligible():
    assert not is_eligible(_member(verified=False), GST, is_after_hours=False)


def test_inactive_member_is_not_eligible():
    assert not is_eligible(_member(active=False), GST, is_after_hours=False)


def test_missing_specialization_is_not_eligible():
    assert not is_eligible(_member(specs=(ServiceType.AUDIT,)), GST, is_after_hours=False)


def test_secondary_specialization_is_eligible():
    assert is_eligible(_member(specs=(ServiceType.AUDIT, GST)), GST, is_after_hours=False)


def test_after_hours_requires_independent_work():
    assert not is_eligible(_member(independent=False), GST, is_after_hours=True)
    assert is_eligible(_member(independent=True), GST, is_after_hours=True)


def test_filter_keeps_input_order_and_counts_rejections():
    members = [
        _member("ca-3"),
        _member("ca-1", verified=False),
        _member("ca-2", specs=(ServiceType.AUDIT,)),
        _member("ca-0"),
    ]
    report = filter_eligible(members, GST, is_after_hours=False)
    assert [m.ca_id for m in report.eligible] == ["ca-3", "ca-0"]
    assert report.unverified == 1
    assert report.missing_specialization == 1
    assert report.after_hours_restricted == 0
    assert report.considered == 4


def test_filter_explains_empty_result():
    members = [
        _member("ca-1", verified=False),
        _member("ca-2", specs=(ServiceType.AUDIT,)),
        _member("ca-3", independent=False),
    ]
    report = filter_eligible(members, GST, is_after_hours=True)
    assert report.eligible == ()
    explanation = report.explain(GST)
    assert explanation.startswith("No eligible candidates available for this request")
    assert "3 active member(s) considered" in explanation
    assert "1 not verified" in explanation
    assert "1 without GST_FILING specialization" in explanation
    assert "1 not permitted to work after hours" in explanation
