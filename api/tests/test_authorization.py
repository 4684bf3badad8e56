import pytest

from vibe_apply.core.auth import (
    DECIDER_ROLES,
    NOTE_AUTHOR_ROLES,
    RECOMMENDER_ROLES,
    Identity,
    LeaderStatus,
    Role,
)
from vibe_apply.services.authorization import PERMISSIONS, Action, can_perform, ensure_allowed
from vibe_apply.services.errors import AuthorizationError


def test_admin_decides_but_cannot_recommend_or_author_notes() -> None:
    admin = _identity("admin-1", Role.ADMIN)
    application = _application(stake="s1")

    assert can_perform(admin, Action.APPLICATION_DECIDE, application)
    assert can_perform(admin, Action.APPLICATION_READ, application)
    assert not can_perform(admin, Action.RECOMMENDATION_CREATE)
    assert not can_perform(admin, Action.MEMO_CREATE, application)


def test_pending_leader_has_no_visibility_beyond_own_recommendations() -> None:
    bishop = _identity("bishop-1", Role.BISHOP, LeaderStatus.PENDING, stake="s1")

    assert not can_perform(bishop, Action.APPLICATION_READ, _application(stake="s1"))
    assert not can_perform(bishop, Action.RECOMMENDATION_READ, _recommendation("other", stake="s1"))
    assert can_perform(bishop, Action.RECOMMENDATION_READ, _recommendation("bishop-1", stake="s1"))


def test_approved_bishop_reads_own_stake_only() -> None:
    bishop = _identity("bishop-1", Role.BISHOP, LeaderStatus.APPROVED, stake="s1")

    assert can_perform(bishop, Action.APPLICATION_READ, _application(stake="S1 "))
    assert not can_perform(bishop, Action.APPLICATION_READ, _application(stake="s2"))
    assert not can_perform(bishop, Action.APPLICATION_DECIDE, _application(stake="s1"))
    assert can_perform(bishop, Action.MEMO_CREATE, _application(stake="s1"))


def test_other_leaders_drafts_stay_private() -> None:
    president = _identity("sp-1", Role.STAKE_PRESIDENT, LeaderStatus.APPROVED, stake="s1")

    assert not can_perform(president, Action.RECOMMENDATION_READ, _recommendation("bishop-1", stake="s1"))
    assert can_perform(
        president,
        Action.RECOMMENDATION_READ,
        _recommendation("bishop-1", stake="s1", status="submitted"),
    )


def test_session_leader_decides_only_when_approved() -> None:
    approved = _identity("sl-1", Role.SESSION_LEADER, LeaderStatus.APPROVED)
    pending = _identity("sl-2", Role.SESSION_LEADER, LeaderStatus.PENDING)

    assert can_perform(approved, Action.RECOMMENDATION_DECIDE, _recommendation("bishop-1", status="submitted"))
    assert not can_perform(pending, Action.RECOMMENDATION_DECIDE, _recommendation("bishop-1", status="submitted"))


def test_applicant_cannot_read_queue_or_others_applications() -> None:
    applicant = _identity("user-1", Role.APPLICANT)

    assert not can_perform(applicant, Action.REVIEW_QUEUE_READ)
    assert not can_perform(applicant, Action.APPLICATION_READ, _application(user_id="user-2"))
    assert can_perform(applicant, Action.APPLICATION_READ, _application(user_id="user-1"))


def test_profile_completion_only_without_role() -> None:
    assert can_perform(_identity("new-user", None), Action.PROFILE_COMPLETE)
    assert not can_perform(_identity("user-1", Role.APPLICANT), Action.PROFILE_COMPLETE)


def test_admins_cannot_be_deleted() -> None:
    admin = _identity("admin-1", Role.ADMIN)

    assert can_perform(admin, Action.USER_DELETE, {"id": "user-1", "role": "applicant"})
    assert not can_perform(admin, Action.USER_DELETE, {"id": "admin-2", "role": "admin"})


def test_ensure_allowed_raises_authorization_error() -> None:
    with pytest.raises(AuthorizationError):
        ensure_allowed(_identity("user-1", Role.APPLICANT), Action.USER_LIST)


def _identity(
    user_id: str,
    role: Role | None,
    leader_status: LeaderStatus | None = None,
    *,
    stake: str = "",
) -> Identity:
    return Identity(user_id=user_id, role=role, leader_status=leader_status, stake=stake)


def _application(*, user_id: str = "user-9", stake: str = "s1", status: str = "awaiting") -> dict:
    return {"id": "app-1", "user_id": user_id, "stake": stake, "ward": "w1", "status": status}


def _recommendation(leader_id: str, *, stake: str = "s1", status: str = "draft") -> dict:
    return {"id": "rec-1", "leader_id": leader_id, "stake": stake, "ward": "w1", "status": status}


def test_decision_rows_follow_role_sets() -> None:
    for action in (Action.APPLICATION_DECIDE, Action.RECOMMENDATION_DECIDE):
        assert set(PERMISSIONS[action]) == set(DECIDER_ROLES)
    assert set(PERMISSIONS[Action.RECOMMENDATION_CREATE]) == set(RECOMMENDER_ROLES)
    assert set(PERMISSIONS[Action.MEMO_CREATE]) == set(NOTE_AUTHOR_ROLES)
    assert set(PERMISSIONS[Action.COMMENT_CREATE]) == set(NOTE_AUTHOR_ROLES)
    assert not RECOMMENDER_ROLES & DECIDER_ROLES
