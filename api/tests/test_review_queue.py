from datetime import date

import pytest

from vibe_apply.core.auth import Identity, LeaderStatus, Role
from vibe_apply.services.review_queue import (
    APPLIED,
    RECOMMENDED,
    build_review_queue,
    count_statuses,
    display_status,
    filter_items,
)
from vibe_apply.services.errors import ValidationError

ADMIN = Identity(user_id="admin-1", role=Role.ADMIN)


def test_linked_recommendation_is_absorbed_into_application() -> None:
    applications = [_application("app-1", linked_recommendation_id="rec-1")]
    recommendations = [_recommendation("rec-1", linked_application_id="app-1")]

    items = build_review_queue(identity=ADMIN, applications=applications, recommendations=recommendations)

    assert len(items) == 1
    assert items[0].item_type == "application"
    assert items[0].tags == [APPLIED, RECOMMENDED]
    assert items[0].recommendation_ids == ["rec-1"]


def test_unlinked_match_is_merged_live() -> None:
    applications = [_application("app-1")]
    recommendations = [_recommendation("rec-1")]

    items = build_review_queue(identity=ADMIN, applications=applications, recommendations=recommendations)

    assert [item.key for item in items] == ["app-app-1"]


def test_standalone_recommendation_maps_submitted_to_awaiting() -> None:
    items = build_review_queue(
        identity=ADMIN,
        applications=[],
        recommendations=[_recommendation("rec-1", email="other@x.com")],
    )

    assert items[0].tags == [RECOMMENDED]
    assert items[0].status == "awaiting"
    assert items[0].raw_status == "submitted"
    assert display_status("approved") == "approved"


def test_recommendation_linked_outside_view_is_tagged_applied() -> None:
    leader = Identity(user_id="leader-1", role=Role.BISHOP, leader_status=LeaderStatus.PENDING)
    items = build_review_queue(
        identity=leader,
        applications=[],
        recommendations=[_recommendation("rec-1", linked_application_id="app-1")],
        existing_application_ids={"app-1"},
    )

    assert items[0].tags == [APPLIED, RECOMMENDED]
    assert items[0].can_edit is False


def test_drafts_are_never_listed() -> None:
    items = build_review_queue(
        identity=ADMIN,
        applications=[],
        recommendations=[_recommendation("rec-1", status="draft")],
    )
    assert items == []


def test_order_by_updated_at_is_descending() -> None:
    applications = [
        _application("app-1", email="one@x.com", updated_at="2026-03-05T00:00:00.000000+00:00"),
        _application(
            "app-2",
            email="two@x.com",
            created_at="2026-03-02T00:00:00.000000+00:00",
            updated_at="2026-03-02T00:00:00.000000+00:00",
        ),
    ]

    by_created = build_review_queue(identity=ADMIN, applications=applications, recommendations=[])
    by_updated = build_review_queue(
        identity=ADMIN,
        applications=applications,
        recommendations=[],
        order_by="updated_at",
    )

    assert [item.entity_id for item in by_created] == ["app-2", "app-1"]
    assert [item.entity_id for item in by_updated] == ["app-1", "app-2"]


def test_filter_and_count() -> None:
    applications = [
        _application("app-1", email="one@x.com", status="approved"),
        _application("app-2", email="two@x.com", created_at="2026-03-04T10:00:00.000000+00:00"),
    ]
    items = build_review_queue(identity=ADMIN, applications=applications, recommendations=[])

    assert [item.entity_id for item in filter_items(items, status="approved")] == ["app-1"]
    assert [item.entity_id for item in filter_items(items, created_on=date(2026, 3, 4))] == ["app-2"]
    assert count_statuses(items) == {"all": 2, "awaiting": 1, "approved": 1, "rejected": 0}


def _application(application_id: str, **overrides) -> dict:
    record = {
        "id": application_id,
        "user_id": f"user-{application_id}",
        "name": "Alma Doe",
        "email": "a@x.com",
        "stake": "s1",
        "ward": "w1",
        "status": "awaiting",
        "linked_recommendation_id": None,
        "created_at": "2026-03-01T00:00:00.000000+00:00",
        "updated_at": "2026-03-01T00:00:00.000000+00:00",
    }
    record.update(overrides)
    return record


def _recommendation(recommendation_id: str, **overrides) -> dict:
    record = {
        "id": recommendation_id,
        "leader_id": "leader-1",
        "name": "Alma Doe",
        "email": "a@x.com",
        "stake": "s1",
        "ward": "w1",
        "status": "submitted",
        "linked_application_id": None,
        "created_at": "2026-03-02T00:00:00.000000+00:00",
        "updated_at": "2026-03-02T00:00:00.000000+00:00",
    }
    record.update(overrides)
    return record


def test_unknown_status_filter_is_rejected() -> None:
    with pytest.raises(ValidationError):
        filter_items([], status="submitted")
