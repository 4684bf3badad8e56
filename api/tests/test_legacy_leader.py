import asyncio

import pytest

from vibe_apply.core.auth import Identity, LeaderStatus, Role
from vibe_apply.services.authorization import Action, can_perform
from vibe_apply.services.errors import AuthorizationError
from vibe_apply.services.recommendations import RecommendationService
from vibe_apply.services.store import RECOMMENDATIONS, InMemoryRecordStore

PENDING_LEADER = Identity(user_id="leader-1", role=Role.LEADER, leader_status=LeaderStatus.PENDING, stake="s1")
APPROVED_LEADER = Identity(user_id="leader-2", role=Role.LEADER, leader_status=LeaderStatus.APPROVED, stake="s1")


def test_pending_legacy_leader_manages_own_recommendations(store: InMemoryRecordStore) -> None:
    service = RecommendationService(store)

    async def scenario() -> tuple[dict, dict, list[dict], list[dict]]:
        created = await service.create(PENDING_LEADER, _form())
        edited = await service.update(PENDING_LEADER, created["id"], {"phone": "555-0199", "status": "submitted"})
        listed = await service.list_mine(PENDING_LEADER)
        await service.delete(PENDING_LEADER, created["id"])
        remaining = await service.list_mine(PENDING_LEADER)
        return created, edited, listed, remaining

    created, edited, listed, remaining = asyncio.run(scenario())

    assert created["leader_id"] == "leader-1"
    assert created["can_edit"] is True
    assert (edited["phone"], edited["status"]) == ("555-0199", "submitted")
    assert [row["id"] for row in listed] == [created["id"]]
    assert remaining == []
    assert store.collections[RECOMMENDATIONS] == {}


def test_legacy_leader_cannot_decide_recommendations(store: InMemoryRecordStore) -> None:
    service = RecommendationService(store)

    async def scenario() -> None:
        created = await service.create(APPROVED_LEADER, _form(status="submitted"))
        await service.update_status(APPROVED_LEADER, created["id"], "approved")

    with pytest.raises(AuthorizationError):
        asyncio.run(scenario())


def test_legacy_leader_cannot_touch_another_leaders_recommendation(store: InMemoryRecordStore) -> None:
    service = RecommendationService(store)

    async def scenario() -> None:
        created = await service.create(PENDING_LEADER, _form(status="submitted"))
        await service.update(APPROVED_LEADER, created["id"], {"phone": "1"})

    with pytest.raises(AuthorizationError):
        asyncio.run(scenario())


def test_approved_legacy_leader_sees_own_stake_only() -> None:
    assert can_perform(APPROVED_LEADER, Action.APPLICATION_READ, {"stake": "s1", "status": "awaiting"})
    assert not can_perform(APPROVED_LEADER, Action.APPLICATION_READ, {"stake": "s2", "status": "awaiting"})
    assert not can_perform(APPROVED_LEADER, Action.APPLICATION_DECIDE, {"stake": "s1", "status": "awaiting"})
    assert not can_perform(APPROVED_LEADER, Action.MEMO_CREATE, {"stake": "s1", "status": "awaiting"})


def _form(**overrides) -> dict:
    form = {
        "name": "Alma Doe",
        "age": 19,
        "email": "a@x.com",
        "phone": "555-0100",
        "stake": "s1",
        "ward": "w1",
        "gender": "female",
    }
    form.update(overrides)
    return form
