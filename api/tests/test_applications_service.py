import asyncio

import pytest

from vibe_apply.core.auth import Identity, LeaderStatus, Role
from vibe_apply.core.normalize import parse_timestamp
from vibe_apply.services.applications import ApplicationService
from vibe_apply.services.errors import (
    AuthorizationError,
    ImmutableRecordError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from vibe_apply.services.notes import MEMO, NoteService
from vibe_apply.services.store import APPLICATIONS, MEMOS, InMemoryRecordStore

APPLICANT = Identity(user_id="user-1", role=Role.APPLICANT, name="Alma Doe")
ADMIN = Identity(user_id="admin-1", role=Role.ADMIN)
BISHOP = Identity(user_id="bishop-1", role=Role.BISHOP, leader_status=LeaderStatus.APPROVED, stake="s1", ward="w1")


def test_submit_normalizes_and_defaults_to_awaiting(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)

    created = asyncio.run(service.submit(APPLICANT, _form(email=" A@X.com ", stake=" S1", ward="W1 ")))

    assert created["status"] == "awaiting"
    assert created["email"] == "a@x.com"
    assert (created["stake"], created["ward"]) == ("s1", "w1")
    assert created["can_edit"] is True


def test_resubmitting_draft_keeps_latest_payload_and_bumps_updated_at(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)

    async def scenario() -> tuple[dict, dict]:
        draft = await service.submit(APPLICANT, _form(status="draft", phone="111"))
        submitted = await service.submit(APPLICANT, _form(status="awaiting", phone="222"))
        return draft, submitted

    draft, submitted = asyncio.run(scenario())

    assert submitted["id"] == draft["id"]
    assert submitted["status"] == "awaiting"
    assert submitted["phone"] == "222"
    assert parse_timestamp(submitted["updated_at"]) > parse_timestamp(draft["updated_at"])
    assert len(store.collections[APPLICATIONS]) == 1


def test_applicant_cannot_self_approve(store: InMemoryRecordStore) -> None:
    with pytest.raises(AuthorizationError):
        asyncio.run(ApplicationService(store).submit(APPLICANT, _form(status="approved")))


def test_invalid_form_is_rejected(store: InMemoryRecordStore) -> None:
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(ApplicationService(store).submit(APPLICANT, _form(age=12, email="")))
    assert "age must be between" in str(excinfo.value)
    assert "email is required" in str(excinfo.value)


def test_admin_decision_locks_the_application(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)

    async def scenario() -> str:
        created = await service.submit(APPLICANT, _form())
        await service.update_status(ADMIN, created["id"], "approved")
        with pytest.raises(ImmutableRecordError):
            await service.update_status(ADMIN, created["id"], "rejected")
        with pytest.raises(ImmutableRecordError):
            await service.submit(APPLICANT, _form(phone="999"))
        with pytest.raises(ImmutableRecordError):
            await service.delete(APPLICANT, created["id"])
        stored = await store.get(APPLICATIONS, created["id"])
        return stored["status"]

    assert asyncio.run(scenario()) == "approved"


def test_decision_requires_decider_role(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)

    async def scenario() -> None:
        created = await service.submit(APPLICANT, _form())
        await service.update_status(BISHOP, created["id"], "approved")

    with pytest.raises(AuthorizationError):
        asyncio.run(scenario())


def test_draft_cannot_be_approved_directly(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)

    async def scenario() -> None:
        created = await service.submit(APPLICANT, _form(status="draft"))
        await service.update_status(ADMIN, created["id"], "approved")

    with pytest.raises(InvalidTransitionError):
        asyncio.run(scenario())


def test_missing_application_is_not_found(store: InMemoryRecordStore) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(ApplicationService(store).update_status(ADMIN, "missing", "approved"))


def test_bishop_sees_memos_and_delete_cascades(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)
    memos = NoteService(store, MEMO)

    async def scenario() -> dict:
        created = await service.submit(APPLICANT, _form())
        await memos.create(BISHOP, created["id"], "Knows the family well")
        detail = await service.get(BISHOP, created["id"])
        await service.delete(APPLICANT, created["id"])
        return detail

    detail = asyncio.run(scenario())

    assert [memo["content"] for memo in detail["memos"]] == ["Knows the family well"]
    assert store.collections[APPLICATIONS] == {}
    assert store.collections[MEMOS] == {}


def test_list_applications_scopes_bishop_to_stake(store: InMemoryRecordStore) -> None:
    service = ApplicationService(store)
    other = Identity(user_id="user-2", role=Role.APPLICANT)

    async def scenario() -> list[dict]:
        await service.submit(APPLICANT, _form())
        await service.submit(other, _form(email="b@x.com", stake="s2"))
        return await service.list_applications(BISHOP)

    rows = asyncio.run(scenario())
    assert [row["user_id"] for row in rows] == ["user-1"]


def _form(**overrides) -> dict:
    form = {
        "name": "Alma Doe",
        "age": 19,
        "email": "a@x.com",
        "phone": "555-0100",
        "stake": "s1",
        "ward": "w1",
        "gender": "female",
        "more_info": "",
    }
    form.update(overrides)
    return form
