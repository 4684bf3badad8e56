import asyncio

import pytest

from vibe_apply.services.errors import DuplicateRecommendationError
from vibe_apply.services.linker import ReconciliationLinker, decide_link, records_match
from vibe_apply.services.store import APPLICATIONS, RECOMMENDATIONS, InMemoryRecordStore


def test_records_match_ignores_case_and_whitespace() -> None:
    application = _candidate(email="a@x.com", stake="s1", ward="w1")
    recommendation = _candidate(email=" A@X.COM ", stake="S1 ", ward=" W1")

    assert records_match(application, recommendation)
    assert records_match(recommendation, application)


def test_records_match_falls_back_to_name_without_email() -> None:
    application = _candidate(name="Alma Doe", email="a@x.com")
    recommendation = _candidate(name=" alma doe", email=None)

    assert records_match(application, recommendation)
    assert not records_match(application, _candidate(name="Someone Else", email=None))


def test_records_never_match_without_stake() -> None:
    assert not records_match(_candidate(stake=""), _candidate(stake=""))


def test_decide_link_reports_ambiguity_instead_of_picking_one() -> None:
    applications = [
        {**_candidate(email=None, name="Alma"), "id": "app-2"},
        {**_candidate(email=None, name="Alma"), "id": "app-1"},
    ]

    decision = decide_link({**_candidate(email=None, name="Alma"), "id": "rec-1"}, applications)

    assert decision.decision == "ambiguous"
    assert decision.application_id is None
    assert decision.candidate_ids == ["app-1", "app-2"]


def test_decide_link_keeps_existing_link() -> None:
    decision = decide_link({**_candidate(), "id": "rec-1", "linked_application_id": "app-9"}, [])
    assert decision.decision == "already_linked"
    assert decision.application_id == "app-9"


def test_link_recommendation_writes_both_sides_and_is_idempotent() -> None:
    store = InMemoryRecordStore()
    linker = ReconciliationLinker(store)

    async def scenario() -> tuple[dict, dict, dict]:
        application = await store.create(APPLICATIONS, {**_candidate(), "linked_recommendation_id": None})
        recommendation = await store.create(RECOMMENDATIONS, {**_candidate(), "linked_application_id": None})
        first = await linker.link_recommendation(recommendation)
        second = await linker.link_recommendation(first)
        return application, second, await store.get(APPLICATIONS, application["id"])

    application, recommendation, stored_application = asyncio.run(scenario())

    assert recommendation["linked_application_id"] == application["id"]
    assert stored_application["linked_recommendation_id"] == recommendation["id"]


def test_link_recommendation_completes_missing_mirror() -> None:
    store = InMemoryRecordStore()
    linker = ReconciliationLinker(store)

    async def scenario() -> dict:
        application = await store.create(APPLICATIONS, {**_candidate(), "linked_recommendation_id": None})
        recommendation = await store.create(
            RECOMMENDATIONS,
            {**_candidate(), "linked_application_id": application["id"]},
        )
        await linker.link_recommendation(recommendation)
        return await store.get(APPLICATIONS, application["id"])

    stored_application = asyncio.run(scenario())
    assert stored_application["linked_recommendation_id"] is not None


def test_ensure_not_duplicate_blocks_second_recommendation_for_linked_application() -> None:
    store = InMemoryRecordStore()
    linker = ReconciliationLinker(store)

    async def scenario() -> None:
        await store.create(APPLICATIONS, {**_candidate(), "linked_recommendation_id": "rec-1"})
        await linker.ensure_not_duplicate(leader_id="leader-2", form=_candidate(email="a@x.com "))

    with pytest.raises(DuplicateRecommendationError):
        asyncio.run(scenario())


def test_link_application_links_single_unlinked_recommendation() -> None:
    store = InMemoryRecordStore()
    linker = ReconciliationLinker(store)

    async def scenario() -> tuple[dict, dict]:
        recommendation = await store.create(RECOMMENDATIONS, {**_candidate(), "linked_application_id": None})
        application = await store.create(APPLICATIONS, {**_candidate(), "linked_recommendation_id": None})
        linked = await linker.link_application(application)
        return linked, await store.get(RECOMMENDATIONS, recommendation["id"])

    application, recommendation = asyncio.run(scenario())
    assert application["linked_recommendation_id"] == recommendation["id"]
    assert recommendation["linked_application_id"] == application["id"]


def _candidate(
    *,
    name: str = "Alma Doe",
    email: str | None = "a@x.com",
    stake: str = "s1",
    ward: str = "w1",
) -> dict:
    return {"name": name, "email": email, "stake": stake, "ward": ward, "status": "submitted"}
