from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from vibe_apply.core.normalize import normalize_email, normalize_text, next_timestamp
from vibe_apply.services.errors import DuplicateRecommendationError
from vibe_apply.services.lifecycle import is_terminal
from vibe_apply.services.store import APPLICATIONS, RECOMMENDATIONS, RecordStore

logger = logging.getLogger(__name__)

LinkOutcome = Literal["linked", "already_linked", "no_match", "ambiguous"]


@dataclass(slots=True, frozen=True)
class CandidateKey:
    email: str | None
    name: str
    stake: str
    ward: str


@dataclass(slots=True)
class LinkDecision:
    decision: LinkOutcome
    application_id: str | None
    candidate_ids: list[str]


def candidate_key(record: dict[str, Any]) -> CandidateKey:
    return CandidateKey(
        email=normalize_email(record.get("email")),
        name=normalize_text(record.get("name")),
        stake=normalize_text(record.get("stake")),
        ward=normalize_text(record.get("ward")),
    )


def keys_match(left: CandidateKey, right: CandidateKey) -> bool:
    if not left.stake or not left.ward:
        return False
    if left.stake != right.stake or left.ward != right.ward:
        return False
    if left.email and right.email:
        return left.email == right.email
    # Recommendations may omit the email; fall back to the name.
    return bool(left.name) and left.name == right.name


def records_match(left: dict[str, Any], right: dict[str, Any]) -> bool:
    """Exact candidate match ignoring case and surrounding whitespace."""
    return keys_match(candidate_key(left), candidate_key(right))


def decide_link(recommendation: dict[str, Any], applications: list[dict[str, Any]]) -> LinkDecision:
    linked_id = recommendation.get("linked_application_id")
    if linked_id:
        return LinkDecision(decision="already_linked", application_id=linked_id, candidate_ids=[linked_id])

    key = candidate_key(recommendation)
    candidate_ids = sorted(
        str(application["id"]) for application in applications if keys_match(key, candidate_key(application))
    )
    if not candidate_ids:
        return LinkDecision(decision="no_match", application_id=None, candidate_ids=[])
    if len(candidate_ids) > 1:
        return LinkDecision(decision="ambiguous", application_id=None, candidate_ids=candidate_ids)
    return LinkDecision(decision="linked", application_id=candidate_ids[0], candidate_ids=candidate_ids)


class ReconciliationLinker:
    """Keeps the recommendation/application link on both records.

    Linking is a two-step saga (recommendation first, then the application's
    mirror field). Each step is idempotent, so a partially applied link is
    finished by running the step again.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def matching_applications(self, record: dict[str, Any]) -> list[dict[str, Any]]:
        key = candidate_key(record)
        if not key.stake or not key.ward:
            return []
        filters: dict[str, Any] = {"stake": key.stake, "ward": key.ward}
        if key.email:
            filters["email"] = key.email
        rows = await self.store.find(APPLICATIONS, filters=filters)
        return [row for row in rows if keys_match(key, candidate_key(row))]

    async def matching_recommendations(self, record: dict[str, Any]) -> list[dict[str, Any]]:
        key = candidate_key(record)
        if not key.stake or not key.ward:
            return []
        rows = await self.store.find(RECOMMENDATIONS, filters={"stake": key.stake, "ward": key.ward})
        return [row for row in rows if keys_match(key, candidate_key(row))]

    async def ensure_not_duplicate(self, *, leader_id: str, form: dict[str, Any]) -> None:
        key = candidate_key(form)
        own_rows = await self.store.find(
            RECOMMENDATIONS,
            filters={"leader_id": leader_id, "stake": key.stake, "ward": key.ward},
        )
        if any(keys_match(key, candidate_key(row)) for row in own_rows):
            logger.info("duplicate recommendation rejected leader_id=%s reason=same_leader", leader_id)
            raise DuplicateRecommendationError("a recommendation for this candidate already exists")

        for application in await self.matching_applications(form):
            if application.get("linked_recommendation_id"):
                linked = [application["linked_recommendation_id"]]
            else:
                rows = await self.store.find(
                    RECOMMENDATIONS,
                    filters={"linked_application_id": application["id"]},
                    limit=1,
                )
                linked = [row["id"] for row in rows]
            if linked:
                logger.info(
                    "duplicate recommendation rejected leader_id=%s reason=application_linked application_id=%s",
                    leader_id,
                    application["id"],
                )
                raise DuplicateRecommendationError("this candidate has already been recommended")

    async def link_recommendation(self, recommendation: dict[str, Any]) -> dict[str, Any]:
        applications = (
            []
            if recommendation.get("linked_application_id")
            else await self.matching_applications(recommendation)
        )
        decision = decide_link(recommendation, applications)
        if decision.decision == "already_linked":
            await self._write_mirror(application_id=decision.application_id, recommendation_id=recommendation["id"])
            return recommendation
        if decision.decision != "linked" or decision.application_id is None:
            logger.info(
                "recommendation left unlinked recommendation_id=%s decision=%s candidates=%s",
                recommendation["id"],
                decision.decision,
                len(decision.candidate_ids),
            )
            return recommendation
        return await self._link(recommendation=recommendation, application_id=decision.application_id)

    async def link_application(self, application: dict[str, Any]) -> dict[str, Any]:
        if application.get("linked_recommendation_id"):
            return application

        candidates = [
            row for row in await self.matching_recommendations(application) if not row.get("linked_application_id")
        ]
        if len(candidates) != 1:
            if candidates:
                logger.info(
                    "application left unlinked application_id=%s decision=ambiguous candidates=%s",
                    application["id"],
                    len(candidates),
                )
            return application

        recommendation = candidates[0]
        decision = decide_link(recommendation, await self.matching_applications(recommendation))
        if decision.decision != "linked" or decision.application_id != application["id"]:
            return application

        await self._link(recommendation=recommendation, application_id=application["id"])
        refreshed = await self.store.get(APPLICATIONS, application["id"])
        return refreshed or application

    async def unlink_recommendation(self, recommendation: dict[str, Any]) -> None:
        application_id = recommendation.get("linked_application_id")
        if not application_id:
            return
        application = await self.store.get(APPLICATIONS, application_id)
        if application and application.get("linked_recommendation_id") == recommendation["id"]:
            await self.store.update(APPLICATIONS, application_id, {"linked_recommendation_id": None})

    async def unlink_application(self, application: dict[str, Any]) -> None:
        rows = await self.store.find(RECOMMENDATIONS, filters={"linked_application_id": application["id"]})
        for row in rows:
            if is_terminal(row.get("status")):
                continue
            await self.store.update(
                RECOMMENDATIONS,
                row["id"],
                {"linked_application_id": None, "updated_at": next_timestamp(row.get("updated_at"))},
            )

    async def _link(self, *, recommendation: dict[str, Any], application_id: str) -> dict[str, Any]:
        updated = await self.store.update(
            RECOMMENDATIONS,
            recommendation["id"],
            {
                "linked_application_id": application_id,
                "updated_at": next_timestamp(recommendation.get("updated_at")),
            },
        )
        await self._write_mirror(application_id=application_id, recommendation_id=recommendation["id"])
        logger.info(
            "recommendation linked recommendation_id=%s application_id=%s",
            recommendation["id"],
            application_id,
        )
        return updated

    async def _write_mirror(self, *, application_id: str | None, recommendation_id: str) -> None:
        if not application_id:
            return
        application = await self.store.get(APPLICATIONS, application_id)
        # An application keeps the first recommendation that linked to it.
        if application is None or application.get("linked_recommendation_id"):
            return
        await self.store.update(APPLICATIONS, application_id, {"linked_recommendation_id": recommendation_id})
