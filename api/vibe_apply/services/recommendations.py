from __future__ import annotations

import logging
from typing import Any

from vibe_apply.core.auth import Identity
from vibe_apply.core.normalize import next_timestamp
from vibe_apply.services.authorization import Action, can_perform, ensure_allowed
from vibe_apply.services.errors import AuthorizationError, NotFoundError, ValidationError
from vibe_apply.services.lifecycle import (
    DECISION_STATUSES,
    RecommendationStatus,
    ensure_mutable,
    is_cancel_submission,
    status_value,
    validate_recommendation_transition,
)
from vibe_apply.services.linker import ReconciliationLinker
from vibe_apply.services.review_queue import QueueOrder, recommendation_is_editable, sort_records
from vibe_apply.services.store import COMMENTS, RECOMMENDATIONS, RecordStore
from vibe_apply.services.validation import normalize_candidate_form

logger = logging.getLogger(__name__)

DRAFTABLE_STATUSES = {RecommendationStatus.DRAFT.value, RecommendationStatus.SUBMITTED.value}


class RecommendationService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.linker = ReconciliationLinker(store)

    async def create(self, identity: Identity, form: dict[str, Any]) -> dict[str, Any]:
        ensure_allowed(identity, Action.RECOMMENDATION_CREATE)
        status = status_value(form.get("status") or RecommendationStatus.DRAFT)
        if status in DECISION_STATUSES:
            raise AuthorizationError("recommending leaders cannot decide on recommendations")
        if status not in DRAFTABLE_STATUSES:
            raise ValidationError(f"invalid recommendation status: {status}")
        fields = normalize_candidate_form(form, email_required=False)

        await self.linker.ensure_not_duplicate(leader_id=identity.user_id, form=fields)

        timestamp = next_timestamp()
        created = await self.store.create(
            RECOMMENDATIONS,
            {
                "email": None,
                "served_mission": None,
                **fields,
                "leader_id": identity.user_id,
                "status": status,
                "created_at": timestamp,
                "updated_at": timestamp,
                "linked_application_id": None,
            },
        )
        logger.info(
            "recommendation created recommendation_id=%s leader_id=%s status=%s",
            created["id"],
            identity.user_id,
            status,
        )
        linked = await self.linker.link_recommendation(created)
        return self._present(identity, linked)

    async def get(self, identity: Identity, recommendation_id: str) -> dict[str, Any]:
        record = await self._fetch(recommendation_id)
        ensure_allowed(identity, Action.RECOMMENDATION_READ, record)
        presented = self._present(identity, record)
        if can_perform(identity, Action.COMMENT_READ, record):
            presented["comments"] = await self.store.find(
                COMMENTS,
                filters={"parent_id": recommendation_id},
                order_by="created_at",
            )
        return presented

    async def list_recommendations(self, identity: Identity, *, status: str | None = None) -> list[dict[str, Any]]:
        ensure_allowed(identity, Action.RECOMMENDATION_LIST)
        filters = {"status": status_value(status)} if status else None
        rows = await self.store.find(RECOMMENDATIONS, filters=filters, order_by="created_at")
        return [
            self._present(identity, row) for row in rows if can_perform(identity, Action.RECOMMENDATION_READ, row)
        ]

    async def list_mine(self, identity: Identity, *, order_by: QueueOrder = "updated_at") -> list[dict[str, Any]]:
        ensure_allowed(identity, Action.RECOMMENDATION_CREATE)
        rows = await self.store.find(RECOMMENDATIONS, filters={"leader_id": identity.user_id})
        draft_count = sum(1 for row in rows if row.get("status") == RecommendationStatus.DRAFT.value)
        logger.info("leader recommendations listed leader_id=%s total=%s draft=%s", identity.user_id, len(rows), draft_count)
        return [self._present(identity, row) for row in sort_records(rows, order_by)]

    async def update(self, identity: Identity, recommendation_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        record = await self._fetch(recommendation_id)
        ensure_mutable(record, kind="recommendation")

        status = status_value(patch.get("status")) if patch.get("status") else None
        field_patch = {key: value for key, value in patch.items() if key != "status"}

        if status in DECISION_STATUSES:
            ensure_allowed(identity, Action.RECOMMENDATION_DECIDE, record)
            if field_patch:
                raise AuthorizationError("deciding on a recommendation cannot change its fields")
        else:
            ensure_allowed(identity, Action.RECOMMENDATION_UPDATE, record)

        changes: dict[str, Any] = {}
        if status is not None:
            validate_recommendation_transition(from_status=record.get("status"), to_status=status)
            changes["status"] = status
        if field_patch:
            changes.update(normalize_candidate_form(field_patch, email_required=False, partial=True))
        changes["updated_at"] = next_timestamp(record.get("updated_at"))

        updated = await self.store.update(RECOMMENDATIONS, recommendation_id, changes)
        if status is not None and status != record.get("status"):
            logger.info(
                "recommendation status changed recommendation_id=%s from_status=%s to_status=%s actor_id=%s cancelled=%s",
                recommendation_id,
                record.get("status"),
                status,
                identity.user_id,
                is_cancel_submission(from_status=record.get("status"), to_status=status),
            )
        return self._present(identity, updated)

    async def update_status(self, identity: Identity, recommendation_id: str, status: Any) -> dict[str, Any]:
        return await self.update(identity, recommendation_id, {"status": status})

    async def delete(self, identity: Identity, recommendation_id: str) -> None:
        record = await self._fetch(recommendation_id)
        ensure_mutable(record, kind="recommendation")
        ensure_allowed(identity, Action.RECOMMENDATION_DELETE, record)

        await self.linker.unlink_recommendation(record)
        for comment in await self.store.find(COMMENTS, filters={"parent_id": recommendation_id}):
            await self.store.delete(COMMENTS, comment["id"])
        await self.store.delete(RECOMMENDATIONS, recommendation_id)
        logger.info("recommendation deleted recommendation_id=%s actor_id=%s", recommendation_id, identity.user_id)

    async def _fetch(self, recommendation_id: str) -> dict[str, Any]:
        record = await self.store.get(RECOMMENDATIONS, recommendation_id)
        if record is None:
            raise NotFoundError("recommendation not found")
        return record

    @staticmethod
    def _present(identity: Identity, record: dict[str, Any]) -> dict[str, Any]:
        editable = recommendation_is_editable(identity, record, linked=bool(record.get("linked_application_id")))
        return {**record, "can_edit": editable, "can_delete": editable}
