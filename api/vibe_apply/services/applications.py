from __future__ import annotations

import logging
from typing import Any

from vibe_apply.core.auth import Identity
from vibe_apply.core.normalize import normalize_text, next_timestamp
from vibe_apply.services.authorization import Action, can_perform, ensure_allowed
from vibe_apply.services.errors import AuthorizationError, NotFoundError, ValidationError
from vibe_apply.services.lifecycle import (
    DECISION_STATUSES,
    ApplicationStatus,
    ensure_mutable,
    status_value,
    validate_application_transition,
)
from vibe_apply.services.linker import ReconciliationLinker
from vibe_apply.services.review_queue import application_is_editable
from vibe_apply.services.store import APPLICATIONS, MEMOS, RecordStore
from vibe_apply.services.validation import normalize_candidate_form

logger = logging.getLogger(__name__)

SUBMITTABLE_STATUSES = {ApplicationStatus.DRAFT.value, ApplicationStatus.AWAITING.value}


class ApplicationService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.linker = ReconciliationLinker(store)

    async def submit(self, identity: Identity, form: dict[str, Any]) -> dict[str, Any]:
        """Create the caller's application, or update it when one already exists."""
        ensure_allowed(identity, Action.APPLICATION_CREATE)
        requested = status_value(form.get("status") or ApplicationStatus.AWAITING)
        if requested in DECISION_STATUSES:
            raise AuthorizationError("applicants cannot decide on their own application")
        if requested not in SUBMITTABLE_STATUSES:
            raise ValidationError(f"invalid application status: {requested}")
        fields = normalize_candidate_form(form, email_required=True)

        existing = await self.find_by_user(identity.user_id)
        if existing is not None:
            ensure_mutable(existing, kind="application")
            ensure_allowed(identity, Action.APPLICATION_UPDATE, existing)
            validate_application_transition(from_status=existing.get("status"), to_status=requested)
            updated = await self.store.update(
                APPLICATIONS,
                existing["id"],
                {**fields, "status": requested, "updated_at": next_timestamp(existing.get("updated_at"))},
            )
            logger.info(
                "application resubmitted application_id=%s from_status=%s to_status=%s",
                existing["id"],
                existing.get("status"),
                requested,
            )
            return self._present(identity, updated)

        timestamp = next_timestamp()
        created = await self.store.create(
            APPLICATIONS,
            {
                **fields,
                "served_mission": fields.get("served_mission"),
                "user_id": identity.user_id,
                "status": requested,
                "created_at": timestamp,
                "updated_at": timestamp,
                "linked_recommendation_id": None,
            },
        )
        logger.info("application created application_id=%s status=%s", created["id"], requested)
        linked = await self.linker.link_application(created)
        return self._present(identity, linked)

    async def find_by_user(self, user_id: str) -> dict[str, Any] | None:
        rows = await self.store.find(
            APPLICATIONS,
            filters={"user_id": user_id},
            order_by="created_at",
            descending=False,
            limit=1,
        )
        return rows[0] if rows else None

    async def get_mine(self, identity: Identity) -> dict[str, Any] | None:
        ensure_allowed(identity, Action.APPLICATION_CREATE)
        record = await self.find_by_user(identity.user_id)
        return self._present(identity, record) if record else None

    async def get(self, identity: Identity, application_id: str) -> dict[str, Any]:
        record = await self._fetch(application_id)
        ensure_allowed(identity, Action.APPLICATION_READ, record)
        presented = self._present(identity, record)
        if can_perform(identity, Action.MEMO_READ, record):
            presented["memos"] = await self.store.find(MEMOS, filters={"parent_id": application_id}, order_by="created_at")
        return presented

    async def list_applications(
        self,
        identity: Identity,
        *,
        status: str | None = None,
        stake: str | None = None,
        ward: str | None = None,
    ) -> list[dict[str, Any]]:
        ensure_allowed(identity, Action.APPLICATION_LIST)
        filters: dict[str, Any] = {}
        if status:
            filters["status"] = status_value(status)
        if stake:
            filters["stake"] = normalize_text(stake)
        if ward:
            filters["ward"] = normalize_text(ward)
        rows = await self.store.find(APPLICATIONS, filters=filters, order_by="created_at")
        return [
            self._present(identity, row) for row in rows if can_perform(identity, Action.APPLICATION_READ, row)
        ]

    async def update_status(self, identity: Identity, application_id: str, status: Any) -> dict[str, Any]:
        record = await self._fetch(application_id)
        ensure_mutable(record, kind="application")
        target = status_value(status)
        if target in DECISION_STATUSES:
            ensure_allowed(identity, Action.APPLICATION_DECIDE, record)
        else:
            ensure_allowed(identity, Action.APPLICATION_UPDATE, record)
        validate_application_transition(from_status=record.get("status"), to_status=target)

        updated = await self.store.update(
            APPLICATIONS,
            application_id,
            {"status": target, "updated_at": next_timestamp(record.get("updated_at"))},
        )
        logger.info(
            "application status changed application_id=%s from_status=%s to_status=%s actor_id=%s",
            application_id,
            record.get("status"),
            target,
            identity.user_id,
        )
        return self._present(identity, updated)

    async def delete(self, identity: Identity, application_id: str) -> None:
        record = await self._fetch(application_id)
        ensure_mutable(record, kind="application")
        ensure_allowed(identity, Action.APPLICATION_DELETE, record)

        await self.linker.unlink_application(record)
        for memo in await self.store.find(MEMOS, filters={"parent_id": application_id}):
            await self.store.delete(MEMOS, memo["id"])
        await self.store.delete(APPLICATIONS, application_id)
        logger.info("application deleted application_id=%s actor_id=%s", application_id, identity.user_id)

    async def _fetch(self, application_id: str) -> dict[str, Any]:
        record = await self.store.get(APPLICATIONS, application_id)
        if record is None:
            raise NotFoundError("application not found")
        return record

    @staticmethod
    def _present(identity: Identity, record: dict[str, Any]) -> dict[str, Any]:
        editable = application_is_editable(identity, record)
        return {**record, "can_edit": editable, "can_delete": editable}
