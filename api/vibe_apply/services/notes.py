"""Reviewer notes: memos on applications, comments on recommendations.

Both kinds behave the same way and differ only in their collections and the
actions checked, so one service handles both through a :class:`NoteKind`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from vibe_apply.core.auth import Identity
from vibe_apply.core.normalize import next_timestamp
from vibe_apply.services.authorization import Action, ensure_allowed
from vibe_apply.services.errors import NotFoundError
from vibe_apply.services.store import APPLICATIONS, COMMENTS, MEMOS, RECOMMENDATIONS, RecordStore
from vibe_apply.services.validation import normalize_note_content

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NoteKind:
    name: str
    collection: str
    parent_name: str
    parent_collection: str
    create_action: Action
    read_action: Action
    update_action: Action
    delete_action: Action


MEMO = NoteKind(
    name="memo",
    collection=MEMOS,
    parent_name="application",
    parent_collection=APPLICATIONS,
    create_action=Action.MEMO_CREATE,
    read_action=Action.MEMO_READ,
    update_action=Action.MEMO_UPDATE,
    delete_action=Action.MEMO_DELETE,
)

COMMENT = NoteKind(
    name="comment",
    collection=COMMENTS,
    parent_name="recommendation",
    parent_collection=RECOMMENDATIONS,
    create_action=Action.COMMENT_CREATE,
    read_action=Action.COMMENT_READ,
    update_action=Action.COMMENT_UPDATE,
    delete_action=Action.COMMENT_DELETE,
)


class NoteService:
    def __init__(self, store: RecordStore, kind: NoteKind) -> None:
        self.store = store
        self.kind = kind

    async def create(self, identity: Identity, parent_id: str, content: Any) -> dict[str, Any]:
        parent = await self._fetch_parent(parent_id)
        ensure_allowed(identity, self.kind.create_action, parent)
        text = normalize_note_content(content)
        timestamp = next_timestamp()
        created = await self.store.create(
            self.kind.collection,
            {
                "parent_id": parent_id,
                "author_id": identity.user_id,
                "author_name": identity.name,
                "author_role": identity.role.value if identity.role else None,
                "content": text,
                "created_at": timestamp,
                "updated_at": timestamp,
            },
        )
        logger.info(
            "%s created %s_id=%s parent_id=%s author_id=%s",
            self.kind.name,
            self.kind.name,
            created["id"],
            parent_id,
            identity.user_id,
        )
        return created

    async def list_for_parent(self, identity: Identity, parent_id: str) -> list[dict[str, Any]]:
        parent = await self._fetch_parent(parent_id)
        ensure_allowed(identity, self.kind.read_action, parent)
        return await self.store.find(self.kind.collection, filters={"parent_id": parent_id}, order_by="created_at")

    async def update(self, identity: Identity, note_id: str, content: Any) -> dict[str, Any]:
        note = await self._fetch(note_id)
        ensure_allowed(identity, self.kind.update_action, note)
        text = normalize_note_content(content)
        return await self.store.update(
            self.kind.collection,
            note_id,
            {"content": text, "updated_at": next_timestamp(note.get("updated_at"))},
        )

    async def delete(self, identity: Identity, note_id: str) -> None:
        note = await self._fetch(note_id)
        ensure_allowed(identity, self.kind.delete_action, note)
        await self.store.delete(self.kind.collection, note_id)
        logger.info("%s deleted %s_id=%s author_id=%s", self.kind.name, self.kind.name, note_id, identity.user_id)

    async def _fetch(self, note_id: str) -> dict[str, Any]:
        note = await self.store.get(self.kind.collection, note_id)
        if note is None:
            raise NotFoundError(f"{self.kind.name} not found")
        return note

    async def _fetch_parent(self, parent_id: str) -> dict[str, Any]:
        parent = await self.store.get(self.kind.parent_collection, parent_id)
        if parent is None:
            raise NotFoundError(f"{self.kind.parent_name} not found")
        return parent
