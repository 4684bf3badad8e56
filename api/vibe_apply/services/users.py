from __future__ import annotations

import logging
from typing import Any

from vibe_apply.core.auth import Identity, LeaderStatus, Role, is_leader_role, parse_leader_status, parse_role
from vibe_apply.core.normalize import clean_text, next_timestamp, normalize_email, normalize_text
from vibe_apply.services.authorization import Action, ensure_allowed
from vibe_apply.services.errors import AuthorizationError, NotFoundError, ValidationError
from vibe_apply.services.store import USERS, RecordStore

logger = logging.getLogger(__name__)

SELF_ASSIGNABLE_ROLES = frozenset({Role.APPLICANT, Role.SESSION_LEADER, Role.STAKE_PRESIDENT, Role.BISHOP})
ASSIGNABLE_LEADER_STATUSES = frozenset({LeaderStatus.PENDING, LeaderStatus.APPROVED})


def initial_leader_status(role: Role | None) -> str | None:
    return LeaderStatus.PENDING.value if is_leader_role(role) else None


def _display_name(auth_user: dict[str, Any]) -> str:
    metadata = auth_user.get("user_metadata")
    if isinstance(metadata, dict):
        for key in ("name", "full_name"):
            value = clean_text(metadata.get(key))
            if value:
                return value
    return clean_text(auth_user.get("email"))


class UserService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def ensure_user(self, auth_user: dict[str, Any]) -> dict[str, Any]:
        """Load the profile for a verified auth user, provisioning it on first sign-in."""
        user_id = str(auth_user["id"])
        existing = await self.store.get(USERS, user_id)
        if existing is not None:
            return existing

        timestamp = next_timestamp()
        created = await self.store.create(
            USERS,
            {
                "name": _display_name(auth_user),
                "email": normalize_email(auth_user.get("email")),
                "role": None,
                "leader_status": None,
                "stake": "",
                "ward": "",
                "phone": "",
                "created_at": timestamp,
                "updated_at": timestamp,
            },
            record_id=user_id,
        )
        logger.info("user provisioned user_id=%s", user_id)
        return created

    async def get_me(self, identity: Identity) -> dict[str, Any]:
        return await self._fetch(identity.user_id)

    async def complete_profile(self, identity: Identity, profile: dict[str, Any]) -> dict[str, Any]:
        user = await self._fetch(identity.user_id)
        ensure_allowed(identity, Action.PROFILE_COMPLETE)

        role = parse_role(profile.get("role"))
        if role == Role.ADMIN:
            raise AuthorizationError("the admin role cannot be self-assigned")
        if role not in SELF_ASSIGNABLE_ROLES:
            raise ValidationError(f"invalid role: {profile.get('role')}")

        errors: list[str] = []
        stake = normalize_text(profile.get("stake"))
        ward = normalize_text(profile.get("ward"))
        if not stake:
            errors.append("stake is required")
        if not ward:
            errors.append("ward is required")
        if errors:
            raise ValidationError("; ".join(errors))

        changes: dict[str, Any] = {
            "role": role.value,
            "leader_status": initial_leader_status(role),
            "stake": stake,
            "ward": ward,
            "updated_at": next_timestamp(user.get("updated_at")),
        }
        name = clean_text(profile.get("name"))
        if name:
            changes["name"] = name
        if profile.get("phone") is not None:
            changes["phone"] = clean_text(profile.get("phone"))

        updated = await self.store.update(USERS, identity.user_id, changes)
        logger.info(
            "profile completed user_id=%s role=%s leader_status=%s",
            identity.user_id,
            role.value,
            changes["leader_status"],
        )
        return updated

    async def list_users(self, identity: Identity, *, role: str | None = None) -> list[dict[str, Any]]:
        ensure_allowed(identity, Action.USER_LIST)
        filters = None
        if role:
            parsed = parse_role(role)
            if parsed is None:
                raise ValidationError(f"invalid role: {role}")
            filters = {"role": parsed.value}
        return await self.store.find(USERS, filters=filters, order_by="created_at")

    async def update_role(self, identity: Identity, user_id: str, role: Any) -> dict[str, Any]:
        target = await self._fetch(user_id)
        ensure_allowed(identity, Action.USER_UPDATE_ROLE, target)
        parsed = parse_role(role)
        if parsed is None:
            raise ValidationError(f"invalid role: {role}")

        updated = await self.store.update(
            USERS,
            user_id,
            {
                "role": parsed.value,
                "leader_status": initial_leader_status(parsed),
                "updated_at": next_timestamp(target.get("updated_at")),
            },
        )
        logger.info(
            "user role changed user_id=%s from_role=%s to_role=%s actor_id=%s",
            user_id,
            target.get("role"),
            parsed.value,
            identity.user_id,
        )
        return updated

    async def update_leader_status(self, identity: Identity, user_id: str, leader_status: Any) -> dict[str, Any]:
        target = await self._fetch(user_id)
        ensure_allowed(identity, Action.USER_UPDATE_LEADER_STATUS, target)
        if not is_leader_role(parse_role(target.get("role"))):
            raise ValidationError("leader status applies only to leader roles")
        parsed = parse_leader_status(leader_status)
        if parsed not in ASSIGNABLE_LEADER_STATUSES:
            raise ValidationError(f"invalid leader status: {leader_status}")

        updated = await self.store.update(
            USERS,
            user_id,
            {"leader_status": parsed.value, "updated_at": next_timestamp(target.get("updated_at"))},
        )
        logger.info(
            "leader status changed user_id=%s from_status=%s to_status=%s actor_id=%s",
            user_id,
            target.get("leader_status"),
            parsed.value,
            identity.user_id,
        )
        return updated

    async def delete_user(self, identity: Identity, user_id: str) -> None:
        target = await self._fetch(user_id)
        ensure_allowed(identity, Action.USER_DELETE, target)
        await self.store.delete(USERS, user_id)
        logger.info("user deleted user_id=%s actor_id=%s", user_id, identity.user_id)

    async def _fetch(self, user_id: str) -> dict[str, Any]:
        user = await self.store.get(USERS, user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user
