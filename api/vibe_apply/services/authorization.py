"""Role and ownership permission table.

``PERMISSIONS`` maps every action to the roles that may attempt it and, per
role, the predicate that must hold for the given resource. Roles are checked
one by one; nothing is inherited. A role missing from an action's row is
denied, and so is an identity without a role (profile not completed) except
where the row lists ``None`` explicitly.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
import logging
from typing import Any

from vibe_apply.core.auth import DECIDER_ROLES, NOTE_AUTHOR_ROLES, RECOMMENDER_ROLES, Identity, Role
from vibe_apply.core.normalize import normalize_text
from vibe_apply.services.errors import AuthorizationError
from vibe_apply.services.lifecycle import is_terminal, status_value

logger = logging.getLogger(__name__)

Resource = Mapping[str, Any] | None
Predicate = Callable[[Identity, Resource], bool]


class Action(str, Enum):
    APPLICATION_CREATE = "application:create"
    APPLICATION_READ = "application:read"
    APPLICATION_LIST = "application:list"
    APPLICATION_UPDATE = "application:update"
    APPLICATION_DELETE = "application:delete"
    APPLICATION_DECIDE = "application:decide"
    RECOMMENDATION_CREATE = "recommendation:create"
    RECOMMENDATION_READ = "recommendation:read"
    RECOMMENDATION_LIST = "recommendation:list"
    RECOMMENDATION_UPDATE = "recommendation:update"
    RECOMMENDATION_DELETE = "recommendation:delete"
    RECOMMENDATION_DECIDE = "recommendation:decide"
    REVIEW_QUEUE_READ = "review_queue:read"
    MEMO_CREATE = "memo:create"
    MEMO_READ = "memo:read"
    MEMO_UPDATE = "memo:update"
    MEMO_DELETE = "memo:delete"
    COMMENT_CREATE = "comment:create"
    COMMENT_READ = "comment:read"
    COMMENT_UPDATE = "comment:update"
    COMMENT_DELETE = "comment:delete"
    PROFILE_COMPLETE = "profile:complete"
    USER_LIST = "user:list"
    USER_UPDATE_ROLE = "user:update_role"
    USER_UPDATE_LEADER_STATUS = "user:update_leader_status"
    USER_DELETE = "user:delete"


def _always(identity: Identity, resource: Resource) -> bool:
    return True


def _approved(identity: Identity, resource: Resource) -> bool:
    return identity.is_approved_leader


def _same_stake(identity: Identity, resource: Resource) -> bool:
    if resource is None:
        return False
    own_stake = normalize_text(identity.stake)
    return bool(own_stake) and normalize_text(resource.get("stake")) == own_stake


def _approved_in_stake(identity: Identity, resource: Resource) -> bool:
    return identity.is_approved_leader and _same_stake(identity, resource)


def _owns_application(identity: Identity, resource: Resource) -> bool:
    return resource is not None and resource.get("user_id") == identity.user_id


def _owns_open_application(identity: Identity, resource: Resource) -> bool:
    return _owns_application(identity, resource) and not is_terminal(resource.get("status"))  # type: ignore[union-attr]


def _authors_recommendation(identity: Identity, resource: Resource) -> bool:
    return resource is not None and resource.get("leader_id") == identity.user_id


def _authors_open_recommendation(identity: Identity, resource: Resource) -> bool:
    return _authors_recommendation(identity, resource) and not is_terminal(resource.get("status"))  # type: ignore[union-attr]


def _reads_recommendation(identity: Identity, resource: Resource) -> bool:
    if _authors_recommendation(identity, resource):
        return True
    return _approved_in_stake(identity, resource) and status_value(resource.get("status")) != "draft"  # type: ignore[union-attr]


def _approved_reads_recommendation(identity: Identity, resource: Resource) -> bool:
    return identity.is_approved_leader and _reads_recommendation(identity, resource)


def _authors_note(identity: Identity, resource: Resource) -> bool:
    return resource is not None and resource.get("author_id") == identity.user_id


def _target_is_not_admin(identity: Identity, resource: Resource) -> bool:
    return resource is not None and resource.get("role") != Role.ADMIN.value


def _every_role(predicate: Predicate) -> dict[Role | None, Predicate]:
    return {role: predicate for role in Role}


def _roles(roles: frozenset[Role], predicate: Predicate) -> dict[Role | None, Predicate]:
    return {role: predicate for role in roles}


def _deciders() -> dict[Role | None, Predicate]:
    return {role: _always if role == Role.ADMIN else _approved for role in DECIDER_ROLES}


# Full view for deciders, stake-scoped view for recommending leaders.
def _reviewers(*, recommender: Predicate) -> dict[Role | None, Predicate]:
    return {**_deciders(), **_roles(RECOMMENDER_ROLES, recommender)}


PERMISSIONS: dict[Action, dict[Role | None, Predicate]] = {
    Action.APPLICATION_CREATE: {Role.APPLICANT: _always},
    Action.APPLICATION_READ: {**_reviewers(recommender=_approved_in_stake), Role.APPLICANT: _owns_application},
    Action.APPLICATION_LIST: {**_reviewers(recommender=_approved), Role.APPLICANT: _always},
    Action.APPLICATION_UPDATE: {Role.APPLICANT: _owns_open_application},
    Action.APPLICATION_DELETE: {Role.APPLICANT: _owns_open_application},
    Action.APPLICATION_DECIDE: _deciders(),
    Action.RECOMMENDATION_CREATE: _roles(RECOMMENDER_ROLES, _always),
    Action.RECOMMENDATION_READ: _reviewers(recommender=_reads_recommendation),
    Action.RECOMMENDATION_LIST: _reviewers(recommender=_approved),
    Action.RECOMMENDATION_UPDATE: _roles(RECOMMENDER_ROLES, _authors_open_recommendation),
    Action.RECOMMENDATION_DELETE: _roles(RECOMMENDER_ROLES, _authors_open_recommendation),
    Action.RECOMMENDATION_DECIDE: _deciders(),
    Action.REVIEW_QUEUE_READ: _roles(DECIDER_ROLES | RECOMMENDER_ROLES, _always),
    # Resource is the parent application.
    Action.MEMO_CREATE: _roles(NOTE_AUTHOR_ROLES, _approved_in_stake),
    Action.MEMO_READ: _reviewers(recommender=_approved_in_stake),
    Action.MEMO_UPDATE: _every_role(_authors_note),
    Action.MEMO_DELETE: _every_role(_authors_note),
    # Resource is the parent recommendation.
    Action.COMMENT_CREATE: _roles(NOTE_AUTHOR_ROLES, _approved_reads_recommendation),
    Action.COMMENT_READ: _reviewers(recommender=_approved_reads_recommendation),
    Action.COMMENT_UPDATE: _every_role(_authors_note),
    Action.COMMENT_DELETE: _every_role(_authors_note),
    Action.PROFILE_COMPLETE: {None: _always},
    Action.USER_LIST: {Role.ADMIN: _always},
    Action.USER_UPDATE_ROLE: {Role.ADMIN: _always},
    Action.USER_UPDATE_LEADER_STATUS: {Role.ADMIN: _always},
    Action.USER_DELETE: {Role.ADMIN: _target_is_not_admin},
}


def can_perform(identity: Identity, action: Action, resource: Resource = None) -> bool:
    rules = PERMISSIONS.get(action)
    if not rules:
        return False
    predicate = rules.get(identity.role)
    if predicate is None:
        return False
    return bool(predicate(identity, resource))


def ensure_allowed(identity: Identity, action: Action, resource: Resource = None) -> None:
    if can_perform(identity, action, resource):
        return
    logger.info(
        "authorization denied user_id=%s role=%s leader_status=%s action=%s",
        identity.user_id,
        identity.role.value if identity.role else None,
        identity.leader_status.value if identity.leader_status else None,
        action.value,
    )
    raise AuthorizationError(f"not allowed to perform {action.value}")
