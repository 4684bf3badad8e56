"""Status state machines for applications and recommendations.

Both machines share one rule: a record that reached ``approved`` or
``rejected`` never changes again. Any mutation of such a record (status
change, field update or delete) raises :class:`ImmutableRecordError`,
regardless of who asks. Everything else that is not in the allowed graph
raises :class:`InvalidTransitionError`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from vibe_apply.services.errors import ImmutableRecordError, InvalidTransitionError


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    AWAITING = "awaiting"
    APPROVED = "approved"
    REJECTED = "rejected"


class RecommendationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({"approved", "rejected"})
DECISION_STATUSES = TERMINAL_STATUSES

APPLICATION_TRANSITIONS: dict[str, set[str]] = {
    ApplicationStatus.DRAFT.value: {ApplicationStatus.DRAFT.value, ApplicationStatus.AWAITING.value},
    ApplicationStatus.AWAITING.value: {
        ApplicationStatus.AWAITING.value,
        ApplicationStatus.APPROVED.value,
        ApplicationStatus.REJECTED.value,
    },
}

RECOMMENDATION_TRANSITIONS: dict[str, set[str]] = {
    RecommendationStatus.DRAFT.value: {RecommendationStatus.DRAFT.value, RecommendationStatus.SUBMITTED.value},
    RecommendationStatus.SUBMITTED.value: {
        RecommendationStatus.SUBMITTED.value,
        RecommendationStatus.DRAFT.value,
        RecommendationStatus.APPROVED.value,
        RecommendationStatus.REJECTED.value,
    },
}


def status_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value or "")


def is_terminal(status: Any) -> bool:
    return status_value(status) in TERMINAL_STATUSES


def ensure_mutable(record: dict[str, Any], *, kind: str) -> None:
    status = status_value(record.get("status"))
    if status in TERMINAL_STATUSES:
        raise ImmutableRecordError(f"{kind} has been reviewed ({status}) and can no longer be changed")


def validate_application_transition(*, from_status: Any, to_status: Any) -> None:
    _validate_transition(
        from_status=status_value(from_status),
        to_status=status_value(to_status),
        graph=APPLICATION_TRANSITIONS,
        kind="application",
    )


def validate_recommendation_transition(*, from_status: Any, to_status: Any) -> None:
    _validate_transition(
        from_status=status_value(from_status),
        to_status=status_value(to_status),
        graph=RECOMMENDATION_TRANSITIONS,
        kind="recommendation",
    )


def is_cancel_submission(*, from_status: Any, to_status: Any) -> bool:
    return (
        status_value(from_status) == RecommendationStatus.SUBMITTED.value
        and status_value(to_status) == RecommendationStatus.DRAFT.value
    )


def _validate_transition(*, from_status: str, to_status: str, graph: dict[str, set[str]], kind: str) -> None:
    if from_status in TERMINAL_STATUSES:
        raise ImmutableRecordError(f"{kind} has been reviewed ({from_status}) and can no longer be changed")
    allowed = graph.get(from_status)
    if not allowed or to_status not in allowed:
        raise InvalidTransitionError(f"invalid {kind} status transition: {from_status} -> {to_status}")
