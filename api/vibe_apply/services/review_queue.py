"""Merged review queue over applications and recommendations.

Every candidate shows up once. An application absorbs the recommendations
that are linked to it (or that match it live, when the link write has not
landed yet) and is tagged ``recommended`` as well as ``applied``. A
recommendation without a visible application stays a separate item.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, get_args

from vibe_apply.core.auth import Identity
from vibe_apply.core.normalize import parse_timestamp
from vibe_apply.services.authorization import Action, can_perform, ensure_allowed
from vibe_apply.services.errors import ValidationError
from vibe_apply.services.lifecycle import RecommendationStatus, is_terminal, status_value
from vibe_apply.services.linker import decide_link
from vibe_apply.services.store import APPLICATIONS, RECOMMENDATIONS, RecordStore

logger = logging.getLogger(__name__)

QueueOrder = Literal["created_at", "updated_at"]
ItemType = Literal["application", "recommendation"]

APPLIED = "applied"
RECOMMENDED = "recommended"
QueueStatus = Literal["all", "draft", "awaiting", "approved", "rejected"]
STATUS_TABS: tuple[str, ...] = get_args(QueueStatus)


@dataclass(slots=True)
class ReviewItem:
    key: str
    item_type: ItemType
    entity_id: str
    status: str
    raw_status: str
    tags: list[str]
    name: str
    email: str | None
    phone: str
    age: int | None
    gender: str
    stake: str
    ward: str
    more_info: str
    created_at: str
    updated_at: str
    application_id: str | None = None
    recommendation_id: str | None = None
    leader_id: str | None = None
    can_edit: bool = False
    can_delete: bool = False
    recommendation_ids: list[str] = field(default_factory=list)


def display_status(status: Any) -> str:
    """Map a recommendation status onto the application vocabulary."""
    value = status_value(status)
    if value == RecommendationStatus.SUBMITTED.value:
        return "awaiting"
    return value


def recommendation_is_editable(identity: Identity, recommendation: dict[str, Any], *, linked: bool) -> bool:
    return (
        not linked
        and recommendation.get("leader_id") == identity.user_id
        and not is_terminal(recommendation.get("status"))
    )


def application_is_editable(identity: Identity, application: dict[str, Any]) -> bool:
    return application.get("user_id") == identity.user_id and not is_terminal(application.get("status"))


def sort_records(rows: list[Any], order_by: QueueOrder) -> list[Any]:
    def sort_key(row: Any) -> tuple[str, str]:
        values = row if isinstance(row, dict) else {"created_at": row.created_at, "updated_at": row.updated_at}
        primary = values.get(order_by) or values.get("created_at") or ""
        return (str(primary), str(values.get("created_at") or ""))

    return sorted(rows, key=sort_key, reverse=True)


def build_review_queue(
    *,
    identity: Identity,
    applications: list[dict[str, Any]],
    recommendations: list[dict[str, Any]],
    order_by: QueueOrder = "created_at",
    existing_application_ids: set[str] | None = None,
) -> list[ReviewItem]:
    """Merge already-visible records into one deduplicated, sorted queue."""
    application_by_id = {str(row["id"]): row for row in applications}
    known_application_ids = set(existing_application_ids or ()) | set(application_by_id)
    mirrored_links = {
        str(row["linked_recommendation_id"]): str(row["id"])
        for row in applications
        if row.get("linked_recommendation_id")
    }

    absorbed: dict[str, list[dict[str, Any]]] = defaultdict(list)
    standalone: list[dict[str, Any]] = []
    submitted = [row for row in recommendations if status_value(row.get("status")) != RecommendationStatus.DRAFT.value]

    for recommendation in sorted(submitted, key=lambda row: str(row.get("created_at") or "")):
        application_id = recommendation.get("linked_application_id") or mirrored_links.get(str(recommendation["id"]))
        if application_id and application_id in application_by_id:
            absorbed[application_id].append(recommendation)
            continue
        if not application_id:
            decision = decide_link(recommendation, applications)
            if decision.decision == "linked" and decision.application_id is not None:
                absorbed[decision.application_id].append(recommendation)
                continue
        standalone.append(recommendation)

    items: list[ReviewItem] = []
    for application in applications:
        application_id = str(application["id"])
        matched = absorbed.get(application_id, [])
        status = status_value(application.get("status"))
        editable = application_is_editable(identity, application)
        items.append(
            ReviewItem(
                key=f"app-{application_id}",
                item_type="application",
                entity_id=application_id,
                status=status,
                raw_status=status,
                tags=[APPLIED, RECOMMENDED] if matched else [APPLIED],
                name=application.get("name") or "",
                email=application.get("email"),
                phone=application.get("phone") or "",
                age=application.get("age"),
                gender=application.get("gender") or "",
                stake=application.get("stake") or "",
                ward=application.get("ward") or "",
                more_info=application.get("more_info") or "",
                created_at=application.get("created_at") or "",
                updated_at=application.get("updated_at") or "",
                application_id=application_id,
                recommendation_id=str(matched[0]["id"]) if matched else None,
                recommendation_ids=[str(row["id"]) for row in matched],
                can_edit=editable,
                can_delete=editable,
            )
        )

    for recommendation in standalone:
        recommendation_id = str(recommendation["id"])
        linked_id = recommendation.get("linked_application_id")
        has_application = bool(linked_id) and linked_id in known_application_ids
        editable = recommendation_is_editable(identity, recommendation, linked=has_application)
        items.append(
            ReviewItem(
                key=f"rec-{recommendation_id}",
                item_type="recommendation",
                entity_id=recommendation_id,
                status=display_status(recommendation.get("status")),
                raw_status=status_value(recommendation.get("status")),
                tags=[APPLIED, RECOMMENDED] if has_application else [RECOMMENDED],
                name=recommendation.get("name") or "",
                email=recommendation.get("email"),
                phone=recommendation.get("phone") or "",
                age=recommendation.get("age"),
                gender=recommendation.get("gender") or "",
                stake=recommendation.get("stake") or "",
                ward=recommendation.get("ward") or "",
                more_info=recommendation.get("more_info") or "",
                created_at=recommendation.get("created_at") or "",
                updated_at=recommendation.get("updated_at") or "",
                application_id=linked_id if has_application else None,
                recommendation_id=recommendation_id,
                recommendation_ids=[recommendation_id],
                leader_id=recommendation.get("leader_id"),
                can_edit=editable,
                can_delete=editable,
            )
        )

    return sort_records(items, order_by)


def filter_items(
    items: list[ReviewItem],
    *,
    status: str | None = None,
    created_on: date | None = None,
) -> list[ReviewItem]:
    if status and status not in STATUS_TABS:
        raise ValidationError(f"invalid status filter: {status}")
    rows = items
    if status and status != "all":
        rows = [item for item in rows if item.status == status]
    if created_on is not None:
        rows = [item for item in rows if _created_on(item) == created_on]
    return rows


def count_statuses(items: list[ReviewItem]) -> dict[str, int]:
    counts = {"all": len(items), "awaiting": 0, "approved": 0, "rejected": 0}
    for item in items:
        if item.status in counts:
            counts[item.status] += 1
    return counts


def _created_on(item: ReviewItem) -> date | None:
    moment = parse_timestamp(item.created_at)
    return moment.date() if moment else None


class ReviewQueueService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def list_queue(
        self,
        identity: Identity,
        *,
        status: str | None = None,
        order_by: QueueOrder = "created_at",
        created_on: date | None = None,
    ) -> list[ReviewItem]:
        items = await self._build(identity, order_by=order_by)
        return filter_items(items, status=status, created_on=created_on)

    async def counts(self, identity: Identity) -> dict[str, int]:
        return count_statuses(await self._build(identity, order_by="created_at"))

    async def _build(self, identity: Identity, *, order_by: QueueOrder) -> list[ReviewItem]:
        ensure_allowed(identity, Action.REVIEW_QUEUE_READ)
        applications = await self.store.find(APPLICATIONS)
        recommendations = await self.store.find(RECOMMENDATIONS)

        visible_applications = [row for row in applications if can_perform(identity, Action.APPLICATION_READ, row)]
        visible_recommendations = [
            row
            for row in recommendations
            if status_value(row.get("status")) != RecommendationStatus.DRAFT.value
            and can_perform(identity, Action.RECOMMENDATION_READ, row)
        ]
        items = build_review_queue(
            identity=identity,
            applications=visible_applications,
            recommendations=visible_recommendations,
            order_by=order_by,
            existing_application_ids={str(row["id"]) for row in applications},
        )
        logger.info(
            "review queue built user_id=%s role=%s applications=%s recommendations=%s items=%s",
            identity.user_id,
            identity.role.value if identity.role else None,
            len(visible_applications),
            len(visible_recommendations),
            len(items),
        )
        return items
