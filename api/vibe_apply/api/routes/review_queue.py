from dataclasses import asdict
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query

from vibe_apply.api.deps import get_review_queue_service
from vibe_apply.api.errors import to_http_exception
from vibe_apply.core.security import get_identity
from vibe_apply.schemas.review import QueueStatusFilter, ReviewCountsOut, ReviewItemOut
from vibe_apply.services.errors import ReviewError

router = APIRouter()


@router.get("", response_model=list[ReviewItemOut])
async def list_review_queue(
    identity=Depends(get_identity),
    service=Depends(get_review_queue_service),
    status_filter: QueueStatusFilter | None = Query(default=None, alias="status"),
    order_by: Literal["created_at", "updated_at"] = Query(default="created_at"),
    created_on: date | None = Query(default=None),
) -> list[ReviewItemOut]:
    try:
        items = await service.list_queue(identity, status=status_filter, order_by=order_by, created_on=created_on)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [ReviewItemOut(**asdict(item)) for item in items]


@router.get("/counts", response_model=ReviewCountsOut)
async def review_queue_counts(
    identity=Depends(get_identity),
    service=Depends(get_review_queue_service),
) -> ReviewCountsOut:
    try:
        counts = await service.counts(identity)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return ReviewCountsOut(**counts)
