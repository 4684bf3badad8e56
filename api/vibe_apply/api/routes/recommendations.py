from fastapi import APIRouter, Depends, Query, Response, status

from vibe_apply.api.deps import get_recommendation_service
from vibe_apply.api.errors import to_http_exception
from vibe_apply.core.security import get_identity
from vibe_apply.schemas.recommendations import (
    RecommendationCreateRequest,
    RecommendationOut,
    RecommendationPatchRequest,
    RecommendationStatusRequest,
    RecommendationStatusValue,
)
from vibe_apply.services.errors import ReviewError

router = APIRouter()


@router.post("", response_model=RecommendationOut, status_code=status.HTTP_201_CREATED)
async def create_recommendation(
    payload: RecommendationCreateRequest,
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> RecommendationOut:
    try:
        row = await service.create(identity, payload.model_dump(exclude_none=True))
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return RecommendationOut(**row)


@router.get("/mine", response_model=list[RecommendationOut])
async def list_my_recommendations(
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> list[RecommendationOut]:
    try:
        rows = await service.list_mine(identity)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [RecommendationOut(**row) for row in rows]


@router.get("", response_model=list[RecommendationOut])
async def list_recommendations(
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
    status_filter: RecommendationStatusValue | None = Query(default=None, alias="status"),
) -> list[RecommendationOut]:
    try:
        rows = await service.list_recommendations(identity, status=status_filter)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [RecommendationOut(**row) for row in rows]


@router.get("/{recommendation_id}", response_model=RecommendationOut)
async def get_recommendation(
    recommendation_id: str,
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> RecommendationOut:
    try:
        row = await service.get(identity, recommendation_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return RecommendationOut(**row)


@router.put("/{recommendation_id}", response_model=RecommendationOut)
async def update_recommendation(
    recommendation_id: str,
    payload: RecommendationPatchRequest,
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> RecommendationOut:
    try:
        row = await service.update(identity, recommendation_id, payload.model_dump(exclude_unset=True))
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return RecommendationOut(**row)


@router.patch("/{recommendation_id}/status", response_model=RecommendationOut)
async def update_recommendation_status(
    recommendation_id: str,
    payload: RecommendationStatusRequest,
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> RecommendationOut:
    try:
        row = await service.update_status(identity, recommendation_id, payload.status)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return RecommendationOut(**row)


@router.delete("/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommendation(
    recommendation_id: str,
    identity=Depends(get_identity),
    service=Depends(get_recommendation_service),
) -> Response:
    try:
        await service.delete(identity, recommendation_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
