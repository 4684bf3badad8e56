from fastapi import APIRouter, Depends, Query, Response, status

from vibe_apply.api.deps import get_application_service
from vibe_apply.api.errors import to_http_exception
from vibe_apply.core.security import get_identity
from vibe_apply.schemas.applications import (
    ApplicationOut,
    ApplicationStatusRequest,
    ApplicationStatusValue,
    ApplicationSubmitRequest,
)
from vibe_apply.services.errors import ReviewError

router = APIRouter()


@router.post("", response_model=ApplicationOut)
async def submit_application(
    payload: ApplicationSubmitRequest,
    identity=Depends(get_identity),
    service=Depends(get_application_service),
) -> ApplicationOut:
    try:
        row = await service.submit(identity, payload.model_dump(exclude_none=True))
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return ApplicationOut(**row)


@router.get("/mine", response_model=ApplicationOut | None)
async def get_my_application(
    identity=Depends(get_identity),
    service=Depends(get_application_service),
) -> ApplicationOut | None:
    try:
        row = await service.get_mine(identity)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return ApplicationOut(**row) if row else None


@router.get("", response_model=list[ApplicationOut])
async def list_applications(
    identity=Depends(get_identity),
    service=Depends(get_application_service),
    status_filter: ApplicationStatusValue | None = Query(default=None, alias="status"),
    stake: str | None = Query(default=None),
    ward: str | None = Query(default=None),
) -> list[ApplicationOut]:
    try:
        rows = await service.list_applications(identity, status=status_filter, stake=stake, ward=ward)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [ApplicationOut(**row) for row in rows]


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: str,
    identity=Depends(get_identity),
    service=Depends(get_application_service),
) -> ApplicationOut:
    try:
        row = await service.get(identity, application_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return ApplicationOut(**row)


@router.patch("/{application_id}/status", response_model=ApplicationOut)
async def update_application_status(
    application_id: str,
    payload: ApplicationStatusRequest,
    identity=Depends(get_identity),
    service=Depends(get_application_service),
) -> ApplicationOut:
    try:
        row = await service.update_status(identity, application_id, payload.status)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return ApplicationOut(**row)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: str,
    identity=Depends(get_identity),
    service=Depends(get_application_service),
) -> Response:
    try:
        await service.delete(identity, application_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
