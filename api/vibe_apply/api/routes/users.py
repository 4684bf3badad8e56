from fastapi import APIRouter, Depends, Query, Response, status

from vibe_apply.api.deps import get_user_service
from vibe_apply.api.errors import to_http_exception
from vibe_apply.core.security import get_identity
from vibe_apply.schemas.users import LeaderStatusRequest, ProfileRequest, RoleChangeRequest, RoleValue, UserOut
from vibe_apply.services.errors import ReviewError

router = APIRouter()


@router.get("/me", response_model=UserOut)
async def get_me(
    identity=Depends(get_identity),
    service=Depends(get_user_service),
) -> UserOut:
    try:
        row = await service.get_me(identity)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return UserOut(**row)


@router.post("/me/profile", response_model=UserOut)
async def complete_profile(
    payload: ProfileRequest,
    identity=Depends(get_identity),
    service=Depends(get_user_service),
) -> UserOut:
    try:
        row = await service.complete_profile(identity, payload.model_dump(exclude_none=True))
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return UserOut(**row)


@router.get("", response_model=list[UserOut])
async def list_users(
    identity=Depends(get_identity),
    service=Depends(get_user_service),
    role: RoleValue | None = Query(default=None),
) -> list[UserOut]:
    try:
        rows = await service.list_users(identity, role=role)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [UserOut(**row) for row in rows]


@router.patch("/{user_id}/role", response_model=UserOut)
async def update_user_role(
    user_id: str,
    payload: RoleChangeRequest,
    identity=Depends(get_identity),
    service=Depends(get_user_service),
) -> UserOut:
    try:
        row = await service.update_role(identity, user_id, payload.role)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return UserOut(**row)


@router.patch("/{user_id}/leader-status", response_model=UserOut)
async def update_leader_status(
    user_id: str,
    payload: LeaderStatusRequest,
    identity=Depends(get_identity),
    service=Depends(get_user_service),
) -> UserOut:
    try:
        row = await service.update_leader_status(identity, user_id, payload.leader_status)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return UserOut(**row)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    identity=Depends(get_identity),
    service=Depends(get_user_service),
) -> Response:
    try:
        await service.delete_user(identity, user_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
