from fastapi import APIRouter, Depends, Response, status

from vibe_apply.api.deps import get_comment_service, get_memo_service
from vibe_apply.api.errors import to_http_exception
from vibe_apply.core.security import get_identity
from vibe_apply.schemas.notes import NoteContentRequest, NoteOut
from vibe_apply.services.errors import ReviewError

router = APIRouter()


@router.get("/applications/{application_id}/memos", response_model=list[NoteOut], tags=["memos"])
async def list_memos(
    application_id: str,
    identity=Depends(get_identity),
    service=Depends(get_memo_service),
) -> list[NoteOut]:
    try:
        rows = await service.list_for_parent(identity, application_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [NoteOut(**row) for row in rows]


@router.post(
    "/applications/{application_id}/memos",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    tags=["memos"],
)
async def create_memo(
    application_id: str,
    payload: NoteContentRequest,
    identity=Depends(get_identity),
    service=Depends(get_memo_service),
) -> NoteOut:
    try:
        row = await service.create(identity, application_id, payload.content)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return NoteOut(**row)


@router.put("/memos/{memo_id}", response_model=NoteOut, tags=["memos"])
async def update_memo(
    memo_id: str,
    payload: NoteContentRequest,
    identity=Depends(get_identity),
    service=Depends(get_memo_service),
) -> NoteOut:
    try:
        row = await service.update(identity, memo_id, payload.content)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return NoteOut(**row)


@router.delete("/memos/{memo_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["memos"])
async def delete_memo(
    memo_id: str,
    identity=Depends(get_identity),
    service=Depends(get_memo_service),
) -> Response:
    try:
        await service.delete(identity, memo_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/recommendations/{recommendation_id}/comments", response_model=list[NoteOut], tags=["comments"])
async def list_comments(
    recommendation_id: str,
    identity=Depends(get_identity),
    service=Depends(get_comment_service),
) -> list[NoteOut]:
    try:
        rows = await service.list_for_parent(identity, recommendation_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return [NoteOut(**row) for row in rows]


@router.post(
    "/recommendations/{recommendation_id}/comments",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    tags=["comments"],
)
async def create_comment(
    recommendation_id: str,
    payload: NoteContentRequest,
    identity=Depends(get_identity),
    service=Depends(get_comment_service),
) -> NoteOut:
    try:
        row = await service.create(identity, recommendation_id, payload.content)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return NoteOut(**row)


@router.put("/comments/{comment_id}", response_model=NoteOut, tags=["comments"])
async def update_comment(
    comment_id: str,
    payload: NoteContentRequest,
    identity=Depends(get_identity),
    service=Depends(get_comment_service),
) -> NoteOut:
    try:
        row = await service.update(identity, comment_id, payload.content)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return NoteOut(**row)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["comments"])
async def delete_comment(
    comment_id: str,
    identity=Depends(get_identity),
    service=Depends(get_comment_service),
) -> Response:
    try:
        await service.delete(identity, comment_id)
    except ReviewError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
