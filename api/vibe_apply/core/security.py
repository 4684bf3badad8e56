from typing import Any

import httpx
from fastapi import Depends, Header, HTTPException, status

from vibe_apply.core.auth import Identity
from vibe_apply.core.config import Settings, get_settings
from vibe_apply.services.errors import StoreUnavailableError
from vibe_apply.services.store import get_record_store
from vibe_apply.services.users import UserService


async def get_identity(
    settings: Settings = Depends(get_settings),
    store=Depends(get_record_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Identity:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="requests require a bearer token",
        )

    token = authorization.split(" ", maxsplit=1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="empty bearer token")

    if not settings.auth_url or not settings.auth_anon_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="auth provider is not configured",
        )

    auth_user = await _fetch_auth_user(
        auth_url=settings.auth_url,
        auth_anon_key=settings.auth_anon_key,
        token=token,
        timeout_seconds=settings.auth_timeout_seconds,
    )
    user_id = auth_user.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid bearer token")

    try:
        user = await UserService(store).ensure_user(auth_user)
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return Identity.from_user(user)


async def _fetch_auth_user(
    *,
    auth_url: str,
    auth_anon_key: str,
    token: str,
    timeout_seconds: float,
) -> dict[str, Any]:
    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": auth_anon_key,
    }
    url = f"{auth_url.rstrip('/')}/auth/v1/user"

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as exc:  # pragma: no cover - network dependent
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="auth verification unavailable",
        ) from exc

    if response.status_code in {401, 403}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid bearer token")
    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="auth verification failed",
        )

    return response.json()
