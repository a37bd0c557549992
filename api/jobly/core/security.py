from fastapi import Depends, Header, HTTPException, status

from jobly.core.auth import (
    Credential,
    UnauthorizedError,
    require_admin,
    require_authenticated,
    require_self_or_admin,
)
from jobly.core.config import Settings, get_settings
from jobly.core.tokens import decode_token


async def get_credential(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Credential | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None

    token = authorization.split(" ", maxsplit=1)[1].strip()
    return decode_token(token, settings=settings)


async def ensure_logged_in(credential: Credential | None = Depends(get_credential)) -> Credential:
    try:
        require_authenticated(credential)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    assert credential is not None
    return credential


async def ensure_admin(credential: Credential | None = Depends(get_credential)) -> Credential:
    try:
        require_admin(credential)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    assert credential is not None
    return credential


async def ensure_self_or_admin(
    username: str,
    credential: Credential | None = Depends(get_credential),
) -> Credential:
    try:
        require_self_or_admin(credential, username)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    assert credential is not None
    return credential
