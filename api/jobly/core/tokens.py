from __future__ import annotations

import time
from typing import Any

from jose import JWTError, jwt

from jobly.core.auth import Credential
from jobly.core.config import Settings


def create_token(*, username: str, is_admin: bool, settings: Settings) -> str:
    claims: dict[str, Any] = {
        "username": username,
        "isAdmin": bool(is_admin),
        "iat": int(time.time()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.token_algorithm)


def decode_token(raw_token: str, *, settings: Settings) -> Credential | None:
    """Verify a signed token and return its credential.

    Tokens that fail verification are treated as no credential at all; the
    caller decides whether anonymous access is acceptable.
    """
    if not raw_token:
        return None
    try:
        payload = jwt.decode(raw_token, settings.secret_key, algorithms=[settings.token_algorithm])
    except JWTError:
        return None

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        return None
    return Credential(username=username, is_admin=payload.get("isAdmin") is True)
