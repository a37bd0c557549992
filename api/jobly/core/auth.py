from dataclasses import dataclass


class UnauthorizedError(Exception):
    """Raised when a credential does not satisfy an authorization rule."""


@dataclass(frozen=True, slots=True)
class Credential:
    username: str
    is_admin: bool = False


def require_authenticated(credential: Credential | None) -> None:
    if credential is None or not credential.username:
        raise UnauthorizedError("login required")


def require_admin(credential: Credential | None) -> None:
    if credential is None or not credential.username or credential.is_admin is not True:
        raise UnauthorizedError("admin privileges required")


def require_self_or_admin(credential: Credential | None, target_username: str) -> None:
    if credential is None:
        raise UnauthorizedError("login required")
    if credential.username and credential.username == target_username:
        return
    if credential.is_admin is True:
        return
    raise UnauthorizedError(f"not allowed to act on user: {target_username}")
