"""
Bearer credential handling.

Tokens are HS256 JWTs carrying the user id in `sub` and the user's role in
`role`. Issuing tokens belongs to the auth service; this API only verifies
them and turns the claims into an AuthUser.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.errors import AuthenticationRequired, Unauthorized
from app.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_MEMBER = frozenset({
    "events.create", "inscriptions.create", "inscriptions.read.own", "inscriptions.cancel.own",
})

# Any signed-in member may publish an event; editing and removing one is staff work
ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "user": _MEMBER,
    "organizer": _MEMBER,
    "moderator": _MEMBER | {"inscriptions.read.any"},
    "admin": _MEMBER | {"events.manage", "inscriptions.read.any", "inscriptions.cancel.any"},
}
ROLE_PERMISSIONS["super_admin"] = ROLE_PERMISSIONS["admin"]


@dataclass(frozen=True)
class AuthUser:
    id: int
    role: str = "user"
    email: Optional[str] = None

    def has_permission(self, permission: str) -> bool:
        return permission in ROLE_PERMISSIONS.get(self.role, frozenset())


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> AuthUser:
    """Verify signature and expiry, then build the identity. Raises AuthenticationRequired."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Token expirado")
    except jwt.PyJWTError as e:
        logger.warning("token_rejected", reason=str(e))
        raise AuthenticationRequired("Token inválido")

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationRequired("Token sin información de usuario")

    return AuthUser(id=user_id, role=payload.get("role", "user"), email=payload.get("email"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthUser:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationRequired()
    return decode_access_token(credentials.credentials)


def require_permission(user: AuthUser, permission: str) -> None:
    if not user.has_permission(permission):
        logger.warning("permission_denied", user_id=user.id, role=user.role, permission=permission)
        raise Unauthorized("Permisos insuficientes")


def requires(permission: str):
    """Dependency resolving the current user once they hold `permission`."""

    async def dependency(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        require_permission(user, permission)
        return user

    return dependency
