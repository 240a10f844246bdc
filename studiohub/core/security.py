"""Bearer token verification for tokens issued by the identity service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from studiohub.core.config import get_settings
from studiohub.core.enums import RoleEnum

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=True)


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated caller resolved from an access token."""

    id: UUID
    role: RoleEnum

    @property
    def is_staff(self) -> bool:
        return self.role in (RoleEnum.STAFF, RoleEnum.ADMIN)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc


def actor_from_claims(claims: dict[str, Any]) -> Actor:
    """Build actor from decoded access-token claims."""
    if claims.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    try:
        return Actor(id=UUID(str(claims["sub"])), role=RoleEnum(str(claims["role"]).lower()))
    except (KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        ) from exc


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Actor:
    """Resolve current actor from bearer token."""
    return actor_from_claims(decode_token(credentials.credentials))


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted for your role",
            )
        return actor

    return _checker
