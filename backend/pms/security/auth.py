"""
Authentication
Bearer JWT carrying the acting user, their property role and scope.
Role normalization happens in the engine; this module only decodes claims.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from pms.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer()


@dataclass(frozen=True)
class Actor:
    """Authenticated caller"""
    user_id: int
    role: Optional[str]
    property_id: Optional[int] = None
    organization_id: Optional[int] = None
    org_role: Optional[str] = None

    def can_access_property(self, property_id: int) -> bool:
        # Organization-level users are not pinned to one property
        return self.property_id is None or self.property_id == property_id

    def can_access_reservation(self, property_id: int, organization_id: Optional[int]) -> bool:
        if self.organization_id is not None and organization_id != self.organization_id:
            return False
        return self.can_access_property(property_id)


def create_access_token(
    user_id: int,
    role: Optional[str],
    property_id: Optional[int] = None,
    organization_id: Optional[int] = None,
    org_role: Optional[str] = None,
) -> str:
    """Create a JWT for the given actor"""
    expire = datetime.now(UTC) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(user_id), "exp": expire}
    if role is not None:
        to_encode["role"] = role
    if property_id is not None:
        to_encode["property_id"] = property_id
    if organization_id is not None:
        to_encode["organization_id"] = organization_id
    if org_role is not None:
        to_encode["org_role"] = org_role
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode a JWT"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """Resolve the acting user from the bearer token"""
    payload = decode_token(credentials.credentials)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )

    return Actor(
        user_id=user_id,
        role=payload.get("role"),
        property_id=payload.get("property_id"),
        organization_id=payload.get("organization_id"),
        org_role=payload.get("org_role"),
    )


def require_property_access(property_id: int, actor: Actor) -> None:
    """403 when the actor is pinned to another property"""
    if not actor.can_access_property(property_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No access to this property",
        )
