import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt

from .config import JWT_ALGORITHM, SECRET_KEY

logger = logging.getLogger(__name__)

security = HTTPBearer()

ROLES = ("admin", "doctor", "patient")


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: identity-service subject plus role"""

    id: str
    role: str


def create_access_token(subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a bearer token for a principal

    Args:
        subject: Identity-service user id
        role: One of ``ROLES``
        expires_delta: Token lifetime (default 60 minutes)
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode = {"sub": subject, "role": role, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a bearer token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal:
    """Resolve the caller from the Authorization header"""
    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or role not in ROLES:
        logger.warning(f"⚠️ Token rejected: sub={subject!r} role={role!r}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return Principal(id=str(subject), role=role)


def require_role(*roles: str):
    """Dependency factory restricting an endpoint to the given roles"""

    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            logger.warning(f"⚠️ {principal.role} {principal.id} denied (requires {', '.join(roles)})")
            raise HTTPException(status_code=403, detail="Forbidden")
        return principal

    return checker
