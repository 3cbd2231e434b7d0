# File: /inline_db/security.py | Version: 2.0 | Title: JWT caller context (identity, organization scope, role)
"""
Tokens are minted by the identity service; this service only decodes them.

Claims: ``sub`` (user id), ``org`` (organization id), ``role``
(Owner/Admin/Member/Guest). ``create_access_token`` exists for tests and
local tooling.
"""
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from inline_db.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    user_id: str
    organization_id: str
    role: Optional[str]


def _jwt_encode(claims: dict) -> str:
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _jwt_decode(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def create_access_token(
    *, user_id: str, organization_id: str, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return _jwt_encode(
        {"sub": user_id, "org": organization_id, "role": role, "exp": expire, "type": "access"}
    )


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = _jwt_decode(credentials.credentials)
    except JWTError:
        raise credentials_exception

    if payload.get("type") not in (None, "access"):
        raise credentials_exception
    user_id = payload.get("sub")
    organization_id = payload.get("org")
    if not user_id or not organization_id:
        raise credentials_exception
    return Principal(user_id=str(user_id), organization_id=str(organization_id), role=payload.get("role"))
