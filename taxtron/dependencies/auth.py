"""
Bearer-token authentication dependencies.

Tokens are issued by the login endpoints of the wider TaxTron backend and
signed with the shared JWT_SECRET:
    user tokens  -> {"userId": ...}
    admin tokens -> {"id": ..., "role": "admin"}
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from jose import jwt, JWTError

from taxtron.config import settings
from taxtron.models.ownership_transfer import UserId

ADMIN_ROLE = "admin"


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token with the shared secret. Used by scripts and tests."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = dict(claims)
    payload["exp"] = datetime.utcnow() + expires_delta
    payload["iat"] = datetime.utcnow()
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _decode_bearer(request: Request) -> Dict[str, Any]:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided."
        )

    token = auth_header[7:]  # Remove "Bearer " prefix

    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )


def get_current_user_id(request: Request) -> UserId:
    """
    Resolve the end user behind the request.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or has no userId
    """
    payload = _decode_bearer(request)
    user_id = payload.get("userId")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    return UserId(str(user_id))


def get_current_admin_id(request: Request) -> str:
    """Resolve the admin behind the request; 401 for anything but an admin token."""
    payload = _decode_bearer(request)
    admin_id = payload.get("id")
    if not admin_id or payload.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    return str(admin_id)
