# app/core/auth/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.config.settings import settings
from app.core.exceptions import AuthenticationError


def create_access_token(
    employee_id: int,
    kind: str,
    owner_id: Optional[int] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload: Dict[str, Any] = {
        "sub": str(employee_id),
        "kind": kind,
        "exp": expire,
    }
    if owner_id is not None:
        payload["owner_id"] = owner_id

    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session expired, please log in again") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid session token") from e

    if "sub" not in payload or "kind" not in payload:
        raise AuthenticationError("Invalid session token")

    return payload
