# app/core/auth/dependencies.py
from typing import List, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from .service import AuthService
from .session import Capability, SessionContext

SESSION_COOKIE = "dragon_auto_session"

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> SessionContext:
    """Session from the bearer token, falling back to the remember-me cookie"""
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE)
    if not token:
        raise AuthenticationError("Not authenticated")

    return AuthService(db).resolve_session(token)


def require_capabilities(capabilities: List[Capability]):
    """Dependency factory: the session must hold every listed capability"""

    def checker(session: SessionContext = Depends(get_current_session)) -> SessionContext:
        missing = [c.value for c in capabilities if not session.can(c)]
        if missing:
            raise PermissionDeniedError(
                "You do not have permission to perform this action",
                details={"missing_capabilities": missing}
            )
        return session

    return checker
