# app/api/v1/auth.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import SESSION_COOKIE, get_current_session
from app.core.auth.schemas import LoginRequest, LoginResponse, SessionResponse
from app.core.auth.service import AuthService
from app.core.auth.session import SessionContext

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Register-or-login

    - Owners log in with their own key and get a shadow employee record
    - Employees need the shop's shared verification key
    - Unknown character names are registered automatically
    - `remember_me` stores the token in a cookie for 7 days
    """
    service = AuthService(db)
    session, registered = service.login(login_data)
    token = service.issue_token(session)

    if login_data.remember_me:
        response.set_cookie(
            key=SESSION_COOKIE,
            value=token,
            max_age=settings.remember_me_days * 24 * 60 * 60,
            httponly=True,
            samesite="lax"
        )

    return LoginResponse(
        access_token=token,
        registered=registered,
        session=service.describe(session)
    )

@router.post("/logout")
async def logout(response: Response):
    """Forget the remember-me cookie"""
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}

@router.get("/me", response_model=SessionResponse)
async def get_me(session: SessionContext = Depends(get_current_session)):
    return AuthService.describe(session)
