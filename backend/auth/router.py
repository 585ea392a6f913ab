# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, logout, current-user info.

Security notes
--------------
* Login returns the *same* error whether the email doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* Login sets the session token both in the JSON body (for API clients) and
  in an HttpOnly cookie (for browsers).
* Logout always succeeds, with or without a valid session.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from auth.dependencies import (
    SESSION_COOKIE,
    get_authenticator,
    get_current_user_id,
    get_session_token,
)
from auth.schemas import LoginRequest, LoginResponse, RegisterRequest, UserInfoResponse
from auth.service import SessionAuthenticator
from core.errors import Unauthenticated
from database import get_db
from models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=UserInfoResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Create an account.  409 if the email is taken, 422 if a field is missing."""
    return authenticator.register(db, body.email, body.password)


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Authenticate and open a server-side session."""
    session = authenticator.authenticate(db, body.email, body.password)

    response.set_cookie(
        SESSION_COOKIE,
        session.token,
        expires=session.expires_at,
        httponly=True,
        secure=request.app.state.settings.cookie_secure,
        samesite="lax",
    )
    return LoginResponse(
        access_token=session.token,
        token_type="bearer",
        expires_at=session.expires_at,
    )


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Destroy the session (if any) and clear the cookie.  Idempotent."""
    authenticator.invalidate(token)
    response.delete_cookie(
        SESSION_COOKIE,
        httponly=True,
        secure=request.app.state.settings.cookie_secure,
        samesite="lax",
    )
    return {"detail": "Logged out"}


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserInfoResponse)
def me(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Return the authenticated user's public profile (no secrets)."""
    user = db.get(User, user_id)
    if user is None:
        # Session outlived its user
        raise Unauthenticated()
    return user
