# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI dependency guards.

The cipher and the authenticator are built once by ``main.create_app`` and
parked on ``app.state``; these dependencies hand them to the routers.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from auth.service import SessionAuthenticator
from core.security import VaultCipher

SESSION_COOKIE = "pwvault_session"

# auto_error=False: a missing header is not fatal, the cookie may carry the
# token instead.  tokenUrl is only used by the generated OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_authenticator(request: Request) -> SessionAuthenticator:
    return request.app.state.authenticator


def get_cipher(request: Request) -> VaultCipher:
    return request.app.state.cipher


def get_session_token(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    return bearer or request.cookies.get(SESSION_COOKIE)


def get_current_user_id(
    token: Optional[str] = Depends(get_session_token),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> int:
    """
    Dependency: every protected endpoint passes through here before touching
    the vault.  Raises ``Unauthenticated`` (401) if there is no live session.
    """
    return authenticator.require_session(token)
