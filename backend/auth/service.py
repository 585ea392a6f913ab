# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Session authenticator – registration, login, the per-request session gate
and logout.

Security notes
--------------
* Login raises the *same* ``InvalidCredentials`` whether the email doesn't
  exist or the password is wrong.  The unknown-email path also runs a dummy
  hash verification so the two cases cost about the same time.
* The authenticator holds no mutable state of its own; sessions live in the
  injected ``SessionStore``.
* There is no throttling of failed logins.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session

from auth.sessions import SessionStore
from core.errors import Conflict, InvalidCredentials, Unauthenticated, ValidationError
from core.logger import logger
from core.security import PasswordHasher, create_session_token, decode_session_token
from database import translate_db_errors
from models.user import User


@dataclass(frozen=True)
class IssuedSession:
    """What a successful login hands back to the boundary."""

    session_id: str
    user_id: int
    expires_at: datetime
    token: str


class SessionAuthenticator:
    def __init__(
        self,
        store: SessionStore,
        hasher: PasswordHasher,
        secret_key: str,
        ttl: timedelta,
    ):
        self.store = store
        self.hasher = hasher
        self._secret_key = secret_key
        self._ttl = ttl

    # -- Registration -------------------------------------------------------

    def register(self, db: Session, email: Optional[str], plaintext: Optional[str]) -> User:
        """
        Create a user.  Raises ``ValidationError`` when a field is missing and
        ``Conflict`` when the email is taken.
        """
        if not email or not plaintext:
            raise ValidationError("Missing fields")

        with translate_db_errors(db):
            # Uniqueness check; the unique index below still covers races
            if db.query(User.id).filter(User.email == email).first():
                raise Conflict()

            user = User(email=email, password_hash=self.hasher.hash(plaintext))
            db.add(user)
            try:
                db.commit()
            except DBIntegrityError as exc:
                db.rollback()
                raise Conflict() from exc
            db.refresh(user)

        logger.info("Registered user id=%d", user.id)
        return user

    # -- Login --------------------------------------------------------------

    def authenticate(self, db: Session, email: Optional[str], plaintext: Optional[str]) -> IssuedSession:
        """Verify credentials and open a server-side session."""
        if not email or not plaintext:
            raise InvalidCredentials()

        with translate_db_errors(db):
            user = db.query(User).filter(User.email == email).first()

        # Unified failure path – no information leaks about whether the email exists
        if user is None:
            self.hasher.dummy_verify(plaintext)
            logger.info("Login failed")
            raise InvalidCredentials()
        if not self.hasher.verify(plaintext, user.password_hash):
            logger.info("Login failed")
            raise InvalidCredentials()

        # Sweep on login so abandoned sessions don't accumulate
        self.store.purge_expired()
        record = self.store.create(user.id, self._ttl)
        token = create_session_token(record.session_id, record.user_id, record.expires_at, self._secret_key)
        logger.info("Login succeeded for user id=%d", user.id)
        return IssuedSession(
            session_id=record.session_id,
            user_id=record.user_id,
            expires_at=record.expires_at,
            token=token,
        )

    # -- Gate ---------------------------------------------------------------

    def require_session(self, token: Optional[str]) -> int:
        """
        Resolve a session token to the user id it was issued for.  Raises
        ``Unauthenticated`` if the token is missing, forged, expired, or
        names a session that no longer exists.
        """
        if not token:
            raise Unauthenticated()
        session_id = decode_session_token(token, self._secret_key)
        record = self.store.get(session_id)
        if record is None:
            raise Unauthenticated("Invalid or expired session")
        return record.user_id

    # -- Logout -------------------------------------------------------------

    def invalidate(self, token: Optional[str]) -> None:
        """Destroy the session behind *token*.  Idempotent; never raises for bad tokens."""
        if not token:
            return
        try:
            session_id = decode_session_token(token, self._secret_key)
        except Unauthenticated:
            # Forged or expired token: nothing server-side to destroy
            return
        self.store.invalidate(session_id)
        logger.info("Session invalidated")
