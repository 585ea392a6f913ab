# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Derive the vault master key (once) and build the cipher, password hasher,
  session store and authenticator; park them on ``app.state``.
* Register CORS and request-logging middleware.
* Mount the feature routers (auth, vault).
* Map domain errors to HTTP responses without leaking internals.
* Expose a /health endpoint for container liveness checks.

Production note
---------------
CORS origins default to localhost only.  In a production deployment set
CORS_ORIGINS to the exact frontend origin.
"""

import time
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from auth.router import router as auth_router
from auth.service import SessionAuthenticator
from auth.sessions import build_session_store
from core.config import Settings, settings
from core.errors import (
    Conflict,
    IntegrityError,
    InvalidCredentials,
    NotFound,
    StoreUnavailable,
    Unauthenticated,
    ValidationError,
    VaultError,
)
from core.logger import logger
from core.security import PasswordHasher, VaultCipher, derive_key
from database import SessionLocal
from vault.router import router as vault_router

# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies are NOT echoed – login payloads and entry passwords never reach the
# log, only the URL and metadata are recorded.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = {
    ValidationError: 422,
    InvalidCredentials: 401,
    Unauthenticated: 401,
    NotFound: 404,
    IntegrityError: 500,
    Conflict: 409,
    StoreUnavailable: 503,
}


def _status_for(exc: VaultError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


async def _vault_error_handler(request: Request, exc: VaultError) -> JSONResponse:
    status_code = _status_for(exc)
    if isinstance(exc, IntegrityError):
        # Corrupted or tampered record: fatal for that entry only
        logger.error("Integrity failure on %s %s", request.method, request.url.path)
        detail = IntegrityError.default_message
    elif isinstance(exc, StoreUnavailable):
        logger.warning("Storage unavailable on %s %s: %r", request.method, request.url.path, exc.__cause__)
        detail = exc.message
    else:
        detail = exc.message

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Optional[Settings] = None, session_factory=SessionLocal) -> FastAPI:
    """
    Build the application.  The master key is derived here, exactly once,
    and only the resulting ``VaultCipher`` is kept.
    """
    cfg = app_settings or settings

    app = FastAPI(title="Password Vault", version="1.0.0")

    key = derive_key(cfg.vault_key, cfg.vault_kdf, cfg.vault_kdf_salt.encode("utf-8"))
    app.state.settings = cfg
    app.state.cipher = VaultCipher(key)
    app.state.authenticator = SessionAuthenticator(
        store=build_session_store(cfg.session_backend, session_factory),
        hasher=PasswordHasher(cfg.password_hash_rounds),
        secret_key=cfg.secret_key,
        ttl=timedelta(minutes=cfg.session_expire_minutes),
    )

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(_RequestLogMiddleware)

    app.add_exception_handler(VaultError, _vault_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(auth_router)
    app.include_router(vault_router)

    @app.on_event("startup")
    async def _on_startup():
        logger.info(
            "Password Vault starting up (kdf=%s, session_backend=%s)",
            cfg.vault_kdf,
            cfg.session_backend,
        )

    @app.on_event("shutdown")
    async def _on_shutdown():
        logger.info("Password Vault shutting down")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
