"""
Shared fixtures.

The application reads its settings at import time, so the environment is
populated before anything from ``backend/`` is imported.  Every test gets a
fresh SQLite file so sessions opened by different components see the same
committed data without sharing a connection.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["VAULT_KEY"] = "test-vault-key"
os.environ["VAULT_KDF"] = "sha256"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["SESSION_BACKEND"] = "database"
os.environ["COOKIE_SECURE"] = "false"

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from auth.service import SessionAuthenticator  # noqa: E402
from auth.sessions import DatabaseSessionStore  # noqa: E402
from core.config import Settings  # noqa: E402
from core.security import PasswordHasher, VaultCipher, derive_key  # noqa: E402
from database import Base, build_engine, get_db  # noqa: E402
from main import create_app  # noqa: E402
import models.user  # noqa: F401, E402
import models.vault_entry  # noqa: F401, E402
import models.session  # noqa: F401, E402

TEST_SECRET_KEY = os.environ["SECRET_KEY"]


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'vault.db'}", timeout=5.0)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cipher():
    return VaultCipher(derive_key("test-vault-key"))


@pytest.fixture
def hasher():
    # Low cost keeps the suite fast; production default is 600 000
    return PasswordHasher(rounds=1000)


@pytest.fixture
def authenticator(session_factory, hasher):
    return SessionAuthenticator(
        store=DatabaseSessionStore(session_factory),
        hasher=hasher,
        secret_key=TEST_SECRET_KEY,
        ttl=timedelta(minutes=30),
    )


@pytest.fixture
def user(db, authenticator):
    return authenticator.register(db, "alice@example.com", "alice-pw")


@pytest.fixture
def other_user(db, authenticator):
    return authenticator.register(db, "bob@example.com", "bob-pw")


@pytest.fixture
def app(session_factory):
    application = create_app(Settings(), session_factory=session_factory)

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = _get_test_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
