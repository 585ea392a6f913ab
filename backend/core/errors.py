# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Domain errors raised by the hasher, cipher, authenticator and entry store.

None of these carry HTTP knowledge; ``main.create_app`` maps each class to a
status code and a fixed message.
"""


class VaultError(Exception):
    """Base class for every error the core raises on purpose."""

    default_message = "Vault error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(VaultError):
    """A required field is missing or empty."""

    default_message = "Missing fields"


class InvalidCredentials(VaultError):
    # Same message for unknown email and wrong password
    default_message = "Invalid credentials"


class Unauthenticated(VaultError):
    """No session, or the session is expired / invalidated."""

    default_message = "Not authenticated"


class NotFound(VaultError):
    """Entry absent *or* owned by somebody else – the two are indistinguishable."""

    default_message = "Not found"


class IntegrityError(VaultError):
    """Ciphertext failed authentication: corrupted, tampered or malformed."""

    default_message = "Decrypt error"


class Conflict(VaultError):
    default_message = "Email already registered"


class StoreUnavailable(VaultError):
    """Transient persistence failure (timeout, lost connection).  Retryable."""

    default_message = "Storage temporarily unavailable"
