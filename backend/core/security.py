# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Master-key derivation                    (SHA-256 or scrypt)
3. Vault-entry encryption / decryption      (AES-256-GCM)
4. Session token signing / decoding         (PyJWT / HS256)

Nothing here reads the global settings: keys, rounds and secrets are passed
in by ``main.create_app`` so each primitive is an explicit, immutable value.
"""

import base64
import hashlib
import secrets
from datetime import datetime
from typing import Optional

import jwt as _jwt        # PyJWT
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

from core.errors import IntegrityError, Unauthenticated

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib's pbkdf2_sha256 is pure Python and embeds algorithm, rounds and salt
# in the hash string ("$pbkdf2-sha256$600000$<salt>$<digest>").  Rounds are
# tunable per deployment; verification always uses the rounds embedded in
# the stored hash, so raising the cost never breaks existing accounts.
# ---------------------------------------------------------------------------

DEFAULT_HASH_ROUNDS = 600_000


class PasswordHasher:
    """Salted, adaptive one-way hashing of login passwords."""

    def __init__(self, rounds: int = DEFAULT_HASH_ROUNDS):
        self._handler = _pbkdf2.using(rounds=rounds)
        self._dummy_hash: Optional[str] = None

    def hash(self, plain: str) -> str:
        """
        Hash a plaintext password.  A fresh 16-byte salt is drawn on every
        call, so hashing the same password twice yields different strings.
        """
        return self._handler.hash(plain)

    def verify(self, plain: str, stored_hash: str) -> bool:
        """
        Constant-time verification of *plain* against a hash produced by
        :meth:`hash`.  Fails closed: a malformed or missing hash is simply a
        mismatch, never an exception.
        """
        if not stored_hash or plain is None:
            return False
        try:
            return self._handler.verify(plain, stored_hash)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self, plain: str) -> bool:
        """
        Spend roughly the same work as a real verification and return False.
        Used when the login email is unknown.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._handler.hash(secrets.token_urlsafe(16))
        self.verify(plain or "", self._dummy_hash)
        return False


# ---------------------------------------------------------------------------
# 2.  Master-key derivation
# ---------------------------------------------------------------------------

KEY_LENGTH = 32  # AES-256

# scrypt cost: 2**15 * 8 * 128 bytes = 32 MiB per derivation
_SCRYPT_N = 2 ** 15
_SCRYPT_R = 8
_SCRYPT_P = 1


def derive_key(secret: str, kdf: str = "sha256", salt: bytes = b"") -> bytes:
    """
    Turn the deployment's master secret into a 32-byte AES key.

    ``sha256`` is a single digest over the secret.  It only normalises the
    length and adds no work factor; it is kept because every blob written by
    an existing deployment was encrypted under it.  ``scrypt`` is the
    memory-hard alternative and requires a per-deployment *salt*.
    """
    if not secret:
        raise ValueError("Vault master secret must not be empty")
    data = secret.encode("utf-8")

    if kdf == "sha256":
        return hashlib.sha256(data).digest()
    if kdf == "scrypt":
        if not salt:
            raise ValueError("scrypt key derivation requires a salt (VAULT_KDF_SALT)")
        return Scrypt(salt=salt, length=KEY_LENGTH, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P).derive(data)
    raise ValueError(f"Unknown key derivation function: {kdf!r}")


# ---------------------------------------------------------------------------
# 3.  AES-256-GCM – vault encryption
# ---------------------------------------------------------------------------
# Stored blob layout (text column):
#     base64( nonce[12] || tag[16] || ciphertext[n] )
# cryptography's AESGCM returns ciphertext || tag, so the tag is moved in
# front of the ciphertext on the way out and back behind it on the way in.

NONCE_SIZE = 12  # 96-bit nonce per NIST SP 800-38D
TAG_SIZE = 16
MIN_BLOB_SIZE = NONCE_SIZE + TAG_SIZE


class VaultCipher:
    """
    Authenticated encryption of individual secret fields under one key.

    The instance keeps only the AEAD primitive bound to the key.  Every call
    to :meth:`encrypt` draws a new random nonce – nonce reuse with the same
    key would be catastrophic for GCM.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise ValueError(f"Vault key must be exactly {KEY_LENGTH} bytes")
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: bytes) -> str:
        nonce = secrets.token_bytes(NONCE_SIZE)
        # AAD (additional authenticated data) is None – we don't need it here
        ct_and_tag = self._aesgcm.encrypt(nonce, plaintext, None)
        ciphertext, tag = ct_and_tag[:-TAG_SIZE], ct_and_tag[-TAG_SIZE:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> bytes:
        """
        Decrypt a blob produced by :meth:`encrypt`.

        Raises ``IntegrityError`` if the blob is not valid base64, is shorter
        than nonce + tag, or the GCM tag does not verify (tampering,
        corruption or the wrong key).
        """
        try:
            raw = base64.b64decode(blob, validate=True)
        except (ValueError, TypeError) as exc:
            raise IntegrityError("Ciphertext is not valid base64") from exc

        if len(raw) < MIN_BLOB_SIZE:
            raise IntegrityError("Ciphertext is truncated")

        nonce = raw[:NONCE_SIZE]
        tag = raw[NONCE_SIZE:MIN_BLOB_SIZE]
        ciphertext = raw[MIN_BLOB_SIZE:]
        try:
            return self._aesgcm.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as exc:
            raise IntegrityError("Decryption failed – data may be tampered") from exc

    def encrypt_text(self, plaintext: str) -> str:
        return self.encrypt(plaintext.encode("utf-8"))

    def decrypt_text(self, blob: str) -> str:
        plaintext = self.decrypt(blob)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise IntegrityError("Decrypted value is not UTF-8 text") from exc


# ---------------------------------------------------------------------------
# 4.  Session tokens
# ---------------------------------------------------------------------------
# The token is only a tamper-evident envelope around the opaque server-side
# session id.  Authority lives in the session store: a valid signature for a
# session that has been invalidated is still rejected.

_TOKEN_ALGORITHM = "HS256"


def create_session_token(session_id: str, user_id: int, expires_at: datetime, secret_key: str) -> str:
    """Sign a token carrying ``sid`` (session id), ``sub`` (user id) and ``exp``."""
    claims = {"sid": session_id, "sub": str(user_id), "exp": expires_at}
    return _jwt.encode(claims, secret_key, algorithm=_TOKEN_ALGORITHM)


def decode_session_token(token: str, secret_key: str) -> str:
    """
    Verify the signature and expiry and return the session id.  Raises
    ``Unauthenticated`` on any failure (expired, bad signature, malformed).
    """
    try:
        payload = _jwt.decode(token, secret_key, algorithms=[_TOKEN_ALGORITHM])
    except _jwt.InvalidTokenError as exc:
        raise Unauthenticated("Invalid or expired session") from exc

    session_id = payload.get("sid")
    if not isinstance(session_id, str) or not session_id:
        raise Unauthenticated("Invalid or expired session")
    return session_id
