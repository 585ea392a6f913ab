"""Tests for PasswordHasher."""
import pytest

from core.security import PasswordHasher


class TestHash:
    def test_hash_is_self_describing(self, hasher):
        stored = hasher.hash("pw1")
        # algorithm, rounds, salt and digest all live in the string
        assert stored.startswith("$pbkdf2-sha256$1000$")

    def test_fresh_salt_per_call(self, hasher):
        assert hasher.hash("pw1") != hasher.hash("pw1")


class TestVerify:
    def test_correct_password(self, hasher):
        assert hasher.verify("pw1", hasher.hash("pw1")) is True

    @pytest.mark.parametrize("candidate", ["pw2", "PW1", "pw1 ", ""])
    def test_wrong_password(self, hasher, candidate):
        assert hasher.verify(candidate, hasher.hash("pw1")) is False

    def test_uses_rounds_embedded_in_hash(self, hasher):
        stronger = PasswordHasher(rounds=2000)
        assert hasher.verify("pw1", stronger.hash("pw1")) is True

    @pytest.mark.parametrize("stored", [
        "",
        None,
        "plaintext",
        "$pbkdf2-sha256$",
        "$pbkdf2-sha256$1000$bad$bad",
        "$2b$12$abcdefghijklmnopqrstuu",
    ])
    def test_malformed_hash_fails_closed(self, hasher, stored):
        assert hasher.verify("pw1", stored) is False

    def test_none_plaintext_fails_closed(self, hasher):
        assert hasher.verify(None, hasher.hash("pw1")) is False

    def test_dummy_verify_never_succeeds(self, hasher):
        assert hasher.dummy_verify("anything") is False
        assert hasher.dummy_verify("") is False
