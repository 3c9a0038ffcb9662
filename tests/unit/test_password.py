# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing utilities.

Tests the PasswordHasher class and convenience functions.
"""

import pytest

from school_cms.domains.auth.password import (
    PasswordHasher,
    hash_password,
    verify_password,
)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Low-cost hasher to keep the suite fast."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_password_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hasher.hash("test_password_123")

        assert hashed.startswith("$2b$04$")
        assert len(hashed) == 60

    def test_hash_produces_different_hashes_for_same_password(
        self,
        hasher: PasswordHasher,
    ) -> None:
        """Salted hashes differ for the same input."""
        assert hasher.hash("secret123") != hasher.hash("secret123")

    def test_verify_correct_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct_password")

        assert hasher.verify("correct_password", hashed) is True

    def test_verify_incorrect_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct_password")

        assert hasher.verify("wrong_password", hashed) is False

    def test_hash_empty_password_raises(self, hasher: PasswordHasher) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            hasher.hash("")

    @pytest.mark.parametrize(
        ("password", "password_hash"),
        [("", "$2b$04$abc"), ("secret", ""), ("secret", "not-a-bcrypt-hash")],
    )
    def test_verify_rejects_missing_or_malformed_input(
        self,
        hasher: PasswordHasher,
        password: str,
        password_hash: str,
    ) -> None:
        assert hasher.verify(password, password_hash) is False

    def test_needs_rehash_when_cost_is_lower(self) -> None:
        weak = PasswordHasher(rounds=4).hash("secret123")

        assert PasswordHasher(rounds=5).needs_rehash(weak) is True
        assert PasswordHasher(rounds=4).needs_rehash(weak) is False

    def test_needs_rehash_for_unknown_format(self, hasher: PasswordHasher) -> None:
        assert hasher.needs_rehash("plaintext") is True
        assert hasher.needs_rehash("") is False

    def test_default_rounds(self) -> None:
        assert PasswordHasher().rounds == 12


class TestConvenienceFunctions:
    """Tests for module-level helpers."""

    def test_hash_and_verify_roundtrip(self) -> None:
        hashed = hash_password("admin123456")

        assert verify_password("admin123456", hashed) is True
        assert verify_password("admin12345", hashed) is False
