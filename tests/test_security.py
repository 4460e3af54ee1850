"""Tests for password hashing and session tokens."""

import hashlib
import re

import pytest

from educrm.utils.security import PasswordHasher, generate_session_token, hash_token


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(cost=10)


class TestPasswordHashing:
    """Tests for basic password hashing operations."""

    def test_hash_and_verify(self, hasher):
        """Test that a hash verifies only against its own password."""
        hashed = hasher.hash("hunter2")
        assert hashed != "hunter2"
        assert hasher.verify("hunter2", hashed)
        assert not hasher.verify("hunter3", hashed)

    def test_configured_cost_is_used(self, hasher):
        hashed = hasher.hash("hunter2")
        assert hashed.startswith("$2b$10$")

    def test_hashes_are_salted(self, hasher):
        assert hasher.hash("hunter2") != hasher.hash("hunter2")

    def test_malformed_hash_is_a_mismatch(self, hasher):
        assert not hasher.verify("hunter2", "not-a-bcrypt-hash")

    async def test_async_variants(self, hasher):
        hashed = await hasher.hash_async("hunter2")
        assert await hasher.verify_async("hunter2", hashed)
        assert not await hasher.verify_async("wrong", hashed)


class TestSessionTokens:
    """Tests for opaque bearer tokens."""

    def test_token_is_urlsafe_and_long(self):
        token = generate_session_token()
        assert len(token) >= 22
        assert re.fullmatch(r"[A-Za-z0-9_-]+", token)

    def test_tokens_are_unique(self):
        assert len({generate_session_token() for _ in range(100)}) == 100

    def test_hash_token_is_sha256_hex(self):
        token = generate_session_token()
        digest = hash_token(token)
        assert digest == hashlib.sha256(token.encode()).hexdigest()
        assert len(digest) == 64
        assert token not in digest
