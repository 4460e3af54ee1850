"""Password hashing and session token utilities."""

import hashlib
import secrets

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

# 32 random bytes -> 43 base64url characters (256 bits of entropy)
TOKEN_BYTES = 32


class PasswordHasher:
    """bcrypt hashing with a configured cost.

    Hashing and verification are CPU-bound; the async variants run them on the
    thread pool so the event loop keeps serving other requests.
    """

    def __init__(self, cost: int = 12):
        self.cost = cost
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=cost)

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash in constant time.

        A malformed hash counts as a mismatch.
        """
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self.verify, plain_password, hashed_password)


def generate_session_token() -> str:
    """Mint an opaque bearer token from the OS CSPRNG, base64url-encoded."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token. Only this digest is ever persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
