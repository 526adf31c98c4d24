"""
auth/passwords.py -- bcrypt password hashing with constant-time verification.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug
detection hashes a password longer than 72 bytes, which bcrypt 4.x+ rejects.
Direct usage has no compatibility shim to go stale.

bcrypt embeds a fresh random salt in every hash, so two hashes of the same
password never match byte-for-byte. checkpw compares in constant time.

72-byte limit: bcrypt only looks at the first 72 bytes and newer releases
raise ValueError beyond that. The registration schema rejects longer
passwords with a 400 before they reach hash().

Layer rule: no imports from api/ or todos/.
"""

from __future__ import annotations

import logging

import bcrypt

from core.errors import HashingError

logger = logging.getLogger("todovault.auth")

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt cost.

    Usage:
        hasher = PasswordHasher(rounds=12)
        hashed = hasher.hash("secret1")
        hasher.verify("secret1", hashed)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Computed once so the first login is not measurably slower than later ones.
        self._dummy_hash = self.hash("todovault_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt hash. Raises HashingError on any internal failure."""
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")
        except (ValueError, TypeError, OSError) as exc:
            logger.error("Password hashing failed: %s", type(exc).__name__)
            raise HashingError("bcrypt.hashpw failed") from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the hash.

        A malformed stored hash or an over-long candidate counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one verification's worth of work against a throwaway hash.

        Called when the email is unknown so response time does not reveal
        which emails are registered.
        """
        self.verify(plain, self._dummy_hash)
