"""One-way salted password hashing backed by Argon2."""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError


class CredentialHasher:
    """Hash and compare plaintext passwords without ever exposing the plaintext."""

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._hasher = hasher or PasswordHasher()
        # Verified against when an email is unknown so both login failures cost the same.
        self._dummy_hash = self._hasher.hash("securedash-dummy-password")

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """Return ``True`` when ``plaintext`` matches the stored hash."""
        try:
            return self._hasher.verify(password_hash, plaintext)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one verification on a throwaway hash."""
        self.verify(plaintext, self._dummy_hash)
