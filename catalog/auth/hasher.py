"""bcrypt password hashing"""

from __future__ import annotations

from typing import Optional

import bcrypt

from catalog.core.exceptions import HashingError


class PasswordHasher:
    """
    Hash and compare passwords with a fixed bcrypt cost factor.

    Both operations are CPU-bound and block for the duration of the
    computation; async callers should run them in a worker thread.
    """

    def __init__(self, rounds: int):
        self.rounds = rounds

    def hash(self, plaintext: str, rounds: Optional[int] = None) -> str:
        """Return a bcrypt digest of ``plaintext``."""
        if not isinstance(plaintext, str) or not plaintext:
            raise HashingError("Password must be a non-empty string")
        try:
            salt = bcrypt.gensalt(rounds=rounds or self.rounds)
            return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")
        except ValueError as e:
            raise HashingError(f"Could not hash password: {e}") from e

    def compare(self, plaintext: str, digest: str) -> bool:
        """True if ``plaintext`` produces ``digest``. A malformed digest is an error, not a mismatch."""
        if not isinstance(plaintext, str) or not isinstance(digest, str) or not digest:
            raise HashingError("Password and digest must be strings")
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except ValueError as e:
            raise HashingError("Stored password digest is malformed") from e
