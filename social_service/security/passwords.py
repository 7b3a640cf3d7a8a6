"""Salted bcrypt password hashing."""

from __future__ import annotations

import bcrypt

# bcrypt only considers the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt work factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Compared against when an account does not exist so both login paths cost the same.
        self._dummy_hash = self.hash("not-a-real-password")

    def hash(self, password: str) -> str:
        """Return the bcrypt hash of ``password`` as text."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str | None) -> bool:
        """Check ``password`` against ``hashed``; ``None`` burns a comparison and fails."""
        candidate = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
        if hashed is None:
            bcrypt.checkpw(candidate, self._dummy_hash.encode("utf-8"))
            return False
        return bcrypt.checkpw(candidate, hashed.encode("utf-8"))
