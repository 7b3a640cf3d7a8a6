"""Issuing and validating the bearer JWTs that identify an account."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class TokenService:
    """Stateless HS256 token minting keyed by a process-wide secret.

    The secret is supplied once at construction so tests can run several
    services side by side with different keys.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._ttl = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(self, account_id: str) -> str:
        """Create a signed JWT for ``account_id``.

        Parameters
        ----------
        account_id:
            Account identifier to embed in the token `sub` claim.

        Returns
        -------
        str
            The encoded token, valid for ``ttl_seconds`` from now.
        """

        now = int(self._clock())
        payload: dict[str, Any] = {
            "sub": account_id,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def validate(self, token: str) -> str | None:
        """Return the account id carried by ``token`` or ``None`` if it is unusable.

        Malformed tokens, bad signatures, elapsed expiry and missing or
        non-UUID subjects all produce the same ``None`` result.
        """

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={
                    "require": ["sub", "iat", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as exc:
            logger.debug("token rejected: %s", type(exc).__name__)
            return None

        # Time checks run against the service's own clock, not the wall clock.
        now = self._clock()
        try:
            issued_at = float(claims["iat"])
            expires_at = float(claims["exp"])
        except (TypeError, ValueError):
            logger.debug("token rejected: non-numeric time claims")
            return None
        if expires_at <= now or issued_at > now:
            logger.debug("token rejected: outside validity window")
            return None

        subject = claims.get("sub")
        try:
            return str(uuid.UUID(str(subject)))
        except ValueError:
            logger.debug("token rejected: subject is not an account id")
            return None
