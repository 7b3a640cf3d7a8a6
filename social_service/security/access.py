"""Per-route authentication policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet

from ..domain.account import Viewer
from .tokens import TokenService

logger = logging.getLogger(__name__)

# (method, route template) pairs reachable without a token.
DEFAULT_ALLOWLIST: frozenset[tuple[str, str]] = frozenset(
    {
        ("GET", "/api"),
        ("GET", "/api/profiles/{username}"),
        ("POST", "/api/users"),
        ("POST", "/api/users/login"),
    }
)

_AUTH_SCHEMES = ("bearer", "token")


class Outcome(str, Enum):
    rejected = "rejected"
    anonymous = "anonymous"
    identified = "identified"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Result of evaluating a request against the policy."""

    outcome: Outcome
    viewer: Viewer | None = None
    reason: str | None = None


def extract_token(authorization: str | None) -> str | None:
    """Pull the credential out of an ``Authorization`` header value.

    Accepts ``Bearer <jwt>``, ``Token <jwt>`` or the bare token. Blank values
    count as no credential at all.
    """
    if authorization is None:
        return None
    value = authorization.strip()
    if not value:
        return None
    scheme, _, rest = value.partition(" ")
    if rest and scheme.lower() in _AUTH_SCHEMES:
        return rest.strip() or None
    return value


class AccessPolicy:
    """Decide whether a request proceeds anonymously, as a viewer, or not at all."""

    def __init__(
        self,
        tokens: TokenService,
        allowlist: AbstractSet[tuple[str, str]] = DEFAULT_ALLOWLIST,
    ) -> None:
        self._tokens = tokens
        self._allowlist = frozenset((method.upper(), route) for method, route in allowlist)

    def is_public(self, method: str, route_template: str) -> bool:
        return (method.upper(), route_template) in self._allowlist

    def evaluate(self, method: str, route_template: str, token: str | None) -> AccessDecision:
        """Apply the policy to one request.

        A supplied token must validate, even on public routes; a bad credential
        is never downgraded to anonymous access.
        """
        if token is not None:
            account_id = self._tokens.validate(token)
            if account_id is None:
                logger.info("rejected invalid token for %s %s", method, route_template)
                return AccessDecision(Outcome.rejected, reason="authentication required")
            return AccessDecision(Outcome.identified, viewer=Viewer(account_id=account_id, token=token))

        if self.is_public(method, route_template):
            return AccessDecision(Outcome.anonymous)

        logger.info("rejected anonymous request for %s %s", method, route_template)
        return AccessDecision(Outcome.rejected, reason="authentication required")
