"""Account service orchestrating credential storage, hashing, and token issuance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .account import Account, Viewer
from .contracts import CreateAccountInput, RegisterAccountInput, UpdateAccountInput
from .errors import AuthenticationFailed, NotFoundError, ValidationFailed
from ..repository import AccountRepository
from ..security.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from ..security.tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthenticatedAccount:
    """An account paired with the bearer token the client should keep using."""

    account: Account
    token: str


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"password must be at most {MAX_PASSWORD_BYTES} bytes")


class AccountService:
    """Registration, login and self-service account workflows."""

    def __init__(
        self,
        repository: AccountRepository,
        tokens: TokenService,
        hasher: PasswordHasher,
    ) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._repository = repository
        self._tokens = tokens
        self._hasher = hasher

    def register(self, payload: RegisterAccountInput) -> AuthenticatedAccount:
        """Create an account and mint its first token.

        Raises ``ConflictError`` when the email or username is already in use.
        """
        _check_password_length(payload.password)
        account = self._repository.create_account(
            CreateAccountInput(
                email=payload.email,
                username=payload.username,
                password_hash=self._hasher.hash(payload.password),
            )
        )
        logger.info("registered account %s", account.account_id)
        return AuthenticatedAccount(account=account, token=self._tokens.issue(account.account_id))

    def login(self, email: str, password: str) -> AuthenticatedAccount:
        """Exchange credentials for a fresh token.

        Unknown email and wrong password fail identically.
        """
        account = self._repository.find_by_email(email)
        stored_hash = account.password_hash if account else None
        if not self._hasher.verify(password, stored_hash) or account is None:
            raise AuthenticationFailed("invalid email or password")
        return AuthenticatedAccount(account=account, token=self._tokens.issue(account.account_id))

    def current(self, viewer: Viewer) -> AuthenticatedAccount:
        """Return the caller's own account under the token they presented."""
        account = self._repository.get_account(viewer.account_id)
        if account is None:
            raise NotFoundError("user not found")
        return AuthenticatedAccount(account=account, token=viewer.token)

    def update(self, viewer: Viewer, patch: UpdateAccountInput) -> AuthenticatedAccount:
        """Apply a sparse patch to the caller's account; the token is not reissued."""
        fields = patch.provided()
        if not fields:
            raise ValidationFailed("At least one field must be provided")

        changes: dict[str, str] = {}
        if "password" in fields:
            _check_password_length(fields["password"])
            changes["password_hash"] = self._hasher.hash(fields["password"])
        for name in ("bio", "image"):
            if name in fields:
                changes[name] = fields[name]

        account = self._repository.update_account(viewer.account_id, changes)
        if account is None:
            raise NotFoundError("user not found")
        logger.info("updated account %s fields=%s", account.account_id, sorted(fields))
        return AuthenticatedAccount(account=account, token=viewer.token)
