from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from social_service.api import routes
from social_service.api.errors import register_exception_handlers
from social_service.domain.account import Account, FollowRecord
from social_service.domain.contracts import CreateAccountInput
from social_service.domain.errors import ConflictError
from social_service.domain.profiles import ProfileService
from social_service.domain.service import AccountService
from social_service.security.access import AccessPolicy
from social_service.security.passwords import PasswordHasher
from social_service.security.tokens import TokenService


class FakeAccountRepository:
    """In-memory repository mimicking the Postgres unique constraints."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}

    def create_account(self, payload: CreateAccountInput) -> Account:
        for account in self._accounts.values():
            if account.email == payload.email or account.username == payload.username:
                raise ConflictError("email or username already taken")
        now = datetime.now(timezone.utc)
        account = Account(
            account_id=str(uuid.uuid4()),
            email=payload.email,
            username=payload.username,
            password_hash=payload.password_hash,
            created_at=now,
            updated_at=now,
        )
        self._accounts[account.account_id] = account
        return account

    def get_account(self, account_id: str) -> Account | None:
        return self._accounts.get(account_id)

    def find_by_email(self, email: str) -> Account | None:
        return next((a for a in self._accounts.values() if a.email == email), None)

    def find_by_username(self, username: str) -> Account | None:
        return next((a for a in self._accounts.values() if a.username == username), None)

    def update_account(self, account_id: str, changes: dict[str, Any]) -> Account | None:
        account = self._accounts.get(account_id)
        if account is None:
            return None
        for column, value in changes.items():
            setattr(account, column, value)
        account.updated_at = datetime.now(timezone.utc)
        return account


class FakeFollowRepository:
    """In-memory follow edges keyed by (follower, followed)."""

    def __init__(self) -> None:
        self.edges: dict[tuple[str, str], FollowRecord] = {}
        self.lookups = 0
        self.lookup_error: Exception | None = None

    def create_follow(self, follower_id: str, followed_id: str) -> FollowRecord:
        key = (follower_id, followed_id)
        if key in self.edges:
            raise ConflictError("already following")
        now = datetime.now(timezone.utc)
        record = FollowRecord(
            follow_id=str(uuid.uuid4()),
            follower_id=follower_id,
            followed_id=followed_id,
            created_at=now,
            updated_at=now,
        )
        self.edges[key] = record
        return record

    def delete_follow(self, follower_id: str, followed_id: str) -> bool:
        return self.edges.pop((follower_id, followed_id), None) is not None

    def follow_exists(self, follower_id: str, followed_id: str) -> bool:
        self.lookups += 1
        if self.lookup_error is not None:
            raise self.lookup_error
        return (follower_id, followed_id) in self.edges


@pytest.fixture
def token_service() -> TokenService:
    """A token service with a secret unique to the test."""
    return TokenService(f"test-secret-{uuid.uuid4()}")


@pytest.fixture
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def follows() -> FakeFollowRepository:
    return FakeFollowRepository()


@pytest.fixture
def account_service(accounts, token_service) -> AccountService:
    return AccountService(accounts, token_service, PasswordHasher(rounds=4))


@pytest.fixture
def profile_service(accounts, follows) -> ProfileService:
    return ProfileService(accounts, follows)


@pytest.fixture
def api_client(token_service, account_service, profile_service):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.state.access_policy = AccessPolicy(token_service)
    app.state.account_service = account_service
    app.state.profile_service = profile_service

    with TestClient(app) as client:
        yield client
