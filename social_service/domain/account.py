from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user."""

    account_id: str
    email: str
    username: str
    password_hash: str = field(repr=False)
    created_at: datetime
    updated_at: datetime
    bio: str = ""
    image: str = ""


@dataclass(slots=True)
class FollowRecord:
    """Directed follow edge: ``follower_id`` follows ``followed_id``."""

    follow_id: str
    follower_id: str
    followed_id: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class Viewer:
    """Identity resolved for the current request from a validated token."""

    account_id: str
    token: str = field(repr=False)
