"""Database repositories for accounts and follow edges."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, FollowRecord
from .domain.contracts import CreateAccountInput
from .domain.errors import ConflictError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id UUID PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    bio TEXT NOT NULL DEFAULT '',
    image TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS follows (
    follow_id UUID PRIMARY KEY,
    follower_id UUID NOT NULL REFERENCES accounts (account_id),
    followed_id UUID NOT NULL REFERENCES accounts (account_id),
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    CONSTRAINT follows_pair_key UNIQUE (follower_id, followed_id),
    CONSTRAINT follows_no_self CHECK (follower_id <> followed_id)
);

CREATE INDEX IF NOT EXISTS follows_followed_idx ON follows (followed_id);
"""

_ACCOUNT_COLUMNS = "account_id, email, username, password_hash, bio, image, created_at, updated_at"
_FOLLOW_COLUMNS = "follow_id, follower_id, followed_id, created_at, updated_at"


def bootstrap_schema(pool: ConnectionPool) -> None:
    """Create the tables used by the service when they do not exist yet."""
    with pool.connection() as conn:
        conn.execute(SCHEMA)
        conn.commit()
    logger.info("database schema ready")


class AccountRepository:
    """Postgres-backed credential store."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Insert a new account; a taken email or username raises ``ConflictError``."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                try:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, email, username, password_hash, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (account_id, payload.email, payload.username, payload.password_hash, now, now),
                    )
                except errors.UniqueViolation as exc:
                    conn.rollback()
                    raise ConflictError("email or username already taken") from exc
                row = cur.fetchone()
                conn.commit()
        return self._map_account(row)

    def get_account(self, account_id: str) -> Account | None:
        """Fetch an account by id or return ``None``."""
        return self._fetch_one("account_id = %s", account_id)

    def find_by_email(self, email: str) -> Account | None:
        return self._fetch_one("email = %s", email)

    def find_by_username(self, username: str) -> Account | None:
        return self._fetch_one("username = %s", username)

    def update_account(self, account_id: str, changes: dict[str, Any]) -> Account | None:
        """Apply column changes and return the stored row, or ``None`` if the account is gone."""
        allowed = {"password_hash", "bio", "image"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"cannot update columns: {sorted(unknown)}")

        assignments = [f"{column} = %s" for column in changes]
        params: list[Any] = list(changes.values())
        assignments.append("updated_at = %s")
        params.append(datetime.now(timezone.utc))
        params.append(account_id)

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    UPDATE accounts
                    SET {", ".join(assignments)}
                    WHERE account_id = %s
                    RETURNING {_ACCOUNT_COLUMNS}
                    """,
                    params,
                )
                row = cur.fetchone()
                conn.commit()
        if not row:
            return None
        return self._map_account(row)

    def _fetch_one(self, where_sql: str, value: str) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE {where_sql}",
                    (value,),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_account(row)

    def _map_account(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            email=row[1],
            username=row[2],
            password_hash=row[3],
            bio=row[4],
            image=row[5],
            created_at=row[6],
            updated_at=row[7],
        )


class FollowRepository:
    """Postgres-backed store of directed follow edges."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create_follow(self, follower_id: str, followed_id: str) -> FollowRecord:
        """Insert the edge ``follower_id -> followed_id``.

        The pair is unique at the database level; a second insert, including
        one racing in from a concurrent request, raises ``ConflictError``.
        """
        follow_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                try:
                    cur.execute(
                        f"""
                        INSERT INTO follows (follow_id, follower_id, followed_id, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s)
                        RETURNING {_FOLLOW_COLUMNS}
                        """,
                        (follow_id, follower_id, followed_id, now, now),
                    )
                except errors.UniqueViolation as exc:
                    conn.rollback()
                    raise ConflictError("already following") from exc
                row = cur.fetchone()
                conn.commit()
        return self._map_follow(row)

    def delete_follow(self, follower_id: str, followed_id: str) -> bool:
        """Remove the edge if present; returns whether a row was deleted."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM follows
                    WHERE follower_id = %s AND followed_id = %s
                    """,
                    (follower_id, followed_id),
                )
                deleted = cur.rowcount > 0
                conn.commit()
        return deleted

    def follow_exists(self, follower_id: str, followed_id: str) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT 1 FROM follows
                    WHERE follower_id = %s AND followed_id = %s
                    """,
                    (follower_id, followed_id),
                )
                return cur.fetchone() is not None

    def _map_follow(self, row: tuple) -> FollowRecord:
        return FollowRecord(
            follow_id=str(row[0]),
            follower_id=str(row[1]),
            followed_id=str(row[2]),
            created_at=row[3],
            updated_at=row[4],
        )
