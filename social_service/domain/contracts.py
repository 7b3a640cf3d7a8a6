"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(slots=True)
class RegisterAccountInput:
    """Validated inputs required to register an account."""

    email: str
    username: str
    password: str


@dataclass(slots=True)
class CreateAccountInput:
    """Row values handed to the credential store for a new account."""

    email: str
    username: str
    password_hash: str


@dataclass(slots=True)
class UpdateAccountInput:
    """Sparse patch for the mutable parts of an account; ``None`` means unchanged."""

    password: str | None = None
    bio: str | None = None
    image: str | None = None

    def provided(self) -> dict[str, str]:
        """Return only the fields the caller actually set."""
        return {name: value for name, value in asdict(self).items() if value is not None}


@dataclass(slots=True)
class ProfileView:
    """Profile of an account as seen by a particular (possibly anonymous) viewer."""

    username: str
    bio: str
    image: str
    following: bool
