"""HTTP route definitions for the social service."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from ..domain.account import Viewer
from ..domain.contracts import ProfileView, RegisterAccountInput, UpdateAccountInput
from ..domain.profiles import ProfileService
from ..domain.service import AccountService, AuthenticatedAccount
from ..security.passwords import MAX_PASSWORD_BYTES
from .auth import require_viewer, resolve_viewer

logger = logging.getLogger(__name__)

# Every route is gated; public ones are listed in the access policy allowlist.
router = APIRouter(prefix="/api", dependencies=[Depends(resolve_viewer)])


Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _password_fits_bcrypt(value: str | None) -> str | None:
    """bcrypt ignores input past 72 bytes, so longer passwords are refused."""
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterUser(BaseModel):
    email: EmailStr
    username: Username
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str | None) -> str | None:
        return _password_fits_bcrypt(value)


class RegisterRequest(BaseModel):
    """Payload accepted when registering an account."""

    user: RegisterUser


class LoginUser(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    user: LoginUser


class UpdateUser(BaseModel):
    password: str | None = Field(default=None, min_length=1)
    bio: str | None = None
    image: str | None = None

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str | None) -> str | None:
        return _password_fits_bcrypt(value)


class UpdateRequest(BaseModel):
    """Sparse account patch; omitted fields are left untouched."""

    user: UpdateUser


class UserBody(BaseModel):
    email: str
    username: str
    token: str
    bio: str
    image: str

    @classmethod
    def from_domain(cls, result: AuthenticatedAccount) -> "UserBody":
        """Build the response body from an account and its token."""
        account = result.account
        return cls(
            email=account.email,
            username=account.username,
            token=result.token,
            bio=account.bio,
            image=account.image,
        )


class UserResponse(BaseModel):
    user: UserBody


class ProfileBody(BaseModel):
    username: str
    bio: str
    image: str
    following: bool

    @classmethod
    def from_domain(cls, view: ProfileView) -> "ProfileBody":
        return cls(
            username=view.username,
            bio=view.bio,
            image=view.image,
            following=view.following,
        )


class ProfileResponse(BaseModel):
    """Profile envelope returned by every profile endpoint."""

    profile: ProfileBody


def get_account_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_profile_service(request: Request) -> ProfileService:
    service: ProfileService = request.app.state.profile_service
    return service


@router.get("", tags=["health"])
def health() -> str:
    """Return a minimal readiness indicator."""
    return "OK"


@router.post("/users", response_model=UserResponse)
def register(
    payload: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Register an account and return it together with its first token."""
    result = service.register(
        RegisterAccountInput(
            email=payload.user.email,
            username=payload.user.username,
            password=payload.user.password,
        )
    )
    return UserResponse(user=UserBody.from_domain(result))


@router.post("/users/login", response_model=UserResponse)
def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    result = service.login(payload.user.email, payload.user.password)
    return UserResponse(user=UserBody.from_domain(result))


@router.get("/user", response_model=UserResponse)
def current_user(
    viewer: Viewer = Depends(require_viewer),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Return the authenticated caller's account."""
    return UserResponse(user=UserBody.from_domain(service.current(viewer)))


@router.put("/user", response_model=UserResponse)
def update_user(
    payload: UpdateRequest,
    viewer: Viewer = Depends(require_viewer),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Patch the caller's account and echo it back under the same token."""
    patch = UpdateAccountInput(
        password=payload.user.password,
        bio=payload.user.bio,
        image=payload.user.image,
    )
    return UserResponse(user=UserBody.from_domain(service.update(viewer, patch)))


@router.get("/profiles/{username}", response_model=ProfileResponse)
def get_profile(
    username: str,
    viewer: Viewer | None = Depends(resolve_viewer),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Return a profile; ``following`` is relative to the caller, false when anonymous."""
    return ProfileResponse(profile=ProfileBody.from_domain(service.get_profile(username, viewer)))


@router.post("/profiles/{username}/follow", response_model=ProfileResponse)
def follow(
    username: str,
    viewer: Viewer = Depends(require_viewer),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return ProfileResponse(profile=ProfileBody.from_domain(service.follow(username, viewer)))


@router.delete("/profiles/{username}/follow", response_model=ProfileResponse)
def unfollow(
    username: str,
    viewer: Viewer = Depends(require_viewer),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return ProfileResponse(profile=ProfileBody.from_domain(service.unfollow(username, viewer)))
