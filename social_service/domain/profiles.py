"""Viewer-relative profile rendering and the follow/unfollow workflows."""

from __future__ import annotations

import logging

from .account import Account, Viewer
from .contracts import ProfileView
from .errors import NotFoundError, ValidationFailed
from ..repository import AccountRepository, FollowRepository

logger = logging.getLogger(__name__)


def render_profile(account: Account, viewer: Viewer | None, follows: FollowRepository) -> ProfileView:
    """Build the profile of ``account`` as ``viewer`` sees it.

    Anonymous viewers never trigger a relationship lookup. For identified
    viewers a missing edge means ``following=False``; any store error
    propagates instead of being read as "not following".
    """
    following = False
    if viewer is not None:
        following = follows.follow_exists(viewer.account_id, account.account_id)
    return ProfileView(
        username=account.username,
        bio=account.bio,
        image=account.image,
        following=following,
    )


class ProfileService:
    """Profile reads and follow-graph mutations keyed by username."""

    def __init__(self, accounts: AccountRepository, follows: FollowRepository) -> None:
        self._accounts = accounts
        self._follows = follows

    def get_profile(self, username: str, viewer: Viewer | None) -> ProfileView:
        return render_profile(self._target(username), viewer, self._follows)

    def follow(self, username: str, viewer: Viewer) -> ProfileView:
        """Make ``viewer`` follow ``username``; a repeated follow raises ``ConflictError``."""
        target = self._target(username)
        if target.account_id == viewer.account_id:
            raise ValidationFailed("cannot follow yourself")
        self._follows.create_follow(viewer.account_id, target.account_id)
        logger.info("account %s followed %s", viewer.account_id, target.account_id)
        return render_profile(target, viewer, self._follows)

    def unfollow(self, username: str, viewer: Viewer) -> ProfileView:
        """Remove the edge if it exists; unfollowing twice is not an error."""
        target = self._target(username)
        removed = self._follows.delete_follow(viewer.account_id, target.account_id)
        logger.debug(
            "account %s unfollow %s removed=%s", viewer.account_id, target.account_id, removed
        )
        return render_profile(target, viewer, self._follows)

    def _target(self, username: str) -> Account:
        account = self._accounts.find_by_username(username)
        if account is None:
            raise NotFoundError("user not found")
        return account
