"""FastAPI dependencies that apply the access policy to each request."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from ..domain.account import Viewer
from ..domain.errors import AuthenticationFailed
from ..security.access import AccessPolicy, Outcome, extract_token


def get_access_policy(request: Request) -> AccessPolicy:
    """Resolve the `AccessPolicy` stored on the FastAPI application state."""
    policy: AccessPolicy = request.app.state.access_policy
    return policy


def resolve_viewer(
    request: Request,
    authorization: str | None = Header(default=None),
    policy: AccessPolicy = Depends(get_access_policy),
) -> Viewer | None:
    """Gate the request and return the viewer, or ``None`` for anonymous access.

    The policy is keyed by the matched route template, so
    ``/api/profiles/alice`` is looked up as ``/api/profiles/{username}``.
    """
    route = request.scope.get("route")
    template = getattr(route, "path", request.url.path)
    decision = policy.evaluate(request.method, template, extract_token(authorization))
    if decision.outcome is Outcome.rejected:
        raise AuthenticationFailed(decision.reason or "authentication required")
    return decision.viewer


def require_viewer(viewer: Viewer | None = Depends(resolve_viewer)) -> Viewer:
    """Like :func:`resolve_viewer` but for handlers that only make sense when identified."""
    if viewer is None:
        raise AuthenticationFailed("authentication required")
    return viewer
