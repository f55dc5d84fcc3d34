"""Middleware that challenges requests without an authenticated principal."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from oauth1_login.auth_header import HttpAuthHeader
from oauth1_login.responses import UnauthorizedResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp

PrincipalLookup = Callable[[Request], "Any | Awaitable[Any]"]


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject requests whose principal cannot be found.

    Principals live in an external store (session, cookie, database); the
    middleware only asks ``principal_lookup`` and answers 401 with the
    configured challenges when it returns None. A found principal is placed
    on ``request.state.principal``.
    """

    def __init__(
        self,
        app: ASGIApp,
        principal_lookup: PrincipalLookup,
        exclude_paths: list[str] | None = None,
        challenges: list[HttpAuthHeader] | None = None,
    ):
        super().__init__(app)
        self.principal_lookup = principal_lookup
        self.exclude_paths = exclude_paths or ["/health"]
        self.challenges = challenges or []

    async def dispatch(self, request: Request, call_next):
        """Look up the principal before passing the request to the app."""
        if any(request.url.path.startswith(p) for p in self.exclude_paths):
            return await call_next(request)

        principal = self.principal_lookup(request)
        if inspect.isawaitable(principal):
            principal = await principal

        if principal is None:
            return UnauthorizedResponse(*self.challenges)

        request.state.principal = principal
        return await call_next(request)
