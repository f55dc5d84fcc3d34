"""Inbound call abstraction.

The handshake reads inbound parameters, redirects the user agent and attaches
the authenticated principal. ``ApplicationCall`` is that surface;
``StarletteCall`` binds it to a Starlette request.
"""

from __future__ import annotations

from typing import Any, Protocol

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from oauth1_login.parameters import Parameters, ParametersBuilder


class ApplicationCall(Protocol):
    """What the handshake needs from the framework serving the call."""

    @property
    def parameters(self) -> Parameters:
        ...

    async def redirect(self, url: str) -> None:
        ...

    def attach_principal(self, principal: Any) -> None:
        ...


class StarletteCall:
    """``ApplicationCall`` over a Starlette ``Request``.

    The redirect is recorded as ``response`` for the endpoint to return and
    the principal is stored on ``request.state.principal``.
    """

    def __init__(self, request: Request):
        self.request = request
        self.response: Response | None = None
        self._parameters: Parameters | None = None

    @property
    def parameters(self) -> Parameters:
        if self._parameters is None:
            builder = ParametersBuilder()
            for name, value in self.request.query_params.multi_items():
                builder.append(name, value)
            self._parameters = builder.build()
        return self._parameters

    async def redirect(self, url: str) -> None:
        self.response = RedirectResponse(url=url, status_code=302)

    def attach_principal(self, principal: Any) -> None:
        self.request.state.principal = principal

    @property
    def principal(self) -> Any:
        return getattr(self.request.state, "principal", None)
