"""Bodiless status responses, including the 401 authentication challenge."""

from __future__ import annotations

from starlette.responses import Response

from oauth1_login.auth_header import HttpAuthHeader
from oauth1_login.http import HttpHeaders
from oauth1_login.parameters import EMPTY, Parameters, parameters_of


def unauthorized_headers(*challenges: HttpAuthHeader) -> Parameters:
    """Case-insensitive headers for a 401 carrying ``challenges``."""
    if not challenges:
        return EMPTY
    return parameters_of(
        HttpHeaders.WWW_AUTHENTICATE,
        [", ".join(challenge.render() for challenge in challenges)],
        case_insensitive_key=True,
    )


def apply_headers(response: Response, headers: Parameters) -> Response:
    """Append every header value from ``headers`` to ``response``."""
    for name, value in headers.flatten_entries():
        response.headers.append(name, value)
    return response


class HttpStatusCodeResponse(Response):
    """Response with a status code and no body."""

    def __init__(self, status_code: int, headers: Parameters = EMPTY):
        super().__init__(content=None, status_code=status_code)
        self.header_parameters = headers
        apply_headers(self, headers)


class UnauthorizedResponse(HttpStatusCodeResponse):
    """``401 Unauthorized`` with a ``WWW-Authenticate`` challenge.

    All challenges are rendered into a single header value joined by
    ``", "``. With no challenges the header is omitted.
    """

    def __init__(self, *challenges: HttpAuthHeader):
        self.challenges = challenges
        super().__init__(status_code=401, headers=unauthorized_headers(*challenges))
