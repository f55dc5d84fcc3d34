"""HTTP names and URL-encoding helpers used by the handshake."""

from __future__ import annotations

import urllib.parse
from collections.abc import Iterable

from oauth1_login.parameters import Parameters, ParametersBuilder


class HttpHeaders:
    ACCEPT = "Accept"
    AUTHORIZATION = "Authorization"
    CONTENT_TYPE = "Content-Type"
    LOCATION = "Location"
    WWW_AUTHENTICATE = "WWW-Authenticate"


class HttpMethod:
    GET = "GET"
    POST = "POST"


class ContentType:
    ANY = "*/*"
    FORM_URL_ENCODED = "application/x-www-form-urlencoded"


def encode_url_query_component(value: str) -> str:
    """Encode a single query component (spaces become ``+``)."""
    return urllib.parse.quote_plus(value, safe="")


def form_url_encode(parameters: Parameters | Iterable[tuple[str, str]]) -> str:
    """Render pairs as an ``application/x-www-form-urlencoded`` string."""
    if isinstance(parameters, Parameters):
        pairs = parameters.flatten_entries()
    else:
        pairs = list(parameters)
    return "&".join(
        f"{encode_url_query_component(name)}={encode_url_query_component(value)}"
        for name, value in pairs
    )


def parse_url_encoded_parameters(text: str, limit: int = 1000) -> Parameters:
    """Parse a form-encoded body or query string into ``Parameters``.

    Order and repeated names are preserved, blank values are kept and at
    most ``limit`` pairs are read.
    """
    builder = ParametersBuilder()
    # Cut before parsing so oversized bodies are never fully decoded.
    head = "&".join(text.strip().split("&", limit)[:limit])
    for name, value in urllib.parse.parse_qsl(head, keep_blank_values=True):
        builder.append(name, value)
    return builder.build()


def append_url_parameters(url: str, encoded: str) -> str:
    """Append an already encoded query string to ``url``."""
    if not encoded:
        return url
    if "?" not in url:
        return f"{url}?{encoded}"
    if url.endswith(("?", "&")):
        return f"{url}{encoded}"
    return f"{url}&{encoded}"
