"""OAuth 1.0a HMAC-SHA1 request signing (RFC 5849 section 3.4).

The signature base string is::

    PE(METHOD) & PE(base_url) & PE(normalized parameters)

where the normalized parameters are every ``oauth_*`` header parameter plus
any query/body parameters, each percent-encoded, sorted by name then value,
and joined as ``name=value`` pairs with ``&``. The provider rebuilds the same
string, so the parameter set must match exactly what is sent.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
import urllib.parse
from collections.abc import Iterable
from enum import Enum

from oauth1_login.auth_header import AuthScheme, OAuthParameters, ParameterizedAuthHeader

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

# Header parameters that never take part in the base string.
_EXCLUDED_PARAMETERS = frozenset({OAuthParameters.SIGNATURE, "realm"})


class SigningKeyStrategy(str, Enum):
    """How the HMAC key is derived from the client and token secrets.

    ``CONSUMER_SECRET_ONLY`` signs both legs with ``consumer_secret + "&"``
    and never includes the request token secret. Several providers accept
    this for the access token leg, but RFC 5849 section 3.4.2 asks for the
    token secret too, which is what ``RFC5849`` does.
    """

    CONSUMER_SECRET_ONLY = "consumer_secret_only"
    RFC5849 = "rfc5849"


def percent_encode(value: str) -> str:
    """RFC 3986 percent-encoding: only ``A-Za-z0-9-._~`` stay literal."""
    return urllib.parse.quote(value, safe="~")


def signing_key(
    strategy: SigningKeyStrategy, consumer_secret: str, token_secret: str = ""
) -> str:
    if strategy is SigningKeyStrategy.RFC5849:
        return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    return consumer_secret + "&"


def parameters_string(parameters: Iterable[tuple[str, str]]) -> str:
    """Normalize request parameters (RFC 5849 section 3.4.1.3.2)."""
    encoded = sorted(
        (percent_encode(name), percent_encode(value)) for name, value in parameters
    )
    return "&".join(f"{name}={value}" for name, value in encoded)


def signature_base_string(
    header: ParameterizedAuthHeader,
    method: str,
    base_url: str,
    parameters: Iterable[tuple[str, str]] = (),
) -> str:
    header_parameters = [
        (name, value)
        for name, value in header.parameters
        if name not in _EXCLUDED_PARAMETERS
    ]
    normalized = parameters_string(header_parameters + list(parameters))
    return "&".join(
        percent_encode(part) for part in (method.upper(), base_url, normalized)
    )


def hmac_sha1(text: str, key: str) -> str:
    digest = hmac.new(key.encode("utf-8"), text.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    header: ParameterizedAuthHeader,
    method: str,
    base_url: str,
    key: str,
    parameters: Iterable[tuple[str, str]] = (),
) -> ParameterizedAuthHeader:
    """Return ``header`` with ``oauth_signature`` appended."""
    base_string = signature_base_string(header, method, base_url, parameters)
    return header.with_parameter(OAuthParameters.SIGNATURE, hmac_sha1(base_string, key))


def next_nonce() -> str:
    """Fresh random nonce for a single request attempt."""
    return secrets.token_hex(16)


def timestamp(now: float | None = None) -> str:
    """UTC epoch seconds, truncated, as a decimal string."""
    return str(int(time.time() if now is None else now))


def obtain_request_token_header(
    callback: str,
    consumer_key: str,
    nonce: str,
    timestamp_value: str | None = None,
) -> ParameterizedAuthHeader:
    """Unsigned header for the request token leg."""
    return ParameterizedAuthHeader(
        AuthScheme.OAUTH,
        (
            (OAuthParameters.CALLBACK, callback),
            (OAuthParameters.CONSUMER_KEY, consumer_key),
            (OAuthParameters.NONCE, nonce),
            (OAuthParameters.SIGNATURE_METHOD, SIGNATURE_METHOD),
            (OAuthParameters.TIMESTAMP, timestamp_value or timestamp()),
            (OAuthParameters.VERSION, OAUTH_VERSION),
        ),
    )


def upgrade_request_token_header(
    consumer_key: str,
    token: str,
    nonce: str,
    timestamp_value: str | None = None,
) -> ParameterizedAuthHeader:
    """Unsigned header for the access token leg."""
    return ParameterizedAuthHeader(
        AuthScheme.OAUTH,
        (
            (OAuthParameters.CONSUMER_KEY, consumer_key),
            (OAuthParameters.TOKEN, token),
            (OAuthParameters.NONCE, nonce),
            (OAuthParameters.SIGNATURE_METHOD, SIGNATURE_METHOD),
            (OAuthParameters.TIMESTAMP, timestamp_value or timestamp()),
            (OAuthParameters.VERSION, OAUTH_VERSION),
        ),
    )
