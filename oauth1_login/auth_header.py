"""Authorization and WWW-Authenticate header values.

Two shapes exist on the wire:

- **Single**: ``<scheme> <blob>``, e.g. ``Bearer abc123``
- **Parameterized**: ``<scheme> name=value, name=value``, used by OAuth 1.0a
  ``Authorization`` headers and by most challenges
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass, field
from enum import Enum


class OAuthParameters:
    """Protocol parameter names from RFC 5849."""

    CALLBACK = "oauth_callback"
    CALLBACK_CONFIRMED = "oauth_callback_confirmed"
    CONSUMER_KEY = "oauth_consumer_key"
    NONCE = "oauth_nonce"
    SIGNATURE = "oauth_signature"
    SIGNATURE_METHOD = "oauth_signature_method"
    TIMESTAMP = "oauth_timestamp"
    TOKEN = "oauth_token"
    TOKEN_SECRET = "oauth_token_secret"
    VERIFIER = "oauth_verifier"
    VERSION = "oauth_version"


class AuthScheme:
    BASIC = "Basic"
    BEARER = "Bearer"
    DIGEST = "Digest"
    OAUTH = "OAuth"


class HeaderValueEncoding(Enum):
    QUOTED_WHEN_REQUIRED = "quoted_when_required"
    QUOTED_ALWAYS = "quoted_always"
    URI_ENCODE = "uri_encode"


_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_PARAM_RE = re.compile(
    r'\s*([^=,\s]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^,]*)\s*(?:,|$)'
)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _encode_value(value: str, encoding: HeaderValueEncoding) -> str:
    if encoding is HeaderValueEncoding.QUOTED_ALWAYS:
        return _quote(value)
    if encoding is HeaderValueEncoding.URI_ENCODE:
        # RFC 5849 section 3.5.1: percent-encoded and always quoted.
        return f'"{urllib.parse.quote(value, safe="~")}"'
    if value and _TOKEN_RE.match(value):
        return value
    return _quote(value)


class HttpAuthHeader:
    """Base for rendered authentication header values."""

    auth_scheme: str

    def render(
        self, encoding: HeaderValueEncoding = HeaderValueEncoding.QUOTED_WHEN_REQUIRED
    ) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class SingleAuthHeader(HttpAuthHeader):
    """``<scheme> <blob>`` header such as ``Bearer <token>``."""

    auth_scheme: str
    blob: str

    def render(
        self, encoding: HeaderValueEncoding = HeaderValueEncoding.QUOTED_WHEN_REQUIRED
    ) -> str:
        return f"{self.auth_scheme} {self.blob}"


@dataclass(frozen=True)
class ParameterizedAuthHeader(HttpAuthHeader):
    """``<scheme> name=value, ...`` header with ordered parameters.

    Parameters are kept as an ordered tuple of pairs because OAuth signing
    and rendering both depend on the exact set the client produced.
    """

    auth_scheme: str
    parameters: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    def parameter(self, name: str) -> str | None:
        for key, value in self.parameters:
            if key == name:
                return value
        return None

    def with_parameter(self, name: str, value: str) -> ParameterizedAuthHeader:
        return ParameterizedAuthHeader(
            self.auth_scheme, self.parameters + ((name, value),)
        )

    def render(
        self, encoding: HeaderValueEncoding = HeaderValueEncoding.QUOTED_WHEN_REQUIRED
    ) -> str:
        if not self.parameters:
            return self.auth_scheme
        rendered = ", ".join(
            f"{name}={_encode_value(value, encoding)}" for name, value in self.parameters
        )
        return f"{self.auth_scheme} {rendered}"


def basic_challenge(realm: str) -> ParameterizedAuthHeader:
    return ParameterizedAuthHeader(AuthScheme.BASIC, (("realm", realm),))


def oauth_challenge(realm: str) -> ParameterizedAuthHeader:
    return ParameterizedAuthHeader(AuthScheme.OAUTH, (("realm", realm),))


def bearer_challenge(realm: str | None = None, **params: str) -> ParameterizedAuthHeader:
    """Bearer challenge (RFC 6750); extra keyword params follow ``realm``."""
    pairs: list[tuple[str, str]] = []
    if realm is not None:
        pairs.append(("realm", realm))
    pairs.extend(params.items())
    return ParameterizedAuthHeader(AuthScheme.BEARER, tuple(pairs))


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = re.sub(r"\\(.)", r"\1", value[1:-1])
    return urllib.parse.unquote(value)


def parse_auth_header(header_value: str | None) -> HttpAuthHeader | None:
    """Parse an ``Authorization`` or challenge header value.

    Returns None for a blank value. A value without ``name=value`` pairs
    after the scheme is returned as a ``SingleAuthHeader``.
    """
    if not header_value or not header_value.strip():
        return None

    scheme, _, rest = header_value.strip().partition(" ")
    rest = rest.strip()
    if not rest:
        return ParameterizedAuthHeader(scheme)

    # token68 blobs (base64 etc.) may end in '=' padding but have no commas
    if "=" not in rest.rstrip("=") or ("," not in rest and rest.endswith("=")):
        return SingleAuthHeader(scheme, rest)

    pairs = [
        (name, _unquote(value)) for name, value in _PARAM_RE.findall(rest)
    ]
    if not pairs:
        return SingleAuthHeader(scheme, rest)
    return ParameterizedAuthHeader(scheme, tuple(pairs))
