"""Exceptions raised by the OAuth 1.0a login flow."""

from __future__ import annotations


class OAuth1aError(Exception):
    """Base class for all oauth1-login errors."""


class ConfigurationError(OAuth1aError, ValueError):
    """Raised when incompatible objects are combined.

    Concatenating a case-sensitive and a case-insensitive Parameters
    store is the main source of this error.
    """


class BuilderMisuseError(OAuth1aError, RuntimeError):
    """Raised when a ParametersBuilder is used after it has been built."""


class TransportError(OAuth1aError, OSError):
    """An outbound call to the identity provider failed.

    Carries the HTTP status code (None for network failures) and the raw
    response body so callers can log what the provider actually said.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProtocolViolation(TransportError):
    """The provider answered 200 but the payload breaks the OAuth 1.0a contract."""
