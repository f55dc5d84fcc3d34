"""oauth1-login - OAuth 1.0a three-legged login for Starlette applications."""

from oauth1_login.auth_header import (
    HeaderValueEncoding,
    HttpAuthHeader,
    ParameterizedAuthHeader,
    SingleAuthHeader,
    parse_auth_header,
)
from oauth1_login.exceptions import (
    BuilderMisuseError,
    ConfigurationError,
    OAuth1aError,
    ProtocolViolation,
    TransportError,
)
from oauth1_login.models import LoginConfig, OAuth1aServerSettings
from oauth1_login.oauth1a import (
    OAuth1aAccessTokenResponse,
    OAuth1aHandshake,
    TokenPair,
)
from oauth1_login.parameters import (
    EMPTY,
    Parameters,
    ParametersBuilder,
    build_parameters,
    parameters_of,
)
from oauth1_login.responses import UnauthorizedResponse
from oauth1_login.signature import SigningKeyStrategy

__all__ = [
    "BuilderMisuseError",
    "ConfigurationError",
    "EMPTY",
    "HeaderValueEncoding",
    "HttpAuthHeader",
    "LoginConfig",
    "OAuth1aAccessTokenResponse",
    "OAuth1aError",
    "OAuth1aHandshake",
    "OAuth1aServerSettings",
    "ParameterizedAuthHeader",
    "Parameters",
    "ParametersBuilder",
    "ProtocolViolation",
    "SigningKeyStrategy",
    "SingleAuthHeader",
    "TokenPair",
    "TransportError",
    "UnauthorizedResponse",
    "build_parameters",
    "parameters_of",
    "parse_auth_header",
]
