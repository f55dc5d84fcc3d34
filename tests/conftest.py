"""Shared fixtures for oauth1-login tests."""

from dataclasses import dataclass, field

import pytest
import yaml

from oauth1_login.auth_header import OAuthParameters, parse_auth_header
from oauth1_login.http import parse_url_encoded_parameters
from oauth1_login.models import OAuth1aServerSettings
from oauth1_login.signature import signature_base_string


@dataclass
class FakeResponse:
    """TransportResponse that records whether it was closed."""

    status_code: int
    text: str
    closed: bool = False
    read_error: Exception | None = None

    def read_text(self) -> str:
        if self.read_error is not None:
            raise self.read_error
        return self.text

    def close(self) -> None:
        self.closed = True


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: str | None


@dataclass
class FakeTransport:
    """HttpTransport returning queued responses and recording requests."""

    responses: list[FakeResponse] = field(default_factory=list)
    requests: list[RecordedRequest] = field(default_factory=list)
    error: Exception | None = None
    closed: bool = False

    def request(self, method, url, headers, body=None):
        self.requests.append(RecordedRequest(method, url, dict(headers), body))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def close(self):
        self.closed = True


def signed_base_string(recorded):
    """Rebuild the base string of a recorded request and return it with its signature.

    Body parameters of form-encoded requests take part in the signature.
    """
    header = parse_auth_header(recorded.headers["Authorization"])
    body = parse_url_encoded_parameters(recorded.body or "").flatten_entries()
    base = signature_base_string(header, recorded.method, recorded.url.split("?")[0], body)
    return base, header.parameter(OAuthParameters.SIGNATURE)


@pytest.fixture
def settings():
    """Provider settings used across handshake tests."""
    return OAuth1aServerSettings(
        name="example",
        consumer_key="ck",
        consumer_secret="cs",
        request_token_url="https://provider.test/oauth/request_token",
        authorize_url="https://provider.test/oauth/authorize",
        access_token_url="https://provider.test/oauth/access_token",
    )


@pytest.fixture
def sample_config_yaml(tmp_path):
    """Write a config file with one provider."""
    config = {
        "callback_base_url": "https://app.example.com",
        "providers": {
            "example": {
                "consumer_key": "ck",
                "consumer_secret": "cs",
                "request_token_url": "https://provider.test/oauth/request_token",
                "authorize_url": "https://provider.test/oauth/authorize",
                "access_token_url": "https://provider.test/oauth/access_token",
            }
        },
    }
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump(config))
    return config_file
