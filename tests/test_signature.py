"""Tests for OAuth 1.0a request signing."""

import base64
import hashlib
import hmac
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from oauthlib.oauth1.rfc5849 import signature as oauthlib_signature

from oauth1_login.auth_header import AuthScheme, HeaderValueEncoding, ParameterizedAuthHeader
from oauth1_login.signature import (
    SigningKeyStrategy,
    hmac_sha1,
    next_nonce,
    obtain_request_token_header,
    parameters_string,
    percent_encode,
    sign,
    signature_base_string,
    signing_key,
    timestamp,
    upgrade_request_token_header,
)

REQUEST_TOKEN_URL = "https://provider.test/request_token"

EXPECTED_BASE_STRING = (
    "POST&https%3A%2F%2Fprovider.test%2Frequest_token&"
    "oauth_callback%3Dhttp%253A%252F%252Fcb%26"
    "oauth_consumer_key%3Dck%26"
    "oauth_nonce%3Dabc%26"
    "oauth_signature_method%3DHMAC-SHA1%26"
    "oauth_timestamp%3D1500000000%26"
    "oauth_version%3D1.0"
)


@pytest.fixture
def request_token_header():
    return obtain_request_token_header(
        callback="http://cb", consumer_key="ck", nonce="abc", timestamp_value="1500000000"
    )


class TestPercentEncode:
    """Tests for RFC 3986 percent-encoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("abcXYZ019", "abcXYZ019"),
            ("-._~", "-._~"),
            (" ", "%20"),
            ("+", "%2B"),
            ("*", "%2A"),
            ("/", "%2F"),
            ("=&", "%3D%26"),
            ("!", "%21"),
            ("é", "%C3%A9"),
        ],
    )
    def test_encoding(self, value, expected):
        """Only unreserved characters stay literal; everything else is %XX."""
        assert percent_encode(value) == expected

    def test_matches_oauthlib(self):
        """Encoding should agree with oauthlib's escape."""
        from oauthlib.oauth1.rfc5849.utils import escape

        value = "Hello Ladies + Gentlemen, a signed OAuth request!"
        assert percent_encode(value) == escape(value)


class TestSigningKey:
    """Tests for signing key derivation."""

    def test_consumer_secret_only(self):
        """The default key never includes the token secret."""
        key = signing_key(SigningKeyStrategy.CONSUMER_SECRET_ONLY, "cs", "ts")
        assert key == "cs&"

    def test_consumer_secret_only_does_not_encode(self):
        """The default key uses the raw consumer secret."""
        assert signing_key(SigningKeyStrategy.CONSUMER_SECRET_ONLY, "a b") == "a b&"

    def test_rfc5849(self):
        """RFC 5849 keys join both encoded secrets."""
        key = signing_key(SigningKeyStrategy.RFC5849, "c s", "t&s")
        assert key == "c%20s&t%26s"

    def test_rfc5849_without_token_secret(self):
        """Without a token secret the RFC key matches the default for plain secrets."""
        assert signing_key(SigningKeyStrategy.RFC5849, "cs") == "cs&"

    def test_strategy_from_string(self):
        """Strategies parse from their configuration value."""
        assert SigningKeyStrategy("rfc5849") is SigningKeyStrategy.RFC5849


class TestSignatureBaseString:
    """Tests for signature base string construction."""

    def test_request_token_vector(self, request_token_header):
        """Known request token header should give the known base string."""
        base = signature_base_string(request_token_header, "POST", REQUEST_TOKEN_URL)
        assert base == EXPECTED_BASE_STRING

    def test_method_is_upper_cased(self, request_token_header):
        """The method is normalized to upper case."""
        base = signature_base_string(request_token_header, "post", REQUEST_TOKEN_URL)
        assert base == EXPECTED_BASE_STRING

    def test_excludes_signature_and_realm(self, request_token_header):
        """oauth_signature and realm never take part in the base string."""
        header = request_token_header.with_parameter("oauth_signature", "x").with_parameter(
            "realm", "r"
        )
        assert signature_base_string(header, "POST", REQUEST_TOKEN_URL) == EXPECTED_BASE_STRING

    def test_includes_extra_parameters(self, request_token_header):
        """Extra parameters are merged and sorted with header parameters."""
        base = signature_base_string(
            request_token_header, "POST", REQUEST_TOKEN_URL, [("a", "1"), ("z", "2")]
        )
        parts = base.split("&")
        assert parts[2].startswith("a%3D1%26oauth_callback")
        assert parts[2].endswith("oauth_version%3D1.0%26z%3D2")

    def test_parameters_sorted_by_value_for_equal_names(self):
        """Repeated names are ordered by value."""
        assert parameters_string([("a", "2"), ("a", "1"), ("b", "0")]) == "a=1&a=2&b=0"

    def test_parameters_sorted_after_encoding(self):
        """Sorting happens on encoded names and values."""
        assert parameters_string([("a", "~"), ("a", " ")]) == "a=%20&a=~"

    def test_matches_oauthlib_normalization(self, request_token_header):
        """The base string should match oauthlib for the same inputs."""
        extra = [("status", "Hello Ladies + Gentlemen!"), ("include_entities", "true")]
        params = list(request_token_header.parameters) + extra
        expected = oauthlib_signature.signature_base_string(
            "POST", REQUEST_TOKEN_URL, oauthlib_signature.normalize_parameters(params)
        )
        assert (
            signature_base_string(request_token_header, "POST", REQUEST_TOKEN_URL, extra)
            == expected
        )


class TestSign:
    """Tests for HMAC-SHA1 signing."""

    def test_hmac_sha1(self):
        """hmac_sha1 is base64 of the raw HMAC-SHA1 digest."""
        expected = base64.b64encode(
            hmac.new(b"cs&", b"text", hashlib.sha1).digest()
        ).decode()
        assert hmac_sha1("text", "cs&") == expected

    def test_request_token_signature(self, request_token_header):
        """The signature should be HMAC-SHA1 of the base string under 'cs&'."""
        signed = sign(request_token_header, "POST", REQUEST_TOKEN_URL, "cs&")
        expected = base64.b64encode(
            hmac.new(b"cs&", EXPECTED_BASE_STRING.encode(), hashlib.sha1).digest()
        ).decode()
        assert signed.parameter("oauth_signature") == expected

    def test_request_token_signature_matches_oauthlib(self, request_token_header):
        """The signature should match oauthlib's HMAC-SHA1 implementation."""
        signed = sign(request_token_header, "POST", REQUEST_TOKEN_URL, "cs&")
        client = SimpleNamespace(client_secret="cs", resource_owner_secret="")
        expected = oauthlib_signature.sign_hmac_sha1_with_client(
            EXPECTED_BASE_STRING, client
        )
        assert signed.parameter("oauth_signature") == expected

    def test_published_rfc5849_vector(self):
        """A widely published signed request should reproduce its signature."""
        header = upgrade_request_token_header(
            consumer_key="xvz1evFS4wEEPTGEFPHBog",
            token="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
            nonce="kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg",
            timestamp_value="1318622958",
        )
        key = signing_key(
            SigningKeyStrategy.RFC5849,
            "kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
            "LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
        )
        signed = sign(
            header,
            "POST",
            "https://api.twitter.com/1.1/statuses/update.json",
            key,
            [
                ("include_entities", "true"),
                ("status", "Hello Ladies + Gentlemen, a signed OAuth request!"),
            ],
        )
        assert signed.parameter("oauth_signature") == "hCtSmYh+iHYCEqBWrE7C7hYmtUk="

    def test_sign_appends_signature_last(self, request_token_header):
        """The signed header keeps the unsigned parameters in order."""
        signed = sign(request_token_header, "POST", REQUEST_TOKEN_URL, "cs&")
        names = [name for name, _ in signed.parameters]
        assert names[:-1] == [name for name, _ in request_token_header.parameters]
        assert names[-1] == "oauth_signature"

    def test_rendered_header_quotes_and_encodes(self, request_token_header):
        """The rendered Authorization header percent-encodes every value."""
        signed = sign(request_token_header, "POST", REQUEST_TOKEN_URL, "cs&")
        rendered = signed.render(HeaderValueEncoding.URI_ENCODE)
        assert rendered.startswith('OAuth oauth_callback="http%3A%2F%2Fcb", ')
        assert 'oauth_signature_method="HMAC-SHA1"' in rendered
        assert percent_encode(signed.parameter("oauth_signature")) in rendered


class TestHeaderFactories:
    """Tests for the unsigned header helpers."""

    def test_request_token_header_parameters(self, request_token_header):
        """Step 1 header carries the callback and no token."""
        assert request_token_header.auth_scheme == AuthScheme.OAUTH
        assert request_token_header.parameters == (
            ("oauth_callback", "http://cb"),
            ("oauth_consumer_key", "ck"),
            ("oauth_nonce", "abc"),
            ("oauth_signature_method", "HMAC-SHA1"),
            ("oauth_timestamp", "1500000000"),
            ("oauth_version", "1.0"),
        )

    def test_upgrade_header_parameters(self):
        """Step 2 header carries the token and no callback."""
        header = upgrade_request_token_header("ck", "T1", "abc", "1500000000")
        assert header.parameter("oauth_token") == "T1"
        assert header.parameter("oauth_callback") is None
        assert isinstance(header, ParameterizedAuthHeader)

    def test_default_timestamp_is_current_epoch(self):
        """Without an explicit timestamp the current UTC epoch is used."""
        with patch("oauth1_login.signature.time.time", return_value=1700000000.9):
            header = obtain_request_token_header("http://cb", "ck", "abc")
        assert header.parameter("oauth_timestamp") == "1700000000"


class TestNonceAndTimestamp:
    """Tests for nonce and timestamp generation."""

    def test_nonce_is_fresh(self):
        """Every call returns a different nonce."""
        nonces = {next_nonce() for _ in range(100)}
        assert len(nonces) == 100

    def test_nonce_is_unreserved(self):
        """Nonces need no percent-encoding."""
        nonce = next_nonce()
        assert percent_encode(nonce) == nonce
        assert len(nonce) == 32

    def test_timestamp_truncates(self):
        """Timestamps are whole seconds."""
        assert timestamp(1500000000.75) == "1500000000"

    def test_timestamp_defaults_to_now(self):
        """timestamp() reads the clock when no time is given."""
        with patch("oauth1_login.signature.time.time", return_value=42.0):
            assert timestamp() == "42"
