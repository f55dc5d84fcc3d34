"""OAuth 1.0a three-legged login.

The flow has two externally visible phases, told apart by whether the inbound
call carries both ``oauth_token`` and ``oauth_verifier``:

1. **No callback** (fresh login): obtain a request token from the provider
   and redirect the user agent to the provider's authorization page.
2. **Callback**: exchange the token and verifier for an access token and
   attach it to the call as the principal.

No server-side state is kept between the phases; the provider echoes the
request token back on the callback.

Both provider calls block, so ``OAuth1aHandshake`` submits them to an
executor and only touches the call again once the work has finished.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Iterable, Mapping
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from oauth1_login.auth_header import HeaderValueEncoding, OAuthParameters
from oauth1_login.call import ApplicationCall
from oauth1_login.exceptions import ProtocolViolation, TransportError
from oauth1_login.http import (
    ContentType,
    HttpHeaders,
    HttpMethod,
    append_url_parameters,
    encode_url_query_component,
    form_url_encode,
    parse_url_encoded_parameters,
)
from oauth1_login.models import OAuth1aServerSettings
from oauth1_login.parameters import Parameters
from oauth1_login.signature import (
    next_nonce,
    obtain_request_token_header,
    sign,
    signature_base_string,
    signing_key,
    upgrade_request_token_header,
)
from oauth1_login.transport import HttpTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TokenPair:
    """A token and its companion value.

    After step 1 this is the request token and its secret. On the callback
    it is the echoed token and the verifier.
    """

    token: str
    token_secret: str


@dataclass(frozen=True)
class OAuth1aAccessTokenResponse:
    """Final artifact handed to the principal store."""

    token: str
    token_secret: str
    extra_parameters: Parameters


FailureHandler = Callable[[ApplicationCall, str], Awaitable[None]]
ProviderLookup = Callable[[ApplicationCall], "OAuth1aServerSettings | None"]
UrlProvider = Callable[[ApplicationCall, OAuth1aServerSettings], str]
TokenSecretLookup = Callable[[str], "str | None"]
TokenSecretStore = Callable[[str, str], None]


def oauth1a_handle_callback(call: ApplicationCall) -> TokenPair | None:
    """Return the callback token and verifier, or None for a fresh login."""
    token = call.parameters.get(OAuthParameters.TOKEN)
    verifier = call.parameters.get(OAuthParameters.VERIFIER)
    if token is not None and verifier is not None:
        return TokenPair(token, verifier)
    return None


def request_token(
    transport: HttpTransport,
    settings: OAuth1aServerSettings,
    callback_url: str,
    nonce: str | None = None,
    extra_parameters: Iterable[tuple[str, str]] = (),
    timestamp: str | None = None,
    debug: bool = False,
) -> TokenPair:
    """Step 1: obtain a temporary request token.

    Raises:
        TransportError: non-200 status or network failure
        ProtocolViolation: ``oauth_callback_confirmed`` is not ``"true"`` or
            the token fields are missing
    """
    extra = list(extra_parameters)
    key = signing_key(settings.signing_key_strategy, settings.consumer_secret)
    unsigned = obtain_request_token_header(
        callback=callback_url,
        consumer_key=settings.consumer_key,
        nonce=nonce or next_nonce(),
        timestamp_value=timestamp,
    )
    if debug:
        logger.debug(
            "Request token base string: %s",
            signature_base_string(
                unsigned, HttpMethod.POST, settings.request_token_url, extra
            ),
        )
    auth_header = sign(unsigned, HttpMethod.POST, settings.request_token_url, key, extra)

    url = append_url_parameters(settings.request_token_url, form_url_encode(extra))
    response = transport.request(
        HttpMethod.POST,
        url,
        headers={
            HttpHeaders.AUTHORIZATION: auth_header.render(HeaderValueEncoding.URI_ENCODE),
            HttpHeaders.ACCEPT: ContentType.ANY,
        },
    )
    try:
        body = response.read_text()
        if response.status_code != 200:
            raise TransportError(
                f"Failed to acquire request token: bad response {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        parameters = parse_url_encoded_parameters(body)
        if parameters.get(OAuthParameters.CALLBACK_CONFIRMED) != "true":
            raise ProtocolViolation(
                "Response parameter oauth_callback_confirmed should be true",
                status_code=response.status_code,
                body=body,
            )

        token = parameters.get(OAuthParameters.TOKEN)
        token_secret = parameters.get(OAuthParameters.TOKEN_SECRET)
        if token is None or token_secret is None:
            raise ProtocolViolation(
                "Request token response is missing oauth_token or oauth_token_secret",
                status_code=response.status_code,
                body=body,
            )
        return TokenPair(token, token_secret)
    finally:
        response.close()


def authorize_url(settings: OAuth1aServerSettings, request_token: TokenPair | str) -> str:
    """Provider authorization page URL for a request token."""
    token = request_token.token if isinstance(request_token, TokenPair) else request_token
    return append_url_parameters(
        settings.authorize_url,
        f"{OAuthParameters.TOKEN}={encode_url_query_component(token)}",
    )


async def redirect_authenticate(
    call: ApplicationCall, settings: OAuth1aServerSettings, request_token: TokenPair
) -> None:
    await call.redirect(authorize_url(settings, request_token))


def access_token(
    transport: HttpTransport,
    settings: OAuth1aServerSettings,
    callback: TokenPair,
    nonce: str | None = None,
    extra_parameters: Mapping[str, str] | None = None,
    timestamp: str | None = None,
    token_secret: str = "",
    debug: bool = False,
) -> OAuth1aAccessTokenResponse:
    """Step 2: exchange the callback token and verifier for an access token.

    ``callback.token_secret`` holds the verifier. ``token_secret`` is the
    request token secret and only matters for ``SigningKeyStrategy.RFC5849``.

    Raises:
        TransportError: non-200 status or network failure
        ProtocolViolation: the token fields are missing
    """
    parameters = [(OAuthParameters.VERIFIER, callback.token_secret)]
    parameters.extend((extra_parameters or {}).items())

    key = signing_key(settings.signing_key_strategy, settings.consumer_secret, token_secret)

    unsigned = upgrade_request_token_header(
        consumer_key=settings.consumer_key,
        token=callback.token,
        nonce=nonce or next_nonce(),
        timestamp_value=timestamp,
    )
    if debug:
        logger.debug(
            "Access token base string: %s",
            signature_base_string(
                unsigned, HttpMethod.POST, settings.access_token_url, parameters
            ),
        )
    auth_header = sign(
        unsigned, HttpMethod.POST, settings.access_token_url, key, parameters
    )

    response = transport.request(
        HttpMethod.POST,
        settings.access_token_url,
        headers={
            HttpHeaders.AUTHORIZATION: auth_header.render(HeaderValueEncoding.URI_ENCODE),
            HttpHeaders.CONTENT_TYPE: ContentType.FORM_URL_ENCODED,
            HttpHeaders.ACCEPT: ContentType.ANY,
        },
        body=form_url_encode(parameters),
    )
    try:
        body = response.read_text()
        if response.status_code != 200:
            raise TransportError(
                f"Failed to acquire access token: bad response {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        response_parameters = parse_url_encoded_parameters(body)
        token = response_parameters.get(OAuthParameters.TOKEN)
        secret = response_parameters.get(OAuthParameters.TOKEN_SECRET)
        if token is None or secret is None:
            raise ProtocolViolation(
                "Access token response is missing oauth_token or oauth_token_secret",
                status_code=response.status_code,
                body=body,
            )
        return OAuth1aAccessTokenResponse(token, secret, response_parameters)
    finally:
        response.close()


class RequestTokenSecrets:
    """In-process request token secrets, kept between step 1 and the callback.

    Needed by ``SigningKeyStrategy.RFC5849``, whose step 2 key includes the
    request token secret. Each secret is handed out once; the oldest entries
    are evicted beyond ``max_entries``. Only suitable for a single process.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._secrets: OrderedDict[str, str] = OrderedDict()

    def store(self, token: str, token_secret: str) -> None:
        self._secrets[token] = token_secret
        self._secrets.move_to_end(token)
        while len(self._secrets) > self.max_entries:
            self._secrets.popitem(last=False)

    def lookup(self, token: str) -> str | None:
        return self._secrets.pop(token, None)

    def __len__(self) -> int:
        return len(self._secrets)


async def redirect_to_callback(call: ApplicationCall, callback_redirect_url: str) -> None:
    """Default failure handler: restart the login at the callback URL."""
    await call.redirect(callback_redirect_url)


class OAuth1aHandshake:
    """Drives the OAuth 1.0a login for one inbound call at a time.

    Usage:
        handshake = OAuth1aHandshake(
            transport=HttpxTransport(),
            executor=ThreadPoolExecutor(max_workers=4),
            provider_lookup=lambda call: settings,
            url_provider=lambda call, settings: "https://app.example.com/login",
        )
        await handshake.handle(StarletteCall(request))

    Step 1 failures propagate to the caller. Step 2 failures (any ``OSError``,
    which includes ``TransportError`` and ``ProtocolViolation``) are passed
    to ``failure_handler`` with the callback redirect URL.

    ``token_secret_store`` receives every request token and its secret after
    step 1; ``token_secret_lookup`` returns that secret on the callback so
    RFC 5849 keys can include it.
    """

    def __init__(
        self,
        transport: HttpTransport,
        executor: Executor,
        provider_lookup: ProviderLookup,
        url_provider: UrlProvider,
        failure_handler: FailureHandler | None = None,
        token_secret_lookup: TokenSecretLookup | None = None,
        token_secret_store: TokenSecretStore | None = None,
        debug: bool = False,
    ):
        self.transport = transport
        self.executor = executor
        self.provider_lookup = provider_lookup
        self.url_provider = url_provider
        self.failure_handler = failure_handler or redirect_to_callback
        self.token_secret_lookup = token_secret_lookup
        self.token_secret_store = token_secret_store
        self.debug = debug

    async def _offload(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, functools.partial(fn, *args, **kwargs)
        )

    async def handle(self, call: ApplicationCall) -> None:
        settings = self.provider_lookup(call)
        if settings is None:
            return

        callback = oauth1a_handle_callback(call)
        callback_redirect_url = self.url_provider(call, settings)

        if callback is None:
            token = await self._offload(
                request_token,
                self.transport,
                settings,
                callback_redirect_url,
                debug=self.debug,
            )
            logger.info("Obtained request token from provider '%s'", settings.name)
            if self.token_secret_store is not None:
                self.token_secret_store(token.token, token.token_secret)
            await redirect_authenticate(call, settings, token)
            return

        token_secret = ""
        if self.token_secret_lookup is not None:
            token_secret = self.token_secret_lookup(callback.token) or ""

        try:
            principal = await self._offload(
                access_token,
                self.transport,
                settings,
                callback,
                token_secret=token_secret,
                debug=self.debug,
            )
        except OSError as e:
            logger.warning(
                "Access token exchange with provider '%s' failed: %s", settings.name, e
            )
            await self.failure_handler(call, callback_redirect_url)
            return

        logger.info("Obtained access token from provider '%s'", settings.name)
        call.attach_principal(principal)
