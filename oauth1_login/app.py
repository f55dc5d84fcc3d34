"""Starlette application serving the OAuth 1.0a login routes."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Awaitable, Callable

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from oauth1_login.auth_header import oauth_challenge
from oauth1_login.call import StarletteCall
from oauth1_login.exceptions import TransportError
from oauth1_login.models import LoginConfig, OAuth1aServerSettings
from oauth1_login.oauth1a import (
    FailureHandler,
    OAuth1aAccessTokenResponse,
    OAuth1aHandshake,
    RequestTokenSecrets,
    TokenSecretLookup,
    TokenSecretStore,
)
from oauth1_login.responses import UnauthorizedResponse
from oauth1_login.transport import HttpTransport, HttpxTransport

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[Request, OAuth1aAccessTokenResponse], Awaitable[Response]]


async def default_on_success(
    request: Request, principal: OAuth1aAccessTokenResponse
) -> Response:
    """Report the login; the token secret never leaves the server."""
    return JSONResponse(
        {
            "status": "authenticated",
            "provider": request.path_params.get("provider"),
            "token": principal.token,
        }
    )


def create_app(
    config: LoginConfig,
    transport: HttpTransport | None = None,
    executor: Executor | None = None,
    on_success: SuccessHandler | None = None,
    failure_handler: FailureHandler | None = None,
    token_secret_store: TokenSecretStore | None = None,
    token_secret_lookup: TokenSecretLookup | None = None,
) -> Starlette:
    """Create the ASGI app.

    Routes:
        - {login_path}/{provider} - start or complete a provider login
        - /health - health check

    A transport or executor created here is shut down with the app.

    Request token secrets are kept in process by ``RequestTokenSecrets``
    unless both ``token_secret_store`` and ``token_secret_lookup`` are given,
    e.g. to share them between workers.
    """
    owned_transport = transport is None
    owned_executor = executor is None
    transport = transport or HttpxTransport(timeout=config.timeout)
    executor = executor or ThreadPoolExecutor(
        max_workers=config.worker_threads, thread_name_prefix="oauth1-login"
    )
    on_success = on_success or default_on_success
    if token_secret_store is None or token_secret_lookup is None:
        secrets = RequestTokenSecrets()
        token_secret_store, token_secret_lookup = secrets.store, secrets.lookup

    def provider_lookup(call: StarletteCall) -> OAuth1aServerSettings | None:
        return config.providers.get(call.request.path_params["provider"])

    def url_provider(call: StarletteCall, settings: OAuth1aServerSettings) -> str:
        return config.callback_url(call.request.path_params["provider"])

    handshake = OAuth1aHandshake(
        transport=transport,
        executor=executor,
        provider_lookup=provider_lookup,
        url_provider=url_provider,
        failure_handler=failure_handler,
        token_secret_lookup=token_secret_lookup,
        token_secret_store=token_secret_store,
        debug=config.debug,
    )

    async def login(request: Request) -> Response:
        call = StarletteCall(request)
        try:
            await handshake.handle(call)
        except TransportError as e:
            logger.error(
                "Login with provider '%s' failed: %s (status=%s)",
                request.path_params["provider"],
                e,
                e.status_code,
            )
            return JSONResponse(
                {"error": "provider_error", "message": str(e)}, status_code=502
            )

        if call.response is not None:
            return call.response
        if call.principal is not None:
            return await on_success(request, call.principal)
        return UnauthorizedResponse(oauth_challenge(config.realm))

    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "healthy"})

    @asynccontextmanager
    async def lifespan(app: Starlette):
        try:
            yield
        finally:
            if owned_executor:
                executor.shutdown(wait=False)
            if owned_transport:
                transport.close()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route(f"{config.login_path}/{{provider}}", login, methods=["GET"]),
    ]
    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.handshake = handshake
    return app
