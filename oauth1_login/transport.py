"""Outbound HTTP used by the handshake.

The handshake only needs to issue a request and read a text body, so the
transport is a small protocol. ``HttpxTransport`` is the production binding;
tests can pass an ``httpx.Client`` built on ``httpx.MockTransport``.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from oauth1_login.exceptions import TransportError


class TransportResponse(Protocol):
    """Response whose body must be released with ``close()``."""

    status_code: int

    def read_text(self) -> str:
        ...

    def close(self) -> None:
        ...


class HttpTransport(Protocol):
    """Blocking request execution; called from a worker thread."""

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None = None,
    ) -> TransportResponse:
        ...


class HttpxResponse:
    """Streaming ``httpx.Response`` adapted to ``TransportResponse``."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self.status_code = response.status_code

    def read_text(self) -> str:
        try:
            self._response.read()
        except httpx.HTTPError as e:
            raise TransportError(
                f"Failed to read response body: {e}", status_code=self.status_code
            ) from e
        return self._response.text

    def close(self) -> None:
        self._response.close()


class HttpxTransport:
    """``HttpTransport`` backed by a synchronous ``httpx.Client``.

    The client is created on demand unless one is supplied; only a client
    created here is closed by ``close()``.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = 30.0):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None = None,
    ) -> HttpxResponse:
        request = self._client.build_request(
            method,
            url,
            headers=headers,
            content=body.encode("utf-8") if body is not None else None,
        )
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return HttpxResponse(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
