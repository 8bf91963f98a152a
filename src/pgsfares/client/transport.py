"""Asynchronous HTTP transport for the two Pegasus backends.

This module provides :class:`AsyncTransport`, a thin wrapper around
:class:`httpx.AsyncClient` that sends the browser-like headers the backends
expect, makes exactly one attempt per request and maps failures to the
typed errors of :mod:`pgsfares.exceptions`. Bodies are returned as decoded
JSON trees; interpreting them is left to :mod:`pgsfares.parser`.

.. note::
   There is no retry or backoff. A timeout is enforced only through
   :attr:`~pgsfares.models.ClientConfig.timeout`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from pgsfares.client.response import extract_json
from pgsfares.exceptions import ConnectionError_, NotFoundError, ServerError
from pgsfares.models import ClientConfig

logger = logging.getLogger(__name__)


class AsyncTransport:
    """Asynchronous GET/POST transport returning JSON.

    Must be used as an async context manager (or opened with :meth:`open`
    and closed with :meth:`aclose`).

    Args:
        config: Supplies the timeout, SSL verification and ``User-Agent``.
        http_client: Optional pre-built :class:`httpx.AsyncClient`, e.g.
            one backed by :class:`httpx.MockTransport` in tests. It is
            closed together with the transport.

    Example::

        async with AsyncTransport(ClientConfig()) as transport:
            payload = await transport.get_json("https://web.flypgs.com/pegasus/common/languages")
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client: Optional[httpx.AsyncClient] = http_client

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True,
            )

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AsyncTransport:
        self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json_content_type: bool = False,
    ) -> Any:
        """Send a GET request and return the decoded JSON body.

        Args:
            url: Absolute request URL.
            params: Query parameters.
            json_content_type: Send ``Content-Type: application/json`` with
                an empty body. The web backend rejects GET requests without
                it.
        """
        if json_content_type:
            return await self.request(
                "GET", url, params=params,
                headers={"Content-Type": "application/json"}, content=b"",
            )
        return await self.request("GET", url, params=params)

    async def post_json(self, url: str, json_body: Any) -> Any:
        """Send a POST request with a JSON body and return the decoded JSON body."""
        return await self.request("POST", url, json_body=json_body)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        content: Optional[bytes] = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body.

        Returns:
            The JSON value of the response body.

        Raises:
            NotFoundError: On 404.
            ServerError: On any other non-2xx status.
            ConnectionError_: On network / timeout errors.
            InvalidInputError: If the body is not JSON.
        """
        assert self._client is not None, "Transport not open -- use as async context manager"

        merged_headers = {
            "User-Agent": self._config.user_agent,
            "X-Platform": "web",
            "Accept": "*/*",
            **(headers or {}),
        }
        kwargs: dict[str, Any] = {"headers": merged_headers}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body
        elif content is not None:
            kwargs["content"] = content

        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc

        self._map_response_error(response)
        return extract_json(response)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for a non-success status code."""
        status = response.status_code
        if 200 <= status < 300:
            return

        msg = response.text[:200] if response.text else ""
        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
