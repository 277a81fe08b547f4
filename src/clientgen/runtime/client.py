"""Asynchronous transport base of generated API clients.

Generated client classes subclass :class:`BaseApiClient` and call its six
request primitives:

* :meth:`~BaseApiClient.get_item` -- one JSON object;
* :meth:`~BaseApiClient.get_collection` -- a JSON array;
* :meth:`~BaseApiClient.get_paged` -- one page of a JSON array plus paging headers;
* :meth:`~BaseApiClient.put_json` / :meth:`~BaseApiClient.post_json` -- send
  an optional JSON body and decode the answer;
* :meth:`~BaseApiClient.delete` -- no body, no result.

Each primitive takes the already-built relative URL and an optional
:class:`~clientgen.runtime.cancellation.CancellationToken`. Requests go
through :class:`httpx.AsyncClient` with retry and exponential backoff on 5xx
and connection errors, and error statuses are mapped onto the
:mod:`clientgen.exceptions` hierarchy.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from clientgen.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from clientgen.runtime.cancellation import CancellationToken
from clientgen.runtime.objects import convert_value, to_json_value
from clientgen.runtime.paging import PagedResponse

logger = logging.getLogger(__name__)


class BaseApiClient:
    """Asynchronous HTTP transport for generated operations.

    Args:
        base_url: API root, e.g. ``https://gitlab.example.com/api/v4``.
        token: Optional bearer token sent with every request.
        timeout: Request timeout in seconds.
        max_retries: Retries on 5xx responses and connection errors.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with GitLabClient("https://gitlab.example.com/api/v4", token=token) as client:
            project = await client.get_project("group/app")
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._max_retries = max_retries
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> BaseApiClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------ #
    # Request primitives
    # ------------------------------------------------------------------ #

    async def get_item(
        self,
        url: str,
        result_type: Any,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        response = await self._send("GET", url, cancellation_token=cancellation_token)
        return convert_value(response.json(), result_type, self)

    async def get_collection(
        self,
        url: str,
        result_type: Any,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> tuple[Any, ...]:
        response = await self._send("GET", url, cancellation_token=cancellation_token)
        return tuple(convert_value(item, result_type, self) for item in response.json())

    async def get_paged(
        self,
        url: str,
        result_type: Any,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> PagedResponse[Any]:
        response = await self._send("GET", url, cancellation_token=cancellation_token)
        items = tuple(convert_value(item, result_type, self) for item in response.json())
        return PagedResponse.from_response(response, items)

    async def put_json(
        self,
        url: str,
        body: Optional[dict[str, Any]],
        result_type: Any,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        response = await self._send("PUT", url, body=body, cancellation_token=cancellation_token)
        return self._decode(response, result_type)

    async def post_json(
        self,
        url: str,
        body: Optional[dict[str, Any]],
        result_type: Any,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        response = await self._send("POST", url, body=body, cancellation_token=cancellation_token)
        return self._decode(response, result_type)

    async def delete(
        self,
        url: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        await self._send("DELETE", url, cancellation_token=cancellation_token)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _decode(self, response: httpx.Response, result_type: Any) -> Any:
        if result_type is None or not response.content:
            return None
        return convert_value(response.json(), result_type, self)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> httpx.Response:
        if cancellation_token is None:
            response = await self._execute_with_retry(method, url, body)
        else:
            cancellation_token.raise_if_cancelled()
            response = await cancellation_token.run(self._execute_with_retry(method, url, body))
        self._map_response_error(response)
        return response

    async def _execute_with_retry(
        self, method: str, url: str, body: Optional[dict[str, Any]]
    ) -> httpx.Response:
        """Send the request, retrying 5xx and connection errors with backoff (1 s, 2 s, 4 s...)."""
        kwargs: dict[str, Any] = {"method": method, "url": url}
        if body is not None:
            kwargs["json"] = to_json_value(body)

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._http.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < self._max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {self._max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < self._max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, self._max_retries,
                )
                await asyncio.sleep(delay)
                continue
            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
        except ValueError:
            msg = response.text[:200]
        else:
            if isinstance(detail, dict):
                msg = str(detail.get("message") or detail.get("error") or "")
            else:
                msg = str(detail)

        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"
        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
