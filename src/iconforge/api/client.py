"""Async caller for the Iconforge HTTP API.

The service itself never retries upstream calls and enforces no timeout of
its own.  Callers are expected to do both; :class:`IconGeneratorAPI` is that
caller, for Python consumers and for the test suite.

Behaviour
---------
- Each attempt is bounded by ``timeout`` seconds.  A timed-out attempt fails
  with ``ApiError("Request timeout", 408)``.
- Any failed attempt (timeout, transport error, non-2xx, malformed body) is
  retried up to ``max_retries`` more times, sleeping a fixed ``retry_delay``
  between attempts.  The last error is raised.
- Error bodies in the service's ``{error, statusCode, context}`` shape are
  unpacked into :class:`ApiError`.

Usage
-----
::

    async with IconGeneratorAPI("http://localhost:4000") as api:
        urls = await api.generate_icons("coffee", "pastel-flat", ["#FF5733"])
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "http://localhost:4000"
API_TIMEOUT = 60.0
HEALTH_TIMEOUT = 5.0
MAX_RETRIES = 2
RETRY_DELAY = 1.0


class ApiError(Exception):
    """A failed call to the Iconforge API.

    Attributes:
        message: Error message from the service, or a local description.
        status_code: HTTP status (408 for timeouts).
        context: Structured details returned by the service, if any.
    """

    def __init__(self, message: str, status_code: int, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.context = context


class IconGeneratorAPI:
    """Client for ``POST /api/generate-icons`` with timeout and fixed retries.

    Args:
        base_url: Root URL of the service.  A trailing slash is ignored.
        timeout: Seconds allowed for each generation attempt.
        max_retries: Extra attempts after the first failure.
        retry_delay: Seconds to wait between attempts.
        transport: Optional custom transport (useful for testing).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = API_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> IconGeneratorAPI:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def generate_icons(
        self,
        prompt: str,
        style_id: str,
        colors: Sequence[str] | None = None,
    ) -> list[str]:
        """Request a set of icons and return their URLs.

        Args:
            prompt: Theme for the icon set.
            style_id: Style identifier (see ``GET /api/styles``).
            colors: Optional ``#RRGGBB`` colors.

        Returns:
            The image URLs returned by the service.

        Raises:
            ApiError: After the final attempt fails.
        """
        payload: dict[str, Any] = {"prompt": prompt, "styleId": style_id}
        if colors is not None:
            payload["colors"] = list(colors)

        async def make_request() -> list[str]:
            try:
                response = await self._client.post(
                    "/api/generate-icons", json=payload, timeout=self.timeout
                )
            except httpx.TimeoutException as e:
                raise ApiError("Request timeout", 408) from e

            if not response.is_success:
                raise _error_from_response(response)

            try:
                data = response.json()
            except ValueError as e:
                raise ApiError("Invalid response: no images received", 500) from e

            images = data.get("images") if isinstance(data, dict) else None
            if not isinstance(images, list) or not images:
                raise ApiError("Invalid response: no images received", 500)
            return images

        return await self._retry(make_request)

    async def check_health(self) -> bool:
        """Return ``True`` if ``GET /api/health`` answers with a 2xx status."""
        try:
            response = await self._client.get("/api/health", timeout=HEALTH_TIMEOUT)
        except httpx.HTTPError:
            return False
        return response.is_success

    async def _retry(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except (ApiError, httpx.HTTPError) as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Icon request failed (%s), retrying in %.1fs (%d/%d)",
                    e,
                    self.retry_delay,
                    attempt,
                    self.max_retries,
                )
                await asyncio.sleep(self.retry_delay)


def _error_from_response(response: httpx.Response) -> ApiError:
    """Build an :class:`ApiError` from a non-2xx response."""
    message = "Failed to generate icons"
    context = None
    try:
        data = response.json()
    except ValueError:
        message = response.reason_phrase or message
    else:
        if isinstance(data, dict):
            message = data.get("error") or message
            context = data.get("context")
    return ApiError(message, response.status_code, context)
