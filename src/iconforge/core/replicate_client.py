"""Async client for the Replicate predictions API.

This module provides :class:`ReplicateClient`, the only component that talks
to the upstream image generator.  It turns one prompt into one image URL and
fans a batch of prompts out concurrently.

Request Format
--------------
Every call is a ``POST`` to the model's predictions endpoint with a fixed
parameter set::

    {
        "input": {
            "prompt": "...",
            "num_outputs": 1,
            "aspect_ratio": "1:1",
            "megapixels": "0.25",       # ~512x512
            "output_format": "png",
            "output_quality": 90
        }
    }

The ``Prefer: wait`` header asks Replicate to hold the connection open until
the prediction completes, so the response already contains ``output``.

Failure Mapping
---------------
All failures surface as ``REMOTE_SERVICE`` :class:`~iconforge.core.errors.AppError`:

- non-2xx response: status is the upstream status, raw body in context
- transport error (DNS, connection reset, timeout) or any other failure
  raised by the call: status 502
- ``error`` field in a 2xx body: status 502 with the upstream message
- missing ``output`` or non-string first output: status 502

Usage
-----
::

    async with ReplicateClient(api_token="r8_...") as client:
        urls = await client.generate_icons(prompts)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from typing import Any

import httpx

from iconforge.core.config import DEFAULT_REPLICATE_URL
from iconforge.core.errors import remote_service_error

TOKEN_ENV_VAR = "REPLICATE_API_TOKEN"

# Fixed generation parameters sent with every prompt.
GENERATION_INPUT: dict[str, Any] = {
    "num_outputs": 1,
    "aspect_ratio": "1:1",
    "megapixels": "0.25",
    "output_format": "png",
    "output_quality": 90,
}

_module_logger = logging.getLogger(__name__)


class ReplicateClient:
    """Generates icon images through the Replicate API.

    One :class:`httpx.AsyncClient` connection pool is shared by every call
    made through this instance.  Close it with :meth:`aclose` (or use the
    instance as an async context manager) when the process shuts down.

    Args:
        api_token: Replicate API token.  Falls back to the
            ``REPLICATE_API_TOKEN`` environment variable.
        base_url: Predictions endpoint to POST to.
        timeout: Seconds to wait for each call, or ``None`` for no limit.
        logger: Logger to report to.  Defaults to the module logger.
        transport: Optional custom transport (useful for testing).

    Raises:
        AppError: ``REMOTE_SERVICE`` with status 500 if no token is available.
    """

    def __init__(
        self,
        api_token: str | None = None,
        *,
        base_url: str = DEFAULT_REPLICATE_URL,
        timeout: float | None = None,
        logger: logging.Logger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._logger = logger or _module_logger
        self._api_token = api_token or os.environ.get(TOKEN_ENV_VAR, "")
        if not self._api_token:
            self._logger.error("ReplicateClient initialization failed: missing API token")
            raise remote_service_error(f"Missing {TOKEN_ENV_VAR}", 500)

        self.base_url = base_url
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self._api_token}",
                "Content-Type": "application/json",
                "Prefer": "wait",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._logger.info("ReplicateClient initialized")

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release connections."""
        await self._client.aclose()

    async def __aenter__(self) -> ReplicateClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def generate_single_icon(self, prompt: str) -> str:
        """Generate one image and return its URL.

        Args:
            prompt: Fully compiled prompt text.

        Returns:
            URL of the generated PNG.

        Raises:
            AppError: ``REMOTE_SERVICE`` on any upstream or transport failure.
        """
        self._logger.info("Sending prompt to Replicate API (%d chars)", len(prompt))
        self._logger.debug("Replicate prompt: %s", prompt)

        request_body = {"input": {"prompt": prompt, **GENERATION_INPUT}}

        try:
            response = await self._client.post(self.base_url, json=request_body)
        except Exception as e:
            self._logger.error("Unexpected error generating icon: %s", e)
            raise remote_service_error("Failed to generate icon", original_error=str(e)) from e

        if not response.is_success:
            error_text = response.text
            self._logger.error(
                "Replicate API request failed: status=%d reason=%s body=%s",
                response.status_code,
                response.reason_phrase,
                error_text,
            )
            raise remote_service_error(
                "Replicate API request failed",
                response.status_code,
                error_text,
                {"status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            self._logger.error("Replicate returned a non-JSON body")
            raise remote_service_error(
                "Replicate returned an invalid response", original_error=response.text
            ) from e

        if not isinstance(data, dict):
            raise remote_service_error("Replicate returned an invalid response", context={"output": data})

        if data.get("error"):
            self._logger.error(
                "Replicate API returned error: %s (status=%s)", data["error"], data.get("status")
            )
            raise remote_service_error(
                f"Replicate API error: {data['error']}",
                original_error=str(data["error"]),
                context={"status": data.get("status")},
            )

        output = data.get("output")
        if not output:
            self._logger.error("Replicate returned no output")
            raise remote_service_error("Replicate returned no output")

        image_url = output[0] if isinstance(output, list) else output
        if not image_url or not isinstance(image_url, str):
            self._logger.error("Replicate returned invalid image URL: %r", output)
            raise remote_service_error(
                "Replicate returned invalid image URL", context={"output": output}
            )

        self._logger.debug("Icon generated successfully (url length %d)", len(image_url))
        return image_url

    async def generate_icons(self, prompts: Sequence[str]) -> list[str]:
        """Generate one image per prompt, concurrently.

        All calls are started before any is awaited.  If any call fails the
        first failure is raised and no partial list is returned; the other
        calls are left to finish on their own and their results discarded.

        Args:
            prompts: Compiled prompts, one per icon.

        Returns:
            Image URLs in the same order as *prompts*.

        Raises:
            AppError: The first failure observed among the calls.
        """
        self._logger.info("Generating %d icons", len(prompts))

        calls = [self._generate_indexed(index, prompt) for index, prompt in enumerate(prompts)]
        try:
            images = await asyncio.gather(*calls)
        except Exception:
            self._logger.error("Failed to generate icons (prompt count %d)", len(prompts))
            raise

        self._logger.info("All icons generated successfully (%d)", len(images))
        return list(images)

    async def _generate_indexed(self, index: int, prompt: str) -> str:
        try:
            return await self.generate_single_icon(prompt)
        except Exception as e:
            self._logger.error("Failed to generate icon %d: %s", index + 1, e)
            raise
