"""Icon generation request handling.

:class:`IconController` ties the pipeline together for one request::

    received -> validated -> style-resolved -> prompts-built -> dispatched
             -> succeeded | failed

No state survives between requests.  Every failure is raised as an
:class:`~iconforge.core.errors.AppError` and left for the HTTP layer to
serialise; nothing is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from iconforge.api.models import GenerateIconsResponse
from iconforge.core.errors import not_found_error
from iconforge.core.prompt_builder import ICON_SET_SIZE, build_icon_prompts
from iconforge.core.styles import get_style_by_id
from iconforge.core.validation import parse_icon_request

_module_logger = logging.getLogger(__name__)


class IconGenerator(Protocol):
    """Anything that turns prompts into image URLs, in order."""

    async def generate_icons(self, prompts: Sequence[str]) -> list[str]: ...


class IconController:
    """Orchestrates validation, prompt building and upstream generation.

    Args:
        generator: Client used to dispatch the prompts, normally a
            :class:`~iconforge.core.replicate_client.ReplicateClient`.
        logger: Logger to report to.  Defaults to the module logger.
    """

    def __init__(self, generator: IconGenerator, *, logger: logging.Logger | None = None) -> None:
        self._generator = generator
        self._logger = logger or _module_logger
        self._logger.info("IconController initialized")

    async def generate_icons(self, body: Any) -> GenerateIconsResponse:
        """Handle one ``POST /api/generate-icons`` body.

        Args:
            body: Decoded JSON request body.

        Returns:
            The four image URLs in variant order.

        Raises:
            AppError: ``VALIDATION`` for malformed input, ``NOT_FOUND`` for an
                unknown style, ``REMOTE_SERVICE`` if any upstream call fails.
        """
        if isinstance(body, dict):
            prompt = body.get("prompt")
            colors = body.get("colors")
            self._logger.info(
                "Icon generation request received: prompt=%r styleId=%r colors=%s",
                prompt[:50] if isinstance(prompt, str) else prompt,
                body.get("styleId"),
                colors or [],
            )

        request = parse_icon_request(body)

        style = get_style_by_id(request.style_id)
        if style is None:
            raise not_found_error("Icon style", request.style_id)

        self._logger.info(
            "Building prompts for style %s (%d colors)",
            style.id,
            len(request.colors or ()),
        )
        prompts = build_icon_prompts(
            request.prompt, style.prompt_tag, request.colors, count=ICON_SET_SIZE
        )
        self._logger.debug("First prompt: %s", prompts[0][:100])

        images = await self._generator.generate_icons(prompts)

        self._logger.info("Icons generated successfully (%d images)", len(images))
        return GenerateIconsResponse(images=images)
