"""Validation utilities for icon generation requests.

The checks run in a fixed order (prompt, style, colors) so that a request with
several problems always reports the same one.  Each check raises an
:class:`~iconforge.core.errors.AppError` of kind ``VALIDATION`` whose context
names the offending field and value, so clients can point at the input that
needs fixing.

Style *existence* is not checked here: a syntactically valid but unknown
style id is a 404, raised by the controller after catalog lookup.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from iconforge.core.errors import validation_error

HEX_COLOR_PATTERN = re.compile(r"#[0-9a-fA-F]{6}")


@dataclass(frozen=True)
class IconRequest:
    """A validated icon generation request.

    Attributes:
        prompt: Theme for the icon set, exactly as the client sent it.
        style_id: Requested style identifier (not yet resolved).
        colors: Validated ``#RRGGBB`` colors, or ``None`` when omitted.
    """

    prompt: str
    style_id: str
    colors: tuple[str, ...] | None = None


def is_valid_hex_color(color: str) -> bool:
    """Return ``True`` if *color* is a ``#RRGGBB`` hex string."""
    return HEX_COLOR_PATTERN.fullmatch(color) is not None


def validate_prompt(prompt: Any) -> str:
    """Validate the icon theme.

    Args:
        prompt: Raw value from the request body.

    Returns:
        The prompt, unchanged.

    Raises:
        AppError: If the prompt is missing, not a string, or blank.
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise validation_error(
            "Prompt is required and must be a non-empty string", "prompt", prompt
        )
    return prompt


def validate_style_id(style_id: Any) -> str:
    """Validate that a style id was supplied as a non-empty string."""
    if not isinstance(style_id, str) or not style_id:
        raise validation_error("styleId is required and must be a string", "styleId", style_id)
    return style_id


def validate_colors(colors: Any) -> tuple[str, ...]:
    """Validate a supplied list of hex colors.

    Only the first offending element is reported.  An omitted ``colors``
    key is handled by :func:`parse_icon_request`; an explicit ``null`` is
    not an array and fails here.

    Args:
        colors: Raw value from the request body.

    Returns:
        The colors as a tuple.

    Raises:
        AppError: If *colors* is not a list, or an element is not a
            ``#RRGGBB`` string.
    """
    if not isinstance(colors, (list, tuple)):
        raise validation_error("colors must be an array", "colors", colors)

    for i, color in enumerate(colors):
        if not isinstance(color, str):
            raise validation_error(f"colors[{i}] must be a string", f"colors[{i}]", color)
        if not is_valid_hex_color(color):
            raise validation_error(
                f"colors[{i}] must be a valid hex color (format: #RRGGBB)",
                f"colors[{i}]",
                color,
            )

    return tuple(colors)


def parse_icon_request(body: Any) -> IconRequest:
    """Parse a decoded JSON body into an :class:`IconRequest`.

    Args:
        body: The decoded request body.  Expected keys are ``prompt``,
            ``styleId`` and optionally ``colors``.

    Returns:
        The validated request.

    Raises:
        AppError: On the first validation failure.
    """
    if not isinstance(body, Mapping):
        raise validation_error("Request body must be a JSON object", "body", None)

    prompt = validate_prompt(body.get("prompt"))
    style_id = validate_style_id(body.get("styleId"))
    colors = validate_colors(body["colors"]) if "colors" in body else None
    return IconRequest(prompt=prompt, style_id=style_id, colors=colors)
