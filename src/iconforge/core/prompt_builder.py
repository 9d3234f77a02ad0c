"""Prompt compilation for icon sets.

One user request produces four icons.  Each icon gets its own prompt, built
from the same theme and style but with a different variation phrase so the
generator does not return four copies of the same image.

Template Structure::

    A single <variation>, <style tag>, centered composition, 512x512 square
    format, no text, no logos, clean white background. [<color clause>]

The color clause is only present when the caller supplied colors.  Without
it the generator picks its own palette.

Usage
-----
::

    prompt = build_icon_prompt(
        "coffee",
        style.prompt_tag,
        variant_index=1,
        colors=("#FF5733",),
    )
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

logger = logging.getLogger(__name__)

# Number of icons in one set.
ICON_SET_SIZE = 4

# Variation phrases, indexed by variant index.  ``{theme}`` is the trimmed
# user theme.
_VARIATIONS: tuple[str, ...] = (
    "a {theme} icon",
    "a different {theme} icon",
    "another {theme} icon",
    "one more {theme} icon",
)

_COMPOSITION = (
    "centered composition, 512x512 square format, no text, no logos, clean white background."
)

_COLOR_CLAUSE = "Use a color palette based on these hex colors: {colors}."


def build_icon_prompt(
    theme: str,
    style_tag: str,
    variant_index: int,
    colors: Sequence[str] | None = None,
) -> str:
    """Compile the prompt for one icon in a set.

    The output is a pure function of the arguments.

    Args:
        theme: The user's theme (e.g. ``"coffee"``).  Surrounding
            whitespace is removed.
        style_tag: The style's descriptive prompt fragment.
        variant_index: Which variation phrase to use (0-3).  Any other value
            falls back to variant 0.
        colors: Optional hex colors, inserted verbatim and comma-joined.

    Returns:
        The compiled prompt string.
    """
    trimmed_theme = theme.strip()

    if 0 <= variant_index < len(_VARIATIONS):
        variation = _VARIATIONS[variant_index]
    else:
        variation = _VARIATIONS[0]
    description = variation.format(theme=trimmed_theme)

    prompt = f"A single {description}, {style_tag}, {_COMPOSITION}"

    if colors:
        prompt = f"{prompt} {_COLOR_CLAUSE.format(colors=', '.join(colors))}"
        logger.debug("Using custom colors for icon %d: %s", variant_index + 1, list(colors))
    else:
        logger.debug("No colors provided for icon %d, using model palette", variant_index + 1)

    return prompt.strip()


def build_icon_prompts(
    theme: str,
    style_tag: str,
    colors: Sequence[str] | None = None,
    count: int = ICON_SET_SIZE,
) -> list[str]:
    """Compile one prompt per variant index ``0..count-1``."""
    return [build_icon_prompt(theme, style_tag, i, colors) for i in range(count)]
