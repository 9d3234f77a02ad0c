"""Icon style catalog.

The catalog is a fixed, immutable table built at import time.  Each style
contributes a ``prompt_tag`` that is spliced into every prompt generated for
that style.

Lookups return ``None`` for unknown identifiers; turning absence into an
HTTP 404 is the caller's job.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Style(BaseModel):
    """A single icon style.

    Attributes:
        id: Stable identifier sent by clients (e.g. ``"pastel-flat"``).
        label: Human-readable name shown in style pickers.
        description: Short summary for the style listing endpoint.
        prompt_tag: Descriptive fragment appended to every prompt.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str
    prompt_tag: str


ICON_STYLES: tuple[Style, ...] = (
    Style(
        id="pastel-flat",
        label="Style 1 – Soft Pastel Flat",
        description="Flat pastel icon style, soft pastel colors, smooth vector shapes",
        prompt_tag=(
            "flat pastel icon style, soft pastel colors, smooth vector shapes, "
            "minimal detail, no text, clean white background"
        ),
    ),
    Style(
        id="glossy-bubble",
        label="Style 2 – Glossy Bubble",
        description="Glossy 3D bubble icons, soft reflections and highlights",
        prompt_tag=(
            "glossy 3D bubble icons, soft reflections and highlights, rounded shapes, "
            "vibrant colors, no text, clean white background"
        ),
    ),
    Style(
        id="minimal-line",
        label="Style 3 – Minimal Line",
        description="Minimal monoline icon style, thin outlines, simple forms",
        prompt_tag=(
            "minimal monoline icon style, thin outlines, simple forms, "
            "subtle accent colors, no text, white background"
        ),
    ),
    Style(
        id="clay-3d",
        label="Style 4 – 3D Clay",
        description="3D clay icon style, soft clay texture, rounded forms",
        prompt_tag=(
            "3D clay icon style, soft clay texture, rounded forms, "
            "studio lighting, no text, white background"
        ),
    ),
    Style(
        id="playful-cartoon",
        label="Style 5 – Playful Cartoon",
        description="Playful cartoon icon style, bold outlines, exaggerated shapes",
        prompt_tag=(
            "playful cartoon icon style, bold outlines, exaggerated shapes, "
            "bright colors, no text, flat white background"
        ),
    ),
)

_STYLES_BY_ID: dict[str, Style] = {style.id: style for style in ICON_STYLES}

STYLE_IDS: tuple[str, ...] = tuple(_STYLES_BY_ID)


def get_style_by_id(style_id: str) -> Style | None:
    """Return the style registered under *style_id*, or ``None``."""
    return _STYLES_BY_ID.get(style_id)


def list_styles() -> tuple[Style, ...]:
    """Return every style in catalog order."""
    return ICON_STYLES
