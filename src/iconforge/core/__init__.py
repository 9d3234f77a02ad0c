"""Core functionality for icon set generation.

This package holds everything below the HTTP layer:

- **config**: Environment-based configuration using Pydantic Settings
  (``ICONFORGE_`` prefix) and the process-wide logging setup.
- **errors**: The ``AppError`` / ``ErrorKind`` error model and its
  serialisation.
- **styles**: The immutable icon style catalog.
- **validation**: Request checks and parsing into ``IconRequest``.
- **prompt_builder**: Deterministic per-icon prompt compilation.
- **replicate_client**: Async client for the upstream image generator.

Usage Example
-------------
    from iconforge.core import ReplicateClient, build_icon_prompts, get_style_by_id

    style = get_style_by_id("pastel-flat")
    prompts = build_icon_prompts("coffee", style.prompt_tag)
    async with ReplicateClient() as client:
        urls = await client.generate_icons(prompts)
"""

from iconforge.core.config import IconforgeConfig, config
from iconforge.core.errors import AppError, ErrorKind
from iconforge.core.prompt_builder import build_icon_prompt, build_icon_prompts
from iconforge.core.replicate_client import ReplicateClient
from iconforge.core.styles import ICON_STYLES, Style, get_style_by_id
from iconforge.core.validation import IconRequest, parse_icon_request

__all__ = [
    "AppError",
    "ErrorKind",
    "ICON_STYLES",
    "IconRequest",
    "IconforgeConfig",
    "ReplicateClient",
    "Style",
    "build_icon_prompt",
    "build_icon_prompts",
    "config",
    "get_style_by_id",
    "parse_icon_request",
]
