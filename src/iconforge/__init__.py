"""Iconforge - themed icon set generation on top of the Replicate API."""

__version__ = "0.1.0"

from iconforge.core.config import IconforgeConfig, config

__all__ = [
    "IconforgeConfig",
    "config",
]
