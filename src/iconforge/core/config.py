"""Configuration management for the Iconforge icon service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the ICONFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (ICONFORGE_* prefix)
2. .env file in the project root
3. Default values defined in IconforgeConfig

Example .env file:
    ICONFORGE_REPLICATE_API_TOKEN=r8_xxxxxxxx
    ICONFORGE_ENVIRONMENT=production
    ICONFORGE_LOG_LEVEL=DEBUG
    ICONFORGE_SERVER_PORT=4000

The Replicate client additionally honours the plain ``REPLICATE_API_TOKEN``
variable, which is the name the Replicate tooling itself documents.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
It is read once at startup by :mod:`iconforge.api.main`; components receive
the values they need as constructor arguments rather than importing it.

Usage Example
-------------
    from iconforge.core.config import config

    print(config.server_port)
    print(config.environment)
"""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Predictions endpoint of the hosted FLUX schnell model.  Requests sent with
# ``Prefer: wait`` block until the prediction has finished.
DEFAULT_REPLICATE_URL = (
    "https://api.replicate.com/v1/models/black-forest-labs/flux-schnell/predictions"
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class IconforgeConfig(BaseSettings):
    """Main configuration for the Iconforge service.

    Attributes
    ----------
    Upstream Settings:
        replicate_api_token : str | None
            Bearer token for the Replicate API.  Required to start the server.
        replicate_base_url : str
            Predictions endpoint that receives one POST per icon.
        replicate_timeout_seconds : float | None
            Per-call timeout for upstream requests.  ``None`` disables the
            timeout; callers of the HTTP API impose their own.

    Runtime Settings:
        environment : Literal["development", "production", "test"]
            Error responses include stack traces only in development.
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root log level applied by :func:`configure_logging`.

    Server Settings:
        server_host : str
            Bind address for uvicorn.
        server_port : int
            Port for uvicorn (1024-65535).
        cors_origins : list[str]
            Origins allowed by the CORS middleware.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ICONFORGE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream
    replicate_api_token: str | None = Field(
        default=None,
        description="Replicate API token (falls back to REPLICATE_API_TOKEN)",
    )
    replicate_base_url: str = Field(
        default=DEFAULT_REPLICATE_URL,
        description="Replicate predictions endpoint",
    )
    replicate_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for each upstream call, None for no timeout",
        gt=0,
    )

    # Runtime
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment (stack traces only in development)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=4000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API",
    )

    @property
    def include_stack_traces(self) -> bool:
        """Whether error responses should carry a stack trace."""
        return self.environment == "development"


def configure_logging(level: str = "INFO") -> None:
    """Configure the process-wide logging sink.

    Called once at startup.  Module loggers created with
    ``logging.getLogger(__name__)`` inherit the root handler.

    Args:
        level: Name of the root log level.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


# Global configuration instance
config = IconforgeConfig()
