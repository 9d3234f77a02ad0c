"""Pydantic request and response models for the Iconforge API.

These models document the JSON schema of every endpoint.  FastAPI uses the
response models for serialisation and OpenAPI generation.

The request body of ``POST /api/generate-icons`` is described by
:class:`GenerateIconsRequest` for documentation only: the route parses the raw
body with :func:`~iconforge.core.validation.parse_icon_request` so that bad
input yields this service's 400 error shape instead of FastAPI's 422.

Models
------
GenerateIconsRequest
    Payload for ``POST /api/generate-icons``.
GenerateIconsResponse
    Four image URLs in variant order.
ErrorResponse
    Body of every non-2xx response.
HealthResponse
    Body of ``GET /health``.
StyleInfo / StylesResponse
    Body of ``GET /api/styles``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GenerateIconsRequest(BaseModel):
    """Request body for ``POST /api/generate-icons``.

    Attributes:
        prompt: Theme or subject of the icon set (e.g. ``"coffee"``).
        style_id: Visual style identifier, sent as ``styleId``.
        colors: Optional ``#RRGGBB`` colors to base the palette on.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"prompt": "coffee", "styleId": "pastel-flat", "colors": ["#FF5733"]}
        },
    )

    prompt: str = Field(..., description="Theme or subject for the icon set.")
    style_id: str = Field(..., alias="styleId", description="Visual style identifier.")
    colors: list[str] | None = Field(
        default=None,
        description="Optional hex colors (format: #RRGGBB).",
    )


class GenerateIconsResponse(BaseModel):
    """Successful generation result."""

    images: list[str] = Field(
        ...,
        description="Exactly four image URLs, ordered by variant index.",
    )


class ErrorResponse(BaseModel):
    """Body returned for every failed request.

    Attributes:
        error: Human-readable message.
        statusCode: HTTP status code, repeated in the body.
        context: Optional structured details (field, value, upstream status).
        stack: Stack trace, present only in development.
    """

    error: str
    statusCode: int
    context: dict[str, Any] | None = None
    stack: str | None = None


class HealthResponse(BaseModel):
    """Liveness probe result."""

    status: str = "ok"
    timestamp: str
    uptime: float = Field(..., description="Seconds since the process started.")


class StyleInfo(BaseModel):
    """Public description of one icon style."""

    id: str
    label: str
    description: str


class StylesResponse(BaseModel):
    """All styles accepted by ``styleId``."""

    styles: list[StyleInfo]
