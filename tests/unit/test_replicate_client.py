"""Tests for ReplicateClient.

Uses anyio for async test support and ``httpx.MockTransport`` in place of the
Replicate API.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from iconforge.core.config import DEFAULT_REPLICATE_URL
from iconforge.core.errors import AppError, ErrorKind
from iconforge.core.replicate_client import ReplicateClient
from tests.conftest import SAMPLE_URLS, replicate_handler

IMAGE_URL = "https://replicate.delivery/pbxt/test-image.png"


def make_client(handler, token: str | None = "test-api-token") -> ReplicateClient:
    return ReplicateClient(token, transport=httpx.MockTransport(handler))


class TestConstruction:
    """Token resolution at construction time."""

    def test_explicit_token(self):
        ReplicateClient("custom-token")

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("REPLICATE_API_TOKEN", "env-token")
        ReplicateClient()

    def test_missing_token_raises(self):
        with pytest.raises(AppError) as exc_info:
            ReplicateClient()

        err = exc_info.value
        assert err.kind is ErrorKind.REMOTE_SERVICE
        assert err.status_code == 500
        assert "REPLICATE_API_TOKEN" in err.message


@pytest.mark.anyio
async def test_request_format() -> None:
    """The POST carries the fixed input parameters and required headers."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"output": IMAGE_URL})

    async with make_client(handler) as client:
        result = await client.generate_single_icon("test prompt")

    assert result == IMAGE_URL
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == DEFAULT_REPLICATE_URL
    assert request.headers["Authorization"] == "Bearer test-api-token"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Prefer"] == "wait"
    assert json.loads(request.content) == {
        "input": {
            "prompt": "test prompt",
            "num_outputs": 1,
            "aspect_ratio": "1:1",
            "megapixels": "0.25",
            "output_format": "png",
            "output_quality": 90,
        }
    }


@pytest.mark.anyio
async def test_env_token_used_for_authorization(monkeypatch) -> None:
    monkeypatch.setenv("REPLICATE_API_TOKEN", "env-token")
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"output": IMAGE_URL})

    async with make_client(handler, token=None) as client:
        await client.generate_single_icon("p")

    assert seen == ["Bearer env-token"]


@pytest.mark.anyio
async def test_array_output_takes_first_element() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"output": [IMAGE_URL, "https://other.png"]})

    async with make_client(handler) as client:
        assert await client.generate_single_icon("p") == IMAGE_URL


@pytest.mark.anyio
async def test_http_error_carries_upstream_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="API Error")

    async with make_client(handler) as client:
        with pytest.raises(AppError) as exc_info:
            await client.generate_single_icon("p")

    err = exc_info.value
    assert err.kind is ErrorKind.REMOTE_SERVICE
    assert err.status_code == 500
    assert err.message == "Replicate API request failed"
    assert err.context == {"status": 500, "originalError": "API Error"}


@pytest.mark.anyio
async def test_transport_error_is_502() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(AppError) as exc_info:
            await client.generate_single_icon("p")

    err = exc_info.value
    assert err.status_code == 502
    assert err.message == "Failed to generate icon"
    assert "connection refused" in err.context["originalError"]
    assert isinstance(err.__cause__, httpx.ConnectError)


@pytest.mark.anyio
async def test_unexpected_call_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("socket exploded")

    async with make_client(handler) as client:
        with pytest.raises(AppError) as exc_info:
            await client.generate_single_icon("p")

    err = exc_info.value
    assert err.kind is ErrorKind.REMOTE_SERVICE
    assert err.status_code == 502
    assert err.message == "Failed to generate icon"
    assert err.context == {"originalError": "socket exploded"}
    assert isinstance(err.__cause__, RuntimeError)


@pytest.mark.anyio
async def test_error_field_in_success_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "Invalid prompt", "status": "failed"})

    async with make_client(handler) as client:
        with pytest.raises(AppError, match="Replicate API error: Invalid prompt") as exc_info:
            await client.generate_single_icon("p")

    assert exc_info.value.status_code == 502
    assert exc_info.value.context == {"status": "failed", "originalError": "Invalid prompt"}


@pytest.mark.anyio
@pytest.mark.parametrize("body", [{}, {"output": None}, {"output": []}, {"output": ""}])
async def test_no_output(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    async with make_client(handler) as client:
        with pytest.raises(AppError, match="no output"):
            await client.generate_single_icon("p")


@pytest.mark.anyio
@pytest.mark.parametrize("output", [[None], [42], [""], 7, {"url": IMAGE_URL}])
async def test_invalid_image_url(output) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"output": output})

    async with make_client(handler) as client:
        with pytest.raises(AppError, match="invalid image URL") as exc_info:
            await client.generate_single_icon("p")

    assert exc_info.value.status_code == 502


@pytest.mark.anyio
async def test_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with make_client(handler) as client:
        with pytest.raises(AppError) as exc_info:
            await client.generate_single_icon("p")

    assert exc_info.value.kind is ErrorKind.REMOTE_SERVICE
    assert exc_info.value.status_code == 502


# ---------------------------------------------------------------------------
# Batch generation.
# ---------------------------------------------------------------------------

PROMPTS = ["prompt0", "prompt1", "prompt2", "prompt3"]


@pytest.mark.anyio
async def test_batch_returns_urls_in_input_order() -> None:
    urls = dict(zip(PROMPTS, SAMPLE_URLS))
    handler = replicate_handler(lambda prompt: httpx.Response(200, json={"output": urls[prompt]}))

    async with make_client(handler) as client:
        assert await client.generate_icons(PROMPTS) == SAMPLE_URLS


@pytest.mark.anyio
async def test_batch_is_concurrent_and_order_independent_of_completion() -> None:
    """All four calls are in flight together; results follow input order."""
    arrived = 0
    all_arrived = asyncio.Event()
    completed: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal arrived
        prompt = json.loads(request.content)["input"]["prompt"]
        arrived += 1
        if arrived == len(PROMPTS):
            all_arrived.set()
        # Would time out if the calls were issued one after another.
        await asyncio.wait_for(all_arrived.wait(), timeout=2)
        # Later prompts finish first.
        await asyncio.sleep(0.01 * (len(PROMPTS) - PROMPTS.index(prompt)))
        completed.append(prompt)
        return httpx.Response(200, json={"output": f"https://img/{prompt}.png"})

    async with make_client(handler) as client:
        result = await client.generate_icons(PROMPTS)

    assert completed == list(reversed(PROMPTS))
    assert result == [f"https://img/{p}.png" for p in PROMPTS]


@pytest.mark.anyio
async def test_batch_fails_if_any_call_fails() -> None:
    def respond(prompt: str) -> httpx.Response:
        if prompt == "prompt2":
            return httpx.Response(500, text="Failed")
        return httpx.Response(200, json={"output": IMAGE_URL})

    async with make_client(replicate_handler(respond)) as client:
        with pytest.raises(AppError) as exc_info:
            await client.generate_icons(PROMPTS)

    assert exc_info.value.status_code == 500
    assert exc_info.value.context["originalError"] == "Failed"


@pytest.mark.anyio
async def test_batch_dispatches_every_prompt() -> None:
    seen: list[str] = []

    def respond(prompt: str) -> httpx.Response:
        seen.append(prompt)
        return httpx.Response(200, json={"output": IMAGE_URL})

    async with make_client(replicate_handler(respond)) as client:
        await client.generate_icons(PROMPTS)

    assert sorted(seen) == PROMPTS
