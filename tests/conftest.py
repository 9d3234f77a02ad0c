"""Shared pytest fixtures for Iconforge tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Generator, Sequence

import httpx
import pytest
from fastapi.testclient import TestClient

from iconforge.api.controller import IconController
from iconforge.core.config import IconforgeConfig, config

SAMPLE_URLS = [
    "https://replicate.delivery/pbxt/icon-1.png",
    "https://replicate.delivery/pbxt/icon-2.png",
    "https://replicate.delivery/pbxt/icon-3.png",
    "https://replicate.delivery/pbxt/icon-4.png",
]


class StubGenerator:
    """In-memory stand-in for ReplicateClient.

    Records every batch of prompts it receives and either returns
    ``urls`` or raises ``error``.
    """

    def __init__(self, urls: Sequence[str] | None = None, error: Exception | None = None) -> None:
        self.urls = list(urls if urls is not None else SAMPLE_URLS)
        self.error = error
        self.calls: list[list[str]] = []

    async def generate_icons(self, prompts: Sequence[str]) -> list[str]:
        self.calls.append(list(prompts))
        if self.error is not None:
            raise self.error
        return self.urls[: len(prompts)]


def replicate_handler(
    outputs: Callable[[str], httpx.Response],
) -> Callable[[httpx.Request], httpx.Response]:
    """Wrap a prompt -> response function as an ``httpx.MockTransport`` handler."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return outputs(body["input"]["prompt"])

    return handler


@pytest.fixture
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio, the backend the code uses."""
    return "asyncio"


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch) -> None:
    """Keep the developer's Replicate token out of the tests."""
    monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
    monkeypatch.delenv("ICONFORGE_REPLICATE_API_TOKEN", raising=False)


@pytest.fixture
def test_config() -> IconforgeConfig:
    """Create a configuration isolated from the environment and .env files.

    Returns:
        IconforgeConfig instance for testing
    """
    return IconforgeConfig(
        _env_file=None,
        replicate_api_token="test-api-token",
        environment="test",
    )


@pytest.fixture
def stub_generator() -> StubGenerator:
    """A generator that succeeds with four sample URLs."""
    return StubGenerator()


@pytest.fixture
def test_client(monkeypatch, stub_generator: StubGenerator) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to ``stub_generator``.

    The lifespan handler is not run, so no Replicate client is created;
    the controller is installed on ``app.state`` directly.
    """
    from iconforge.api.main import app

    monkeypatch.setattr(config, "environment", "test")
    app.state.controller = IconController(stub_generator)
    yield TestClient(app, raise_server_exceptions=False)
    del app.state.controller
