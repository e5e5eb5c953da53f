"""Shared fixtures for the MerchantGuard MCP test suite."""

from typing import Callable, List

import httpx
import pytest

from merchantguard_mcp.config import ClientConfig
from merchantguard_mcp.fallback import MockRiskGenerator

LIVE_API_URL = "https://guardscore.test/v1"


@pytest.fixture
def demo_config() -> ClientConfig:
    return ClientConfig()


@pytest.fixture
def live_config() -> ClientConfig:
    return ClientConfig(api_url=LIVE_API_URL, api_key="test-key")


@pytest.fixture
def generator(demo_config) -> MockRiskGenerator:
    return MockRiskGenerator(demo_config)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def recording_transport() -> Callable[..., RecordingTransport]:
    """Factory for transports answering with ``handler``."""
    return RecordingTransport
