"""
Shared fixtures for the sheetcheck test suite.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sheetcheck.config.config import Config, FetchConfig
from sheetcheck.crawler.http_client import BackoffFetchClient

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Tests that wire several components together")


# ============================================================================
# Core Test Fixtures
# ============================================================================


@pytest.fixture
def fetch_config() -> FetchConfig:
    return FetchConfig(delay_ms=1, timeout=5.0, max_attempts=5, base_backoff_ms=500, user_agent="TestBot/1.0")


@pytest.fixture
def test_config(tmp_path) -> Config:
    config = Config()
    config.fetch.delay_ms = 1
    config.fetch.timeout = 5.0
    config.fetch.user_agent = "TestBot/1.0"
    config.validation.concurrency = 4
    config.io.input_path = tmp_path / "input.csv"
    config.io.output_path = tmp_path / "out" / "results.csv"
    return config


@pytest_asyncio.fixture
async def http_client(fetch_config) -> AsyncGenerator[BackoffFetchClient, None]:
    """Fetch client whose pauses are recorded instead of slept."""
    async with BackoffFetchClient(fetch_config) as client:
        with patch.object(client, "_pause", new=AsyncMock()):
            yield client


@pytest.fixture
def deterministic_jitter():
    """Make backoff jitter return the upper bound of its range."""

    def mock_uniform(a, b):
        return b

    with patch("random.uniform", side_effect=mock_uniform):
        yield
