"""Fixtures for the live endpoint suites.

Every test here sends real requests. They are skipped unless an API key
is configured through API_KEY, ALPHAVANTAGE_API_KEY or .env.
"""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from config.settings import GlobalConfig, get_config
from src.client import ApiClient


@pytest.fixture
def live_config() -> GlobalConfig:
    config = get_config()
    if not config.has_api_key:
        pytest.skip("No API key configured for live tests")
    return config


@pytest_asyncio.fixture
async def live_client(live_config: GlobalConfig) -> AsyncIterator[ApiClient]:
    async with ApiClient.create(live_config) as client:
        yield client
