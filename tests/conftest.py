"""Pytest configuration and shared fixtures for the VantageCheck test suite.

This module provides hermetic test infrastructure:
- No external network requests (Playwright is mocked)
- Payload factories that reproduce the API's labelled JSON shapes
- Isolated configuration (no cross-test contamination)

Design Rationale:
    Factory fixtures over static fixtures let each test state only the
    field it breaks. The mock_config fixture overrides the singleton
    GlobalConfig to prevent state leakage between tests.
"""

import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_mock import MockerFixture

from config.settings import GlobalConfig

SECURE_HEADERS = {
    "content-type": "application/json",
    "x-frame-options": "SAMEORIGIN",
    "x-content-type-options": "nosniff",
}

CURRENCY_NAMES = {
    "USD": "United States Dollar",
    "EUR": "Euro",
    "GBP": "British Pound Sterling",
    "JPY": "Japanese Yen",
}


@pytest.fixture
def mock_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GlobalConfig:
    """Provide isolated GlobalConfig with safe test defaults.

    Clears the lru_cache singleton before and after the test and routes
    all file output into tmp_path.
    """
    from config.settings import get_config

    get_config.cache_clear()

    log_dir = tmp_path / "logs"
    output_dir = tmp_path / "output"
    log_dir.mkdir()
    output_dir.mkdir()

    test_env = {
        "APP_NAME": "VantageCheck-Test",
        "ENVIRONMENT": "test",
        "DEBUG": "false",
        "LOG_LEVEL": "DEBUG",
        "LOG_DIR": str(log_dir),
        "LOG_ROTATION": "1 day",
        "LOG_RETENTION": "1 day",
        "BASE_URL": "https://test.example.com/query",
        "API_KEY": "test-key",
        "REQUEST_TIMEOUT_MS": "5000",
        "OUTPUT_DIR": str(output_dir),
    }

    monkeypatch.delenv("ALPHAVANTAGE_API_KEY", raising=False)
    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    config = get_config()

    yield config

    get_config.cache_clear()


@pytest.fixture
def exchange_rate_payload_factory() -> Callable[..., dict[str, Any]]:
    """Factory for CURRENCY_EXCHANGE_RATE bodies.

    Example:
        body = exchange_rate_payload_factory("USD", "EUR", bid="0.95")
    """

    def _generate(
        from_code: str = "USD",
        to_code: str = "EUR",
        rate: str = "0.92150000",
        bid: str = "0.92140000",
        ask: str = "0.92160000",
        overrides: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        from_code, to_code = from_code.upper(), to_code.upper()
        data = {
            "1. From_Currency Code": from_code,
            "2. From_Currency Name": CURRENCY_NAMES.get(from_code, from_code),
            "3. To_Currency Code": to_code,
            "4. To_Currency Name": CURRENCY_NAMES.get(to_code, to_code),
            "5. Exchange Rate": rate,
            "6. Last Refreshed": "2024-05-10 14:31:02",
            "7. Time Zone": "UTC",
            "8. Bid Price": bid,
            "9. Ask Price": ask,
        }
        data.update(overrides or {})
        return {"Realtime Currency Exchange Rate": data}

    return _generate


@pytest.fixture
def stock_payload_factory() -> Callable[..., dict[str, Any]]:
    """Factory for TIME_SERIES_DAILY bodies.

    Generates ``days`` consistent bars ending on 2024-05-10. ``bar_overrides``
    maps a date to field overrides for boundary testing.
    """

    def _generate(
        symbol: str = "IBM",
        output_size: str = "Compact",
        days: int = 3,
        bar_overrides: dict[str, dict[str, str]] | None = None,
        meta_overrides: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        series: dict[str, dict[str, str]] = {}
        for i in range(days):
            day = f"2024-05-{10 - i:02d}"
            base = 160.0 + i
            series[day] = {
                "1. open": f"{base:.4f}",
                "2. high": f"{base + 2:.4f}",
                "3. low": f"{base - 2:.4f}",
                "4. close": f"{base + 1:.4f}",
                "5. volume": str(3_000_000 + i * 1000),
            }
        for day, fields in (bar_overrides or {}).items():
            series.setdefault(day, {}).update(fields)

        meta = {
            "1. Information": "Daily Prices (open, high, low, close) and Volumes",
            "2. Symbol": symbol,
            "3. Last Refreshed": "2024-05-10",
            "4. Output Size": output_size,
            "5. Time Zone": "US/Eastern",
        }
        meta.update(meta_overrides or {})
        return {"Meta Data": meta, "Time Series (Daily)": series}

    return _generate


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Factory for mocked Playwright APIResponse objects."""

    def _make(
        body: Any = None,
        status: int = 200,
        headers: dict[str, str] | None = None,
        raw_text: str | None = None,
    ) -> MagicMock:
        response = MagicMock()
        response.status = status
        response.ok = 200 <= status < 300
        response.headers = dict(SECURE_HEADERS if headers is None else headers)
        text = raw_text if raw_text is not None else json.dumps(body)
        response.text = AsyncMock(return_value=text)
        return response

    return _make


@pytest.fixture
def mock_client(mocker: MockerFixture) -> MagicMock:
    """Provide an ApiClient stand-in whose fetch methods are AsyncMocks."""
    client = mocker.MagicMock()
    client.fetch_exchange_rate = mocker.AsyncMock()
    client.fetch_exchange_rate_without_api_key = mocker.AsyncMock()
    client.fetch_stock_data = mocker.AsyncMock()
    client.fetch_stock_data_without_api_key = mocker.AsyncMock()
    return client


def create_playwright_mock(
    mocker: MockerFixture,
) -> tuple[MagicMock, MagicMock, MagicMock]:
    """Create the mock chain for the ``async_playwright().start()`` pattern.

    Returns:
        Tuple of (async_playwright_instance, playwright_mock, request_context_mock)
    """
    request_context = mocker.MagicMock()
    request_context.get = mocker.AsyncMock()
    request_context.dispose = mocker.AsyncMock()

    playwright_mock = mocker.MagicMock()
    playwright_mock.request.new_context = mocker.AsyncMock(return_value=request_context)
    playwright_mock.stop = mocker.AsyncMock()

    async_playwright_instance = mocker.MagicMock()
    async_playwright_instance.start = mocker.AsyncMock(return_value=playwright_mock)

    return async_playwright_instance, playwright_mock, request_context


@pytest.fixture
def playwright_mocks(mocker: MockerFixture) -> tuple[MagicMock, MagicMock]:
    """Patch ``src.client.async_playwright`` and return (playwright, request_context)."""
    async_pw, pw_mock, request_context = create_playwright_mock(mocker)
    mocker.patch("src.client.async_playwright", return_value=async_pw)
    return pw_mock, request_context


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring full stack",
    )
    config.addinivalue_line(
        "markers",
        "live: sends real requests to the configured API (needs API_KEY)",
    )
