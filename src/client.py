"""API client for the financial-data endpoints.

This module wraps a Playwright ``APIRequestContext`` and exposes the two
query operations under test, each with and without the API key:
- CURRENCY_EXCHANGE_RATE (realtime rate between two currencies)
- TIME_SERIES_DAILY (daily OHLCV bars for a stock symbol)

Every operation issues exactly one GET against the configured base URL and
returns the raw ``APIResponse``. Non-2xx statuses are returned, never raised:
the API reports its own errors inside HTTP 200 payloads and the scenarios
assert on them.

Design Rationale:
    The ApiClient uses Dependency Injection rather than a module-level
    singleton so tests can drive it with a mocked Playwright instance.
    The async context manager pattern guarantees the request context and
    the Playwright driver are released even when a scenario raises.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Self

from playwright.async_api import (
    APIRequestContext,
    APIResponse,
    Error as PlaywrightError,
    Playwright,
    async_playwright,
)

from config.settings import GlobalConfig, get_config
from src.exceptions import ClientInitializationError, PayloadError, TransportError
from src.logger import get_logger, mask_secrets

log = get_logger(__name__)

FUNCTION_EXCHANGE_RATE = "CURRENCY_EXCHANGE_RATE"
FUNCTION_TIME_SERIES_DAILY = "TIME_SERIES_DAILY"
DEFAULT_OUTPUT_SIZE = "compact"

_REDACTED = "***"


def build_query_params(
    function: str,
    api_key: str | None = None,
    **params: str,
) -> dict[str, str]:
    """Build the query string parameters for one API call.

    The ``apikey`` parameter is included only when a non-empty key is given,
    which is how the "without API key" operations are expressed.

    Args:
        function: API function name (e.g. ``TIME_SERIES_DAILY``).
        api_key: Credential to send, or None to omit it.
        **params: Function-specific parameters.

    Returns:
        Ordered parameter mapping ready for the request context.
    """
    query = {"function": function, **params}
    if api_key:
        query["apikey"] = api_key
    return query


def redact_params(params: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``params`` safe for logging."""
    return {k: (_REDACTED if k == "apikey" else v) for k, v in params.items()}


async def read_json_body(response: APIResponse) -> dict[str, Any]:
    """Read and decode a JSON object body.

    Args:
        response: Response returned by one of the client operations.

    Returns:
        The decoded JSON object.

    Raises:
        PayloadError: If the body is not JSON or not a JSON object.
    """
    text = await response.text()
    try:
        body = json.loads(text)
    except ValueError as exc:
        raise PayloadError(
            label="<body>",
            reason=f"Response is not valid JSON: {exc}",
            body_excerpt=text[:200],
        ) from exc

    if not isinstance(body, dict):
        raise PayloadError(
            label="<body>",
            reason=f"Expected a JSON object, got {type(body).__name__}",
            body_excerpt=text[:200],
        )
    return body


class ApiClient:
    """Issues the endpoint requests through a Playwright request context.

    Attributes:
        config: GlobalConfig instance for runtime configuration.
        _playwright: Playwright instance (initialized on context entry).
        _request: APIRequestContext shared by all calls of this client.

    Example:
        async with ApiClient.create() as client:
            response = await client.fetch_stock_data("IBM")
            assert response.status == 200
    """

    def __init__(self, config: GlobalConfig) -> None:
        """Initialize ApiClient with configuration.

        Args:
            config: GlobalConfig instance containing endpoint settings.

        Note:
            Do not instantiate directly. Use the `create()` class method
            for proper lifecycle management.
        """
        self.config = config
        self._playwright: Playwright | None = None
        self._request: APIRequestContext | None = None

    @classmethod
    @asynccontextmanager
    async def create(
        cls, config: GlobalConfig | None = None
    ) -> AsyncGenerator[Self, None]:
        """Factory method with async context manager for lifecycle management.

        Args:
            config: Optional GlobalConfig. Uses singleton if not provided.

        Yields:
            Initialized ApiClient instance.

        Raises:
            ClientInitializationError: If Playwright cannot be started.
        """
        if config is None:
            config = get_config()

        instance = cls(config)
        try:
            await instance._initialize()
            yield instance
        finally:
            await instance._cleanup()

    async def _initialize(self) -> None:
        """Start Playwright and open the shared request context.

        Raises:
            ClientInitializationError: If any initialization step fails.
        """
        log.info("Initializing API request context", base_url=self.config.base_url)

        try:
            self._playwright = await async_playwright().start()
            self._request = await self._playwright.request.new_context(
                timeout=self.config.request_timeout_ms,
                user_agent=self.config.user_agent,
                extra_http_headers={"Accept": "application/json"},
            )
        except Exception as exc:
            await self._cleanup()
            raise ClientInitializationError(reason=str(exc)) from exc

        log.info(
            "API request context ready",
            timeout_ms=self.config.request_timeout_ms,
            api_key_configured=self.config.has_api_key,
        )

    async def _get(self, params: dict[str, str]) -> APIResponse:
        """Send one GET to the base URL.

        Args:
            params: Query parameters, as built by `build_query_params`.

        Returns:
            The raw response, whatever its status code.

        Raises:
            ClientInitializationError: If the request context is not open.
            TransportError: If the request fails below HTTP.
        """
        if self._request is None:
            raise ClientInitializationError(reason="Request context not initialized")

        function = params["function"]
        log.debug("Sending request", url=self.config.base_url, params=redact_params(params))

        try:
            response = await self._request.get(self.config.base_url, params=params)
        except PlaywrightError as exc:
            raise TransportError(
                url=self.config.base_url,
                function=function,
                reason=mask_secrets(exc.message),
            ) from exc

        log.info(
            "Response received",
            function=function,
            status=response.status,
            content_type=response.headers.get("content-type"),
        )
        return response

    async def fetch_exchange_rate(self, from_currency: str, to_currency: str) -> APIResponse:
        """Request the realtime exchange rate for a currency pair."""
        return await self._get(
            build_query_params(
                FUNCTION_EXCHANGE_RATE,
                api_key=self.config.api_key.get_secret_value(),
                from_currency=from_currency,
                to_currency=to_currency,
            )
        )

    async def fetch_exchange_rate_without_api_key(
        self, from_currency: str, to_currency: str
    ) -> APIResponse:
        """Request the exchange rate with the ``apikey`` parameter omitted."""
        return await self._get(
            build_query_params(
                FUNCTION_EXCHANGE_RATE,
                from_currency=from_currency,
                to_currency=to_currency,
            )
        )

    async def fetch_stock_data(
        self, symbol: str, output_size: str = DEFAULT_OUTPUT_SIZE
    ) -> APIResponse:
        """Request daily time series data for a symbol.

        Args:
            symbol: Ticker symbol, sent as given.
            output_size: ``compact`` (latest ~100 points) or ``full``.
        """
        return await self._get(
            build_query_params(
                FUNCTION_TIME_SERIES_DAILY,
                api_key=self.config.api_key.get_secret_value(),
                symbol=symbol,
                outputsize=output_size,
            )
        )

    async def fetch_stock_data_without_api_key(
        self, symbol: str, output_size: str = DEFAULT_OUTPUT_SIZE
    ) -> APIResponse:
        """Request daily time series data with the ``apikey`` parameter omitted."""
        return await self._get(
            build_query_params(
                FUNCTION_TIME_SERIES_DAILY,
                symbol=symbol,
                outputsize=output_size,
            )
        )

    async def _cleanup(self) -> None:
        """Release the request context and stop Playwright."""
        if self._request is not None:
            try:
                await self._request.dispose()
            except Exception as exc:
                log.warning("Error disposing request context", error=str(exc))
            self._request = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.warning("Error stopping playwright", error=str(exc))
            self._playwright = None

        log.info("API client resources cleaned up")

    @property
    def is_initialized(self) -> bool:
        """Check if the request context is open and ready."""
        return self._playwright is not None and self._request is not None
