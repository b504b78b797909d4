"""Concrete suites for the CURRENCY_EXCHANGE_RATE and TIME_SERIES_DAILY endpoints.

Each scenario is a linear request -> status -> parse -> assert sequence.
The first scenario of each suite also checks the security headers.
"""

from src.client import FUNCTION_EXCHANGE_RATE, FUNCTION_TIME_SERIES_DAILY, read_json_body
from src.scenarios import BaseSuite, scenario
from src.validator import (
    INVALID_CALL_MESSAGE,
    MISSING_API_KEY_MESSAGE,
    parse_exchange_rate,
    parse_stock_time_series,
    validate_currency_metadata,
    validate_error_message,
    validate_exchange_rates,
    validate_exchange_rates_for_same_currency,
    validate_meta_data,
    validate_security_headers,
    validate_status,
    validate_time_series_data,
)


class CurrencyExchangeRateSuite(BaseSuite):
    """Foreign exchange rate scenarios."""

    BASE_CURRENCY = "USD"
    BASE_CURRENCY_NAME = "United States Dollar"
    TARGET_CURRENCY = "EUR"
    TARGET_CURRENCY_NAME = "Euro"
    INVALID_CURRENCY = "XYZ"

    @property
    def name(self) -> str:
        return "currency_exchange_rate"

    @property
    def endpoint(self) -> str:
        return FUNCTION_EXCHANGE_RATE

    async def _check_pair(
        self,
        from_currency: str,
        from_name: str,
        to_currency: str,
        to_name: str,
        same_currency: bool = False,
        check_headers: bool = False,
    ) -> None:
        response = await self.client.fetch_exchange_rate(from_currency, to_currency)
        validate_status(response)

        rate = parse_exchange_rate(await read_json_body(response))
        validate_currency_metadata(rate, from_currency, from_name, to_currency, to_name)

        if same_currency:
            validate_exchange_rates_for_same_currency(rate)
        else:
            validate_exchange_rates(rate)

        if check_headers:
            validate_security_headers(response.headers)

    @scenario("TC-01", "Ensure API returns correct exchange rate for valid currencies")
    async def valid_currencies(self) -> None:
        await self._check_pair(
            self.BASE_CURRENCY,
            self.BASE_CURRENCY_NAME,
            self.TARGET_CURRENCY,
            self.TARGET_CURRENCY_NAME,
            check_headers=True,
        )

    @scenario("TC-02", "Ensure API returns data for various valid currency pairs")
    async def other_currency_pair(self) -> None:
        await self._check_pair("GBP", "British Pound Sterling", "JPY", "Japanese Yen")

    @scenario("TC-03", "Ensure API returns expected output when from_currency and to_currency are the same")
    async def same_currency(self) -> None:
        await self._check_pair(
            self.BASE_CURRENCY,
            self.BASE_CURRENCY_NAME,
            self.BASE_CURRENCY,
            self.BASE_CURRENCY_NAME,
            same_currency=True,
        )

    @scenario("TC-04", "Ensure API responds correctly if currency codes are lowercase or mixed case")
    async def mixed_case_codes(self) -> None:
        await self._check_pair("uSd", self.BASE_CURRENCY_NAME, "EuR", self.TARGET_CURRENCY_NAME)

    @scenario("TC-05", "Check response when an invalid currency code is provided")
    async def invalid_currency(self) -> None:
        response = await self.client.fetch_exchange_rate(self.INVALID_CURRENCY, self.TARGET_CURRENCY)
        validate_status(response)
        validate_error_message(await read_json_body(response), INVALID_CALL_MESSAGE)

    @scenario("TC-06", "Check behavior when API key is missing")
    async def missing_api_key(self) -> None:
        response = await self.client.fetch_exchange_rate_without_api_key(
            self.INVALID_CURRENCY, self.TARGET_CURRENCY
        )
        validate_status(response)
        validate_error_message(await read_json_body(response), MISSING_API_KEY_MESSAGE)


class StockTimeSeriesSuite(BaseSuite):
    """Daily time series stock data scenarios."""

    INVALID_SYMBOL = "INVALID123"

    @property
    def name(self) -> str:
        return "time_series_daily"

    @property
    def endpoint(self) -> str:
        return FUNCTION_TIME_SERIES_DAILY

    async def _check_symbol(
        self,
        symbol: str,
        output_size: str = "compact",
        output_size_label: str = "Compact",
        check_headers: bool = False,
    ) -> None:
        response = await self.client.fetch_stock_data(symbol, output_size)
        validate_status(response)

        series = parse_stock_time_series(await read_json_body(response))
        validate_meta_data(series.meta_data, symbol, output_size_label)
        validate_time_series_data(series.time_series, series.meta_data.last_refreshed)

        if check_headers:
            validate_security_headers(response.headers)

    @scenario("TC-01", "Ensure API returns correct stock data for a valid symbol")
    async def valid_symbol(self) -> None:
        await self._check_symbol("IBM", check_headers=True)

    @scenario("TC-02", "Ensure API returns data for various valid stock symbols")
    async def other_symbol(self) -> None:
        await self._check_symbol("AAPL")

    @scenario("TC-03", "Validate case insensitivity in symbol parameter")
    async def lowercase_symbol(self) -> None:
        await self._check_symbol("ibm")

    @scenario("TC-04", "Validate response with additional optional parameters")
    async def full_output_size(self) -> None:
        await self._check_symbol("GOOGL", output_size="full", output_size_label="Full size")

    @scenario("TC-05", "Check response when an invalid stock symbol is provided")
    async def invalid_symbol(self) -> None:
        response = await self.client.fetch_stock_data(self.INVALID_SYMBOL)
        validate_status(response)
        validate_error_message(await read_json_body(response), INVALID_CALL_MESSAGE)

    @scenario("TC-06", "Check behavior when API key is missing")
    async def missing_api_key(self) -> None:
        response = await self.client.fetch_stock_data_without_api_key("IBM")
        validate_status(response)
        validate_error_message(await read_json_body(response), MISSING_API_KEY_MESSAGE)


SUITE_REGISTRY: dict[str, type[BaseSuite]] = {
    "currency_exchange_rate": CurrencyExchangeRateSuite,
    "time_series_daily": StockTimeSeriesSuite,
}
