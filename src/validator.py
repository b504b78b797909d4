"""Response schemas and assertion checks.

This module implements:
- Pydantic schemas that read the API's fixed, numbered label keys
  (e.g. ``"5. Exchange Rate"``) into typed fields
- Check functions asserting status, security headers, metadata literals
  and the numeric invariants of exchange rates and daily bars

Design Rationale:
    Parsing and asserting are kept apart. A payload that cannot be read
    into a schema raises PayloadError (the scenario could not evaluate the
    endpoint); a payload that reads fine but breaks an expectation raises
    ResponseValidationError (the endpoint misbehaved). Prices are parsed as
    Decimal so the identical-currency rule ``rate == 1`` is exact.
"""

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from playwright.async_api import APIResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.exceptions import PayloadError, RateLimitError, ResponseValidationError, UpstreamNoticeError
from src.logger import get_logger

log = get_logger(__name__)

EXCHANGE_RATE_KEY = "Realtime Currency Exchange Rate"
META_DATA_KEY = "Meta Data"
TIME_SERIES_DAILY_KEY = "Time Series (Daily)"
ERROR_MESSAGE_KEY = "Error Message"
UPSTREAM_NOTICE_KEYS = ("Note", "Information")
QUOTA_NOTICE_PATTERN = re.compile(
    r"rate limit|call frequency|requests? per (?:second|minute|day)|spreading out", re.IGNORECASE
)

DAILY_INFORMATION = "Daily Prices (open, high, low, close) and Volumes"
TIME_ZONE_PATTERN = "US/Eastern"

INVALID_CALL_MESSAGE = "Invalid API call."
MISSING_API_KEY_MESSAGE = "the parameter apikey is invalid or missing."

SECURITY_HEADER_EXPECTATIONS: dict[str, str | re.Pattern[str]] = {
    "x-frame-options": re.compile(r"(DENY|SAMEORIGIN)"),  # clickjacking
    "x-content-type-options": "nosniff",  # MIME sniffing
}


class _LabelledSchema(BaseModel):
    """Base for schemas keyed by the API's label strings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ExchangeRateSchema(_LabelledSchema):
    """Realtime exchange rate between two currencies.

    Attributes:
        from_currency_code: Base currency code as echoed by the API.
        from_currency_name: Base currency display name.
        to_currency_code: Target currency code as echoed by the API.
        to_currency_name: Target currency display name.
        exchange_rate: Units of target currency per unit of base currency.
        last_refreshed: Timestamp of the quote.
        time_zone: Time zone of ``last_refreshed``.
        bid_price: Best bid.
        ask_price: Best ask.
    """

    from_currency_code: str = Field(..., alias="1. From_Currency Code")
    from_currency_name: str = Field(..., alias="2. From_Currency Name")
    to_currency_code: str = Field(..., alias="3. To_Currency Code")
    to_currency_name: str = Field(..., alias="4. To_Currency Name")
    exchange_rate: Decimal = Field(..., alias="5. Exchange Rate")
    last_refreshed: str | None = Field(default=None, alias="6. Last Refreshed")
    time_zone: str | None = Field(default=None, alias="7. Time Zone")
    bid_price: Decimal = Field(..., alias="8. Bid Price")
    ask_price: Decimal = Field(..., alias="9. Ask Price")


class StockMetaDataSchema(_LabelledSchema):
    """Metadata block of a daily time series response."""

    information: str = Field(..., alias="1. Information")
    symbol: str = Field(..., alias="2. Symbol")
    last_refreshed: str = Field(..., alias="3. Last Refreshed")
    output_size: str = Field(..., alias="4. Output Size")
    time_zone: str = Field(..., alias="5. Time Zone")


class DailyBarSchema(_LabelledSchema):
    """One trading day of OHLCV data."""

    open: Decimal = Field(..., alias="1. open")
    high: Decimal = Field(..., alias="2. high")
    low: Decimal = Field(..., alias="3. low")
    close: Decimal = Field(..., alias="4. close")
    volume: int = Field(..., alias="5. volume")

    @field_validator("volume", mode="before")
    @classmethod
    def parse_volume(cls, value: Any) -> int:
        """Accept integral strings only; ``"12.5"`` is not a share count."""
        if isinstance(value, str):
            value = value.strip()
            if not re.fullmatch(r"-?\d+", value):
                raise ValueError(f"Volume must be an integer, got '{value}'")
            return int(value)
        return value


class StockTimeSeriesSchema(_LabelledSchema):
    """Complete TIME_SERIES_DAILY response: metadata plus bars keyed by date."""

    meta_data: StockMetaDataSchema = Field(..., alias=META_DATA_KEY)
    time_series: dict[str, DailyBarSchema] = Field(..., alias=TIME_SERIES_DAILY_KEY)


class ErrorResponseSchema(_LabelledSchema):
    """Error payload returned with HTTP 200 on invalid input or missing key."""

    error_message: str = Field(..., alias=ERROR_MESSAGE_KEY)


def _expect(condition: bool, check: str, expected: Any, actual: Any) -> None:
    """Raise ResponseValidationError unless ``condition`` holds."""
    if not condition:
        log.warning("Check failed", check=check, expected=str(expected), actual=str(actual))
        raise ResponseValidationError(check=check, expected=expected, actual=actual)


def check_not_throttled(body: Mapping[str, Any], expected_label: str) -> None:
    """Detect an upstream notice standing in for the expected payload.

    Args:
        body: Decoded JSON body.
        expected_label: Top-level key the scenario expects.

    Raises:
        RateLimitError: If ``expected_label`` is absent and a quota notice is present.
        UpstreamNoticeError: If ``expected_label`` is absent and any other notice is present.
    """
    if expected_label in body:
        return
    for key in UPSTREAM_NOTICE_KEYS:
        notice = body.get(key)
        if not isinstance(notice, str):
            continue
        if QUOTA_NOTICE_PATTERN.search(notice):
            log.error("Upstream throttling notice received", notice=notice[:120])
            raise RateLimitError(notice=notice, expected_label=expected_label)
        log.error("Upstream notice received", notice=notice[:120])
        raise UpstreamNoticeError(notice=notice, expected_label=expected_label)


def _parse(schema: type[BaseModel], payload: Any, label: str) -> Any:
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise PayloadError(
            label=label,
            reason=f"{exc.error_count()} field error(s): {exc.errors(include_url=False)}",
        ) from exc


def parse_exchange_rate(body: Mapping[str, Any]) -> ExchangeRateSchema:
    """Read the exchange rate object out of a CURRENCY_EXCHANGE_RATE body.

    Raises:
        UpstreamNoticeError: If a notice (e.g. throttling) replaced the data.
        PayloadError: If the label is missing or a field is unparsable.
    """
    check_not_throttled(body, EXCHANGE_RATE_KEY)
    if EXCHANGE_RATE_KEY not in body:
        raise PayloadError(
            label=EXCHANGE_RATE_KEY,
            reason=f"Label missing, body keys: {sorted(body)}",
        )
    return _parse(ExchangeRateSchema, body[EXCHANGE_RATE_KEY], EXCHANGE_RATE_KEY)


def parse_stock_time_series(body: Mapping[str, Any]) -> StockTimeSeriesSchema:
    """Read metadata and bars out of a TIME_SERIES_DAILY body.

    Raises:
        UpstreamNoticeError: If a notice (e.g. throttling) replaced the data.
        PayloadError: If a label is missing or a field is unparsable.
    """
    check_not_throttled(body, META_DATA_KEY)
    for label in (META_DATA_KEY, TIME_SERIES_DAILY_KEY):
        if label not in body:
            raise PayloadError(label=label, reason=f"Label missing, body keys: {sorted(body)}")
    return _parse(StockTimeSeriesSchema, body, TIME_SERIES_DAILY_KEY)


def validate_status(response: APIResponse, expected: int = 200) -> None:
    """Assert the HTTP status code.

    The API signals errors in the payload, so every scenario, including
    the error scenarios, expects 200.
    """
    _expect(response.status == expected, "http_status", expected, response.status)


def validate_security_headers(headers: Mapping[str, str]) -> None:
    """Assert clickjacking and MIME-sniffing protection headers.

    Header names are compared case-insensitively.
    """
    normalized = {name.lower(): value for name, value in headers.items()}

    for header, expected in SECURITY_HEADER_EXPECTATIONS.items():
        _expect(header in normalized, f"header_present:{header}", header, sorted(normalized))
        actual = normalized[header]
        if isinstance(expected, re.Pattern):
            _expect(
                expected.search(actual) is not None,
                f"header_value:{header}",
                expected.pattern,
                actual,
            )
        else:
            _expect(actual == expected, f"header_value:{header}", expected, actual)


def validate_currency_metadata(
    rate: ExchangeRateSchema,
    from_currency: str,
    from_currency_name: str,
    to_currency: str,
    to_currency_name: str,
) -> None:
    """Assert the echoed currency codes and names.

    Codes are sent in any case and must come back upper-cased.
    """
    _expect(
        rate.from_currency_code == from_currency.upper(),
        "from_currency_code",
        from_currency.upper(),
        rate.from_currency_code,
    )
    _expect(
        rate.from_currency_name == from_currency_name,
        "from_currency_name",
        from_currency_name,
        rate.from_currency_name,
    )
    _expect(
        rate.to_currency_code == to_currency.upper(),
        "to_currency_code",
        to_currency.upper(),
        rate.to_currency_code,
    )
    _expect(
        rate.to_currency_name == to_currency_name,
        "to_currency_name",
        to_currency_name,
        rate.to_currency_name,
    )


def _validate_spread(rate: ExchangeRateSchema) -> None:
    _expect(rate.bid_price > 0, "bid_price_positive", "> 0", rate.bid_price)
    _expect(rate.ask_price > 0, "ask_price_positive", "> 0", rate.ask_price)
    _expect(
        rate.bid_price <= rate.exchange_rate,
        "bid_le_rate",
        f"<= {rate.exchange_rate}",
        rate.bid_price,
    )
    _expect(
        rate.ask_price >= rate.exchange_rate,
        "ask_ge_rate",
        f">= {rate.exchange_rate}",
        rate.ask_price,
    )


def validate_exchange_rates(rate: ExchangeRateSchema) -> None:
    """Assert rate, bid and ask are positive and bid <= rate <= ask."""
    _expect(rate.exchange_rate > 0, "exchange_rate_positive", "> 0", rate.exchange_rate)
    _validate_spread(rate)


def validate_exchange_rates_for_same_currency(rate: ExchangeRateSchema) -> None:
    """Assert the rate is exactly 1 and the spread still brackets it."""
    _expect(rate.exchange_rate == 1, "exchange_rate_identity", 1, rate.exchange_rate)
    _validate_spread(rate)


def validate_meta_data(
    meta: StockMetaDataSchema,
    expected_symbol: str,
    output_size: str = "Compact",
) -> None:
    """Assert the time series metadata literals.

    Args:
        meta: Parsed metadata block.
        expected_symbol: Symbol exactly as it was sent.
        output_size: Expected label, ``Compact`` or ``Full size``.
    """
    _expect(meta.information == DAILY_INFORMATION, "information", DAILY_INFORMATION, meta.information)
    _expect(meta.symbol == expected_symbol, "symbol", expected_symbol, meta.symbol)
    _expect(meta.output_size == output_size, "output_size", output_size, meta.output_size)
    _expect(
        re.search(TIME_ZONE_PATTERN, meta.time_zone) is not None,
        "time_zone",
        TIME_ZONE_PATTERN,
        meta.time_zone,
    )


def validate_daily_bar(day: str, bar: DailyBarSchema) -> None:
    """Assert one bar: positive prices, non-negative volume, low/high envelope."""
    for field in ("open", "high", "low", "close"):
        value = getattr(bar, field)
        _expect(value > 0, f"{field}_positive[{day}]", "> 0", value)
    _expect(bar.volume >= 0, f"volume_non_negative[{day}]", ">= 0", bar.volume)

    _expect(bar.low <= bar.open <= bar.high, f"open_within_range[{day}]", f"[{bar.low}, {bar.high}]", bar.open)
    _expect(bar.low <= bar.close <= bar.high, f"close_within_range[{day}]", f"[{bar.low}, {bar.high}]", bar.close)


def validate_time_series_data(
    time_series: Mapping[str, DailyBarSchema],
    last_refreshed: str,
) -> None:
    """Assert the series contains the last refreshed day and every bar is sane.

    Raises:
        ResponseValidationError: On the first violated invariant.
    """
    _expect(
        last_refreshed in time_series,
        "last_refreshed_present",
        last_refreshed,
        sorted(time_series)[-3:],
    )

    for day, bar in time_series.items():
        validate_daily_bar(day, bar)

    log.debug("Time series validated", bars=len(time_series), last_refreshed=last_refreshed)


def validate_error_message(body: Mapping[str, Any], expected_substring: str) -> None:
    """Assert the body carries an ``Error Message`` containing a substring.

    Raises:
        UpstreamNoticeError: If a notice replaced the error payload.
        ResponseValidationError: If the field is missing or does not match.
    """
    check_not_throttled(body, ERROR_MESSAGE_KEY)
    _expect(ERROR_MESSAGE_KEY in body, "error_message_present", ERROR_MESSAGE_KEY, sorted(body))

    try:
        error = ErrorResponseSchema.model_validate(body)
    except ValidationError as exc:
        raise PayloadError(label=ERROR_MESSAGE_KEY, reason=str(exc)) from exc

    _expect(
        expected_substring in error.error_message,
        "error_message_contains",
        expected_substring,
        error.error_message,
    )
