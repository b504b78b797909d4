"""Custom exception hierarchy for VantageCheck.

This module defines domain-specific exceptions that separate the two ways a
scenario can go wrong: the API under test answered with something that breaks
an expectation (``ResponseValidationError``), or the suite could not obtain a
usable answer at all (transport, payload or throttling errors). Each exception
carries contextual information for the log and the run report.

Design Rationale:
    - Prefer specific exceptions over generic Exception catches
    - Include context (endpoint, check, expected/actual) in exception messages
    - Upstream errors reported inside an HTTP 200 payload are NOT exceptions
      here; they are asserted by the scenarios
"""

from datetime import UTC, datetime
from typing import Any


class VantageCheckError(Exception):
    """Base exception for all VantageCheck errors.

    Attributes:
        message: Human-readable error description.
        context: Optional dictionary with additional debugging information.
        timestamp: UTC timestamp when the exception was raised.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(UTC)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format exception message with context for logging."""
        base = f"[{self.timestamp.isoformat()}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} | Context: {context_str}"
        return base


class ConfigValidationError(VantageCheckError):
    """Raised when configuration is unusable for the requested run.

    This exception indicates a startup failure - the suites cannot
    run without a usable endpoint and credential.
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(
            message=f"Configuration validation failed for '{field}': {reason}",
            context={"field": field, "value": value, "reason": reason},
        )


class ClientInitializationError(VantageCheckError):
    """Raised when the Playwright request context cannot be created or used."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Failed to initialize API client: {reason}",
            context={"reason": reason},
        )


class TransportError(VantageCheckError):
    """Raised when a request fails below HTTP (DNS, connection, timeout).

    Non-2xx status codes are NOT transport errors; the client returns
    those responses untouched.
    """

    def __init__(self, url: str, function: str, reason: str) -> None:
        super().__init__(
            message=f"Request for '{function}' to '{url}' failed: {reason}",
            context={"url": url, "function": function, "reason": reason},
        )
        self.url = url
        self.function = function


class PayloadError(VantageCheckError):
    """Raised when a response body cannot be read into the expected shape.

    Covers bodies that are not JSON, JSON that is not an object, and
    objects missing a required label or carrying unparsable values.
    """

    def __init__(self, label: str, reason: str, body_excerpt: str | None = None) -> None:
        super().__init__(
            message=f"Unusable payload at '{label}': {reason}",
            context={"label": label, "reason": reason, "body_excerpt": body_excerpt},
        )
        self.label = label


class UpstreamNoticeError(VantageCheckError):
    """Raised when the upstream replaced the data with an informational notice.

    The API answers some calls with HTTP 200 and a single ``Note`` or
    ``Information`` string, e.g. when a parameter is reserved for premium
    plans. Such a response says nothing about the endpoint's correctness,
    so it is reported as an error rather than an assertion failure.
    """

    def __init__(self, notice: str, expected_label: str, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Upstream notice returned instead of '{expected_label}'",
            context={"notice": notice, "expected_label": expected_label},
        )
        self.notice = notice
        self.expected_label = expected_label


class RateLimitError(UpstreamNoticeError):
    """Raised when the notice is a quota or call-frequency message."""

    def __init__(self, notice: str, expected_label: str) -> None:
        super().__init__(
            notice,
            expected_label,
            message=f"Request throttled by upstream instead of returning '{expected_label}'",
        )


class ResponseValidationError(VantageCheckError, AssertionError):
    """Raised when a response breaks an expectation of a scenario.

    Subclasses AssertionError so test harnesses report it as a failed
    assertion rather than an errored test.

    Attributes:
        check: Name of the check that failed.
        expected: The expected value or condition.
        actual: The observed value.
    """

    def __init__(self, check: str, expected: Any, actual: Any) -> None:
        super().__init__(
            message=f"Check '{check}' failed: expected {expected!r}, got {actual!r}",
            context={"check": check, "expected": expected, "actual": actual},
        )
        self.check = check
        self.expected = expected
        self.actual = actual


class ReportGenerationError(VantageCheckError):
    """Raised when report generation fails.

    Common causes include an empty run, I/O errors, or
    rendering failures.
    """

    def __init__(self, report_type: str, reason: str, output_path: str | None = None) -> None:
        super().__init__(
            message=f"Failed to generate {report_type} report: {reason}",
            context={"report_type": report_type, "reason": reason, "output_path": output_path},
        )


class LoggingInitializationError(VantageCheckError):
    """Raised when the logging system fails to initialize.

    This is a startup-blocking error - the runner does not proceed
    without a functioning logging infrastructure.
    """

    def __init__(self, log_dir: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to initialize logging at '{log_dir}': {reason}",
            context={"log_dir": log_dir, "reason": reason},
        )
