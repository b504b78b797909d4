"""VantageCheck core source package.

This package contains the components of the API test suite:
- client: Playwright request-context client for the two API operations
- validator: Pydantic response schemas and assertion checks
- scenarios: Scenario framework (suite base class, results)
- suites: Currency exchange rate and daily time series suites
- reporter: Pandas/Plotly-based pass/fail reporting
- logger: Structured JSON logging configuration
- exceptions: Custom exception hierarchy
"""

__version__ = "1.0.0"
