"""VantageCheck Entry Point.

This module is the bootstrap and orchestration layer for a standalone
run of the endpoint suites. It contains NO assertion logic - all
functional code resides in /src.

Responsibilities:
    1. Load and validate configuration
    2. Initialize logging infrastructure (fail-fast on error)
    3. Run the configured suites and report pass/fail per scenario
    4. Handle top-level exceptions with graceful shutdown

Usage:
    API_KEY=... python main.py
"""

import asyncio
import sys
from typing import NoReturn

from loguru import logger

from config.settings import GlobalConfig, get_config
from src.client import ApiClient
from src.exceptions import (
    ConfigValidationError,
    LoggingInitializationError,
    VantageCheckError,
)
from src.logger import configure_logging
from src.reporter import ReportGenerator
from src.scenarios import SuiteResult
from src.suites import SUITE_REGISTRY


def _validate_startup_requirements(config: GlobalConfig) -> None:
    """Validate critical startup requirements before any request is sent.

    Args:
        config: The validated GlobalConfig instance.

    Raises:
        SystemExit: If the output directory cannot be created.
        ConfigValidationError: If no API key is configured.
    """
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.critical(
            "Failed to create output directory",
            output_dir=str(config.output_dir),
            error=str(exc),
        )
        sys.exit(1)

    if not config.has_api_key:
        raise ConfigValidationError(
            field="api_key",
            value="",
            reason="Set API_KEY (or ALPHAVANTAGE_API_KEY) to run the suites",
        )

    logger.debug(
        "Startup validation complete",
        output_dir=str(config.output_dir),
        base_url=config.base_url,
        suites=config.suites,
    )


def _log_results(results: list[SuiteResult]) -> None:
    for suite_result in results:
        for r in suite_result.results:
            log_method = logger.info if r.passed else logger.error
            log_method(
                "Scenario outcome",
                suite=r.suite,
                scenario_id=r.scenario_id,
                outcome=r.outcome.upper(),
                title=r.title,
                detail=r.message,
            )


async def _run_suites(config: GlobalConfig) -> int:
    """Execute the configured suites against the live endpoint.

    Args:
        config: The validated GlobalConfig instance.

    Returns:
        Exit code (0 when every scenario passed, 1 otherwise).
    """
    logger.info(
        "Run started",
        app_name=config.app_name,
        environment=config.environment,
        base_url=config.base_url,
        suites=config.suites,
    )

    results: list[SuiteResult] = []
    async with ApiClient.create(config) as client:
        for suite_name in config.suites:
            suite = SUITE_REGISTRY[suite_name](client, config)
            results.append(await suite.run())

    _log_results(results)

    if config.generate_reports:
        reports = ReportGenerator(config).generate_all(results)
        logger.info(
            "Reports generated successfully",
            excel_path=str(reports["excel"]),
            dashboard_path=str(reports["dashboard"]),
        )

    passed = sum(r.passed_count for r in results)
    total = sum(r.total for r in results)

    if all(r.all_passed for r in results):
        logger.info("Run completed: all scenarios passed", passed=passed, total=total)
        return 0

    logger.error("Run completed with failures", passed=passed, total=total)
    return 1


def _handle_fatal_error(exc: Exception) -> NoReturn:
    """Handle fatal errors with structured logging and exit.

    Args:
        exc: The exception that caused the fatal error.
    """
    if isinstance(exc, VantageCheckError):
        logger.critical(
            "Fatal application error",
            error_type=type(exc).__name__,
            message=exc.message,
            context=exc.context,
        )
        sys.exit(1)

    logger.exception("Unexpected fatal error", error=str(exc))
    sys.exit(1)


def main() -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    try:
        config = get_config()
    except Exception as exc:
        # Cannot log yet - print to stderr
        print(f"FATAL: Configuration loading failed: {exc}", file=sys.stderr)
        return 1

    try:
        configure_logging(config)
    except LoggingInitializationError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        return 1

    try:
        _validate_startup_requirements(config)
    except SystemExit:
        raise
    except ConfigValidationError as exc:
        logger.critical("Startup validation failed", **exc.context)
        return 1

    try:
        return asyncio.run(_run_suites(config))
    except KeyboardInterrupt:
        logger.warning("Run interrupted by user (Ctrl+C)")
        return 130
    except Exception as exc:
        _handle_fatal_error(exc)


if __name__ == "__main__":
    sys.exit(main())
