"""Scenario framework implementing the Strategy Pattern.

This module provides the abstract base class for endpoint suites. A suite
is a class whose scenario methods are marked with ``@scenario``; the base
class discovers them, runs them in ID order and turns each outcome into a
``ScenarioResult``.

Design Rationale:
    Each endpoint's expectations live in one concrete suite, so adding an
    endpoint means adding a class without touching the runner or the
    reporter. Scenarios are independent: a failure is recorded and the
    suite moves on to the next one.
"""

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from config.settings import GlobalConfig, get_config
from src.client import ApiClient
from src.exceptions import ResponseValidationError, VantageCheckError
from src.logger import get_logger

log = get_logger(__name__)

Outcome = Literal["passed", "failed", "error"]

_SCENARIO_ATTR = "__scenario__"


def _scenario_sort_key(scenario_id: str) -> tuple:
    """Order IDs by their numeric runs so TC-2 precedes TC-10."""
    return tuple(int(part) if part.isdigit() else part for part in re.split(r"(\d+)", scenario_id))


@dataclass(frozen=True)
class ScenarioInfo:
    """Identity of a scenario as declared by ``@scenario``."""

    scenario_id: str
    title: str


def scenario(scenario_id: str, title: str) -> Callable:
    """Mark a suite coroutine method as a scenario.

    Example:
        @scenario("TC-01", "Valid symbol returns data")
        async def valid_symbol(self) -> None:
            ...
    """

    def decorator(func: Callable[..., Awaitable[None]]) -> Callable[..., Awaitable[None]]:
        setattr(func, _SCENARIO_ATTR, ScenarioInfo(scenario_id, title))
        return func

    return decorator


class ScenarioResult(BaseModel):
    """Outcome of a single scenario run.

    Attributes:
        suite: Name of the owning suite.
        scenario_id: Scenario identifier (e.g. ``TC-01``).
        title: Human-readable scenario description.
        outcome: ``passed``, ``failed`` (an expectation was broken) or
            ``error`` (the scenario could not be evaluated).
        message: Failure or error description, empty when passed.
        error_type: Exception class name for failed/errored scenarios.
        duration_ms: Wall-clock duration of the scenario.
    """

    suite: str
    scenario_id: str
    title: str
    outcome: Outcome
    message: str = ""
    error_type: str | None = None
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def passed(self) -> bool:
        return self.outcome == "passed"


class SuiteResult(BaseModel):
    """Container for the results of one suite run."""

    suite: str
    endpoint: str
    results: list[ScenarioResult]
    started_at: datetime
    finished_at: datetime

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == "passed")

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == "failed")

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == "error")

    @property
    def pass_rate(self) -> float:
        """Ratio of passed scenarios, 0.0 for an empty suite."""
        if self.total == 0:
            return 0.0
        return self.passed_count / self.total

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.passed_count == self.total


class BaseSuite(ABC):
    """Abstract base class for endpoint suites.

    Subclasses declare scenarios as ``@scenario``-marked coroutine methods
    that raise on failure and return None on success.

    Attributes:
        client: ApiClient used by every scenario of the suite.
        config: GlobalConfig instance for runtime configuration.
    """

    def __init__(self, client: ApiClient, config: GlobalConfig | None = None) -> None:
        self.client = client
        self.config = config or get_config()

    @property
    @abstractmethod
    def name(self) -> str:
        """Suite name used in logs and reports."""
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """API function exercised by the suite."""
        ...

    @classmethod
    def scenario_infos(cls) -> list[ScenarioInfo]:
        """Return the declared scenarios ordered by ID."""
        return [info for info, _ in cls._declared_scenarios()]

    @classmethod
    def scenario_ids(cls) -> list[str]:
        return [info.scenario_id for info in cls.scenario_infos()]

    @classmethod
    def _declared_scenarios(cls) -> list[tuple[ScenarioInfo, str]]:
        found: dict[str, tuple[ScenarioInfo, str]] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, attr in vars(klass).items():
                info = getattr(attr, _SCENARIO_ATTR, None)
                if isinstance(info, ScenarioInfo):
                    found[info.scenario_id] = (info, attr_name)
        return [found[key] for key in sorted(found, key=_scenario_sort_key)]

    def _lookup(self, scenario_id: str) -> tuple[ScenarioInfo, Callable[[], Awaitable[None]]]:
        for info, attr_name in self._declared_scenarios():
            if info.scenario_id == scenario_id:
                return info, getattr(self, attr_name)
        raise KeyError(f"{self.name} has no scenario '{scenario_id}'")

    async def run_scenario(self, scenario_id: str) -> None:
        """Run a single scenario, letting any failure propagate.

        Raises:
            KeyError: If the suite has no such scenario.
            ResponseValidationError: If the response breaks an expectation.
            VantageCheckError: If the scenario could not be evaluated.
        """
        info, func = self._lookup(scenario_id)
        log.info("Scenario started", suite=self.name, scenario_id=info.scenario_id, title=info.title)
        await func()
        log.info("Scenario passed", suite=self.name, scenario_id=info.scenario_id)

    async def _run_recorded(self, info: ScenarioInfo) -> ScenarioResult:
        started = time.perf_counter()
        outcome: Outcome = "passed"
        message = ""
        error_type = None

        try:
            await self.run_scenario(info.scenario_id)
        except ResponseValidationError as exc:
            outcome, message, error_type = "failed", exc.message, type(exc).__name__
            log.warning("Scenario failed", suite=self.name, scenario_id=info.scenario_id, **exc.context)
        except VantageCheckError as exc:
            outcome, message, error_type = "error", exc.message, type(exc).__name__
            log.error("Scenario errored", suite=self.name, scenario_id=info.scenario_id, error=exc.message)
        except Exception as exc:
            outcome, message, error_type = "error", str(exc), type(exc).__name__
            log.exception("Unexpected scenario error", suite=self.name, scenario_id=info.scenario_id)

        return ScenarioResult(
            suite=self.name,
            scenario_id=info.scenario_id,
            title=info.title,
            outcome=outcome,
            message=message,
            error_type=error_type,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def run(self) -> SuiteResult:
        """Run every scenario and collect the outcomes.

        Returns:
            SuiteResult with one ScenarioResult per declared scenario.
        """
        log.info("Starting suite", suite=self.name, endpoint=self.endpoint, scenarios=len(self.scenario_ids()))
        started_at = datetime.now(UTC)

        results = [await self._run_recorded(info) for info in self.scenario_infos()]

        suite_result = SuiteResult(
            suite=self.name,
            endpoint=self.endpoint,
            results=results,
            started_at=started_at,
            finished_at=datetime.now(UTC),
        )

        log.info(
            "Suite complete",
            suite=self.name,
            passed=suite_result.passed_count,
            failed=suite_result.failed_count,
            errors=suite_result.error_count,
            pass_rate=f"{suite_result.pass_rate:.1%}",
        )
        return suite_result
