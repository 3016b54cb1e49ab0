"""Runs suites over the implementation matrix and records the results."""

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import httpx
import structlog

from .config import HarnessConfig
from .endpoints import TestEndpoints
from .errors import AssertionFailure, ConformanceError, NoMatchingEndpointError
from .fixtures import FixtureStore
from .registry import Implementation
from .suites.base import Scenario, ScenarioContext, Suite
from .transport import Transport

logger = structlog.get_logger(__name__)

PASSED = "passed"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class ScenarioResult:
    """Outcome of one scenario against one implementation."""

    suite: str
    implementation: str
    title: str
    link: str
    status: str
    reason: Optional[str] = None


@dataclass
class SuiteReport:
    """Results of one suite across the matrix."""

    suite: str
    tag: str
    column_label: str
    implemented: list[str] = field(default_factory=list)
    not_implemented: list[str] = field(default_factory=list)
    results: list[ScenarioResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def failed(self) -> list[ScenarioResult]:
        return [r for r in self.results if r.status == FAILED]

    def result(self, implementation: str, title: str) -> ScenarioResult:
        """Find the result for one cell of the matrix.

        Raises:
            KeyError: If the suite has no such result
        """
        for r in self.results:
            if r.implementation == implementation and r.title == title:
                return r
        raise KeyError((implementation, title))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _failure_reason(error: BaseException) -> str:
    if isinstance(error, AssertionFailure):
        return error.reason
    if isinstance(error, ConformanceError):
        return f"{type(error).__name__}: {error.message}"
    if isinstance(error, json.JSONDecodeError):
        return f"Malformed JSON response: {error}"
    return f"{type(error).__name__}: {error}"


def run_scenario(suite: Suite, scenario: Scenario, ctx: ScenarioContext) -> ScenarioResult:
    """Run one scenario and classify its outcome.

    A missing role endpoint skips the scenario; assertion failures, harness
    errors, transport errors and malformed responses fail it.
    """
    result = ScenarioResult(suite.name, ctx.name, scenario.title, scenario.link, PASSED)
    if scenario.skip is not None or scenario.check is None:
        result.status = SKIPPED
        result.reason = scenario.skip
        return result

    try:
        scenario.check(ctx)
    except NoMatchingEndpointError as e:
        result.status = SKIPPED
        result.reason = e.message
        logger.info("scenario_skipped", suite=suite.name, implementation=ctx.name, reason=e.message)
    except (AssertionFailure, ConformanceError, httpx.HTTPError, json.JSONDecodeError) as e:
        failure = e.with_context(ctx.name, scenario.title) if isinstance(e, AssertionFailure) else e
        result.status = FAILED
        result.reason = _failure_reason(failure)
        logger.warning("scenario_failed", suite=suite.name, implementation=ctx.name,
                       rule=scenario.title, reason=result.reason)
    else:
        logger.debug("scenario_passed", suite=suite.name, implementation=ctx.name, rule=scenario.title)
    return result


def _setup_state(suite: Suite, ctx: ScenarioContext) -> dict[str, Any]:
    if suite.setup_fn is None:
        return {}
    try:
        return suite.setup_fn(ctx) or {}
    except NoMatchingEndpointError as e:
        ctx.setup_error = e
        logger.info("suite_setup_skipped", suite=suite.name, implementation=ctx.name, reason=e.message)
        return {}
    except (ConformanceError, httpx.HTTPError, json.JSONDecodeError) as e:
        logger.warning("suite_setup_failed", suite=suite.name, implementation=ctx.name, reason=_failure_reason(e))
        return {}


def run_suite(
    suite: Suite,
    registry: Iterable[Implementation],
    transport: Optional[Transport] = None,
    fixtures: Optional[FixtureStore] = None,
    config: Optional[HarnessConfig] = None,
) -> SuiteReport:
    """Run a suite against every implementation that passes its tag filter.

    Implementations run one after another, and scenarios run in order within
    each implementation.

    Args:
        suite: Suite to run
        registry: Implementations under test
        transport: Transport for network calls; one is created if None
        fixtures: Fixture store; defaults to the packaged corpus
        config: Harness configuration

    Returns:
        SuiteReport with the matrix columns and one result per scenario
    """
    config = config or (transport.config if transport is not None else HarnessConfig())
    fixtures = fixtures or FixtureStore(config.fixtures_dir)
    owns_transport = transport is None
    transport = transport or Transport(config)

    partition = suite.partition(registry)
    report = SuiteReport(
        suite=suite.name,
        tag=suite.tag,
        column_label=suite.column_label,
        implemented=partition.implemented,
        not_implemented=partition.not_implemented,
    )
    logger.info("suite_started", suite=suite.name, implementations=report.implemented)

    try:
        for implementation in partition.match:
            endpoints = TestEndpoints(implementation, suite.tag, transport, config)
            ctx = ScenarioContext(endpoints, fixtures, config)
            ctx.state = _setup_state(suite, ctx)
            for scenario in suite.scenarios:
                report.results.append(run_scenario(suite, scenario, ctx))
    finally:
        if owns_transport:
            transport.close()

    logger.info("suite_finished", suite=suite.name, passed=report.count(PASSED),
                failed=report.count(FAILED), skipped=report.count(SKIPPED))
    return report


def run_suites(
    suites: Iterable[Suite],
    registry: Iterable[Implementation],
    transport: Optional[Transport] = None,
    fixtures: Optional[FixtureStore] = None,
    config: Optional[HarnessConfig] = None,
) -> list[SuiteReport]:
    """Run several suites sequentially, sharing one transport."""
    implementations = list(registry)
    config = config or (transport.config if transport is not None else HarnessConfig())
    owns_transport = transport is None
    transport = transport or Transport(config)
    try:
        return [run_suite(suite, implementations, transport, fixtures, config) for suite in suites]
    finally:
        if owns_transport:
            transport.close()
