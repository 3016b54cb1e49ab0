"""Building blocks for data-driven conformance suites.

A :class:`Suite` holds an ordered list of :class:`Scenario` objects, each
checking one normative statement. The runner executes every scenario once
per implementation that passes the suite's tag filter, handing it a
:class:`ScenarioContext` bound to that implementation.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from ..config import HarnessConfig
from ..endpoints import TestEndpoints
from ..errors import AssertionFailure, NoMatchingEndpointError
from ..fixtures import FixtureStore
from ..matrix import MatrixPartition, filter_by_tag
from ..outcome import Outcome
from ..registry import Implementation

SPEC_URL = "https://www.w3.org/TR/vc-data-model-2.0/"

# Skip messages shown in place of a result
COVERED_ELSEWHERE = "Tested by other tests in this suite."
UNTESTABLE = "Untestable through automation."

Document = Union[str, dict[str, Any]]


@dataclass
class ScenarioContext:
    """Everything a scenario needs to exercise one implementation."""

    endpoints: TestEndpoints
    fixtures: FixtureStore
    config: HarnessConfig
    state: dict[str, Any] = field(default_factory=dict)
    setup_error: Optional[NoMatchingEndpointError] = None

    @property
    def name(self) -> str:
        return self.endpoints.name

    def fixture(self, name: str) -> Any:
        """Load a fresh copy of a fixture."""
        return self.fixtures.load(name)

    def _document(self, document: Document) -> Any:
        return self.fixture(document) if isinstance(document, str) else document

    def issue(self, document: Document) -> Outcome:
        """Issue a fixture (by name) or a document."""
        return self.endpoints.issue_outcome(self._document(document))

    def verify(self, document: Document) -> Outcome:
        return self.endpoints.verify_outcome(self._document(document))

    def verify_vp(self, document: Document, options: Optional[dict[str, Any]] = None) -> Outcome:
        return self.endpoints.verify_vp_outcome(self._document(document), options)

    def prove(self, document: Document, options: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Secure a presentation fixture (by name) or document locally."""
        return self.endpoints.prove_vp(self._document(document), options)

    def require(self, key: str, reason: str) -> Any:
        """Return a value stored by the suite setup, failing with ``reason`` if absent.

        Raises:
            NoMatchingEndpointError: If the value is absent because setup needed
                an endpoint the implementation does not expose
            AssertionFailure: If the value is absent for any other reason
        """
        value = self.state.get(key)
        if value is None:
            if self.setup_error is not None:
                raise self.setup_error
            raise AssertionFailure(reason)
        return value


ScenarioFn = Callable[[ScenarioContext], None]
SetupFn = Callable[[ScenarioContext], dict[str, Any]]


@dataclass(frozen=True)
class Scenario:
    """One normative statement and the check that exercises it.

    Attributes:
        title: The statement being tested
        link: Citation for the statement
        check: Callable raising AssertionFailure when the statement does not hold
        skip: When set, the scenario is reported as skipped with this message
    """

    title: str
    link: str
    check: Optional[ScenarioFn] = None
    skip: Optional[str] = None


class Suite:
    """An ordered collection of scenarios sharing a tag and setup.

    Args:
        name: Suite title
        tag: Capability tag implementations must carry
        role: Role the tag must appear on; None accepts any role
        column_label: Heading for the implementation column in reports
    """

    def __init__(self, name: str, tag: str, role: Optional[str] = None, column_label: str = "Implementer"):
        self.name = name
        self.tag = tag
        self.role = role
        self.column_label = column_label
        self.scenarios: list[Scenario] = []
        self.setup_fn: Optional[SetupFn] = None

    def __repr__(self) -> str:
        return f"Suite({self.name!r}, tag={self.tag!r}, scenarios={len(self.scenarios)})"

    def scenario(self, title: str, link: str = "", skip: Optional[str] = None) -> Callable[[ScenarioFn], ScenarioFn]:
        """Register the decorated function as a scenario."""

        def decorator(fn: ScenarioFn) -> ScenarioFn:
            self.scenarios.append(Scenario(" ".join(title.split()), link or SPEC_URL, fn, skip))
            return fn

        return decorator

    def skipped(self, title: str, message: str, link: str = "") -> None:
        """Register a scenario that is always reported as skipped."""
        self.scenarios.append(Scenario(" ".join(title.split()), link or SPEC_URL, None, message))

    def setup(self, fn: SetupFn) -> SetupFn:
        """Register a per-implementation setup whose return value becomes ``ctx.state``."""
        self.setup_fn = fn
        return fn

    def partition(self, registry: Iterable[Implementation]) -> MatrixPartition:
        return filter_by_tag(registry, [self.tag], self.role)
