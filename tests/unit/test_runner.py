"""Tests for suite definitions and the scenario runner."""

from typing import Any

import httpx
import pytest

from vc_conformance import HarnessConfig, NoMatchingEndpointError, Transport, run_suite
from vc_conformance.errors import AssertionFailure, HTTPError
from vc_conformance.runner import FAILED, PASSED, SKIPPED
from vc_conformance.suites import ALL_SUITES, Suite, get_suite
from vc_conformance.suites.base import SPEC_URL, ScenarioContext


def build_suite(setup_state: Any = None) -> Suite:
    suite = Suite("Example", tag="vc2.0")

    if setup_state is not None:
        @suite.setup
        def setup(ctx: ScenarioContext) -> dict[str, Any]:
            if isinstance(setup_state, Exception):
                raise setup_state
            return setup_state

    @suite.scenario("Passes   when\n   nothing is wrong.")
    def passes(ctx: ScenarioContext) -> None:
        pass

    @suite.scenario("Fails on assertion.", "https://example.org/#rule")
    def fails(ctx: ScenarioContext) -> None:
        raise AssertionFailure("Expected something.")

    @suite.scenario("Fails on harness error.")
    def errors(ctx: ScenarioContext) -> None:
        raise HTTPError("boom", status=500)

    @suite.scenario("Skips without endpoint.")
    def no_endpoint(ctx: ScenarioContext) -> None:
        raise NoMatchingEndpointError(ctx.name, "verifiers", "vc2.0")

    @suite.scenario("Uses setup state.")
    def uses_state(ctx: ScenarioContext) -> None:
        ctx.require("value", "Setup did not run.")

    suite.skipped("Cannot be automated.", "Untestable through automation.")
    return suite


@pytest.fixture
def unused_transport(config: HarnessConfig) -> Transport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no requests expected")

    return Transport(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.mark.unit
class TestSuiteDefinitions:
    """The packaged suites."""

    def test_names_are_unique(self) -> None:
        names = [suite.name for suite in ALL_SUITES]

        assert len(names) == len(set(names))
        assert len(ALL_SUITES) == 18

    def test_titles_are_unique_within_suite(self) -> None:
        for suite in ALL_SUITES:
            titles = [scenario.title for scenario in suite.scenarios]
            assert len(titles) == len(set(titles)), suite.name
            assert suite.scenarios, suite.name

    def test_get_suite_case_insensitive(self) -> None:
        assert get_suite("contexts") is get_suite("Contexts")
        with pytest.raises(KeyError):
            get_suite("No Such Suite")

    def test_issuer_request_suites(self) -> None:
        data_integrity = get_suite("Issue Credential - Data Integrity")
        jwt = get_suite("Issue Credential - JWT")

        assert (data_integrity.tag, data_integrity.role) == ("vc-api", "issuers")
        assert (jwt.tag, jwt.role, jwt.column_label) == ("JWT", "issuers", "Issuer")
        jwt_titles = [scenario.title for scenario in jwt.scenarios]
        assert 'credential MAY have property "issuanceDate"' in jwt_titles
        assert 'credential MAY have property "issuanceDate"' not in [s.title for s in data_integrity.scenarios]
        assert len(jwt.scenarios) == len(data_integrity.scenarios) + 1

    def test_titles_normalized(self) -> None:
        suite = build_suite()

        assert suite.scenarios[0].title == "Passes when nothing is wrong."
        assert suite.scenarios[0].link == SPEC_URL
        assert suite.scenarios[1].link == "https://example.org/#rule"


@pytest.mark.unit
class TestRunSuite:
    """Classification of scenario outcomes."""

    def test_statuses(self, make_implementation, unused_transport: Transport, config: HarnessConfig) -> None:
        registry = [make_implementation(issuers=["vc2.0"]), make_implementation(name="other", issuers=["vc-api"])]

        report = run_suite(build_suite({"value": 1}), registry, unused_transport, config=config)

        assert report.implemented == ["vendor"]
        assert report.not_implemented == ["other"]
        assert [r.status for r in report.results] == [PASSED, FAILED, FAILED, SKIPPED, PASSED, SKIPPED]
        assert report.result("vendor", "Fails on assertion.").reason == "Expected something."
        assert report.result("vendor", "Fails on harness error.").reason == "HTTPError: boom"
        assert "no verifiers endpoint" in report.result("vendor", "Skips without endpoint.").reason
        assert report.result("vendor", "Cannot be automated.").reason == "Untestable through automation."
        assert report.count(FAILED) == 2
        assert len(report.failed) == 2

    def test_setup_failure_fails_dependent_scenarios(
        self, make_implementation, unused_transport: Transport, config: HarnessConfig
    ) -> None:
        suite = build_suite(HTTPError("issuer down", status=503))

        report = run_suite(suite, [make_implementation(issuers=["vc2.0"])], unused_transport, config=config)

        assert report.result("vendor", "Uses setup state.").status == FAILED
        assert report.result("vendor", "Uses setup state.").reason == "Setup did not run."
        assert report.result("vendor", "Passes when nothing is wrong.").status == PASSED

    def test_unknown_result(self, make_implementation, unused_transport: Transport, config: HarnessConfig) -> None:
        report = run_suite(build_suite(), [], unused_transport, config=config)

        assert report.results == []
        with pytest.raises(KeyError):
            report.result("vendor", "Passes when nothing is wrong.")

    def test_report_serializes(self, make_implementation, unused_transport: Transport, config: HarnessConfig) -> None:
        report = run_suite(build_suite({"value": 1}), [make_implementation(issuers=["vc2.0"])], unused_transport,
                           config=config)

        data = report.to_dict()

        assert data["suite"] == "Example"
        assert data["column_label"] == "Implementer"
        assert data["results"][0]["status"] == PASSED

    def test_setup_without_endpoint_skips_dependent_scenarios(
        self, make_implementation, unused_transport: Transport, config: HarnessConfig
    ) -> None:
        suite = build_suite(NoMatchingEndpointError("vendor", "issuers", "vc2.0"))

        report = run_suite(suite, [make_implementation(verifiers=["vc2.0"])], unused_transport, config=config)

        assert report.result("vendor", "Uses setup state.").status == SKIPPED
        assert "no issuers endpoint" in report.result("vendor", "Uses setup state.").reason
        assert report.result("vendor", "Passes when nothing is wrong.").status == PASSED

    def test_verifier_only_implementation_skips_securing_mechanisms(
        self, make_implementation, unused_transport: Transport, config: HarnessConfig
    ) -> None:
        registry = [make_implementation(verifiers=["vc2.0"], vpVerifiers=["vc2.0"])]

        report = run_suite(get_suite("Securing Mechanisms"), registry, unused_transport, config=config)

        assert report.implemented == ["vendor"]
        assert report.results
        assert {r.status for r in report.results} == {SKIPPED}
        assert report.count(FAILED) == 0
