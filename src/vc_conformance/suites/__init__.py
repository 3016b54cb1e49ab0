"""Conformance suites in the order they are run."""

from . import (
    advanced_concepts,
    algorithms,
    conformance,
    contexts,
    credential_subject,
    data_schemas,
    envelopes,
    identifiers,
    issuer,
    names_descriptions,
    presentations,
    securing_mechanisms,
    status,
    types,
    validity_period,
    vc_api_issuer,
)
from .base import Scenario, ScenarioContext, Suite

ALL_SUITES: list[Suite] = [
    conformance.suite,
    contexts.suite,
    identifiers.suite,
    types.suite,
    names_descriptions.suite,
    issuer.suite,
    credential_subject.suite,
    validity_period.suite,
    status.suite,
    data_schemas.suite,
    securing_mechanisms.suite,
    presentations.suite,
    envelopes.credential_suite,
    envelopes.presentation_suite,
    advanced_concepts.suite,
    algorithms.suite,
    vc_api_issuer.suite,
    vc_api_issuer.jwt_suite,
]


def get_suite(name: str) -> Suite:
    """Look up a suite by name, case-insensitively.

    Raises:
        KeyError: If no suite has that name
    """
    for suite in ALL_SUITES:
        if suite.name.lower() == name.lower():
            return suite
    raise KeyError(name)


__all__ = ["ALL_SUITES", "Scenario", "ScenarioContext", "Suite", "get_suite"]
