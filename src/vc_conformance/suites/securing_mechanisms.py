"""4.12 / 5.13 Securing Mechanisms."""

from typing import Any

from ..assertions import ensure, expect_accepted, expect_rejected, includes_all_required_properties, is_secured
from ..documents import VERIFIABLE_CREDENTIAL, has_type
from ..envelopes import extract_if_enveloped
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#securing-mechanisms"
MISSING = 'Issuer failed to issue "credential-ok.json".'

suite = Suite("Securing Mechanisms", tag="vc2.0")


@suite.setup
def issue_credential(ctx: ScenarioContext) -> dict[str, Any]:
    return {"issued_vc": ctx.endpoints.issue(ctx.fixture("credential-ok.json"))}


def _issued(ctx: ScenarioContext) -> Any:
    issued = ctx.require("issued_vc", MISSING)
    ensure(has_type(extract_if_enveloped(issued), VERIFIABLE_CREDENTIAL), f"Expected {ctx.name} to issue a VC.")
    return issued


@suite.scenario(
    "A conforming document MUST be secured by at least one securing mechanism as described in "
    "Section 4.12 Securing Mechanisms.",
    LINK,
)
def document_secured(ctx: ScenarioContext) -> None:
    is_secured(_issued(ctx))


@suite.scenario(
    "A conforming issuer implementation produces conforming documents, MUST include all required "
    "properties in the conforming documents that it produces, and MUST secure the conforming "
    "documents it produces using a securing mechanism as described in Section 4.12 Securing Mechanisms.",
    LINK,
)
def issuer_produces_conforming(ctx: ScenarioContext) -> None:
    issued = _issued(ctx)
    includes_all_required_properties(issued)
    is_secured(issued)


@suite.scenario(
    "A conforming verifier implementation consumes conforming documents, MUST perform verification "
    "on a conforming document as described in Section 4.12 Securing Mechanisms, MUST check that each "
    "required property satisfies the normative requirements for that property, and MUST produce "
    "errors when non-conforming documents are detected.",
    LINK,
)
def verifier_checks_security(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify(_issued(ctx)), "Failed to verify credential.")
    expect_rejected(ctx.verify("credential-ok.json"), "Failed to reject a VC missing a `proof`.")
