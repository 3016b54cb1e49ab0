"""4.4 Identifiers."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#identifiers"

suite = Suite("Identifiers", tag="vc2.0")


@suite.scenario("If present, the value of the id property MUST be a single URL, which MAY be dereferenceable.", LINK)
def id_single_url(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-id-other-ok.json"), "Failed to accept a VC with a DID identifier.")
    expect_rejected(ctx.issue("credential-id-nonidentifier-fail.json"),
                    "Failed to reject a credential with a `null` identifier.")
    expect_accepted(ctx.issue("credential-id-single-ok.json"), "Failed to accept a VC with a valid identifier.")
    expect_accepted(ctx.issue("credential-id-subject-single-ok.json"),
                    "Failed to accept a VC with a valid credentialSubject identifier.")
    expect_rejected(ctx.issue("credential-id-multi-fail.json"), "Failed to reject a VC with multiple `id` values.")
    expect_rejected(ctx.issue("credential-id-subject-multi-fail.json"),
                    "Failed to reject a VC with multiple credentialSubject identifiers.")
    expect_rejected(ctx.issue("credential-id-not-url-fail.json"),
                    "Failed to reject a credential with an invalid identifier.")
