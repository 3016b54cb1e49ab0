"""4.8 Credential Subject."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#credential-subject"

suite = Suite("Credential Subject", tag="vc2.0")


@suite.scenario("A verifiable credential MUST contain a credentialSubject property.", LINK)
def subject_present(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-no-subject-fail.json"),
                    "Failed to reject a VC without a `credentialSubject`.")


@suite.scenario(
    "The value of the credentialSubject property is a set of objects where each object MUST be the "
    "subject of one or more claims, which MUST be serialized inside the credentialSubject property.",
    LINK,
)
def subject_has_claims(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-subject-no-claims-fail.json"),
                    "Failed to reject a VC with an empty `credentialSubject`.")
    expect_accepted(ctx.issue("credential-subject-multiple-ok.json"),
                    "Failed to accept a VC with multiple `credentialSubject`s.")
    expect_rejected(ctx.issue("credential-subject-multiple-empty-fail.json"),
                    "Failed to reject VC containing an empty `credentialSubject`.")
