"""4.13 Verifiable Presentations."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#verifiable-presentations"

suite = Suite("Verifiable Presentations", tag="vc2.0")


@suite.scenario("If [the `id` field is] present, the normative guidance in Section 4.4 Identifiers MUST be followed.",
                LINK)
def presentation_id(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-id-ok.json")),
                    f"Expected verifier {ctx.name} to verify a VP with a valid id.")


@suite.scenario("The type property MUST be present.", LINK)
def presentation_type_present(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-ok.json")),
                    f"Expected verifier {ctx.name} to verify a VP with initial type VerifiablePresentation.")
    expect_rejected(ctx.verify_vp(ctx.prove("presentation-no-type-fail.json")),
                    "Failed to reject a VP without a type.")


@suite.scenario(
    "One value of this property MUST be VerifiablePresentation, but additional types MAY be included. "
    "The related normative guidance in Section 4.5 Types MUST be followed.",
    LINK,
)
def presentation_type_value(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-optional-type-ok.json")),
                    f"Expected verifier {ctx.name} to verify a VP with an additional type.")
    expect_rejected(ctx.verify_vp(ctx.prove("presentation-missing-required-type-fail.json")),
                    "Failed to reject a VP missing the `VerifiablePresentation` type.")


@suite.scenario(
    "The verifiableCredential property MAY be present. The value MUST be one or more verifiable "
    "credential and/or enveloped verifiable credential objects (the values MUST NOT be non-object "
    "values such as numbers, strings, or URLs).",
    LINK,
)
def presentation_credentials(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-vc-ok.json")), "Failed to verify a VP with a VC.")
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-multiple-vc-ok.json")), "Failed to verify a valid VP.")
    expect_rejected(ctx.verify_vp(ctx.prove("presentation-vc-as-string-fail.json")),
                    "Failed to reject a VP containing a VC as a string.")


@suite.scenario("If present (holder), the value MUST be either a URL or an object containing an id property.",
                LINK)
def presentation_holder(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-holder-ok.json")),
                    "Failed to verify a valid VP with holder.")
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-holder-object-ok.json")),
                    "Failed to verify a valid VP with holder object.")
