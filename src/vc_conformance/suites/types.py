"""4.5 Types."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#types"

suite = Suite("Types", tag="vc2.0")


@suite.scenario("Verifiable credentials MUST contain a type property with an associated value.", LINK)
def credential_type_present(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-no-type-fail.json"), "Failed to reject a VC without a type.")


@suite.scenario("Verifiable presentations MUST contain a type property with an associated value.", LINK)
def presentation_type_present(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.verify_vp("presentation-no-type-fail.json"), "Failed to reject a VP without a type.")


@suite.scenario("The value of the type property MUST be one or more terms and/or absolute URL strings.", LINK)
def type_terms_or_urls(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-type-url-ok.json"),
                    "Failed to accept a VC with an additional type as a URL.")
    expect_accepted(ctx.issue("credential-type-mapped-url-ok.json"),
                    'Failed to accept a VC with an additional type defined in the "@context".')
    expect_rejected(ctx.issue("credential-type-mapped-nonurl-fail.json"),
                    "Failed to reject a VC with type mapped to an invalid URL.")
    expect_rejected(ctx.issue("credential-type-unmapped-fail.json"),
                    "Failed to reject a VC with an unmapped (via `@context`) type.")


@suite.scenario("If more than one (type) value is provided, the order does not matter.", LINK)
def type_order_irrelevant(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-type-urls-order-1-ok.json"),
                    "Failed to accept a VC with different type array ordering (VC type last).")
    expect_accepted(ctx.issue("credential-type-urls-order-2-ok.json"),
                    "Failed to accept a VC with different type array ordering (VC type middle).")


@suite.scenario('Verifiable Credential objects MUST have a type specified including "VerifiableCredential".', LINK)
def credential_type_required(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-optional-type-ok.json"), "Failed to accept a VC with additional type.")
    expect_rejected(ctx.issue("credential-missing-required-type-fail.json"),
                    "Failed to reject a VC missing the `VerifiableCredential` type.")


@suite.scenario('Verifiable Presentation objects MUST have a type specified including "VerifiablePresentation".',
                LINK)
def presentation_type_required(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-optional-type-ok.json")),
                    "Failed to accept VP with `@context` mapped type.")
    expect_rejected(ctx.verify_vp("presentation-missing-required-type-fail.json"),
                    "Failed to reject VP missing `VerifiablePresentation` type.")


def _typed_object_scenario(prop: str, ok_fixture: str, fail_fixture: str) -> None:
    @suite.scenario(f'"{prop}" objects MUST have a type specified.', LINK)
    def check(ctx: ScenarioContext) -> None:
        expect_accepted(ctx.issue(ok_fixture), f"Failed to accept a VC with `{prop}` with a `type`.")
        expect_rejected(ctx.issue(fail_fixture), f"Failed to reject a VC with `{prop}` without a `type`.")


_typed_object_scenario("credentialStatus", "credential-status-ok.json", "credential-status-missing-type-fail.json")
_typed_object_scenario("termsOfUse", "credential-termsofuse-ok.json",
                       "credential-termsofuse-missing-type-fail.json")
_typed_object_scenario("evidence", "credential-evidence-ok.json", "credential-evidence-missing-type-fail.json")
_typed_object_scenario("refreshService", "credential-refresh-type-ok.json", "credential-refresh-no-type-fail.json")
_typed_object_scenario("credentialSchema", "credential-schema-type-ok.json", "credential-schema-no-type-fail.json")
