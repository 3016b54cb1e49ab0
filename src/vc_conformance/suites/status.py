"""4.10 Status."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, UNTESTABLE, ScenarioContext, Suite

LINK = f"{SPEC_URL}#status"

suite = Suite("Status", tag="vc2.0")


@suite.scenario(
    "If present (credentialStatus.id), the normative guidance in Section 4.4 Identifiers MUST be followed.",
    LINK,
)
def status_id(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-status-missing-id-ok.json"),
                    "Failed to accept a VC with a `credentialStatus` without an `id`.")
    expect_rejected(ctx.issue("credential-status-multiple-id-fail.json"),
                    "Failed to reject a VC with multiple `credentialStatus.id` values.")
    expect_rejected(ctx.issue("credential-status-nonurl-id-fail.json"),
                    "Failed to reject a VC with a non-URL `credentialStatus.id`.")


@suite.scenario(
    "(If a credentialStatus property is present), The type property is REQUIRED. It is used to express "
    "the type of status information expressed by the object. The related normative guidance in Section "
    "4.5 Types MUST be followed.",
    LINK,
)
def status_type(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-status-ok.json"), "Failed to accept a VC with a typed `credentialStatus`.")
    expect_rejected(ctx.issue("credential-status-missing-type-fail.json"),
                    "Failed to reject a VC with `credentialStatus` without a `type`.")
    expect_rejected(ctx.issue("credential-status-type-nonurl-fail.json"),
                    "Failed to reject a VC with a `credentialStatus.type` that is neither a term nor a URL.")


suite.skipped("Credential status specifications MUST NOT enable tracking of individuals.", UNTESTABLE, LINK)
