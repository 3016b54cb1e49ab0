"""7 Algorithms."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

suite = Suite("Algorithms", tag="vc2.0")

# A well-formed base58btc value that is not a signature over anything
FORGED_PROOF_VALUE = "z5nmMBw2u9TGKd9NxxHJtyZKgjN2Eh"


@suite.scenario(
    "This section contains an algorithm that conforming verifier implementations MUST run when verifying "
    "a verifiable credential or a verifiable presentation.",
    f"{SPEC_URL}#verification",
)
def verification(ctx: ScenarioContext) -> None:
    vc = expect_accepted(ctx.issue("credential-ok.json"), "Failed to issue a valid VC.")
    expect_accepted(ctx.verify(vc), "Failed to verify a valid VC.")
    vp = ctx.prove("presentation-ok.json")
    expect_accepted(ctx.verify_vp(vp), "Failed to verify a valid VP.")
    vp["proof"]["proofValue"] = FORGED_PROOF_VALUE
    expect_rejected(ctx.verify_vp(vp), "Failed to reject a VP with an invalid proof.")
