"""1.3 Conformance."""

from ..assertions import expect_rejected
from .base import COVERED_ELSEWHERE, SPEC_URL, ScenarioContext, Suite

suite = Suite("Basic Conformance", tag="vc2.0")

suite.skipped(
    'Conforming document (compliance): VCDM "MUST be enforced." ("all relevant normative '
    'statements in Sections 4. Basic Concepts, 5. Advanced Concepts, and 6. Syntaxes")',
    COVERED_ELSEWHERE,
    link=f"{SPEC_URL}#conformance",
)


@suite.scenario(
    "verifiers MUST produce errors when non-conforming documents are detected.",
    link=f"{SPEC_URL}#conformance",
)
def nonconforming_document_rejected(ctx: ScenarioContext) -> None:
    document = {"type": ["NonconformingDocument"]}
    expect_rejected(ctx.verify(document), "Failed to reject malformed VC.")
    expect_rejected(ctx.verify_vp(document), "Failed to reject malformed VP.")
