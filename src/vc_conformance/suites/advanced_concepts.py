"""5 Advanced Concepts."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

suite = Suite("Advanced Concepts", tag="vc2.0")

RELATED = "relatedResource"


def _related(name: str) -> str:
    return f"{RELATED}/{RELATED}-{name}.json"


@suite.scenario(
    "When processing the active context defined by the base JSON-LD Context document defined in this "
    "specification, compliant JSON-LD-based processors produce an error when a JSON-LD context redefines "
    "any term.",
    f"{SPEC_URL}#semantic-interoperability",
)
def protected_terms(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-redef-type-fail.json"),
                    "Failed to reject a VC which redefines the `VerifiableCredential` type.")
    expect_rejected(ctx.issue("credential-redef-type2-fail.json"),
                    "Failed to reject a VC containing a redefined protected term.")


@suite.scenario(
    "The value of the relatedResource property MUST be one or more objects of the following form:",
    f"{SPEC_URL}#integrity-of-related-resources",
)
def related_resource_objects(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue(_related("digest-sri-ok")), "Failed to accept a VC with valid relatedResource objects.")
    expect_accepted(ctx.issue(_related("digest-multibase-ok")),
                    "Failed to accept a VC with valid relatedResource objects.")
    expect_accepted(ctx.issue(_related("with-mediaType-ok")),
                    "Failed to accept a VC with valid relatedResource.mediaType values.")
    expect_rejected(ctx.issue(_related("list-of-strings-fail")),
                    "Failed to reject a VC with a relatedResource as an array of strings.")


@suite.scenario(
    "The identifier for the resource is REQUIRED and conforms to the format defined in Section 4.4 Identifiers.",
    f"{SPEC_URL}#integrity-of-related-resources",
)
def related_resource_id(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue(_related("missing-id-fail")),
                    "Failed to reject a VC with a relatedResource with no `id` field.")


@suite.scenario(
    "The value MUST be unique among the list of related resource objects.",
    f"{SPEC_URL}#integrity-of-related-resources",
)
def related_resource_unique(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue(_related("duplicate-id-fail")),
                    "Failed to reject a VC with a relatedResource with a duplicate `id` field.")


@suite.scenario(
    "Each object associated with relatedResource MUST contain at least a digestSRI or a digestMultibase value.",
    f"{SPEC_URL}#integrity-of-related-resources",
)
def related_resource_digest(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue(_related("no-digest-fail")),
                    "Failed to reject a VC with a relatedResource with no digest info.")


@suite.scenario(
    "If the digest provided by the issuer does not match the digest computed for the retrieved resource, "
    "the conforming verifier implementation MUST produce an error.",
    f"{SPEC_URL}#integrity-of-related-resources",
)
def related_resource_mismatch(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue(_related("digest-sri-fail")),
                    "Failed to reject a VC with a relatedResource with wrong digest.")
    expect_rejected(ctx.issue(_related("digest-multibase-fail")),
                    "Failed to reject a VC with a relatedResource with wrong digest.")


@suite.scenario(
    "The value of the refreshService property MUST be one or more refresh services that provides enough "
    "information to the recipient's software such that the recipient can refresh the verifiable credential.",
    f"{SPEC_URL}#refreshing",
)
def refresh_services(ctx: ScenarioContext) -> None:
    # The refresh services are fictional, so only their shape is exercised
    expect_accepted(ctx.issue("credential-refresh-type-ok.json"), "Failed to accept a VC with a `refreshService`.")
    expect_accepted(ctx.issue("credential-refreshs-ok.json"),
                    "Failed to accept a VC with multiple `refreshService` values.")


@suite.scenario("Each refreshService value MUST specify its type.", f"{SPEC_URL}#refreshing")
def refresh_service_type(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-refresh-no-type-fail.json"),
                    "Failed to reject a VC with `refreshService` without a `type`.")


@suite.scenario(
    "The value of the termsOfUse property MUST specify one or more terms of use policies under which the "
    "creator issued the credential or presentation.",
    f"{SPEC_URL}#terms-of-use",
)
def terms_of_use(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-termsofuses-ok.json"),
                    "Failed to accept a VC with multiple `termsOfUse` values.")


@suite.scenario(
    "Each termsOfUse value MUST specify its type, for example, IssuerPolicy, and MAY specify its instance id.",
    f"{SPEC_URL}#terms-of-use",
)
def terms_of_use_type(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-termsofuse-missing-type-fail.json"),
                    "Failed to reject a VC with `termsOfUse` without a `type`.")
    expect_accepted(ctx.issue("credential-termsofuse-id-ok.json"),
                    "Failed to accept a VC with a `termsOfUse` instance `id`.")


@suite.scenario(
    "If present, the value associated with the evidence property is a single object or a set of one or "
    "more objects.",
    f"{SPEC_URL}#evidence",
)
def evidence(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-evidence-ok.json"), "Failed to accept a VC with `evidence`.")
    expect_accepted(ctx.issue("credential-evidences-ok.json"),
                    "Failed to accept a VC with multiple `evidence` values.")


@suite.scenario(
    "In order to avoid collisions regarding how the following properties are used, implementations MUST "
    "specify a type property in the value associated with the reserved property.",
    f"{SPEC_URL}#reserved-extension-points",
)
def reserved_extension_points(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-reserved-types-ok.json"),
                    "Failed to accept a VC with typed `renderMethod` and `confidenceMethod` values.")
    expect_rejected(ctx.issue("credential-render-method-no-type-fail.json"),
                    "Failed to reject a VC with `renderMethod` without a `type`.")
    expect_rejected(ctx.issue("credential-confidence-method-no-type-fail.json"),
                    "Failed to reject a VC with `confidenceMethod` without a `type`.")
