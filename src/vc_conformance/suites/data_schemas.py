"""4.11 Data Schemas."""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#data-schemas"

suite = Suite("Data Schemas", tag="vc2.0")


@suite.scenario(
    "The value of the credentialSchema property MUST be one or more data schemas that provide verifiers "
    "with enough information to determine whether the provided data conforms to the provided schema(s).",
    LINK,
)
def one_or_more_schemas(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-schema-type-ok.json"),
                    "Failed to accept a VC with a single `credentialSchema`.")
    expect_accepted(ctx.issue("credential-schemas-ok.json"),
                    "Failed to accept a VC with multiple `credentialSchema` values.")


@suite.scenario(
    "Each credentialSchema MUST specify its type (for example, JsonSchema), and an id property that MUST "
    "be a URL identifying the schema file.",
    LINK,
)
def schema_type_and_id(ctx: ScenarioContext) -> None:
    expect_rejected(ctx.issue("credential-schema-no-type-fail.json"),
                    "Failed to reject a `credentialSchema` without a `type`.")
    expect_rejected(ctx.issue("credential-schema-no-id-fail.json"),
                    "Failed to reject a `credentialSchema` without an `id`.")
    expect_rejected(ctx.issue("credential-schema-non-url-id-fail.json"),
                    "Failed to reject a `credentialSchema` with a non-URL `id`.")


@suite.scenario(
    "If multiple schemas are present, validity is determined according to the processing rules outlined "
    "by each associated credentialSchema type property.",
    LINK,
)
def multiple_schemas(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-schemas-ok.json"),
                    "Failed to accept a VC with multiple `credentialSchema` values.")
