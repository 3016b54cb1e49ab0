"""4.3 Contexts."""

from ..assertions import ensure, expect_accepted, expect_rejected
from ..documents import BASE_CONTEXT_URL
from ..envelopes import extract_if_enveloped
from .base import SPEC_URL, UNTESTABLE, ScenarioContext, Suite

LINK = f"{SPEC_URL}#contexts"

suite = Suite("Contexts", tag="vc2.0")


@suite.scenario("Verifiable credentials MUST include a @context property.", LINK)
def credential_context_present(ctx: ScenarioContext) -> None:
    vc = extract_if_enveloped(expect_accepted(ctx.issue("credential-ok.json"), "Failed to issue a valid VC."))
    ensure(isinstance(vc.get("@context"), list), "Failed to respond with a VC with intact `@context`.")
    expect_rejected(ctx.issue("credential-no-context-fail.json"), "Failed to reject a VC without an `@context`.")


@suite.scenario("Verifiable presentations MUST include a @context property.", LINK)
def presentation_context_present(ctx: ScenarioContext) -> None:
    vp = extract_if_enveloped(ctx.prove("presentation-ok.json"))
    ensure(isinstance(vp.get("@context"), list), "Failed to respond with a VP with intact `@context`.")
    expect_rejected(ctx.verify_vp("presentation-no-context-fail.json"), "Failed to reject a VP without an `@context`.")


suite.skipped(
    "Application developers MUST understand every JSON-LD context used by their application.",
    UNTESTABLE,
    LINK,
)


@suite.scenario(
    "Verifiable credentials: The value of the @context property MUST be an ordered set where "
    "the first item is a URL with the value https://www.w3.org/ns/credentials/v2.",
    LINK,
)
def credential_base_context_first(ctx: ScenarioContext) -> None:
    vc = extract_if_enveloped(expect_accepted(ctx.issue("credential-ok.json"), "Failed to issue a valid VC."))
    ensure(isinstance(vc.get("@context"), list), "Failed to support `@context` as an Array.")
    ensure(vc["@context"][0] == BASE_CONTEXT_URL, "Failed to keep `@context` order intact.")
    expect_rejected(ctx.issue("credential-missing-base-context-fail.json"),
                    "Failed to reject a VC that lacked the VC base context URL.")


@suite.scenario(
    "Verifiable presentations: The value of the @context property MUST be an ordered set where "
    "the first item is a URL with the value https://www.w3.org/ns/credentials/v2.",
    LINK,
)
def presentation_base_context_first(ctx: ScenarioContext) -> None:
    vp = extract_if_enveloped(ctx.prove("presentation-ok.json"))
    ensure(isinstance(vp.get("@context"), list), "Failed to support `@context` as an Array.")
    ensure(vp["@context"][0] == BASE_CONTEXT_URL, "Failed to keep `@context` order intact.")
    expect_rejected(ctx.verify_vp("presentation-missing-base-context-fail.json"),
                    "Failed to reject a VP that lacked the VC base context URL.")


@suite.scenario(
    "Verifiable Credential `@context`: Subsequent items in the ordered set MUST be composed of any "
    "combination of URLs and/or objects where each is processable as a JSON-LD Context.",
    LINK,
)
def credential_subsequent_contexts(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-context-combo1-ok.json"), "Failed to support multiple `@context` URLs.")
    expect_accepted(ctx.issue("credential-context-combo2-ok.json"),
                    "Failed to support objects in the `@context` Array.")
    expect_rejected(ctx.issue("credential-context-combo3-fail.json"),
                    "Failed to reject a VC with an invalid `@context` URL.")
    expect_rejected(ctx.issue("credential-context-combo4-fail.json"),
                    "Failed to reject a VC with an unsupported `@context` value type (number).")


@suite.scenario(
    "Verifiable Presentation `@context`: Subsequent items in the ordered set MUST be composed of any "
    "combination of URLs and/or objects where each is processable as a JSON-LD Context.",
    LINK,
)
def presentation_subsequent_contexts(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-context-combo1-ok.json")),
                    "Failed to support multiple `@context` URLs in a VP.")
    expect_accepted(ctx.verify_vp(ctx.prove("presentation-context-combo2-ok.json")),
                    "Failed to support objects in the `@context` Array in a VP.")

    vp = ctx.prove("presentation-vc-ok.json")
    vp["@context"] = [vp["@context"][0], "https ://not-a-url/contexts/example/v1"]
    expect_rejected(ctx.verify_vp(vp), "Failed to reject a VP with an invalid `@context` URL.")
    vp["@context"][1] = 123192875
    expect_rejected(ctx.verify_vp(vp), "Failed to reject a VP with an unsupported `@context` value type (number).")
