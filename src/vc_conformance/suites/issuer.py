"""4.7 Issuer."""

from ..assertions import ensure, expect_accepted, expect_rejected
from ..envelopes import extract_if_enveloped
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#issuer"

suite = Suite("Issuer", tag="vc2.0")


@suite.scenario("A verifiable credential MUST have an issuer property.", LINK)
def issuer_present(ctx: ScenarioContext) -> None:
    vc = extract_if_enveloped(expect_accepted(ctx.issue("credential-ok.json"), "Failed to issue a valid VC."))
    ensure("issuer" in vc, "Failed to respond with a VC that has an `issuer`.")


@suite.scenario(
    "The value of the issuer property MUST be either a URL or an object containing an id property "
    "whose value is a URL; in either case, the issuer selects this URL to identify itself in a "
    "globally unambiguous way.",
    LINK,
)
def issuer_is_url(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-issuer-object-ok.json"),
                    "Failed to accept an issuer object with a URL id.")
    expect_rejected(ctx.issue("credential-issuer-no-url-fail.json"),
                    "Failed to reject an issuer identifier that was not a URL.")
    expect_rejected(ctx.issue("credential-issuer-null-fail.json"), "Failed to reject a null issuer identifier.")
    expect_rejected(ctx.issue("credential-issuer-object-id-null-fail.json"),
                    "Failed to reject an issuer object containing a null identifier.")
    expect_rejected(ctx.issue("credential-issuer-object-id-no-url-fail.json"),
                    "Failed to reject an issuer object containing a non-URL identifier.")
