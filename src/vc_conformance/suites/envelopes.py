"""4.13.2 Enveloped Verifiable Credentials and Presentations.

These suites run against implementations tagged ``EnvelopingProof``. Issuer
checks run only when the implementation has such an issuer; verifier checks
use a fixed JOSE-secured credential and presentation.
"""

from typing import Any

from ..assertions import ensure, expect_accepted, expect_rejected
from ..documents import ENVELOPED_CREDENTIAL, ENVELOPED_PRESENTATION, EXAMPLES_CONTEXT_URL
from .base import SPEC_URL, ScenarioContext, Suite

CREDENTIAL_LINK = f"{SPEC_URL}#enveloped-verifiable-credentials"
PRESENTATION_LINK = f"{SPEC_URL}#enveloped-verifiable-presentations"

TAG = "EnvelopingProof"

credential_suite = Suite("Enveloped Verifiable Credentials", tag=TAG)
presentation_suite = Suite("Enveloped Verifiable Presentations", tag=TAG)


@credential_suite.setup
def issue_enveloped(ctx: ScenarioContext) -> dict[str, Any]:
    if ctx.endpoints.issuer is None:
        return {}
    return {"issued_vc": ctx.endpoints.issue(ctx.fixture("credential-ok.json"))}


def _issued(ctx: ScenarioContext) -> Any:
    if ctx.endpoints.issuer is None:
        return None
    issued = ctx.require("issued_vc", "Expected credential to be issued.")
    ensure(isinstance(issued, dict), "Expected the issued credential to be an object.")
    return issued


def _verifier_accepts(ctx: ScenarioContext) -> bool:
    if ctx.endpoints.verifier is None:
        return False
    expect_accepted(ctx.verify("enveloped-credential.json"), "Failed to accept an enveloped VC.")
    return True


@credential_suite.scenario(
    "The @context property of the object MUST be present and include a context, such as the base "
    "context for this specification, that defines at least the id, type, and "
    "EnvelopedVerifiableCredential terms as defined by the base context provided by this specification.",
    CREDENTIAL_LINK,
)
def credential_envelope_context(ctx: ScenarioContext) -> None:
    issued = _issued(ctx)
    if issued is not None:
        ensure("@context" in issued, "Expected the issued credential to have a `@context`.")
    if _verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-credential.json")
        negative["@context"] = []
        expect_rejected(ctx.verify(negative), "Failed to reject an enveloped VC with an empty context.")
        negative["@context"] = EXAMPLES_CONTEXT_URL
        expect_rejected(ctx.verify(negative), "Failed to reject an enveloped VC with an invalid context.")


@credential_suite.scenario(
    "The id value of the object MUST be a data: URL [RFC2397] that expresses a secured verifiable "
    "credential using an enveloping security scheme, such as Securing Verifiable Credentials using "
    "JOSE and COSE [VC-JOSE-COSE].",
    CREDENTIAL_LINK,
)
def credential_envelope_id(ctx: ScenarioContext) -> None:
    issued = _issued(ctx)
    if issued is not None:
        ensure("data:" in str(issued.get("id", "")), "Expecting id field to be a 'data:' scheme URL [RFC2397].")
    if _verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-credential.json")
        negative["id"] = negative["id"].split(",")[-1]
        expect_rejected(ctx.verify(negative), "Failed to reject an enveloped VC with an invalid data url id.")


@credential_suite.scenario("The type value of the object MUST be EnvelopedVerifiableCredential.", CREDENTIAL_LINK)
def credential_envelope_type(ctx: ScenarioContext) -> None:
    issued = _issued(ctx)
    if issued is not None:
        ensure(issued.get("type") == ENVELOPED_CREDENTIAL,
               "Expecting type field to be EnvelopedVerifiableCredential")
    if _verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-credential.json")
        del negative["type"]
        expect_rejected(ctx.verify(negative), "Failed to reject an enveloped VC with a missing `type`.")
        negative["type"] = ["VerifiableCredential"]
        expect_rejected(ctx.verify(negative), "Failed to reject an enveloped VC with an invalid `type`.")


def _vp_verifier_accepts(ctx: ScenarioContext) -> bool:
    if ctx.endpoints.vp_verifier is None:
        return False
    expect_accepted(ctx.verify_vp("enveloped-presentation.json"), "Failed to accept an enveloped VP.")
    return True


@presentation_suite.scenario(
    "The @context property of the object MUST be present and include a context, such as the base "
    "context for this specification, that defines at least the id, type, and "
    "EnvelopedVerifiablePresentation terms as defined by the base context provided by this specification.",
    PRESENTATION_LINK,
)
def presentation_envelope_context(ctx: ScenarioContext) -> None:
    if _vp_verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-presentation.json")
        negative["@context"] = []
        expect_rejected(ctx.verify_vp(negative), "Failed to reject Enveloped VP missing contexts.")
        negative["@context"] = [EXAMPLES_CONTEXT_URL]
        expect_rejected(ctx.verify_vp(negative), "Failed to reject Enveloped VP missing the base context.")


@presentation_suite.scenario(
    "The id value of the object MUST be a data: URL [RFC2397] that expresses a secured verifiable "
    "presentation using an enveloping securing mechanism, such as Securing Verifiable Credentials "
    "using JOSE and COSE [VC-JOSE-COSE].",
    PRESENTATION_LINK,
)
def presentation_envelope_id(ctx: ScenarioContext) -> None:
    if _vp_verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-presentation.json")
        negative["id"] = negative["id"].split(",")[-1]
        expect_rejected(ctx.verify_vp(negative), "Failed to reject Enveloped VP with an id that is not a data url.")


@presentation_suite.scenario("The type value of the object MUST be EnvelopedVerifiablePresentation.",
                             PRESENTATION_LINK)
def presentation_envelope_type(ctx: ScenarioContext) -> None:
    if _vp_verifier_accepts(ctx):
        negative = ctx.fixture("enveloped-presentation.json")
        negative["type"] = ["VerifiablePresentation"]
        expect_rejected(ctx.verify_vp(negative),
                        f'Failed to reject VP w/o type "{ENVELOPED_PRESENTATION}".')
