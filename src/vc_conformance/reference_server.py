"""A minimal conforming implementation to run the suites against.

The server answers the four VC API routes. It performs structural checks,
verifies ``eddsa-jcs-2022`` proofs and the signatures of envelopes whose key
it can resolve, and retrieves related resources only from ``data:`` URLs.
The proofs it issues itself are synthetic. Use :meth:`ReferenceServer.as_transport`
to serve it in-process through httpx, or :meth:`ReferenceServer.serve` to
listen on a local socket.
"""

import base64
import copy
import hashlib
import json
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Optional

import httpx
import structlog
from multiformats import multibase, multihash

from .config import HarnessConfig
from .cose_sign1 import ES256Signer, ES256Verifier
from .documents import (
    BASE_CONTEXT_URL,
    ENVELOPED_CREDENTIAL,
    ENVELOPED_PRESENTATION,
    VERIFIABLE_CREDENTIAL,
    VERIFIABLE_PRESENTATION,
    concat_proof,
    context_values,
    has_type,
    is_datetime_stamp,
    is_enveloped,
    is_url,
)
from .envelopes import KeyResolver, envelop, extract_if_enveloped, parse_data_url, verify_envelope
from .errors import EnvelopeDecodeError
from .jose import b64url_decode
from .registry import Implementation, parse_implementation
from .signing import CRYPTOSUITE, verify_proof

logger = structlog.get_logger(__name__)

EXAMPLE_PROOF = {"type": "https://example.org/#ExampleTestSuiteProof"}
ISSUER_ID = "did:example:issuer"

# Properties whose values are objects that MUST declare a type
TYPED_PROPERTIES = (
    "credentialStatus",
    "termsOfUse",
    "evidence",
    "refreshService",
    "credentialSchema",
    "renderMethod",
    "confidenceMethod",
)

# Terms the v2 base context defines with @protected
PROTECTED_TERMS = frozenset({
    "id", "type", "name", "description", "issuer", "credentialSubject", "validFrom", "validUntil",
    "credentialStatus", "credentialSchema", "evidence", "refreshService", "termsOfUse", "relatedResource",
    "renderMethod", "confidenceMethod", "proof", "holder", "verifiableCredential", "digestSRI",
    "digestMultibase", "mediaType", "VerifiableCredential", "VerifiablePresentation",
    "EnvelopedVerifiableCredential", "EnvelopedVerifiablePresentation", "JsonSchema", "JsonSchemaCredential",
    "BitstringStatusList", "BitstringStatusListEntry", "BitstringStatusListCredential", "DataIntegrityProof",
})

LANGUAGE_VALUE_KEYS = frozenset({"@value", "@language", "@direction"})

SRI_ALGORITHMS = ("sha256", "sha384", "sha512")

# First byte of a multihash naming its hash function
MULTIHASH_NAMES = {b"\x12": "sha2-256", b"\x20": "sha2-384", b"\x13": "sha2-512"}


class RequestRejected(Exception):
    """Internal signal for a 400 response with a plain-text message."""


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


def _check_identifier(value: Any, what: str) -> None:
    if not is_url(value):
        raise RequestRejected(f"Expected {what} to be a single URL")


def _check_context(document: dict[str, Any], what: str) -> None:
    context = document.get("@context")
    if context is None:
        raise RequestRejected(f"Expected {what} @context property")
    if not isinstance(context, list) or not context or context[0] != BASE_CONTEXT_URL:
        raise RequestRejected("Expected @context ordered set with v2 base context")
    for item in context[1:]:
        if not (is_url(item) or isinstance(item, dict)):
            raise RequestRejected("Expected @context items to be URLs or objects")
        if isinstance(item, dict):
            redefined = sorted(PROTECTED_TERMS.intersection(item))
            if redefined:
                raise RequestRejected(f"Expected @context not to redefine protected term {redefined[0]}")


def _is_language_value(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("@value"), str)
        and set(value) <= LANGUAGE_VALUE_KEYS
        and isinstance(value.get("@language", ""), str)
        and value.get("@direction", "ltr") in ("ltr", "rtl")
    )


def _check_names(document: dict[str, Any], what: str) -> None:
    for prop in ("name", "description"):
        if prop not in document:
            continue
        values = _as_list(document[prop])
        if not values or not all(isinstance(v, str) or _is_language_value(v) for v in values):
            raise RequestRejected(f"Expected {what} {prop} to be a string or language value object")


def _check_subject(subject: Any) -> None:
    subjects = _as_list(subject)
    if not subjects or not all(isinstance(s, dict) and s for s in subjects):
        raise RequestRejected("Expected credentialSubject to be a non-empty object or list of objects")
    for s in subjects:
        if "id" in s:
            _check_identifier(s["id"], "credentialSubject id")


def _check_issuer(issuer: Any) -> None:
    if isinstance(issuer, dict):
        _check_names(issuer, "issuer")
        issuer = issuer.get("id")
    if not is_url(issuer):
        raise RequestRejected("Expected issuer to be a URL or an object with a URL id")


def _check_validity(credential: dict[str, Any], check_order: bool) -> None:
    for prop in ("validFrom", "validUntil"):
        if prop in credential and not is_datetime_stamp(credential[prop]):
            raise RequestRejected(f"Expected {prop} to be an XML Schema dateTimeStamp")
    if check_order and "validFrom" in credential and "validUntil" in credential:
        try:
            reversed_period = _parse_datetime(credential["validFrom"]) > _parse_datetime(credential["validUntil"])
        except ValueError as e:
            raise RequestRejected(f"Cannot compare validity period: {e}") from e
        if reversed_period:
            raise RequestRejected("Expected validFrom to be no later than validUntil")


def _check_typed_objects(credential: dict[str, Any]) -> None:
    for prop in TYPED_PROPERTIES:
        for value in _as_list(credential.get(prop, [])):
            if not isinstance(value, dict) or not value.get("type"):
                raise RequestRejected(f"Expected every {prop} object to have a type")
            # Terms expand against @vocab, so whitespace can never form a valid IRI
            if not all(isinstance(t, str) and t and not any(c.isspace() for c in t) for t in _as_list(value["type"])):
                raise RequestRejected(f"Expected {prop} type to be a term or URL")


def _check_status(credential: dict[str, Any]) -> None:
    for status in _as_list(credential.get("credentialStatus", [])):
        if "id" in status:
            _check_identifier(status["id"], "credentialStatus id")


def _check_schemas(credential: dict[str, Any]) -> None:
    for schema in _as_list(credential.get("credentialSchema", [])):
        _check_identifier(schema.get("id"), "credentialSchema id")


def _check_digest(resource: dict[str, Any], content: bytes) -> None:
    if "digestSRI" in resource:
        algorithm, _, expected = str(resource["digestSRI"]).partition("-")
        if algorithm not in SRI_ALGORITHMS or not expected:
            raise RequestRejected(f"Unsupported digestSRI {resource['digestSRI']!r}")
        if base64.b64encode(hashlib.new(algorithm, content).digest()).decode("ascii") != expected:
            raise RequestRejected(f"relatedResource {resource['id']} does not match its digestSRI")
    if "digestMultibase" in resource:
        try:
            expected = multibase.decode(resource["digestMultibase"])
        except (KeyError, ValueError, TypeError) as e:
            raise RequestRejected(f"Malformed digestMultibase: {e}") from e
        hash_name = MULTIHASH_NAMES.get(expected[:1])
        if hash_name is None:
            raise RequestRejected("Unsupported digestMultibase hash function")
        if multihash.digest(content, hash_name) != expected:
            raise RequestRejected(f"relatedResource {resource['id']} does not match its digestMultibase")


def _check_related_resources(credential: dict[str, Any]) -> None:
    if "relatedResource" not in credential:
        return
    resources = _as_list(credential["relatedResource"])
    if not resources or not all(isinstance(r, dict) for r in resources):
        raise RequestRejected("Expected relatedResource to be one or more objects")
    seen = set()
    for resource in resources:
        _check_identifier(resource.get("id"), "relatedResource id")
        if resource["id"] in seen:
            raise RequestRejected(f"Expected relatedResource ids to be unique, {resource['id']} repeats")
        seen.add(resource["id"])
        if "digestSRI" not in resource and "digestMultibase" not in resource:
            raise RequestRejected("Expected relatedResource to have a digestSRI or digestMultibase")
        # Only data: URLs can be retrieved without network access
        if resource["id"].startswith("data:"):
            try:
                content = parse_data_url(resource["id"]).raw
            except EnvelopeDecodeError as e:
                raise RequestRejected(e.message) from e
            _check_digest(resource, content)


def check_credential(credential: Any, check_order: bool = False) -> None:
    """Structural checks shared by the issue and verify routes."""
    if not isinstance(credential, dict):
        raise RequestRejected("Expected credential property")
    types = credential.get("type")
    if not isinstance(types, list):
        raise RequestRejected("Expected credential type array")
    if not all(isinstance(t, str) for t in types) or VERIFIABLE_CREDENTIAL not in types:
        raise RequestRejected("Expected credential type VerifiableCredential")
    _check_context(credential, "credential")
    if "id" in credential:
        _check_identifier(credential["id"], "credential id")
    _check_issuer(credential.get("issuer"))
    _check_names(credential, "credential")
    _check_subject(credential.get("credentialSubject"))
    _check_validity(credential, check_order)
    _check_typed_objects(credential)
    _check_status(credential)
    _check_schemas(credential)
    _check_related_resources(credential)


def _check_data_integrity(document: dict[str, Any]) -> None:
    proofs = _as_list(document.get("proof", []))
    if any(isinstance(p, dict) and p.get("cryptosuite") == CRYPTOSUITE for p in proofs):
        if not verify_proof(document):
            raise RequestRejected(f"{CRYPTOSUITE} proof verification failed")


def _check_envelope(document: dict[str, Any], inner_check: Callable[[Any], None], resolve_key: KeyResolver) -> None:
    contexts = context_values(document)
    if not contexts or contexts[0] != BASE_CONTEXT_URL:
        raise RequestRejected("Expected enveloped document @context with v2 base context")
    if "proof" in document:
        raise RequestRejected("Expected an enveloped document without an embedded proof")
    try:
        inner = extract_if_enveloped(document)
        verified = verify_envelope(document, resolve_key)
    except EnvelopeDecodeError as e:
        raise RequestRejected(e.message) from e
    if verified is False:
        raise RequestRejected("Envelope signature verification failed")
    inner_check(inner)


def _check_presentation(presentation: Any) -> None:
    if not isinstance(presentation, dict):
        raise RequestRejected("Expected verifiablePresentation property")
    _check_context(presentation, "verifiablePresentation")
    if not has_type(presentation, VERIFIABLE_PRESENTATION):
        raise RequestRejected("Expected type VerifiablePresentation")
    if "id" in presentation:
        _check_identifier(presentation["id"], "verifiablePresentation id")
    for credential in _as_list(presentation.get("verifiableCredential", [])):
        if not isinstance(credential, dict):
            raise RequestRejected("Expected verifiableCredential entries to be objects")
        _check_data_integrity(credential)


class ReferenceServer:
    """In-process VC API server.

    Args:
        enveloping: Issue JOSE-enveloped credentials instead of embedded proofs
        base_url: Base URL the server is reached at
    """

    def __init__(self, enveloping: bool = False, base_url: str = "http://reference.test"):
        self.enveloping = enveloping
        self.base_url = base_url.rstrip("/")
        self.signer = ES256Signer.generate(kid=f"{ISSUER_ID}#key-1")
        self.routes: dict[str, Callable[[Any], httpx.Response]] = {
            "/credentials/issue": self._issue,
            "/credentials/verify": self._verify,
            "/presentations/prove": self._prove,
            "/presentations/verify": self._verify_vp,
        }

    def implementation(self, name: str = "reference", config: Optional[HarnessConfig] = None) -> Implementation:
        """Registry entry describing this server."""
        tags = ["vc2.0", "vc-api"]
        # The vc-api issuer checks expect Data Integrity credentials, the JWT ones envelopes
        issuer_tags = ["vc2.0", "EnvelopingProof", "JWT"] if self.enveloping else tags
        verifier_tags = [*tags, "EnvelopingProof"]
        entry = {
            "name": name,
            "issuers": [{"id": ISSUER_ID, "endpoint": f"{self.base_url}/credentials/issue", "tags": issuer_tags}],
            "verifiers": [{"id": "", "endpoint": f"{self.base_url}/credentials/verify", "tags": verifier_tags}],
            "provers": [{"id": "did:example:prover", "endpoint": f"{self.base_url}/presentations/prove",
                         "tags": tags}],
            "vpVerifiers": [{"id": "", "endpoint": f"{self.base_url}/presentations/verify",
                             "tags": verifier_tags}],
        }
        return parse_implementation(entry, config or HarnessConfig())

    def as_transport(self) -> httpx.MockTransport:
        """Return an httpx transport that delivers requests to this server."""
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        """Route one request."""
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if request.method != "POST":
            return httpx.Response(405, text="Expected POST")
        try:
            body = json.loads(request.content or b"null")
        except json.JSONDecodeError:
            return httpx.Response(400, text="Expected a JSON request body")
        if not isinstance(body, dict):
            return httpx.Response(400, text="Expected a JSON object request body")

        try:
            return route(body)
        except RequestRejected as e:
            logger.debug("reference_request_rejected", path=request.url.path, reason=str(e))
            return httpx.Response(400, text=str(e))
        except Exception as e:
            logger.exception("reference_request_failed", path=request.url.path)
            return httpx.Response(500, text=str(e))

    def _issue(self, body: dict[str, Any]) -> httpx.Response:
        credential = body.get("credential")
        check_credential(credential)
        vc = {k: copy.deepcopy(v) for k, v in credential.items() if k != "proof"}
        if self.enveloping:
            return httpx.Response(201, json=envelop(vc, self.signer))
        vc["proof"] = concat_proof(credential.get("proof"), dict(EXAMPLE_PROOF))
        return httpx.Response(201, json=vc)

    def resolve_key(self, header: dict[str, Any]) -> Optional[ES256Verifier]:
        """Find the key behind an envelope: this server's own, or a P-256 ``jwk`` header.

        Raises:
            ValueError: If an embedded ``jwk`` is not a valid P-256 public key
        """
        if header.get("kid") == self.signer.kid:
            return self.signer.verifier()
        jwk = header.get("jwk")
        if isinstance(jwk, dict) and jwk.get("kty") == "EC" and jwk.get("crv") == "P-256":
            x, y = (b64url_decode(str(jwk.get(c, ""))) for c in ("x", "y"))
            return ES256Verifier.from_coordinates(x, y)
        return None

    def _verification_result(self, check: Callable[[], None]) -> httpx.Response:
        errors = []
        try:
            check()
        except RequestRejected as e:
            errors.append(str(e))
        result = {"checks": [] if errors else ["proof"], "warnings": [], "errors": errors}
        return httpx.Response(400 if errors else 200, json=result)

    def _verify(self, body: dict[str, Any]) -> httpx.Response:
        vc = body.get("verifiableCredential")

        def check() -> None:
            if not vc:
                raise RequestRejected("Expected verifiableCredential property")
            if has_type(vc, ENVELOPED_CREDENTIAL):
                _check_envelope(vc, lambda inner: check_credential(inner, check_order=True), self.resolve_key)
                return
            check_credential(vc, check_order=True)
            if "proof" not in vc:
                raise RequestRejected("Expected verifiableCredential to be secured by a proof")
            _check_data_integrity(vc)

        return self._verification_result(check)

    def _verify_vp(self, body: dict[str, Any]) -> httpx.Response:
        vp = body.get("verifiablePresentation")

        def check() -> None:
            if not vp:
                raise RequestRejected("Expected verifiablePresentation property")
            if isinstance(vp, dict) and has_type(vp, ENVELOPED_PRESENTATION):
                _check_envelope(vp, _check_presentation, self.resolve_key)
                return
            _check_presentation(vp)
            if not is_enveloped(vp) and "proof" not in vp:
                raise RequestRejected("Expected verifiablePresentation to be secured by a proof")
            _check_data_integrity(vp)

        return self._verification_result(check)

    def _prove(self, body: dict[str, Any]) -> httpx.Response:
        presentation = body.get("presentation")
        if not isinstance(presentation, dict):
            raise RequestRejected("Expected presentation property")
        _check_context(presentation, "presentation")
        vp = {k: copy.deepcopy(v) for k, v in presentation.items() if k != "proof"}
        vp["proof"] = concat_proof(presentation.get("proof"), dict(EXAMPLE_PROOF))
        return httpx.Response(200, json=vp)

    def serve(self, host: str = "127.0.0.1", port: int = 0) -> ThreadingHTTPServer:
        """Bind a local HTTP server that answers through :meth:`handle`.

        The returned server is not started; call ``serve_forever()`` on it.
        ``base_url`` is updated to the bound address.
        """
        reference = self

        class Handler(BaseHTTPRequestHandler):
            def _dispatch(self) -> None:
                length = int(self.headers.get("Content-Length") or 0)
                request = httpx.Request(
                    self.command,
                    f"{reference.base_url}{self.path}",
                    headers=dict(self.headers),
                    content=self.rfile.read(length),
                )
                response = reference.handle(request)
                self.send_response(response.status_code)
                self.send_header("Content-Type", response.headers.get("content-type", "text/plain"))
                self.send_header("Content-Length", str(len(response.content)))
                self.end_headers()
                self.wfile.write(response.content)

            do_POST = _dispatch
            do_GET = _dispatch

            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("reference_http", message=format % args)

        server = ThreadingHTTPServer((host, port), Handler)
        bound_host, bound_port = server.server_address[:2]
        self.base_url = f"http://{bound_host}:{bound_port}"
        logger.info("reference_server_listening", url=self.base_url)
        return server
