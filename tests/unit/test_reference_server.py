"""Tests for the in-process reference implementation."""

import json
import threading
from collections.abc import Generator
from typing import Any

import httpx
import pytest

from vc_conformance import FixtureStore, ReferenceServer, TestEndpoints, extract_if_enveloped
from vc_conformance.cose_sign1 import ES256Signer
from vc_conformance.jose import b64url_decode, b64url_encode, jws_sign
from vc_conformance.reference_server import EXAMPLE_PROOF, ISSUER_ID
from vc_conformance.signing import LocalSigner


@pytest.fixture
def client(reference: ReferenceServer) -> Generator[httpx.Client, None, None]:
    with httpx.Client(transport=reference.as_transport(), base_url=reference.base_url) as client:
        yield client


def envelop_with_jwk(credential: dict[str, Any], signer: ES256Signer, published: ES256Signer) -> dict[str, Any]:
    """Envelope ``credential`` signed by ``signer``, naming ``published``'s key in a ``jwk`` header."""
    numbers = published.private_key.public_key().public_numbers()
    jwk = {
        "kty": "EC",
        "crv": "P-256",
        "x": b64url_encode(numbers.x.to_bytes(32, "big")),
        "y": b64url_encode(numbers.y.to_bytes(32, "big")),
    }
    token = jws_sign(credential, signer, typ="vc+jwt", extra_headers={"jwk": jwk})
    return {
        "@context": "https://www.w3.org/ns/credentials/v2",
        "type": "EnvelopedVerifiableCredential",
        "id": f"data:application/vc+jwt,{token}",
    }


def issue_body(fixtures: FixtureStore, name: str = "credential-ok.json") -> dict[str, Any]:
    credential = fixtures.load(name)
    credential.setdefault("issuer", ISSUER_ID)
    return {"credential": credential}


@pytest.mark.unit
class TestRouting:
    """Requests that never reach a route handler."""

    def test_unknown_path(self, client: httpx.Client) -> None:
        assert client.post("/credentials/derive", json={}).status_code == 404

    def test_wrong_method(self, client: httpx.Client) -> None:
        assert client.get("/credentials/issue").status_code == 405

    def test_malformed_json(self, client: httpx.Client) -> None:
        response = client.post("/credentials/issue", content=b"{not json")

        assert response.status_code == 400

    def test_non_object_body(self, client: httpx.Client) -> None:
        assert client.post("/credentials/issue", json=[1, 2]).status_code == 400


@pytest.mark.unit
class TestIssue:
    """The issuance route."""

    def test_issue_appends_proof(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        response = client.post("/credentials/issue", json=issue_body(fixtures))

        assert response.status_code == 201
        vc = response.json()
        assert vc["issuer"] == ISSUER_ID
        assert vc["proof"] == EXAMPLE_PROOF

    def test_existing_proof_kept(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        body = issue_body(fixtures)
        body["credential"]["proof"] = {"type": "Existing"}

        vc = client.post("/credentials/issue", json=body).json()

        assert vc["proof"] == [{"type": "Existing"}, EXAMPLE_PROOF]

    @pytest.mark.parametrize("fixture", [
        "credential-no-context-fail.json",
        "credential-missing-base-context-fail.json",
        "credential-context-combo3-fail.json",
        "credential-no-type-fail.json",
        "credential-missing-required-type-fail.json",
        "credential-issuer-no-url-fail.json",
        "credential-no-subject-fail.json",
        "credential-subject-multiple-empty-fail.json",
        "credential-validfrom-invalid-fail.json",
        "credential-status-missing-type-fail.json",
        "credential-id-nonidentifier-fail.json",
        "credential-id-multi-fail.json",
        "credential-id-subject-multi-fail.json",
        "credential-id-not-url-fail.json",
        "credential-status-multiple-id-fail.json",
        "credential-status-nonurl-id-fail.json",
        "credential-status-type-nonurl-fail.json",
        "credential-schema-no-id-fail.json",
        "credential-schema-non-url-id-fail.json",
        "credential-redef-type-fail.json",
        "credential-redef-type2-fail.json",
        "credential-render-method-no-type-fail.json",
        "credential-confidence-method-no-type-fail.json",
        "names-and-descriptions/credential-name-extra-prop-en-fail.json",
        "names-and-descriptions/issuer-description-extra-prop-en-fail.json",
        "relatedResource/relatedResource-list-of-strings-fail.json",
        "relatedResource/relatedResource-missing-id-fail.json",
        "relatedResource/relatedResource-duplicate-id-fail.json",
        "relatedResource/relatedResource-no-digest-fail.json",
    ])
    def test_rejects_nonconforming(self, client: httpx.Client, fixtures: FixtureStore, fixture: str) -> None:
        response = client.post("/credentials/issue", json=issue_body(fixtures, fixture))

        assert response.status_code == 400
        assert response.text.startswith("Expected")

    @pytest.mark.parametrize("fixture", [
        "credential-id-other-ok.json",
        "credential-id-subject-single-ok.json",
        "credential-status-missing-id-ok.json",
        "credential-schemas-ok.json",
        "credential-termsofuses-ok.json",
        "credential-reserved-types-ok.json",
        "names-and-descriptions/credential-multi-language-name-ok.json",
        "names-and-descriptions/issuer-description-language-direction-en-ok.json",
        "relatedResource/relatedResource-digest-sri-ok.json",
        "relatedResource/relatedResource-digest-multibase-ok.json",
        "relatedResource/relatedResource-with-mediaType-ok.json",
    ])
    def test_accepts_conforming(self, client: httpx.Client, fixtures: FixtureStore, fixture: str) -> None:
        assert client.post("/credentials/issue", json=issue_body(fixtures, fixture)).status_code == 201

    @pytest.mark.parametrize("fixture", [
        "relatedResource/relatedResource-digest-sri-fail.json",
        "relatedResource/relatedResource-digest-multibase-fail.json",
    ])
    def test_rejects_digest_mismatch(self, client: httpx.Client, fixtures: FixtureStore, fixture: str) -> None:
        response = client.post("/credentials/issue", json=issue_body(fixtures, fixture))

        assert response.status_code == 400
        assert "does not match" in response.text

    @pytest.mark.parametrize("digest", ["md5-1B2M2Y8AsgTpgAmY7PhCfg==", "sha384"])
    def test_rejects_unsupported_sri(self, client: httpx.Client, fixtures: FixtureStore, digest: str) -> None:
        body = issue_body(fixtures, "relatedResource/relatedResource-digest-sri-ok.json")
        body["credential"]["relatedResource"][0]["digestSRI"] = digest

        assert client.post("/credentials/issue", json=body).status_code == 400

    def test_enveloping_issuer(self, enveloping_reference: ReferenceServer, fixtures: FixtureStore) -> None:
        with httpx.Client(transport=enveloping_reference.as_transport()) as client:
            response = client.post(f"{enveloping_reference.base_url}/credentials/issue", json=issue_body(fixtures))

        envelope = response.json()
        assert response.status_code == 201
        assert envelope["type"] == "EnvelopedVerifiableCredential"
        assert envelope["id"].startswith("data:application/vc+jwt,")
        assert extract_if_enveloped(envelope)["issuer"] == ISSUER_ID


@pytest.mark.unit
class TestVerify:
    """The credential and presentation verification routes."""

    def test_verify_issued(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        vc = client.post("/credentials/issue", json=issue_body(fixtures)).json()

        response = client.post("/credentials/verify", json={"verifiableCredential": vc})

        assert response.status_code == 200
        assert response.json() == {"checks": ["proof"], "warnings": [], "errors": []}

    def test_verify_requires_proof(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        response = client.post("/credentials/verify", json={"verifiableCredential": issue_body(fixtures)["credential"]})

        assert response.status_code == 400
        assert response.json()["errors"] == ["Expected verifiableCredential to be secured by a proof"]

    def test_verify_rejects_reversed_period(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        body = issue_body(fixtures)
        body["credential"].update(validFrom="2030-01-01T00:00:00Z", validUntil="2020-01-01T00:00:00Z")
        vc = client.post("/credentials/issue", json=body).json()

        response = client.post("/credentials/verify", json={"verifiableCredential": vc})

        assert response.status_code == 400

    def test_verify_envelope(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        response = client.post("/credentials/verify",
                               json={"verifiableCredential": fixtures.load("enveloped-credential.json")})

        assert response.status_code == 200

    def test_verify_envelope_with_bad_id(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        envelope = fixtures.load("enveloped-credential.json")
        envelope["id"] = "data:application/vc+jwt,not-a-token"

        response = client.post("/credentials/verify", json={"verifiableCredential": envelope})

        assert response.status_code == 400

    def test_verify_presentation(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        body = {"presentation": fixtures.load("presentation-vc-ok.json"), "options": {}}
        vp = client.post("/presentations/prove", json=body).json()

        response = client.post("/presentations/verify", json={"verifiablePresentation": vp})

        assert vp["proof"] == EXAMPLE_PROOF
        assert response.status_code == 200

    def test_verify_enveloped_presentation(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        response = client.post("/presentations/verify",
                               json={"verifiablePresentation": fixtures.load("enveloped-presentation.json")})

        assert response.status_code == 200

    def test_verify_presentation_with_string_credential(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        vp = fixtures.load("presentation-vc-as-string-fail.json")
        vp["proof"] = dict(EXAMPLE_PROOF)

        response = client.post("/presentations/verify", json={"verifiablePresentation": vp})

        assert response.status_code == 400


    def test_verify_own_envelope(self, enveloping_reference: ReferenceServer, fixtures: FixtureStore) -> None:
        with httpx.Client(transport=enveloping_reference.as_transport(), base_url=enveloping_reference.base_url) as c:
            envelope = c.post("/credentials/issue", json=issue_body(fixtures)).json()
            accepted = c.post("/credentials/verify", json={"verifiableCredential": envelope})

            header, payload, signature = envelope["id"].split(",", 1)[1].split(".")
            claims = json.loads(b64url_decode(payload))
            claims["credentialSubject"]["name"] = "Mallory"
            forged = f"{header}.{b64url_encode(json.dumps(claims).encode())}.{signature}"
            envelope["id"] = f"data:application/vc+jwt,{forged}"
            rejected = c.post("/credentials/verify", json={"verifiableCredential": envelope})

        assert accepted.status_code == 200
        assert rejected.status_code == 400
        assert rejected.json()["errors"] == ["Envelope signature verification failed"]

    def test_verify_envelope_with_embedded_jwk(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        signer = ES256Signer.generate()
        credential = issue_body(fixtures)["credential"]
        envelope = envelop_with_jwk(credential, signer, signer)

        response = client.post("/credentials/verify", json={"verifiableCredential": envelope})

        assert response.status_code == 200

    def test_verify_envelope_with_mismatched_jwk(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        credential = issue_body(fixtures)["credential"]
        envelope = envelop_with_jwk(credential, ES256Signer.generate(), ES256Signer.generate())

        response = client.post("/credentials/verify", json={"verifiableCredential": envelope})

        assert response.status_code == 400

    def test_verify_data_integrity_presentation(
        self, reference_endpoints: TestEndpoints, client: httpx.Client, fixtures: FixtureStore
    ) -> None:
        vp = reference_endpoints.prove_vp(fixtures.load("presentation-ok.json"))

        accepted = client.post("/presentations/verify", json={"verifiablePresentation": vp})
        vp["proof"]["proofValue"] = "z5nmMBw2u9TGKd9NxxHJtyZKgjN2Eh"
        rejected = client.post("/presentations/verify", json={"verifiablePresentation": vp})

        assert accepted.status_code == 200
        assert rejected.status_code == 400
        assert rejected.json()["errors"] == ["eddsa-jcs-2022 proof verification failed"]

    def test_verify_data_integrity_credential(self, client: httpx.Client, fixtures: FixtureStore) -> None:
        signer = LocalSigner.from_seed("reference test key")
        vc = signer.sign_credential(fixtures.load("credential-ok.json"))

        accepted = client.post("/credentials/verify", json={"verifiableCredential": vc})
        vc["credentialSubject"]["name"] = "Mallory"
        rejected = client.post("/credentials/verify", json={"verifiableCredential": vc})

        assert accepted.status_code == 200
        assert rejected.status_code == 400


@pytest.mark.unit
class TestImplementationEntry:
    """The registry entry the server describes itself with."""

    def test_tags(self, reference: ReferenceServer, enveloping_reference: ReferenceServer) -> None:
        plain = reference.implementation()
        enveloping = enveloping_reference.implementation()

        assert plain.issuers[0].tags == frozenset({"vc2.0", "vc-api"})
        assert "EnvelopingProof" in plain.verifiers[0].tags
        assert enveloping.issuers[0].tags == frozenset({"vc2.0", "EnvelopingProof", "JWT"})
        assert plain.issuers[0].url == "http://reference.test/credentials/issue"


@pytest.mark.unit
class TestServe:
    """Serving over a local socket."""

    def test_serve_round_trip(self, fixtures: FixtureStore) -> None:
        reference = ReferenceServer()
        server = reference.serve(port=0)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            response = httpx.post(f"{reference.base_url}/credentials/issue", content=json.dumps(issue_body(fixtures)),
                                  headers={"content-type": "application/json"}, timeout=5)
        finally:
            server.shutdown()
            server.server_close()

        assert reference.base_url.startswith("http://127.0.0.1:")
        assert response.status_code == 201
        assert response.json()["proof"] == EXAMPLE_PROOF
