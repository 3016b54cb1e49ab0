"""Tests for authenticated HTTPS delivery."""

import base64
import gzip
import hashlib
import json
import re
from dataclasses import replace

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from vc_conformance import ConfigurationError, Endpoint, HarnessConfig, HTTPError
from vc_conformance.auth import INVOCATION_TTL, CapabilityInvoker, SecureClient, multihash_digest
from vc_conformance.jose import b64url_decode
from vc_conformance.config import DEFAULT_KEY_SEED
from vc_conformance.signing import did_key_for, seed_to_bytes

ROOT_CAPABILITY = {
    "@context": ["https://w3id.org/zcap/v1"],
    "id": "urn:zcap:root:https%3A%2F%2Fvendor.test%2Fissuers%2F1",
    "controller": "did:key:z6MkpTHR8VNsBxYAAWHut2Geadd9jSwuBV8xRoAnwWsdvktH",
    "invocationTarget": "https://vendor.test/issuers/1",
}

DELEGATED_CAPABILITY = {
    **ROOT_CAPABILITY,
    "id": "urn:uuid:4a3f0c3a-2b6e-4c61-9b5f-0c8f2f7b1e10",
    "parentCapability": ROOT_CAPABILITY["id"],
}


@pytest.fixture
def private_key(config: HarnessConfig) -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(seed_to_bytes(config.capability_seed("TEST_ZCAP_KEY_SEED")))


@pytest.mark.unit
class TestCapabilityInvoker:
    """HTTP signatures for capability invocations."""

    def test_digest(self) -> None:
        digest = multihash_digest(b"{}")

        assert digest.startswith("mh=u")
        assert b64url_decode(digest[4:]) == b"\x12\x20" + hashlib.sha256(b"{}").digest()

    def test_root_capability_referenced_by_id(self, private_key: Ed25519PrivateKey) -> None:
        invoker = CapabilityInvoker(ROOT_CAPABILITY, private_key)

        assert invoker.capability_header() == f'zcap id="{ROOT_CAPABILITY["id"]}",action="write"'

    def test_delegated_capability_embedded(self, private_key: Ed25519PrivateKey) -> None:
        header = CapabilityInvoker(DELEGATED_CAPABILITY, private_key).capability_header()

        packed = re.match(r'zcap capability="([^"]+)",action="write"', header).group(1)
        assert json.loads(gzip.decompress(b64url_decode(packed))) == DELEGATED_CAPABILITY

    def test_sign_headers(self, private_key: Ed25519PrivateKey) -> None:
        invoker = CapabilityInvoker(ROOT_CAPABILITY, private_key)
        body = b'{"credential":{}}'

        headers = invoker.sign_headers("https://vendor.test/issuers/1/credentials/issue?x=1", body, now=1700000000)

        assert headers["host"] == "vendor.test"
        assert headers["digest"] == multihash_digest(body)
        authorization = headers["authorization"]
        key_id = "did:key:z6MkpTHR8VNsBxYAAWHut2Geadd9jSwuBV8xRoAnwWsdvktH#z6MkpTHR8VNsBxYAAWHut2Geadd9jSwuBV8xRoAnwWsdvktH"
        assert f'keyId="{key_id}"' in authorization
        assert f'created="1700000000",expires="{1700000000 + INVOCATION_TTL}"' in authorization
        assert ('headers="(key) (created) (expires) (request-target) host capability-invocation '
                'content-type digest"') in authorization

        signature = base64.b64decode(re.search(r'signature="([^"]+)"', authorization).group(1))
        signed = "\n".join([
            f"(key): {key_id}",
            "(created): 1700000000",
            f"(expires): {1700000000 + INVOCATION_TTL}",
            "(request-target): post /issuers/1/credentials/issue?x=1",
            "host: vendor.test",
            f"capability-invocation: {headers['capability-invocation']}",
            "content-type: application/json",
            f"digest: {headers['digest']}",
        ])
        private_key.public_key().verify(signature, signed.encode("utf-8"))

    def test_controller_must_be_did_key(self, private_key: Ed25519PrivateKey) -> None:
        with pytest.raises(ConfigurationError):
            CapabilityInvoker({**ROOT_CAPABILITY, "controller": "did:web:vendor.test"}, private_key)

    def test_from_settings_parses_json_capability(self, config: HarnessConfig) -> None:
        zcap = {"capability": json.dumps(ROOT_CAPABILITY), "keySeed": "TEST_ZCAP_KEY_SEED"}

        assert CapabilityInvoker.from_settings(zcap, config).capability == ROOT_CAPABILITY

    @pytest.mark.parametrize("zcap", [
        {"capability": "{not json", "keySeed": "TEST_ZCAP_KEY_SEED"},
        {"keySeed": "TEST_ZCAP_KEY_SEED"},
        {"capability": ROOT_CAPABILITY, "keySeed": "MISSING_KEY_SEED"},
        {"capability": ROOT_CAPABILITY, "keySeed": "MALFORMED_KEY_SEED"},
    ])
    def test_from_settings_invalid(self, config: HarnessConfig, zcap: dict) -> None:
        config = replace(config, capability_seeds={**config.capability_seeds, "MALFORMED_KEY_SEED": "z1111"})

        with pytest.raises(ConfigurationError):
            CapabilityInvoker.from_settings(zcap, config)

    def test_from_settings_decodes_multibase_seed(self, config: HarnessConfig) -> None:
        controller = "did:key:z6Mkfeco2NSEPeFV3DkjNSabaCza1EoS3CmqLb1eJ5BriiaR"
        config = replace(config, capability_seeds={"VENDOR_KEY_SEED": DEFAULT_KEY_SEED})
        zcap = {"capability": {**ROOT_CAPABILITY, "controller": controller}, "keySeed": "VENDOR_KEY_SEED"}

        invoker = CapabilityInvoker.from_settings(zcap, config)

        assert did_key_for(invoker.private_key.public_key()) == controller
        assert invoker.key_id == f"{controller}#{controller[len('did:key:'):]}"


@pytest.mark.unit
class TestSecureClient:
    """Per-endpoint authorization."""

    def test_zcap_headers_sent(self, config: HarnessConfig) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            seen["digest_ok"] = request.headers["digest"] == multihash_digest(request.content)
            return httpx.Response(201, json={"ok": True})

        endpoint = Endpoint(
            "did:example:issuer",
            "https://vendor.test/issuers/1/credentials/issue",
            settings={"zcap": {"capability": ROOT_CAPABILITY, "keySeed": "TEST_ZCAP_KEY_SEED"}},
        )
        with SecureClient(config, httpx.Client(transport=httpx.MockTransport(handler))) as client:
            outcome = client.post(endpoint, {"credential": {}})

        assert outcome.data == {"ok": True}
        assert seen["authorization"].startswith("Signature keyId=")
        assert seen["capability-invocation"].startswith("zcap id=")
        assert seen["content-type"] == "application/json"
        assert seen["digest_ok"]

    def test_oauth2_token_fetched_once(self, config: HarnessConfig) -> None:
        token_requests = []
        authorizations = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/oauth/token":
                token_requests.append((request.headers["authorization"], request.content.decode()))
                return httpx.Response(200, json={"access_token": "tok-123", "token_type": "Bearer"})
            authorizations.append(request.headers["authorization"])
            return httpx.Response(200, json={"checks": []})

        endpoint = Endpoint("", "https://vendor.test/credentials/verify", settings={"oauth2": {
            "tokenEndpoint": "https://vendor.test/oauth/token",
            "clientId": "harness",
            "clientSecret": "VENDOR_CLIENT_SECRET",
            "scopes": ["verify", "issue"],
        }})
        with SecureClient(config, httpx.Client(transport=httpx.MockTransport(handler))) as client:
            client.post(endpoint, {})
            client.post(endpoint, {})

        assert len(token_requests) == 1
        basic = base64.b64encode(b"harness:client-secret").decode()
        assert token_requests[0][0] == f"Basic {basic}"
        assert "grant_type=client_credentials" in token_requests[0][1]
        assert "scope=verify+issue" in token_requests[0][1]
        assert authorizations == ["Bearer tok-123", "Bearer tok-123"]

    def test_oauth2_token_failure(self, config: HarnessConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="invalid_client")

        endpoint = Endpoint("", "https://vendor.test/verify", settings={"oauth2": {
            "tokenEndpoint": "https://vendor.test/oauth/token",
            "clientId": "harness",
            "clientSecret": "VENDOR_CLIENT_SECRET",
        }})
        with SecureClient(config, httpx.Client(transport=httpx.MockTransport(handler))) as client:
            with pytest.raises(HTTPError) as excinfo:
                client.post(endpoint, {})

        assert excinfo.value.status == 401

    def test_bearer_as_string(self, config: HarnessConfig) -> None:
        client = SecureClient(config, httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
        endpoint = Endpoint("", "https://vendor.test/verify", settings={"bearer": "VENDOR_TOKEN"})

        assert client.auth_headers(endpoint, b"{}") == {"authorization": "Bearer s3cret-token"}

    def test_no_auth(self, config: HarnessConfig) -> None:
        client = SecureClient(config, httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))

        assert client.auth_headers(Endpoint("", "https://vendor.test/verify"), b"{}") == {}

    def test_incomplete_mtls_settings(self, config: HarnessConfig) -> None:
        client = SecureClient(config, httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
        endpoint = Endpoint("", "https://vendor.test/verify", settings={"mtls": {"cert": "client.pem"}})

        with pytest.raises(ConfigurationError):
            client.post(endpoint, {})
