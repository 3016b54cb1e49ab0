"""Authenticated HTTPS delivery to remote implementations.

Each endpoint's manifest entry selects how requests are authorized:

- ``zcap``: ``{"capability": <JSON>, "keySeed": <seed variable name>}``; the
  request is signed as a capability invocation with an Ed25519 key derived
  from the seed.
- ``oauth2``: ``{"tokenEndpoint", "clientId", "clientSecret": <variable name>,
  "scopes"?: [...], "audience"?}``; a client-credentials token is fetched once
  and sent as a bearer token.
- ``bearer``: ``{"token": <variable name>}``; a static bearer token.
- ``mtls``: ``{"cert": <path>, "key": <path>}``; a client certificate.

Endpoints without any of these are posted to without credentials.
"""

import base64
import gzip
import json
import time
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx
import structlog
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from multiformats import multibase, multihash

from .config import HarnessConfig
from .errors import ConfigurationError, HTTPError
from .jose import b64url_encode
from .outcome import Outcome, outcome_from_response
from .registry import Endpoint
from .signing import did_key_for, seed_to_bytes

logger = structlog.get_logger(__name__)

# Validity window of a capability invocation signature, in seconds
INVOCATION_TTL = 600


def multihash_digest(body: bytes) -> str:
    """Return the ``digest`` header value: a base64url multibase sha2-256 multihash."""
    return "mh=" + multibase.encode(multihash.digest(body, "sha2-256"), "base64url")


class CapabilityInvoker:
    """Signs HTTP requests as invocations of an authorization capability."""

    def __init__(self, capability: Mapping[str, Any], private_key: Ed25519PrivateKey):
        self.capability = dict(capability)
        self.private_key = private_key
        controller = self.capability.get("controller")
        if not isinstance(controller, str) or not controller.startswith("did:key:"):
            raise ConfigurationError("Capability controller must be a did:key identifier")
        self.key_id = f"{controller}#{controller[len('did:key:'):]}"
        if did_key_for(private_key.public_key()) != controller:
            logger.warning("capability_key_mismatch", controller=controller)

    @classmethod
    def from_settings(cls, zcap: Mapping[str, Any], config: HarnessConfig) -> "CapabilityInvoker":
        """Build an invoker from an endpoint's ``zcap`` settings.

        Raises:
            ConfigurationError: If the capability is not JSON or the seed is missing
        """
        capability = zcap.get("capability")
        if isinstance(capability, str):
            try:
                capability = json.loads(capability)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"zcap capability is not valid JSON: {e}") from e
        if not isinstance(capability, Mapping):
            raise ConfigurationError("zcap settings need a 'capability' object")
        seed = config.capability_seed(zcap.get("keySeed", ""))
        try:
            material = seed_to_bytes(seed)
        except ValueError as e:
            raise ConfigurationError(f"Capability key seed {zcap.get('keySeed')!r} is malformed: {e}") from e
        return cls(capability, Ed25519PrivateKey.from_private_bytes(material))

    def capability_header(self) -> str:
        # Root capabilities are referenced by id, delegated ones are embedded
        if "parentCapability" not in self.capability:
            return f'zcap id="{self.capability.get("id")}",action="write"'
        packed = gzip.compress(json.dumps(self.capability, separators=(",", ":")).encode("utf-8"))
        return f'zcap capability="{b64url_encode(packed)}",action="write"'

    def sign_headers(self, url: str, body: bytes, now: Optional[float] = None) -> dict[str, str]:
        """Compute the invocation headers for a JSON POST.

        Args:
            url: Target URL
            body: Exact request body bytes
            now: Signing time in epoch seconds; defaults to the current time

        Returns:
            Headers including ``authorization``, ``capability-invocation`` and ``digest``
        """
        created = int(now if now is not None else time.time())
        expires = created + INVOCATION_TTL
        parts = urlsplit(url)
        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"

        headers = {
            "host": parts.netloc,
            "capability-invocation": self.capability_header(),
            "content-type": "application/json",
            "digest": multihash_digest(body),
        }
        covered = ["(key)", "(created)", "(expires)", "(request-target)", *headers]
        lines = [
            f"(key): {self.key_id}",
            f"(created): {created}",
            f"(expires): {expires}",
            f"(request-target): post {target}",
            *(f"{name}: {value}" for name, value in headers.items()),
        ]
        signature = self.private_key.sign("\n".join(lines).encode("utf-8"))

        headers["authorization"] = (
            f'Signature keyId="{self.key_id}",headers="{" ".join(covered)}",'
            f'signature="{base64.b64encode(signature).decode("ascii")}",'
            f'created="{created}",expires="{expires}"'
        )
        return headers


class SecureClient:
    """Posts JSON to HTTPS endpoints using each endpoint's configured auth."""

    def __init__(self, config: HarnessConfig, client: Optional[httpx.Client] = None):
        self.config = config
        if client is None:
            self._client = httpx.Client(timeout=config.timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False
        self._tokens: dict[tuple[str, str], str] = {}
        self._mtls_clients: dict[tuple[str, str], httpx.Client] = {}

    def close(self) -> None:
        for client in self._mtls_clients.values():
            client.close()
        self._mtls_clients.clear()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "SecureClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _client_for(self, settings: Mapping[str, Any]) -> httpx.Client:
        mtls = settings.get("mtls")
        if not mtls:
            return self._client
        key = (mtls.get("cert", ""), mtls.get("key", ""))
        if not all(key):
            raise ConfigurationError("mtls settings need 'cert' and 'key' paths")
        if key not in self._mtls_clients:
            self._mtls_clients[key] = httpx.Client(cert=key, timeout=self.config.timeout)
        return self._mtls_clients[key]

    def _oauth2_token(self, oauth2: Mapping[str, Any]) -> str:
        token_endpoint = oauth2.get("tokenEndpoint")
        client_id = oauth2.get("clientId")
        if not token_endpoint or not client_id:
            raise ConfigurationError("oauth2 settings need 'tokenEndpoint' and 'clientId'")
        cache_key = (token_endpoint, client_id)
        if cache_key in self._tokens:
            return self._tokens[cache_key]

        form = {"grant_type": "client_credentials"}
        if oauth2.get("scopes"):
            form["scope"] = " ".join(oauth2["scopes"])
        if oauth2.get("audience"):
            form["audience"] = oauth2["audience"]
        secret = self.config.client_secret(oauth2.get("clientSecret", ""))

        response = self._client.post(token_endpoint, data=form, auth=(client_id, secret))
        if response.status_code >= 400:
            raise HTTPError(
                f"Token request failed with status {response.status_code}",
                status=response.status_code,
                body=response.text,
                url=token_endpoint,
            )
        token = response.json().get("access_token")
        if not token:
            raise ConfigurationError(f"Token endpoint {token_endpoint} returned no access_token")
        logger.debug("oauth2_token_fetched", token_endpoint=token_endpoint, client_id=client_id)
        self._tokens[cache_key] = token
        return token

    def auth_headers(self, endpoint: Endpoint, body: bytes) -> dict[str, str]:
        """Return the authorization headers an endpoint's settings call for."""
        settings = endpoint.settings
        if settings.get("zcap"):
            return CapabilityInvoker.from_settings(settings["zcap"], self.config).sign_headers(
                endpoint.url, body
            )
        if settings.get("oauth2"):
            return {"authorization": f"Bearer {self._oauth2_token(settings['oauth2'])}"}
        if settings.get("bearer"):
            bearer = settings["bearer"]
            name = bearer.get("token", "") if isinstance(bearer, Mapping) else bearer
            return {"authorization": f"Bearer {self.config.client_secret(name)}"}
        return {}

    def post(self, endpoint: Endpoint, body: Any) -> Outcome:
        """Post a JSON body to an HTTPS endpoint.

        Returns:
            Outcome with the decoded body, or the rejection as ``error``

        Raises:
            ConfigurationError: If the endpoint's auth settings are incomplete
            httpx.TransportError: On connection failures
            json.JSONDecodeError: If a successful response body is not JSON
        """
        content = json.dumps(body).encode("utf-8")
        headers = {"content-type": "application/json", "accept": "application/json"}
        headers.update(self.auth_headers(endpoint, content))

        response = self._client_for(endpoint.settings).post(endpoint.url, content=content, headers=headers)
        return outcome_from_response(response)
