"""One interface over an implementation's issuer and verifier endpoints."""

from typing import Any, Optional

import structlog

from .config import HarnessConfig
from .errors import ConfigurationError, NoMatchingEndpointError, VerificationError
from .outcome import Outcome
from .registry import Endpoint, Implementation, find_endpoint
from .request_bodies import create_request_body, create_verify_request_body, create_verify_vp_body
from .signing import LocalSigner
from .transport import Transport

logger = structlog.get_logger(__name__)


def _embedded_errors(outcome: Outcome) -> Outcome:
    """Turn a 2xx verification response with ``errors`` into a failed outcome."""
    if not outcome.ok or not isinstance(outcome.data, dict):
        return outcome
    errors = outcome.data.get("errors")
    if not errors:
        return outcome
    if not isinstance(errors, list):
        errors = [errors]
    url = str(outcome.response.url) if outcome.response is not None else None
    error = VerificationError(errors, status=outcome.status, body=outcome.data, url=url)
    return Outcome.failure(error, outcome.response)


class TestEndpoints:
    """Issue, verify and prove against one implementation for one tag.

    Role endpoints are resolved once, as the first endpoint of each role
    carrying ``tag``. A role with no such endpoint is None, and calling an
    operation for it raises :class:`NoMatchingEndpointError`.

    Args:
        implementation: Implementation under test
        tag: Capability tag the endpoints must carry
        transport: Transport used for network calls
        config: Harness configuration (key seed for local proofs)
    """

    # Not a pytest test class
    __test__ = False

    def __init__(
        self,
        implementation: Implementation,
        tag: str,
        transport: Optional[Transport] = None,
        config: Optional[HarnessConfig] = None,
    ):
        self.implementation = implementation
        self.tag = tag
        self.config = config or (transport.config if transport is not None else HarnessConfig())
        self.transport = transport or Transport(self.config)
        self.issuer: Optional[Endpoint] = find_endpoint(implementation.issuers, tag)
        self.verifier: Optional[Endpoint] = find_endpoint(implementation.verifiers, tag)
        self.vp_verifier: Optional[Endpoint] = find_endpoint(implementation.vp_verifiers, tag)
        self._signer: Optional[LocalSigner] = None

    @property
    def name(self) -> str:
        return self.implementation.name

    @property
    def signer(self) -> LocalSigner:
        """Local key used for presentation proofs, derived from the configured seed."""
        if self._signer is None:
            try:
                self._signer = LocalSigner.from_seed(self.config.key_seed)
            except ValueError as e:
                raise ConfigurationError(f"TEST_KEY_SEED is malformed: {e}") from e
        return self._signer

    def _require(self, endpoint: Optional[Endpoint], role: str) -> Endpoint:
        if endpoint is None:
            raise NoMatchingEndpointError(self.name, role, self.tag)
        return endpoint

    def issue_outcome(self, credential: dict[str, Any]) -> Outcome:
        """Request issuance of ``credential`` and return the outcome."""
        issuer = self._require(self.issuer, "issuers")
        return self.transport.send(issuer, create_request_body(issuer, credential))

    def issue(self, credential: dict[str, Any]) -> Any:
        """Issue a credential.

        Returns:
            The issued document

        Raises:
            NoMatchingEndpointError: If no issuer carries the tag
            HTTPError: If the issuer rejected the request
        """
        return self.issue_outcome(credential).unwrap()

    def verify_outcome(self, document: Any) -> Outcome:
        """Request verification of a credential; embedded errors count as failure."""
        verifier = self._require(self.verifier, "verifiers")
        return _embedded_errors(self.transport.send(verifier, create_verify_request_body(document)))

    def verify(self, document: Any) -> Any:
        """Verify a credential with ``checks: ["proof"]``.

        Returns:
            The verification result (``checks``, ``warnings``, ``errors``)

        Raises:
            NoMatchingEndpointError: If no verifier carries the tag
            VerificationError: If a 2xx result reported errors; ``error`` is the first
            HTTPError: If the verifier rejected the request
        """
        return self.verify_outcome(document).unwrap()

    def verify_vp_outcome(self, presentation: Any, options: Optional[dict[str, Any]] = None) -> Outcome:
        """Request verification of a presentation; embedded errors count as failure."""
        vp_verifier = self._require(self.vp_verifier, "vpVerifiers")
        body = create_verify_vp_body(presentation, options)
        return _embedded_errors(self.transport.send(vp_verifier, body))

    def verify_vp(self, presentation: Any, options: Optional[dict[str, Any]] = None) -> Any:
        """Verify a presentation; ``options`` defaults to ``{"checks": []}``.

        Raises:
            NoMatchingEndpointError: If no VP verifier carries the tag
            VerificationError: If a 2xx result reported errors
            HTTPError: If the verifier rejected the request
        """
        return self.verify_vp_outcome(presentation, options).unwrap()

    def prove_vp(self, presentation: dict[str, Any], options: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Secure a presentation locally, without a network call.

        Contained credentials without a proof are issued by the local key first.

        Args:
            presentation: Presentation to secure; not modified
            options: May carry ``challenge`` and ``domain``
        """
        options = options or {}
        logger.debug("presentation_prove", implementation=self.name)
        return self.signer.sign_presentation(
            presentation,
            challenge=options.get("challenge"),
            domain=options.get("domain"),
        )
