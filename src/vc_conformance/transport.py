"""Delivery of request bodies to implementation endpoints.

HTTPS endpoints go through :class:`~vc_conformance.auth.SecureClient`, which
applies the endpoint's configured authentication. Plain HTTP endpoints (a
local reference server) receive the raw JSON body. Either way the caller gets
an :class:`~vc_conformance.outcome.Outcome`; nothing is retried and redirects
are never followed.
"""

import json
from typing import Any, Optional

import httpx
import structlog

from .auth import SecureClient
from .config import HarnessConfig
from .outcome import Outcome, outcome_from_response
from .registry import Endpoint

logger = structlog.get_logger(__name__)


class Transport:
    """Sends JSON bodies to endpoints and normalizes the responses."""

    def __init__(
        self,
        config: Optional[HarnessConfig] = None,
        client: Optional[httpx.Client] = None,
        secure_client: Optional[SecureClient] = None,
    ):
        self.config = config or HarnessConfig()
        if client is None:
            self._client = httpx.Client(timeout=self.config.timeout, follow_redirects=False)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False
        self.secure_client = secure_client or SecureClient(self.config, self._client)

    def close(self) -> None:
        self.secure_client.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, endpoint: Endpoint, body: Any) -> Outcome:
        """Post ``body`` to ``endpoint``.

        Args:
            endpoint: Target endpoint
            body: JSON-serializable request body

        Returns:
            Outcome holding the decoded response body or the rejection

        Raises:
            httpx.TransportError: If the endpoint cannot be reached
            json.JSONDecodeError: If a successful response body is not JSON
        """
        logger.debug("endpoint_request", url=endpoint.url, secure=endpoint.is_secure)

        if endpoint.is_secure:
            outcome = self.secure_client.post(endpoint, body)
        else:
            content = json.dumps(body).encode("utf-8")
            response = self._client.post(
                endpoint.url,
                content=content,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                follow_redirects=False,
            )
            outcome = outcome_from_response(response)

        if outcome.ok:
            logger.debug("endpoint_response", url=endpoint.url, status=outcome.status)
        else:
            logger.info("endpoint_rejected", url=endpoint.url, status=outcome.status,
                        error=outcome.error.message if outcome.error else None)
        return outcome

    def post(self, endpoint: Endpoint, body: Any) -> Any:
        """Post ``body`` and return the decoded response, raising on rejection.

        Raises:
            HTTPError: If the endpoint rejected the request or redirected
        """
        return self.send(endpoint, body).unwrap()
