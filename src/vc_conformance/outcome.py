"""The tagged success/failure value every transport call produces."""

import json
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .errors import HTTPError, RedirectNotSupportedError


@dataclass
class Outcome:
    """Result of posting to an endpoint.

    Exactly one of ``data`` (success) and ``error`` (failure) is meaningful.

    Attributes:
        data: Decoded response body on success
        error: The rejection on failure
        response: The HTTP response, when one was received
    """

    data: Any = None
    error: Optional[HTTPError] = None
    response: Optional[httpx.Response] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> Optional[int]:
        if self.response is not None:
            return self.response.status_code
        return self.error.status if self.error is not None else None

    @property
    def result(self) -> Optional[httpx.Response]:
        """The HTTP response for a successful call, else None."""
        return self.response if self.ok else None

    def unwrap(self) -> Any:
        """Return ``data``, or raise ``error`` if the call failed."""
        if self.error is not None:
            raise self.error
        return self.data

    @classmethod
    def failure(cls, error: HTTPError, response: Optional[httpx.Response] = None) -> "Outcome":
        return cls(error=error, response=response)


def _lenient_body(response: httpx.Response) -> Any:
    text = response.text
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def outcome_from_response(response: httpx.Response) -> Outcome:
    """Normalize an HTTP response into an :class:`Outcome`.

    Status 400 and above becomes an :class:`HTTPError` carrying the body's
    ``errors`` list (or the raw body); 3xx becomes
    :class:`RedirectNotSupportedError`; anything else must be a JSON body.

    Raises:
        json.JSONDecodeError: If a successful response body is not JSON
    """
    try:
        url: Optional[str] = str(response.url)
    except RuntimeError:
        # Response built without a request
        url = None
    status = response.status_code

    if status >= 400:
        return Outcome.failure(HTTPError.from_response(status, _lenient_body(response), url), response)
    if status >= 300:
        return Outcome.failure(RedirectNotSupportedError(status, url), response)
    return Outcome(data=json.loads(response.text), response=response)
