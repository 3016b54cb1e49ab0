"""Error types raised by the conformance harness.

Every failure the harness can observe maps onto one of these classes so that
scenarios can tell an input-validation rejection apart from an authorization
failure, a redirect, or a missing endpoint.
"""

import json
from typing import Any, Optional


class ConformanceError(Exception):
    """Base class for harness errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ConformanceError):
    """Raised when the registry or environment configuration is malformed."""


class HTTPError(ConformanceError):
    """A transport-observable rejection from an implementation under test.

    Attributes:
        status: HTTP status code, or None when the failure was not tied to a response
        errors: The ``errors`` list from the response body, when present
        body: The decoded response body (JSON value or raw text)
        url: The endpoint URL that produced the error
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        errors: Optional[list[Any]] = None,
        body: Any = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, {"status": status, "url": url})
        self.status = status
        self.errors = errors
        self.body = body
        self.url = url

    @classmethod
    def from_response(cls, status: int, body: Any, url: Optional[str] = None) -> "HTTPError":
        """Build an error from a decoded non-2xx response body.

        Args:
            status: HTTP status code
            body: Decoded JSON body, or the raw text when it was not JSON
            url: Endpoint URL

        Returns:
            HTTPError carrying the ``errors`` list when the body has one,
            otherwise the raw body as message
        """
        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            message = "; ".join(str(e) for e in errors) if isinstance(errors, list) else str(errors)
            if not isinstance(errors, list):
                errors = [errors]
        else:
            errors = None
            message = body if isinstance(body, str) else ("" if body is None else json.dumps(body))
        return cls(message or f"Request failed with status {status}", status, errors, body, url)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, message={self.message!r})"


class RedirectNotSupportedError(HTTPError):
    """Raised for 3xx responses; redirects are never followed."""

    def __init__(self, status: int, url: Optional[str] = None):
        super().__init__("Redirect not supported", status=status, url=url)


class VerificationError(HTTPError):
    """A 2xx verification response that reported embedded errors.

    The first embedded entry is kept in ``error``; the full list in ``errors``.
    """

    def __init__(self, errors: list[Any], status: Optional[int] = None, body: Any = None,
                 url: Optional[str] = None):
        first = errors[0]
        message = first.get("message", str(first)) if isinstance(first, dict) else str(first)
        super().__init__(message, status=status, errors=errors, body=body, url=url)
        self.error = first


class NoMatchingEndpointError(ConformanceError):
    """Raised when an implementation has no endpoint for a role and tag."""

    def __init__(self, implementation: str, role: str, tag: str):
        super().__init__(
            f"{implementation} has no {role} endpoint tagged {tag!r}",
            {"implementation": implementation, "role": role, "tag": tag},
        )
        self.implementation = implementation
        self.role = role
        self.tag = tag


class EnvelopeDecodeError(ConformanceError):
    """Raised when an enveloped document's data: URL cannot be decoded."""


class AssertionFailure(AssertionError):
    """A conformance assertion that did not hold.

    Attributes:
        reason: Human-readable description of the mismatch
        implementation: Name of the implementation that produced it, when known
        rule: Normative rule text being checked, when known
    """

    def __init__(self, reason: str, implementation: Optional[str] = None,
                 rule: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.implementation = implementation
        self.rule = rule

    def with_context(self, implementation: str, rule: str) -> "AssertionFailure":
        """Return a copy of this failure tagged with implementation and rule."""
        failure = AssertionFailure(self.reason, implementation, rule)
        failure.__cause__ = self.__cause__
        return failure

    def __str__(self) -> str:
        if self.implementation:
            return f"[{self.implementation}] {self.reason}"
        return self.reason
