"""Request bodies for the issue, verify and prove operations."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .fixtures import FixtureStore
from .registry import Endpoint

_default_fixtures = FixtureStore()


def create_request_body(
    issuer: Endpoint,
    vc: Optional[dict[str, Any]] = None,
    fixtures: Optional[FixtureStore] = None,
) -> dict[str, Any]:
    """Build an issuance request body.

    The credential is deep-copied first. When it has no ``issuer`` key the
    endpoint's ``id`` is filled in; an explicit ``null`` issuer is kept so
    that it can be tested.

    Args:
        issuer: Issuer endpoint the request is meant for
        vc: Credential to issue; defaults to the ``validVc.json`` fixture
        fixtures: Store to load the default credential from

    Returns:
        ``{"credential": ..., "options": ...}``; ``options`` is left out when
        the endpoint declares none
    """
    if vc is None:
        credential = (fixtures or _default_fixtures).load("validVc.json")
    else:
        credential = copy.deepcopy(vc)

    if isinstance(credential, dict) and "issuer" not in credential:
        credential["issuer"] = issuer.id

    body: dict[str, Any] = {"credential": credential}
    options = issuer.options
    if options is not None:
        body["options"] = options
    return body


def create_verify_request_body(vc: Any) -> dict[str, Any]:
    """Build a credential verification request body asking for proof checks."""
    return {
        "verifiableCredential": vc,
        "options": {
            "checks": ["proof"],
        },
    }


def create_verify_vp_body(vp: Any, options: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Build a presentation verification request body.

    Args:
        vp: Presentation to verify
        options: Verification options; defaults to ``{"checks": []}``
    """
    return {
        "verifiablePresentation": vp,
        "options": {"checks": []} if options is None else options,
    }


def create_iso_timestamp(when: Optional[datetime] = None) -> str:
    """Format a time as an ISO 8601 UTC timestamp with whole seconds.

    Args:
        when: Time to format; defaults to now. Naive values are taken as UTC.

    Returns:
        Timestamp such as ``2024-01-01T00:00:00Z``
    """
    if when is None:
        when = datetime.now(timezone.utc)
    elif when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def create_timestamp(skew_days: float = 0, now: Optional[datetime] = None) -> str:
    """Return a timestamp ``skew_days`` away from ``now`` (negative for the past)."""
    base = now if now is not None else datetime.now(timezone.utc)
    return create_iso_timestamp(base + timedelta(days=skew_days))
