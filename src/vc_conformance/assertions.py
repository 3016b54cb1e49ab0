"""Predicates that classify responses as conforming or not.

Every check raises :class:`~vc_conformance.errors.AssertionFailure` with a
reason describing the mismatch; none of them mutate their inputs.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from .documents import VERIFIABLE_CREDENTIAL, has_type, is_enveloped
from .endpoints import TestEndpoints
from .envelopes import extract_if_enveloped
from .errors import AssertionFailure, EnvelopeDecodeError, HTTPError
from .fixtures import FixtureStore
from .outcome import Outcome
from .request_bodies import create_timestamp

# Statuses that signal the normative "MUST reject invalid input"
INVALID_INPUT_STATUSES = frozenset({400, 422})

CREDENTIAL_REQUIRED = ("@context", "type", "issuer", "credentialSubject", "proof")
ENVELOPE_REQUIRED = ("@context", "type", "id")
ENVELOPED_CREDENTIAL_REQUIRED = ("@context", "type", "issuer", "credentialSubject")


def ensure(condition: Any, reason: str) -> None:
    """Raise :class:`AssertionFailure` with ``reason`` unless ``condition`` holds."""
    if not condition:
        raise AssertionFailure(reason)


def expect_rejected(outcome: Outcome, reason: str) -> HTTPError:
    """Require that a call was rejected.

    Returns:
        The rejection, for further checks
    """
    if outcome.ok:
        raise AssertionFailure(reason)
    return outcome.error


def expect_accepted(outcome: Outcome, reason: str) -> Any:
    """Require that a call succeeded.

    Returns:
        The decoded response body
    """
    if not outcome.ok:
        raise AssertionFailure(f"{reason} (status {outcome.status}: {outcome.error.message})")
    return outcome.data


def should_throw_invalid_input(outcome: Outcome) -> None:
    """Require an input-validation rejection: 400 or 422, never 401."""
    ensure(outcome.result is None, "Expected no result from issuer.")
    ensure(outcome.error is not None, "Expected issuer to Error.")
    status = outcome.error.status
    ensure(status is not None, "Expected an HTTP error response code.")
    ensure(status != 401, "Should not get an Authorization Error.")
    ensure(status in INVALID_INPUT_STATUSES, f"Expected status code 400 or 422 for invalid input, got {status}.")


def should_return_result(outcome: Outcome) -> None:
    error = outcome.error
    ensure(error is None, f"Expected no error, got {error.message if error else None}")
    ensure(outcome.result is not None, "Expected a result")


def _check_proof(proof: Any) -> None:
    ensure(not isinstance(proof, str), "Expected `proof` not to be a string.")
    if isinstance(proof, list):
        ensure(len(proof) > 0, "Expected at least one `proof`.")
        ensure(all(isinstance(p, dict) for p in proof), "Expected every `proof` to be an object.")
    else:
        ensure(isinstance(proof, dict), "Expected `proof` to be an object.")


def _check_subject(subject: Any) -> None:
    ensure(subject is not None, "Expected credentialSubject to exist.")
    subjects = subject if isinstance(subject, list) else [subject]
    ensure(len(subjects) > 0, "Expected credentialSubject to make a claim on at least one subject.")
    for item in subjects:
        ensure(isinstance(item, dict), "Expected credentialSubject to be an object.")
        ensure(len(item) > 0, "Expected credentialSubject to have at least one claim.")


def should_be_issued_vc(issued_vc: Any) -> None:
    """Check the shape of a credential returned by an issuance endpoint."""
    ensure(isinstance(issued_vc, dict), "Expected the issued Verifiable Credential to be an object.")
    ensure("@context" in issued_vc, "Expected `@context` in the issued credential.")
    ensure("type" in issued_vc, "Expected `type` in the issued credential.")
    ensure(has_type(issued_vc, VERIFIABLE_CREDENTIAL), 'Expected `type` to contain "VerifiableCredential".')
    ensure(isinstance(issued_vc.get("id"), str), "Expected `id` to be a string.")
    ensure("credentialSubject" in issued_vc, "Expected `credentialSubject` in the issued credential.")
    _check_subject(issued_vc["credentialSubject"])

    issuer = issued_vc.get("issuer")
    ensure(isinstance(issuer, (str, dict)), "Expected `issuer` to be a string or an object.")
    if isinstance(issuer, dict):
        ensure(issuer.get("id") is not None, "Expected issuer object to have property id")

    ensure("proof" in issued_vc, "Expected `proof` in the issued credential.")
    _check_proof(issued_vc["proof"])


def is_secured(document: Any) -> None:
    """Require exactly one securing mechanism: an embedded proof or an envelope.

    An embedded proof is an object or a non-empty list of objects. An envelope
    is an ``Enveloped*`` typed document whose ``id`` contains ``data:``.
    """
    ensure(isinstance(document, dict), "Expected a document object.")
    embedded = "proof" in document
    enveloped = is_enveloped(document) and "data:" in str(document.get("id", ""))
    ensure(embedded or enveloped, "Expected the document to be secured by a `proof` or an envelope.")
    ensure(not (embedded and enveloped), "Expected either a `proof` or an envelope, not both.")
    if embedded:
        _check_proof(document["proof"])


def includes_all_required_properties(document: Any) -> None:
    """Require the properties a conforming credential must carry.

    Enveloped credentials need ``@context``, ``type`` and ``id`` outside and
    ``@context``, ``type``, ``issuer`` and ``credentialSubject`` inside; the
    envelope itself is the securing mechanism.
    """
    ensure(isinstance(document, dict), "Expected a document object.")
    if is_enveloped(document):
        for prop in ENVELOPE_REQUIRED:
            ensure(prop in document, f"Expected enveloped document to have `{prop}`.")
        try:
            inner = extract_if_enveloped(document)
        except EnvelopeDecodeError as e:
            raise AssertionFailure(f"Could not decode enveloped document: {e.message}") from e
        for prop in ENVELOPED_CREDENTIAL_REQUIRED:
            ensure(isinstance(inner, dict) and prop in inner,
                   f"Expected enveloped credential payload to have `{prop}`.")
    else:
        for prop in CREDENTIAL_REQUIRED:
            ensure(prop in document, f"Expected credential to have `{prop}`.")


def check_validity_period(
    endpoints: TestEndpoints,
    fixtures: Optional[FixtureStore] = None,
    skew_days: int = 2,
    now: Optional[datetime] = None,
) -> str:
    """Check that ``validFrom`` after ``validUntil`` is rejected.

    A credential valid from ``skew_days`` ago until ``skew_days`` from now
    must issue. The same credential with the two dates swapped must be
    rejected either by the issuer or, if the issuer accepts it, by the
    verifier when the issued document is verified.

    Returns:
        ``"issue"`` or ``"verify"``, the stage that rejected the reversed period
    """
    fixtures = fixtures or FixtureStore()
    now = now or datetime.now(timezone.utc)
    earlier = create_timestamp(-skew_days, now)
    later = create_timestamp(skew_days, now)

    positive = fixtures.load("credential-ok.json")
    positive["validFrom"] = earlier
    positive["validUntil"] = later
    expect_accepted(endpoints.issue_outcome(positive),
                    "Failed to accept a VC with `validFrom` before `validUntil`.")

    negative = fixtures.load("credential-ok.json")
    negative["validFrom"] = later
    negative["validUntil"] = earlier
    issued = endpoints.issue_outcome(negative)
    if not issued.ok:
        return "issue"

    expect_rejected(endpoints.verify_outcome(issued.data),
                    "Failed to reject a VC with `validUntil` before `validFrom` "
                    "at issuance or verification.")
    return "verify"
