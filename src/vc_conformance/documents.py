"""Helpers for inspecting credential and presentation documents."""

import re
from typing import Any

BASE_CONTEXT_URL = "https://www.w3.org/ns/credentials/v2"
EXAMPLES_CONTEXT_URL = "https://www.w3.org/ns/credentials/examples/v2"

VERIFIABLE_CREDENTIAL = "VerifiableCredential"
VERIFIABLE_PRESENTATION = "VerifiablePresentation"
ENVELOPED_CREDENTIAL = "EnvelopedVerifiableCredential"
ENVELOPED_PRESENTATION = "EnvelopedVerifiablePresentation"

# XML Schema dateTimeStamp: a dateTime with a mandatory timezone offset
DATETIME_STAMP_RE = re.compile(
    r"^-?([1-9][0-9]{3,}|0[0-9]{3})-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])"
    r"T(([01][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9](\.[0-9]+)?|(24:00:00(\.0+)?))"
    r"(Z|(\+|-)((0[0-9]|1[0-3]):[0-5][0-9]|14:00))$"
)

_URL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:\S+$")


def type_values(document: Any) -> list[Any]:
    """Return a document's ``type`` as a list, whether scalar or array valued."""
    if not isinstance(document, dict) or "type" not in document:
        return []
    value = document["type"]
    return list(value) if isinstance(value, list) else [value]


def has_type(document: Any, term: str) -> bool:
    """Check whether ``term`` equals or is contained in the document's ``type``."""
    return term in type_values(document)


def context_values(document: Any) -> list[Any]:
    """Return a document's ``@context`` as a list, whether scalar or array valued."""
    if not isinstance(document, dict) or "@context" not in document:
        return []
    value = document["@context"]
    return list(value) if isinstance(value, list) else [value]


def is_enveloped(document: Any) -> bool:
    """Check whether a document is an enveloped credential or presentation."""
    return has_type(document, ENVELOPED_CREDENTIAL) or has_type(document, ENVELOPED_PRESENTATION)


def is_url(value: Any) -> bool:
    """Check whether a value looks like an absolute URL (scheme plus body, no spaces)."""
    return isinstance(value, str) and bool(_URL_RE.match(value))


def is_datetime_stamp(value: Any) -> bool:
    """Check whether a value is an XML Schema dateTimeStamp string."""
    return isinstance(value, str) and bool(DATETIME_STAMP_RE.match(value))


def concat_proof(existing: Any, new_proof: Any) -> Any:
    """Append a proof without overwriting an existing one.

    No existing proof yields ``new_proof``; a single proof becomes a
    two-element list; a list gets ``new_proof`` appended (as a new list).
    """
    if existing is None:
        return new_proof
    if isinstance(existing, list):
        return [*existing, new_proof]
    return [existing, new_proof]
