"""Enveloped credentials and presentations.

An enveloped document carries its secured form in a ``data:`` URL ``id``.
Decoding is dispatched on the URL's media type to a registered strategy, so
JOSE compact serializations and COSE_Sign1 messages share one entry point.
The same strategies check envelope signatures against keys supplied by a
resolver.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol
from urllib.parse import unquote

import structlog

from . import jose
from .cose_sign1 import (
    HEADER_CONTENT_TYPE,
    HEADER_KID,
    ES256Signer,
    ES256Verifier,
    cose_sign1_decode,
    cose_sign1_sign,
    cose_sign1_verify,
)
from .documents import (
    BASE_CONTEXT_URL,
    ENVELOPED_CREDENTIAL,
    ENVELOPED_PRESENTATION,
    VERIFIABLE_PRESENTATION,
    has_type,
)
from .errors import EnvelopeDecodeError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DataURL:
    """Parsed RFC 2397 ``data:`` URL."""

    media_type: str
    parameters: tuple[str, ...]
    base64: bool
    data: str

    @property
    def raw(self) -> bytes:
        """The URL's data as bytes, base64-decoded when flagged."""
        if self.base64:
            try:
                return base64.b64decode(self.data + "=" * (-len(self.data) % 4), altchars=b"-_")
            except (binascii.Error, ValueError) as e:
                raise EnvelopeDecodeError(f"Invalid base64 in data URL: {e}") from e
        return unquote(self.data).encode("utf-8")


def parse_data_url(url: Any) -> DataURL:
    """Parse a ``data:`` URL.

    Raises:
        EnvelopeDecodeError: If ``url`` is not a string of the form
            ``data:<media type>[;params][;base64],<data>``
    """
    if not isinstance(url, str) or not url.startswith("data:"):
        raise EnvelopeDecodeError(f"Expected a data: URL, got {url!r:.80}")
    header, sep, data = url[len("data:"):].partition(",")
    if not sep:
        raise EnvelopeDecodeError("data: URL has no ',' separating media type and data")

    parts = [p.strip() for p in header.split(";")]
    media_type = parts[0].lower() or "text/plain"
    params = tuple(parts[1:])
    is_base64 = bool(params) and params[-1].lower() == "base64"
    if is_base64:
        params = params[:-1]
    return DataURL(media_type, params, is_base64, data)


# Given an envelope's header parameters (``kid``, and ``jwk`` for JOSE),
# return the key that should have signed it, or None when it is unknown
KeyResolver = Callable[[dict[str, Any]], Optional[ES256Verifier]]


class EnvelopeDecoder(Protocol):
    """Strategy that turns the data of an enveloping data: URL into a document."""

    def decode(self, data_url: DataURL) -> dict[str, Any]:
        """Return the secured document.

        Raises:
            EnvelopeDecodeError: If the data cannot be decoded
        """

    def verify(self, data_url: DataURL, resolve_key: KeyResolver) -> Optional[bool]:
        """Check the envelope's signature.

        Returns:
            True or False for a resolvable key, None when the key is unknown
        """


class JoseDecoder:
    """Decodes JWT and SD-JWT compact serializations (payload is segment 1)."""

    def _token(self, data_url: DataURL) -> str:
        # SD-JWT appends '~'-separated disclosures to the issuer-signed JWT
        return data_url.raw.decode("utf-8").strip().split("~", 1)[0]

    def decode(self, data_url: DataURL) -> dict[str, Any]:
        try:
            _, payload, _ = jose.jws_split(self._token(data_url))
        except (ValueError, UnicodeDecodeError) as e:
            raise EnvelopeDecodeError(f"Cannot decode {data_url.media_type} envelope: {e}") from e
        return payload

    def verify(self, data_url: DataURL, resolve_key: KeyResolver) -> Optional[bool]:
        token = self._token(data_url)
        try:
            header, _, _ = jose.jws_split(token)
        except ValueError:
            return False
        verifier = resolve_key(header)
        if verifier is None:
            return None
        return jose.jws_verify(token, verifier)[0]


class CoseDecoder:
    """Decodes base64-carried COSE_Sign1 messages with a JSON payload."""

    def decode(self, data_url: DataURL) -> dict[str, Any]:
        try:
            _, _, payload, _ = cose_sign1_decode(data_url.raw)
            document = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise EnvelopeDecodeError(f"Cannot decode {data_url.media_type} envelope: {e}") from e
        if not isinstance(document, dict):
            raise EnvelopeDecodeError("COSE envelope payload is not a JSON object")
        return document

    def verify(self, data_url: DataURL, resolve_key: KeyResolver) -> Optional[bool]:
        message = data_url.raw
        try:
            protected, unprotected, _, _ = cose_sign1_decode(message)
        except ValueError:
            return False
        kid = protected.get(HEADER_KID, unprotected.get(HEADER_KID))
        if isinstance(kid, bytes):
            kid = kid.decode("utf-8", errors="replace")
        verifier = resolve_key({"kid": kid})
        if verifier is None:
            return None
        return cose_sign1_verify(message, verifier)[0]


_jose = JoseDecoder()
_cose = CoseDecoder()

DEFAULT_DECODERS: dict[str, EnvelopeDecoder] = {
    "application/vc+jwt": _jose,
    "application/vp+jwt": _jose,
    "application/jwt": _jose,
    "application/vc+sd-jwt": _jose,
    "application/vp+sd-jwt": _jose,
    "application/vc+cose": _cose,
    "application/vp+cose": _cose,
    "application/cose": _cose,
}

# Structured syntax suffixes, for media types without an exact entry
SUFFIX_DECODERS: dict[str, EnvelopeDecoder] = {
    "jwt": _jose,
    "sd-jwt": _jose,
    "cose": _cose,
}


def decoder_for(media_type: str, decoders: Optional[dict[str, EnvelopeDecoder]] = None) -> EnvelopeDecoder:
    """Pick the decoding strategy for a media type.

    An exact entry in ``decoders`` wins; otherwise the ``+jwt``, ``+sd-jwt``
    or ``+cose`` suffix selects JOSE or COSE, so types such as
    ``application/vc-ld+jwt`` decode too.

    Raises:
        EnvelopeDecodeError: If neither the media type nor its suffix is known
    """
    decoder = (decoders or DEFAULT_DECODERS).get(media_type)
    if decoder is None and "+" in media_type:
        decoder = SUFFIX_DECODERS.get(media_type.rsplit("+", 1)[1])
    if decoder is None:
        raise EnvelopeDecodeError(f"No envelope decoder for media type {media_type!r}")
    return decoder


def decode_envelope(
    url: Any,
    decoders: Optional[dict[str, EnvelopeDecoder]] = None,
) -> dict[str, Any]:
    """Decode the secured document inside an enveloping data: URL.

    Args:
        url: The enveloped document's ``id``
        decoders: Strategies keyed by media type; defaults to JOSE and COSE

    Returns:
        The decoded document (claims set or payload)

    Raises:
        EnvelopeDecodeError: If the URL is malformed or no strategy handles its
            media type
    """
    data_url = parse_data_url(url)
    return decoder_for(data_url.media_type, decoders).decode(data_url)


def verify_envelope(
    document: Any,
    resolve_key: KeyResolver,
    decoders: Optional[dict[str, EnvelopeDecoder]] = None,
) -> Optional[bool]:
    """Verify the signature of an enveloped credential or presentation.

    Args:
        document: Document whose ``id`` is the enveloping data: URL
        resolve_key: Maps envelope header parameters to a verifier
        decoders: Strategies keyed by media type; defaults to JOSE and COSE

    Returns:
        True if the signature verifies, False if it does not or the resolved
        key is malformed, None if ``resolve_key`` does not know the signer

    Raises:
        EnvelopeDecodeError: If the URL is malformed or its media type unknown
    """
    url = document.get("id") if isinstance(document, dict) else None
    data_url = parse_data_url(url)
    try:
        verified = decoder_for(data_url.media_type, decoders).verify(data_url, resolve_key)
    except ValueError as e:
        logger.debug("envelope_key_invalid", media_type=data_url.media_type, reason=str(e))
        return False
    logger.debug("envelope_verified", media_type=data_url.media_type, verified=verified)
    return verified


def extract_if_enveloped(
    document: Any,
    decoders: Optional[dict[str, EnvelopeDecoder]] = None,
) -> Any:
    """Unwrap an enveloped credential or presentation.

    Documents whose ``type`` (scalar or array) names an enveloping term have
    their ``id`` decoded; the ``vc`` or ``vp`` claim is returned when present,
    else the whole decoded object. Any other document is returned unchanged,
    so applying this twice is the same as applying it once.

    Raises:
        EnvelopeDecodeError: If an enveloped document's ``id`` cannot be decoded
    """
    if has_type(document, ENVELOPED_CREDENTIAL):
        claim = "vc"
    elif has_type(document, ENVELOPED_PRESENTATION):
        claim = "vp"
    else:
        return document

    decoded = decode_envelope(document.get("id"), decoders)
    inner = decoded.get(claim, decoded)
    logger.debug("envelope_decoded", claim=claim, found_claim=claim in decoded)
    return inner


def envelop(
    document: dict[str, Any],
    signer: ES256Signer,
    media_type: Optional[str] = None,
) -> dict[str, Any]:
    """Secure a document with an enveloping proof.

    Args:
        document: Credential or presentation to secure
        signer: ES256 signer
        media_type: One of the JOSE or COSE media types; defaults to
            ``application/vc+jwt`` or ``application/vp+jwt`` by document type

    Returns:
        An ``EnvelopedVerifiableCredential`` or ``EnvelopedVerifiablePresentation``

    Raises:
        EnvelopeDecodeError: If the media type has no known serialization
    """
    presentation = has_type(document, VERIFIABLE_PRESENTATION)
    if media_type is None:
        media_type = "application/vp+jwt" if presentation else "application/vc+jwt"

    if media_type.endswith("+jwt") or media_type == "application/jwt":
        token = jose.jws_sign(document, signer, typ=media_type.split("/", 1)[1])
        url = f"data:{media_type},{token}"
    elif media_type.endswith("+cose"):
        protected: dict[int, Any] = {HEADER_CONTENT_TYPE: media_type.replace("+cose", "")}
        if signer.kid:
            protected[HEADER_KID] = signer.kid.encode("utf-8")
        message = cose_sign1_sign(json.dumps(document).encode("utf-8"), signer, protected)
        url = f"data:{media_type};base64,{base64.b64encode(message).decode('ascii')}"
    else:
        raise EnvelopeDecodeError(f"Cannot envelop with media type {media_type!r}")

    return {
        "@context": BASE_CONTEXT_URL,
        "type": ENVELOPED_PRESENTATION if presentation else ENVELOPED_CREDENTIAL,
        "id": url,
    }
