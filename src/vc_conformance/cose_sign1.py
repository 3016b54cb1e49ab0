"""COSE_Sign1 signing and verification for COSE-secured envelopes.

Signers and verifiers are pluggable so keys stay outside this module; ES256
implementations are provided.
"""

from typing import Any, Optional, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils

from . import cbor_utils

# COSE header labels
HEADER_ALG = 1
HEADER_CONTENT_TYPE = 3
HEADER_KID = 4

ALG_ES256 = -7


class Signer(Protocol):
    """Protocol for COSE_Sign1 signers."""

    def sign(self, message: bytes) -> bytes:
        """Sign a message and return the raw signature bytes."""

    @property
    def algorithm(self) -> int:
        """COSE algorithm identifier (e.g. -7 for ES256)."""


class Verifier(Protocol):
    """Protocol for COSE_Sign1 verifiers."""

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Return True if ``signature`` is valid for ``message``."""


def _sig_structure(protected: bytes, external_aad: bytes, payload: bytes) -> bytes:
    return cbor_utils.encode(["Signature1", protected, external_aad, payload])


def cose_sign1_sign(
    payload: bytes,
    signer: Signer,
    protected_header: Optional[dict[int, Any]] = None,
    unprotected_header: Optional[dict[int, Any]] = None,
    external_aad: bytes = b"",
) -> bytes:
    """Create a tagged COSE_Sign1 message.

    Args:
        payload: Bytes to sign (for envelopes, the JSON-serialized document)
        signer: Object implementing :class:`Signer`
        protected_header: Integrity-protected header parameters
        unprotected_header: Unprotected header parameters
        external_aad: External additional authenticated data

    Returns:
        CBOR-encoded COSE_Sign1 with tag 18
    """
    protected = dict(protected_header or {})
    protected.setdefault(HEADER_ALG, signer.algorithm)
    protected_bytes = cbor_utils.encode(protected)

    signature = signer.sign(_sig_structure(protected_bytes, external_aad, payload))

    message = [protected_bytes, dict(unprotected_header or {}), payload, signature]
    return cbor_utils.encode(cbor_utils.tag(cbor_utils.COSE_SIGN1_TAG, message))


def cose_sign1_decode(message: bytes) -> tuple[dict[int, Any], dict[int, Any], bytes, bytes]:
    """Split a COSE_Sign1 message into its parts without verifying it.

    Returns:
        Tuple of (protected header, unprotected header, payload, signature)

    Raises:
        ValueError: If the message is not a well-formed COSE_Sign1
    """
    try:
        decoded = cbor_utils.untag(cbor_utils.decode(message), cbor_utils.COSE_SIGN1_TAG)
    except cbor_utils.CBORDecodeError as e:
        raise ValueError(f"Invalid CBOR: {e}") from e

    if not isinstance(decoded, list) or len(decoded) != 4:
        raise ValueError("COSE_Sign1 must be an array of four items")

    protected_bytes, unprotected, payload, signature = decoded
    if not isinstance(payload, bytes):
        raise ValueError("COSE_Sign1 payload must be a byte string")
    protected = cbor_utils.decode(protected_bytes) if protected_bytes else {}
    return protected, unprotected or {}, payload, signature


def cose_sign1_verify(
    message: bytes,
    verifier: Verifier,
    external_aad: bytes = b"",
) -> tuple[bool, Optional[bytes]]:
    """Verify a COSE_Sign1 message.

    Returns:
        Tuple of (verification result, payload when verified)
    """
    try:
        decoded = cbor_utils.untag(cbor_utils.decode(message), cbor_utils.COSE_SIGN1_TAG)
        if not isinstance(decoded, list) or len(decoded) != 4:
            return False, None
        protected_bytes, _, payload, signature = decoded
        if verifier.verify(_sig_structure(protected_bytes, external_aad, payload), signature):
            return True, payload
        return False, None
    except (ValueError, TypeError, cbor_utils.CBORDecodeError):
        return False, None


class ES256Signer:
    """ECDSA P-256 / SHA-256 signer producing raw r||s signatures."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey, kid: Optional[str] = None):
        self.private_key = private_key
        self.kid = kid

    @classmethod
    def from_bytes(cls, private_key_bytes: bytes, kid: Optional[str] = None) -> "ES256Signer":
        """Create a signer from a 32-byte private scalar."""
        value = int.from_bytes(private_key_bytes, byteorder="big")
        return cls(ec.derive_private_key(value, ec.SECP256R1()), kid)

    @classmethod
    def generate(cls, kid: Optional[str] = None) -> "ES256Signer":
        return cls(ec.generate_private_key(ec.SECP256R1()), kid)

    def sign(self, message: bytes) -> bytes:
        der = self.private_key.sign(message, ec.ECDSA(hashes.SHA256()))
        r, s = utils.decode_dss_signature(der)
        return r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")

    @property
    def algorithm(self) -> int:
        return ALG_ES256

    @property
    def jose_algorithm(self) -> str:
        return "ES256"

    def verifier(self) -> "ES256Verifier":
        """Return the verifier for this signer's public key."""
        return ES256Verifier(self.private_key.public_key())


class ES256Verifier:
    """ECDSA P-256 / SHA-256 verifier for raw r||s signatures."""

    def __init__(self, public_key: ec.EllipticCurvePublicKey):
        self.public_key = public_key

    @classmethod
    def from_coordinates(cls, x: bytes, y: bytes) -> "ES256Verifier":
        numbers = ec.EllipticCurvePublicNumbers(
            int.from_bytes(x, byteorder="big"), int.from_bytes(y, byteorder="big"), ec.SECP256R1()
        )
        return cls(numbers.public_key())

    def verify(self, message: bytes, signature: bytes) -> bool:
        if len(signature) != 64:
            return False
        r = int.from_bytes(signature[:32], byteorder="big")
        s = int.from_bytes(signature[32:], byteorder="big")
        try:
            self.public_key.verify(utils.encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA256()))
            return True
        except InvalidSignature:
            return False
