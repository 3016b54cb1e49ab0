"""Local Data Integrity proofs for presentations and credentials.

Proofs are ``DataIntegrityProof`` objects using the ``eddsa-jcs-2022``
cryptosuite: the proof configuration and the unsecured document are
canonicalized as sorted, compact JSON, hashed with SHA-256, and the
concatenated hashes are signed with Ed25519. Keys are published as
``did:key`` identifiers so verifiers need no key registry.
"""

import copy
import hashlib
import json
import re
from typing import Any, Optional

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from multiformats import multibase, multicodec

from .documents import concat_proof, is_enveloped
from .request_bodies import create_iso_timestamp

logger = structlog.get_logger(__name__)

PROOF_TYPE = "DataIntegrityProof"
CRYPTOSUITE = "eddsa-jcs-2022"

# Identity multihash of a 32-byte secret key seed
SEED_HEADER = b"\x00\x20"

_HEX_SEED_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def canonicalize(obj: Any) -> bytes:
    """Serialize JSON with sorted keys and no insignificant whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_secret_key_seed(seed: str) -> bytes:
    """Decode a base58btc multibase seed wrapping a 32-byte identity multihash.

    Raises:
        ValueError: If the seed is not valid multibase or does not hold a
            32-byte identity multihash
    """
    try:
        decoded = multibase.decode(seed)
    except (KeyError, ValueError) as e:
        raise ValueError(f"Key seed is not valid multibase: {e}") from e
    if len(decoded) != len(SEED_HEADER) + 32 or not decoded.startswith(SEED_HEADER):
        raise ValueError("Key seed must be an identity multihash of 32 bytes")
    return decoded[len(SEED_HEADER):]


def seed_to_bytes(seed: str) -> bytes:
    """Turn a configured key seed into 32 bytes of key material.

    Seeds starting with ``z`` are base58btc multibase identity multihashes, the
    format ``KEY_SEED`` variables are generated in. A 64-character hex string
    is used as-is. Any other string is treated as a passphrase and hashed with
    SHA-256.

    Raises:
        ValueError: If a ``z`` seed is malformed
    """
    if seed.startswith("z"):
        return decode_secret_key_seed(seed)
    if _HEX_SEED_RE.match(seed):
        return bytes.fromhex(seed)
    return hashlib.sha256(seed.encode("utf-8")).digest()


def did_key_for(public_key: Ed25519PublicKey) -> str:
    """Return the ``did:key`` identifier for an Ed25519 public key."""
    raw = public_key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
    return "did:key:" + multibase.encode(multicodec.wrap("ed25519-pub", raw), "base58btc")


def public_key_from_did_key(verification_method: str) -> Ed25519PublicKey:
    """Resolve the Ed25519 public key behind a ``did:key`` verification method.

    Raises:
        ValueError: If the identifier is not an Ed25519 ``did:key``
    """
    did = verification_method.split("#", 1)[0]
    if not did.startswith("did:key:"):
        raise ValueError(f"Unsupported verification method {verification_method!r}")
    try:
        codec, raw = multicodec.unwrap(multibase.decode(did[len("did:key:"):]))
    except (KeyError, ValueError) as e:
        raise ValueError(f"Malformed did:key: {e}") from e
    if codec.name != "ed25519-pub" or len(raw) != 32:
        raise ValueError("did:key is not an Ed25519 key")
    return Ed25519PublicKey.from_public_bytes(bytes(raw))


def _hash_data(document: dict[str, Any], proof_config: dict[str, Any]) -> bytes:
    return hashlib.sha256(canonicalize(proof_config)).digest() + hashlib.sha256(canonicalize(document)).digest()


class LocalSigner:
    """Ed25519 key that issues Data Integrity proofs."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key
        self.controller = did_key_for(private_key.public_key())
        self.verification_method = f"{self.controller}#{self.controller[len('did:key:'):]}"

    @classmethod
    def from_seed(cls, seed: str) -> "LocalSigner":
        """Derive a deterministic signer from a key seed."""
        return cls(Ed25519PrivateKey.from_private_bytes(seed_to_bytes(seed)))

    def create_proof(
        self,
        document: dict[str, Any],
        proof_purpose: str = "assertionMethod",
        challenge: Optional[str] = None,
        domain: Optional[str] = None,
        created: Optional[str] = None,
    ) -> dict[str, Any]:
        """Create a proof over ``document`` (its existing ``proof`` is excluded).

        Args:
            document: Credential or presentation to secure
            proof_purpose: ``assertionMethod`` for credentials, ``authentication``
                for presentations
            challenge: Optional verifier-supplied challenge
            domain: Optional domain the proof is bound to
            created: Creation timestamp; defaults to now

        Returns:
            The proof object with its ``proofValue``
        """
        unsecured = {k: v for k, v in document.items() if k != "proof"}

        proof: dict[str, Any] = {
            "type": PROOF_TYPE,
            "cryptosuite": CRYPTOSUITE,
            "created": created or create_iso_timestamp(),
            "verificationMethod": self.verification_method,
            "proofPurpose": proof_purpose,
        }
        if challenge is not None:
            proof["challenge"] = challenge
        if domain is not None:
            proof["domain"] = domain

        proof_config = dict(proof)
        if "@context" in unsecured:
            proof_config["@context"] = unsecured["@context"]

        signature = self.private_key.sign(_hash_data(unsecured, proof_config))
        proof["proofValue"] = multibase.encode(signature, "base58btc")
        return proof

    def sign(self, document: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        """Return a copy of ``document`` with a new proof appended."""
        secured = copy.deepcopy(document)
        secured["proof"] = concat_proof(document.get("proof"), self.create_proof(document, **kwargs))
        return secured

    def sign_credential(self, credential: dict[str, Any]) -> dict[str, Any]:
        """Issue a credential locally, setting this key's controller as issuer."""
        unsigned = copy.deepcopy(credential)
        unsigned["issuer"] = self.controller
        return self.sign(unsigned, proof_purpose="assertionMethod")

    def sign_presentation(
        self,
        presentation: dict[str, Any],
        challenge: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> dict[str, Any]:
        """Secure a presentation, first issuing any contained credential lacking a proof.

        Enveloped credentials and credentials that already carry a proof are
        left as they are.
        """
        unsigned = copy.deepcopy(presentation)
        credentials = unsigned.get("verifiableCredential")
        if isinstance(credentials, dict):
            credentials = [credentials]
            unsigned["verifiableCredential"] = credentials
        if isinstance(credentials, list):
            for i, credential in enumerate(credentials):
                if isinstance(credential, dict) and "proof" not in credential and not is_enveloped(credential):
                    credentials[i] = self.sign_credential(credential)

        logger.debug("presentation_signed", verification_method=self.verification_method)
        return self.sign(unsigned, proof_purpose="authentication", challenge=challenge, domain=domain)


def verify_proof(document: dict[str, Any]) -> bool:
    """Verify every ``eddsa-jcs-2022`` proof on a document.

    Each proof is checked against the document with all proofs removed, the
    way proofs in a proof set are created.

    Returns:
        True if the document has at least one such proof and all of them verify
    """
    proofs = document.get("proof")
    if proofs is None:
        return False
    if not isinstance(proofs, list):
        proofs = [proofs]

    unsecured = {k: v for k, v in document.items() if k != "proof"}
    checked = 0
    for proof in proofs:
        if not isinstance(proof, dict) or proof.get("cryptosuite") != CRYPTOSUITE:
            continue
        proof_config = {k: v for k, v in proof.items() if k != "proofValue"}
        if "@context" in unsecured:
            proof_config["@context"] = unsecured["@context"]
        value = proof.get("proofValue", "")
        if not isinstance(value, str) or not value.startswith("z"):
            return False
        try:
            public_key = public_key_from_did_key(proof.get("verificationMethod", ""))
            public_key.verify(multibase.decode(value), _hash_data(unsecured, proof_config))
        except (KeyError, ValueError, InvalidSignature):
            return False
        checked += 1
    return checked > 0
