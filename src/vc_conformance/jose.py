"""Compact JWS serialization for JOSE-secured envelopes."""

import base64
import json
from typing import Any, Optional

from .cose_sign1 import ES256Signer, ES256Verifier


def b64url_encode(data: bytes) -> str:
    """Base64url-encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """Base64url-decode, tolerating missing padding.

    Raises:
        ValueError: If the input is not valid base64url
    """
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64url segment: {e}") from e


def _json_segment(obj: Any) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def jws_sign(
    payload: dict[str, Any],
    signer: ES256Signer,
    typ: str = "JWT",
    extra_headers: Optional[dict[str, Any]] = None,
) -> str:
    """Create a compact JWS over a JSON payload.

    Args:
        payload: Claims to sign
        signer: ES256 signer
        typ: Value of the ``typ`` header (e.g. ``vc+jwt``)
        extra_headers: Additional protected header parameters

    Returns:
        ``header.payload.signature`` string
    """
    header: dict[str, Any] = {"alg": signer.jose_algorithm, "typ": typ}
    if signer.kid:
        header["kid"] = signer.kid
    if extra_headers:
        header.update(extra_headers)

    signing_input = f"{_json_segment(header)}.{_json_segment(payload)}"
    signature = signer.sign(signing_input.encode("ascii"))
    return f"{signing_input}.{b64url_encode(signature)}"


def jws_split(token: str) -> tuple[dict[str, Any], dict[str, Any], bytes]:
    """Decode a compact JWS without verifying its signature.

    Returns:
        Tuple of (header, payload, signature)

    Raises:
        ValueError: If the token does not have three decodable segments
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError(f"Compact JWS needs 3 segments, got {len(parts)}")
    try:
        header = json.loads(b64url_decode(parts[0]))
        payload = json.loads(b64url_decode(parts[1]))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"JWS segment is not JSON: {e}") from e
    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise ValueError("JWS header and payload must be JSON objects")
    return header, payload, b64url_decode(parts[2])


def jws_verify(token: str, verifier: ES256Verifier) -> tuple[bool, Optional[dict[str, Any]]]:
    """Verify a compact ES256 JWS.

    Returns:
        Tuple of (verification result, payload when verified)
    """
    try:
        header, payload, signature = jws_split(token)
    except ValueError:
        return False, None
    if header.get("alg") != "ES256":
        return False, None
    signing_input = token.rsplit(".", 1)[0].encode("ascii")
    if verifier.verify(signing_input, signature):
        return True, payload
    return False, None
