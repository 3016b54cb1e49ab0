"""CBOR helpers used by the COSE envelope strategy.

Keeps the cbor2 dependency behind a small interface so the COSE code never
touches the library directly.
"""

from typing import Any, Optional

import cbor2

CBORTag = cbor2.CBORTag
CBORDecodeError = cbor2.CBORDecodeError

# Tag for COSE_Sign1 (RFC 9052)
COSE_SIGN1_TAG = 18


def encode(obj: Any, canonical: bool = False) -> bytes:
    """Encode an object to CBOR bytes."""
    return cbor2.dumps(obj, canonical=canonical)


def decode(data: bytes) -> Any:
    """Decode CBOR bytes.

    Raises:
        CBORDecodeError: If the data is not valid CBOR
    """
    return cbor2.loads(data)


def tag(number: int, value: Any) -> CBORTag:
    return CBORTag(number, value)


def untag(obj: Any, expected: Optional[int] = None) -> Any:
    """Strip a CBOR tag from a value.

    Args:
        obj: Possibly-tagged value
        expected: Tag number the value must carry when tagged

    Returns:
        The tagged value, or ``obj`` itself when it was not tagged

    Raises:
        ValueError: If the value carries a tag other than ``expected``
    """
    if not isinstance(obj, CBORTag):
        return obj
    if expected is not None and obj.tag != expected:
        raise ValueError(f"Expected CBOR tag {expected}, got {obj.tag}")
    return obj.value
