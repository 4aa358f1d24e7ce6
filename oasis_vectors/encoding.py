"""Deterministic CBOR helpers.

The runtime SDK hashes and signs the canonical CBOR encoding of a
transaction, so every encoder here goes through :func:`cbor2.dumps` in
canonical mode: map keys sorted, integers in their shortest form, and only
definite-length items.
"""

from __future__ import annotations

from typing import Any

import cbor2

from oasis_vectors.errors import EncodeError


def cbor_encode(value: Any) -> bytes:
    """Encode *value* as canonical CBOR.

    Raises:
        EncodeError: If *value* contains an item CBOR cannot represent.
    """
    try:
        return cbor2.dumps(value, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as exc:
        raise EncodeError(f"cannot encode {type(value).__name__} as CBOR: {exc}") from exc


def cbor_decode(data: bytes) -> Any:
    """Decode a single CBOR item from *data*.

    Raises:
        EncodeError: If *data* is not well-formed CBOR.
    """
    try:
        return cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise EncodeError(f"cannot decode CBOR: {exc}") from exc


def quantity_to_bytes(value: int) -> bytes:
    """Big-endian minimal encoding of a non-negative integer.

    Zero encodes as the empty byte string.
    """
    if value < 0:
        raise ValueError(f"quantity must be non-negative, got {value}")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def quantity_from_bytes(data: bytes) -> int:
    if len(data) > 1 and data[0] == 0:
        raise ValueError("quantity has a leading zero byte")
    return int.from_bytes(data, "big")
