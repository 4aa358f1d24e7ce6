"""Error taxonomy for the runtime test-vector generator.

Every error raised while building vectors from the fixed test data is a
programming bug rather than user error, so the hierarchy is deliberately
flat: each exception carries a stable ``code`` that the CLI reports before
exiting with a non-zero status.
"""

from __future__ import annotations


class VectorError(Exception):
    """Base class for all generator errors."""

    code = "ERR_INTERNAL"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"{self.code}: {message}")


class BadAddressError(VectorError, ValueError):
    """Raised when an address string cannot be resolved."""

    code = "ERR_BAD_ADDRESS"


class SigningError(VectorError):
    """Raised when a signing primitive fails."""

    code = "ERR_SIGN"


class EncodeError(VectorError):
    """Raised when CBOR or JSON serialisation fails."""

    code = "ERR_ENCODE"


class VerificationError(VectorError):
    """Raised when a freshly signed transaction fails its own verification."""

    code = "ERR_VERIFY"
