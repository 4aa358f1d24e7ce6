"""Runtime test-vector records.

A :class:`RuntimeTestVector` is everything a downstream validator needs to
check one signed transaction offline: the derived signature context, the
unsigned and signed encodings, the signer's raw key material, and free-form
``tx_details`` describing what a user would have been shown. ``valid``
states whether static validation of the signed transaction against those
details is expected to pass.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from oasis_vectors.errors import BadAddressError, EncodeError, VerificationError
from oasis_vectors.helpers import resolve_address
from oasis_vectors.modules import decode_body
from oasis_vectors.testkeys import TestKey
from oasis_vectors.transaction import (
    append_auth_signature,
    derive_chain_context,
    sign_transaction,
    validate_basic,
    verify_transaction,
)
from oasis_vectors.types import Transaction, UnverifiedTransaction

logger = logging.getLogger(__name__)

KIND_PREFIX = "oasis-sdk runtime test vectors: "

_BYTES_FIELDS = ("encoded_tx", "encoded_signed_tx", "signer_private_key", "signer_public_key")


class RuntimeTestVector(BaseModel):
    """One runtime transaction test vector.

    Field names are the JSON keys of the emitted corpus; byte fields render
    as standard base64.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    signature_context: str
    tx: str
    tx_details: dict[str, str] | None
    signed_tx: UnverifiedTransaction
    encoded_tx: bytes
    encoded_signed_tx: bytes
    valid: bool
    signer_algorithm: Literal["ed25519_raw", "secp256k1_raw"]
    signer_private_key: bytes
    signer_public_key: bytes

    @field_validator(*_BYTES_FIELDS, mode="before")
    @classmethod
    def _parse_bytes(cls, v: Any) -> Any:
        if isinstance(v, str):
            return base64.b64decode(v, validate=True)
        return v

    @field_serializer(*_BYTES_FIELDS, when_used="json")
    def _serialize_bytes(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")


def make_runtime_test_vector(
    kind: str,
    tx: Transaction,
    tx_details: Mapping[str, str] | None,
    valid: bool,
    key: TestKey,
    nonce: int,
    chain_context: str,
) -> RuntimeTestVector:
    """Sign *tx* as *key* and pack the result into a test vector.

    An auth slot for *key* with *nonce* is appended to *tx* first, so the
    caller must pass a freshly built transaction.

    Args:
        kind: Short name such as ``"Deposit"``; the corpus prefix is added.
        tx: The unsigned transaction.
        tx_details: Extra details shown to the user (may be ``None``).
        valid: Whether static validation against *tx_details* should pass.
        key: The signing identity.
        nonce: Nonce committed to in the auth slot.
        chain_context: The derived per-runtime chain context (hex).

    Raises:
        SigningError: If signing fails.
        VerificationError: If the freshly signed transaction does not verify.
    """
    append_auth_signature(tx, key.sig_spec, nonce)
    signed = sign_transaction(tx, chain_context, [key.signer])

    verified = verify_transaction(signed, chain_context)
    validate_basic(verified)

    return RuntimeTestVector(
        kind=KIND_PREFIX + kind,
        signature_context=chain_context,
        tx=tx.to_json(),
        tx_details=dict(tx_details) if tx_details is not None else None,
        signed_tx=signed,
        encoded_tx=tx.to_cbor(),
        encoded_signed_tx=signed.to_cbor(),
        valid=valid,
        signer_algorithm=key.algorithm,
        signer_private_key=key.unsafe_bytes,
        signer_public_key=key.public_key,
    )


def verify_vector(vector: RuntimeTestVector, default_chain_context: str | None = None) -> bool:
    """Statically validate a vector the way an offline signer would.

    The signature context is recomputed from ``tx_details`` rather than taken
    from the vector, and an ``orig_to`` detail must resolve to the body's
    destination.

    Returns:
        ``True`` if every check passes.
    """
    details = vector.tx_details or {}
    try:
        runtime_id = bytes.fromhex(details["runtime_id"])
        chain_context = details.get("chain_context") or default_chain_context
        if chain_context is None:
            return False
        context = derive_chain_context(runtime_id, chain_context)
        tx = verify_transaction(vector.signed_tx, context)
        validate_basic(tx)
    except (KeyError, ValueError, VerificationError) as exc:
        logger.debug("vector %r rejected: %s", vector.kind, exc)
        return False

    orig_to = details.get("orig_to")
    if orig_to:
        try:
            expected = resolve_address(orig_to)
            body = decode_body(tx)
        except (BadAddressError, EncodeError) as exc:
            logger.debug("vector %r rejected: %s", vector.kind, exc)
            return False
        if getattr(body, "to", None) != expected:
            logger.debug("vector %r rejected: orig_to does not match body", vector.kind)
            return False
    return True
