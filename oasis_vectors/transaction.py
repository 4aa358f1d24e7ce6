"""Transaction construction, signing and verification.

Signing is domain-separated twice over:

1. :func:`derive_chain_context` binds a consensus chain context to one
   runtime, giving the hex ``signature_context`` stored in every vector;
2. :func:`signature_context` prefixes it with the SDK's transaction context
   base, and that byte string is what the signers hash together with the
   canonical CBOR of the transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Self

from oasis_vectors.encoding import cbor_encode
from oasis_vectors.errors import EncodeError, SigningError, VerificationError
from oasis_vectors.identity import Signer, sha512_256, verify_signature
from oasis_vectors.types import (
    AddressSpec,
    AuthInfo,
    AuthSignature,
    Call,
    Fee,
    SignatureAddressSpec,
    SignerInfo,
    Transaction,
    UnverifiedTransaction,
)

logger = logging.getLogger(__name__)

LATEST_TRANSACTION_VERSION = 1

SIGNATURE_CONTEXT_BASE = b"oasis-runtime-sdk/tx: v0"


# ---------------------------------------------------------------------------
# Context derivation
# ---------------------------------------------------------------------------


def derive_chain_context(runtime_id: bytes, chain_context: str) -> str:
    """Derive the per-runtime chain context.

    Args:
        runtime_id: The 32-byte runtime namespace.
        chain_context: The consensus chain context (64 hex digits).

    Returns:
        ``hex(SHA-512/256(runtime_id || chain_context))``.
    """
    if len(runtime_id) != 32:
        raise ValueError(f"runtime id must be 32 bytes, got {len(runtime_id)}")
    return sha512_256(runtime_id, chain_context.encode("ascii")).hex()


def signature_context(chain_context: str) -> bytes:
    """Full domain-separation context for transactions on a derived chain."""
    return SIGNATURE_CONTEXT_BASE + b" for chain " + chain_context.encode("ascii")


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


class TransactionBuilder:
    """Fluent builder for :class:`Transaction` instances.

    Example::

        tx = (
            TransactionBuilder()
            .method("accounts.Transfer")
            .body({"to": bytes(addr), "amount": amount.to_cbor_value()})
            .fee(Fee(gas=1000))
            .build()
        )
    """

    def __init__(self) -> None:
        self._method: str | None = None
        self._body: Any = None
        self._has_body = False
        self._fee: Fee = Fee()

    def method(self, name: str) -> Self:
        """Set the ``module.Method`` name."""
        self._method = name
        return self

    def body(self, value: Any) -> Self:
        """Set the body as a CBOR-encodable item."""
        self._body = value
        self._has_body = True
        return self

    def fee(self, fee: Fee) -> Self:
        self._fee = fee
        return self

    def build(self) -> Transaction:
        """Encode the body and return the unsigned :class:`Transaction`.

        Raises:
            ValueError: If the method or body is missing.
        """
        missing: list[str] = []
        if not self._method:
            missing.append("method")
        if not self._has_body:
            missing.append("body")
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")

        return Transaction(
            version=LATEST_TRANSACTION_VERSION,
            call=Call(method=self._method, body=cbor_encode(self._body)),  # type: ignore[arg-type]
            auth_info=AuthInfo(fee=self._fee.model_copy()),
        )


def append_auth_signature(tx: Transaction, spec: SignatureAddressSpec, nonce: int) -> None:
    """Append a signature auth slot for *spec* committing to *nonce*."""
    tx.auth_info.signer_info.append(
        SignerInfo(address_spec=AddressSpec(signature=spec), nonce=nonce)
    )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class TransactionSigner:
    """Collects signatures over one fixed encoding of a transaction.

    The transaction is encoded once on construction; later changes to the
    :class:`Transaction` object do not affect what gets signed.
    """

    def __init__(self, tx: Transaction) -> None:
        self._slots = [si.address_spec.signature for si in tx.auth_info.signer_info]
        self._raw = tx.to_cbor()
        self._signatures: list[bytes] = [b""] * len(self._slots)

    @property
    def raw(self) -> bytes:
        return self._raw

    def append_sign(self, chain_context: str, signer: Signer) -> None:
        """Sign with *signer* and store the signature in its auth slot.

        Raises:
            SigningError: If the signer's key has no auth slot.
        """
        public = signer.public()
        for index, spec in enumerate(self._slots):
            if spec.public_key == public:
                break
        else:
            raise SigningError("signer not found in transaction auth info")

        self._signatures[index] = signer.context_sign(signature_context(chain_context), self._raw)
        logger.debug("signed auth slot %d (%s) for chain %s", index, spec.algorithm, chain_context)

    def unverified_transaction(self) -> UnverifiedTransaction:
        return UnverifiedTransaction(
            untrusted_raw_value=self._raw,
            signatures=[
                AuthSignature(address_spec=spec, signature=sig)
                for spec, sig in zip(self._slots, self._signatures)
            ],
        )


def sign_transaction(
    tx: Transaction, chain_context: str, signers: list[Signer]
) -> UnverifiedTransaction:
    """Sign *tx* with every signer under the derived *chain_context*.

    Returns:
        The :class:`UnverifiedTransaction` pairing the encoded transaction
        with one signature per auth slot, in slot order.
    """
    ts = TransactionSigner(tx)
    for signer in signers:
        ts.append_sign(chain_context, signer)
    return ts.unverified_transaction()


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def validate_basic(tx: Transaction) -> None:
    """Stateless sanity checks on a decoded transaction.

    Raises:
        VerificationError: If the envelope is malformed.
    """
    if tx.version != LATEST_TRANSACTION_VERSION:
        raise VerificationError(f"unsupported transaction version {tx.version}")
    if not tx.auth_info.signer_info:
        raise VerificationError("transaction has no auth slots")
    if "." not in tx.call.method:
        raise VerificationError(f"malformed method name {tx.call.method!r}")


def verify_transaction(ut: UnverifiedTransaction, chain_context: str) -> Transaction:
    """Decode *ut* and verify every signature under *chain_context*.

    Returns:
        The decoded :class:`Transaction`.

    Raises:
        VerificationError: If decoding fails, the signature count does not
            match the auth slots, or any signature is invalid.
    """
    try:
        tx = Transaction.from_cbor(ut.untrusted_raw_value)
    except EncodeError as exc:
        raise VerificationError(f"cannot decode transaction: {exc}") from exc

    slots = tx.auth_info.signer_info
    if len(slots) != len(ut.signatures):
        raise VerificationError(f"{len(ut.signatures)} signatures for {len(slots)} auth slots")

    context = signature_context(chain_context)
    for index, (si, proof) in enumerate(zip(slots, ut.signatures)):
        spec = si.address_spec.signature
        if proof.address_spec != spec:
            raise VerificationError(f"auth slot {index}: address spec mismatch")
        if not verify_signature(spec, context, ut.untrusted_raw_value, proof.signature):
            raise VerificationError(f"auth slot {index}: invalid signature")
    return tx
