"""Tests for oasis_vectors.transaction: context derivation and signing."""

from __future__ import annotations

import pytest

from oasis_vectors.config import (
    MAINNET_CHAIN_CONTEXT,
    RUNTIME_ID,
    TESTNET_CHAIN_CONTEXT,
)
from oasis_vectors.errors import SigningError, VerificationError
from oasis_vectors.identity import verify_signature
from oasis_vectors.modules import Transfer, new_transfer_tx
from oasis_vectors.testkeys import ALICE, BOB, DAVE
from oasis_vectors.transaction import (
    TransactionBuilder,
    TransactionSigner,
    append_auth_signature,
    derive_chain_context,
    sign_transaction,
    signature_context,
    validate_basic,
    verify_transaction,
)
from oasis_vectors.types import BaseUnits, Fee, Transaction, UnverifiedTransaction

MAINNET_EMERALD = "cac08966e8ac2edf051c3ff598898260f3d878d00aa450573b70287b16eceab6"
MAINNET_EMERALD_ON_TESTNET = "dbf627a9bf971a5b38e75fd2adbe205721bacb269fe105fa5dde8051fdce9fb1"


def _transfer_tx() -> Transaction:
    body = Transfer(to=DAVE.address, amount=BaseUnits(amount=1000, denomination="ROSE"))
    return new_transfer_tx(Fee(amount=BaseUnits(amount=0, denomination="_"), gas=2000), body)


def _signed(key=ALICE, nonce: int = 1, context: str = MAINNET_EMERALD) -> UnverifiedTransaction:
    tx = _transfer_tx()
    append_auth_signature(tx, key.sig_spec, nonce)
    return sign_transaction(tx, context, [key.signer])


class TestContextDerivation:
    """Per-runtime chain contexts."""

    def test_mainnet_emerald_pinned(self) -> None:
        assert derive_chain_context(RUNTIME_ID, MAINNET_CHAIN_CONTEXT) == MAINNET_EMERALD

    def test_testnet_chain_context_pinned(self) -> None:
        assert derive_chain_context(RUNTIME_ID, TESTNET_CHAIN_CONTEXT) == MAINNET_EMERALD_ON_TESTNET

    def test_result_is_64_hex(self) -> None:
        derived = derive_chain_context(RUNTIME_ID, MAINNET_CHAIN_CONTEXT)
        assert len(derived) == 64
        assert derived == derived.lower()
        bytes.fromhex(derived)

    def test_runtime_id_length_checked(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            derive_chain_context(b"\x00" * 16, MAINNET_CHAIN_CONTEXT)

    def test_signature_context(self) -> None:
        assert signature_context(MAINNET_EMERALD) == (
            b"oasis-runtime-sdk/tx: v0 for chain " + MAINNET_EMERALD.encode("ascii")
        )


class TestTransactionBuilder:
    def test_build(self) -> None:
        fee = Fee(gas=1000)
        tx = TransactionBuilder().method("accounts.Transfer").body({}).fee(fee).build()
        assert tx.version == 1
        assert tx.call.method == "accounts.Transfer"
        assert tx.call.body == b"\xa0"
        assert tx.auth_info.fee == fee

    def test_missing_method_raises(self) -> None:
        with pytest.raises(ValueError, match="method"):
            TransactionBuilder().body({}).build()

    def test_missing_body_raises(self) -> None:
        with pytest.raises(ValueError, match="body"):
            TransactionBuilder().method("accounts.Transfer").build()

    def test_append_auth_signature_keeps_order(self) -> None:
        tx = _transfer_tx()
        append_auth_signature(tx, ALICE.sig_spec, 0)
        append_auth_signature(tx, DAVE.sig_spec, 7)
        slots = tx.auth_info.signer_info
        assert [si.address_spec.signature for si in slots] == [ALICE.sig_spec, DAVE.sig_spec]
        assert [si.nonce for si in slots] == [0, 7]


class TestSigning:
    def test_signature_over_raw_bytes(self) -> None:
        signed = _signed()
        sig = signed.signatures[0]
        assert sig.address_spec == ALICE.sig_spec
        assert verify_signature(
            ALICE.sig_spec,
            signature_context(MAINNET_EMERALD),
            signed.untrusted_raw_value,
            sig.signature,
        )

    def test_signer_without_slot_raises(self) -> None:
        tx = _transfer_tx()
        append_auth_signature(tx, ALICE.sig_spec, 1)
        with pytest.raises(SigningError, match="not found"):
            TransactionSigner(tx).append_sign(MAINNET_EMERALD, DAVE.signer)

    def test_encoding_is_fixed_at_construction(self) -> None:
        tx = _transfer_tx()
        append_auth_signature(tx, ALICE.sig_spec, 1)
        ts = TransactionSigner(tx)
        raw = ts.raw
        append_auth_signature(tx, BOB.sig_spec, 2)
        assert ts.raw == raw

    def test_multiple_signers(self) -> None:
        tx = _transfer_tx()
        append_auth_signature(tx, ALICE.sig_spec, 1)
        append_auth_signature(tx, DAVE.sig_spec, 2)
        signed = sign_transaction(tx, MAINNET_EMERALD, [DAVE.signer, ALICE.signer])
        assert [s.address_spec for s in signed.signatures] == [ALICE.sig_spec, DAVE.sig_spec]
        verify_transaction(signed, MAINNET_EMERALD)

    def test_deterministic(self) -> None:
        assert _signed(DAVE).to_cbor() == _signed(DAVE).to_cbor()


class TestVerification:
    @pytest.mark.parametrize("key", [ALICE, DAVE], ids=["ed25519", "secp256k1"])
    def test_verify_returns_decoded_tx(self, key) -> None:
        signed = _signed(key, nonce=3)
        tx = verify_transaction(signed, MAINNET_EMERALD)
        assert tx.auth_info.signer_info[0].nonce == 3
        assert tx.call.method == "accounts.Transfer"

    def test_wrong_context_fails(self) -> None:
        signed = _signed()
        other = derive_chain_context(RUNTIME_ID, TESTNET_CHAIN_CONTEXT)
        with pytest.raises(VerificationError, match="invalid signature"):
            verify_transaction(signed, other)

    def test_missing_signature_fails(self) -> None:
        signed = _signed()
        bare = UnverifiedTransaction(untrusted_raw_value=signed.untrusted_raw_value, signatures=[])
        with pytest.raises(VerificationError, match="0 signatures"):
            verify_transaction(bare, MAINNET_EMERALD)

    def test_spec_mismatch_fails(self) -> None:
        signed = _signed()
        forged = UnverifiedTransaction(
            untrusted_raw_value=signed.untrusted_raw_value,
            signatures=[signed.signatures[0].model_copy(update={"address_spec": BOB.sig_spec})],
        )
        with pytest.raises(VerificationError, match="address spec mismatch"):
            verify_transaction(forged, MAINNET_EMERALD)

    def test_garbage_raw_value_fails(self) -> None:
        bad = UnverifiedTransaction(untrusted_raw_value=b"\xa0", signatures=[])
        with pytest.raises(VerificationError, match="cannot decode"):
            verify_transaction(bad, MAINNET_EMERALD)


class TestValidateBasic:
    def test_accepts_signed_transaction(self) -> None:
        validate_basic(verify_transaction(_signed(), MAINNET_EMERALD))

    def test_rejects_unsigned(self) -> None:
        with pytest.raises(VerificationError, match="no auth slots"):
            validate_basic(_transfer_tx())

    def test_rejects_bad_method(self) -> None:
        tx = TransactionBuilder().method("Transfer").body({}).build()
        append_auth_signature(tx, ALICE.sig_spec, 0)
        with pytest.raises(VerificationError, match="method"):
            validate_basic(tx)

    def test_rejects_unknown_version(self) -> None:
        tx = _transfer_tx()
        append_auth_signature(tx, ALICE.sig_spec, 0)
        tx.version = 2
        with pytest.raises(VerificationError, match="version"):
            validate_basic(tx)
