"""Tests for oasis_vectors.types: value types plus their CBOR and JSON views."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from oasis_vectors.encoding import cbor_decode, cbor_encode, quantity_from_bytes
from oasis_vectors.errors import EncodeError
from oasis_vectors.modules import Deposit, new_deposit_tx
from oasis_vectors.testkeys import ALICE, DAVE
from oasis_vectors.transaction import append_auth_signature, sign_transaction
from oasis_vectors.types import (
    Address,
    BaseUnits,
    Fee,
    SignatureAddressSpec,
    Transaction,
    UnverifiedTransaction,
    _regroup,
    bech32_decode,
    bech32_encode,
)

ALICE_NATIVE = "oasis1qrec770vrek0a9a5lcrv0zvt22504k68svq7kzve"
CONTEXT = "cac08966e8ac2edf051c3ff598898260f3d878d00aa450573b70287b16eceab6"


def _deposit_tx(fee: Fee | None = None) -> Transaction:
    body = Deposit(amount=BaseUnits(amount=1000, denomination="ROSE"))
    tx = new_deposit_tx(fee or Fee(), body)
    append_auth_signature(tx, ALICE.sig_spec, 1)
    return tx


class TestBech32:
    """BIP-173 encoding of runtime addresses."""

    def test_roundtrip(self) -> None:
        hrp, data = bech32_decode(ALICE_NATIVE)
        assert hrp == "oasis"
        assert bech32_encode(hrp, data) == ALICE_NATIVE

    def test_upper_case_accepted(self) -> None:
        assert bech32_decode(ALICE_NATIVE.upper()) == bech32_decode(ALICE_NATIVE)

    def test_mixed_case_rejected(self) -> None:
        with pytest.raises(ValueError, match="mixed-case"):
            bech32_decode("oasis1Qrec770vrek0a9a5lcrv0zvt22504k68svq7kzve")

    def test_bad_checksum_rejected(self) -> None:
        bad = ALICE_NATIVE[:-1] + ("q" if ALICE_NATIVE[-1] != "q" else "p")
        with pytest.raises(ValueError, match="checksum"):
            bech32_decode(bad)

    def test_non_zero_padding_rejected(self) -> None:
        assert _regroup([0, 0], 5, 8, pad=False) == [0]
        with pytest.raises(ValueError, match="padding"):
            _regroup([0, 1], 5, 8, pad=False)

    def test_excess_padding_rejected(self) -> None:
        with pytest.raises(ValueError, match="padding"):
            _regroup([1], 5, 8, pad=False)


class TestAddress:
    def test_from_bech32(self) -> None:
        address = Address.from_bech32(ALICE_NATIVE)
        assert address == ALICE.address
        assert str(address) == ALICE_NATIVE

    def test_wrong_hrp_rejected(self) -> None:
        bad = bech32_encode("btc", bytes(ALICE.address))
        with pytest.raises(ValueError, match="HRP"):
            Address.from_bech32(bad)

    def test_wrong_length_rejected(self) -> None:
        bad = bech32_encode("oasis", b"\x00" * 20)
        with pytest.raises(ValueError, match="21 bytes"):
            Address.from_bech32(bad)

    def test_is_bytes(self) -> None:
        assert isinstance(ALICE.address, bytes)
        assert len(ALICE.address) == Address.SIZE


class TestBaseUnits:
    def test_cbor_value(self) -> None:
        units = BaseUnits(amount=1000, denomination="ROSE")
        assert units.to_cbor_value() == [b"\x03\xe8", b"ROSE"]

    def test_zero_amount_is_empty_bytes(self) -> None:
        assert BaseUnits().to_cbor_value() == [b"", b""]

    def test_large_amount(self) -> None:
        units = BaseUnits(amount=10_000_000_000_000_000_000, denomination="ROSE")
        assert BaseUnits.from_cbor_value(units.to_cbor_value()) == units

    def test_sentinel_denomination_preserved(self) -> None:
        units = BaseUnits(amount=0, denomination="_")
        assert units.to_cbor_value() == [b"", b"_"]

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BaseUnits(amount=-1)

    def test_json_view(self) -> None:
        units = BaseUnits(amount=1000, denomination="ROSE")
        assert units.model_dump(mode="json", by_alias=True) == {
            "Amount": "1000",
            "Denomination": "ROSE",
        }

    def test_leading_zero_quantity_rejected(self) -> None:
        with pytest.raises(ValueError, match="leading zero"):
            quantity_from_bytes(b"\x00\x01")


class TestFee:
    def test_empty_fee_omits_gas(self) -> None:
        assert Fee().to_cbor_value() == {"amount": [b"", b""]}

    def test_gas_included_when_set(self) -> None:
        fee = Fee(amount=BaseUnits(amount=0, denomination="_"), gas=2000)
        assert fee.to_cbor_value() == {"amount": [b"", b"_"], "gas": 2000}

    def test_roundtrip(self) -> None:
        fee = Fee(amount=BaseUnits(amount=424_242_424_242, denomination="ROSE"), gas=3000)
        assert Fee.from_cbor_value(fee.to_cbor_value()) == fee

    def test_gas_overflow_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Fee(gas=2**64)


class TestSignatureAddressSpec:
    def test_requires_a_key(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            SignatureAddressSpec()

    def test_rejects_two_keys(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            SignatureAddressSpec(ed25519=ALICE.public_key, secp256k1eth=DAVE.public_key)

    def test_rejects_wrong_size(self) -> None:
        with pytest.raises(ValidationError, match="33 bytes"):
            SignatureAddressSpec(secp256k1eth=ALICE.public_key)

    def test_json_omits_unset_key(self) -> None:
        view = DAVE.sig_spec.model_dump(mode="json")
        assert list(view) == ["secp256k1eth"]

    def test_json_roundtrip(self) -> None:
        text = ALICE.sig_spec.model_dump_json()
        assert SignatureAddressSpec.model_validate_json(text) == ALICE.sig_spec

    def test_cbor_value(self) -> None:
        assert ALICE.sig_spec.to_cbor_value() == {"ed25519": ALICE.public_key}


class TestTransaction:
    def test_cbor_shape(self) -> None:
        value = cbor_decode(_deposit_tx().to_cbor())
        assert value["v"] == 1
        assert value["call"]["method"] == "consensus.Deposit"
        assert value["call"]["body"] == {"amount": [b"\x03\xe8", b"ROSE"]}
        assert value["ai"]["si"] == [
            {"address_spec": {"signature": {"ed25519": ALICE.public_key}}, "nonce": 1}
        ]
        assert value["ai"]["fee"] == {"amount": [b"", b""]}

    def test_cbor_is_canonical(self) -> None:
        raw = _deposit_tx().to_cbor()
        assert cbor_encode(cbor_decode(raw)) == raw

    def test_cbor_roundtrip(self) -> None:
        tx = _deposit_tx(Fee(amount=BaseUnits(amount=123_456_789, denomination="TEST"), gas=4000))
        assert Transaction.from_cbor(tx.to_cbor()).to_cbor() == tx.to_cbor()

    def test_json_uses_short_keys(self) -> None:
        view = json.loads(_deposit_tx().to_json())
        assert set(view) == {"v", "call", "ai"}
        assert set(view["ai"]) == {"si", "fee"}

    def test_json_roundtrip_matches_cbor(self) -> None:
        tx = _deposit_tx()
        assert Transaction.from_json(tx.to_json()).to_cbor() == tx.to_cbor()

    def test_malformed_cbor_rejected(self) -> None:
        with pytest.raises(EncodeError):
            Transaction.from_cbor(cbor_encode({"v": 1}))


class TestUnverifiedTransaction:
    def test_wire_shape(self) -> None:
        signed = sign_transaction(_deposit_tx(), CONTEXT, [ALICE.signer])
        raw, proofs = cbor_decode(signed.to_cbor())
        assert raw == signed.untrusted_raw_value
        assert proofs == [{"signature": signed.signatures[0].signature}]

    def test_cbor_roundtrip(self) -> None:
        signed = sign_transaction(_deposit_tx(), CONTEXT, [ALICE.signer])
        assert UnverifiedTransaction.from_cbor(signed.to_cbor()) == signed

    def test_json_view(self) -> None:
        signed = sign_transaction(_deposit_tx(), CONTEXT, [ALICE.signer])
        view = signed.model_dump(mode="json")
        assert set(view) == {"untrusted_raw_value", "signatures"}
        assert set(view["signatures"][0]) == {"address_spec", "signature"}
        assert set(view["signatures"][0]["address_spec"]) == {"ed25519"}

    def test_signature_count_mismatch_rejected(self) -> None:
        signed = sign_transaction(_deposit_tx(), CONTEXT, [ALICE.signer])
        bad = cbor_encode([signed.untrusted_raw_value, []])
        with pytest.raises(EncodeError, match="0 signatures"):
            UnverifiedTransaction.from_cbor(bad)
