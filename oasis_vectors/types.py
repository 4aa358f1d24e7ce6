"""Core runtime SDK types used by the test-vector generator.

All data structures are Pydantic v2 models. Each model knows two
renderings of itself:

* the canonical CBOR item (``to_cbor_value`` / ``from_cbor_value``) that is
  hashed, signed and embedded in ``encoded_tx``;
* the JSON view produced by ``model_dump(mode="json", by_alias=True)``, where
  byte strings are base64, quantities are decimal strings and addresses are
  bech32 text with the ``oasis`` human-readable prefix.
"""

from __future__ import annotations

import base64
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    GetCoreSchemaHandler,
    field_serializer,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic_core import CoreSchema, core_schema

from oasis_vectors.encoding import (
    cbor_decode,
    cbor_encode,
    quantity_from_bytes,
    quantity_to_bytes,
)
from oasis_vectors.errors import EncodeError

U64_MAX = 2**64 - 1

Uint64 = Annotated[int, Field(ge=0, le=U64_MAX)]


# ---------------------------------------------------------------------------
# Bech32 (BIP-173) helpers
# ---------------------------------------------------------------------------

_BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_BECH32_HRP = "oasis"

_KEY_SIZES = {"ed25519": 32, "secp256k1eth": 33}


def _polymod(values: list[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for i, gen in enumerate(_BECH32_GENERATOR):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _regroup(data: bytes | list[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    """Regroup bit groups; with ``pad=False`` leftover bits must be zero padding."""
    acc = bits = 0
    out: list[int] = []
    mask = (1 << to_bits) - 1
    for value in data:
        if value >> from_bits:
            raise ValueError(f"value {value} does not fit in {from_bits} bits")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & mask)
    if pad and bits:
        out.append((acc << (to_bits - bits)) & mask)
    elif not pad and (bits >= from_bits or (acc << (to_bits - bits)) & mask):
        raise ValueError("non-zero padding bits")
    return out


def bech32_encode(hrp: str, data: bytes) -> str:
    """Encode raw *data* as a bech32 string with the given HRP."""
    values = _regroup(data, 8, 5, pad=True)
    polymod = _polymod(_hrp_expand(hrp) + values + [0] * 6) ^ 1
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(_BECH32_CHARSET[v] for v in values + checksum)


def bech32_decode(text: str) -> tuple[str, bytes]:
    """Decode a bech32 string into ``(hrp, data)``.

    Raises:
        ValueError: On mixed case, a bad separator, unknown characters or a
            checksum mismatch.
    """
    if text != text.lower() and text != text.upper():
        raise ValueError("mixed-case bech32 string")
    text = text.lower()
    pos = text.rfind("1")
    if pos < 1 or pos + 7 > len(text):
        raise ValueError("invalid bech32 separator position")
    hrp = text[:pos]
    try:
        values = [_BECH32_CHARSET.index(c) for c in text[pos + 1 :]]
    except ValueError as exc:
        raise ValueError("invalid bech32 character") from exc
    if _polymod(_hrp_expand(hrp) + values) != 1:
        raise ValueError("invalid bech32 checksum")
    return hrp, bytes(_regroup(values[:-6], 5, 8, pad=False))


def _b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _from_b64(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------


class Address(bytes):
    """A 21-byte runtime address: one version byte followed by 20 hash bytes.

    Subclasses ``bytes`` so it drops straight into CBOR bodies, while ``str()``
    and the JSON view render the bech32 ``oasis1...`` form.
    """

    SIZE = 21

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str, when_used="json"
            ),
        )

    @classmethod
    def _validate(cls, v: Any) -> "Address":
        if isinstance(v, cls):
            return v
        if isinstance(v, str):
            return cls.from_bech32(v)
        if isinstance(v, (bytes, bytearray)):
            if len(v) != cls.SIZE:
                raise ValueError(f"address must be {cls.SIZE} bytes, got {len(v)}")
            return cls(v)
        raise ValueError("address must be bytes or a bech32 string")

    @classmethod
    def from_bech32(cls, text: str) -> "Address":
        """Parse an ``oasis1...`` string.

        Raises:
            ValueError: If the string is not valid bech32, has the wrong HRP,
                or does not carry exactly 21 bytes.
        """
        hrp, data = bech32_decode(text)
        if hrp != _BECH32_HRP:
            raise ValueError(f"expected HRP '{_BECH32_HRP}', got '{hrp}'")
        if len(data) != cls.SIZE:
            raise ValueError(f"address must be {cls.SIZE} bytes, got {len(data)}")
        return cls(data)

    @property
    def version(self) -> int:
        return self[0]

    def __str__(self) -> str:
        return bech32_encode(_BECH32_HRP, bytes(self))

    def __repr__(self) -> str:
        return f"Address({str(self)!r})"


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


class BaseUnits(BaseModel):
    """An arbitrary-precision amount in a given denomination.

    The denomination is opaque: ``""`` is the native token and ``"_"`` is just
    another string as far as this package is concerned.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    amount: int = Field(default=0, ge=0, alias="Amount")
    denomination: str = Field(default="", alias="Denomination")

    @field_serializer("amount")
    def _serialize_amount(self, v: int) -> str:
        return str(v)

    def to_cbor_value(self) -> list[bytes]:
        return [quantity_to_bytes(self.amount), self.denomination.encode("ascii")]

    @classmethod
    def from_cbor_value(cls, value: Any) -> "BaseUnits":
        if not isinstance(value, list) or len(value) != 2:
            raise EncodeError("base units must be a 2-element array")
        quantity, denomination = value
        return cls(amount=quantity_from_bytes(quantity), denomination=denomination.decode("ascii"))


class Fee(BaseModel):
    """Transaction fee: an amount plus a gas limit."""

    model_config = ConfigDict(frozen=True)

    amount: BaseUnits = Field(default_factory=BaseUnits)
    gas: Uint64 = 0
    consensus_messages: Annotated[int, Field(ge=0, le=2**32 - 1)] = 0

    def to_cbor_value(self) -> dict[str, Any]:
        value: dict[str, Any] = {"amount": self.amount.to_cbor_value()}
        if self.gas:
            value["gas"] = self.gas
        if self.consensus_messages:
            value["consensus_messages"] = self.consensus_messages
        return value

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "Fee":
        return cls(
            amount=BaseUnits.from_cbor_value(value["amount"]),
            gas=value.get("gas", 0),
            consensus_messages=value.get("consensus_messages", 0),
        )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class SignatureAddressSpec(BaseModel):
    """Identifies a signer by algorithm and public key.

    Exactly one of the fields is set. Ed25519 keys are 32 bytes; secp256k1
    keys are 33-byte SEC1 compressed points.
    """

    model_config = ConfigDict(frozen=True)

    ed25519: bytes | None = None
    secp256k1eth: bytes | None = None

    @field_validator("ed25519", "secp256k1eth", mode="before")
    @classmethod
    def _parse_key(cls, v: Any) -> Any:
        return _from_b64(v)

    @field_serializer("ed25519", "secp256k1eth", when_used="json")
    def _serialize_key(self, v: bytes | None) -> str | None:
        return None if v is None else _b64(v)

    @model_serializer(mode="wrap")
    def _omit_unset(self, handler: Any) -> dict[str, Any]:
        return {k: v for k, v in handler(self).items() if v is not None}

    @model_validator(mode="after")
    def _exactly_one(self) -> "SignatureAddressSpec":
        present = [name for name in _KEY_SIZES if getattr(self, name) is not None]
        if len(present) != 1:
            raise ValueError("exactly one public key must be set")
        name = present[0]
        size = _KEY_SIZES[name]
        if len(getattr(self, name)) != size:
            raise ValueError(f"{name} public key must be {size} bytes")
        return self

    @property
    def algorithm(self) -> str:
        return "ed25519" if self.ed25519 is not None else "secp256k1eth"

    @property
    def public_key(self) -> bytes:
        return self.ed25519 if self.ed25519 is not None else self.secp256k1eth  # type: ignore[return-value]

    def to_cbor_value(self) -> dict[str, bytes]:
        return {self.algorithm: self.public_key}

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "SignatureAddressSpec":
        return cls(**value)


class AddressSpec(BaseModel):
    """Wrapper selecting how an auth slot is authenticated (signature only)."""

    model_config = ConfigDict(frozen=True)

    signature: SignatureAddressSpec

    def to_cbor_value(self) -> dict[str, Any]:
        return {"signature": self.signature.to_cbor_value()}


class SignerInfo(BaseModel):
    """One authentication slot: who signs, and the nonce they commit to."""

    model_config = ConfigDict(frozen=True)

    address_spec: AddressSpec
    nonce: Uint64

    def to_cbor_value(self) -> dict[str, Any]:
        return {"address_spec": self.address_spec.to_cbor_value(), "nonce": self.nonce}

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "SignerInfo":
        spec = SignatureAddressSpec.from_cbor_value(value["address_spec"]["signature"])
        return cls(address_spec=AddressSpec(signature=spec), nonce=value["nonce"])


class AuthInfo(BaseModel):
    """Ordered auth slots and the fee for a transaction."""

    model_config = ConfigDict(populate_by_name=True)

    signer_info: list[SignerInfo] = Field(default_factory=list, alias="si")
    fee: Fee = Field(default_factory=Fee)

    def to_cbor_value(self) -> dict[str, Any]:
        return {
            "si": [si.to_cbor_value() for si in self.signer_info],
            "fee": self.fee.to_cbor_value(),
        }


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class Call(BaseModel):
    """Method name plus the canonical CBOR encoding of its body."""

    model_config = ConfigDict(frozen=True)

    method: Annotated[str, Field(min_length=1)]
    body: bytes

    @field_validator("body", mode="before")
    @classmethod
    def _parse_body(cls, v: Any) -> Any:
        return _from_b64(v)

    @field_serializer("body", when_used="json")
    def _serialize_body(self, v: bytes) -> str:
        return _b64(v)


class Transaction(BaseModel):
    """A runtime transaction envelope (version 1)."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(default=1, alias="v")
    call: Call
    auth_info: AuthInfo = Field(default_factory=AuthInfo, alias="ai")

    def to_cbor_value(self) -> dict[str, Any]:
        return {
            "v": self.version,
            "call": {"method": self.call.method, "body": cbor_decode(self.call.body)},
            "ai": self.auth_info.to_cbor_value(),
        }

    def to_cbor(self) -> bytes:
        """Canonical CBOR bytes; this is the preimage that gets signed."""
        return cbor_encode(self.to_cbor_value())

    @classmethod
    def from_cbor(cls, data: bytes) -> "Transaction":
        value = cbor_decode(data)
        try:
            call = value["call"]
            ai = value["ai"]
            return cls(
                version=value["v"],
                call=Call(method=call["method"], body=cbor_encode(call["body"])),
                auth_info=AuthInfo(
                    signer_info=[SignerInfo.from_cbor_value(si) for si in ai["si"]],
                    fee=Fee.from_cbor_value(ai["fee"]),
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise EncodeError(f"malformed transaction: {exc}") from exc

    def to_json(self) -> str:
        """Compact JSON view of the envelope."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, text: str) -> "Transaction":
        return cls.model_validate_json(text)


class AuthSignature(BaseModel):
    """A raw signature together with the spec of the slot it belongs to."""

    model_config = ConfigDict(frozen=True)

    address_spec: SignatureAddressSpec
    signature: bytes

    @field_validator("signature", mode="before")
    @classmethod
    def _parse_signature(cls, v: Any) -> Any:
        return _from_b64(v)

    @field_serializer("signature", when_used="json")
    def _serialize_signature(self, v: bytes) -> str:
        return _b64(v)


class UnverifiedTransaction(BaseModel):
    """Encoded transaction bytes plus one signature per auth slot.

    On the wire this is the 2-array ``[tx_bytes, [{"signature": sig}, ...]]``;
    the address specs shown in the JSON view are taken from the auth slots of
    the embedded transaction.
    """

    model_config = ConfigDict(frozen=True)

    untrusted_raw_value: bytes
    signatures: list[AuthSignature] = Field(default_factory=list)

    @field_validator("untrusted_raw_value", mode="before")
    @classmethod
    def _parse_raw(cls, v: Any) -> Any:
        return _from_b64(v)

    @field_serializer("untrusted_raw_value", when_used="json")
    def _serialize_raw(self, v: bytes) -> str:
        return _b64(v)

    def to_cbor_value(self) -> list[Any]:
        return [
            self.untrusted_raw_value,
            [{"signature": s.signature} for s in self.signatures],
        ]

    def to_cbor(self) -> bytes:
        return cbor_encode(self.to_cbor_value())

    @classmethod
    def from_cbor(cls, data: bytes) -> "UnverifiedTransaction":
        value = cbor_decode(data)
        if not isinstance(value, list) or len(value) != 2:
            raise EncodeError("unverified transaction must be a 2-element array")
        raw, proofs = value
        tx = Transaction.from_cbor(raw)
        if len(proofs) != len(tx.auth_info.signer_info):
            raise EncodeError(
                f"{len(proofs)} signatures for {len(tx.auth_info.signer_info)} auth slots"
            )
        return cls(
            untrusted_raw_value=raw,
            signatures=[
                AuthSignature(address_spec=si.address_spec.signature, signature=proof["signature"])
                for si, proof in zip(tx.auth_info.signer_info, proofs)
            ],
        )
