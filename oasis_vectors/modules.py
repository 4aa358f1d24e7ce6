"""Module call bodies and their transaction constructors.

Each body is a tagged variant: the ``METHOD`` class variable names the
runtime call, ``to_cbor_value`` yields the canonical CBOR item placed in
``call.body`` and ``from_cbor_value`` reverses it. :func:`decode_body`
dispatches on a transaction's method to recover the typed body.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from oasis_vectors.encoding import cbor_decode
from oasis_vectors.errors import EncodeError
from oasis_vectors.transaction import TransactionBuilder
from oasis_vectors.types import Address, BaseUnits, Fee, Transaction, Uint64


class _Body(BaseModel):
    """Abstract base for call bodies; subclasses set ``METHOD`` and the CBOR hooks."""

    model_config = ConfigDict(frozen=True)

    METHOD: ClassVar[str]

    @abstractmethod
    def to_cbor_value(self) -> dict[str, Any]: ...

    @classmethod
    @abstractmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "_Body": ...


def _tokens(value: list[Any]) -> list[BaseUnits]:
    return [BaseUnits.from_cbor_value(t) for t in value]


# ---------------------------------------------------------------------------
# consensus_accounts
# ---------------------------------------------------------------------------


class Deposit(_Body):
    """Move tokens from the consensus layer into the runtime.

    An unspecified ``to`` credits the signer's own runtime account and is
    omitted from the encoding entirely.
    """

    METHOD: ClassVar[str] = "consensus.Deposit"

    to: Address | None = None
    amount: BaseUnits

    def to_cbor_value(self) -> dict[str, Any]:
        value: dict[str, Any] = {"amount": self.amount.to_cbor_value()}
        if self.to is not None:
            value["to"] = bytes(self.to)
        return value

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "Deposit":
        to = value.get("to")
        return cls(
            to=Address(to) if to is not None else None,
            amount=BaseUnits.from_cbor_value(value["amount"]),
        )


class Withdraw(Deposit):
    """Move tokens from the runtime back to the consensus layer."""

    METHOD: ClassVar[str] = "consensus.Withdraw"


# ---------------------------------------------------------------------------
# accounts
# ---------------------------------------------------------------------------


class Transfer(_Body):
    METHOD: ClassVar[str] = "accounts.Transfer"

    to: Address
    amount: BaseUnits

    def to_cbor_value(self) -> dict[str, Any]:
        return {"to": bytes(self.to), "amount": self.amount.to_cbor_value()}

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "Transfer":
        return cls(to=Address(value["to"]), amount=BaseUnits.from_cbor_value(value["amount"]))


# ---------------------------------------------------------------------------
# contracts
# ---------------------------------------------------------------------------


class Policy(BaseModel):
    """Who may upgrade a contract instance. The zero policy encodes as ``{}``."""

    model_config = ConfigDict(frozen=True)

    nobody: bool = False
    address: Address | None = None
    everyone: bool = False

    def to_cbor_value(self) -> dict[str, Any]:
        value: dict[str, Any] = {}
        if self.nobody:
            value["nobody"] = {}
        if self.address is not None:
            value["address"] = bytes(self.address)
        if self.everyone:
            value["everyone"] = {}
        return value

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "Policy":
        address = value.get("address")
        return cls(
            nobody="nobody" in value,
            address=Address(address) if address is not None else None,
            everyone="everyone" in value,
        )


class ContractsCall(_Body):
    METHOD: ClassVar[str] = "contracts.Call"

    id: Uint64
    data: bytes = b""
    tokens: list[BaseUnits] = Field(default_factory=list)

    def to_cbor_value(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "data": self.data,
            "tokens": [t.to_cbor_value() for t in self.tokens],
        }

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "ContractsCall":
        return cls(id=value["id"], data=value["data"], tokens=_tokens(value["tokens"]))


class ContractsInstantiate(_Body):
    METHOD: ClassVar[str] = "contracts.Instantiate"

    code_id: Uint64
    upgrades_policy: Policy = Field(default_factory=Policy)
    data: bytes = b""
    tokens: list[BaseUnits] = Field(default_factory=list)

    def to_cbor_value(self) -> dict[str, Any]:
        return {
            "code_id": self.code_id,
            "upgrades_policy": self.upgrades_policy.to_cbor_value(),
            "data": self.data,
            "tokens": [t.to_cbor_value() for t in self.tokens],
        }

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "ContractsInstantiate":
        return cls(
            code_id=value["code_id"],
            upgrades_policy=Policy.from_cbor_value(value["upgrades_policy"]),
            data=value["data"],
            tokens=_tokens(value["tokens"]),
        )


class ContractsUpgrade(_Body):
    METHOD: ClassVar[str] = "contracts.Upgrade"

    id: Uint64
    code_id: Uint64
    data: bytes = b""
    tokens: list[BaseUnits] = Field(default_factory=list)

    def to_cbor_value(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code_id": self.code_id,
            "data": self.data,
            "tokens": [t.to_cbor_value() for t in self.tokens],
        }

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "ContractsUpgrade":
        return cls(
            id=value["id"],
            code_id=value["code_id"],
            data=value["data"],
            tokens=_tokens(value["tokens"]),
        )


# ---------------------------------------------------------------------------
# evm
# ---------------------------------------------------------------------------


class EVMCall(_Body):
    """Call into an EVM contract. ``value`` is a 32-byte big-endian U256."""

    METHOD: ClassVar[str] = "evm.Call"

    address: bytes = b""
    value: bytes = b""
    data: bytes = b""

    def to_cbor_value(self) -> dict[str, Any]:
        return {"address": self.address, "value": self.value, "data": self.data}

    @classmethod
    def from_cbor_value(cls, value: dict[str, Any]) -> "EVMCall":
        return cls(address=value["address"], value=value["value"], data=value["data"])


def u256(value: int) -> bytes:
    return value.to_bytes(32, "big")


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

Body = Deposit | Withdraw | Transfer | ContractsCall | ContractsInstantiate | ContractsUpgrade | EVMCall

_BODY_TYPES: dict[str, type[_Body]] = {
    cls.METHOD: cls
    for cls in (
        Deposit,
        Withdraw,
        Transfer,
        ContractsCall,
        ContractsInstantiate,
        ContractsUpgrade,
        EVMCall,
    )
}


def new_tx(fee: Fee, body: _Body) -> Transaction:
    """Build an unsigned transaction calling ``body.METHOD`` with *fee*."""
    return TransactionBuilder().method(body.METHOD).body(body.to_cbor_value()).fee(fee).build()


def new_deposit_tx(fee: Fee, body: Deposit) -> Transaction:
    return new_tx(fee, body)


def new_withdraw_tx(fee: Fee, body: Withdraw) -> Transaction:
    return new_tx(fee, body)


def new_transfer_tx(fee: Fee, body: Transfer) -> Transaction:
    return new_tx(fee, body)


def new_contracts_call_tx(fee: Fee, body: ContractsCall) -> Transaction:
    return new_tx(fee, body)


def new_contracts_instantiate_tx(fee: Fee, body: ContractsInstantiate) -> Transaction:
    return new_tx(fee, body)


def new_contracts_upgrade_tx(fee: Fee, body: ContractsUpgrade) -> Transaction:
    return new_tx(fee, body)


def new_evm_call_tx(fee: Fee, body: EVMCall) -> Transaction:
    return new_tx(fee, body)


def decode_body(tx: Transaction) -> Body:
    """Recover the typed body of *tx* from its method and encoded body.

    Raises:
        EncodeError: If the method is unknown or the body does not match it.
    """
    try:
        cls = _BODY_TYPES[tx.call.method]
    except KeyError:
        raise EncodeError(f"unknown method {tx.call.method!r}") from None
    try:
        return cls.from_cbor_value(cbor_decode(tx.call.body))  # type: ignore[return-value]
    except (KeyError, TypeError, ValueError) as exc:
        raise EncodeError(f"malformed {tx.call.method} body: {exc}") from exc
