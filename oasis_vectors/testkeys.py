"""Deterministic test identities.

Every key is derived from a fixed UTF-8 seed string, so the registry is
bit-identical across runs and across SDK implementations:

* Ed25519 keys use ``SHA-512/256(seed)`` as the 32-byte key seed;
* secp256k1 keys use ``SHA-512/256(seed)`` as the big-endian private scalar.

Alice, Bob and Charlie are Ed25519 keys; Dave and Eve are secp256k1 keys
that also carry an Ethereum address.
"""

from __future__ import annotations

from oasis_vectors.identity import (
    Ed25519Signer,
    Secp256k1Signer,
    Signer,
    address_from_sigspec,
    eth_address_from_public_key,
    sha512_256,
)
from oasis_vectors.types import Address, SignatureAddressSpec

SEED_PREFIX = "oasis-runtime-sdk/test-keys: "

ALGORITHM_ED25519_RAW = "ed25519_raw"
ALGORITHM_SECP256K1_RAW = "secp256k1_raw"


class TestKey:
    """A named identity bundling a signer with its derived addresses."""

    __test__ = False
    __slots__ = ("_name", "_signer", "_private_key", "_sig_spec", "_address", "_eth_address")

    def __init__(self, name: str, signer: Signer, private_key: bytes) -> None:
        self._name = name
        self._signer = signer
        self._private_key = private_key
        self._sig_spec = signer.address_spec()
        self._address = address_from_sigspec(self._sig_spec)
        self._eth_address: bytes | None = None
        if self._sig_spec.secp256k1eth is not None:
            self._eth_address = eth_address_from_public_key(self._sig_spec.secp256k1eth)

    # ----- constructors ----------------------------------------------------

    @classmethod
    def ed25519(cls, name: str, seed: str) -> "TestKey":
        signer = Ed25519Signer(sha512_256(seed.encode("utf-8")))
        return cls(name, signer, signer.private_bytes())

    @classmethod
    def secp256k1(cls, name: str, seed: str) -> "TestKey":
        private_key = sha512_256(seed.encode("utf-8"))
        return cls(name, Secp256k1Signer(private_key), private_key)

    # ----- properties ------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def address(self) -> Address:
        """The native runtime address."""
        return self._address

    @property
    def sig_spec(self) -> SignatureAddressSpec:
        return self._sig_spec

    @property
    def eth_address(self) -> bytes | None:
        """The 20-byte Ethereum address, or ``None`` for Ed25519 keys."""
        return self._eth_address

    @property
    def public_key(self) -> bytes:
        return self._signer.public()

    @property
    def unsafe_bytes(self) -> bytes:
        """Raw private key material, embedded verbatim in test vectors."""
        return self._private_key

    @property
    def algorithm(self) -> str:
        if self._sig_spec.secp256k1eth is not None:
            return ALGORITHM_SECP256K1_RAW
        return ALGORITHM_ED25519_RAW

    def __repr__(self) -> str:
        return f"TestKey({self._name!r}, {str(self._address)!r})"


ALICE = TestKey.ed25519("Alice", SEED_PREFIX + "alice")
BOB = TestKey.ed25519("Bob", SEED_PREFIX + "bob")
CHARLIE = TestKey.ed25519("Charlie", SEED_PREFIX + "charlie")
DAVE = TestKey.secp256k1("Dave", SEED_PREFIX + "dave")
EVE = TestKey.secp256k1("Eve", SEED_PREFIX + "eve")

_REGISTRY: dict[str, TestKey] = {key.name: key for key in (ALICE, BOB, CHARLIE, DAVE, EVE)}


def test_key(name: str) -> TestKey:
    """Look up a test identity by name (``"Alice"`` ... ``"Eve"``).

    Raises:
        KeyError: If *name* is not a known test key.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise KeyError(f"unknown test key {name!r}") from None


test_key.__test__ = False  # type: ignore[attr-defined]
