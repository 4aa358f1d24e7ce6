"""Identity primitives: hashing, address derivation, signers.

Two signature schemes are supported, matching the runtime SDK:

* Ed25519 via PyNaCl (libsodium binding);
* secp256k1 via :mod:`ecdsa`, with RFC 6979 deterministic nonces, low-S
  normalisation and DER-encoded signatures.

Both sign the SHA-512/256 digest of ``context || message`` so every
signature is bound to a domain-separation context.

Addresses are ``version || SHA-512/256(identifier || version || data)[:20]``
where the identifier depends on the key type.
"""

from __future__ import annotations

import hashlib
from typing import NamedTuple, Protocol

import ecdsa
from Crypto.Hash import SHA512
from ecdsa.der import UnexpectedDER
from ecdsa.keys import BadDigestError
from ecdsa.util import sigdecode_der, sigencode_der_canonize
from eth_hash.auto import keccak
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from oasis_vectors.errors import SigningError
from oasis_vectors.types import Address, SignatureAddressSpec


def sha512_256(*parts: bytes) -> bytes:
    """SHA-512/256 over the concatenation of *parts*."""
    h = SHA512.new(truncate="256")
    for part in parts:
        h.update(part)
    return h.digest()


def keccak256(data: bytes) -> bytes:
    return keccak(data)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


class AddressContext(NamedTuple):
    identifier: bytes
    version: int


ADDRESS_V0_ED25519_CONTEXT = AddressContext(b"oasis-core/address: staking", 0)
ADDRESS_V0_SECP256K1ETH_CONTEXT = AddressContext(b"oasis-runtime-sdk/address: secp256k1eth", 0)


def new_address_raw(context: AddressContext, data: bytes) -> Address:
    """Derive an address from raw *data* under a domain-separation context."""
    version = bytes([context.version])
    digest = sha512_256(context.identifier, version, data)
    return Address(version + digest[: Address.SIZE - 1])


def eth_address_from_public_key(public_key: bytes) -> bytes:
    """Ethereum address of a secp256k1 key: ``keccak256(X || Y)[12:]``.

    Args:
        public_key: SEC1 encoded point, compressed or uncompressed.
    """
    vk = ecdsa.VerifyingKey.from_string(public_key, curve=ecdsa.SECP256k1)
    return keccak256(vk.to_string("raw"))[12:]


def address_from_eth(eth_address: bytes) -> Address:
    if len(eth_address) != 20:
        raise ValueError(f"ethereum address must be 20 bytes, got {len(eth_address)}")
    return new_address_raw(ADDRESS_V0_SECP256K1ETH_CONTEXT, eth_address)


def address_from_sigspec(spec: SignatureAddressSpec) -> Address:
    """Derive the native address controlled by a signature address spec."""
    if spec.ed25519 is not None:
        return new_address_raw(ADDRESS_V0_ED25519_CONTEXT, spec.ed25519)
    return address_from_eth(eth_address_from_public_key(spec.public_key))


# ---------------------------------------------------------------------------
# Signers
# ---------------------------------------------------------------------------


def prepare_signer_message(context: bytes, message: bytes) -> bytes:
    """Digest actually handed to the signature primitive."""
    return sha512_256(context, message)


class Signer(Protocol):
    def public(self) -> bytes: ...

    def context_sign(self, context: bytes, message: bytes) -> bytes: ...

    def address_spec(self) -> SignatureAddressSpec: ...


class Ed25519Signer:
    """Ed25519 signer backed by a 32-byte seed."""

    __slots__ = ("_key",)

    def __init__(self, seed: bytes) -> None:
        if len(seed) != 32:
            raise ValueError(f"seed must be exactly 32 bytes, got {len(seed)}")
        self._key = SigningKey(seed)

    def public(self) -> bytes:
        return bytes(self._key.verify_key)

    def private_bytes(self) -> bytes:
        """The 64-byte expanded private key (seed followed by public key)."""
        return bytes(self._key) + self.public()

    def address_spec(self) -> SignatureAddressSpec:
        return SignatureAddressSpec(ed25519=self.public())

    def context_sign(self, context: bytes, message: bytes) -> bytes:
        try:
            return self._key.sign(prepare_signer_message(context, message)).signature
        except CryptoError as exc:
            raise SigningError(f"ed25519 signing failed: {exc}") from exc


class Secp256k1Signer:
    """secp256k1 signer producing deterministic, low-S, DER signatures."""

    __slots__ = ("_key",)

    def __init__(self, private_key: bytes) -> None:
        if len(private_key) != 32:
            raise ValueError(f"private key must be exactly 32 bytes, got {len(private_key)}")
        self._key = ecdsa.SigningKey.from_string(private_key, curve=ecdsa.SECP256k1)

    def public(self) -> bytes:
        """The 33-byte compressed public key."""
        return self._key.get_verifying_key().to_string("compressed")

    def private_bytes(self) -> bytes:
        return self._key.to_string()

    def address_spec(self) -> SignatureAddressSpec:
        return SignatureAddressSpec(secp256k1eth=self.public())

    def context_sign(self, context: bytes, message: bytes) -> bytes:
        digest = prepare_signer_message(context, message)
        try:
            return self._key.sign_digest_deterministic(
                digest, hashfunc=hashlib.sha256, sigencode=sigencode_der_canonize
            )
        except (BadDigestError, ValueError) as exc:
            raise SigningError(f"secp256k1 signing failed: {exc}") from exc


def verify_signature(
    spec: SignatureAddressSpec, context: bytes, message: bytes, signature: bytes
) -> bool:
    """Verify a context-bound signature against the key in *spec*.

    Returns:
        ``True`` if the signature is valid, ``False`` otherwise.
    """
    digest = prepare_signer_message(context, message)
    if spec.ed25519 is not None:
        try:
            VerifyKey(spec.ed25519).verify(digest, signature)
            return True
        except (BadSignatureError, ValueError):
            return False
    try:
        vk = ecdsa.VerifyingKey.from_string(spec.public_key, curve=ecdsa.SECP256k1)
        return vk.verify_digest(signature, digest, sigdecode=sigdecode_der)
    except (ecdsa.BadSignatureError, UnexpectedDER, ValueError):
        return False
