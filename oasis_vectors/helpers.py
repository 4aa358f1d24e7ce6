"""Address resolution from user-facing text.

Accepts the two forms a wallet user might paste:

* a native bech32 address (``oasis1...``);
* an Ethereum address, 40 hex digits with or without a ``0x`` prefix, in any
  letter case. Checksum casing is not enforced.

Ethereum addresses are mapped to the native address of the matching
secp256k1 account.
"""

from __future__ import annotations

import logging
import re

from oasis_vectors.config import Network
from oasis_vectors.errors import BadAddressError
from oasis_vectors.identity import address_from_eth
from oasis_vectors.types import Address

logger = logging.getLogger(__name__)

NATIVE_PREFIX = "oasis1"

_ETH_HEX_RE = re.compile(r"^(?:0[xX])?([0-9a-fA-F]{40})$")


def parse_eth_address(text: str) -> bytes | None:
    """Return the 20 address bytes if *text* is an Ethereum hex address."""
    match = _ETH_HEX_RE.match(text)
    if match is None:
        return None
    return bytes.fromhex(match.group(1).lower())


def resolve_address(address: str, network: Network | None = None) -> Address | None:
    """Resolve *address* into a native :class:`Address`.

    Args:
        address: Native or Ethereum address text. An empty string means
            "unspecified" and resolves to ``None``.
        network: Accepted for parity with the SDK helper; resolution never
            consults the network.

    Returns:
        The resolved address, or ``None`` for an empty input.

    Raises:
        BadAddressError: If the text is neither form.
    """
    if not address:
        return None

    eth = parse_eth_address(address)
    if eth is not None:
        resolved = address_from_eth(eth)
        logger.debug("resolved ethereum address %s to %s", address, resolved)
        return resolved

    if address.lower().startswith(NATIVE_PREFIX):
        try:
            return Address.from_bech32(address)
        except ValueError as exc:
            raise BadAddressError(f"malformed native address {address!r}: {exc}") from exc

    raise BadAddressError(f"unsupported address format {address!r}")
