"""Generate the runtime transaction test-vector corpus.

Walks the fixed parameter cross-product and prints every vector as one
indented JSON array on stdout::

    for fee in FEES
      for nonce in NONCES
        for amount in AMOUNTS
          for chain_context in CHAIN_CONTEXTS
            Deposit, Withdraw, Transfer, contracts and EVM case tables

The output order is part of the contract: consumers address vectors by
array index.

Invalid rows sign with the real runtime id and chain context but report an
unknown value (or a mismatched ``orig_to``) in ``tx_details``, so a
consumer recomputing the context from the details must reject them.
"""

from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from eth_utils import to_checksum_address

from oasis_vectors.config import (
    AMOUNTS,
    CHAIN_CONTEXTS,
    FEES,
    INSTANCE_IDS,
    NONCES,
    RUNTIME_ID,
    TRANSFER_DENOMINATION,
    UNKNOWN_CHAIN_CONTEXT,
    UNKNOWN_RUNTIME_ID,
    configure_logging,
)
from oasis_vectors.errors import BadAddressError, EncodeError, VectorError
from oasis_vectors.helpers import resolve_address
from oasis_vectors.modules import (
    ContractsCall,
    ContractsInstantiate,
    ContractsUpgrade,
    Deposit,
    EVMCall,
    Transfer,
    Withdraw,
    new_contracts_call_tx,
    new_contracts_instantiate_tx,
    new_contracts_upgrade_tx,
    new_deposit_tx,
    new_evm_call_tx,
    new_transfer_tx,
    new_withdraw_tx,
    u256,
)
from oasis_vectors.testkeys import ALICE, DAVE, EVE, TestKey
from oasis_vectors.transaction import derive_chain_context
from oasis_vectors.types import BaseUnits, Fee, Transaction
from oasis_vectors.vectors import KIND_PREFIX, RuntimeTestVector, make_runtime_test_vector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Known addresses
# ---------------------------------------------------------------------------

# Fixed destination pair, not the Dave test key: both forms resolve to one
# address, distinct from DAVE.address.
DAVE_ETH = "0x90adE3B7065fa715c7a150313877dF1d33e777D5"
DAVE_NATIVE = "oasis1qpupfu7e2n6pkezeaw0yhj8mcem8anj64ytrayne"
ALICE_NATIVE = "oasis1qrec770vrek0a9a5lcrv0zvt22504k68svq7kzve"
EVE_ETH = to_checksum_address(EVE.eth_address)
UNKNOWN_ETH = "0x4c5f2a4b0f3b1c7e5d3a0b9f8e7d6c5b4a392817"

DAVE_ETH_LOWER = DAVE_ETH[2:].lower()
DAVE_ETH_UPPER = DAVE_ETH[2:].upper()
EVE_ETH_LOWER = EVE_ETH[2:].lower()
EVE_ETH_UPPER = EVE_ETH[2:].upper()


# ---------------------------------------------------------------------------
# Case tables
# ---------------------------------------------------------------------------


class Case(NamedTuple):
    """One row of a case table.

    ``runtime_id`` and ``chain_context`` override what ``tx_details``
    reports; the transaction itself is always signed for the real ones.
    """

    signer: TestKey
    to: str = ""
    orig_to: str = ""
    runtime_id: bytes | None = None
    chain_context: str | None = None
    valid: bool = True


DEPOSIT_CASES: tuple[Case, ...] = (
    Case(ALICE),
    Case(ALICE, DAVE_NATIVE),
    Case(ALICE, DAVE_ETH, DAVE_ETH),
    Case(ALICE, DAVE_ETH, DAVE_ETH),
    Case(ALICE, DAVE_ETH, DAVE_ETH_LOWER),
    Case(ALICE, DAVE_ETH_UPPER, "0x" + DAVE_ETH_LOWER),
    Case(ALICE, DAVE_ETH),
    Case(ALICE, DAVE_ETH, UNKNOWN_ETH, valid=False),
    Case(ALICE, DAVE_ETH, DAVE_ETH, runtime_id=UNKNOWN_RUNTIME_ID, valid=False),
    Case(ALICE, DAVE_ETH, DAVE_ETH, chain_context=UNKNOWN_CHAIN_CONTEXT, valid=False),
)

WITHDRAW_CASES: tuple[Case, ...] = (
    Case(ALICE),
    Case(ALICE, DAVE_NATIVE),
    Case(DAVE),
    Case(DAVE, ALICE_NATIVE),
    Case(ALICE, runtime_id=UNKNOWN_RUNTIME_ID, valid=False),
    Case(ALICE, chain_context=UNKNOWN_CHAIN_CONTEXT, valid=False),
)

TRANSFER_CASES: tuple[Case, ...] = (
    Case(ALICE, DAVE_NATIVE),
    Case(ALICE, DAVE_ETH, DAVE_ETH),
    Case(ALICE, DAVE_ETH, DAVE_ETH_LOWER),
    Case(ALICE, DAVE_ETH_UPPER, "0x" + DAVE_ETH_LOWER),
    Case(ALICE, EVE_ETH, EVE_ETH),
    Case(ALICE, EVE_ETH, EVE_ETH_LOWER),
    Case(ALICE, EVE_ETH_UPPER, "0x" + EVE_ETH_LOWER),
    Case(DAVE, ALICE_NATIVE),
    Case(DAVE, EVE_ETH, EVE_ETH),
    Case(DAVE, EVE_ETH_LOWER, "0x" + EVE_ETH_UPPER),
    Case(ALICE, DAVE_ETH, UNKNOWN_ETH, valid=False),
    Case(ALICE, DAVE_NATIVE, runtime_id=UNKNOWN_RUNTIME_ID, valid=False),
    Case(ALICE, DAVE_NATIVE, chain_context=UNKNOWN_CHAIN_CONTEXT, valid=False),
)

# Shared by the contracts and EVM tables: two valid signers, two bad contexts.
CALL_CASES: tuple[Case, ...] = (
    Case(ALICE),
    Case(DAVE),
    Case(ALICE, runtime_id=UNKNOWN_RUNTIME_ID, valid=False),
    Case(ALICE, chain_context=UNKNOWN_CHAIN_CONTEXT, valid=False),
)


def token_bundles(amount: int) -> tuple[list[BaseUnits], ...]:
    """Token lists attached to contract calls for a given amount."""
    return (
        [
            BaseUnits(amount=amount, denomination="ROSE"),
            BaseUnits(amount=amount, denomination="WBTC"),
            BaseUnits(amount=amount, denomination="WETH"),
        ],
        [BaseUnits(amount=amount, denomination="ROSE")],
        [BaseUnits(amount=0, denomination="TEST")],
        [],
    )


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def tx_details(case: Case, runtime_id: bytes, chain_context: str) -> dict[str, str]:
    details: dict[str, str] = {}
    if case.orig_to:
        details["orig_to"] = case.orig_to
    details["runtime_id"] = (case.runtime_id or runtime_id).hex()
    details["chain_context"] = case.chain_context or chain_context
    return details


def iter_case_vectors(
    fee: Fee, nonce: int, amount: int, runtime_id: bytes, chain_context: str
) -> Iterator[RuntimeTestVector]:
    """Yield every case-table vector for one (fee, nonce, amount, chain) tuple."""
    sig_ctx = derive_chain_context(runtime_id, chain_context)

    def make(kind: str, tx: Transaction, case: Case) -> RuntimeTestVector:
        details = tx_details(case, runtime_id, chain_context)
        return make_runtime_test_vector(
            kind, tx, details, case.valid, case.signer, nonce, sig_ctx
        )

    value = BaseUnits(amount=amount, denomination=TRANSFER_DENOMINATION)

    for case in DEPOSIT_CASES:
        body = Deposit(to=resolve_address(case.to), amount=value)
        yield make("Deposit", new_deposit_tx(fee, body), case)

    for case in WITHDRAW_CASES:
        body = Withdraw(to=resolve_address(case.to), amount=value)
        yield make("Withdraw", new_withdraw_tx(fee, body), case)

    for case in TRANSFER_CASES:
        to = resolve_address(case.to)
        if to is None:
            raise BadAddressError("transfer requires a destination")
        yield make("Transfer", new_transfer_tx(fee, Transfer(to=to, amount=value)), case)

    for tokens in token_bundles(amount):
        for instance_id in INSTANCE_IDS:
            for case in CALL_CASES:
                call = ContractsCall(id=instance_id, tokens=tokens)
                yield make("ContractsCall", new_contracts_call_tx(fee, call), case)

                instantiate = ContractsInstantiate(code_id=instance_id, tokens=tokens)
                yield make(
                    "ContractsInstantiate", new_contracts_instantiate_tx(fee, instantiate), case
                )

                upgrade = ContractsUpgrade(id=instance_id, code_id=instance_id, tokens=tokens)
                yield make("ContractsUpgrade", new_contracts_upgrade_tx(fee, upgrade), case)

    for case in CALL_CASES:
        body = EVMCall(address=DAVE.eth_address, value=u256(amount))
        yield make("EVMCall", new_evm_call_tx(fee, body), case)


def iter_vectors(
    fees: Iterable[Fee] = FEES,
    nonces: Iterable[int] = NONCES,
    amounts: Iterable[int] = AMOUNTS,
    chain_contexts: Iterable[str] = CHAIN_CONTEXTS,
    runtime_id: bytes = RUNTIME_ID,
) -> Iterator[RuntimeTestVector]:
    """Yield the corpus in its canonical order."""
    for fee in fees:
        for nonce in nonces:
            for amount in amounts:
                for chain_context in chain_contexts:
                    yield from iter_case_vectors(fee, nonce, amount, runtime_id, chain_context)


def generate_vectors(**kwargs) -> list[RuntimeTestVector]:
    """Materialise :func:`iter_vectors`; accepts the same overrides."""
    return list(iter_vectors(**kwargs))


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def encode_vectors(vectors: list[RuntimeTestVector]) -> str:
    """Render *vectors* as an indented JSON array.

    Raises:
        EncodeError: If a vector cannot be serialised.
    """
    try:
        return json.dumps([v.model_dump(mode="json") for v in vectors], indent=2)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"cannot encode test vectors: {exc}") from exc


def main() -> int:
    configure_logging()
    try:
        vectors = generate_vectors()
        output = encode_vectors(vectors)
    except VectorError as exc:
        logger.error("failed to generate test vectors: %s", exc)
        return 1

    sys.stdout.write(output)
    sys.stdout.flush()

    kinds = Counter(v.kind.removeprefix(KIND_PREFIX) for v in vectors)
    invalid = sum(1 for v in vectors if not v.valid)
    logger.info(
        "generated %d vectors (%d invalid): %s",
        len(vectors),
        invalid,
        ", ".join(f"{kind}={count}" for kind, count in kinds.items()),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
