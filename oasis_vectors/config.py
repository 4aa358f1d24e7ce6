"""Network registry, fixed generator parameters and logging setup.

The network registry mirrors the SDK's built-in defaults: each consensus
network has a chain domain-separation context and a set of ParaTimes
identified by their 32-byte runtime namespace.

The generator parameters below are part of the output contract. Consumers
index into the emitted array, so changing any of them changes every vector
after the first affected position.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from oasis_vectors.types import U64_MAX, BaseUnits, Fee

_HEX32_RE = re.compile(r"^[0-9a-f]{64}$")


def _check_hex32(v: str) -> str:
    if not _HEX32_RE.match(v):
        raise ValueError(f"expected 64 lower-case hex digits, got {v!r}")
    return v


Hex32 = Annotated[str, AfterValidator(_check_hex32)]


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------


class ParaTime(BaseModel):
    """A runtime attached to a consensus network."""

    model_config = ConfigDict(frozen=True)

    id: Hex32
    denomination: str
    decimals: Annotated[int, Field(ge=0)]

    @property
    def namespace(self) -> bytes:
        return bytes.fromhex(self.id)


class Network(BaseModel):
    """A consensus network and the ParaTimes it hosts."""

    model_config = ConfigDict(frozen=True)

    chain_context: Hex32
    denomination: str
    decimals: Annotated[int, Field(ge=0)]
    paratimes: dict[str, ParaTime] = Field(default_factory=dict)


class Networks(BaseModel):
    model_config = ConfigDict(frozen=True)

    default: str
    all: dict[str, Network]


DEFAULT_NETWORKS = Networks(
    default="mainnet",
    all={
        "mainnet": Network(
            chain_context="53852332637bacb61b91b6411ab4095168ba02a50be4c3f82448438826f23898",
            denomination="ROSE",
            decimals=9,
            paratimes={
                "emerald": ParaTime(
                    id="000000000000000000000000000000000000000000000000e2eaa99fc008f87f",
                    denomination="ROSE",
                    decimals=18,
                ),
                "sapphire": ParaTime(
                    id="000000000000000000000000000000000000000000000000f80306c9858e7279",
                    denomination="ROSE",
                    decimals=18,
                ),
                "cipher": ParaTime(
                    id="000000000000000000000000000000000000000000000000e199119c992377cb",
                    denomination="ROSE",
                    decimals=9,
                ),
            },
        ),
        "testnet": Network(
            chain_context="5ba68bc5e01e06f755c4c044dd11ec508e4c17f1faf40c0e67874388437a9e55",
            denomination="TEST",
            decimals=9,
            paratimes={
                "emerald": ParaTime(
                    id="00000000000000000000000000000000000000000000000072c8215e60d5bca7",
                    denomination="TEST",
                    decimals=18,
                ),
                "sapphire": ParaTime(
                    id="000000000000000000000000000000000000000000000000a6d1e3ebf60dff6c",
                    denomination="TEST",
                    decimals=18,
                ),
                "cipher": ParaTime(
                    id="0000000000000000000000000000000000000000000000000000000000000000",
                    denomination="TEST",
                    decimals=9,
                ),
            },
        ),
    },
)


# ---------------------------------------------------------------------------
# Generator parameters
# ---------------------------------------------------------------------------

MAINNET_CHAIN_CONTEXT = DEFAULT_NETWORKS.all["mainnet"].chain_context
TESTNET_CHAIN_CONTEXT = DEFAULT_NETWORKS.all["testnet"].chain_context

RUNTIME_ID = DEFAULT_NETWORKS.all["mainnet"].paratimes["emerald"].namespace

# Used only inside tx_details of deliberately invalid vectors.
UNKNOWN_RUNTIME_ID = bytes.fromhex("000000000000000000000000000000000000000000000000deadbeefdeadbeef")
UNKNOWN_CHAIN_CONTEXT = "badbadbadbadbadbadbadbadbadbadbadbadbadbadbadbadbadbadbadbadbad0"

FEES: tuple[Fee, ...] = (
    Fee(),
    Fee(amount=BaseUnits(amount=0, denomination="_"), gas=2000),
    Fee(amount=BaseUnits(amount=424_242_424_242, denomination="ROSE"), gas=3000),
    Fee(amount=BaseUnits(amount=123_456_789, denomination="TEST"), gas=4000),
)

NONCES: tuple[int, ...] = (0, 1, U64_MAX)

AMOUNTS: tuple[int, ...] = (0, 1000, 10_000_000_000_000_000_000)

CHAIN_CONTEXTS: tuple[str, ...] = (MAINNET_CHAIN_CONTEXT, TESTNET_CHAIN_CONTEXT)

# Contract instance ids; the same values double as code ids.
INSTANCE_IDS: tuple[int, ...] = (0, 1, U64_MAX)

TRANSFER_DENOMINATION = "ROSE"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL_ENV = "OASIS_VECTORS_LOG_LEVEL"


def configure_logging() -> None:
    """Send log records to stderr; stdout is reserved for the JSON output."""
    level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
