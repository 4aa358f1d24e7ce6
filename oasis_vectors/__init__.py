"""Oasis runtime transaction test vectors.

Generates a deterministic corpus of signed runtime transactions (deposits,
withdrawals, transfers, contract and EVM calls) together with the key
material and signature contexts needed to check them offline.

Quick start::

    from oasis_vectors import ALICE, generate_vectors, verify_vector

    vectors = generate_vectors()
    assert all(verify_vector(v) == v.valid for v in vectors)

Or from the command line::

    gen-runtime-vectors > runtime-vectors.json
"""

from oasis_vectors.config import (
    AMOUNTS,
    CHAIN_CONTEXTS,
    DEFAULT_NETWORKS,
    FEES,
    NONCES,
    RUNTIME_ID,
    Network,
    Networks,
    ParaTime,
)
from oasis_vectors.errors import (
    BadAddressError,
    EncodeError,
    SigningError,
    VectorError,
    VerificationError,
)
from oasis_vectors.generate import encode_vectors, generate_vectors, iter_vectors
from oasis_vectors.helpers import resolve_address
from oasis_vectors.identity import (
    Ed25519Signer,
    Secp256k1Signer,
    address_from_eth,
    address_from_sigspec,
    sha512_256,
    verify_signature,
)
from oasis_vectors.modules import (
    ContractsCall,
    ContractsInstantiate,
    ContractsUpgrade,
    Deposit,
    EVMCall,
    Policy,
    Transfer,
    Withdraw,
    decode_body,
)
from oasis_vectors.testkeys import ALICE, BOB, CHARLIE, DAVE, EVE, TestKey, test_key
from oasis_vectors.transaction import (
    TransactionBuilder,
    derive_chain_context,
    sign_transaction,
    validate_basic,
    verify_transaction,
)
from oasis_vectors.types import (
    Address,
    BaseUnits,
    Fee,
    SignatureAddressSpec,
    Transaction,
    UnverifiedTransaction,
)
from oasis_vectors.vectors import RuntimeTestVector, make_runtime_test_vector, verify_vector

__all__ = [
    # Config
    "AMOUNTS",
    "CHAIN_CONTEXTS",
    "DEFAULT_NETWORKS",
    "FEES",
    "NONCES",
    "RUNTIME_ID",
    "Network",
    "Networks",
    "ParaTime",
    # Errors
    "BadAddressError",
    "EncodeError",
    "SigningError",
    "VectorError",
    "VerificationError",
    # Identity
    "Ed25519Signer",
    "Secp256k1Signer",
    "address_from_eth",
    "address_from_sigspec",
    "resolve_address",
    "sha512_256",
    "verify_signature",
    # Test keys
    "ALICE",
    "BOB",
    "CHARLIE",
    "DAVE",
    "EVE",
    "TestKey",
    "test_key",
    # Module bodies
    "ContractsCall",
    "ContractsInstantiate",
    "ContractsUpgrade",
    "Deposit",
    "EVMCall",
    "Policy",
    "Transfer",
    "Withdraw",
    "decode_body",
    # Transaction
    "TransactionBuilder",
    "derive_chain_context",
    "sign_transaction",
    "validate_basic",
    "verify_transaction",
    # Types
    "Address",
    "BaseUnits",
    "Fee",
    "SignatureAddressSpec",
    "Transaction",
    "UnverifiedTransaction",
    # Vectors
    "RuntimeTestVector",
    "encode_vectors",
    "generate_vectors",
    "iter_vectors",
    "make_runtime_test_vector",
    "verify_vector",
]

__version__ = "0.1.0"
