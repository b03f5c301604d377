"""
utxobuilder - Transaction builder for Bitcoin and its script-compatible forks

Orders inputs and outputs, enforces value and token conservation, rebuilds
spending scripts, computes signature digests and assembles unlocking scripts
from caller-supplied signatures.
"""

__version__ = "0.1.0"

from utxobuilder.builder import (
    ForkedTransactionBuilder,
    TransactionBuilder,
    TransactionDraft,
    estimate_transaction_size,
)
from utxobuilder.control_block import ControlBlock, build_control_block
from utxobuilder.errors import (
    InsufficientMultisigWeight,
    InvalidAddress,
    TransactionBuilderError,
    TransactionParseError,
    UnaccountedNFT,
    UnbalancedToken,
    UnbalancedValue,
    UnsupportedMultisigWrap,
    UnsupportedNetwork,
    UnsupportedScriptType,
)
from utxobuilder.models import (
    BurnOutput,
    DataOutput,
    MultisigDescriptor,
    MultisigSigner,
    OutputSpec,
    PaymentOutput,
    ScriptType,
    TokenOutput,
    UnspentOutputRef,
)
from utxobuilder.network import NETWORKS, NetworkFamily, NetworkParams, get_network
from utxobuilder.ordering import Ordering
from utxobuilder.script import Script
from utxobuilder.signing import AsyncSignerCallback, SignerCallback
from utxobuilder.tokens import FungibleToken, NFTCapability, NonFungibleToken, TokenPayload
from utxobuilder.transaction import Transaction, TxInput, TxOutput

__all__ = [
    "AsyncSignerCallback",
    "BurnOutput",
    "ControlBlock",
    "DataOutput",
    "ForkedTransactionBuilder",
    "FungibleToken",
    "InsufficientMultisigWeight",
    "InvalidAddress",
    "MultisigDescriptor",
    "MultisigSigner",
    "NETWORKS",
    "NFTCapability",
    "NetworkFamily",
    "NetworkParams",
    "NonFungibleToken",
    "Ordering",
    "OutputSpec",
    "PaymentOutput",
    "Script",
    "ScriptType",
    "SignerCallback",
    "TokenOutput",
    "TokenPayload",
    "Transaction",
    "TransactionBuilder",
    "TransactionBuilderError",
    "TransactionDraft",
    "TransactionParseError",
    "TxInput",
    "TxOutput",
    "UnaccountedNFT",
    "UnbalancedToken",
    "UnbalancedValue",
    "UnspentOutputRef",
    "UnsupportedMultisigWrap",
    "UnsupportedNetwork",
    "UnsupportedScriptType",
    "build_control_block",
    "estimate_transaction_size",
]
