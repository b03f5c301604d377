"""
Exceptions raised while building transactions.

Every error is raised where it is detected and is never retried internally.
"""

from __future__ import annotations

from typing import Any


class TransactionBuilderError(Exception):
    """Base class for all builder errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class UnsupportedNetwork(TransactionBuilderError):
    """The builder was invoked for a network family it does not support."""


class UnsupportedScriptType(TransactionBuilderError):
    """The UTXO's script type has no known spending template."""


class UnsupportedMultisigWrap(TransactionBuilderError):
    """A multisig UTXO is tagged with a script type that cannot wrap a multisig script."""


class UnbalancedValue(TransactionBuilderError):
    """Outputs plus fee do not equal the input total."""

    def __init__(self, input_amount: int, fee: int, output_amount: int):
        super().__init__(
            f"Sum value of UTXOs not spending: inputs={input_amount}, "
            f"fee={fee}, outputs={output_amount}",
            details={"input_amount": input_amount, "fee": fee, "output_amount": output_amount},
        )
        self.input_amount = input_amount
        self.fee = fee
        self.output_amount = output_amount


class UnbalancedToken(TransactionBuilderError):
    """Fungible token outputs plus burns do not equal the token input total."""

    def __init__(self, category: str, input_amount: int, output_amount: int):
        super().__init__(
            f"Sum token value of UTXOs not spending for category {category}: "
            f"inputs={input_amount}, outputs={output_amount}. "
            "Use a BurnOutput to burn tokens.",
            details={
                "category": category,
                "input_amount": input_amount,
                "output_amount": output_amount,
            },
        )
        self.category = category
        self.input_amount = input_amount
        self.output_amount = output_amount


class UnaccountedNFT(TransactionBuilderError):
    """An NFT input has no carrying output and no burn declaration."""

    def __init__(self, category: str, txid: str):
        super().__init__(
            f"NFT of category {category} from {txid} lacks a corresponding output. "
            "Use a BurnOutput to burn it.",
            details={"category": category, "txid": txid},
        )
        self.category = category
        self.txid = txid


class InsufficientMultisigWeight(TransactionBuilderError):
    """Collected multisig signatures never reached the threshold weight."""

    def __init__(self, threshold: int, weight: int):
        super().__init__(
            f"Multisig signatures reached weight {weight}, threshold is {threshold}",
            details={"threshold": threshold, "weight": weight},
        )
        self.threshold = threshold
        self.weight = weight


class InvalidAddress(TransactionBuilderError, ValueError):
    """An address could not be decoded for the target network."""


class TransactionParseError(TransactionBuilderError):
    """Raw transaction bytes could not be parsed."""
