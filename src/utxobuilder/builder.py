"""
Transaction builder.

Pipeline for every build:

1. Order inputs and outputs (BIP69, shuffle or as given), then signal RBF on
   the canonical first input.
2. Check value and token conservation (skipped for dry runs).
3. Rebuild the spending script and digest of every input.
4. Ask the signer callback for signatures and attach the unlocking scripts.

Nothing reaches the signer unless steps 1-3 succeed for all inputs.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from loguru import logger

from utxobuilder.constants import ESTIMATION_FEE, FAKE_ECDSA_SIGNATURE, SIGHASH_ALL
from utxobuilder.errors import UnsupportedNetwork
from utxobuilder.models import (
    BurnOutput,
    DataOutput,
    OutputSpec,
    PaymentOutput,
    TokenOutput,
    UnspentOutputRef,
)
from utxobuilder.network import NetworkFamily, NetworkParams, get_network
from utxobuilder.ordering import Ordering, apply_replace_by_fee, order_outputs, order_utxos
from utxobuilder.signing import (
    AsyncSignerCallback,
    SignerCallback,
    SigningJob,
    prepare_signing_jobs,
    run_concurrently,
    sign_input,
    sign_input_async,
    unlocking_script,
)
from utxobuilder.transaction import Transaction, TxInput, TxOutput
from utxobuilder.validation import validate_conservation


@dataclass
class TransactionDraft:
    """Ordered, validated and still unsigned transaction."""

    utxos: list[UnspentOutputRef]
    transaction: Transaction
    specs: list[OutputSpec]
    fee: int
    network: NetworkParams
    sighash: int
    is_dry_run: bool = False

    def attach(self, jobs: Sequence[SigningJob], signatures: Sequence[list[str]]) -> Transaction:
        for job, collected in zip(jobs, signatures, strict=True):
            self.transaction.inputs[job.index].script_sig = unlocking_script(collected, job.utxo)
        logger.info(
            f"Built {self.network.name} transaction: {len(self.transaction.inputs)} inputs, "
            f"{len(self.transaction.outputs)} outputs, {self.transaction.get_size()} bytes"
        )
        return self.transaction


def _placeholder_signer(
    digest: bytes, utxo: UnspentOutputRef, public_key: str, sighash: int
) -> str:
    return FAKE_ECDSA_SIGNATURE


class TransactionBuilder:
    """
    Builds and signs script-sig transactions for UTXO chains.

    Args:
        outputs: Output specs (payments, token outputs, burns, data carriers)
        fee: Transaction fee in base units
        network: Target network (params or registered name)
        utxos: UTXOs to spend
        memo: Optional text stored in an OP_RETURN output
        enable_rbf: Signal replace-by-fee on the first input
        is_dry_run: Skip conservation checks (size estimation only)
        input_ordering: Input ordering policy
        output_ordering: Output ordering policy
        sighash: Base sighash flag; the network adds its fork-id bit
    """

    supported_families: ClassVar[frozenset[NetworkFamily]] = frozenset(NetworkFamily)

    def __init__(
        self,
        outputs: Sequence[OutputSpec],
        fee: int,
        network: NetworkParams | str,
        utxos: Sequence[UnspentOutputRef],
        memo: str | None = None,
        enable_rbf: bool = False,
        is_dry_run: bool = False,
        input_ordering: Ordering | str = Ordering.BIP69,
        output_ordering: Ordering | str = Ordering.BIP69,
        sighash: int = SIGHASH_ALL,
    ):
        self.outputs = list(outputs)
        self.fee = fee
        self.network = get_network(network) if isinstance(network, str) else network
        self.utxos = list(utxos)
        self.memo = memo
        self.enable_rbf = enable_rbf
        self.is_dry_run = is_dry_run
        self.input_ordering = Ordering(input_ordering)
        self.output_ordering = Ordering(output_ordering)
        self.sighash = sighash
        self._validate_builder()

    def _validate_builder(self) -> None:
        if self.network.family not in self.supported_families:
            raise UnsupportedNetwork(
                f"{type(self).__name__} does not support network {self.network.name}",
                details={"network": self.network.name, "family": self.network.family.value},
            )
        if self.fee < 0:
            raise ValueError(f"Fee must not be negative: {self.fee}")

        has_tokens = any(utxo.token is not None for utxo in self.utxos) or any(
            isinstance(spec, (TokenOutput, BurnOutput)) for spec in self.outputs
        )
        if has_tokens and not self.network.supports_tokens:
            raise UnsupportedNetwork(
                f"Network {self.network.name} does not support tokens",
                details={"network": self.network.name},
            )

        for spec in self.outputs:
            if isinstance(spec, (PaymentOutput, TokenOutput)) and spec.address is not None:
                self.network.address_to_script(spec.address)

    @property
    def sighash_value(self) -> int:
        """Sighash applied to every input of this transaction."""
        return self.network.sighash(self.sighash)

    def _build_inputs(self) -> tuple[list[TxInput], list[UnspentOutputRef]]:
        utxos = order_utxos(self.utxos, self.input_ordering)
        inputs = apply_replace_by_fee([utxo.to_input() for utxo in utxos], self.enable_rbf)
        return inputs, utxos

    def _build_outputs(self) -> list[TxOutput]:
        outputs = [
            spec.to_output(self.network)
            for spec in self.outputs
            if not isinstance(spec, BurnOutput)
        ]
        if self.memo is not None:
            outputs.append(DataOutput.from_text(self.memo).to_output(self.network))
        return order_outputs(outputs, self.output_ordering)

    def create_draft(self) -> TransactionDraft:
        """Order and validate; the returned draft is ready for signing."""
        inputs, utxos = self._build_inputs()
        outputs = self._build_outputs()

        validate_conservation(utxos, self.outputs, outputs, self.fee, self.is_dry_run)

        transaction = Transaction(inputs, outputs, version=self.network.tx_version)
        return TransactionDraft(
            utxos=utxos,
            transaction=transaction,
            specs=list(self.outputs),
            fee=self.fee,
            network=self.network,
            sighash=self.sighash_value,
            is_dry_run=self.is_dry_run,
        )

    def build_transaction(self, signer: SignerCallback) -> Transaction:
        """Build and sign the transaction with a synchronous signer."""
        draft = self.create_draft()
        jobs = prepare_signing_jobs(draft.utxos, draft.transaction, draft.sighash)
        signatures = [sign_input(job, signer) for job in jobs]
        return draft.attach(jobs, signatures)

    async def build_transaction_async(self, signer: AsyncSignerCallback) -> Transaction:
        """Build and sign the transaction, requesting input signatures concurrently."""
        draft = self.create_draft()
        jobs = prepare_signing_jobs(draft.utxos, draft.transaction, draft.sighash)
        signatures = await run_concurrently([sign_input_async(job, signer) for job in jobs])
        return draft.attach(jobs, signatures)

    @classmethod
    def estimate_transaction_size(
        cls,
        utxos: Sequence[UnspentOutputRef],
        outputs: Sequence[OutputSpec],
        network: NetworkParams | str,
        memo: str | None = None,
        enable_rbf: bool = False,
    ) -> int:
        """
        Size in bytes of the signed transaction, for fee calculation.

        Builds a dry run with a placeholder fee and 71-byte filler signatures.
        """
        builder = cls(
            outputs=outputs,
            fee=ESTIMATION_FEE,
            network=network,
            utxos=utxos,
            memo=memo,
            enable_rbf=enable_rbf,
            is_dry_run=True,
        )
        return builder.build_transaction(_placeholder_signer).get_size()


class ForkedTransactionBuilder(TransactionBuilder):
    """Builder restricted to the fork-id chains (Bitcoin Cash, Bitcoin SV)."""

    supported_families: ClassVar[frozenset[NetworkFamily]] = frozenset(
        {NetworkFamily.BITCOIN_CASH, NetworkFamily.BITCOIN_SV}
    )


def estimate_transaction_size(
    utxos: Sequence[UnspentOutputRef],
    outputs: Sequence[OutputSpec],
    network: NetworkParams | str,
    memo: str | None = None,
    enable_rbf: bool = False,
) -> int:
    return TransactionBuilder.estimate_transaction_size(utxos, outputs, network, memo, enable_rbf)
