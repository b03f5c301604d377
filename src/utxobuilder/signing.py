"""
Signature digests, signer invocation and unlocking-script assembly.

Signing is delegated to a caller-supplied callback:

    signer(digest, utxo, public_key_hex, sighash) -> signature_hex

The returned hex is placed in the scriptSig verbatim, so by convention it is
the DER signature followed by the sighash byte. An empty string means the
signer declined, which is only meaningful for multisig entries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Coroutine, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from loguru import logger

from utxobuilder.errors import InsufficientMultisigWeight
from utxobuilder.models import MultisigDescriptor, MultisigSigner, UnspentOutputRef
from utxobuilder.script import Script
from utxobuilder.transaction import Transaction

T = TypeVar("T")


class SignerCallback(Protocol):
    def __call__(
        self, digest: bytes, utxo: UnspentOutputRef, public_key: str, sighash: int
    ) -> str: ...


class AsyncSignerCallback(Protocol):
    def __call__(
        self, digest: bytes, utxo: UnspentOutputRef, public_key: str, sighash: int
    ) -> Awaitable[str]: ...


@dataclass
class SigningJob:
    """Everything needed to sign one input."""

    index: int
    utxo: UnspentOutputRef
    script: Script
    digest: bytes
    sighash: int


def spending_script(utxo: UnspentOutputRef) -> Script:
    return utxo.script_type.spending_script(utxo)


def compute_digest(
    script: Script,
    index: int,
    utxo: UnspentOutputRef,
    transaction: Transaction,
    sighash: int,
) -> bytes:
    return transaction.digest_for_input(index, script, utxo.value, utxo.token, sighash)


def prepare_signing_jobs(
    utxos: Sequence[UnspentOutputRef], transaction: Transaction, sighash: int
) -> list[SigningJob]:
    """
    Rebuild every spending script and digest up front.

    Any unsupported script type fails here, before the signer has been called
    for any input.
    """
    jobs = []
    for index, utxo in enumerate(utxos):
        script = spending_script(utxo)
        digest = compute_digest(script, index, utxo, transaction, sighash)
        logger.debug(
            f"Input {index}: {utxo.txid[:16]}...:{utxo.vout} type={utxo.script_type.value} "
            f"multisig={utxo.is_multisig}"
        )
        jobs.append(SigningJob(index, utxo, script, digest, sighash))
    return jobs


async def run_concurrently(coros: Sequence[Coroutine[Any, Any, T]]) -> list[T]:
    """
    Run coroutines in a task group and return their results in order.

    The first failure cancels the remaining tasks and is re-raised as is.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except ExceptionGroup as e:
        raise e.exceptions[0] from None
    return [task.result() for task in tasks]


@dataclass
class MultisigCollector:
    """
    Accumulates multisig signatures in descriptor order.

    A signature is repeated once per unit of its signer's weight (the signer's
    key fills that many slots in the script) but the list never grows past the
    threshold.
    """

    descriptor: MultisigDescriptor
    signatures: list[str] = field(default_factory=list)
    weight: int = 0

    def add(self, signer: MultisigSigner, signature: str) -> bool:
        """Record one signer's response. Returns True once the threshold is reached."""
        if not signature:
            logger.debug(f"Signer {signer.public_key[:16]}... declined")
            return False
        for _ in range(signer.weight):
            if len(self.signatures) >= self.descriptor.threshold:
                break
            self.signatures.append(signature)
        self.weight += signer.weight
        return self.weight >= self.descriptor.threshold

    def finish(self) -> list[str]:
        if self.weight < self.descriptor.threshold:
            raise InsufficientMultisigWeight(self.descriptor.threshold, self.weight)
        return self.signatures


def sign_input(job: SigningJob, signer: SignerCallback) -> list[str]:
    """Collect the signatures for one input, calling ``signer`` as few times as needed."""
    utxo = job.utxo
    if utxo.multisig is None:
        signature = signer(job.digest, utxo, utxo.public_key_hex, job.sighash)
        if not signature:
            logger.warning(f"Signer returned no signature for input {job.index}")
        return [signature]

    collector = MultisigCollector(utxo.multisig)
    for entry in utxo.multisig.signers:
        signature = signer(job.digest, utxo, entry.public_key, job.sighash)
        if collector.add(entry, signature):
            break
    return collector.finish()


async def sign_input_async(job: SigningJob, signer: AsyncSignerCallback) -> list[str]:
    """
    Async variant of ``sign_input``.

    All multisig entries are requested concurrently; results are then combined
    in descriptor order exactly as the synchronous path does.
    """
    utxo = job.utxo
    if utxo.multisig is None:
        signature = await signer(job.digest, utxo, utxo.public_key_hex, job.sighash)
        if not signature:
            logger.warning(f"Signer returned no signature for input {job.index}")
        return [signature]

    entries = utxo.multisig.signers

    async def request(entry: MultisigSigner) -> str:
        return await signer(job.digest, utxo, entry.public_key, job.sighash)

    responses = await run_concurrently([request(entry) for entry in entries])
    collector = MultisigCollector(utxo.multisig)
    for entry, signature in zip(entries, responses, strict=True):
        if collector.add(entry, signature):
            break
    return collector.finish()


def unlocking_script(signatures: list[str], utxo: UnspentOutputRef) -> Script:
    return Script(list(utxo.script_type.unlocking_elements(signatures, utxo)))
