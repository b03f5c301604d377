"""
Canonical ordering of inputs and outputs.

BIP69 sorts inputs by (previous txid, vout) and outputs by (amount,
scriptPubKey). Shuffling is for privacy only and must not be used for
fee-estimation dry runs, which need reproducible sizes.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from enum import Enum
from typing import TypeVar

from utxobuilder.constants import REPLACE_BY_FEE_SEQUENCE
from utxobuilder.models import UnspentOutputRef
from utxobuilder.transaction import TxInput, TxOutput

T = TypeVar("T")

_rng = random.SystemRandom()


class Ordering(str, Enum):
    BIP69 = "bip69"
    SHUFFLE = "shuffle"
    NONE = "none"


def _utxo_key(utxo: UnspentOutputRef) -> tuple[bytes, int]:
    return bytes.fromhex(utxo.txid), utxo.vout


def _output_key(output: TxOutput) -> tuple[int, bytes, bytes]:
    # Token prefix only breaks ties between otherwise identical outputs
    return output.value, output.script_pubkey.to_bytes(), output.token_prefix()


def _apply(items: Sequence[T], policy: Ordering, key) -> list[T]:
    ordered = list(items)
    if policy == Ordering.BIP69:
        ordered.sort(key=key)
    elif policy == Ordering.SHUFFLE:
        _rng.shuffle(ordered)
    return ordered


def order_utxos(utxos: Sequence[UnspentOutputRef], policy: Ordering) -> list[UnspentOutputRef]:
    """Return a new list of UTXOs ordered by ``policy``."""
    return _apply(utxos, policy, _utxo_key)


def order_outputs(outputs: Sequence[TxOutput], policy: Ordering) -> list[TxOutput]:
    """Return a new list of outputs ordered by ``policy``."""
    return _apply(outputs, policy, _output_key)


def apply_replace_by_fee(inputs: Sequence[TxInput], enable: bool) -> list[TxInput]:
    """Signal RBF on the first input. Call after ordering."""
    result = list(inputs)
    if enable and result:
        result[0] = result[0].copy_with(sequence=REPLACE_BY_FEE_SEQUENCE)
    return result
