"""
Conservation checks run before any input is signed.

This is the last line of defence against a transaction that is valid on the
network but pays, burns or drops the wrong amounts:

1. Value: outputs + fee must equal the input total exactly.
2. Fungible tokens: per input category, token outputs + declared burns must
   equal the input amount.
3. NFTs: the NFT inputs of each (source txid, category) pair must be carried on
   one output apiece by token outputs created from them,
   or explicitly burned.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from utxobuilder.errors import UnaccountedNFT, UnbalancedToken, UnbalancedValue
from utxobuilder.models import (
    BurnOutput,
    OutputSpec,
    TokenOutput,
    UnspentOutputRef,
)
from utxobuilder.tokens import FungibleToken, NFTCapability, NonFungibleToken
from utxobuilder.transaction import TxOutput


def sum_token_amounts(
    tokens: Iterable[FungibleToken | NonFungibleToken | None],
) -> dict[str, int]:
    """Fungible amount per category; payloads without an amount are ignored."""
    totals: dict[str, int] = {}
    for token in tokens:
        if token is None or not token.has_amount:
            continue
        totals[token.category] = totals.get(token.category, 0) + token.amount
    return totals


def validate_value(
    utxos: Sequence[UnspentOutputRef], outputs: Sequence[TxOutput], fee: int
) -> None:
    input_total = sum(utxo.value for utxo in utxos)
    output_total = sum(output.value for output in outputs)
    if output_total + fee != input_total:
        logger.warning(
            f"Value not conserved: inputs={input_total}, fee={fee}, outputs={output_total}"
        )
        raise UnbalancedValue(input_total, fee, output_total)


def validate_tokens(
    utxos: Sequence[UnspentOutputRef],
    specs: Sequence[OutputSpec],
    outputs: Sequence[TxOutput],
) -> None:
    input_totals = sum_token_amounts(utxo.token for utxo in utxos)
    output_totals = sum_token_amounts(output.token for output in outputs)
    burns = [spec for spec in specs if isinstance(spec, BurnOutput)]

    for category, input_amount in input_totals.items():
        burned = sum(burn.amount or 0 for burn in burns if burn.category == category)
        output_amount = output_totals.get(category, 0) + burned
        if output_amount != input_amount:
            logger.warning(
                f"Token {category} not conserved: inputs={input_amount}, outputs={output_amount}"
            )
            raise UnbalancedToken(category, input_amount, output_amount)


def _is_plain_nft(token: FungibleToken | NonFungibleToken | None) -> bool:
    # NFTs that also hold an amount are accounted for as fungible
    return isinstance(token, NonFungibleToken) and not token.has_amount


def validate_nfts(utxos: Sequence[UnspentOutputRef], specs: Sequence[OutputSpec]) -> None:
    """
    Match NFT inputs to the token outputs that carry them on.

    Inputs are grouped by (source txid, category). Without a minting NFT in the
    group, each NFT needs its own carrying output: the carrier count must equal
    the number of NFT inputs, or may fall short of it when a burn is declared
    for the group. A group holding a minting NFT needs at least one carrier or
    a burn; its carriers are not counted against the group size.
    """
    groups: dict[tuple[str, str], list[NonFungibleToken]] = {}
    for utxo in utxos:
        token = utxo.token
        if isinstance(token, NonFungibleToken) and _is_plain_nft(token):
            groups.setdefault((utxo.txid, token.category), []).append(token)

    for (txid, category), nfts in groups.items():
        burned = any(
            isinstance(spec, BurnOutput)
            and spec.source_txid == txid
            and spec.category == category
            for spec in specs
        )
        carriers = sum(
            1
            for spec in specs
            if isinstance(spec, TokenOutput)
            and spec.source_txid == txid
            and spec.token.category == category
            and _is_plain_nft(spec.token)
        )

        if any(nft.capability == NFTCapability.MINTING for nft in nfts):
            accounted = carriers >= 1 or burned
        elif burned:
            accounted = carriers <= len(nfts)
        else:
            accounted = carriers == len(nfts)
        if accounted:
            continue

        logger.warning(
            f"{len(nfts)} NFT(s) {category} from {txid} matched by {carriers} outputs "
            f"(burn declared: {burned})"
        )
        raise UnaccountedNFT(category, txid)


def validate_conservation(
    utxos: Sequence[UnspentOutputRef],
    specs: Sequence[OutputSpec],
    outputs: Sequence[TxOutput],
    fee: int,
    is_dry_run: bool = False,
) -> None:
    """
    Enforce value and token conservation for a draft transaction.

    Args:
        utxos: Inputs being spent
        specs: Caller's output specs (burn declarations and token sources)
        outputs: Serializable outputs, memo included
        fee: Transaction fee
        is_dry_run: Skip all checks (size estimation with placeholder values)

    Raises:
        UnbalancedValue, UnbalancedToken, UnaccountedNFT
    """
    if is_dry_run:
        logger.debug("Dry run: skipping conservation checks")
        return

    validate_value(utxos, outputs, fee)
    validate_tokens(utxos, specs, outputs)
    validate_nfts(utxos, specs)
