"""
Network capability descriptors.

A ``NetworkParams`` tells the builder everything it needs to know about a
chain: whether signatures carry the fork-id sighash bit, whether outputs may
carry CashTokens, and which address versions/prefixes belong to it.
"""

from __future__ import annotations

from enum import Enum

import base58
import bech32
from pydantic import BaseModel, Field

from utxobuilder.constants import DEFAULT_TX_VERSION, LEGACY_TX_VERSION, SIGHASH_FORKED
from utxobuilder.errors import InvalidAddress, UnsupportedNetwork
from utxobuilder.script import Script, p2pkh_script


class NetworkFamily(str, Enum):
    BITCOIN = "bitcoin"
    LITECOIN = "litecoin"
    DOGECOIN = "dogecoin"
    BITCOIN_CASH = "bitcoincash"
    BITCOIN_SV = "bitcoinsv"


class NetworkParams(BaseModel):
    name: str
    family: NetworkFamily
    fork_id: bool = False
    supports_tokens: bool = False
    p2pkh_version: int = Field(..., ge=0, le=255)
    p2sh_versions: tuple[int, ...]
    bech32_hrp: str | None = None
    tx_version: bytes = DEFAULT_TX_VERSION

    model_config = {"frozen": True}

    def sighash(self, base: int) -> int:
        """Compose the sighash value every input of a transaction is signed with."""
        if self.fork_id:
            return base | SIGHASH_FORKED
        return base

    def address_to_script(self, address: str) -> Script:
        """
        Convert an address of this network to its scriptPubKey.

        Supports base58check P2PKH/P2SH and, where the network has an hrp,
        bech32 witness programs (v0 keyhash/scripthash, v1 taproot).
        """
        if self.bech32_hrp and address.lower().startswith(self.bech32_hrp + "1"):
            witver, witprog = bech32.decode(self.bech32_hrp, address)
            if witver is None or witprog is None:
                raise InvalidAddress(f"Invalid bech32 address: {address}")
            program = bytes(witprog)
            if witver == 0 and len(program) in (20, 32):
                return Script(["OP_0", program.hex()])
            if witver == 1 and len(program) == 32:
                return Script(["OP_1", program.hex()])
            raise InvalidAddress(f"Unsupported witness version: {witver}")

        try:
            decoded = base58.b58decode_check(address)
        except ValueError as e:
            raise InvalidAddress(f"Invalid address {address}: {e}") from e

        version = decoded[0]
        payload = decoded[1:]
        if len(payload) != 20:
            raise InvalidAddress(f"Invalid address payload length: {len(payload)}")
        if version == self.p2pkh_version:
            return p2pkh_script(payload)
        if version in self.p2sh_versions:
            return Script(["OP_HASH160", payload.hex(), "OP_EQUAL"])
        raise InvalidAddress(f"Address {address} does not belong to network {self.name}")

    def is_valid_address(self, address: str) -> bool:
        try:
            self.address_to_script(address)
        except InvalidAddress:
            return False
        return True


BITCOIN_MAINNET = NetworkParams(
    name="bitcoin",
    family=NetworkFamily.BITCOIN,
    p2pkh_version=0x00,
    p2sh_versions=(0x05,),
    bech32_hrp="bc",
)
BITCOIN_TESTNET = NetworkParams(
    name="bitcoin-testnet",
    family=NetworkFamily.BITCOIN,
    p2pkh_version=0x6F,
    p2sh_versions=(0xC4,),
    bech32_hrp="tb",
)
BITCOIN_CASH_MAINNET = NetworkParams(
    name="bitcoincash",
    family=NetworkFamily.BITCOIN_CASH,
    fork_id=True,
    supports_tokens=True,
    p2pkh_version=0x00,
    p2sh_versions=(0x05,),
)
BITCOIN_CASH_TESTNET = NetworkParams(
    name="bitcoincash-testnet",
    family=NetworkFamily.BITCOIN_CASH,
    fork_id=True,
    supports_tokens=True,
    p2pkh_version=0x6F,
    p2sh_versions=(0xC4,),
)
BITCOIN_SV_MAINNET = NetworkParams(
    name="bitcoinsv",
    family=NetworkFamily.BITCOIN_SV,
    fork_id=True,
    p2pkh_version=0x00,
    p2sh_versions=(0x05,),
)
BITCOIN_SV_TESTNET = NetworkParams(
    name="bitcoinsv-testnet",
    family=NetworkFamily.BITCOIN_SV,
    fork_id=True,
    p2pkh_version=0x6F,
    p2sh_versions=(0xC4,),
)
LITECOIN_MAINNET = NetworkParams(
    name="litecoin",
    family=NetworkFamily.LITECOIN,
    p2pkh_version=0x30,
    p2sh_versions=(0x32, 0x05),
    bech32_hrp="ltc",
)
LITECOIN_TESTNET = NetworkParams(
    name="litecoin-testnet",
    family=NetworkFamily.LITECOIN,
    p2pkh_version=0x6F,
    p2sh_versions=(0x3A, 0xC4),
    bech32_hrp="tltc",
)
DOGECOIN_MAINNET = NetworkParams(
    name="dogecoin",
    family=NetworkFamily.DOGECOIN,
    p2pkh_version=0x1E,
    p2sh_versions=(0x16,),
    tx_version=LEGACY_TX_VERSION,
)
DOGECOIN_TESTNET = NetworkParams(
    name="dogecoin-testnet",
    family=NetworkFamily.DOGECOIN,
    p2pkh_version=0x71,
    p2sh_versions=(0xC4,),
    tx_version=LEGACY_TX_VERSION,
)

NETWORKS: dict[str, NetworkParams] = {
    params.name: params
    for params in (
        BITCOIN_MAINNET,
        BITCOIN_TESTNET,
        BITCOIN_CASH_MAINNET,
        BITCOIN_CASH_TESTNET,
        BITCOIN_SV_MAINNET,
        BITCOIN_SV_TESTNET,
        LITECOIN_MAINNET,
        LITECOIN_TESTNET,
        DOGECOIN_MAINNET,
        DOGECOIN_TESTNET,
    )
}


def get_network(name: str) -> NetworkParams:
    """Look up a network by name."""
    try:
        return NETWORKS[name.lower()]
    except KeyError:
        raise UnsupportedNetwork(
            f"Unknown network: {name}", details={"known": sorted(NETWORKS)}
        ) from None
