"""
Test configuration for utxobuilder tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from coincurve import PrivateKey

from utxobuilder.models import MultisigDescriptor, MultisigSigner, ScriptType, UnspentOutputRef

TXID_A = "a" * 64
TXID_B = "b" * 64
TXID_C = "c" * 64
CATEGORY = "f" * 64

# Legacy base58 P2PKH address (hash160 of the secp256k1 generator point)
P2PKH_MAINNET_ADDRESS = "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
P2SH_MAINNET_ADDRESS = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"


def make_key(byte: int) -> PrivateKey:
    """Deterministic test key (not for production use!)."""
    return PrivateKey(bytes([byte]) * 32)


def pubkey_hex(key: PrivateKey) -> str:
    """Compressed SEC public key of a test key, as hex."""
    return key.public_key.format(compressed=True).hex()


def sign_digest(key: PrivateKey, digest: bytes, sighash: int) -> str:
    """DER signature over a raw digest with the sighash byte appended."""
    return (key.sign(digest, hasher=None) + bytes([sighash & 0xFF])).hex()


@pytest.fixture
def keys() -> list[PrivateKey]:
    """Three deterministic signing keys."""
    return [make_key(1), make_key(2), make_key(3)]


@pytest.fixture
def key_signer(keys: list[PrivateKey]) -> Callable[..., str]:
    """Signer callback signing with whichever test key owns the requested pubkey."""
    by_pub = {pubkey_hex(k): k for k in keys}

    def signer(digest: bytes, utxo: UnspentOutputRef, public_key: str, sighash: int) -> str:
        return sign_digest(by_pub[public_key], digest, sighash)

    return signer


@pytest.fixture
def p2pkh_utxo(keys: list[PrivateKey]) -> UnspentOutputRef:
    """Single-key P2PKH UTXO worth 100,000 sats."""
    return UnspentOutputRef(
        txid=TXID_A,
        vout=0,
        value=100_000,
        script_type=ScriptType.P2PKH,
        public_key=pubkey_hex(keys[0]),
    )


@pytest.fixture
def multisig_descriptor(keys: list[PrivateKey]) -> MultisigDescriptor:
    """2-of-3 multisig over the test keys, weight 1 each."""
    return MultisigDescriptor(
        signers=[MultisigSigner(public_key=pubkey_hex(k), weight=1) for k in keys],
        threshold=2,
    )


@pytest.fixture
def multisig_utxo(multisig_descriptor: MultisigDescriptor) -> UnspentOutputRef:
    """2-of-3 multisig UTXO wrapped in P2SH, worth 200,000 sats."""
    return UnspentOutputRef(
        txid=TXID_B,
        vout=1,
        value=200_000,
        script_type=ScriptType.P2PKH_IN_P2SH,
        multisig=multisig_descriptor,
    )
