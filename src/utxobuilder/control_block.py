"""
Taproot control block for script-path spends.
"""

from __future__ import annotations

from dataclasses import dataclass

from coincurve import PublicKey

from utxobuilder.constants import LEAF_VERSION_TAPSCRIPT


def to_x_only(public_key: bytes) -> bytes:
    """32-byte x-only encoding of a SEC public key (already x-only keys pass through)."""
    if len(public_key) == 32:
        return public_key
    return PublicKey(public_key).format(compressed=True)[1:]


@dataclass(frozen=True)
class ControlBlock:
    """
    Leaf version, x-only internal key and merkle path.

    An empty merkle path means the key's script is the only leaf. The path is
    not validated here.
    """

    public_key: bytes
    merkle_path: bytes = b""
    leaf_version: int = LEAF_VERSION_TAPSCRIPT

    def to_bytes(self) -> bytes:
        return bytes([self.leaf_version]) + to_x_only(self.public_key) + self.merkle_path

    def to_hex(self) -> str:
        return self.to_bytes().hex()


def build_control_block(public_key: bytes | str, merkle_path: bytes | str = b"") -> bytes:
    if isinstance(public_key, str):
        public_key = bytes.fromhex(public_key)
    if isinstance(merkle_path, str):
        merkle_path = bytes.fromhex(merkle_path)
    return ControlBlock(public_key, merkle_path).to_bytes()
