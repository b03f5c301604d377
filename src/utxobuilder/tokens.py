"""
CashToken payloads and their output-prefix encoding.

A payload is either fungible (category + amount) or an NFT (category +
capability + commitment, optionally with a fungible amount attached). The
absence of a token is expressed as ``None`` on the owning UTXO or output.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from utxobuilder.constants import (
    MAX_COMMITMENT_LENGTH,
    TOKEN_CAPABILITY_MASK,
    TOKEN_HAS_AMOUNT,
    TOKEN_HAS_COMMITMENT_LENGTH,
    TOKEN_HAS_NFT,
    TOKEN_PREFIX,
)
from utxobuilder.errors import TransactionParseError
from utxobuilder.script import encode_varint, read_varint

MAX_TOKEN_AMOUNT = 2**63 - 1

_HEX32 = re.compile(r"^[0-9a-fA-F]{64}$")


class NFTCapability(str, Enum):
    NONE = "none"
    MUTABLE = "mutable"
    MINTING = "minting"

    @property
    def bits(self) -> int:
        return {"none": 0x00, "mutable": 0x01, "minting": 0x02}[self.value]

    @classmethod
    def from_bits(cls, bits: int) -> NFTCapability:
        for capability in cls:
            if capability.bits == bits:
                return capability
        raise ValueError(f"Invalid NFT capability: {bits}")


class _TokenBase(BaseModel):
    category: str

    model_config = {"frozen": True}

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not _HEX32.match(v):
            raise ValueError("Token category must be 32 bytes of hex")
        return v.lower()

    @property
    def has_amount(self) -> bool:
        return getattr(self, "amount", 0) > 0

    @property
    def has_nft(self) -> bool:
        return False


class FungibleToken(_TokenBase):
    kind: Literal["fungible"] = "fungible"
    amount: int = Field(..., gt=0, le=MAX_TOKEN_AMOUNT)


class NonFungibleToken(_TokenBase):
    kind: Literal["nft"] = "nft"
    capability: NFTCapability = NFTCapability.NONE
    commitment: str = ""
    amount: int = Field(default=0, ge=0, le=MAX_TOKEN_AMOUNT)

    @field_validator("commitment")
    @classmethod
    def validate_commitment(cls, v: str) -> str:
        try:
            raw = bytes.fromhex(v)
        except ValueError as e:
            raise ValueError("NFT commitment must be hex") from e
        if len(raw) > MAX_COMMITMENT_LENGTH:
            raise ValueError(f"NFT commitment exceeds {MAX_COMMITMENT_LENGTH} bytes")
        return v.lower()

    @property
    def has_nft(self) -> bool:
        return True


TokenPayload = Annotated[FungibleToken | NonFungibleToken, Field(discriminator="kind")]


def serialize_token_prefix(token: FungibleToken | NonFungibleToken) -> bytes:
    """Encode the token prefix that precedes the locking bytecode of an output."""
    bitfield = 0
    commitment = b""
    if isinstance(token, NonFungibleToken):
        bitfield |= TOKEN_HAS_NFT | token.capability.bits
        commitment = bytes.fromhex(token.commitment)
        if commitment:
            bitfield |= TOKEN_HAS_COMMITMENT_LENGTH
    if token.has_amount:
        bitfield |= TOKEN_HAS_AMOUNT

    result = bytes([TOKEN_PREFIX]) + bytes.fromhex(token.category)[::-1] + bytes([bitfield])
    if commitment:
        result += encode_varint(len(commitment)) + commitment
    if token.has_amount:
        result += encode_varint(token.amount)
    return result


def parse_token_prefix(
    data: bytes, offset: int = 0
) -> tuple[FungibleToken | NonFungibleToken, int]:
    """Decode a token prefix starting at ``offset``; returns (token, new_offset)."""
    try:
        if data[offset] != TOKEN_PREFIX:
            raise TransactionParseError("Missing token prefix byte")
        offset += 1
        category = data[offset : offset + 32][::-1].hex()
        if len(category) != 64:
            raise TransactionParseError("Truncated token category")
        offset += 32
        bitfield = data[offset]
        offset += 1

        commitment = b""
        if bitfield & TOKEN_HAS_COMMITMENT_LENGTH:
            length, offset = read_varint(data, offset)
            commitment = data[offset : offset + length]
            offset += length
        amount = 0
        if bitfield & TOKEN_HAS_AMOUNT:
            amount, offset = read_varint(data, offset)

        if bitfield & TOKEN_HAS_NFT:
            token: FungibleToken | NonFungibleToken = NonFungibleToken(
                category=category,
                capability=NFTCapability.from_bits(bitfield & TOKEN_CAPABILITY_MASK),
                commitment=commitment.hex(),
                amount=amount,
            )
        else:
            token = FungibleToken(category=category, amount=amount)
    except TransactionParseError:
        raise
    except Exception as e:
        raise TransactionParseError(f"Failed to parse token prefix: {e}") from e
    return token, offset
