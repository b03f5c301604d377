"""
Script value type and push-data serialization.

A script is an ordered list of elements. An element is either an opcode
mnemonic ("OP_CHECKSIG"), an integer (minimally encoded number push) or a hex
string (data push; the empty string pushes zero bytes). Scripts supplied by a
caller as bytes are kept verbatim instead.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from utxobuilder.constants import CODE_OPS, OP_CODES
from utxobuilder.errors import TransactionParseError


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def push_data(data: bytes) -> bytes:
    """Encode a data push with the shortest length prefix."""
    length = len(data)
    if length < 0x4C:
        return bytes([length]) + data
    if length <= 0xFF:
        return b"\x4c" + bytes([length]) + data
    if length <= 0xFFFF:
        return b"\x4d" + length.to_bytes(2, "little") + data
    return b"\x4e" + length.to_bytes(4, "little") + data


def encode_script_number(n: int) -> bytes:
    """Minimal little-endian sign-magnitude encoding used by script numbers."""
    if n == 0:
        return b""
    negative = n < 0
    absolute = -n if negative else n
    result = bytearray()
    while absolute:
        result.append(absolute & 0xFF)
        absolute >>= 8
    if result[-1] & 0x80:
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80
    return bytes(result)


def push_int(n: int) -> bytes:
    if n == 0:
        return OP_CODES["OP_0"]
    if n == -1:
        return OP_CODES["OP_1NEGATE"]
    if 1 <= n <= 16:
        return bytes([0x50 + n])
    return push_data(encode_script_number(n))


@dataclass
class Script:
    """
    Ordered script elements with byte serialization.

    A script built with ``from_raw`` keeps the exact bytes it was given and is
    never re-encoded; its ``elements`` list stays empty.
    """

    elements: list[str | int] = field(default_factory=list)
    raw: bytes | None = None

    def to_bytes(self) -> bytes:
        if self.raw is not None:
            return self.raw
        result = b""
        for element in self.elements:
            if isinstance(element, int):
                result += push_int(element)
            elif element in OP_CODES:
                result += OP_CODES[element]
            else:
                try:
                    data = bytes.fromhex(element)
                except ValueError as e:
                    raise ValueError(f"Invalid script element: {element!r}") from e
                if not data:
                    result += OP_CODES["OP_0"]
                else:
                    result += push_data(data)
        return result

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def __len__(self) -> int:
        return len(self.to_bytes())

    @classmethod
    def from_raw(cls, data: bytes) -> Script:
        return cls(raw=bytes(data))

    @classmethod
    def from_bytes(cls, data: bytes) -> Script:
        """Decode raw script bytes into opcode mnemonics and hex pushes."""
        elements: list[str | int] = []
        offset = 0
        try:
            while offset < len(data):
                op = data[offset]
                offset += 1
                if 0x01 <= op <= 0x4B:
                    length = op
                elif op == 0x4C:
                    length = data[offset]
                    offset += 1
                elif op == 0x4D:
                    length = int.from_bytes(data[offset : offset + 2], "little")
                    offset += 2
                elif op == 0x4E:
                    length = int.from_bytes(data[offset : offset + 4], "little")
                    offset += 4
                else:
                    if op not in CODE_OPS:
                        raise TransactionParseError(f"Unknown opcode 0x{op:02x}")
                    elements.append(CODE_OPS[op])
                    continue
                if offset + length > len(data):
                    raise TransactionParseError("Push data exceeds script length")
                elements.append(data[offset : offset + length].hex())
                offset += length
        except IndexError as e:
            raise TransactionParseError(f"Truncated script: {data.hex()}") from e
        return cls(elements)

    @classmethod
    def from_hex(cls, script_hex: str) -> Script:
        return cls.from_bytes(bytes.fromhex(script_hex))


def p2pk_script(pubkey: bytes) -> Script:
    return Script([pubkey.hex(), "OP_CHECKSIG"])


def p2pkh_script(pubkey_hash: bytes) -> Script:
    # OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG
    return Script(["OP_DUP", "OP_HASH160", pubkey_hash.hex(), "OP_EQUALVERIFY", "OP_CHECKSIG"])


def p2sh_script(redeem_script: Script) -> Script:
    return Script(["OP_HASH160", hash160(redeem_script.to_bytes()).hex(), "OP_EQUAL"])


def p2sh32_script(redeem_script: Script) -> Script:
    return Script(["OP_HASH256", hash256(redeem_script.to_bytes()).hex(), "OP_EQUAL"])


def op_return_script(data: bytes) -> Script:
    return Script(["OP_RETURN", data.hex()])


def encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read a compact-size integer, returning (value, new_offset)."""
    first = data[offset]
    offset += 1

    if first < 0xFD:
        return first, offset
    if first == 0xFD:
        return int.from_bytes(data[offset : offset + 2], "little"), offset + 2
    if first == 0xFE:
        return int.from_bytes(data[offset : offset + 4], "little"), offset + 4
    return int.from_bytes(data[offset : offset + 8], "little"), offset + 8
