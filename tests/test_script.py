"""
Tests for script serialization and push encoding.
"""

from __future__ import annotations

import pytest

from utxobuilder.constants import CODE_OPS, OP_CODES
from utxobuilder.errors import TransactionParseError
from utxobuilder.script import (
    Script,
    encode_script_number,
    encode_varint,
    hash160,
    hash256,
    p2pkh_script,
    p2sh32_script,
    p2sh_script,
    push_data,
    push_int,
    read_varint,
)


class TestHashes:
    """Tests for hash helpers."""

    def test_hash256_empty(self) -> None:
        """Test double SHA256 of empty input against the known value."""
        expected = bytes.fromhex("5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456")
        assert hash256(b"") == expected

    def test_hash160_length(self) -> None:
        """Test hash160 produces 20 bytes."""
        assert len(hash160(b"\x02" * 33)) == 20


class TestOpcodeTables:
    """Tests for the forward and reverse opcode tables."""

    def test_aliases_not_decoded(self) -> None:
        """Test OP_FALSE/OP_TRUE never come out of the reverse table."""
        assert CODE_OPS[0x00] == "OP_0"
        assert CODE_OPS[0x51] == "OP_1"

    def test_timelock_names_win(self) -> None:
        """Test 0xb1 and 0xb2 decode to their timelock names."""
        assert CODE_OPS[0xB1] == "OP_CHECKLOCKTIMEVERIFY"
        assert CODE_OPS[0xB2] == "OP_CHECKSEQUENCEVERIFY"

    def test_forward_table_keeps_aliases(self) -> None:
        """Test both names of an aliased byte encode the same."""
        assert OP_CODES["OP_FALSE"] == OP_CODES["OP_0"]
        assert OP_CODES["OP_NOP2"] == OP_CODES["OP_CHECKLOCKTIMEVERIFY"]


class TestPushEncoding:
    """Tests for number and data pushes."""

    def test_small_ints(self) -> None:
        """Test small integers use the dedicated opcodes."""
        assert push_int(0) == b"\x00"
        assert push_int(-1) == b"\x4f"
        assert push_int(1) == b"\x51"
        assert push_int(16) == b"\x60"

    def test_larger_int_is_data_push(self) -> None:
        """Test integers above 16 are pushed as script numbers."""
        assert push_int(17) == b"\x01\x11"
        # high bit set needs a padding byte
        assert push_int(128) == b"\x02\x80\x00"

    def test_script_number_sign(self) -> None:
        """Test negative script numbers use the sign bit."""
        assert encode_script_number(0) == b""
        assert encode_script_number(-5) == b"\x85"
        assert encode_script_number(-128) == b"\x80\x80"

    def test_push_data_prefixes(self) -> None:
        """Test the shortest length prefix is chosen."""
        assert push_data(b"\xaa" * 75)[:1] == b"\x4b"
        assert push_data(b"\xaa" * 76)[:2] == b"\x4c\x4c"
        assert push_data(b"\xaa" * 256)[:3] == b"\x4d\x00\x01"


class TestVarint:
    """Tests for compact-size integers."""

    def test_encode(self) -> None:
        """Test each size boundary."""
        assert encode_varint(0xFC) == b"\xfc"
        assert encode_varint(0xFD) == b"\xfd\xfd\x00"
        assert encode_varint(0x10000) == b"\xfe\x00\x00\x01\x00"

    def test_read_with_offset(self) -> None:
        """Test reading from the middle of a buffer."""
        value, offset = read_varint(b"\x00\xfd\x01\x02", 1)
        assert value == 0x0201
        assert offset == 4


class TestScript:
    """Tests for the Script value type."""

    def test_empty_script(self) -> None:
        """Test an empty script serializes to nothing."""
        script = Script()
        assert script.to_bytes() == b""
        assert len(script) == 0

    def test_empty_string_pushes_zero(self) -> None:
        """Test the empty element encodes as OP_0."""
        assert Script(["", "OP_1"]).to_bytes() == b"\x00\x51"

    def test_p2pkh_layout(self) -> None:
        """Test P2PKH template bytes."""
        script = p2pkh_script(b"\x11" * 20)
        raw = script.to_bytes()
        assert raw[:3] == b"\x76\xa9\x14"
        assert raw[-2:] == b"\x88\xac"
        assert len(raw) == 25

    def test_p2sh_variants(self) -> None:
        """Test P2SH uses hash160 and P2SH32 uses hash256."""
        redeem = Script(["OP_1"])
        assert p2sh_script(redeem).to_bytes()[:2] == b"\xa9\x14"
        p2sh32 = p2sh32_script(redeem).to_bytes()
        assert p2sh32[:2] == b"\xaa\x20"
        assert len(p2sh32) == 35

    def test_parse(self) -> None:
        """Test decoding a P2PKH script into elements."""
        raw = bytes.fromhex("76a914" + "11" * 20 + "88ac")
        script = Script.from_bytes(raw)
        assert script.elements == [
            "OP_DUP",
            "OP_HASH160",
            "11" * 20,
            "OP_EQUALVERIFY",
            "OP_CHECKSIG",
        ]
        assert script.to_bytes() == raw

    def test_parse_zero_as_opcode(self) -> None:
        """Test a zero byte decodes as OP_0."""
        assert Script.from_hex("00").elements == ["OP_0"]

    def test_parse_unknown_opcode(self) -> None:
        """Test decoding fails on a byte missing from the opcode table."""
        with pytest.raises(TransactionParseError):
            Script.from_bytes(b"\xba")

    def test_parse_truncated_push(self) -> None:
        """Test decoding fails when a push runs past the end."""
        with pytest.raises(TransactionParseError):
            Script.from_bytes(b"\x05\x01\x02")

    def test_invalid_element(self) -> None:
        """Test a non-hex, non-opcode element is rejected."""
        with pytest.raises(ValueError):
            Script(["not-hex"]).to_bytes()


class TestRawScript:
    """Tests for scripts kept as raw bytes."""

    def test_non_minimal_push_kept(self) -> None:
        """Test a non-minimal push is serialized unchanged."""
        script = Script.from_raw(bytes.fromhex("4c0101"))
        assert script.to_hex() == "4c0101"
        assert len(script) == 3

    def test_unknown_opcode_kept(self) -> None:
        """Test opcodes outside the table pass through."""
        assert Script.from_raw(b"\x51\xba").to_bytes() == b"\x51\xba"

    def test_empty_raw_script(self) -> None:
        """Test an empty raw script serializes to nothing."""
        assert Script.from_raw(b"").to_bytes() == b""
