"""
Transaction value types: serialization, parsing and signature digests.

Two digest algorithms are provided behind ``Transaction.digest_for_input``:

- fork-id sighash (Bitcoin Cash / Bitcoin SV): the BIP143-style preimage, with
  the spent UTXO's CashToken prefix placed in front of the script code,
- everything else: the legacy pre-segwit preimage over a modified copy of
  the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from utxobuilder.constants import (
    DEFAULT_TX_LOCKTIME,
    DEFAULT_TX_SEQUENCE,
    DEFAULT_TX_VERSION,
    EMPTY_TX_SEQUENCE,
    NEGATIVE_SATOSHI,
    SIGHASH_ANYONECANPAY,
    SIGHASH_BASE_MASK,
    SIGHASH_FORKED,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
    TOKEN_PREFIX,
)
from utxobuilder.errors import TransactionParseError
from utxobuilder.script import Script, encode_varint, hash256, read_varint
from utxobuilder.tokens import (
    FungibleToken,
    NonFungibleToken,
    parse_token_prefix,
    serialize_token_prefix,
)

ZERO_HASH = b"\x00" * 32


def serialize_outpoint(txid: str, vout: int) -> bytes:
    """Serialize outpoint (txid:vout)."""
    # txid is in RPC format (big-endian), need to reverse for raw tx
    return bytes.fromhex(txid)[::-1] + vout.to_bytes(4, "little")


@dataclass
class TxInput:
    """Transaction input."""

    txid: str
    vout: int
    script_sig: Script = field(default_factory=Script)
    sequence: bytes = DEFAULT_TX_SEQUENCE

    def outpoint(self) -> bytes:
        return serialize_outpoint(self.txid, self.vout)

    def serialize(self) -> bytes:
        script = self.script_sig.to_bytes()
        return self.outpoint() + encode_varint(len(script)) + script + self.sequence

    def copy_with(self, **changes: object) -> TxInput:
        return replace(self, **changes)


@dataclass
class TxOutput:
    """Transaction output, optionally carrying a CashToken."""

    value: int
    script_pubkey: Script
    token: FungibleToken | NonFungibleToken | None = None

    def token_prefix(self) -> bytes:
        return serialize_token_prefix(self.token) if self.token is not None else b""

    def serialize(self) -> bytes:
        script = self.token_prefix() + self.script_pubkey.to_bytes()
        return self.value.to_bytes(8, "little", signed=True) + encode_varint(len(script)) + script


@dataclass
class Transaction:
    """A non-witness transaction."""

    inputs: list[TxInput]
    outputs: list[TxOutput]
    version: bytes = DEFAULT_TX_VERSION
    locktime: bytes = DEFAULT_TX_LOCKTIME

    def serialize(self) -> bytes:
        result = self.version
        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.serialize()
        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += out.serialize()
        result += self.locktime
        return result

    def to_hex(self) -> str:
        return self.serialize().hex()

    def get_size(self) -> int:
        return len(self.serialize())

    def txid(self) -> str:
        """Calculate txid (double SHA256, displayed byte-reversed)."""
        return hash256(self.serialize())[::-1].hex()

    @classmethod
    def from_bytes(cls, tx_bytes: bytes) -> Transaction:
        try:
            offset = 0
            version = tx_bytes[offset : offset + 4]
            offset += 4

            if tx_bytes[offset] == 0x00 and tx_bytes[offset + 1] == 0x01:
                raise TransactionParseError("Witness transactions are not supported")

            input_count, offset = read_varint(tx_bytes, offset)
            inputs: list[TxInput] = []
            for _ in range(input_count):
                txid = tx_bytes[offset : offset + 32][::-1].hex()
                offset += 32
                vout = int.from_bytes(tx_bytes[offset : offset + 4], "little")
                offset += 4
                script_len, offset = read_varint(tx_bytes, offset)
                script = Script.from_bytes(tx_bytes[offset : offset + script_len])
                offset += script_len
                sequence = tx_bytes[offset : offset + 4]
                offset += 4
                inputs.append(TxInput(txid, vout, script, sequence))

            output_count, offset = read_varint(tx_bytes, offset)
            outputs: list[TxOutput] = []
            for _ in range(output_count):
                value = int.from_bytes(tx_bytes[offset : offset + 8], "little", signed=True)
                offset += 8
                script_len, offset = read_varint(tx_bytes, offset)
                end = offset + script_len
                token = None
                if script_len and tx_bytes[offset] == TOKEN_PREFIX:
                    token, offset = parse_token_prefix(tx_bytes, offset)
                outputs.append(TxOutput(value, Script.from_raw(tx_bytes[offset:end]), token))
                offset = end

            locktime = tx_bytes[offset : offset + 4]
            if len(locktime) != 4 or offset + 4 != len(tx_bytes):
                raise TransactionParseError("Unexpected transaction length")
            return cls(inputs, outputs, version, locktime)

        except TransactionParseError:
            raise
        except Exception as e:
            raise TransactionParseError(f"Failed to parse transaction: {e}") from e

    @classmethod
    def from_hex(cls, tx_hex: str) -> Transaction:
        return cls.from_bytes(bytes.fromhex(tx_hex))

    def digest_for_input(
        self,
        index: int,
        script: Script,
        value: int,
        token: FungibleToken | NonFungibleToken | None,
        sighash: int,
    ) -> bytes:
        """Signature digest for input ``index`` spending ``script``."""
        if not 0 <= index < len(self.inputs):
            raise IndexError(f"Input index {index} out of range")
        if sighash & SIGHASH_FORKED:
            return self._forkid_digest(index, script, value, token, sighash)
        return self._legacy_digest(index, script, sighash)

    def _forkid_digest(
        self,
        index: int,
        script: Script,
        value: int,
        token: FungibleToken | NonFungibleToken | None,
        sighash: int,
    ) -> bytes:
        base = sighash & SIGHASH_BASE_MASK
        anyone_can_pay = bool(sighash & SIGHASH_ANYONECANPAY)

        hash_prevouts = ZERO_HASH
        if not anyone_can_pay:
            hash_prevouts = hash256(b"".join(inp.outpoint() for inp in self.inputs))

        hash_sequence = ZERO_HASH
        if not anyone_can_pay and base not in (SIGHASH_SINGLE, SIGHASH_NONE):
            hash_sequence = hash256(b"".join(inp.sequence for inp in self.inputs))

        if base not in (SIGHASH_SINGLE, SIGHASH_NONE):
            hash_outputs = hash256(b"".join(out.serialize() for out in self.outputs))
        elif base == SIGHASH_SINGLE and index < len(self.outputs):
            hash_outputs = hash256(self.outputs[index].serialize())
        else:
            hash_outputs = ZERO_HASH

        target = self.inputs[index]
        script_code = script.to_bytes()
        token_prefix = serialize_token_prefix(token) if token is not None else b""

        preimage = (
            self.version
            + hash_prevouts
            + hash_sequence
            + target.outpoint()
            + token_prefix
            + encode_varint(len(script_code))
            + script_code
            + value.to_bytes(8, "little")
            + target.sequence
            + hash_outputs
            + self.locktime
            + sighash.to_bytes(4, "little")
        )
        return hash256(preimage)

    def _legacy_digest(self, index: int, script: Script, sighash: int) -> bytes:
        base = sighash & SIGHASH_BASE_MASK

        if base == SIGHASH_SINGLE and index >= len(self.outputs):
            return (1).to_bytes(32, "little")

        inputs = [inp.copy_with(script_sig=Script()) for inp in self.inputs]
        inputs[index] = inputs[index].copy_with(script_sig=script)

        outputs = list(self.outputs)
        if base in (SIGHASH_NONE, SIGHASH_SINGLE):
            if base == SIGHASH_NONE:
                outputs = []
            else:
                blank = [TxOutput(NEGATIVE_SATOSHI, Script()) for _ in range(index)]
                outputs = blank + [self.outputs[index]]
            for i in range(len(inputs)):
                if i != index:
                    inputs[i] = inputs[i].copy_with(sequence=EMPTY_TX_SEQUENCE)

        if sighash & SIGHASH_ANYONECANPAY:
            inputs = [inputs[index]]

        tx_copy = Transaction(inputs, outputs, self.version, self.locktime)
        return hash256(tx_copy.serialize() + sighash.to_bytes(4, "little"))
