"""
Script opcodes, sighash flags and transaction defaults.

Pure data: the forward opcode table, its reverse lookup, sighash and timelock
constants, default version/sequence byte strings and the address type tags.
"""

from __future__ import annotations

OP_CODES: dict[str, bytes] = {
    # constants
    "OP_0": b"\x00",
    "OP_FALSE": b"\x00",
    "OP_PUSHDATA1": b"\x4c",
    "OP_PUSHDATA2": b"\x4d",
    "OP_PUSHDATA4": b"\x4e",
    "OP_1NEGATE": b"\x4f",
    "OP_1": b"\x51",
    "OP_TRUE": b"\x51",
    "OP_2": b"\x52",
    "OP_3": b"\x53",
    "OP_4": b"\x54",
    "OP_5": b"\x55",
    "OP_6": b"\x56",
    "OP_7": b"\x57",
    "OP_8": b"\x58",
    "OP_9": b"\x59",
    "OP_10": b"\x5a",
    "OP_11": b"\x5b",
    "OP_12": b"\x5c",
    "OP_13": b"\x5d",
    "OP_14": b"\x5e",
    "OP_15": b"\x5f",
    "OP_16": b"\x60",
    # flow control
    "OP_NOP": b"\x61",
    "OP_IF": b"\x63",
    "OP_NOTIF": b"\x64",
    "OP_ELSE": b"\x67",
    "OP_ENDIF": b"\x68",
    "OP_VERIFY": b"\x69",
    "OP_RETURN": b"\x6a",
    # stack
    "OP_TOALTSTACK": b"\x6b",
    "OP_FROMALTSTACK": b"\x6c",
    "OP_2DROP": b"\x6d",
    "OP_2DUP": b"\x6e",
    "OP_3DUP": b"\x6f",
    "OP_2OVER": b"\x70",
    "OP_2ROT": b"\x71",
    "OP_2SWAP": b"\x72",
    "OP_IFDUP": b"\x73",
    "OP_DEPTH": b"\x74",
    "OP_DROP": b"\x75",
    "OP_DUP": b"\x76",
    "OP_NIP": b"\x77",
    "OP_OVER": b"\x78",
    "OP_PICK": b"\x79",
    "OP_ROLL": b"\x7a",
    "OP_ROT": b"\x7b",
    "OP_SWAP": b"\x7c",
    "OP_TUCK": b"\x7d",
    # splice
    "OP_SIZE": b"\x82",
    # bitwise logic
    "OP_EQUAL": b"\x87",
    "OP_EQUALVERIFY": b"\x88",
    # arithmetic
    "OP_1ADD": b"\x8b",
    "OP_1SUB": b"\x8c",
    "OP_NEGATE": b"\x8f",
    "OP_ABS": b"\x90",
    "OP_NOT": b"\x91",
    "OP_0NOTEQUAL": b"\x92",
    "OP_ADD": b"\x93",
    "OP_SUB": b"\x94",
    "OP_BOOLAND": b"\x9a",
    "OP_BOOLOR": b"\x9b",
    "OP_NUMEQUAL": b"\x9c",
    "OP_NUMEQUALVERIFY": b"\x9d",
    "OP_NUMNOTEQUAL": b"\x9e",
    "OP_LESSTHAN": b"\x9f",
    "OP_GREATERTHAN": b"\xa0",
    "OP_LESSTHANOREQUAL": b"\xa1",
    "OP_GREATERTHANOREQUAL": b"\xa2",
    "OP_MIN": b"\xa3",
    "OP_MAX": b"\xa4",
    "OP_WITHIN": b"\xa5",
    # crypto
    "OP_RIPEMD160": b"\xa6",
    "OP_SHA1": b"\xa7",
    "OP_SHA256": b"\xa8",
    "OP_HASH160": b"\xa9",
    "OP_HASH256": b"\xaa",
    "OP_CODESEPARATOR": b"\xab",
    "OP_CHECKSIG": b"\xac",
    "OP_CHECKSIGVERIFY": b"\xad",
    "OP_CHECKMULTISIG": b"\xae",
    "OP_CHECKMULTISIGVERIFY": b"\xaf",
    # locktime
    "OP_NOP2": b"\xb1",
    "OP_CHECKLOCKTIMEVERIFY": b"\xb1",
    "OP_NOP3": b"\xb2",
    "OP_CHECKSEQUENCEVERIFY": b"\xb2",
}

# Reverse lookup. OP_FALSE/OP_TRUE are aliases and never decoded to.
# 0xb1 and 0xb2 each carry two names; the later entry (the timelock name) wins.
# Whether such a byte acts as a NOP or a timelock check depends on where it sits
# in the script, not on this table.
CODE_OPS: dict[int, str] = {}
for _name, _code in OP_CODES.items():
    if _name in ("OP_FALSE", "OP_TRUE"):
        continue
    CODE_OPS[_code[0]] = _name
del _name, _code

# Sighash types
SIGHASH_ALL = 0x01
SIGHASH_NONE = 0x02
SIGHASH_SINGLE = 0x03
SIGHASH_ANYONECANPAY = 0x80
SIGHASH_FORKED = 0x40
SIGHASH_ALL_FORKED = SIGHASH_ALL | SIGHASH_FORKED
TAPROOT_SIGHASH_ALL = 0x00
SIGHASH_BASE_MASK = 0x1F

# Transaction lock types
TYPE_ABSOLUTE_TIMELOCK = 0x101
TYPE_RELATIVE_TIMELOCK = 0x201
TYPE_REPLACE_BY_FEE = 0x301

# Default values and sequences (little-endian)
DEFAULT_TX_LOCKTIME = b"\x00\x00\x00\x00"
EMPTY_TX_SEQUENCE = b"\x00\x00\x00\x00"
DEFAULT_TX_SEQUENCE = b"\xff\xff\xff\xff"
ABSOLUTE_TIMELOCK_SEQUENCE = b"\xfe\xff\xff\xff"
REPLACE_BY_FEE_SEQUENCE = b"\x01\x00\x00\x00"

# Script version and transaction versions
LEAF_VERSION_TAPSCRIPT = 0xC0
DEFAULT_TX_VERSION = b"\x02\x00\x00\x00"
LEGACY_TX_VERSION = b"\x01\x00\x00\x00"
SATOSHIS_PER_BITCOIN = 100_000_000
NEGATIVE_SATOSHI = -1

# Address type tags
P2PKH_ADDRESS = "p2pkh"
P2SH_ADDRESS = "p2sh"
P2WPKH_ADDRESS_V0 = "p2wpkhv0"
P2WSH_ADDRESS_V0 = "p2wshv0"
P2TR_ADDRESS_V1 = "p2trv1"

# CashToken output prefix
TOKEN_PREFIX = 0xEF
TOKEN_HAS_COMMITMENT_LENGTH = 0x10
TOKEN_HAS_NFT = 0x20
TOKEN_HAS_AMOUNT = 0x40
TOKEN_CAPABILITY_MASK = 0x0F
MAX_COMMITMENT_LENGTH = 40

# OP_CHECKMULTISIG key limit
MAX_MULTISIG_KEYS = 20

# 71 bytes: 64-byte signature plus DER framing and sighash byte
FAKE_ECDSA_SIGNATURE = "01" * 71

# Placeholder fee for size estimation dry runs
ESTIMATION_FEE = 10_000_000_000_000
