"""
Data models for transaction building using Pydantic for validation.

- ``ScriptType``: closed set of script templates; each member knows how to
  rebuild its spending script, locking script and unlocking script.
- ``UnspentOutputRef``: a spendable output with its key material.
- ``MultisigDescriptor``: weighted multisig signers plus threshold.
- Output specs: payment, token-aware, burn declaration and data carrier.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Literal

from coincurve import PublicKey
from pydantic import BaseModel, Field, field_validator, model_validator

from utxobuilder.constants import DEFAULT_TX_SEQUENCE, MAX_MULTISIG_KEYS
from utxobuilder.errors import UnsupportedMultisigWrap, UnsupportedScriptType
from utxobuilder.network import NetworkParams
from utxobuilder.script import (
    Script,
    hash160,
    op_return_script,
    p2pk_script,
    p2pkh_script,
    p2sh32_script,
    p2sh_script,
)
from utxobuilder.tokens import TokenPayload
from utxobuilder.transaction import TxInput, TxOutput

_HEX32 = re.compile(r"^[0-9a-fA-F]{64}$")


def validate_txid(v: str) -> str:
    if not _HEX32.match(v):
        raise ValueError("Transaction id must be 32 bytes of hex")
    return v.lower()


def validate_public_key(v: str) -> str:
    try:
        PublicKey(bytes.fromhex(v))
    except ValueError as e:
        raise ValueError(f"Invalid public key: {v}") from e
    return v.lower()


class ScriptType(str, Enum):
    P2PK = "p2pk"
    P2PKH = "p2pkh"
    P2PKHWT = "p2pkhwt"
    P2PK_IN_P2SH = "p2pk_in_p2sh"
    P2PK_IN_P2SH_WT = "p2pk_in_p2sh_wt"
    P2PK_IN_P2SH32 = "p2pk_in_p2sh32"
    P2PK_IN_P2SH32_WT = "p2pk_in_p2sh32_wt"
    P2PKH_IN_P2SH = "p2pkh_in_p2sh"
    P2PKH_IN_P2SH_WT = "p2pkh_in_p2sh_wt"
    P2PKH_IN_P2SH32 = "p2pkh_in_p2sh32"
    P2PKH_IN_P2SH32_WT = "p2pkh_in_p2sh32_wt"
    # Witness templates, not spendable through a scriptSig
    P2WPKH = "p2wpkh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"
    P2WPKH_IN_P2SH = "p2wpkh_in_p2sh"
    P2WSH_IN_P2SH = "p2wsh_in_p2sh"

    @property
    def is_token_aware(self) -> bool:
        return self.value.endswith("wt")

    @property
    def is_script_hash(self) -> bool:
        return self in _P2SH_WRAPS or self in _P2SH32_WRAPS

    @property
    def inner_type(self) -> ScriptType | None:
        """Single-key template wrapped by a script-hash variant."""
        if self in _PUBKEY_IN_SCRIPT_HASH:
            return ScriptType.P2PK
        if self in _PUBKEY_HASH_IN_SCRIPT_HASH:
            return ScriptType.P2PKH
        return None

    def spending_script(self, utxo: UnspentOutputRef) -> Script:
        """Script whose digest is signed for ``utxo`` (redeem script or scriptPubKey)."""
        if utxo.multisig is not None:
            if self not in _MULTISIG_WRAPS:
                raise UnsupportedMultisigWrap(
                    f"Unsupported multi-sig type {self.value}",
                    details={"script_type": self.value},
                )
            return utxo.multisig.script

        inner = self.inner_type
        if inner is not None:
            return inner.spending_script(utxo)
        if self == ScriptType.P2PK:
            return p2pk_script(utxo.public_key_bytes)
        if self in (ScriptType.P2PKH, ScriptType.P2PKHWT):
            return p2pkh_script(hash160(utxo.public_key_bytes))
        raise UnsupportedScriptType(
            f"{self.value} is not spendable by this builder",
            details={"script_type": self.value},
        )

    def locking_script(self, utxo: UnspentOutputRef) -> Script:
        """The scriptPubKey ``utxo`` is locked with."""
        script = self.spending_script(utxo)
        if self in _P2SH_WRAPS:
            return p2sh_script(script)
        if self in _P2SH32_WRAPS:
            return p2sh32_script(script)
        return script

    def unlocking_elements(self, signatures: list[str], utxo: UnspentOutputRef) -> list[str]:
        """Ordered scriptSig elements for ``utxo`` given its collected signatures."""
        script = self.spending_script(utxo)
        if utxo.multisig is not None:
            # OP_CHECKMULTISIG pops one extra stack element
            return ["", *signatures, script.to_hex()]

        signature = signatures[0]
        inner = self.inner_type
        if self == ScriptType.P2PK:
            return [signature]
        if self in (ScriptType.P2PKH, ScriptType.P2PKHWT):
            return [signature, utxo.public_key_hex]
        if inner == ScriptType.P2PKH:
            return [signature, utxo.public_key_hex, script.to_hex()]
        if inner == ScriptType.P2PK:
            return [signature, script.to_hex()]
        raise UnsupportedScriptType(
            f"Cannot send from this type of address {self.value}",
            details={"script_type": self.value},
        )


_P2SH_WRAPS = frozenset(
    {
        ScriptType.P2PK_IN_P2SH,
        ScriptType.P2PK_IN_P2SH_WT,
        ScriptType.P2PKH_IN_P2SH,
        ScriptType.P2PKH_IN_P2SH_WT,
    }
)
_P2SH32_WRAPS = frozenset(
    {
        ScriptType.P2PK_IN_P2SH32,
        ScriptType.P2PK_IN_P2SH32_WT,
        ScriptType.P2PKH_IN_P2SH32,
        ScriptType.P2PKH_IN_P2SH32_WT,
    }
)
_PUBKEY_IN_SCRIPT_HASH = frozenset(
    {
        ScriptType.P2PK_IN_P2SH,
        ScriptType.P2PK_IN_P2SH_WT,
        ScriptType.P2PK_IN_P2SH32,
        ScriptType.P2PK_IN_P2SH32_WT,
    }
)
_PUBKEY_HASH_IN_SCRIPT_HASH = frozenset(
    {
        ScriptType.P2PKH_IN_P2SH,
        ScriptType.P2PKH_IN_P2SH_WT,
        ScriptType.P2PKH_IN_P2SH32,
        ScriptType.P2PKH_IN_P2SH32_WT,
    }
)
# Multisig addresses reuse the pay-to-pubkey-hash-in-script-hash tags
_MULTISIG_WRAPS = _PUBKEY_HASH_IN_SCRIPT_HASH


class MultisigSigner(BaseModel):
    public_key: str
    weight: int = Field(default=1, ge=1)

    model_config = {"frozen": True}

    @field_validator("public_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        return validate_public_key(v)


class MultisigDescriptor(BaseModel):
    """Weighted multisig: each signer fills ``weight`` key slots of the script."""

    signers: list[MultisigSigner] = Field(..., min_length=1)
    threshold: int = Field(..., ge=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_weights(self) -> MultisigDescriptor:
        if self.total_weight < self.threshold:
            raise ValueError(
                f"Sum of signer weights ({self.total_weight}) is below threshold "
                f"({self.threshold})"
            )
        if self.total_weight > MAX_MULTISIG_KEYS:
            raise ValueError(f"Sum of signer weights exceeds {MAX_MULTISIG_KEYS}")
        return self

    @property
    def total_weight(self) -> int:
        return sum(signer.weight for signer in self.signers)

    @property
    def script(self) -> Script:
        elements: list[str | int] = [self.threshold]
        for signer in self.signers:
            elements.extend([signer.public_key] * signer.weight)
        elements.extend([self.total_weight, "OP_CHECKMULTISIG"])
        return Script(elements)


class UnspentOutputRef(BaseModel):
    """A previous output to spend, with the key material needed to unlock it."""

    txid: str
    vout: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    script_type: ScriptType
    public_key: str | None = None
    multisig: MultisigDescriptor | None = None
    token: TokenPayload | None = None

    model_config = {"frozen": True}

    @field_validator("txid")
    @classmethod
    def validate_txid(cls, v: str) -> str:
        return validate_txid(v)

    @field_validator("public_key")
    @classmethod
    def validate_key(cls, v: str | None) -> str | None:
        return validate_public_key(v) if v is not None else None

    @model_validator(mode="after")
    def check_key_material(self) -> UnspentOutputRef:
        if (self.public_key is None) == (self.multisig is None):
            raise ValueError("Exactly one of public_key or multisig must be set")
        return self

    @property
    def is_multisig(self) -> bool:
        return self.multisig is not None

    @property
    def public_key_hex(self) -> str:
        if self.public_key is None:
            raise ValueError("Multisig UTXO has no single public key")
        return self.public_key

    @property
    def public_key_bytes(self) -> bytes:
        return bytes.fromhex(self.public_key_hex)

    def to_input(self, sequence: bytes = DEFAULT_TX_SEQUENCE) -> TxInput:
        return TxInput(txid=self.txid, vout=self.vout, sequence=sequence)


class _AddressedOutput(BaseModel):
    address: str | None = None
    script_pubkey: str | None = None
    value: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @field_validator("script_pubkey")
    @classmethod
    def validate_script(cls, v: str | None) -> str | None:
        if v is None:
            return None
        try:
            bytes.fromhex(v)
        except ValueError as e:
            raise ValueError("script_pubkey must be hex") from e
        return v.lower()

    @model_validator(mode="after")
    def check_destination(self) -> _AddressedOutput:
        if (self.address is None) == (self.script_pubkey is None):
            raise ValueError("Exactly one of address or script_pubkey must be set")
        return self

    def locking_script(self, network: NetworkParams) -> Script:
        # Caller-supplied scripts are serialized byte for byte
        if self.script_pubkey is not None:
            return Script.from_raw(bytes.fromhex(self.script_pubkey))
        if self.address is None:
            raise ValueError("Output has neither address nor script_pubkey")
        return network.address_to_script(self.address)


class PaymentOutput(_AddressedOutput):
    type: Literal["payment"] = "payment"

    def to_output(self, network: NetworkParams) -> TxOutput:
        return TxOutput(self.value, self.locking_script(network))


class TokenOutput(_AddressedOutput):
    """Output carrying a token moved on from the input created by ``source_txid``."""

    type: Literal["token"] = "token"
    token: TokenPayload
    source_txid: str

    @field_validator("source_txid")
    @classmethod
    def validate_source(cls, v: str) -> str:
        return validate_txid(v)

    def to_output(self, network: NetworkParams) -> TxOutput:
        return TxOutput(self.value, self.locking_script(network), self.token)


class BurnOutput(BaseModel):
    """Declares tokens that are deliberately destroyed. Never serialized."""

    type: Literal["burn"] = "burn"
    category: str
    amount: int | None = Field(default=None, ge=0)
    source_txid: str | None = None

    model_config = {"frozen": True}

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not _HEX32.match(v):
            raise ValueError("Token category must be 32 bytes of hex")
        return v.lower()

    @field_validator("source_txid")
    @classmethod
    def validate_source(cls, v: str | None) -> str | None:
        return validate_txid(v) if v is not None else None


class DataOutput(BaseModel):
    """OP_RETURN data carrier."""

    type: Literal["data"] = "data"
    data: str
    value: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @field_validator("data")
    @classmethod
    def validate_data(cls, v: str) -> str:
        bytes.fromhex(v)
        return v.lower()

    @classmethod
    def from_text(cls, message: str) -> DataOutput:
        return cls(data=message.encode("utf-8").hex())

    def to_output(self, network: NetworkParams) -> TxOutput:
        return TxOutput(self.value, op_return_script(bytes.fromhex(self.data)))


OutputSpec = Annotated[
    PaymentOutput | TokenOutput | BurnOutput | DataOutput, Field(discriminator="type")
]
