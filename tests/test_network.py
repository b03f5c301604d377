"""
Tests for network parameters and address decoding.
"""

from __future__ import annotations

import pytest

from utxobuilder.constants import SIGHASH_ALL, SIGHASH_ALL_FORKED
from utxobuilder.errors import InvalidAddress, UnsupportedNetwork
from utxobuilder.network import NETWORKS, NetworkFamily, get_network

from tests.conftest import P2PKH_MAINNET_ADDRESS, P2SH_MAINNET_ADDRESS


class TestRegistry:
    """Tests for the network registry."""

    def test_lookup_is_case_insensitive(self) -> None:
        """Test network names are matched case-insensitively."""
        assert get_network("BitcoinCash").family == NetworkFamily.BITCOIN_CASH

    def test_unknown_network(self) -> None:
        """Test unknown names raise with the known list attached."""
        with pytest.raises(UnsupportedNetwork) as exc_info:
            get_network("ethereum")
        assert "bitcoin" in exc_info.value.details["known"]

    def test_names_match_keys(self) -> None:
        """Test registry keys agree with the params' names."""
        for name, params in NETWORKS.items():
            assert params.name == name

    def test_only_bitcoin_cash_supports_tokens(self) -> None:
        """Test token support is limited to the Bitcoin Cash family."""
        supporting = {p.family for p in NETWORKS.values() if p.supports_tokens}
        assert supporting == {NetworkFamily.BITCOIN_CASH}


class TestSighash:
    """Tests for per-network sighash flags."""

    def test_forked_networks_set_bit(self) -> None:
        """Test fork-id networks add the fork-id bit."""
        assert get_network("bitcoincash").sighash(SIGHASH_ALL) == SIGHASH_ALL_FORKED
        assert get_network("bitcoinsv").sighash(SIGHASH_ALL) == SIGHASH_ALL_FORKED

    def test_other_networks_keep_base(self) -> None:
        """Test other networks leave the sighash unchanged."""
        assert get_network("bitcoin").sighash(SIGHASH_ALL) == SIGHASH_ALL
        assert get_network("dogecoin").sighash(SIGHASH_ALL) == SIGHASH_ALL


class TestAddressToScript:
    """Tests for address decoding into locking scripts."""

    def test_p2pkh(self) -> None:
        """Test a base58 P2PKH address."""
        script = get_network("bitcoin").address_to_script(P2PKH_MAINNET_ADDRESS)
        assert script.elements[0] == "OP_DUP"
        assert len(script) == 25

    def test_p2sh(self) -> None:
        """Test a base58 P2SH address."""
        script = get_network("bitcoinsv").address_to_script(P2SH_MAINNET_ADDRESS)
        assert script.elements[0] == "OP_HASH160"
        assert script.elements[-1] == "OP_EQUAL"

    def test_bech32_p2wpkh(self) -> None:
        """Test a bech32 v0 address."""
        script = get_network("bitcoin").address_to_script(
            "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
        )
        assert script.elements == ["OP_0", "751e76e8199196d454941c45d1b3a323f1433bd6"]

    def test_wrong_network(self) -> None:
        """Test a mainnet address is rejected on another chain."""
        with pytest.raises(InvalidAddress):
            get_network("dogecoin").address_to_script(P2PKH_MAINNET_ADDRESS)

    def test_bad_checksum(self) -> None:
        """Test a corrupted address fails validation."""
        assert not get_network("bitcoin").is_valid_address(P2PKH_MAINNET_ADDRESS[:-1] + "X")

    def test_invalid_address_is_value_error(self) -> None:
        """Test InvalidAddress can be caught as ValueError."""
        with pytest.raises(ValueError):
            get_network("bitcoin").address_to_script("not an address")
