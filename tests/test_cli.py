"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from utxobuilder.cli import app
from utxobuilder.script import p2pkh_script

from tests.conftest import TXID_A, TXID_B, make_key, pubkey_hex

runner = CliRunner()

SCRIPT_ONE = p2pkh_script(b"\x01" * 20).to_hex()
SCRIPT_TWO = p2pkh_script(b"\x02" * 20).to_hex()


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Put back the default loguru sink after each command."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def draft_file(tmp_path: Path) -> Path:
    """Draft JSON with two P2PKH inputs given out of canonical order."""
    pubkey = pubkey_hex(make_key(1))
    draft = {
        "utxos": [
            {
                "txid": txid,
                "vout": 0,
                "value": 50_000,
                "script_type": "p2pkh",
                "public_key": pubkey,
            }
            for txid in (TXID_B, TXID_A)
        ],
        "outputs": [
            {"type": "payment", "script_pubkey": SCRIPT_ONE, "value": 60_000},
            {"type": "payment", "script_pubkey": SCRIPT_TWO, "value": 30_000},
        ],
        "fee": 10_000,
    }
    path = tmp_path / "draft.json"
    path.write_text(json.dumps(draft))
    return path


class TestEstimateCommand:
    """Tests for the estimate command."""

    def test_prints_size(self, draft_file: Path) -> None:
        """Test the estimated size is printed alone on stdout."""
        result = runner.invoke(app, ["estimate", str(draft_file), "--log-level", "ERROR"])
        assert result.exit_code == 0
        # 4 + 1 + 2 * 147 + 1 + 2 * 34 + 4
        assert result.stdout.strip() == "372"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing draft file exits with status 1."""
        result = runner.invoke(
            app, ["estimate", str(tmp_path / "missing.json"), "--log-level", "CRITICAL"]
        )
        assert result.exit_code == 1

    def test_unknown_network(self, draft_file: Path) -> None:
        """Test an unknown network exits with status 1."""
        result = runner.invoke(
            app, ["estimate", str(draft_file), "-n", "dogecoin-regtest", "-l", "CRITICAL"]
        )
        assert result.exit_code == 1


class TestOrderCommand:
    """Tests for the order command."""

    def test_bip69(self, draft_file: Path) -> None:
        """Test inputs and outputs come out in BIP69 order."""
        result = runner.invoke(app, ["order", str(draft_file), "--log-level", "ERROR"])
        assert result.exit_code == 0
        ordered = json.loads(result.stdout)
        assert [inp["txid"] for inp in ordered["inputs"]] == [TXID_A, TXID_B]
        assert [out["value"] for out in ordered["outputs"]] == [30_000, 60_000]
        assert {inp["sequence"] for inp in ordered["inputs"]} == {"ffffffff"}

    def test_as_given(self, draft_file: Path) -> None:
        """Test the none policies keep the draft order."""
        result = runner.invoke(
            app,
            [
                "order",
                str(draft_file),
                "--input-ordering",
                "none",
                "--output-ordering",
                "none",
                "--log-level",
                "ERROR",
            ],
        )
        assert result.exit_code == 0
        ordered = json.loads(result.stdout)
        assert [inp["txid"] for inp in ordered["inputs"]] == [TXID_B, TXID_A]
        assert [out["value"] for out in ordered["outputs"]] == [60_000, 30_000]

    def test_rbf(self, draft_file: Path) -> None:
        """Test --rbf marks only the first ordered input."""
        result = runner.invoke(app, ["order", str(draft_file), "--rbf", "-l", "ERROR"])
        assert result.exit_code == 0
        inputs = json.loads(result.stdout)["inputs"]
        assert inputs[0]["txid"] == TXID_A
        assert inputs[0]["sequence"] == "01000000"
        assert inputs[1]["sequence"] == "ffffffff"


class TestControlBlockCommand:
    """Tests for the control-block command."""

    def test_prints_hex(self) -> None:
        """Test the control block is printed as hex."""
        key = make_key(1).public_key.format(compressed=True)
        result = runner.invoke(app, ["control-block", key.hex(), "-m", "ab" * 32])
        assert result.exit_code == 0
        assert result.stdout.strip() == "c0" + key[1:].hex() + "ab" * 32

    def test_invalid_key(self) -> None:
        """Test a malformed key exits with status 1."""
        result = runner.invoke(app, ["control-block", "zz"])
        assert result.exit_code == 1
