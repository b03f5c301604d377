"""
Command-line interface for utxobuilder.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from utxobuilder.builder import TransactionBuilder, estimate_transaction_size
from utxobuilder.config import get_settings
from utxobuilder.control_block import build_control_block
from utxobuilder.errors import TransactionBuilderError
from utxobuilder.models import OutputSpec, UnspentOutputRef
from utxobuilder.ordering import Ordering

app = typer.Typer(
    name="utxobuilder",
    help="Build and inspect UTXO transactions",
    add_completion=False,
)


class DraftFile(BaseModel):
    """JSON layout accepted by the commands reading a draft."""

    utxos: list[UnspentOutputRef]
    outputs: list[OutputSpec] = Field(default_factory=list)
    fee: int = Field(default=0, ge=0)


def setup_logging(level: str) -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_draft(path: Path) -> DraftFile:
    if not path.exists():
        raise ValueError(f"Draft file not found: {path}")
    return DraftFile.model_validate_json(path.read_text())


@app.command()
def estimate(
    draft_file: Annotated[Path, typer.Argument(help="JSON file with utxos and outputs")],
    network: Annotated[str | None, typer.Option("--network", "-n", help="Network name")] = None,
    memo: Annotated[str | None, typer.Option("--memo", help="OP_RETURN memo text")] = None,
    rbf: Annotated[bool, typer.Option("--rbf", help="Signal replace-by-fee")] = False,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Print the estimated size in bytes of the signed transaction."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    try:
        draft = load_draft(draft_file)
        size = estimate_transaction_size(
            draft.utxos,
            draft.outputs,
            network or settings.network,
            memo=memo,
            enable_rbf=rbf or settings.enable_rbf,
        )
    except (ValueError, ValidationError, TransactionBuilderError) as e:
        logger.error(f"Estimation failed: {e}")
        raise typer.Exit(1)

    typer.echo(size)


@app.command()
def order(
    draft_file: Annotated[Path, typer.Argument(help="JSON file with utxos and outputs")],
    network: Annotated[str | None, typer.Option("--network", "-n", help="Network name")] = None,
    input_ordering: Annotated[
        Ordering | None, typer.Option("--input-ordering", help="Input ordering policy")
    ] = None,
    output_ordering: Annotated[
        Ordering | None, typer.Option("--output-ordering", help="Output ordering policy")
    ] = None,
    rbf: Annotated[bool, typer.Option("--rbf", help="Signal replace-by-fee")] = False,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Print the canonical input and output order as JSON."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    try:
        draft = load_draft(draft_file)
        builder = TransactionBuilder(
            outputs=draft.outputs,
            fee=draft.fee,
            network=network or settings.network,
            utxos=draft.utxos,
            enable_rbf=rbf or settings.enable_rbf,
            is_dry_run=True,
            input_ordering=input_ordering or settings.input_ordering,
            output_ordering=output_ordering or settings.output_ordering,
        )
        tx_draft = builder.create_draft()
    except (ValueError, ValidationError, TransactionBuilderError) as e:
        logger.error(f"Ordering failed: {e}")
        raise typer.Exit(1)

    result = {
        "inputs": [
            {"txid": inp.txid, "vout": inp.vout, "sequence": inp.sequence.hex()}
            for inp in tx_draft.transaction.inputs
        ],
        "outputs": [
            {
                "value": out.value,
                "script_pubkey": out.script_pubkey.to_hex(),
                "token": out.token.model_dump(mode="json") if out.token is not None else None,
            }
            for out in tx_draft.transaction.outputs
        ],
    }
    typer.echo(json.dumps(result, indent=2))


@app.command("control-block")
def control_block(
    public_key: Annotated[str, typer.Argument(help="Public key hex (SEC or x-only)")],
    merkle_path: Annotated[
        str, typer.Option("--merkle-path", "-m", help="Merkle path hex")
    ] = "",
) -> None:
    """Print the taproot control block for a script-path spend."""
    try:
        typer.echo(build_control_block(public_key, merkle_path).hex())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def main() -> None:
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
