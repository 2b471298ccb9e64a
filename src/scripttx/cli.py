"""
scripttx CLI - inspect raw transactions.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import typer
from loguru import logger

from scripttx.address import script_to_address
from scripttx.codec import Transaction
from scripttx.config import get_settings
from scripttx.errors import DecodeError
from scripttx.models import NetworkType

app = typer.Typer(
    name="scripttx",
    help="Inspect script-based UTXO transactions",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def describe_transaction(tx: Transaction) -> dict[str, Any]:
    outputs = []
    for index, out in enumerate(tx.outputs):
        entry: dict[str, Any] = {"n": index, "value": out.value, "script": out.script.hex()}
        try:
            entry["address"] = script_to_address(out.script, tx.network)
        except DecodeError:
            pass
        outputs.append(entry)

    return {
        "txid": tx.id(),
        "size": tx.size(),
        "version": tx.version,
        "locktime": tx.locktime,
        "inputs": [
            {
                "txid": inp.txid,
                "vout": inp.vout,
                "script_sig": inp.script_sig.hex(),
                "sequence": inp.sequence,
            }
            for inp in tx.inputs
        ],
        "outputs": outputs,
    }


def load_transaction(tx_hex: str, network: NetworkType) -> Transaction:
    try:
        return Transaction.from_hex(tx_hex.strip(), network)
    except DecodeError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def decode(
    tx_hex: str = typer.Argument(..., help="Raw transaction hex"),
    network: NetworkType | None = typer.Option(
        None, "--network", "-n", help="Network for output addresses (default: SCRIPTTX_NETWORK)"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Decode a raw transaction and print it as JSON."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    tx = load_transaction(tx_hex, network or settings.network)
    typer.echo(json.dumps(describe_transaction(tx), indent=2))


@app.command()
def txid(
    tx_hex: str = typer.Argument(..., help="Raw transaction hex"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Print the id of a raw transaction."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    tx = load_transaction(tx_hex, settings.network)
    typer.echo(tx.id())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
