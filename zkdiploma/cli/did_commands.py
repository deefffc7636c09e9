"""DID CLI commands.

Converts issuer public keys to did:key identifiers and back, and resolves
issuer DID documents.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from zkdiploma.sdk.did import did_to_public_key, issuer_did, resolve_did_document, validate_did_key_format

app = typer.Typer(name="did", help="Issuer DID commands")
console = Console()


@app.command("from-key")
def from_key_command(
    public_key: str = typer.Argument(..., help="Issuer public key (64-char hex)")
) -> None:
    """Print the did:key for an issuer public key."""
    try:
        print(issuer_did(public_key))
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("to-key")
def to_key_command(
    did_key: str = typer.Argument(..., help="Issuer did:key")
) -> None:
    """Print the hex public key for an issuer did:key."""
    if not validate_did_key_format(did_key):
        console.print(f"[red]Error: Invalid DID format: {did_key}[/red]")
        raise typer.Exit(1)

    print(did_to_public_key(did_key))


@app.command("resolve")
def resolve_command(
    did_key: str = typer.Argument(..., help="Issuer did:key to resolve"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for DID document")
) -> None:
    """Resolve issuer did:key to a DID document."""
    if not validate_did_key_format(did_key):
        console.print(f"[red]Error: Invalid DID format: {did_key}[/red]")
        raise typer.Exit(1)

    json_str = json.dumps(resolve_did_document(did_key), indent=2)
    if output:
        output.write_text(json_str)
        console.print(f"[green]Output saved to {output}[/green]")
    else:
        # Use print() to avoid rich formatting issues
        print(json_str)
