"""Typer CLI for zkdiploma.

Provides commands: keys, issue, batch-issue, verify-credential, sample,
prove, verify, and the did sub-commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from zkdiploma import __version__
from zkdiploma.cli.did_commands import app as did_app
from zkdiploma.config import ZKDiplomaSettings, trust_policy
from zkdiploma.sdk.backend import get_backend
from zkdiploma.sdk.did import issuer_did
from zkdiploma.sdk.errors import InputMismatch, ZKDiplomaError
from zkdiploma.sdk.issuer import (
    batch_issue_credentials,
    batch_issue_credentials_async,
    create_sample_credential,
    export_credential,
    import_credential,
    issue_credential,
    verify_credential_signature,
)
from zkdiploma.sdk.models import IssuerKeyPair, Proof, TrustPolicy
from zkdiploma.sdk.prover import generate_proof
from zkdiploma.sdk.signing import derive_public_key, generate_key_pair
from zkdiploma.sdk.verifier import verify_proof


app = typer.Typer(
    name="zkdiploma",
    help="Zero-knowledge degree credentials - issue, prove, verify",
    add_completion=False,
    rich_markup_mode="rich"
)
console = Console()

app.add_typer(did_app, name="did", help="Issuer DID commands")


def version_callback(show_version: bool) -> None:
    """Show version and exit."""
    if show_version:
        console.print(f"zkdiploma version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
) -> None:
    """zkdiploma CLI."""
    try:
        settings = ZKDiplomaSettings()
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        console.print(f"[red]Configuration error: {escape(messages)}[/red]")
        raise typer.Exit(1)

    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)]
    )


@app.command()
def keys(
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for the key pair"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing key file")
) -> None:
    """Generate an issuer key pair."""
    if output and output.exists() and not force:
        console.print(f"[red]Error: Key file {output} already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(1)

    key_pair = generate_key_pair()
    key_data = _key_pair_to_dict(key_pair)

    if output:
        output.write_text(json.dumps(key_data, indent=2))
        print(key_pair.public_key)
        console.print(f"[green]Key pair saved to {output}[/green]")
    else:
        # Use print() to avoid rich formatting
        print(json.dumps(key_data, indent=2))


@app.command()
def issue(
    diploma_file: Path = typer.Argument(..., help="JSON file containing diploma data"),
    key_file: Path = typer.Option(..., "--key-file", "-k", help="Issuer key file"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for the credential"),
    blinding_seed: str | None = typer.Option(None, "--blinding-seed", help="Subject-held seed for blinded commitments")
) -> None:
    """Issue a signed credential from a diploma data file."""
    try:
        key_pair = _load_key_pair(key_file)
        diploma_data = _load_json_file(diploma_file, dict)
        credential = issue_credential(diploma_data, key_pair, blinding_seed)
        _write_or_print(export_credential(credential), output)
    except (ZKDiplomaError, ValueError) as e:
        console.print(f"[red]Error issuing credential: {e}[/red]")
        raise typer.Exit(1)


@app.command("batch-issue")
def batch_issue(
    diploma_list_file: Path = typer.Argument(..., help="JSON file containing a list of diploma data"),
    key_file: Path = typer.Option(..., "--key-file", "-k", help="Issuer key file"),
    concurrent: bool = typer.Option(False, "--concurrent", help="Issue entries concurrently")
) -> None:
    """Issue credentials for a list of diplomas (all or nothing)."""
    try:
        key_pair = _load_key_pair(key_file)
        diploma_list = _load_json_file(diploma_list_file, list)
        if concurrent:
            credentials = asyncio.run(batch_issue_credentials_async(diploma_list, key_pair))
        else:
            credentials = batch_issue_credentials(diploma_list, key_pair)
        print(json.dumps([credential.to_dict() for credential in credentials], indent=2))
    except (ZKDiplomaError, ValueError) as e:
        console.print(f"[red]Error issuing credentials: {e}[/red]")
        raise typer.Exit(1)


@app.command("verify-credential")
def verify_credential(
    credential_file: Path = typer.Argument(..., help="Credential JSON file")
) -> None:
    """Verify a credential's issuer signature."""
    try:
        credential = import_credential(_read_file(credential_file))
    except (ZKDiplomaError, ValueError) as e:
        console.print(f"[red]Error reading credential: {e}[/red]")
        raise typer.Exit(1)

    if verify_credential_signature(credential):
        console.print("[green]Valid: credential signature verifies[/green]")
        print(f"Credential ID: {credential.credential_id}")
    else:
        console.print("[red]Invalid: credential signature does not verify[/red]")
        raise typer.Exit(1)


@app.command()
def sample(
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Directory for sample files")
) -> None:
    """Create a sample diploma, issuer key pair and credential."""
    diploma_data, credential, key_pair = create_sample_credential()

    if output_dir is None:
        print(export_credential(credential))
        return

    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "diploma.json").write_text(json.dumps(diploma_data.to_dict(), indent=2))
    (output_dir / "credential.json").write_text(export_credential(credential))
    (output_dir / "issuer.key").write_text(json.dumps(_key_pair_to_dict(key_pair), indent=2))
    console.print(f"[green]Sample files written to {output_dir}[/green]")


@app.command()
def prove(
    credential_file: Path = typer.Argument(..., help="Credential JSON file"),
    diploma_file: Path = typer.Argument(..., help="Private diploma data JSON file"),
    blinding_seed: str | None = typer.Option(None, "--blinding-seed", help="Seed used at issuance"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for the proof"),
    backend: str | None = typer.Option(None, "--backend", help="Proof backend name")
) -> None:
    """Generate a proof that diploma data matches a credential."""
    settings = ZKDiplomaSettings()
    try:
        credential = import_credential(_read_file(credential_file))
        diploma_data = _load_json_file(diploma_file, dict)
        proof = generate_proof(credential, diploma_data, get_backend(backend or settings.proof_backend), blinding_seed)
        _write_or_print(json.dumps(proof.to_dict(), indent=2), output)
    except InputMismatch as e:
        console.print(f"[red]Proof refused: {e}[/red]")
        raise typer.Exit(1)
    except (ZKDiplomaError, ValueError) as e:
        console.print(f"[red]Error generating proof: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def verify(
    proof_file: Path = typer.Argument(..., help="Proof JSON file"),
    issuer_key: str = typer.Option(..., "--issuer-key", help="Issuer public key (hex or did:key)"),
    trusted_issuer: list[str] | None = typer.Option(None, "--trusted-issuer", "-t", help="Trusted issuer key (repeatable)"),
    backend: str | None = typer.Option(None, "--backend", help="Proof backend name")
) -> None:
    """Verify a proof against an issuer key and trust policy."""
    settings = ZKDiplomaSettings()
    try:
        proof = Proof.model_validate(_load_json_file(proof_file, dict))
        policy = TrustPolicy(trusted_issuers=frozenset(trusted_issuer)) if trusted_issuer else trust_policy(settings)
        result = verify_proof(proof, issuer_key, policy, get_backend(backend or settings.proof_backend))
    except (ZKDiplomaError, ValueError) as e:
        console.print(f"[red]Verification error: {e}[/red]")
        raise typer.Exit(1)

    print(json.dumps(result.to_dict(), indent=2))
    if not result.is_valid:
        raise typer.Exit(1)


def _key_pair_to_dict(key_pair: IssuerKeyPair) -> dict[str, str]:
    return {
        "private_key": key_pair.private_key,
        "public_key": key_pair.public_key,
        "did": issuer_did(key_pair.public_key),
    }


def _load_key_pair(key_file: Path) -> IssuerKeyPair:
    """Load issuer key pair from a key file written by `keys`."""
    key_data = _load_json_file(key_file, dict)
    private_key = key_data.get("private_key")
    if not private_key:
        raise ValueError(f"Key file {key_file} has no private_key")

    public_key = key_data.get("public_key") or derive_public_key(private_key)
    return IssuerKeyPair(private_key=private_key, public_key=public_key)


def _load_json_file(path: Path, expected_type: type) -> Any:
    """Load JSON file and check its top-level type."""
    try:
        data = json.loads(_read_file(path))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, expected_type):
        raise ValueError(f"{path} must contain a JSON {'object' if expected_type is dict else 'array'}")
    return data


def _read_file(path: Path) -> str:
    if not path.exists():
        raise ValueError(f"File not found: {path}")
    return path.read_text()


def _write_or_print(content: str, output: Path | None) -> None:
    if output:
        output.write_text(content)
        console.print(f"[green]Output saved to {output}[/green]")
    else:
        print(content)


if __name__ == "__main__":
    app()
