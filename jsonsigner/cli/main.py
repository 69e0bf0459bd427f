# jsonsigner/cli/main.py
"""
CLI for listing keyring keys, migrating them to amino and signing
transactions in legacy amino JSON mode.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from jsonsigner.amino.registry import DEFAULT_REGISTRY, TypeRegistry, load_type_map
from jsonsigner.crypto.keys import Ed25519PrivKey, Secp256k1PrivKey
from jsonsigner.errors import JsonSignerError, MigrationError
from jsonsigner.keyring.keyring import Keyring, MigrationReport
from jsonsigner.logging_config import setup_logging
from jsonsigner.sign.signer import batch_sign_txs, sign_tx, signatures_data
from jsonsigner.sign.txfile import read_tx_file, read_tx_files
from jsonsigner.verify.verifier import TxVerifier

app = typer.Typer(
    name="json-signer",
    help="Sign Cosmos transactions in legacy amino JSON mode",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

KEYRING_ENV = "JSON_SIGNER_KEYRING"
PASSPHRASE_ENV = "JSON_SIGNER_KEYRING_PASSPHRASE"
KEYRING_HELP = f"Keyring: <dir>, dir:<dir>, file:<dir>, test:<dir>, sqlite://<db> or memory: (overrides {KEYRING_ENV})"

_PATH_SCHEMES = ("sqlite://", "dir:", "file:", "test:")


def get_keyring_uri(keyring_flag: Optional[str] = None) -> str:
    """Resolve keyring location in this order:
    1. --keyring flag
    2. JSON_SIGNER_KEYRING environment variable
    3. Default: ~/.json-signer/keyring (one file per key)
    """
    if keyring_flag:
        return keyring_flag
    env_uri = os.environ.get(KEYRING_ENV)
    if env_uri:
        return env_uri
    return str(Path.home() / ".json-signer" / "keyring")


def keyring_path(uri: str) -> Optional[Path]:
    """Filesystem location behind a keyring URI, if it has one."""
    if uri == "memory:":
        return None
    for scheme in _PATH_SCHEMES:
        if uri.startswith(scheme):
            return Path(uri[len(scheme):]).expanduser().resolve()
    return Path(uri).expanduser().resolve()


def default_migration_dest(uri: str) -> str:
    """Amino keyring next to the source: <dir>/amino, or <name>-amino.db for SQLite.

    Encrypted keyrings migrate into an encrypted keyring of the same kind.
    """
    path = keyring_path(uri)
    if path is None:
        raise ValueError("an in-memory keyring needs an explicit --dest")
    if uri.startswith("sqlite://"):
        return "sqlite://" + str(path.with_name(f"{path.stem}-amino{path.suffix}"))
    for scheme in ("file:", "test:"):
        if uri.startswith(scheme):
            return scheme + str(path / "amino")
    return "dir:" + str(path / "amino")


def same_keyring(uri: str, other: str) -> bool:
    """True when both URIs name the same on-disk keyring."""
    path = keyring_path(uri)
    return path is not None and path == keyring_path(other)


def prompt_passphrase(prompt: str) -> str:
    """Passphrase for file: keyrings, from JSON_SIGNER_KEYRING_PASSPHRASE or the terminal."""
    env_passphrase = os.environ.get(PASSPHRASE_ENV)
    if env_passphrase is not None:
        return env_passphrase
    return typer.prompt(prompt, hide_input=True, err=True)


def open_keyring(keyring_flag: Optional[str]) -> Keyring:
    uri = get_keyring_uri(keyring_flag)
    path = keyring_path(uri)
    if path is not None and not path.exists():
        console.print(f"[red]Keyring not found: {path}[/]")
        console.print("[yellow]To get started:[/]")
        console.print("  • Import a key: json-signer import-key-hex <name> <hex> --keyring <path>")
        console.print(f"  • Set env var: export {KEYRING_ENV}=/path/to/keyring")
        raise typer.Exit(1)
    try:
        return Keyring(uri, prompt_passphrase)
    except (ValueError, OSError) as e:
        console.print(f"[red]Failed to open keyring: {str(e)}[/]")
        raise typer.Exit(1)


def load_registry(type_map: Optional[Path]) -> TypeRegistry:
    if type_map is None:
        return DEFAULT_REGISTRY
    try:
        return load_type_map(type_map)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Failed to load type map {type_map}: {str(e)}[/]")
        raise typer.Exit(1)


def print_json(obj) -> None:
    typer.echo(json.dumps(obj, separators=(",", ":"), ensure_ascii=False))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Legacy amino JSON signer for protobuf and amino keyrings."""
    setup_logging(verbose)


@app.command("list-keys")
def list_keys(
    keyring: Optional[str] = typer.Option(None, "--keyring", "-k", help=KEYRING_HELP),
    prefix: str = typer.Option("cosmos", "--prefix", help="Bech32 address prefix"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, yaml or json"),
):
    """List keys with their encoding, type and address."""
    if output not in ("table", "yaml", "json"):
        console.print(f"[red]Unknown output format: {output}[/]")
        raise typer.Exit(1)

    kr = open_keyring(keyring)
    entries = []
    try:
        for name in kr.keys():
            key = kr.get(name)
            entries.append({
                "name": name,
                "encoding": key.encoding,
                "type": key.key_type.value,
                "address": key.pub_key.bech32_address(prefix),
                "pubkey": json.dumps(key.pub_key.proto_json(), separators=(",", ":")),
            })
    except JsonSignerError as e:
        console.print(f"[red]Failed to read keyring: {str(e)}[/]")
        raise typer.Exit(1)
    finally:
        kr.close()

    if output == "yaml":
        typer.echo(yaml.safe_dump(entries, sort_keys=False), nl=False)
        return
    if output == "json":
        print_json(entries)
        return

    if not entries:
        console.print("[yellow]No keys found in keyring.[/]")
        return

    table = Table(title="Keyring Keys")
    table.add_column("Name")
    table.add_column("Encoding")
    table.add_column("Type")
    table.add_column("Address")
    for entry in entries:
        table.add_row(entry["name"], entry["encoding"], entry["type"], entry["address"])
    console.print(table)


@app.command("import-key-hex")
def import_key_hex(
    name: str = typer.Argument(..., help="Key name"),
    key_hex: str = typer.Argument(..., help="Private key as hex"),
    keyring: Optional[str] = typer.Option(None, "--keyring", "-k", help=KEYRING_HELP),
    encoding: str = typer.Option("proto", "--keyring-encoding", help="Stored encoding: proto or amino"),
    algo: str = typer.Option("secp256k1", "--algo", help="Key algorithm: secp256k1 or ed25519"),
):
    """Import a raw private key into the keyring."""
    try:
        raw = bytes.fromhex(key_hex)
    except ValueError as e:
        console.print(f"[red]Failed to decode private key: {str(e)}[/]")
        raise typer.Exit(1)

    try:
        if algo == "secp256k1":
            priv = Secp256k1PrivKey(raw)
        elif algo == "ed25519":
            priv = Ed25519PrivKey.from_seed(raw) if len(raw) == 32 else Ed25519PrivKey(raw)
        else:
            console.print(f"[red]Unsupported algorithm {algo}: must be one of secp256k1 or ed25519[/]")
            raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid private key: {str(e)}[/]")
        raise typer.Exit(1)

    if encoding not in ("proto", "amino"):
        console.print(f"[red]Unsupported encoding {encoding}: must be one of amino or proto[/]")
        raise typer.Exit(1)

    try:
        with Keyring(get_keyring_uri(keyring), prompt_passphrase) as kr:
            key = kr.import_priv_key(name, priv, encoding)
    except (JsonSignerError, ValueError, OSError) as e:
        console.print(f"[red]Import failed: {str(e)}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {encoding} key '{name}' ({key.pub_key.algo})[/]")


@app.command("migrate-keys")
def migrate_keys(
    keyring: Optional[str] = typer.Option(None, "--keyring", "-k", help=KEYRING_HELP),
    dest: Optional[str] = typer.Option(None, "--dest", "-d", help="Destination keyring (default: <keyring>/amino)"),
):
    """Re-encode protobuf keys as amino into a separate keyring."""
    source_uri = get_keyring_uri(keyring)
    try:
        dest_uri = dest or default_migration_dest(source_uri)
    except ValueError as e:
        console.print(f"[red]{str(e)}[/]")
        raise typer.Exit(1)
    if same_keyring(source_uri, dest_uri):
        console.print(f"[red]Migration destination is the source keyring: {dest_uri}[/]")
        raise typer.Exit(1)

    kr = open_keyring(keyring)
    failed = False
    try:
        with Keyring(dest_uri, prompt_passphrase) as dest_kr:
            report = kr.migrate_proto_keys_to_amino(dest_kr)
    except MigrationError as e:
        report = e.report
        failed = True
    except (JsonSignerError, ValueError, OSError) as e:
        console.print(f"[red]Migration failed: {str(e)}[/]")
        raise typer.Exit(1)
    finally:
        kr.close()

    _print_migration_report(report, dest_uri)
    if failed:
        raise typer.Exit(1)


def _print_migration_report(report: MigrationReport, dest_uri: str) -> None:
    table = Table(title=f"Migration to {dest_uri}")
    table.add_column("Key")
    table.add_column("Result")
    for name in report.migrated:
        table.add_row(name, "[green]migrated[/]")
    for name in report.skipped:
        table.add_row(name, "[yellow]already amino[/]")
    for name, reason in report.failed:
        table.add_row(name, f"[red]failed: {reason}[/]")
    console.print(table)
    console.print(f"Migrated {len(report.migrated)}, skipped {len(report.skipped)}, failed {len(report.failed)}")


@app.command("sign-tx")
def sign_tx_cmd(
    tx_file: Path = typer.Argument(..., help="Transaction JSON file"),
    signer: str = typer.Option(..., "--from", help="Name of the signing key"),
    chain_id: str = typer.Option(..., "--chain-id", help="Chain ID"),
    account: str = typer.Option(..., "--account", help="Account number"),
    sequence: str = typer.Option(..., "--sequence", help="Account sequence"),
    signature_only: bool = typer.Option(False, "--signature-only", help="Print only the signatures"),
    keyring: Optional[str] = typer.Option(None, "--keyring", "-k", help=KEYRING_HELP),
    type_map: Optional[Path] = typer.Option(None, "--type-map", help="Extra amino type mappings (YAML or JSON)"),
    device_index: Optional[int] = typer.Option(None, "--device-index", help="Hardware device to use when several are attached"),
):
    """Sign one transaction."""
    registry = load_registry(type_map)
    kr = open_keyring(keyring)
    try:
        tx = read_tx_file(tx_file)
        signed, bytes_to_sign = sign_tx(
            tx, kr, signer, chain_id, account, sequence,
            registry=registry, device_index=device_index,
        )
    except (JsonSignerError, OSError) as e:
        console.print(f"[red]Signing failed: {str(e)}[/]")
        raise typer.Exit(1)
    finally:
        kr.close()

    typer.echo(f"Bytes to sign: {bytes_to_sign.decode('utf-8')}", err=True)
    print_json(signatures_data(signed) if signature_only else signed.to_dict())


@app.command("sign-tx-batch")
def sign_tx_batch_cmd(
    tx_files: List[Path] = typer.Argument(..., help="Newline-delimited JSON transaction files"),
    signer: str = typer.Option(..., "--from", help="Name of the signing key"),
    chain_id: str = typer.Option(..., "--chain-id", help="Chain ID"),
    account: str = typer.Option(..., "--account", help="Account number"),
    sequence: str = typer.Option(..., "--sequence", help="Sequence of the first transaction"),
    signature_only: bool = typer.Option(False, "--signature-only", help="Print only the signatures"),
    keyring: Optional[str] = typer.Option(None, "--keyring", "-k", help=KEYRING_HELP),
    type_map: Optional[Path] = typer.Option(None, "--type-map", help="Extra amino type mappings (YAML or JSON)"),
    device_index: Optional[int] = typer.Option(None, "--device-index", help="Hardware device to use when several are attached"),
):
    """Sign every transaction of the given files, one sequence number each."""
    registry = load_registry(type_map)
    kr = open_keyring(keyring)
    try:
        txs = read_tx_files(tx_files)
        results = batch_sign_txs(
            txs, kr, signer, chain_id, account, sequence,
            registry=registry, device_index=device_index,
        )
    except (JsonSignerError, OSError) as e:
        console.print(f"[red]Signing failed: {str(e)}[/]")
        raise typer.Exit(1)
    finally:
        kr.close()

    for signed, _ in results:
        print_json(signatures_data(signed) if signature_only else signed.to_dict())


@app.command("verify-tx")
def verify_tx_cmd(
    tx_file: Path = typer.Argument(..., help="Signed transaction JSON file"),
    chain_id: str = typer.Option(..., "--chain-id", help="Chain ID"),
    account: str = typer.Option(..., "--account", help="Account number"),
    type_map: Optional[Path] = typer.Option(None, "--type-map", help="Extra amino type mappings (YAML or JSON)"),
):
    """Check the legacy amino JSON signatures of a signed transaction."""
    registry = load_registry(type_map)
    try:
        tx = read_tx_file(tx_file)
    except (JsonSignerError, OSError) as e:
        console.print(f"[red]Failed to read transaction: {str(e)}[/]")
        raise typer.Exit(1)

    result = TxVerifier(chain_id, account, registry).verify(tx)
    if result.is_valid:
        console.print(f"[green]✓ {tx_file.name}: {len(tx.signatures)} signature(s) valid[/]")
    else:
        console.print(f"[red]✗ Verification failed for {tx_file.name}[/]")
        for failure in result.failures:
            console.print(f"  • \\[{failure.index}] {failure.category}: {failure.message}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
