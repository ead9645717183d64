"""Command line interface for inspecting keys and checking signed requests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import typer

from fident.config import load_config
from fident.exceptions import FidentError
from fident.request import RequestView
from fident.security import (
    AmbiguousHeaderError,
    FidentVerifier,
    KeyStore,
    RequestSigner,
    build_canonical_message,
    decode_public_key,
)
from fident.security.keys import extract_pem_payload, read_key_file

app = typer.Typer(help="CLI for fident request signatures")

key_app = typer.Typer(help="Commands for managing trusted keys")

app.add_typer(key_app, name="key")

HEADER_OPTION = typer.Option(
    None, "--header", "-H", help="Request header as 'Name: value' (repeatable)"
)


@app.callback()
def main() -> None:
    """fident CLI entry point."""
    pass


def _parse_headers(raw: Optional[List[str]]) -> List[Tuple[str, str]]:
    pairs = []
    for item in raw or []:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Header must look like 'Name: value', got {item!r}")
        pairs.append((name.strip(), value.strip()))
    return pairs


@key_app.command("inspect")
def key_inspect(path: Path) -> None:
    """
    Show the algorithm and size of the public key stored at PATH.

    Example:
        fident key inspect ./fident_pub.pem
        # Output: rsa  2048 bits
    """
    try:
        decoded = decode_public_key(extract_pem_payload(read_key_file(path)))
    except FidentError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    size = f"{decoded.key_size} bits" if decoded.key_size else "-"
    typer.echo(f"{decoded.algorithm.value}\t{size}")
    if decoded.algorithm.value != "rsa":
        typer.secho("Key is not usable for verification (RSA required)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)


@app.command("canonical")
def canonical(target: str, header: Optional[List[str]] = HEADER_OPTION) -> None:
    """Print the canonical message that would be signed for a request."""
    config = load_config()
    view = RequestView.from_headers(target, _parse_headers(header))
    try:
        message = build_canonical_message(view, config.header_prefix, config.signature_header)
    except AmbiguousHeaderError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(message.to_text())


@app.command("sign")
def sign(
    target: str,
    header: Optional[List[str]] = HEADER_OPTION,
    private_key: Path = typer.Option(..., "--private-key", help="PEM private key"),
) -> None:
    """
    Sign a request and print the signature header.

    Example:
        fident sign "/orders/42?x=1" -H "X-Fident-Identity-Id: u-9" --private-key key.pem
        # Output: X-Fident-Signature: <base64>
    """
    config = load_config()
    try:
        signer = RequestSigner.from_pem_file(private_key, config=config)
        signature = signer.sign(RequestView.from_headers(target, _parse_headers(header)))
    except (FidentError, AmbiguousHeaderError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"{config.signature_header}: {signature}")


@app.command("verify")
def verify(
    target: str,
    header: Optional[List[str]] = HEADER_OPTION,
    key: Optional[Path] = typer.Option(
        None, "--key", help="PEM public key (defaults to configured public_key_path)"
    ),
) -> None:
    """
    Verify a signed request and print the outcome.

    Exits with code 0 when the signature is valid and 1 otherwise.
    """
    config = load_config()
    key_path = key or config.public_key_path
    if not key_path:
        typer.secho("No public key given and none configured", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        store = KeyStore.from_path(key_path)
    except FidentError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    verifier = FidentVerifier(store, config)
    view = RequestView.from_headers(target, _parse_headers(header))
    result = verifier.verify(view)
    identity = verifier.identity_claim(view) or "<anonymous>"
    typer.echo(f"{result.outcome.value}\t{identity}")
    if not result.valid:
        raise typer.Exit(code=1)
