import typer
from typing import Optional
from typing_extensions import Annotated
from pathlib import Path
import logging
import json

from . import config
from .core import file_utils, gateway_client, notary
from .errors import ProvenanceError, NotaryError, StampError

app = typer.Typer(help="Swarm Provenance CLI - Stores and retrieves provenance records via the Provenance Gateway.")

GatewayUrlOption = Annotated[str, typer.Option("--gateway-url", help=f"Provenance Gateway URL. [default: {config.PROVENANCE_GATEWAY_URL}]")]
TimeoutOption = Annotated[int, typer.Option("--timeout", min=1, help=f"Request timeout in milliseconds. [default: {config.DEFAULT_TIMEOUT_MS}]")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output for debugging.")]


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logger = logging.getLogger("swarm_provenance_sdk")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def _client(gateway_url: str, timeout: int) -> gateway_client.ProvenanceClient:
    return gateway_client.ProvenanceClient(gateway_url=gateway_url, timeout=timeout)


@app.command()
def health(
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
):
    """Checks whether the gateway is reachable and healthy."""
    _configure_logging(verbose)
    if _client(gateway_url, timeout).health():
        typer.secho(f"Gateway {gateway_url} is healthy.", fg=typer.colors.GREEN)
    else:
        typer.secho(f"ERROR: Gateway {gateway_url} is not reachable or unhealthy.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("notary-info")
def notary_info(
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
):
    """Shows the gateway's notary service status."""
    _configure_logging(verbose)
    try:
        info = _client(gateway_url, timeout).notary_info()
    except ProvenanceError as e:
        typer.secho(f"ERROR: Failed fetching notary info: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Notary enabled:   {info.enabled}")
    typer.echo(f"Notary available: {info.available}")
    if info.address:
        typer.echo(f"Notary address:   {info.address}")
    if info.message:
        typer.echo(f"Message:          {info.message}")


@app.command("pool-status")
def pool_status(
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
):
    """Shows how many stamps the gateway's pool holds per depth."""
    _configure_logging(verbose)
    try:
        status = _client(gateway_url, timeout).pool_status()
    except ProvenanceError as e:
        typer.secho(f"ERROR: Failed fetching pool status: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not status.enabled:
        typer.echo("Stamp pool is disabled on this gateway.")
        return
    typer.echo("Stamp pool is enabled.")
    for depth in sorted(set(status.available) | set(status.reserve)):
        typer.echo(f"    Depth {depth}: {status.available.get(depth, 0)} available (reserve {status.reserve.get(depth, 0)})")


@app.command("acquire-stamp")
def acquire_stamp(
    size: Annotated[str, typer.Option("--size", help="Pool size preset: small, medium or large.")] = config.DEFAULT_POOL_SIZE,
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
):
    """Acquires a postage stamp from the gateway's pool and prints its ID."""
    _configure_logging(verbose)
    try:
        stamp = _client(gateway_url, timeout).acquire_stamp(size)
    except (ProvenanceError, ValueError) as e:
        typer.secho(f"ERROR: Failed acquiring stamp: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Stamp ID: {stamp.batch_id}")
    typer.echo(f"Depth:    {stamp.depth} ({stamp.size_name})")
    if stamp.fallback_used:
        typer.secho("Note: a larger stamp was used as fallback.", fg=typer.colors.YELLOW)


@app.command()
def upload(
    file: Annotated[Path, typer.Option(
        ...,
        "--file",
        "-f",
        help="Path to the provenance data file to wrap and upload.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        )
     ],
    provenance_standard: Annotated[Optional[str], typer.Option("--std", help="Identifier for the provenance standard used (optional).")] = None,
    encryption: Annotated[Optional[str], typer.Option("--enc", help="Details about encryption used (optional).")] = None,
    stamp_id: Annotated[Optional[str], typer.Option("--stamp-id", help="Use an existing stamp instead of acquiring one from the pool.")] = None,
    pool_size: Annotated[str, typer.Option("--pool-size", help="Pool size preset used when acquiring a stamp.")] = config.DEFAULT_POOL_SIZE,
    content_type: Annotated[Optional[str], typer.Option("--content-type", help="Content type of the file (optional).")] = None,
    sign: Annotated[bool, typer.Option("--sign/--no-sign", help="Request a notary signature for the upload.")] = False,
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
 ):
    """
    Hashes, Base64-encodes, wraps, and Uploads a
    provenance data file via the gateway.
    """
    _configure_logging(verbose)
    if verbose:
        typer.echo("Verbose mode enabled.")
        typer.echo(f"--> Initial Config:")
        typer.echo(f"    File: {file}")
        typer.echo(f"    Gateway URL: {gateway_url}")
        typer.echo(f"    Stamp: {stamp_id or f'acquire from pool ({pool_size})'}")
        typer.echo(f"    Notary signing: {sign}")
    else:
        typer.echo(f"Processing file: {file.name}...")

    try:
        raw_content = file_utils.read_file_content(file)
    except OSError as e:
        typer.secho(f"ERROR: Failed reading file '{file.name}': {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if verbose:
        typer.echo(f"    SHA256 Hash: {file_utils.sha256_hex(raw_content)}")

    typer.echo("Uploading data to Swarm...")
    try:
        result = _client(gateway_url, timeout).upload(
            raw_content,
            sign="notary" if sign else None,
            standard=provenance_standard,
            stamp_id=stamp_id,
            pool_size=pool_size,
            content_type=content_type,
            encryption=encryption,
        )
    except StampError as e:
        typer.secho(f"ERROR: Failed acquiring stamp: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except NotaryError as e:
        typer.secho(f"ERROR: Notary signing failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except (ProvenanceError, ValueError) as e:
        typer.secho(f"ERROR: Failed uploading data: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if verbose:
        typer.echo(f"    Stamp ID used: {result.metadata.stamp_id}")

    typer.secho(f"\nSUCCESS! Upload complete.", fg=typer.colors.GREEN, bold=True)
    typer.echo("Swarm Reference Hash:")
    typer.secho(f"{result.reference}", fg=typer.colors.CYAN)

    if result.signed_document:
        for signature in result.signed_document.signatures:
            typer.echo(f"Signed by notary {signature.signer} at {signature.timestamp}")
    elif result.raw_signed_document is not None:
        typer.secho("WARNING: Gateway returned a signed document that could not be parsed.", fg=typer.colors.YELLOW)


@app.command()
def download(
    swarm_hash: Annotated[str, typer.Argument(help="Swarm reference hash of the Provenance Metadata to download.")],
    output_dir: Annotated[Path, typer.Option(
        "--output-dir", "-o",
        help="Directory to save the downloaded files.",
        file_okay=False,
        dir_okay=True,
        writable=True,
        resolve_path=True,
        default_factory=lambda: Path.cwd() # Default to current working directory
    )],
    verify: Annotated[bool, typer.Option("--verify/--no-verify", help="Verify notary signatures when present.")] = True,
    gateway_url: GatewayUrlOption = config.PROVENANCE_GATEWAY_URL,
    timeout: TimeoutOption = config.DEFAULT_TIMEOUT_MS,
    verbose: VerboseOption = False,
):
    """
    Downloads Provenance Metadata via the gateway, verifies its integrity
    and notary signatures, and saves both the metadata and the decoded data.
    """
    _configure_logging(verbose)
    reference = file_utils.normalize_reference(swarm_hash)
    if not file_utils.is_valid_swarm_reference(reference):
        typer.secho(f"ERROR: '{swarm_hash}' is not a valid Swarm reference (expected 64 hex characters).", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if verbose:
        typer.echo("Verbose mode enabled.")
        typer.echo(f"--> Initial Config for Download:")
        typer.echo(f"    Swarm Hash: {reference}")
        typer.echo(f"    Output Directory: {output_dir}")
        typer.echo(f"    Gateway URL: {gateway_url}")
    else:
        typer.echo(f"Downloading data for Swarm hash: {reference[:12]}...")

    try:
        result = _client(gateway_url, timeout).download(reference, verify=verify)
    except ProvenanceError as e:
        if e.code == "CONTENT_HASH_MISMATCH":
            typer.secho("ERROR: Content hash verification FAILED!", fg=typer.colors.RED, bold=True, err=True)
        else:
            typer.secho(f"ERROR: Failed fetching metadata from Swarm: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho("SUCCESS: Content hash verification passed!", fg=typer.colors.GREEN)

    if result.signatures or result.malformed_signatures:
        for signature in result.signatures or []:
            typer.echo(f"Notary signature by {signature.signer} at {signature.timestamp}")
            if verbose:
                typer.echo(f"    Signed message: {notary.reconstruct_signed_message(signature, result.metadata)!r}")
        if result.malformed_signatures:
            typer.secho(f"WARNING: {len(result.malformed_signatures)} malformed notary signature(s) ignored.", fg=typer.colors.YELLOW)
        if result.hash_only:
            typer.secho("NOTE: Notary signatures match the data hash only; the signer was NOT checked (gateway advertises no notary address).", fg=typer.colors.YELLOW)
        elif result.verified is True:
            typer.secho("Notary signatures verified.", fg=typer.colors.GREEN)
        elif result.verified is False:
            typer.secho("WARNING: Notary signature verification FAILED.", fg=typer.colors.YELLOW)
        else:
            typer.echo("Notary signatures were not verified.")

    output_dir.mkdir(parents=True, exist_ok=True) # Ensure output directory exists
    metadata_filepath = output_dir / f"{reference}.meta.json"
    data_filepath = output_dir / f"{reference}.data"
    document = {"metadata": result.metadata.to_dict()}
    if result.signatures:
        document["signatures"] = [s.model_dump() for s in result.signatures]
    try:
        file_utils.save_bytes_to_file(metadata_filepath, json.dumps(document, indent=2).encode("utf-8"))
        typer.echo(f"Provenance metadata saved to: {metadata_filepath}")
        file_utils.save_bytes_to_file(data_filepath, result.file)
        typer.echo(f"Decoded provenance data saved to: {data_filepath}")
    except OSError as e:
        typer.secho(f"ERROR: Failed to save downloaded files: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\nDownload and verification successful.", fg=typer.colors.GREEN, bold=True)


@app.callback()
def main(
    ctx: typer.Context,
):
     """
     Swarm Provenance CLI Toolkit - Stores and retrieves provenance records.
     Use --verbose for detailed debug output.
     """
     pass

if __name__ == "__main__":
     app()
