"""
Command-line interface for the zkauth identity proof service.

Runs the HTTP service and exposes the same register / prove / verify
operations locally for scripting and debugging.
"""

import json
import sys
from functools import partial
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zkauth import __version__
from zkauth.identity_protocol.codec import encode_field_decimal, encode_field_hex
from zkauth.identity_protocol.commitments import CommitmentDeriver
from zkauth.identity_protocol.exceptions import (
    ConfigurationError,
    IdentityProtocolError,
    InvalidEncodingError,
)
from zkauth.identity_protocol.types import Attributes
from zkauth.service.artifacts import ArtifactCache, load_poseidon
from zkauth.service.logging_config import configure_logging
from zkauth.service.settings import load_settings


def _fail(message: str, code: int = 1) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(code)


def _settings(ctx: click.Context, **overrides):
    try:
        settings = load_settings(ctx.obj.get("config"), **overrides)
    except ConfigurationError as e:
        _fail(f"Invalid configuration: {e}")
    configure_logging(settings.log_level, settings.log_json)
    return settings


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    envvar="ZKAUTH_CONFIG",
    help="YAML config file (default: $ZKAUTH_CONFIG)",
)
@click.option("--artifacts-dir", type=click.Path(file_okay=False), help="Circuit artifacts directory")
@click.pass_context
def main(ctx, config, artifacts_dir):
    """
    zkauth - identity commitments with Groth16 proofs of knowledge.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["artifacts_dir"] = artifacts_dir


@main.command()
@click.option("--host", type=str, help="Bind address")
@click.option("--port", type=int, help="Bind port")
@click.option("--concurrency", type=int, help="Maximum proofs computed in parallel")
@click.option("--log-level", type=str, help="Log level (INFO, DEBUG, ...)")
@click.option("--log-json/--no-log-json", default=None, help="Emit JSON log lines")
@click.pass_context
def serve(ctx, host, port, concurrency, log_level, log_json):
    """
    Serve the HTTP API.

    All artifacts are loaded before the socket is bound; the command exits
    non-zero if any of them is missing or inconsistent.
    """
    import trio
    from hypercorn.config import Config
    from hypercorn.trio import serve as hypercorn_serve

    from zkauth.service.app import create_app
    from zkauth.service.context import AppContext

    settings = _settings(
        ctx,
        artifacts_dir=ctx.obj["artifacts_dir"],
        host=host,
        port=port,
        proof_concurrency=concurrency,
        log_level=log_level,
        log_json=log_json,
    )
    try:
        context = AppContext.build(settings)
    except ConfigurationError as e:
        _fail(f"Cannot start: {e}")

    config = Config()
    config.bind = [f"{settings.host}:{settings.port}"]
    config.accesslog = None
    click.echo(click.style(f"✓ zkauth listening on {settings.host}:{settings.port}", fg="green"))
    trio.run(partial(hypercorn_serve, create_app(context), config))


@main.command()
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--age", type=click.IntRange(0, 2**32 - 1), required=True)
@click.option("--country", required=True)
@click.option("--dob", required=True, help="Date of birth, YYYYMMDD or YYYY-MM-DD")
@click.pass_context
def register(ctx, email, name, age, country, dob):
    """
    Derive a secret and commitment from attributes.

    Prints JSON with secret, nonce and commitment. Keep the secret: it is
    not stored anywhere and cannot be recovered.
    """
    settings = _settings(ctx, artifacts_dir=ctx.obj["artifacts_dir"])
    constants = settings.artifacts_path / settings.poseidon_constants_file
    try:
        deriver = CommitmentDeriver(load_poseidon(constants if constants.is_file() else None))
    except ConfigurationError as e:
        _fail(str(e))
    reg = deriver.register(Attributes(email=email, name=name, age=age, country=country, dob=dob))
    click.echo(
        json.dumps(
            {
                "secret": encode_field_hex(reg.secret),
                "nonce": "0x" + reg.nonce.hex(),
                "commitment": encode_field_decimal(reg.commitment),
            },
            indent=2,
        )
    )


@main.command()
@click.option("--secret", "secret_hex", required=True, help="Secret from register (hex)")
@click.option("--commitment", required=True, help="Commitment (decimal)")
@click.option("--output", type=click.Path(dir_okay=False), help="Write proof JSON to file")
@click.pass_context
def prove(ctx, secret_hex, commitment, output):
    """Generate a proof of knowledge of the secret behind a commitment."""
    import trio

    from zkauth.service.pipeline import ProofPipeline
    from zkauth.service.prover import SnarkjsProver

    settings = _settings(ctx, artifacts_dir=ctx.obj["artifacts_dir"])
    try:
        artifacts = ArtifactCache.load(settings)
        prover = SnarkjsProver.from_artifacts(
            artifacts, snarkjs_bin=settings.snarkjs_bin, timeout=settings.prover_timeout
        )
    except ConfigurationError as e:
        _fail(str(e))

    pipeline = ProofPipeline(prover, concurrency=1)
    try:
        encoded = trio.run(pipeline.generate_encoded, secret_hex, commitment)
    except InvalidEncodingError as e:
        _fail(f"Invalid input: {e}", code=2)
    except IdentityProtocolError as e:
        _fail(f"Proof generation failed: {e}")

    text = json.dumps({"proof": encoded}, indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        click.echo(click.style(f"✓ Proof written to {output}", fg="green"))
    else:
        click.echo(text)


@main.command()
@click.option("--commitment", required=True, help="Commitment (decimal)")
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def verify(ctx, commitment, proof_file):
    """
    Verify PROOF_FILE (output of `prove`) against a commitment.

    Exit status is 0 when the proof is valid and 1 otherwise.
    """
    from zkauth.service.verifier import ProofVerifier

    settings = _settings(ctx, artifacts_dir=ctx.obj["artifacts_dir"])
    try:
        artifacts = ArtifactCache.load(settings)
    except ConfigurationError as e:
        _fail(str(e))
    try:
        data = json.loads(Path(proof_file).read_text(encoding="utf-8"))
    except ValueError as e:
        _fail(f"Cannot parse {proof_file}: {e}", code=2)

    proof_json = data.get("proof", data) if isinstance(data, dict) else data
    result = ProofVerifier(artifacts.prepared_vk).verify_native(commitment, proof_json)
    if result.valid:
        click.echo(click.style("✓ Proof is valid", fg="green"))
        return
    _fail(f"Proof is not valid ({result.status.value}: {result.detail})")


@main.command()
@click.pass_context
def inspect(ctx):
    """Load every artifact and print a summary."""
    settings = _settings(ctx, artifacts_dir=ctx.obj["artifacts_dir"])
    try:
        artifacts = ArtifactCache.load(settings)
    except ConfigurationError as e:
        _fail(str(e))

    zkey = artifacts.proving_key.header
    r1cs = artifacts.r1cs
    table = Table(title=f"Circuit artifacts ({settings.artifacts_path})")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("zkey", str(artifacts.paths.zkey))
    table.add_row("witness calculator", str(artifacts.paths.wasm))
    table.add_row("r1cs", str(artifacts.paths.r1cs))
    table.add_row("constraints", str(r1cs.n_constraints))
    table.add_row("wires", str(r1cs.n_wires))
    table.add_row("public inputs", str(zkey.n_public))
    table.add_row("domain size", str(zkey.domain_size))
    table.add_row("poseidon arities", ", ".join(str(n) for n in artifacts.poseidon.arities))
    table.add_row("gnark vk", f"{artifacts.paths.external_vk} ({len(artifacts.external_vk)} bytes)")
    table.add_row("proof concurrency", str(settings.proof_concurrency))
    Console().print(table)


if __name__ == "__main__":
    main()
