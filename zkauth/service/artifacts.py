"""
Process-wide cryptographic material.

ArtifactCache is built once at startup and shared read-only by every request:
the proving key location and header, the verifying key read out of the same
zkey and prepared for repeated verification, the Poseidon parameters, the
witness calculator and the gnark verifying-key blob. Any missing or corrupt
file raises ArtifactError before the server binds its socket.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from ..identity_protocol.commitments import REQUIRED_ARITIES
from ..identity_protocol.config import (
    CIRCUIT_PRIVATE_INPUTS,
    CIRCUIT_PUBLIC_INPUTS,
)
from ..identity_protocol.exceptions import (
    ArtifactError,
    CircuitMismatchError,
    ProofVerificationError,
)
from ..identity_protocol.poseidon import PoseidonHasher
from ..identity_protocol.poseidon_params import circomlib_hasher
from ..identity_protocol.snark.assets import CircuitPaths, resolve_circuit_paths
from ..identity_protocol.snark.groth16 import (
    PreparedVerifyingKey,
    prepare_verifying_key,
)
from ..identity_protocol.snark.zkey import (
    R1csHeader,
    ZkeyHeader,
    read_r1cs_header,
    read_zkey,
)
from .settings import ServiceSettings


@dataclass(frozen=True)
class ProvingKey:
    """Location and header of the zkey consumed by the external prover."""

    path: Path
    header: ZkeyHeader


@dataclass(frozen=True)
class ArtifactCache:
    paths: CircuitPaths
    proving_key: ProvingKey
    r1cs: R1csHeader
    prepared_vk: PreparedVerifyingKey
    external_vk: bytes
    poseidon: PoseidonHasher

    @classmethod
    def load(cls, settings: ServiceSettings) -> "ArtifactCache":
        """
        Load and cross-check every artifact.

        Raises:
            ArtifactError: Missing or corrupt file
            CircuitMismatchError: Circuit and keys disagree on input shape
        """
        paths = resolve_circuit_paths(
            settings.artifacts_path,
            circuit_name=settings.circuit_name,
            zkey_name=settings.zkey_file,
            external_vk_name=settings.external_vk_file,
            poseidon_constants_name=settings.poseidon_constants_file,
        )
        logger.info("Loading circuit artifacts from {}", paths.zkey.parent)

        zkey = read_zkey(paths.zkey)
        r1cs = read_r1cs_header(paths.r1cs)
        check_circuit_shape(zkey, r1cs)

        try:
            prepared = prepare_verifying_key(zkey.verifying_key)
        except ProofVerificationError as exc:
            raise ArtifactError(f"{paths.zkey}: invalid verifying key: {exc}") from exc

        try:
            external_vk = paths.external_vk.read_bytes()
        except OSError as exc:
            raise ArtifactError(f"cannot read {paths.external_vk}: {exc}") from exc
        if not external_vk:
            raise ArtifactError(f"{paths.external_vk} is empty")

        poseidon = load_poseidon(paths.poseidon_constants)

        logger.info(
            "Artifacts ready: {} constraints, {} variables, {} public input(s)",
            r1cs.n_constraints,
            zkey.n_vars,
            zkey.n_public,
        )
        return cls(
            paths=paths,
            proving_key=ProvingKey(path=paths.zkey, header=zkey),
            r1cs=r1cs,
            prepared_vk=prepared,
            external_vk=external_vk,
            poseidon=poseidon,
        )


def check_circuit_shape(zkey: ZkeyHeader, r1cs: R1csHeader) -> None:
    """
    The circuit must take one private input (secret) and one public input
    (commitment), and the zkey must have been set up for that circuit.
    """
    if r1cs.n_public_outputs != 0:
        raise CircuitMismatchError(
            f"circuit has {r1cs.n_public_outputs} public output(s); the commitment "
            f"must be a public input"
        )
    if (
        r1cs.n_public_inputs != CIRCUIT_PUBLIC_INPUTS
        or r1cs.n_private_inputs != CIRCUIT_PRIVATE_INPUTS
    ):
        raise CircuitMismatchError(
            f"circuit has {r1cs.n_public_inputs} public and {r1cs.n_private_inputs} "
            f"private inputs, expected {CIRCUIT_PUBLIC_INPUTS} and {CIRCUIT_PRIVATE_INPUTS}"
        )
    if zkey.n_public != CIRCUIT_PUBLIC_INPUTS:
        raise CircuitMismatchError(
            f"zkey expects {zkey.n_public} public inputs, expected {CIRCUIT_PUBLIC_INPUTS}"
        )
    if zkey.n_vars != r1cs.n_wires:
        raise CircuitMismatchError(
            f"zkey has {zkey.n_vars} variables but circuit has {r1cs.n_wires} wires"
        )


def load_poseidon(constants_path: Optional[Path]) -> PoseidonHasher:
    """Constants from the artifact directory when shipped, circomlib's otherwise."""
    if constants_path is None:
        logger.info("No poseidon constants file, using circomlib parameters")
        return circomlib_hasher(REQUIRED_ARITIES)
    return PoseidonHasher.from_json(constants_path, REQUIRED_ARITIES)
