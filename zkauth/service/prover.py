"""Groth16 prover backed by the snarkjs command line."""

from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Protocol, Sequence

from loguru import logger

from ..identity_protocol.config import (
    CIRCUIT_COMMITMENT_SIGNAL,
    CIRCUIT_SECRET_SIGNAL,
    FQ_MODULUS,
)
from ..identity_protocol.exceptions import (
    CircuitMismatchError,
    ConfigurationError,
    ProvingError,
    WitnessError,
)
from ..identity_protocol.types import G1Affine, G2Affine, Groth16Proof
from .artifacts import ArtifactCache
from .constants import DEFAULT_PROVER_TIMEOUT

# witness calculator messages that mean the circuit does not take the two
# inputs we bind, i.e. the artifacts belong to a different circuit
_SIGNAL_MISMATCH_MARKERS = (
    "signal not found",
    "too many values for input signal",
    "not enough values for input signal",
    "not all inputs have been set",
)


class Prover(Protocol):
    """Synchronous, CPU-bound proof generation for (secret, commitment)."""

    def prove(self, secret: int, commitment: int) -> Groth16Proof:
        ...


class SnarkjsProver:
    """
    Build the witness with the circuit's wasm calculator, then prove with the
    cached zkey. snarkjs samples fresh blinding scalars on every invocation.

    The circuit input (which contains the secret) only ever exists inside a
    private temporary directory that is removed when the call returns.
    """

    def __init__(
        self,
        snarkjs_bin: str,
        wasm_path: Path,
        zkey_path: Path,
        timeout: float = DEFAULT_PROVER_TIMEOUT,
    ) -> None:
        resolved = shutil.which(snarkjs_bin)
        if resolved is None:
            raise ConfigurationError(f"snarkjs executable not found: {snarkjs_bin!r}")
        self._bin = resolved
        self._wasm = Path(wasm_path)
        self._zkey = Path(zkey_path)
        self._timeout = timeout

    @classmethod
    def from_artifacts(
        cls,
        artifacts: ArtifactCache,
        snarkjs_bin: str = "snarkjs",
        timeout: float = DEFAULT_PROVER_TIMEOUT,
    ) -> "SnarkjsProver":
        return cls(snarkjs_bin, artifacts.paths.wasm, artifacts.proving_key.path, timeout)

    def prove(self, secret: int, commitment: int) -> Groth16Proof:
        with tempfile.TemporaryDirectory(prefix="zkauth-") as tmp_dir:
            tmp = Path(tmp_dir)
            input_path = tmp / "input.json"
            witness_path = tmp / "witness.wtns"
            proof_path = tmp / "proof.json"
            public_path = tmp / "public.json"

            input_path.write_text(
                json.dumps(
                    {
                        CIRCUIT_SECRET_SIGNAL: str(secret),
                        CIRCUIT_COMMITMENT_SIGNAL: str(commitment),
                    }
                ),
                encoding="utf-8",
            )
            self._run(
                ["wtns", "calculate", str(self._wasm), str(input_path), str(witness_path)],
                stage="witness",
            )
            self._run(
                [
                    "groth16",
                    "prove",
                    str(self._zkey),
                    str(witness_path),
                    str(proof_path),
                    str(public_path),
                ],
                stage="prove",
            )
            try:
                proof_json = json.loads(proof_path.read_text(encoding="utf-8"))
                public_signals = json.loads(public_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise ProvingError(f"prover produced unreadable output: {exc}") from exc

        if [str(s) for s in public_signals] != [str(commitment)]:
            raise ProvingError("prover public signals do not match the commitment")
        return parse_snarkjs_proof(proof_json)

    def _run(self, args: Sequence[str], stage: str) -> None:
        command = [self._bin, *args]
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProvingError(f"{stage} timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise ProvingError(f"cannot run snarkjs: {exc}") from exc

        if result.returncode == 0:
            return
        output = (result.stderr.strip() or result.stdout.strip() or "unknown error")
        logger.debug("snarkjs {} failed: {}", stage, output)
        lowered = output.lower()
        if stage == "witness":
            if any(marker in lowered for marker in _SIGNAL_MISMATCH_MARKERS):
                raise CircuitMismatchError(f"circuit rejected inputs: {output}")
            raise WitnessError(f"witness generation failed: {output}")
        raise ProvingError(f"prover failed: {output}")


# ============================================================================
# SNARKJS PROOF JSON
# ============================================================================


def _fq(value: Any) -> int:
    try:
        number = int(str(value), 0) if str(value).startswith("0x") else int(str(value))
    except ValueError as exc:
        raise ProvingError(f"malformed prover coordinate {value!r}") from exc
    if not 0 <= number < FQ_MODULUS:
        raise ProvingError("prover coordinate out of range")
    return number


def _g1(value: Any) -> G1Affine:
    return _fq(value[0]), _fq(value[1])


def _g2(value: Any) -> G2Affine:
    return (_fq(value[0][0]), _fq(value[0][1])), (_fq(value[1][0]), _fq(value[1][1]))


def parse_snarkjs_proof(proof_json: Any) -> Groth16Proof:
    """
    Read snarkjs ``pi_a``/``pi_b``/``pi_c`` (decimal, projective with z = 1)
    into affine integers. snarkjs writes Fq2 as ``[c0, c1]``, which is the
    internal order.
    """
    try:
        if proof_json.get("protocol", "groth16") != "groth16":
            raise ProvingError(f"unexpected proof protocol {proof_json['protocol']!r}")
        return Groth16Proof(
            a=_g1(proof_json["pi_a"]),
            b=_g2(proof_json["pi_b"]),
            c=_g1(proof_json["pi_c"]),
        )
    except (AttributeError, KeyError, IndexError, TypeError) as exc:
        raise ProvingError(f"malformed prover output: {exc}") from exc
