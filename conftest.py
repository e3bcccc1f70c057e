"""Shared fixtures: a simulated circuit and a synthetic artifact directory."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Sequence

import pytest

from zkauth.identity_protocol.poseidon import PoseidonHasher
from zkauth.identity_protocol.snark.groth16 import (
    PreparedVerifyingKey,
    prepare_verifying_key,
)
from zkauth.identity_protocol.test_vectors import (
    SimulatedCircuit,
    synthetic_poseidon,
    write_artifacts,
)
from zkauth.service.settings import ServiceSettings


class FakeGnarkBinding:
    """Stands in for the native gnark module: accepts one proof/inputs pair."""

    def __init__(self, proof: bytes, public_inputs: Sequence[bytes], vk: bytes) -> None:
        self.proof = proof
        self.public_inputs = list(public_inputs)
        self.vk = vk
        self.calls: List[tuple] = []

    def verify(self, proof, vk, public_inputs, system) -> bool:
        self.calls.append((proof, vk, list(public_inputs), system))
        return (
            system == "groth16"
            and vk == self.vk
            and proof == self.proof
            and list(public_inputs) == self.public_inputs
        )


@pytest.fixture(scope="session")
def poseidon() -> PoseidonHasher:
    return synthetic_poseidon()


@pytest.fixture(scope="session")
def circuit(poseidon: PoseidonHasher) -> SimulatedCircuit:
    return SimulatedCircuit.generate(hasher=poseidon)


@pytest.fixture(scope="session")
def prepared_vk(circuit: SimulatedCircuit) -> PreparedVerifyingKey:
    return prepare_verifying_key(circuit.verifying_key)


@pytest.fixture
def artifacts_dir(tmp_path: Path, circuit: SimulatedCircuit) -> Path:
    return write_artifacts(tmp_path / "artifacts", circuit)


@pytest.fixture
def settings(artifacts_dir: Path) -> ServiceSettings:
    return ServiceSettings(artifacts_dir=str(artifacts_dir), proof_concurrency=2)


# Mimics the two snarkjs commands the prover runs. FAKE_SNARKJS_MODE selects
# a failure; the proof is copied from FAKE_SNARKJS_PROOF and the public
# signal is taken from the circuit input.
_FAKE_SNARKJS = """#!/bin/sh
mode="${FAKE_SNARKJS_MODE:-ok}"
if [ "$1" = "wtns" ] && [ "$2" = "calculate" ]; then
    case "$mode" in
        mismatch) echo "Error: Signal not found in circuit: secrt" >&2; exit 1 ;;
        assert) echo "Error: Assert Failed. Error in template SecretProof_1 line: 9" >&2; exit 1 ;;
        slow) exec sleep 5 ;;
    esac
    cp "$4" "$5"
    exit 0
fi
if [ "$1" = "groth16" ] && [ "$2" = "prove" ]; then
    if [ "$mode" = "prove_fail" ]; then echo "Error: invalid zkey" >&2; exit 1; fi
    cp "$FAKE_SNARKJS_PROOF" "$5"
    sed -n 's/.*"commitment": "\\([0-9]*\\)".*/["\\1"]/p' "$4" > "$6"
    exit 0
fi
echo "unknown command" >&2
exit 99
"""


@pytest.fixture
def fake_snarkjs(tmp_path: Path) -> Path:
    if sys.platform.startswith("win"):
        pytest.skip("fake snarkjs is a POSIX shell script")
    script = tmp_path / "bin" / "snarkjs"
    script.parent.mkdir()
    script.write_text(_FAKE_SNARKJS, encoding="utf-8")
    script.chmod(0o755)
    return script


@pytest.fixture
def fake_gnark_binding():
    return FakeGnarkBinding
