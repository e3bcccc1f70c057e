"""Tests for the snarkjs subprocess prover (against a fake snarkjs script)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from zkauth.identity_protocol.exceptions import (
    CircuitMismatchError,
    ConfigurationError,
    ProvingError,
    WitnessError,
)
from zkauth.identity_protocol.test_vectors import SimulatedCircuit, snarkjs_proof_json
from zkauth.service.prover import SnarkjsProver, parse_snarkjs_proof

SECRET = 1234
COMMITMENT = 987654321


@pytest.fixture
def prover(tmp_path: Path, fake_snarkjs: Path, circuit: SimulatedCircuit, monkeypatch) -> SnarkjsProver:
    proof_path = tmp_path / "fixture_proof.json"
    proof_path.write_text(json.dumps(snarkjs_proof_json(circuit.forge(COMMITMENT))), encoding="utf-8")
    monkeypatch.setenv("FAKE_SNARKJS_PROOF", str(proof_path))
    monkeypatch.delenv("FAKE_SNARKJS_MODE", raising=False)
    return SnarkjsProver(str(fake_snarkjs), tmp_path / "c.wasm", tmp_path / "c.zkey", timeout=1.0)


def test_prove_parses_snarkjs_output(prover: SnarkjsProver) -> None:
    proof = prover.prove(SECRET, COMMITMENT)
    assert len(proof.a) == 2 and len(proof.c) == 2
    # snarkjs writes Fq2 as [c0, c1]; internal order is kept
    assert all(len(coord) == 2 for coord in proof.b)


def test_public_signal_must_match(prover: SnarkjsProver, tmp_path: Path) -> None:
    # fake snarkjs echoes the commitment it was given, so compare against
    # a prover output file that claims another public signal
    script = tmp_path / "bin" / "snarkjs"
    text = script.read_text(encoding="utf-8").replace('["\\1"]', '["1"]')
    script.write_text(text, encoding="utf-8")
    with pytest.raises(ProvingError, match="public signals"):
        prover.prove(SECRET, COMMITMENT)


@pytest.mark.parametrize(
    "mode, error",
    [
        ("mismatch", CircuitMismatchError),
        ("assert", WitnessError),
        ("prove_fail", ProvingError),
        ("slow", ProvingError),
    ],
)
def test_failures_are_classified(prover: SnarkjsProver, monkeypatch, mode, error) -> None:
    monkeypatch.setenv("FAKE_SNARKJS_MODE", mode)
    with pytest.raises(error):
        prover.prove(SECRET, COMMITMENT)


def test_missing_executable(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        SnarkjsProver(str(tmp_path / "no-snarkjs"), tmp_path / "c.wasm", tmp_path / "c.zkey")


def test_parse_snarkjs_proof(circuit: SimulatedCircuit) -> None:
    proof = circuit.forge(COMMITMENT)
    assert parse_snarkjs_proof(snarkjs_proof_json(proof)) == proof


@pytest.mark.parametrize(
    "value",
    [
        {},
        {"pi_a": ["1"], "pi_b": [], "pi_c": []},
        {"pi_a": ["x", "1", "1"], "pi_b": [["1", "1"], ["1", "1"]], "pi_c": ["1", "1"]},
        {"protocol": "plonk", "pi_a": ["1", "1"], "pi_b": [["1", "1"], ["1", "1"]], "pi_c": ["1", "1"]},
        [],
    ],
)
def test_parse_snarkjs_proof_rejects_malformed(value) -> None:
    with pytest.raises(ProvingError):
        parse_snarkjs_proof(value)
