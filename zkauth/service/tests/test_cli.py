"""Tests for the zkauth command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from zkauth.cli import main
from zkauth.identity_protocol.codec import NativePointCodec
from zkauth.identity_protocol.test_vectors import SimulatedCircuit, snarkjs_proof_json


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    for name in ("ZKAUTH_CONFIG", "ZKAUTH_ARTIFACTS_DIR", "ZKAUTH_SNARKJS_BIN"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def test_register_prints_secret_and_commitment(runner: CliRunner, artifacts_dir: Path) -> None:
    result = runner.invoke(
        main,
        [
            "--artifacts-dir", str(artifacts_dir),
            "register",
            "--email", "test@example.com",
            "--name", "Test User",
            "--age", "30",
            "--country", "IE",
            "--dob", "19900101",
        ],
    )
    assert result.exit_code == 0, result.output
    body = json.loads(result.stdout)
    assert len(body["secret"]) == 66
    assert len(body["nonce"]) == 34
    assert body["commitment"].isdigit()


def test_inspect(runner: CliRunner, artifacts_dir: Path) -> None:
    result = runner.invoke(main, ["--artifacts-dir", str(artifacts_dir), "inspect"])
    assert result.exit_code == 0, result.output
    assert "public inputs" in result.output


def test_inspect_missing_artifacts(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(main, ["--artifacts-dir", str(tmp_path), "inspect"])
    assert result.exit_code == 1


def test_verify(runner: CliRunner, artifacts_dir: Path, circuit: SimulatedCircuit, tmp_path: Path) -> None:
    proof_file = tmp_path / "proof.json"
    proof_file.write_text(
        json.dumps({"proof": NativePointCodec.encode_proof(circuit.forge(77))}), encoding="utf-8"
    )
    base = ["--artifacts-dir", str(artifacts_dir), "verify"]
    assert runner.invoke(main, base + ["--commitment", "77", str(proof_file)]).exit_code == 0
    assert runner.invoke(main, base + ["--commitment", "78", str(proof_file)]).exit_code == 1


def test_prove_with_snarkjs(
    runner: CliRunner,
    artifacts_dir: Path,
    circuit: SimulatedCircuit,
    fake_snarkjs: Path,
    tmp_path: Path,
    monkeypatch,
) -> None:
    expected = circuit.forge(99)
    fixture = tmp_path / "snarkjs_proof.json"
    fixture.write_text(json.dumps(snarkjs_proof_json(expected)), encoding="utf-8")
    monkeypatch.setenv("FAKE_SNARKJS_PROOF", str(fixture))
    monkeypatch.setenv("ZKAUTH_SNARKJS_BIN", str(fake_snarkjs))
    output = tmp_path / "out.json"

    result = runner.invoke(
        main,
        [
            "--artifacts-dir", str(artifacts_dir),
            "prove",
            "--secret", "0x01",
            "--commitment", "99",
            "--output", str(output),
        ],
    )
    assert result.exit_code == 0, result.output
    written = json.loads(output.read_text(encoding="utf-8"))
    assert NativePointCodec.decode_proof(written["proof"]) == expected
