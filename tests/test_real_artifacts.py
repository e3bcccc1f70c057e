"""
Integration against compiled circuit artifacts and a real snarkjs.

Skipped unless ZKAUTH_ARTIFACTS_DIR (or circuits/secret-proof in the repo)
holds a full artifact set and snarkjs is on PATH.
"""

from __future__ import annotations

import shutil

import pytest
from fastapi.testclient import TestClient

from zkauth.identity_protocol.exceptions import ArtifactError
from zkauth.identity_protocol.snark.assets import default_artifacts_dir, resolve_circuit_paths
from zkauth.service.app import create_app
from zkauth.service.context import AppContext
from zkauth.service.settings import ServiceSettings


def _real_settings() -> ServiceSettings:
    artifacts_dir = default_artifacts_dir()
    try:
        resolve_circuit_paths(artifacts_dir)
    except ArtifactError as exc:
        pytest.skip(f"circuit artifacts not available: {exc}")
    if shutil.which("snarkjs") is None:
        pytest.skip("snarkjs not installed")
    return ServiceSettings(artifacts_dir=str(artifacts_dir), proof_concurrency=2)


@pytest.fixture(scope="module")
def client() -> TestClient:
    return TestClient(create_app(AppContext.build(_real_settings())), backend="trio")


def test_real_proof_roundtrip(client: TestClient) -> None:
    registration = client.post(
        "/register",
        json={
            "email": "test@example.com",
            "name": "Test User",
            "age": 30,
            "country": "IE",
            "dob": "19900101",
        },
    ).json()

    response = client.post(
        "/proof",
        json={"secret_hex": registration["secret"], "commitment": registration["commitment"]},
    )
    assert response.status_code == 200, response.text
    proof = response.json()["proof"]

    verdict = client.post("/verify", json={"commitment": registration["commitment"], "proof": proof})
    assert verdict.json() == {"valid": True}

    other = str(int(registration["commitment"]) - 1)
    assert client.post("/verify", json={"commitment": other, "proof": proof}).status_code == 401


def test_real_proof_rejects_unrelated_secret(client: TestClient) -> None:
    registration = client.post(
        "/register",
        json={"email": "x@y.z", "name": "X", "age": 2, "country": "DE", "dob": "20000101"},
    ).json()
    response = client.post(
        "/proof", json={"secret_hex": "0x01", "commitment": registration["commitment"]}
    )
    assert response.status_code == 500
