"""HTTP surface tests (FastAPI TestClient on the trio backend)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from zkauth.identity_protocol.codec import encode_field_hex
from zkauth.identity_protocol.exceptions import ProvingError
from zkauth.identity_protocol.snark.backend import GnarkBackend
from zkauth.identity_protocol.test_vectors import SimulatedCircuit
from zkauth.service.app import create_app
from zkauth.service.context import AppContext
from zkauth.service.settings import ServiceSettings

ATTRIBUTES = {
    "email": "test@example.com",
    "name": "Test User",
    "age": 30,
    "country": "IE",
    "dob": "19900101",
}
GNARK_PROOF = b"\x01\x02\x03\x04"


class _BrokenProver:
    def prove(self, secret: int, commitment: int):
        raise ProvingError("prover crashed")


def _client(context: AppContext) -> TestClient:
    return TestClient(create_app(context), backend="trio")


@pytest.fixture
def context(settings: ServiceSettings, circuit: SimulatedCircuit, fake_gnark_binding) -> AppContext:
    binding = fake_gnark_binding(GNARK_PROOF, [(5).to_bytes(32, "big")], b"simulated-gnark-vk")
    return AppContext.build(
        settings,
        prover=circuit,
        external_backend=GnarkBackend(binding.verify, b"simulated-gnark-vk"),
    )


@pytest.fixture
def client(context: AppContext) -> TestClient:
    return _client(context)


@pytest.fixture
def registration(client: TestClient) -> dict:
    response = client.post("/register", json=ATTRIBUTES)
    assert response.status_code == 200
    return response.json()


def test_health(client: TestClient) -> None:
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["proof_concurrency"] == 2
    assert body["proofs_in_flight"] == 0
    assert body["external_verifier"] is True


def test_register_shape(registration: dict) -> None:
    assert registration["secret"].startswith("0x") and len(registration["secret"]) == 66
    assert registration["nonce"].startswith("0x") and len(registration["nonce"]) == 34
    assert registration["commitment"].isdigit()


def test_register_validation(client: TestClient) -> None:
    assert client.post("/register", json={**ATTRIBUTES, "age": -1}).status_code == 422
    assert client.post("/register", json={"email": "a@b.c"}).status_code == 422


def test_prove_and_verify(client: TestClient, registration: dict) -> None:
    response = client.post(
        "/proof",
        json={"secret_hex": registration["secret"], "commitment": registration["commitment"]},
    )
    assert response.status_code == 200
    proof = response.json()["proof"]

    ok = client.post("/verify", json={"commitment": registration["commitment"], "proof": proof})
    assert ok.status_code == 200
    assert ok.json() == {"valid": True}

    wrong = str(int(registration["commitment"]) - 1)
    bad = client.post("/verify", json={"commitment": wrong, "proof": proof})
    assert bad.status_code == 401
    assert bad.json() == {"valid": False}


def test_legacy_aliases(client: TestClient, registration: dict) -> None:
    response = client.post(
        "/generate-proof",
        json={"secret_hex": registration["secret"], "commitment": registration["commitment"]},
    )
    assert response.status_code == 200
    verdict = client.post(
        "/verify-proof",
        json={"commitment": registration["commitment"], "proof": response.json()["proof"]},
    )
    assert verdict.status_code == 200


@pytest.mark.parametrize(
    "body",
    [
        {"secret_hex": "0xnothex", "commitment": "1"},
        {"secret_hex": "0x" + "11" * 33, "commitment": "1"},
        {"secret_hex": "0x01", "commitment": "abc"},
        {"secret_hex": "0x01"},
        {},
    ],
)
def test_proof_malformed_input_is_400(client: TestClient, body: dict) -> None:
    response = client.post("/proof", json=body)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_encoding"


def test_proof_for_wrong_commitment_is_500(client: TestClient, registration: dict) -> None:
    # the circuit refuses a secret that does not hash to the commitment
    wrong = str(int(registration["commitment"]) + 1)
    response = client.post("/proof", json={"secret_hex": registration["secret"], "commitment": wrong})
    assert response.status_code == 500
    assert response.json()["error"] == "proof_generation_failed"


def test_proving_failure_is_500(settings: ServiceSettings, circuit: SimulatedCircuit) -> None:
    context = AppContext.build(settings, prover=_BrokenProver())
    response = _client(context).post(
        "/proof", json={"secret_hex": encode_field_hex(1), "commitment": "1"}
    )
    assert response.status_code == 500
    assert context.pipeline.stats.failed == 1


def test_verify_malformed_is_401(client: TestClient) -> None:
    response = client.post("/verify", json={"commitment": "0xff", "proof": {"a": []}})
    assert response.status_code == 401
    assert response.json() == {"valid": False}


def test_verify_external(client: TestClient) -> None:
    body = {"proof_hex": "0x" + GNARK_PROOF.hex(), "public_inputs_hex": ["0x05"]}
    assert client.post("/verify-external", json=body).status_code == 200
    assert client.post("/verify-gnark", json=body).json() == {"valid": True}

    mutated = {**body, "public_inputs_hex": ["0x06"]}
    response = client.post("/verify-external", json=mutated)
    assert response.status_code == 401
    assert response.json() == {"valid": False}


@pytest.mark.parametrize(
    "body",
    [
        {"proof_hex": "0xabc", "public_inputs_hex": ["0x05"]},
        {"proof_hex": "0x01", "public_inputs_hex": ["0xgg"]},
        {"proof_hex": None, "public_inputs_hex": []},
        {"proof_hex": "0x" + "00" * 9000, "public_inputs_hex": []},
    ],
)
def test_verify_external_malformed_is_400(client: TestClient, body: dict) -> None:
    response = client.post("/verify-external", json=body)
    assert response.status_code == 400
    assert response.json()["valid"] is False
    assert response.json()["error"] == "invalid_encoding"


def test_verify_external_without_binding_is_503(settings: ServiceSettings, circuit: SimulatedCircuit) -> None:
    settings = settings.with_overrides(external_verifier_module="zkauth_missing_gnark_binding")
    context = AppContext.build(settings, prover=circuit)
    response = _client(context).post(
        "/verify-external", json={"proof_hex": "0x01", "public_inputs_hex": []}
    )
    assert response.status_code == 503
