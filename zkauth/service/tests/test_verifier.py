"""Tests for native and external proof verification."""

from __future__ import annotations

import pytest

from zkauth.identity_protocol.codec import NativePointCodec
from zkauth.identity_protocol.exceptions import ConfigurationError
from zkauth.identity_protocol.snark.backend import GnarkBackend
from zkauth.identity_protocol.snark.groth16 import PreparedVerifyingKey
from zkauth.identity_protocol.test_vectors import SimulatedCircuit
from zkauth.service.verifier import ProofVerifier, VerificationStatus


COMMITMENT = 31337


def _flip(hex_value: str, index: int = -1) -> str:
    chars = list(hex_value)
    chars[index] = "1" if chars[index] != "1" else "2"
    return "".join(chars)


@pytest.fixture(scope="module")
def encoded_proof(circuit: SimulatedCircuit) -> dict:
    return NativePointCodec.encode_proof(circuit.forge(COMMITMENT))


@pytest.fixture
def verifier(prepared_vk: PreparedVerifyingKey) -> ProofVerifier:
    return ProofVerifier(prepared_vk)


def test_valid_proof(verifier: ProofVerifier, encoded_proof: dict) -> None:
    result = verifier.verify_native(str(COMMITMENT), encoded_proof)
    assert result.valid
    assert result.status is VerificationStatus.VALID


def test_wrong_commitment(verifier: ProofVerifier, encoded_proof: dict) -> None:
    result = verifier.verify_native(str(COMMITMENT - 1), encoded_proof)
    assert not result.valid
    assert result.status is VerificationStatus.INVALID_PROOF


@pytest.mark.parametrize(
    "path",
    [("a", 0), ("a", 1), ("b", 0, 0), ("b", 1, 1), ("c", 0), ("c", 1)],
)
def test_single_hex_character_mutation_rejects(
    verifier: ProofVerifier, encoded_proof: dict, path
) -> None:
    mutated = {
        "a": list(encoded_proof["a"]),
        "b": [list(row) for row in encoded_proof["b"]],
        "c": list(encoded_proof["c"]),
    }
    if path[0] == "b":
        _, row, col = path
        mutated["b"][row][col] = _flip(mutated["b"][row][col])
    else:
        key, idx = path
        mutated[key][idx] = _flip(mutated[key][idx], index=10)
    result = verifier.verify_native(str(COMMITMENT), mutated)
    assert not result.valid
    assert result.status is VerificationStatus.INVALID_PROOF


def test_unswapped_g2_rejects(verifier: ProofVerifier, encoded_proof: dict) -> None:
    # emitting b in internal (c0, c1) order must not verify
    wrong = dict(encoded_proof)
    wrong["b"] = [list(reversed(row)) for row in encoded_proof["b"]]
    assert not verifier.verify_native(str(COMMITMENT), wrong).valid


@pytest.mark.parametrize(
    "commitment, proof",
    [
        ("0x1234", None),
        ("not-a-number", None),
        (str(2**256), None),
        (None, None),
    ],
)
def test_malformed_input(verifier: ProofVerifier, encoded_proof: dict, commitment, proof) -> None:
    result = verifier.verify_native(commitment, proof or encoded_proof)
    assert not result.valid
    assert result.status is VerificationStatus.MALFORMED_INPUT


def test_malformed_proof(verifier: ProofVerifier, encoded_proof: dict) -> None:
    broken = dict(encoded_proof, a=["0xzz", encoded_proof["a"][1]])
    assert verifier.verify_native(str(COMMITMENT), broken).status is VerificationStatus.MALFORMED_INPUT
    assert verifier.verify_native(str(COMMITMENT), {"a": []}).status is VerificationStatus.MALFORMED_INPUT


# ---------------------------------------------------------------------------
# external (gnark) path
# ---------------------------------------------------------------------------

GNARK_PROOF = bytes(range(256))
PUBLIC_INPUT = (COMMITMENT).to_bytes(32, "big")


@pytest.fixture
def binding(fake_gnark_binding):
    return fake_gnark_binding(GNARK_PROOF, [PUBLIC_INPUT], b"gnark-vk")


@pytest.fixture
def external_verifier(prepared_vk: PreparedVerifyingKey, binding) -> ProofVerifier:
    return ProofVerifier(prepared_vk, GnarkBackend(binding.verify, b"gnark-vk"))


def test_external_accepts(external_verifier: ProofVerifier, binding) -> None:
    result = external_verifier.verify_external("0x" + GNARK_PROOF.hex(), [hex(COMMITMENT)])
    assert result.valid
    proof, vk, inputs, system = binding.calls[0]
    assert (proof, vk, inputs, system) == (GNARK_PROOF, b"gnark-vk", [PUBLIC_INPUT], "groth16")


def test_external_rejects_mutated_input(external_verifier: ProofVerifier) -> None:
    result = external_verifier.verify_external("0x" + GNARK_PROOF.hex(), [hex(COMMITMENT + 1)])
    assert result.status is VerificationStatus.INVALID_PROOF
    mutated = "0x" + GNARK_PROOF.hex()[:-1] + "0"
    assert external_verifier.verify_external(mutated, [hex(COMMITMENT)]).status is (
        VerificationStatus.INVALID_PROOF
    )


@pytest.mark.parametrize(
    "proof_hex, inputs",
    [
        ("0xabc", ["0x01"]),
        ("0x", ["0x01"]),
        ("0xabcd", ["0xzz"]),
        ("0xabcd", ["0x" + "11" * 33]),
        ("0xabcd", "0x01"),
    ],
)
def test_external_malformed(external_verifier: ProofVerifier, proof_hex, inputs) -> None:
    assert external_verifier.verify_external(proof_hex, inputs).status is (
        VerificationStatus.MALFORMED_INPUT
    )


def test_external_requires_backend(verifier: ProofVerifier) -> None:
    assert not verifier.has_external
    with pytest.raises(ConfigurationError):
        verifier.verify_external("0xabcd", [])
