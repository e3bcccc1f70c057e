"""Simulated circuit, synthetic artifacts and circomlib reference vectors for tests."""

from .circomlib_poseidon import CIRCOMLIB_POSEIDON_VECTORS, circomlib_constants_json
from .simulated_circuit import (
    SimulatedCircuit,
    snarkjs_proof_json,
    synthetic_poseidon,
    synthetic_poseidon_constants,
    write_artifacts,
)

__all__ = [
    "CIRCOMLIB_POSEIDON_VECTORS",
    "SimulatedCircuit",
    "circomlib_constants_json",
    "snarkjs_proof_json",
    "synthetic_poseidon",
    "synthetic_poseidon_constants",
    "write_artifacts",
]
