"""Public API for identity_protocol: encodings, hashing and commitments."""
from __future__ import annotations

from .codec import ExternalFieldCodec, NativePointCodec
from .commitments import CommitmentDeriver
from .exceptions import (
    ArtifactError,
    CircuitMismatchError,
    ConfigurationError,
    IdentityProtocolError,
    InvalidEncodingError,
    ProofGenerationError,
    ProofVerificationError,
    ProvingError,
    WitnessError,
)
from .poseidon import PoseidonHasher
from .types import Attributes, Groth16Proof, Registration

__all__ = [
    "ArtifactError",
    "Attributes",
    "CircuitMismatchError",
    "CommitmentDeriver",
    "ConfigurationError",
    "ExternalFieldCodec",
    "Groth16Proof",
    "IdentityProtocolError",
    "InvalidEncodingError",
    "NativePointCodec",
    "PoseidonHasher",
    "ProofGenerationError",
    "ProofVerificationError",
    "ProvingError",
    "Registration",
    "WitnessError",
]
