"""
Common types for identity commitments and Groth16 proofs.

Curve points are carried as plain affine integer coordinates so that they can
cross thread boundaries and be compared cheaply. The point at infinity is the
all-zero tuple, the same convention snarkjs and arkworks use on the wire.

G2 coordinates are elements of Fq2 = Fq[u]/(u^2 + 1) and are stored in the
internal order ``(c0, c1)`` meaning ``c0 + c1 * u``. Wire order is decided by
the point codecs only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

G1Affine = Tuple[int, int]
Fq2Element = Tuple[int, int]
G2Affine = Tuple[Fq2Element, Fq2Element]

G1_INFINITY: G1Affine = (0, 0)
G2_INFINITY: G2Affine = ((0, 0), (0, 0))

# {"a": [x, y], "b": [[x, x], [y, y]], "c": [x, y]} with hex strings
ProofJson = Dict[str, List]


@dataclass(frozen=True)
class Attributes:
    """
    Personal attributes consumed by registration.

    Never persisted and never logged.
    """

    email: str
    name: str
    age: int
    country: str
    dob: str

    def __repr__(self) -> str:
        return "Attributes(<redacted>)"


@dataclass(frozen=True)
class Registration:
    """
    Result of registering a set of attributes.

    Attributes:
        secret: Fr element, the capability required to prove
        nonce: 16 fresh random bytes mixed into the secret
        commitment: Poseidon(secret), safe to publish
    """

    secret: int
    nonce: bytes
    commitment: int

    def __repr__(self) -> str:
        return f"Registration(commitment={self.commitment})"


@dataclass(frozen=True)
class Groth16Proof:
    """Three-element Groth16 proof with affine integer coordinates."""

    a: G1Affine
    b: G2Affine
    c: G1Affine
