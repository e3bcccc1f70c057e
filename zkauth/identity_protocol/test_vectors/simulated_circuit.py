"""
Simulated secret-proof circuit for tests and local demos.

A Groth16 verifying key is generated here from known trapdoor scalars, which
makes it possible to produce proofs that pass the real pairing check without
snarkjs or a trusted setup:

    B = b * G2, A = a * G1, C = c * G1 with
    c = (a * b - alpha * beta - x * gamma) / delta   (mod r)
    x = k0 + commitment * k1                         (vk_x exponent)

so ``e(A, B) == e(alpha, beta) * e(vk_x, gamma) * e(C, delta)``.

Anyone holding the trapdoor can prove any statement. These vectors are for
exercising encodings, verification and the HTTP surface only; they do NOT
provide any security.

The module also writes a complete synthetic artifact directory (zkey and
r1cs headers in snarkjs binary layout, Poseidon constants, gnark vk blob) so
the ArtifactCache loader can be exercised end to end.
"""

from __future__ import annotations

import json
import secrets
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from py_ecc.optimized_bn128 import G1, G2, multiply

from ..config import (
    FQ_MODULUS,
    FR_MODULUS,
    POSEIDON_FULL_ROUNDS,
    POSEIDON_PARTIAL_ROUNDS,
)
from ..exceptions import WitnessError
from ..poseidon import PoseidonHasher
from ..security import keccak256
from ..snark.assets import (
    DEFAULT_CIRCUIT_NAME,
    DEFAULT_EXTERNAL_VK_NAME,
    DEFAULT_POSEIDON_CONSTANTS_NAME,
    DEFAULT_ZKEY_NAME,
)
from ..snark.groth16 import VerifyingKey, g1_to_affine, g2_to_affine
from ..snark.zkey import (
    PROTOCOL_GROTH16,
    R1CS_MAGIC,
    R1CS_SECTION_HEADER,
    ZKEY_MAGIC,
    ZKEY_SECTION_GROTH16_HEADER,
    ZKEY_SECTION_HEADER,
    ZKEY_SECTION_IC,
)
from ..types import G1Affine, G2Affine, Groth16Proof

# Largest Poseidon width the service needs (5 inputs)
MAX_TEST_WIDTH = 6

# Dummy shape values written into the synthetic headers
SIMULATED_N_WIRES = 243
SIMULATED_N_CONSTRAINTS = 240
SIMULATED_DOMAIN_SIZE = 256

GNARK_VK_PLACEHOLDER = b"simulated-gnark-vk"


# ============================================================================
# POSEIDON CONSTANTS
# ============================================================================


def _derive(label: str) -> int:
    return int.from_bytes(keccak256(label.encode("ascii")), "big") % FR_MODULUS


def synthetic_poseidon_constants(max_width: int = MAX_TEST_WIDTH) -> Dict[str, List]:
    """
    Deterministic Poseidon constants in circomlib JSON layout.

    Round constants are Keccak-derived; each MDS matrix is the Cauchy matrix
    ``1 / (i + (t + j))``, which is always invertible. These are NOT the
    circomlib constants, so hashes differ from a real circuit.
    """
    all_c: List[List[str]] = []
    all_m: List[List[List[str]]] = []
    for t in range(2, max_width + 1):
        n_rounds = POSEIDON_FULL_ROUNDS + POSEIDON_PARTIAL_ROUNDS[t - 2]
        all_c.append(
            [hex(_derive(f"zkauth/poseidon/{t}/{i}")) for i in range(n_rounds * t)]
        )
        all_m.append(
            [
                [hex(pow(i + t + j, -1, FR_MODULUS)) for j in range(t)]
                for i in range(t)
            ]
        )
    return {"C": all_c, "M": all_m}


def synthetic_poseidon() -> PoseidonHasher:
    return PoseidonHasher.from_constants(synthetic_poseidon_constants())


# ============================================================================
# TRAPDOOR CIRCUIT
# ============================================================================


def _random_scalar() -> int:
    return secrets.randbelow(FR_MODULUS - 1) + 1


@dataclass(frozen=True)
class SimulatedCircuit:
    """
    One-public-input Groth16 key with known trapdoor.

    When ``hasher`` is set, ``prove`` behaves like the real circuit and
    refuses a secret whose Poseidon hash is not the commitment.
    """

    alpha: int
    beta: int
    gamma: int
    delta: int
    ic_scalars: Sequence[int]
    hasher: Optional[PoseidonHasher] = None
    _vk: VerifyingKey = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        vk = VerifyingKey(
            alpha1=g1_to_affine(multiply(G1, self.alpha)),
            beta2=g2_to_affine(multiply(G2, self.beta)),
            gamma2=g2_to_affine(multiply(G2, self.gamma)),
            delta2=g2_to_affine(multiply(G2, self.delta)),
            ic=tuple(g1_to_affine(multiply(G1, k)) for k in self.ic_scalars),
        )
        object.__setattr__(self, "_vk", vk)

    @classmethod
    def generate(cls, hasher: Optional[PoseidonHasher] = None) -> "SimulatedCircuit":
        return cls(
            alpha=_random_scalar(),
            beta=_random_scalar(),
            gamma=_random_scalar(),
            delta=_random_scalar(),
            ic_scalars=(_random_scalar(), _random_scalar()),
            hasher=hasher,
        )

    @property
    def verifying_key(self) -> VerifyingKey:
        return self._vk

    def prove(self, secret: int, commitment: int) -> Groth16Proof:
        """Prover-compatible entry point (see service.prover.Prover)."""
        if self.hasher is not None and self.hasher.hash([secret]) != commitment % FR_MODULUS:
            raise WitnessError("Assert Failed: commitment does not match secret")
        return self.forge(commitment)

    def forge(self, commitment: int) -> Groth16Proof:
        """Build a valid proof for ``commitment`` from the trapdoor alone."""
        r = FR_MODULUS
        k0, k1 = self.ic_scalars
        x = (k0 + (commitment % r) * k1) % r
        a = _random_scalar()
        b = _random_scalar()
        c = (a * b - self.alpha * self.beta - x * self.gamma) * pow(self.delta, -1, r) % r
        return Groth16Proof(
            a=g1_to_affine(multiply(G1, a)),
            b=g2_to_affine(multiply(G2, b)),
            c=g1_to_affine(multiply(G1, c)),
        )


# ============================================================================
# BINARY ARTIFACTS
# ============================================================================

_MONTGOMERY_R = 2**256


def _fq_montgomery(value: int) -> bytes:
    return (value * _MONTGOMERY_R % FQ_MODULUS).to_bytes(32, "little")


def _g1_bytes(point: G1Affine) -> bytes:
    return _fq_montgomery(point[0]) + _fq_montgomery(point[1])


def _g2_bytes(point: G2Affine) -> bytes:
    (x0, x1), (y0, y1) = point
    return b"".join(_fq_montgomery(v) for v in (x0, x1, y0, y1))


def _binfile(magic: bytes, sections: Sequence[tuple]) -> bytes:
    out = [magic, struct.pack("<II", 1, len(sections))]
    for section_type, payload in sections:
        out.append(struct.pack("<IQ", section_type, len(payload)))
        out.append(payload)
    return b"".join(out)


def zkey_bytes(
    vk: VerifyingKey,
    n_vars: int = SIMULATED_N_WIRES,
    domain_size: int = SIMULATED_DOMAIN_SIZE,
    protocol: int = PROTOCOL_GROTH16,
) -> bytes:
    """Header and IC sections of a snarkjs Groth16 zkey for ``vk``."""
    groth16_header = b"".join(
        [
            struct.pack("<I", 32),
            FQ_MODULUS.to_bytes(32, "little"),
            struct.pack("<I", 32),
            FR_MODULUS.to_bytes(32, "little"),
            struct.pack("<III", n_vars, vk.n_public, domain_size),
            _g1_bytes(vk.alpha1),
            _g1_bytes(vk.alpha1),  # beta1 is unused by the verifier
            _g2_bytes(vk.beta2),
            _g2_bytes(vk.gamma2),
            _g1_bytes(vk.alpha1),  # delta1 likewise
            _g2_bytes(vk.delta2),
        ]
    )
    return _binfile(
        ZKEY_MAGIC,
        [
            (ZKEY_SECTION_HEADER, struct.pack("<I", protocol)),
            (ZKEY_SECTION_GROTH16_HEADER, groth16_header),
            (ZKEY_SECTION_IC, b"".join(_g1_bytes(p) for p in vk.ic)),
        ],
    )


def r1cs_header_bytes(
    n_wires: int = SIMULATED_N_WIRES,
    n_public_outputs: int = 0,
    n_public_inputs: int = 1,
    n_private_inputs: int = 1,
    n_constraints: int = SIMULATED_N_CONSTRAINTS,
    prime: int = FR_MODULUS,
) -> bytes:
    header = b"".join(
        [
            struct.pack("<I", 32),
            prime.to_bytes(32, "little"),
            struct.pack("<IIII", n_wires, n_public_outputs, n_public_inputs, n_private_inputs),
            struct.pack("<Q", n_wires),
            struct.pack("<I", n_constraints),
        ]
    )
    return _binfile(R1CS_MAGIC, [(R1CS_SECTION_HEADER, header)])


def write_artifacts(
    directory: str | Path,
    circuit: SimulatedCircuit,
    circuit_name: str = DEFAULT_CIRCUIT_NAME,
) -> Path:
    """
    Lay out a full artifact directory for ``circuit``.

    The wasm file is a placeholder: use an injected prover, not snarkjs.
    """
    base = Path(directory)
    js_dir = base / f"{circuit_name}_js"
    js_dir.mkdir(parents=True, exist_ok=True)
    (js_dir / f"{circuit_name}.wasm").write_bytes(b"\x00asm\x01\x00\x00\x00")
    (base / f"{circuit_name}.r1cs").write_bytes(r1cs_header_bytes())
    (base / DEFAULT_ZKEY_NAME).write_bytes(zkey_bytes(circuit.verifying_key))
    (base / DEFAULT_EXTERNAL_VK_NAME).write_bytes(GNARK_VK_PLACEHOLDER)
    (base / DEFAULT_POSEIDON_CONSTANTS_NAME).write_text(
        json.dumps(synthetic_poseidon_constants()), encoding="utf-8"
    )
    return base


def snarkjs_proof_json(proof: Groth16Proof) -> Dict[str, object]:
    """Render ``proof`` the way ``snarkjs groth16 prove`` writes proof.json."""
    (bx0, bx1), (by0, by1) = proof.b
    return {
        "pi_a": [str(proof.a[0]), str(proof.a[1]), "1"],
        "pi_b": [[str(bx0), str(bx1)], [str(by0), str(by1)], ["1", "0"]],
        "pi_c": [str(proof.c[0]), str(proof.c[1]), "1"],
        "protocol": "groth16",
        "curve": "bn128",
    }
