"""
Groth16 verification on BN254 with py_ecc.

Verification equation, with the verifying key prepared once:

    e(A, B) * e(vk_x, -gamma) * e(C, -delta) == e(alpha, beta)

where ``vk_x = IC[0] + sum(input_i * IC[i + 1])``. The three Miller loops are
multiplied before a single final exponentiation, and ``e(alpha, beta)`` is
computed at preparation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

from ..config import FQ_MODULUS, FR_MODULUS
from ..exceptions import ProofVerificationError
from ..types import G1_INFINITY, G2_INFINITY, G1Affine, G2Affine, Groth16Proof

# py_ecc points are opaque Jacobian tuples
G1Point = Any
G2Point = Any

assert curve_order == FR_MODULUS


@dataclass(frozen=True)
class VerifyingKey:
    alpha1: G1Affine
    beta2: G2Affine
    gamma2: G2Affine
    delta2: G2Affine
    ic: Tuple[G1Affine, ...]

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True)
class PreparedVerifyingKey:
    """Verifying key with the input-independent pairing work done up front."""

    vk: VerifyingKey
    alpha_beta: FQ12
    neg_gamma2: G2Point
    neg_delta2: G2Point
    ic: Tuple[G1Point, ...]


# ============================================================================
# POINT CONVERSION
# ============================================================================


def _coord(value: Any) -> int:
    return int(value.n) if hasattr(value, "n") else int(value)


def g1_from_affine(point: G1Affine) -> G1Point:
    """Affine integers to a py_ecc G1 point, checking the curve equation."""
    x, y = point
    if (x, y) == G1_INFINITY:
        return Z1
    if not (0 <= x < FQ_MODULUS and 0 <= y < FQ_MODULUS):
        raise ProofVerificationError("G1 coordinate out of range")
    p = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(p, b):
        raise ProofVerificationError("G1 point not on curve")
    return p


def g2_from_affine(point: G2Affine, check_subgroup: bool = True) -> G2Point:
    """
    Affine Fq2 integers to a py_ecc G2 point.

    The twist curve has a large cofactor, so points are also checked for
    membership in the order-r subgroup unless the caller opts out.
    """
    (x0, x1), (y0, y1) = point
    if point == G2_INFINITY:
        return Z2
    if not all(0 <= v < FQ_MODULUS for v in (x0, x1, y0, y1)):
        raise ProofVerificationError("G2 coordinate out of range")
    q = (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())
    if not is_on_curve(q, b2):
        raise ProofVerificationError("G2 point not on curve")
    if check_subgroup and not is_inf(multiply(q, curve_order)):
        raise ProofVerificationError("G2 point not in prime-order subgroup")
    return q


def g1_to_affine(p: G1Point) -> G1Affine:
    if is_inf(p):
        return G1_INFINITY
    x, y = normalize(p)
    return _coord(x), _coord(y)


def g2_to_affine(q: G2Point) -> G2Affine:
    if is_inf(q):
        return G2_INFINITY
    x, y = normalize(q)
    return (
        (_coord(x.coeffs[0]), _coord(x.coeffs[1])),
        (_coord(y.coeffs[0]), _coord(y.coeffs[1])),
    )


# ============================================================================
# VERIFICATION
# ============================================================================


def prepare_verifying_key(vk: VerifyingKey) -> PreparedVerifyingKey:
    """
    Precompute e(alpha, beta) and the negated G2 elements.

    Raises:
        ProofVerificationError: If any key point is malformed
    """
    alpha1 = g1_from_affine(vk.alpha1)
    beta2 = g2_from_affine(vk.beta2)
    return PreparedVerifyingKey(
        vk=vk,
        alpha_beta=pairing(beta2, alpha1),
        neg_gamma2=neg(g2_from_affine(vk.gamma2)),
        neg_delta2=neg(g2_from_affine(vk.delta2)),
        ic=tuple(g1_from_affine(p) for p in vk.ic),
    )


def compute_vk_x(ic: Sequence[G1Point], public_inputs: Sequence[int]) -> G1Point:
    if len(ic) != len(public_inputs) + 1:
        raise ProofVerificationError(
            f"expected {len(ic) - 1} public inputs, got {len(public_inputs)}"
        )
    acc = ic[0]
    for point, value in zip(ic[1:], public_inputs):
        scalar = int(value) % FR_MODULUS
        if scalar:
            acc = add(acc, multiply(point, scalar))
    return acc


def verify_proof(
    pvk: PreparedVerifyingKey,
    public_inputs: Sequence[int],
    proof: Groth16Proof,
) -> bool:
    """
    Check a Groth16 proof.

    Returns:
        True if the pairing equation holds

    Raises:
        ProofVerificationError: If the proof points are malformed or the
            number of public inputs does not match the key
    """
    a = g1_from_affine(proof.a)
    b_point = g2_from_affine(proof.b)
    c = g1_from_affine(proof.c)
    vk_x = compute_vk_x(pvk.ic, public_inputs)

    product = (
        pairing(b_point, a, final_exponentiate=False)
        * pairing(pvk.neg_gamma2, vk_x, final_exponentiate=False)
        * pairing(pvk.neg_delta2, c, final_exponentiate=False)
    )
    return final_exponentiate(product) == pvk.alpha_beta
