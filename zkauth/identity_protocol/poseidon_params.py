"""
circomlib Poseidon parameters, regenerated from their published recipe.

circomlib's ``poseidon_constants`` were produced by the Poseidon reference
parameter script: a Grain LFSR seeded with the instance description (prime
field, x^5 S-box, 254-bit elements, width t, R_F = 8 and the width's R_P)
yields first the round constants (254-bit draws rejected until below r) and
then the Cauchy MDS matrix ``M[i][j] = 1 / (x_i + y_j)``. Replaying the same
stream gives the same parameters, so the service does not need a
``poseidon_constants.json`` artifact to hash exactly as the circuit does.

Generation costs a fraction of a second per width; results are cached.
"""

from __future__ import annotations

from collections import deque
from functools import lru_cache
from typing import List, Sequence

from .config import (
    FR_MODULUS,
    POSEIDON_ALPHA,
    POSEIDON_FULL_ROUNDS,
    POSEIDON_PARTIAL_ROUNDS,
)
from .poseidon import PoseidonHasher, PoseidonParams

FIELD_SIZE_BITS = 254

# Instance encoding: field type 1 = prime field, S-box type 0 = x^alpha
_FIELD_PRIME = 1
_SBOX_POWER = 0


class GrainLFSR:
    """80-bit Grain LFSR with self-shrinking output."""

    def __init__(self, t: int, full_rounds: int, partial_rounds: int) -> None:
        seed: List[int] = []
        for value, width in (
            (_FIELD_PRIME, 2),
            (_SBOX_POWER, 4),
            (FIELD_SIZE_BITS, 12),
            (t, 12),
            (full_rounds, 10),
            (partial_rounds, 10),
        ):
            seed.extend(int(bit) for bit in format(value, f"0{width}b"))
        seed.extend([1] * 30)
        self._state = deque(seed)
        for _ in range(160):
            self._clock()

    def _clock(self) -> int:
        s = self._state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.popleft()
        s.append(bit)
        return bit

    def next_bit(self) -> int:
        # keep the second bit of each pair whose first bit is 1
        while True:
            first = self._clock()
            second = self._clock()
            if first:
                return second

    def next_int(self, bits: int = FIELD_SIZE_BITS) -> int:
        value = 0
        for _ in range(bits):
            value = (value << 1) | self.next_bit()
        return value

    def next_field_element(self) -> int:
        """Uniform element of Fr by rejection."""
        while True:
            value = self.next_int()
            if value < FR_MODULUS:
                return value


def _cauchy_mds(lfsr: GrainLFSR, t: int) -> tuple:
    while True:
        draws = [lfsr.next_int() % FR_MODULUS for _ in range(2 * t)]
        while len(set(draws)) != len(draws):
            draws = [lfsr.next_int() % FR_MODULUS for _ in range(2 * t)]
        xs, ys = draws[:t], draws[t:]
        if any((x + y) % FR_MODULUS == 0 for x in xs for y in ys):
            continue
        return tuple(
            tuple(pow((x + y) % FR_MODULUS, FR_MODULUS - 2, FR_MODULUS) for y in ys)
            for x in xs
        )


@lru_cache(maxsize=None)
def circomlib_params(t: int) -> PoseidonParams:
    """
    Parameters of circomlib's ``Poseidon(t - 1)``.

    Raises:
        ValueError: If circomlib defines no parameters for width ``t``
    """
    index = t - 2
    if index < 0 or index >= len(POSEIDON_PARTIAL_ROUNDS):
        raise ValueError(f"circomlib has no poseidon parameters for width t={t}")
    partial_rounds = POSEIDON_PARTIAL_ROUNDS[index]
    lfsr = GrainLFSR(t, POSEIDON_FULL_ROUNDS, partial_rounds)
    round_constants = tuple(
        lfsr.next_field_element()
        for _ in range((POSEIDON_FULL_ROUNDS + partial_rounds) * t)
    )
    params = PoseidonParams(
        t=t,
        full_rounds=POSEIDON_FULL_ROUNDS,
        partial_rounds=partial_rounds,
        round_constants=round_constants,
        mds=_cauchy_mds(lfsr, t),
        alpha=POSEIDON_ALPHA,
    )
    params.validate()
    return params


def circomlib_hasher(arities: Sequence[int]) -> PoseidonHasher:
    """Hasher for the given input counts using circomlib's parameters."""
    return PoseidonHasher({n + 1: circomlib_params(n + 1) for n in arities})
