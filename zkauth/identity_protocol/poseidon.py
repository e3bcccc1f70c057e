"""
Poseidon hash over the BN254 scalar field, circomlib parameterisation.

The permutation matches circomlib's ``Poseidon(nInputs)`` template: width
``t = nInputs + 1``, 8 full rounds, a width-dependent number of partial
rounds, x^5 S-box, initial state ``[0, *inputs]`` and output ``state[0]``.

Round constants and MDS matrices come either from a
``poseidon_constants.json`` file (circomlib layout: ``C[t-2]`` is the flat list
of round constants, ``M[t-2]`` the t x t MDS matrix) or from
``poseidon_params.circomlib_params``, which regenerates circomlib's own set.

PoseidonHasher is immutable and keeps no per-call state, so a single instance
is shared by all concurrent callers without locking.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple

from .config import (
    FR_MODULUS,
    POSEIDON_ALPHA,
    POSEIDON_FULL_ROUNDS,
    POSEIDON_PARTIAL_ROUNDS,
)
from .exceptions import ArtifactError


@dataclass(frozen=True)
class PoseidonParams:
    t: int
    full_rounds: int
    partial_rounds: int
    round_constants: Tuple[int, ...]
    mds: Tuple[Tuple[int, ...], ...]
    alpha: int = POSEIDON_ALPHA

    def validate(self) -> None:
        if self.t < 2:
            raise ValueError("t must be >= 2")
        if self.full_rounds % 2 != 0:
            raise ValueError("full_rounds must be even")
        expected = (self.full_rounds + self.partial_rounds) * self.t
        if len(self.round_constants) != expected:
            raise ValueError(
                f"t={self.t}: expected {expected} round constants, "
                f"got {len(self.round_constants)}"
            )
        if len(self.mds) != self.t or any(len(row) != self.t for row in self.mds):
            raise ValueError(f"t={self.t}: mds must be {self.t} x {self.t}")


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value % FR_MODULUS
    text = str(value).strip().lower()
    if text.startswith("0x"):
        return int(text, 16) % FR_MODULUS
    return int(text) % FR_MODULUS


def _sbox(x: int, alpha: int) -> int:
    if alpha == 5:
        x2 = x * x % FR_MODULUS
        return x2 * x2 % FR_MODULUS * x % FR_MODULUS
    return pow(x, alpha, FR_MODULUS)


def permute(state: Sequence[int], params: PoseidonParams) -> list[int]:
    t = params.t
    if len(state) != t:
        raise ValueError(f"state length {len(state)} != t={t}")

    rc = params.round_constants
    mds = params.mds
    half = params.full_rounds // 2
    total = params.full_rounds + params.partial_rounds
    x = [v % FR_MODULUS for v in state]

    for r in range(total):
        offset = r * t
        x = [(x[i] + rc[offset + i]) % FR_MODULUS for i in range(t)]
        if r < half or r >= half + params.partial_rounds:
            x = [_sbox(v, params.alpha) for v in x]
        else:
            x[0] = _sbox(x[0], params.alpha)
        x = [
            sum(mds[i][j] * x[j] for j in range(t)) % FR_MODULUS
            for i in range(t)
        ]
    return x


class PoseidonHasher:
    """
    Stateless multi-arity Poseidon.

    Example:
        >>> hasher = PoseidonHasher.from_json("poseidon_constants.json")
        >>> commitment = hasher.hash([secret])
    """

    def __init__(self, params_by_width: Mapping[int, PoseidonParams]):
        for params in params_by_width.values():
            params.validate()
        self._params: Dict[int, PoseidonParams] = dict(params_by_width)

    @classmethod
    def from_constants(
        cls,
        constants: Mapping[str, Any],
        arities: Sequence[int] | None = None,
    ) -> "PoseidonHasher":
        """
        Build from a circomlib ``{"C": [...], "M": [...]}`` mapping.

        Args:
            constants: Parsed poseidon_constants.json
            arities: Input counts to load (default: every width present)
        """
        try:
            all_c = constants["C"]
            all_m = constants["M"]
        except (KeyError, TypeError) as exc:
            raise ArtifactError("poseidon constants must contain 'C' and 'M'") from exc

        widths = (
            [n + 1 for n in arities]
            if arities is not None
            else [i + 2 for i in range(min(len(all_c), len(all_m)))]
        )
        params: Dict[int, PoseidonParams] = {}
        for t in widths:
            index = t - 2
            if index < 0 or index >= len(all_c) or index >= len(all_m):
                raise ArtifactError(f"poseidon constants missing width t={t}")
            if index >= len(POSEIDON_PARTIAL_ROUNDS):
                raise ArtifactError(f"no partial round count for width t={t}")
            try:
                candidate = PoseidonParams(
                    t=t,
                    full_rounds=POSEIDON_FULL_ROUNDS,
                    partial_rounds=POSEIDON_PARTIAL_ROUNDS[index],
                    round_constants=tuple(_to_int(v) for v in all_c[index]),
                    mds=tuple(tuple(_to_int(v) for v in row) for row in all_m[index]),
                )
                candidate.validate()
            except (TypeError, ValueError) as exc:
                raise ArtifactError(f"invalid poseidon constants for t={t}: {exc}") from exc
            params[t] = candidate
        return cls(params)

    @classmethod
    def from_json(
        cls, path: str | Path, arities: Sequence[int] | None = None
    ) -> "PoseidonHasher":
        try:
            with open(path, "r", encoding="utf-8") as fh:
                constants = json.load(fh)
        except (OSError, ValueError) as exc:
            raise ArtifactError(f"cannot read poseidon constants {path}: {exc}") from exc
        return cls.from_constants(constants, arities)

    @property
    def arities(self) -> tuple[int, ...]:
        return tuple(sorted(t - 1 for t in self._params))

    def hash(self, inputs: Sequence[int]) -> int:
        """
        Hash ``len(inputs)`` field elements into one.

        Raises:
            ValueError: If no parameters are loaded for this arity
        """
        params = self._params.get(len(inputs) + 1)
        if params is None:
            raise ValueError(f"no poseidon parameters for {len(inputs)} inputs")
        state = [0, *(int(v) % FR_MODULUS for v in inputs)]
        return permute(state, params)[0]
