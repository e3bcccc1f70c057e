"""
Readers for snarkjs binary artifacts (``.zkey`` and ``.r1cs`` headers).

Both files share the iden3 binfile container:

    magic (4 bytes) | version u32 | n_sections u32
    repeated: section_type u32 | section_size u64 | payload

All integers are little-endian. Curve points inside a zkey are stored in
Montgomery form (``value * 2**256 mod q``), x before y, Fq2 as c0 then c1.
Only the sections needed to rebuild the verifying key and to check the
circuit shape are decoded; the proving sections stay on disk for the prover.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

from ..config import FQ_MODULUS, FR_MODULUS
from ..exceptions import ArtifactError
from ..types import G1_INFINITY, G1Affine, G2Affine
from .groth16 import VerifyingKey

ZKEY_MAGIC = b"zkey"
R1CS_MAGIC = b"r1cs"

ZKEY_SECTION_HEADER = 1
ZKEY_SECTION_GROTH16_HEADER = 2
ZKEY_SECTION_IC = 3
R1CS_SECTION_HEADER = 1

PROTOCOL_GROTH16 = 1


@dataclass(frozen=True)
class ZkeyHeader:
    n_vars: int
    n_public: int
    domain_size: int
    verifying_key: VerifyingKey


@dataclass(frozen=True)
class R1csHeader:
    n_wires: int
    n_public_outputs: int
    n_public_inputs: int
    n_private_inputs: int
    n_labels: int
    n_constraints: int


class _Reader:
    def __init__(self, data: bytes, label: str) -> None:
        self._data = data
        self._pos = 0
        self._label = label

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if n < 0 or end > len(self._data):
            raise ArtifactError(f"{self._label}: truncated data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def bigint(self, n: int) -> int:
        return int.from_bytes(self.take(n), "little")


def read_sections(data: bytes, magic: bytes, label: str) -> Dict[int, bytes]:
    """Split a binfile container into ``{section_type: payload}``."""
    reader = _Reader(data, label)
    if reader.take(4) != magic:
        raise ArtifactError(f"{label}: not a {magic.decode()} file")
    reader.u32()  # version
    n_sections = reader.u32()
    sections: Dict[int, bytes] = {}
    for _ in range(n_sections):
        section_type = reader.u32()
        size = reader.u64()
        # first occurrence wins, matching snarkjs
        payload = reader.take(size)
        sections.setdefault(section_type, payload)
    return sections


def _require(sections: Dict[int, bytes], section_type: int, label: str) -> bytes:
    if section_type not in sections:
        raise ArtifactError(f"{label}: missing section {section_type}")
    return sections[section_type]


# ============================================================================
# MONTGOMERY POINT DECODING
# ============================================================================

_N8Q = 32
_R_INV = pow(2 ** (8 * _N8Q), -1, FQ_MODULUS)


def _fq_from_montgomery(reader: _Reader) -> int:
    return reader.bigint(_N8Q) * _R_INV % FQ_MODULUS


def _read_g1(reader: _Reader) -> G1Affine:
    x = _fq_from_montgomery(reader)
    y = _fq_from_montgomery(reader)
    if x == 0 and y == 0:
        return G1_INFINITY
    return x, y


def _read_g2(reader: _Reader) -> G2Affine:
    x0 = _fq_from_montgomery(reader)
    x1 = _fq_from_montgomery(reader)
    y0 = _fq_from_montgomery(reader)
    y1 = _fq_from_montgomery(reader)
    return (x0, x1), (y0, y1)


# ============================================================================
# ZKEY
# ============================================================================


def parse_zkey(data: bytes, label: str = "zkey") -> ZkeyHeader:
    """
    Decode the Groth16 header and IC points of a zkey.

    Raises:
        ArtifactError: If the file is not a BN254 Groth16 zkey
    """
    sections = read_sections(data, ZKEY_MAGIC, label)

    header = _Reader(_require(sections, ZKEY_SECTION_HEADER, label), label)
    protocol = header.u32()
    if protocol != PROTOCOL_GROTH16:
        raise ArtifactError(f"{label}: protocol id {protocol} is not groth16")

    reader = _Reader(_require(sections, ZKEY_SECTION_GROTH16_HEADER, label), label)
    n8q = reader.u32()
    q = reader.bigint(n8q)
    n8r = reader.u32()
    r = reader.bigint(n8r)
    if n8q != _N8Q or q != FQ_MODULUS or r != FR_MODULUS:
        raise ArtifactError(f"{label}: curve is not bn254")

    n_vars = reader.u32()
    n_public = reader.u32()
    domain_size = reader.u32()
    alpha1 = _read_g1(reader)
    _read_g1(reader)  # beta1, prover only
    beta2 = _read_g2(reader)
    gamma2 = _read_g2(reader)
    _read_g1(reader)  # delta1, prover only
    delta2 = _read_g2(reader)

    ic_reader = _Reader(_require(sections, ZKEY_SECTION_IC, label), label)
    ic: Tuple[G1Affine, ...] = tuple(_read_g1(ic_reader) for _ in range(n_public + 1))

    return ZkeyHeader(
        n_vars=n_vars,
        n_public=n_public,
        domain_size=domain_size,
        verifying_key=VerifyingKey(
            alpha1=alpha1,
            beta2=beta2,
            gamma2=gamma2,
            delta2=delta2,
            ic=ic,
        ),
    )


# ============================================================================
# R1CS
# ============================================================================


def parse_r1cs_header(data: bytes, label: str = "r1cs") -> R1csHeader:
    """Decode the header section of a circom ``.r1cs`` file."""
    sections = read_sections(data, R1CS_MAGIC, label)
    reader = _Reader(_require(sections, R1CS_SECTION_HEADER, label), label)
    n8 = reader.u32()
    prime = reader.bigint(n8)
    if prime != FR_MODULUS:
        raise ArtifactError(f"{label}: circuit was not compiled for bn254")
    return R1csHeader(
        n_wires=reader.u32(),
        n_public_outputs=reader.u32(),
        n_public_inputs=reader.u32(),
        n_private_inputs=reader.u32(),
        n_labels=reader.u64(),
        n_constraints=reader.u32(),
    )


def read_zkey(path: str | Path) -> ZkeyHeader:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ArtifactError(f"cannot read zkey {path}: {exc}") from exc
    return parse_zkey(data, label=str(path))


def read_r1cs_header(path: str | Path) -> R1csHeader:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ArtifactError(f"cannot read r1cs {path}: {exc}") from exc
    return parse_r1cs_header(data, label=str(path))
