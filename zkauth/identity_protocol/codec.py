"""
Canonical wire encodings for field elements and curve points.

Field elements travel as ``0x``-prefixed, big-endian, zero-left-padded 64
character hex strings, or as base-10 strings for commitments. Decoders accept
shorter hex, left-pad it, and reduce modulo the target field; anything longer
than 32 bytes, odd-length or non-hex is rejected with InvalidEncodingError.

Two point conventions exist and each lives in its own codec:

- NativePointCodec: the JSON proof triple returned by ``/proof``. G2
  coordinates are emitted imaginary part first (``[c1, c0]``), matching the
  calldata layout of circom/snarkjs generated Solidity verifiers.
- ExternalFieldCodec: public inputs and raw proof bytes for the gnark
  verifier, which receives field elements as 32-byte big-endian integers.
"""

from __future__ import annotations

import binascii
from typing import Any, List, Sequence

from .config import (
    FIELD_ELEMENT_BYTES,
    FQ_MODULUS,
    FR_MODULUS,
    MAX_DECIMAL_VALUE,
)
from .exceptions import InvalidEncodingError
from .types import G1Affine, G2Affine, Groth16Proof, ProofJson


# ============================================================================
# FIELD ELEMENTS
# ============================================================================


def _strip_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def hex_to_bytes(value: Any, max_bytes: int | None = FIELD_ELEMENT_BYTES) -> bytes:
    """
    Decode a hex string (optional ``0x`` prefix) into raw bytes.

    Args:
        value: Hex string
        max_bytes: Maximum decoded length, or None for unbounded

    Returns:
        Decoded bytes (empty body decodes to b"")

    Raises:
        InvalidEncodingError: If the value is not well-formed hex or too long
    """
    if not isinstance(value, str):
        raise InvalidEncodingError(f"expected hex string, got {type(value).__name__}")
    body = _strip_hex_prefix(value)
    try:
        raw = binascii.unhexlify(body.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InvalidEncodingError(f"malformed hex: {exc}") from exc
    if max_bytes is not None and len(raw) > max_bytes:
        raise InvalidEncodingError(
            f"hex value is {len(raw)} bytes, at most {max_bytes} allowed"
        )
    return raw


def decode_field_hex(value: Any, modulus: int = FR_MODULUS) -> int:
    """Decode big-endian hex into a field element, reducing modulo ``modulus``."""
    raw = hex_to_bytes(value)
    padded = raw.rjust(FIELD_ELEMENT_BYTES, b"\x00")
    return int.from_bytes(padded, "big") % modulus


def encode_field_hex(element: int) -> str:
    """Encode a field element as 0x + 64 lowercase hex chars."""
    if element < 0 or element >= MAX_DECIMAL_VALUE:
        raise InvalidEncodingError("field element out of 256-bit range")
    return "0x" + element.to_bytes(FIELD_ELEMENT_BYTES, "big").hex()


def decode_field_decimal(value: Any, modulus: int = FR_MODULUS) -> int:
    """
    Decode a base-10 string into a field element.

    Only ASCII digits are accepted; the value must be below 2**256 and is
    reduced modulo ``modulus``.
    """
    if not isinstance(value, str):
        raise InvalidEncodingError(
            f"expected decimal string, got {type(value).__name__}"
        )
    if not value or not value.isascii() or not value.isdigit():
        raise InvalidEncodingError("malformed decimal string")
    number = int(value)
    if number >= MAX_DECIMAL_VALUE:
        raise InvalidEncodingError("decimal value out of 256-bit range")
    return number % modulus


def encode_field_decimal(element: int) -> str:
    return str(element)


def field_to_bytes(element: int) -> bytes:
    """32-byte big-endian representation of a field element."""
    return element.to_bytes(FIELD_ELEMENT_BYTES, "big")


# ============================================================================
# NATIVE POINT CODEC
# ============================================================================


class NativePointCodec:
    """
    Hex codec for the JSON proof triple.

    G1 points encode as ``[x, y]``. G2 points encode as
    ``[[x.c1, x.c0], [y.c1, y.c0]]``: the two Fq2 coordinates are swapped
    relative to the internal ``(c0, c1)`` order. decode_g2 applies the exact
    inverse. Do not change the order without an independent reference proof.
    """

    @staticmethod
    def encode_fq(element: int) -> str:
        return encode_field_hex(element)

    @staticmethod
    def decode_fq(value: Any) -> int:
        return decode_field_hex(value, FQ_MODULUS)

    @classmethod
    def encode_g1(cls, point: G1Affine) -> List[str]:
        x, y = point
        return [cls.encode_fq(x), cls.encode_fq(y)]

    @classmethod
    def decode_g1(cls, value: Any) -> G1Affine:
        x, y = _pair(value, "G1 point")
        return cls.decode_fq(x), cls.decode_fq(y)

    @classmethod
    def encode_g2(cls, point: G2Affine) -> List[List[str]]:
        (x0, x1), (y0, y1) = point
        return [
            [cls.encode_fq(x1), cls.encode_fq(x0)],
            [cls.encode_fq(y1), cls.encode_fq(y0)],
        ]

    @classmethod
    def decode_g2(cls, value: Any) -> G2Affine:
        x_pair, y_pair = _pair(value, "G2 point")
        x1, x0 = _pair(x_pair, "G2 x coordinate")
        y1, y0 = _pair(y_pair, "G2 y coordinate")
        return (
            (cls.decode_fq(x0), cls.decode_fq(x1)),
            (cls.decode_fq(y0), cls.decode_fq(y1)),
        )

    @classmethod
    def encode_proof(cls, proof: Groth16Proof) -> ProofJson:
        return {
            "a": cls.encode_g1(proof.a),
            "b": cls.encode_g2(proof.b),
            "c": cls.encode_g1(proof.c),
        }

    @classmethod
    def decode_proof(cls, value: Any) -> Groth16Proof:
        if not isinstance(value, dict):
            raise InvalidEncodingError("proof must be an object with a, b, c")
        try:
            a, b, c = value["a"], value["b"], value["c"]
        except KeyError as exc:
            raise InvalidEncodingError(f"proof missing component {exc}") from exc
        return Groth16Proof(a=cls.decode_g1(a), b=cls.decode_g2(b), c=cls.decode_g1(c))


def _pair(value: Any, label: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InvalidEncodingError(f"{label} must be a pair")
    return value


# ============================================================================
# EXTERNAL (GNARK) CODEC
# ============================================================================


class ExternalFieldCodec:
    """
    Codec for the gnark verification path.

    The proof is opaque bytes in gnark's own serialization. Public inputs are
    decoded independently of the native codec: hex up to 32 bytes, read as a
    big-endian integer and reduced into Fr, then handed to the binding as
    canonical 32-byte big-endian values.
    """

    @staticmethod
    def decode_proof_bytes(value: Any) -> bytes:
        raw = hex_to_bytes(value, max_bytes=None)
        if not raw:
            raise InvalidEncodingError("empty proof")
        return raw

    @staticmethod
    def decode_public_input(value: Any) -> int:
        raw = hex_to_bytes(value)
        return int.from_bytes(raw, "big") % FR_MODULUS

    @classmethod
    def decode_public_inputs(cls, values: Any) -> List[bytes]:
        if not isinstance(values, (list, tuple)):
            raise InvalidEncodingError("public inputs must be a list")
        return [field_to_bytes(cls.decode_public_input(v)) for v in values]


__all__ = [
    "ExternalFieldCodec",
    "NativePointCodec",
    "decode_field_decimal",
    "decode_field_hex",
    "encode_field_decimal",
    "encode_field_hex",
    "field_to_bytes",
    "hex_to_bytes",
]
