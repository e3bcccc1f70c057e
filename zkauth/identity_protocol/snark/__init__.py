"""Groth16 artifacts and verifiers for the secret-proof circuit."""

from .backend import GnarkBackend, load_binding
from .groth16 import (
    PreparedVerifyingKey,
    VerifyingKey,
    prepare_verifying_key,
    verify_proof,
)
from .zkey import R1csHeader, ZkeyHeader, read_r1cs_header, read_zkey

__all__ = [
    "GnarkBackend",
    "PreparedVerifyingKey",
    "R1csHeader",
    "VerifyingKey",
    "ZkeyHeader",
    "load_binding",
    "prepare_verifying_key",
    "read_r1cs_header",
    "read_zkey",
    "verify_proof",
]
