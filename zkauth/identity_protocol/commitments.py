"""
Identity commitment derivation.

Turns personal attributes plus a fresh nonce into a secret and a public
commitment through a two-stage hash chain:

    email_hash = keccak256(lower(email))
    name_hash  = keccak256(strip(name))
    user_hash  = Poseidon(email_hash, name_hash, age, country, dob)
    secret     = Poseidon(user_hash, nonce)
    commitment = Poseidon(secret)

The nonce makes every registration of the same attributes unlinkable, so
registration is deliberately not idempotent. Nothing is retained: losing the
returned secret means losing the ability to prove.
"""

from __future__ import annotations

from typing import Optional

from .config import (
    COMMITMENT_HASH_ARITY,
    MAX_AGE,
    MAX_DOB,
    NONCE_BYTES,
    SECRET_HASH_ARITY,
    USER_HASH_ARITY,
)
from .exceptions import ConfigurationError
from .poseidon import PoseidonHasher
from .security import RandomnessSource, keccak_to_field
from .types import Attributes, Registration

REQUIRED_ARITIES = (COMMITMENT_HASH_ARITY, SECRET_HASH_ARITY, USER_HASH_ARITY)


def country_to_int(code: str) -> int:
    """
    Pack the first two UTF-8 bytes of a country code into 16 bits.

    Short codes are zero-filled: ``"IE"`` -> 0x4945, ``"I"`` -> 0x4900.
    """
    raw = code.encode("utf-8")
    hi = raw[0] if len(raw) > 0 else 0
    lo = raw[1] if len(raw) > 1 else 0
    return (hi << 8) | lo


def dob_to_int(dob: str) -> int:
    """
    Parse a date of birth as digits only, dashes ignored.

    ``"1990-01-01"`` and ``"19900101"`` both give 19900101. Anything else,
    including values beyond 64 bits, degrades to 0 rather than failing.
    """
    digits = dob.replace("-", "")
    if not digits or not digits.isascii() or not digits.isdigit():
        return 0
    value = int(digits)
    if value > MAX_DOB:
        return 0
    return value


def nonce_to_field(nonce: bytes) -> int:
    """Big-endian nonce value; 128 bits always fits in Fr without reduction."""
    if len(nonce) != NONCE_BYTES:
        raise ValueError(f"nonce must be {NONCE_BYTES} bytes")
    return int.from_bytes(nonce, "big")


class CommitmentDeriver:
    """
    Derive (secret, nonce, commitment) from attributes.

    Example:
        >>> deriver = CommitmentDeriver(hasher)
        >>> reg = deriver.register(Attributes("a@b.c", "A", 30, "IE", "19900101"))
        >>> reg.commitment == deriver.commitment_for(reg.secret)
        True
    """

    def __init__(
        self,
        hasher: PoseidonHasher,
        rng: Optional[RandomnessSource] = None,
    ) -> None:
        missing = [n for n in REQUIRED_ARITIES if n not in hasher.arities]
        if missing:
            raise ConfigurationError(
                f"poseidon hasher lacks parameters for arities {missing}"
            )
        self._hasher = hasher
        self._rng = rng or RandomnessSource()

    def user_hash(self, attributes: Attributes) -> int:
        if not 0 <= attributes.age <= MAX_AGE:
            raise ValueError("age out of range")
        return self._hasher.hash(
            [
                keccak_to_field(attributes.email.lower()),
                keccak_to_field(attributes.name.strip()),
                attributes.age,
                country_to_int(attributes.country),
                dob_to_int(attributes.dob),
            ]
        )

    def secret_for(self, user_hash: int, nonce: bytes) -> int:
        return self._hasher.hash([user_hash, nonce_to_field(nonce)])

    def commitment_for(self, secret: int) -> int:
        return self._hasher.hash([secret])

    def register(self, attributes: Attributes) -> Registration:
        """
        Register attributes with a fresh nonce.

        Args:
            attributes: Personal attributes (consumed, never stored)

        Returns:
            Registration with secret, nonce and commitment
        """
        nonce = self._rng.get_nonce()
        secret = self.secret_for(self.user_hash(attributes), nonce)
        return Registration(
            secret=secret,
            nonce=nonce,
            commitment=self.commitment_for(secret),
        )
