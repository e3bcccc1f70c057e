"""
Security utilities for registration.

Fork-safe randomness for nonces and Keccak-256 hashing of attributes into the
BN254 scalar field.
"""

import os
import secrets

from Crypto.Hash import keccak

from .config import FR_MODULUS, NONCE_BYTES


# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents catastrophic randomness reuse if the server forks workers.

    Example:
        >>> rng = RandomnessSource()
        >>> nonce = rng.get_nonce()
    """

    def __init__(self):
        """Initialize randomness source with fork detection."""
        self._pid = os.getpid()
        self._rng = secrets.SystemRandom()

    def get_random_bytes(self, n: int) -> bytes:
        """
        Get n cryptographically secure random bytes.

        Args:
            n: Number of bytes to generate

        Returns:
            n random bytes
        """
        if os.getpid() != self._pid:
            self.__init__()
        return self._rng.randbytes(n)

    def get_nonce(self) -> bytes:
        """Fresh 128-bit registration nonce."""
        return self.get_random_bytes(NONCE_BYTES)


# ============================================================================
# HASH FUNCTIONS
# ============================================================================


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (Ethereum variant, not NIST SHA3-256)."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"data must be bytes, got {type(data)}")
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def keccak_to_field(text: str) -> int:
    """
    Hash UTF-8 text with Keccak-256 and reduce the big-endian digest into Fr.

    Args:
        text: Already normalised attribute value

    Returns:
        Field element in [0, FR_MODULUS)
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text)}")
    return int.from_bytes(keccak256(text.encode("utf-8")), "big") % FR_MODULUS
