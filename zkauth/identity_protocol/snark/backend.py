"""Cross-ecosystem (gnark) Groth16 verification facade."""

from __future__ import annotations

from importlib import import_module
from typing import Callable, Sequence

from loguru import logger

from ..exceptions import ConfigurationError

# Designator passed to the binding to select its Groth16 verifier
PROVING_SYSTEM_GROTH16 = "groth16"

DEFAULT_BINDING_MODULE = "gnark_bn254_verifier"

# verify(proof_bytes, vk_bytes, public_inputs, proving_system) -> bool
VerifyCallable = Callable[[bytes, bytes, Sequence[bytes], str], bool]


class GnarkBackend:
    """
    Verify gnark-serialized proofs via a native binding.

    The binding is any importable module exposing
    ``verify(proof: bytes, vk: bytes, public_inputs: list[bytes], system: str)``
    with public inputs as 32-byte big-endian Fr elements. The proof bytes and
    verifying-key blob are gnark's own serialization and are passed through
    untouched.
    """

    def __init__(self, verify_fn: VerifyCallable, vk_bytes: bytes) -> None:
        if not vk_bytes:
            raise ConfigurationError("gnark verifying key is empty")
        self._verify = verify_fn
        self._vk = bytes(vk_bytes)

    @classmethod
    def from_module(cls, module_name: str, vk_bytes: bytes) -> "GnarkBackend":
        return cls(load_binding(module_name), vk_bytes)

    def verify(self, proof_bytes: bytes, public_inputs: Sequence[bytes]) -> bool:
        try:
            return bool(
                self._verify(
                    bytes(proof_bytes),
                    self._vk,
                    list(public_inputs),
                    PROVING_SYSTEM_GROTH16,
                )
            )
        except Exception as exc:
            # a crashing binding is reported as a rejection, but stays visible
            logger.debug("gnark binding raised {}: {}", type(exc).__name__, exc)
            return False


def load_binding(module_name: str = DEFAULT_BINDING_MODULE) -> VerifyCallable:
    """
    Import the native gnark binding.

    Raises:
        ConfigurationError: If the module or its ``verify`` callable is missing
    """
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(
            f"gnark verifier binding {module_name!r} is not importable: {exc}"
        ) from exc
    verifier = getattr(module, "verify", None)
    if not callable(verifier):
        raise ConfigurationError(f"{module_name!r} does not expose verify()")
    return verifier
