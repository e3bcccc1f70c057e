"""
Native and cross-ecosystem proof verification.

Both paths return a VerificationResult instead of raising: bad input and a
cryptographically invalid proof both mean "not valid" to the caller, but the
status keeps them apart for logging and for the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from loguru import logger

from ..identity_protocol.codec import (
    ExternalFieldCodec,
    NativePointCodec,
    decode_field_decimal,
)
from ..identity_protocol.exceptions import (
    ConfigurationError,
    InvalidEncodingError,
    ProofVerificationError,
)
from ..identity_protocol.snark.backend import GnarkBackend
from ..identity_protocol.snark.groth16 import PreparedVerifyingKey, verify_proof
from .logging_config import redact_commitment


class VerificationStatus(Enum):
    VALID = "valid"
    MALFORMED_INPUT = "malformed_input"
    INVALID_PROOF = "invalid_proof"


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    detail: str = ""

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID


_VALID = VerificationResult(VerificationStatus.VALID)


class ProofVerifier:
    """
    Verify proofs against the cached keys.

    The native path uses the prepared verifying key read from the zkey. The
    external path hands gnark-serialized proofs to the gnark binding with
    its own verifying-key blob and never looks at the native key.
    """

    def __init__(
        self,
        prepared_vk: PreparedVerifyingKey,
        external_backend: Optional[GnarkBackend] = None,
    ) -> None:
        self._pvk = prepared_vk
        self._external = external_backend

    @property
    def has_external(self) -> bool:
        return self._external is not None

    def verify_native(self, commitment_dec: Any, proof_json: Any) -> VerificationResult:
        try:
            commitment = decode_field_decimal(commitment_dec)
            proof = NativePointCodec.decode_proof(proof_json)
        except InvalidEncodingError as exc:
            return VerificationResult(VerificationStatus.MALFORMED_INPUT, str(exc))

        try:
            ok = verify_proof(self._pvk, [commitment], proof)
        except ProofVerificationError as exc:
            logger.debug("Proof rejected for commitment {}: {}", redact_commitment(commitment), exc)
            return VerificationResult(VerificationStatus.INVALID_PROOF, str(exc))
        if not ok:
            return VerificationResult(VerificationStatus.INVALID_PROOF, "pairing check failed")
        return _VALID

    def verify_external(
        self, proof_hex: Any, public_inputs_hex: Sequence[Any]
    ) -> VerificationResult:
        """
        Verify a gnark proof.

        Raises:
            ConfigurationError: If no gnark binding is configured
        """
        if self._external is None:
            raise ConfigurationError("external verifier is not configured")
        try:
            proof_bytes = ExternalFieldCodec.decode_proof_bytes(proof_hex)
            public_inputs = ExternalFieldCodec.decode_public_inputs(public_inputs_hex)
        except InvalidEncodingError as exc:
            return VerificationResult(VerificationStatus.MALFORMED_INPUT, str(exc))

        if not self._external.verify(proof_bytes, public_inputs):
            return VerificationResult(VerificationStatus.INVALID_PROOF, "external verifier rejected proof")
        return _VALID
