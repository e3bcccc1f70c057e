"""
Concurrency-bounded proof generation.

Proving is CPU heavy and blocking, so each request waits for a slot on a
trio.CapacityLimiter (FIFO) and then runs the prover on a worker thread. The
event loop keeps serving other requests meanwhile. The slot is released only
after the worker thread has returned, so at most ``concurrency`` proofs are
ever computing at once.
"""

from __future__ import annotations

from dataclasses import dataclass

import trio
from loguru import logger

from ..identity_protocol.codec import (
    NativePointCodec,
    decode_field_decimal,
    decode_field_hex,
)
from ..identity_protocol.exceptions import ProofGenerationError
from ..identity_protocol.types import Groth16Proof, ProofJson
from .constants import DEFAULT_PROOF_CONCURRENCY
from .logging_config import redact_commitment
from .prover import Prover


@dataclass
class PipelineStats:
    in_flight: int = 0
    peak_in_flight: int = 0
    completed: int = 0
    failed: int = 0


class ProofPipeline:
    def __init__(self, prover: Prover, concurrency: int = DEFAULT_PROOF_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._prover = prover
        self._limiter = trio.CapacityLimiter(concurrency)
        self.stats = PipelineStats()

    @property
    def concurrency(self) -> int:
        return int(self._limiter.total_tokens)

    @property
    def waiting(self) -> int:
        return self._limiter.statistics().tasks_waiting

    async def generate(self, secret_hex: str, commitment_dec: str) -> Groth16Proof:
        """
        Produce a proof that the caller knows ``secret`` with
        ``Poseidon(secret) == commitment``.

        Raises:
            InvalidEncodingError: If either input is malformed (before queueing)
            CircuitMismatchError: If the loaded circuit rejects the input shape
            ProofGenerationError: If witness generation or proving fails
        """
        secret = decode_field_hex(secret_hex)
        commitment = decode_field_decimal(commitment_dec)

        async with self._limiter:
            self.stats.in_flight += 1
            self.stats.peak_in_flight = max(self.stats.peak_in_flight, self.stats.in_flight)
            try:
                proof = await trio.to_thread.run_sync(self._prover.prove, secret, commitment)
            except ProofGenerationError:
                self.stats.failed += 1
                logger.warning(
                    "Proof generation failed for commitment {}",
                    redact_commitment(commitment),
                )
                raise
            except BaseException:
                self.stats.failed += 1
                raise
            finally:
                self.stats.in_flight -= 1

        self.stats.completed += 1
        logger.debug("Proof generated for commitment {}", redact_commitment(commitment))
        return proof

    async def generate_encoded(self, secret_hex: str, commitment_dec: str) -> ProofJson:
        proof = await self.generate(secret_hex, commitment_dec)
        return NativePointCodec.encode_proof(proof)
