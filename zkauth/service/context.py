"""Application context: everything a request handler needs, built once."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ..identity_protocol.commitments import CommitmentDeriver
from ..identity_protocol.exceptions import ConfigurationError
from ..identity_protocol.snark.backend import GnarkBackend
from .artifacts import ArtifactCache
from .pipeline import ProofPipeline
from .prover import Prover, SnarkjsProver
from .settings import ServiceSettings
from .verifier import ProofVerifier


@dataclass(frozen=True)
class AppContext:
    settings: ServiceSettings
    deriver: CommitmentDeriver
    pipeline: ProofPipeline
    verifier: ProofVerifier

    @classmethod
    def build(
        cls,
        settings: ServiceSettings,
        artifacts: Optional[ArtifactCache] = None,
        prover: Optional[Prover] = None,
        external_backend: Optional[GnarkBackend] = None,
    ) -> "AppContext":
        """
        Load artifacts and wire the services together.

        ``artifacts``, ``prover`` and ``external_backend`` may be injected;
        anything omitted is built from ``settings``.

        Raises:
            ConfigurationError: If artifacts are missing or inconsistent, or
                the snarkjs executable cannot be found
        """
        if artifacts is None:
            artifacts = ArtifactCache.load(settings)
        if prover is None:
            prover = SnarkjsProver.from_artifacts(
                artifacts,
                snarkjs_bin=settings.snarkjs_bin,
                timeout=settings.prover_timeout,
            )
        if external_backend is None:
            external_backend = _load_external_backend(settings, artifacts)

        logger.info(
            "Proof pipeline ready (concurrency={}, external verifier={})",
            settings.proof_concurrency,
            "enabled" if external_backend is not None else "disabled",
        )
        return cls(
            settings=settings,
            deriver=CommitmentDeriver(artifacts.poseidon),
            pipeline=ProofPipeline(prover, settings.proof_concurrency),
            verifier=ProofVerifier(artifacts.prepared_vk, external_backend),
        )


def _load_external_backend(
    settings: ServiceSettings, artifacts: ArtifactCache
) -> Optional[GnarkBackend]:
    # The gnark binding is an optional native extension. Without it the
    # external verification endpoint answers 503 and everything else works.
    try:
        return GnarkBackend.from_module(settings.external_verifier_module, artifacts.external_vk)
    except ConfigurationError as exc:
        logger.warning("External verifier disabled: {}", exc)
        return None
