"""HTTP service: settings, artifact cache, proof pipeline and verifiers."""

from .artifacts import ArtifactCache
from .context import AppContext
from .pipeline import ProofPipeline
from .settings import ServiceSettings, load_settings
from .verifier import ProofVerifier, VerificationResult, VerificationStatus

__all__ = [
    "AppContext",
    "ArtifactCache",
    "ProofPipeline",
    "ProofVerifier",
    "ServiceSettings",
    "VerificationResult",
    "VerificationStatus",
    "load_settings",
]
