"""Service constants for the identity proof API."""

from __future__ import annotations

from .. import __version__ as API_VERSION

SERVICE_NAME = "zkauth"

# Number of proofs allowed to compute in parallel. Fixed rather than derived
# from the CPU count so every deployment behaves the same; override through
# configuration only.
DEFAULT_PROOF_CONCURRENCY = 4
MAX_PROOF_CONCURRENCY = 64

DEFAULT_PROVER_TIMEOUT = 120.0
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

# Request size guards
MAX_ATTRIBUTE_CHARS = 1024
MAX_PUBLIC_INPUTS = 64
MAX_EXTERNAL_PROOF_HEX_CHARS = 16384

ENV_PREFIX = "ZKAUTH_"
