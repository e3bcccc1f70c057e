"""
Custom exceptions for the identity protocol.

These exceptions provide structured error handling for encoding, artifact
loading, proof generation and proof verification. The service layer maps each
branch of this tree onto one response class.
"""


class IdentityProtocolError(Exception):
    """Base exception for identity protocol errors."""

    pass


class InvalidEncodingError(IdentityProtocolError, ValueError):
    """Malformed hex, decimal or point encoding supplied by a client."""

    pass


class ConfigurationError(IdentityProtocolError):
    """Configuration error. Fatal: the service must not start."""

    pass


class ArtifactError(ConfigurationError):
    """Missing or corrupt key, circuit or parameter file."""

    pass


class CircuitMismatchError(ConfigurationError):
    """Circuit inputs do not match the artifacts the service was given."""

    pass


class ProofGenerationError(IdentityProtocolError):
    """Error during proof generation."""

    pass


class WitnessError(ProofGenerationError):
    """Witness construction failed (unsatisfied circuit constraints)."""

    pass


class ProvingError(ProofGenerationError):
    """The Groth16 prover failed on a well-formed witness."""

    pass


class ProofVerificationError(IdentityProtocolError):
    """Error during proof verification."""

    pass
