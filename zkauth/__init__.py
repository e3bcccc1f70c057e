"""
zkauth - privacy-preserving identity commitments.

Attributes are turned into a secret and a public commitment; the holder
later proves knowledge of the secret with a Groth16 proof that is checked
natively or by an external gnark verifier.
"""

__version__ = "0.1.0"
