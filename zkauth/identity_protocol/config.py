"""
Cryptographic configuration for the identity protocol.

All constants here are tied to the fixed `secret-proof` circom circuit and the
BN254 (alt_bn128) curve its Groth16 keys were generated for. Changing any of
them without regenerating the circuit artifacts breaks every proof.
"""

# ============================================================================
# CURVE SELECTION
# ============================================================================

# BN254 a.k.a. alt_bn128 / bn128 (snarkjs name)
# - Pairing friendly, supported by circom, snarkjs, arkworks and gnark
# - Same curve on both proving paths (native and gnark)

CURVE_NAME = "bn254"
CURVE_LIBRARY = "py_ecc"
PROOF_SYSTEM = "groth16"

# ============================================================================
# FIELD PARAMETERS
# ============================================================================

# Scalar field Fr (circuit signals, commitments, secrets)
FR_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Base field Fq (curve point coordinates)
FQ_MODULUS = 21888242871839275222246405745257275088696311157297823662689037894645226208583

FIELD_ELEMENT_BYTES = 32
FIELD_ELEMENT_HEX_CHARS = FIELD_ELEMENT_BYTES * 2

# Decimal wire values must fit in 256 bits before reduction
MAX_DECIMAL_VALUE = 2**256

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

# Attribute hashing (outside the circuit)
ATTRIBUTE_HASH_FUNCTION = "keccak256"

# Hash chain inside and outside the circuit (circomlib parameterisation)
POSEIDON_FULL_ROUNDS = 8
POSEIDON_PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)
POSEIDON_ALPHA = 5

# Input arity at each stage of the registration chain
USER_HASH_ARITY = 5
SECRET_HASH_ARITY = 2
COMMITMENT_HASH_ARITY = 1

# ============================================================================
# REGISTRATION PARAMETERS
# ============================================================================

NONCE_BYTES = 16
NONCE_HEX_CHARS = NONCE_BYTES * 2

# age is carried as an unsigned 32-bit value, dob as an unsigned 64-bit value
MAX_AGE = 2**32 - 1
MAX_DOB = 2**64 - 1

RANDOMNESS_SOURCE = "secrets.SystemRandom"

# ============================================================================
# CIRCUIT SHAPE
# ============================================================================

CIRCUIT_SECRET_SIGNAL = "secret"
CIRCUIT_COMMITMENT_SIGNAL = "commitment"
CIRCUIT_PUBLIC_INPUTS = 1
CIRCUIT_PRIVATE_INPUTS = 1

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert CURVE_NAME == "bn254", "Invalid curve"
    assert PROOF_SYSTEM == "groth16", "Invalid proof system"
    assert FR_MODULUS < FQ_MODULUS < 2 ** (8 * FIELD_ELEMENT_BYTES)
    assert FR_MODULUS.bit_length() == 254, "Fr modulus must be 254 bits"
    assert POSEIDON_FULL_ROUNDS % 2 == 0, "Full rounds must split evenly"
    assert NONCE_BYTES * 8 >= 128, "Nonce too small for unlinkability"
    # nonce is embedded as a field element without reduction
    assert 2 ** (NONCE_BYTES * 8) < FR_MODULUS
    assert max(USER_HASH_ARITY, SECRET_HASH_ARITY, COMMITMENT_HASH_ARITY) <= len(
        POSEIDON_PARTIAL_ROUNDS
    )
    return True


# Auto-validate on import
validate_config()
