"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field

from .constants import (
    MAX_ATTRIBUTE_CHARS,
    MAX_EXTERNAL_PROOF_HEX_CHARS,
    MAX_PUBLIC_INPUTS,
)


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=MAX_ATTRIBUTE_CHARS)
    name: str = Field(..., max_length=MAX_ATTRIBUTE_CHARS)
    age: int = Field(..., ge=0, le=2**32 - 1)
    country: str = Field(..., max_length=MAX_ATTRIBUTE_CHARS)
    dob: str = Field(..., max_length=MAX_ATTRIBUTE_CHARS)


class RegisterResponse(BaseModel):
    secret: str
    nonce: str
    commitment: str


# Field contents are decoded by the codecs, not by pydantic, so malformed
# values reach the handlers and map to the documented status codes.


class ProofRequest(BaseModel):
    secret_hex: Any = None
    commitment: Any = None


class ProofBody(BaseModel):
    a: List[str]
    b: List[List[str]]
    c: List[str]


class ProofResponse(BaseModel):
    proof: ProofBody


class VerifyRequest(BaseModel):
    commitment: Any = None
    proof: Any = None


class VerifyResponse(BaseModel):
    valid: bool


class ExternalVerifyRequest(BaseModel):
    proof_hex: Any = None
    public_inputs_hex: List[Any] = Field(default_factory=list, max_length=MAX_PUBLIC_INPUTS)

    def proof_too_long(self) -> bool:
        return isinstance(self.proof_hex, str) and len(self.proof_hex) > MAX_EXTERNAL_PROOF_HEX_CHARS


class HealthResponse(BaseModel):
    status: str
    version: str
    proof_concurrency: int
    proofs_in_flight: int
    proofs_waiting: int
    external_verifier: bool
