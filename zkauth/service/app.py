"""
zkauth HTTP API (FastAPI)

Endpoints
---------
POST /register
    Body : {email, name, age, country, dob}
    Resp : {"secret": "0x<64 hex>", "nonce": "0x<32 hex>", "commitment": "<decimal>"}

POST /proof                (alias /generate-proof)
    Body : {secret_hex, commitment}
    Resp : {"proof": {"a": [..], "b": [[..], [..]], "c": [..]}}
    400 on malformed input, 500 when proving fails

POST /verify               (alias /verify-proof)
    Body : {commitment, proof}
    Resp : {"valid": bool}; 200 when valid, 401 otherwise

POST /verify-external      (alias /verify-gnark)
    Body : {proof_hex, public_inputs_hex}
    Resp : {"valid": bool}; 200 valid, 400 malformed hex, 401 invalid,
           503 when no gnark binding is installed

GET /health

Notes
-----
- The app holds no state of its own. Everything lives in the AppContext
  stored on ``app.state.context``.
- register and the verify handlers are plain ``def`` endpoints so FastAPI
  runs their hashing and pairing work on its worker threads. /proof is async
  and goes through the ProofPipeline limiter.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..identity_protocol.codec import encode_field_decimal, encode_field_hex
from ..identity_protocol.exceptions import (
    CircuitMismatchError,
    ConfigurationError,
    IdentityProtocolError,
    InvalidEncodingError,
    ProofGenerationError,
)
from ..identity_protocol.types import Attributes
from .constants import API_VERSION, SERVICE_NAME
from .context import AppContext
from .logging_config import redact_commitment
from .messages import (
    ExternalVerifyRequest,
    HealthResponse,
    ProofRequest,
    ProofResponse,
    RegisterRequest,
    RegisterResponse,
    VerifyRequest,
    VerifyResponse,
)
from .verifier import VerificationStatus


def _error(status_code: int, error: str, detail: str = "") -> JSONResponse:
    body = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def _verdict(valid: bool, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"valid": valid})


def _malformed(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"valid": False, "error": "invalid_encoding", "detail": detail},
    )


def create_app(context: AppContext) -> FastAPI:
    """Build the FastAPI app around an already loaded context."""
    app = FastAPI(
        title=SERVICE_NAME,
        version=API_VERSION,
        description="Identity commitments with Groth16 proofs of knowledge.",
    )
    app.state.context = context

    # -------------------------- Error mapping --------------------------

    @app.exception_handler(InvalidEncodingError)
    async def _invalid_encoding(request: Request, exc: InvalidEncodingError):
        return _error(400, "invalid_encoding", str(exc))

    @app.exception_handler(CircuitMismatchError)
    async def _circuit_mismatch(request: Request, exc: CircuitMismatchError):
        logger.error("Circuit does not match the configured artifacts: {}", exc)
        return _error(500, "circuit_mismatch")

    @app.exception_handler(ProofGenerationError)
    async def _proof_generation(request: Request, exc: ProofGenerationError):
        return _error(500, "proof_generation_failed", str(exc))

    @app.exception_handler(ConfigurationError)
    async def _configuration(request: Request, exc: ConfigurationError):
        return _error(503, "unavailable", str(exc))

    @app.exception_handler(IdentityProtocolError)
    async def _protocol(request: Request, exc: IdentityProtocolError):
        logger.error("Unhandled protocol error on {}: {}", request.url.path, exc)
        return _error(500, "internal_error")

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):  # pragma: no cover
        logger.opt(exception=exc).error("Unexpected error on {}", request.url.path)
        return _error(500, "internal_error")

    # -------------------------- Routes --------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        pipeline = app.state.context.pipeline
        return HealthResponse(
            status="ok",
            version=API_VERSION,
            proof_concurrency=pipeline.concurrency,
            proofs_in_flight=pipeline.stats.in_flight,
            proofs_waiting=pipeline.waiting,
            external_verifier=app.state.context.verifier.has_external,
        )

    @app.post("/register", response_model=RegisterResponse)
    def register(body: RegisterRequest) -> RegisterResponse:
        attributes = Attributes(
            email=body.email,
            name=body.name,
            age=body.age,
            country=body.country,
            dob=body.dob,
        )
        registration = app.state.context.deriver.register(attributes)
        logger.info("Registered commitment {}", redact_commitment(registration.commitment))
        return RegisterResponse(
            secret=encode_field_hex(registration.secret),
            nonce="0x" + registration.nonce.hex(),
            commitment=encode_field_decimal(registration.commitment),
        )

    @app.post("/proof", response_model=ProofResponse)
    @app.post("/generate-proof", response_model=ProofResponse, include_in_schema=False)
    async def proof(body: ProofRequest) -> ProofResponse:
        encoded = await app.state.context.pipeline.generate_encoded(
            body.secret_hex, body.commitment
        )
        return ProofResponse(proof=encoded)

    @app.post("/verify", response_model=VerifyResponse, responses={401: {"model": VerifyResponse}})
    @app.post("/verify-proof", include_in_schema=False)
    def verify(body: VerifyRequest):
        result = app.state.context.verifier.verify_native(body.commitment, body.proof)
        if result.status is VerificationStatus.MALFORMED_INPUT:
            logger.debug("Rejected malformed verification request: {}", result.detail)
        return _verdict(result.valid, 200 if result.valid else 401)

    @app.post(
        "/verify-external",
        response_model=VerifyResponse,
        responses={400: {}, 401: {"model": VerifyResponse}, 503: {}},
    )
    @app.post("/verify-gnark", include_in_schema=False)
    def verify_external(body: ExternalVerifyRequest):
        if body.proof_too_long():
            return _malformed("proof_hex too long")
        result = app.state.context.verifier.verify_external(
            body.proof_hex, body.public_inputs_hex
        )
        if result.status is VerificationStatus.MALFORMED_INPUT:
            return _malformed(result.detail)
        return _verdict(result.valid, 200 if result.valid else 401)

    return app
