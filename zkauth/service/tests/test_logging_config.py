"""Tests for log setup and commitment redaction."""

from __future__ import annotations

import json

from fastapi.testclient import TestClient
from loguru import logger

from zkauth.service.app import create_app
from zkauth.service.context import AppContext
from zkauth.service.logging_config import configure_logging, redact_commitment


def test_redact_commitment_keeps_prefix() -> None:
    assert redact_commitment("123456789012345") == "12345678…"
    assert redact_commitment(42) == "42"
    assert redact_commitment("1234", keep=2) == "12…"


def test_json_sink(capsys) -> None:
    configure_logging("debug", json=True)
    try:
        logger.info("hello {}", "sink")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        assert json.loads(line)["record"]["message"] == "hello sink"
    finally:
        configure_logging()


def test_registration_never_logs_secret(settings, circuit) -> None:
    messages = []
    sink = logger.add(lambda message: messages.append(str(message)), level="TRACE")
    try:
        client = TestClient(create_app(AppContext.build(settings, prover=circuit)), backend="trio")
        body = client.post(
            "/register",
            json={"email": "x@y.z", "name": "X", "age": 5, "country": "NL", "dob": "2001-01-01"},
        ).json()
    finally:
        logger.remove(sink)
    joined = "".join(messages)
    assert body["secret"][2:] not in joined
    assert str(int(body["secret"], 16)) not in joined
    assert body["nonce"][2:] not in joined
    assert body["commitment"] not in joined
