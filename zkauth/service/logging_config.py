"""
Logging setup.

One stderr sink, human readable by default, JSON lines when ``log_json`` is
set. Secrets, nonces and raw attributes are never passed to the logger;
commitments are shortened with ``redact_commitment``.
"""

from __future__ import annotations

import sys

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    logger.remove()
    if json:
        logger.add(sys.stderr, level=level.upper(), serialize=True, backtrace=False)
    else:
        logger.add(
            sys.stderr,
            level=level.upper(),
            format=_CONSOLE_FORMAT,
            backtrace=False,
            diagnose=False,
        )


def redact_commitment(commitment: str | int, keep: int = 8) -> str:
    text = str(commitment)
    if len(text) <= keep:
        return text
    return f"{text[:keep]}…"
