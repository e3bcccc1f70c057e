"""
Service settings.

Resolved in precedence order: explicit overrides, environment variables
(``ZKAUTH_<FIELD>``), YAML config file, defaults. Settings are read once at
startup and never mutated afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..identity_protocol.exceptions import ConfigurationError
from ..identity_protocol.snark.assets import (
    DEFAULT_CIRCUIT_NAME,
    DEFAULT_EXTERNAL_VK_NAME,
    DEFAULT_POSEIDON_CONSTANTS_NAME,
    DEFAULT_ZKEY_NAME,
    default_artifacts_dir,
)
from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROOF_CONCURRENCY,
    DEFAULT_PROVER_TIMEOUT,
    ENV_PREFIX,
    MAX_PROOF_CONCURRENCY,
)

_VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class ServiceSettings:
    artifacts_dir: str = ""
    circuit_name: str = DEFAULT_CIRCUIT_NAME
    zkey_file: str = DEFAULT_ZKEY_NAME
    external_vk_file: str = DEFAULT_EXTERNAL_VK_NAME
    poseidon_constants_file: str = DEFAULT_POSEIDON_CONSTANTS_NAME
    external_verifier_module: str = "gnark_bn254_verifier"
    snarkjs_bin: str = "snarkjs"
    prover_timeout: float = DEFAULT_PROVER_TIMEOUT
    proof_concurrency: int = DEFAULT_PROOF_CONCURRENCY
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir) if self.artifacts_dir else default_artifacts_dir()

    def validate(self) -> "ServiceSettings":
        """
        Check value ranges.

        Raises:
            ConfigurationError: If any setting is out of range
        """
        if not 1 <= self.proof_concurrency <= MAX_PROOF_CONCURRENCY:
            raise ConfigurationError(
                f"proof_concurrency must be in [1, {MAX_PROOF_CONCURRENCY}], "
                f"got {self.proof_concurrency}"
            )
        if self.prover_timeout <= 0:
            raise ConfigurationError("prover_timeout must be positive")
        if not 0 <= self.port <= 65535:
            raise ConfigurationError(f"invalid port {self.port}")
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"invalid log_level {self.log_level!r}. "
                f"Valid options: {', '.join(_VALID_LOG_LEVELS)}"
            )
        if not self.circuit_name or not self.snarkjs_bin:
            raise ConfigurationError("circuit_name and snarkjs_bin are required")
        return self

    def with_overrides(self, **overrides: Any) -> "ServiceSettings":
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **_coerce_mapping(values, "override")).validate()


def _coerce(name: str, raw: Any, source: str) -> Any:
    field_type = _FIELD_TYPES[name]
    try:
        if field_type == "bool":
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text in _TRUE_VALUES:
                return True
            if text in _FALSE_VALUES:
                return False
            raise ValueError(f"not a boolean: {raw!r}")
        if field_type == "int":
            if isinstance(raw, bool):
                raise ValueError("boolean is not an integer")
            return int(raw)
        if field_type == "float":
            return float(raw)
        return str(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{source}: invalid value for {name}: {exc}") from exc


def _coerce_mapping(values: Mapping[str, Any], source: str) -> dict:
    unknown = sorted(set(values) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigurationError(f"{source}: unknown settings {', '.join(unknown)}")
    return {name: _coerce(name, raw, source) for name, raw in values.items()}


_FIELD_TYPES = {
    f.name: (f.type if isinstance(f.type, str) else f.type.__name__)
    for f in fields(ServiceSettings)
}


def _read_yaml(path: str | Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    section = data.get("zkauth", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"{path}: 'zkauth' section must be a mapping")
    return section


def _read_env(environ: Mapping[str, str]) -> dict:
    values = {}
    for name in _FIELD_TYPES:
        key = ENV_PREFIX + name.upper()
        if key in environ and environ[key] != "":
            values[name] = environ[key]
    return values


def load_settings(
    config_path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ServiceSettings:
    """
    Resolve settings from file, environment and explicit overrides.

    Args:
        config_path: Optional YAML file (``ZKAUTH_CONFIG`` if omitted)
        environ: Environment mapping (defaults to os.environ)
        overrides: Highest-precedence values; None entries are ignored

    Raises:
        ConfigurationError: If a value is unknown, malformed or out of range
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get(ENV_PREFIX + "CONFIG") or None

    values: dict = {}
    if config_path:
        values.update(_coerce_mapping(_read_yaml(config_path), str(config_path)))
    values.update(_coerce_mapping(_read_env(environ), "environment"))
    settings = ServiceSettings(**values).validate()
    return settings.with_overrides(**overrides)
