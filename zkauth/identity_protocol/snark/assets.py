"""Helpers to resolve circuit artifact paths with layout fallbacks."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import ArtifactError

DEFAULT_CIRCUIT_NAME = "secret-proof"
DEFAULT_ZKEY_NAME = "secret_final.zkey"
DEFAULT_EXTERNAL_VK_NAME = "gnark_vk.bin"
DEFAULT_POSEIDON_CONSTANTS_NAME = "poseidon_constants.json"


@dataclass(frozen=True)
class CircuitPaths:
    wasm: Path
    r1cs: Path
    zkey: Path
    external_vk: Path
    poseidon_constants: Optional[Path]


def resolve_circuit_paths(
    base_dir: str | Path | None = None,
    circuit_name: str = DEFAULT_CIRCUIT_NAME,
    zkey_name: str = DEFAULT_ZKEY_NAME,
    external_vk_name: str = DEFAULT_EXTERNAL_VK_NAME,
    poseidon_constants_name: str = DEFAULT_POSEIDON_CONSTANTS_NAME,
) -> CircuitPaths:
    """
    Resolve every artifact the service needs.

    The witness calculator is looked up in the circom output layout
    (``<name>_js/<name>.wasm``) first, then flat beside the r1cs.

    ``poseidon_constants`` is optional and resolves to None when absent;
    callers then fall back to the built-in circomlib parameters.

    Raises:
        ArtifactError: If any required artifact is missing
    """
    base = Path(base_dir) if base_dir else default_artifacts_dir()
    wasm = _first_existing(
        [
            base / f"{circuit_name}_js" / f"{circuit_name}.wasm",
            base / f"{circuit_name}.wasm",
        ],
        f"{circuit_name} witness calculator",
    )
    return CircuitPaths(
        wasm=wasm,
        r1cs=_first_existing([base / f"{circuit_name}.r1cs"], f"{circuit_name} r1cs"),
        zkey=_first_existing([base / zkey_name], "proving key"),
        external_vk=_first_existing(
            [base / external_vk_name, Path(external_vk_name)],
            "gnark verifying key",
        ),
        poseidon_constants=_optional(base / poseidon_constants_name),
    )


def _default_repo_root() -> Path:
    return Path(__file__).resolve().parents[3]


def default_artifacts_dir() -> Path:
    return Path(
        os.getenv(
            "ZKAUTH_ARTIFACTS_DIR",
            _default_repo_root() / "circuits" / DEFAULT_CIRCUIT_NAME,
        )
    )


def _first_existing(candidates: Iterable[Path], label: str) -> Path:
    candidates = list(candidates)
    for path in candidates:
        if path.is_file():
            return path
    raise ArtifactError(
        f"Unable to resolve {label}. Checked: {', '.join(str(p) for p in candidates)}"
    )


def _optional(path: Path) -> Optional[Path]:
    return path if path.is_file() else None
