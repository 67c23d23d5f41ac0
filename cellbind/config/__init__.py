"""Configuration files shipped with cellbind.

Mapping registries live under ``mappings/`` and coverage allow-lists under
``coverage/``; both are keyed by document kind (``fund_plan``, ``contract``).
"""

from __future__ import annotations

from pathlib import Path


CONFIG_DIR = Path(__file__).resolve().parent
MAPPINGS_DIR = CONFIG_DIR / "mappings"
COVERAGE_DIR = CONFIG_DIR / "coverage"
DEFAULT_PROFILES_PATH = CONFIG_DIR / "profiles.yaml"


def packaged_kinds() -> list[str]:
    """Document kinds that ship both a registry and an allow-list."""

    return sorted(
        path.stem for path in MAPPINGS_DIR.glob("*.yaml") if (COVERAGE_DIR / path.name).exists()
    )


def registry_path(kind: str) -> Path:
    return MAPPINGS_DIR / f"{kind}.yaml"


def allowlist_path(kind: str) -> Path:
    return COVERAGE_DIR / f"{kind}.yaml"
