from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from cellbind_io.schema import TemplateExtent

from .errors import ProfileError

ROOT_ENV = "CELLBIND_ROOT"
PROFILES_ENV = "CELLBIND_PROFILES"
WORK_DIR_ENV = "CELLBIND_WORK_DIR"


@dataclass(frozen=True)
class TemplateProfile:
    """One document kind bound to a template workbook.

    Attributes:
        name: Profile key (``fund_plan``, ``contract``).
        display_name: Human readable name.
        model: Domain model kind used for reference instances.
        template: Template workbook path (relative paths resolve against the project).
        mapping: Mapping registry YAML path.
        coverage: Coverage allow-list YAML path.
        output_name: ``str.format`` pattern for exported file names.
        extent: Declared sheet bounds, when the template's used range is not trusted.
        meta: Arbitrary metadata.
    """

    name: str
    display_name: str
    model: str
    template: str
    mapping: str
    coverage: str
    output_name: str
    extent: TemplateExtent | None = None
    meta: Dict[str, Any] | None = None

    @property
    def template_path(self) -> Path:
        return resolve_config_path(self.template)

    @property
    def mapping_path(self) -> Path:
        return resolve_config_path(self.mapping)

    @property
    def coverage_path(self) -> Path:
        return resolve_config_path(self.coverage)


def _is_frozen() -> bool:
    return getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS")


def _project_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env)
    if _is_frozen():
        return Path(getattr(sys, "_MEIPASS"))  # type: ignore[arg-type]
    # In source layout, this file is under <root>/cellbind/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return _project_root() / "cellbind" / "config"


def _work_dir() -> Path:
    env = os.getenv(WORK_DIR_ENV)
    if env:
        return Path(env)
    return Path.cwd() / "cellbind_work"


def ensure_work_dirs() -> dict[str, Path]:
    base = _work_dir()
    out = base / "out"
    logs = base / "logs"
    for p in (out, logs):
        p.mkdir(parents=True, exist_ok=True)
    return {"out": out, "logs": logs}


def _parse_extent(raw: Any, key: str) -> TemplateExtent | None:
    if raw is None:
        return None
    if not isinstance(raw, dict) or {"max_row", "max_column"} - raw.keys():
        raise ProfileError(f"Profile '{key}': extent needs max_row and max_column")
    try:
        extent = TemplateExtent(max_row=int(raw["max_row"]), max_column=int(raw["max_column"]))
    except (TypeError, ValueError) as e:
        raise ProfileError(f"Profile '{key}': extent must be integers: {e}") from e
    if extent.max_row < 1 or extent.max_column < 1:
        raise ProfileError(f"Profile '{key}': extent must be positive")
    return extent


def load_profiles(path: str | Path | None = None) -> dict[str, TemplateProfile]:
    """Load template profiles from config/profiles.yaml.

    ``CELLBIND_PROFILES`` overrides the default location. Returns a dict of
    profile-key -> TemplateProfile.
    """
    env_path = os.getenv(PROFILES_ENV)
    cfg_path = Path(path) if path else Path(env_path) if env_path else _config_dir() / "profiles.yaml"
    if not cfg_path.exists():
        raise ProfileError(f"profiles.yaml not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ProfileError(f"profiles.yaml is not valid YAML: {e}") from e
    profiles_raw = data.get("profiles", {}) if isinstance(data, dict) else {}
    if not profiles_raw:
        raise ProfileError("No profiles defined in profiles.yaml")

    profiles: dict[str, TemplateProfile] = {}
    for key, p in profiles_raw.items():
        if not isinstance(p, dict):
            raise ProfileError(f"Profile '{key}' must be a mapping")
        missing = [field for field in ("template", "mapping", "coverage") if not p.get(field)]
        if missing:
            raise ProfileError(f"Profile '{key}' missing keys: {', '.join(missing)}")
        profiles[key] = TemplateProfile(
            name=key,
            display_name=p.get("display_name", key),
            model=p.get("model", key),
            template=str(p["template"]),
            mapping=str(p["mapping"]),
            coverage=str(p["coverage"]),
            output_name=p.get("output_name", f"{key}_{{date}}.xlsx"),
            extent=_parse_extent(p.get("extent"), key),
            meta=p.get("meta", {}),
        )
    return profiles


def get_profile(name: str, path: str | Path | None = None) -> TemplateProfile:
    profiles = load_profiles(path)
    try:
        return profiles[name]
    except KeyError:
        raise ProfileError(
            f"Unknown profile '{name}' (available: {', '.join(sorted(profiles))})"
        ) from None


def resolve_config_path(path: str | Path) -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    # Support paths with or without leading 'cellbind/'
    parts = p.parts
    if parts and parts[0] == "cellbind":
        return _project_root() / p
    return _project_root() / "cellbind" / p
