from __future__ import annotations

from pathlib import Path

import pytest

from cellbind.config import DEFAULT_PROFILES_PATH, allowlist_path, registry_path
from cellbind.core import profiles as profiles_mod
from cellbind.core.errors import ProfileError
from cellbind.core.profiles import ensure_work_dirs, get_profile, load_profiles, resolve_config_path
from cellbind_io.errors import ConfigurationError
from cellbind_io.schema import TemplateExtent


def test_packaged_profiles_resolve_config_files() -> None:
    profiles = load_profiles(DEFAULT_PROFILES_PATH)

    assert set(profiles) == {"fund_plan", "contract"}
    fund_plan = profiles["fund_plan"]
    assert fund_plan.display_name == "資金計画書"
    assert fund_plan.extent == TemplateExtent(max_row=100, max_column=105)
    assert fund_plan.mapping_path == registry_path("fund_plan")
    assert fund_plan.coverage_path == allowlist_path("fund_plan")
    assert fund_plan.template_path.name == "fund_plan.xlsx"
    assert profiles["contract"].extent is None


def test_profiles_env_override(monkeypatch: pytest.MonkeyPatch, profiles_file: Path, fund_plan_template: Path) -> None:
    monkeypatch.setenv(profiles_mod.PROFILES_ENV, str(profiles_file))
    profile = get_profile("fund_plan")
    assert profile.template_path == fund_plan_template


def test_root_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(profiles_mod.ROOT_ENV, str(tmp_path))
    assert resolve_config_path("templates/fund_plan.xlsx") == tmp_path / "cellbind" / "templates" / "fund_plan.xlsx"
    assert resolve_config_path("cellbind/config/profiles.yaml") == tmp_path / "cellbind" / "config" / "profiles.yaml"
    assert resolve_config_path(tmp_path / "abs.xlsx") == tmp_path / "abs.xlsx"


def test_unknown_profile(profiles_file: Path) -> None:
    with pytest.raises(ProfileError, match="available: contract, fund_plan"):
        get_profile("estimate", profiles_file)


@pytest.mark.parametrize(
    "content, message",
    [
        ("profiles: {}\n", "No profiles"),
        ("profiles:\n  fund_plan: {template: t.xlsx}\n", "missing keys: mapping, coverage"),
        (
            "profiles:\n  fund_plan: {template: t.xlsx, mapping: m.yaml, coverage: c.yaml, extent: {max_row: 10}}\n",
            "extent needs",
        ),
        (
            "profiles:\n  fund_plan: {template: t.xlsx, mapping: m.yaml, coverage: c.yaml,"
            " extent: {max_row: 0, max_column: 3}}\n",
            "positive",
        ),
        ("profiles: [unclosed\n", "not valid YAML"),
    ],
)
def test_invalid_profiles(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ProfileError, match=message):
        load_profiles(path)


def test_missing_profiles_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_profiles(tmp_path / "absent.yaml")


def test_profile_defaults(tmp_path: Path) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text("profiles:\n  estimate: {template: t.xlsx, mapping: m.yaml, coverage: c.yaml}\n", encoding="utf-8")
    profile = load_profiles(path)["estimate"]
    assert profile.display_name == "estimate"
    assert profile.model == "estimate"
    assert profile.output_name == "estimate_{date}.xlsx"


def test_ensure_work_dirs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(profiles_mod.WORK_DIR_ENV, str(tmp_path / "work"))
    dirs = ensure_work_dirs()
    assert dirs["out"] == tmp_path / "work" / "out"
    assert dirs["out"].is_dir() and dirs["logs"].is_dir()
