"""Coverage allow-lists: fields deliberately left without an input cell."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cellbind.core.errors import AllowListError

EXCLUDED = "excluded"
FORMULA = "formula"
NEEDS_INVESTIGATION = "needs_investigation"
CATEGORIES = (EXCLUDED, FORMULA, NEEDS_INVESTIGATION)

_GLOB_CHARS = frozenset("*?[")


class AllowListEntry(BaseModel):
    """A data path (or fnmatch pattern) with the reason it is allow-listed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    reason: str = ""

    @field_validator("path")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("path must not be empty")
        return value

    @property
    def is_pattern(self) -> bool:
        return any(ch in _GLOB_CHARS for ch in self.path)

    def matches(self, data_path: str) -> bool:
        if self.is_pattern:
            return fnmatchcase(data_path, self.path)
        return data_path == self.path


class AllowListFile(BaseModel):
    """Schema of a coverage allow-list YAML file."""

    model_config = ConfigDict(extra="forbid")

    excluded: List[AllowListEntry] = Field(default_factory=list)
    formula: List[AllowListEntry] = Field(default_factory=list)
    needs_investigation: List[AllowListEntry] = Field(default_factory=list)

    @field_validator("excluded", "formula", "needs_investigation", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"path": item} if isinstance(item, str) else item for item in value]
        return value


def _entries(items: Iterable[AllowListEntry | str]) -> Tuple[AllowListEntry, ...]:
    return tuple(item if isinstance(item, AllowListEntry) else AllowListEntry(path=item) for item in items)


@dataclass(frozen=True)
class AllowLists:
    """Immutable set of allow-listed field paths handed to the coverage validator."""

    excluded: Tuple[AllowListEntry, ...] = ()
    formula: Tuple[AllowListEntry, ...] = ()
    needs_investigation: Tuple[AllowListEntry, ...] = ()

    @classmethod
    def build(
        cls,
        excluded: Iterable[AllowListEntry | str] = (),
        formula: Iterable[AllowListEntry | str] = (),
        needs_investigation: Iterable[AllowListEntry | str] = (),
    ) -> "AllowLists":
        return cls(
            excluded=_entries(excluded),
            formula=_entries(formula),
            needs_investigation=_entries(needs_investigation),
        )

    @classmethod
    def from_file(cls, data: AllowListFile) -> "AllowLists":
        return cls.build(data.excluded, data.formula, data.needs_investigation)

    def __iter__(self) -> Iterator[Tuple[str, AllowListEntry]]:
        for category in CATEGORIES:
            for entry in getattr(self, category):
                yield category, entry

    def match(self, data_path: str) -> Optional[Tuple[str, AllowListEntry]]:
        """Return the first ``(category, entry)`` covering ``data_path``.

        Categories are checked in the order excluded, formula, needs_investigation.
        """

        for category, entry in self:
            if entry.matches(data_path):
                return category, entry
        return None


def load_allow_lists(path: str | Path) -> AllowLists:
    """Load allow-lists from a YAML file."""

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise AllowListError(f"Coverage allow-list not found: {cfg_path}")
    yaml = YAML(typ="safe")
    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh) or {}
    except YAMLError as exc:
        raise AllowListError(f"Coverage allow-list {cfg_path} is not valid YAML: {exc}") from exc
    try:
        parsed = AllowListFile.model_validate(data)
    except ValidationError as exc:
        raise AllowListError(f"Invalid coverage allow-list {cfg_path}: {exc}") from exc
    return AllowLists.from_file(parsed)


__all__ = [
    "AllowListEntry",
    "AllowListFile",
    "AllowLists",
    "CATEGORIES",
    "EXCLUDED",
    "FORMULA",
    "NEEDS_INVESTIGATION",
    "load_allow_lists",
]
