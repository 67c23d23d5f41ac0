"""Mapping registry for template-bound cell writes."""

# Module responsibilities:
# - Hold the immutable, sectioned table of cell mappings for one template workbook.
# - Validate registry invariants once, at load, before any workbook I/O happens.
# - Load registries from YAML configuration files.

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional

import yaml

from . import address as address_codec
from .errors import ConfigurationError, InvalidAddress, PathError
from .resolver import split_path
from .schema import (
    CellMapping,
    CellMappingPayload,
    MappingSummary,
    RegistryPayload,
    Section,
    SectionPayload,
    SectionSummary,
    ValueType,
)


@dataclass(frozen=True)
class MappingRegistry:
    """Ordered sections of cell mappings bound to a template workbook.

    Mappings target the registry's ``sheet`` unless their section names another.

    Build instances through :meth:`build` or :func:`load_registry`; both run
    the invariant checks. The registry is read-only afterwards and safe to
    share between concurrent exports.
    """

    name: str
    sheet: str
    sections: tuple[Section, ...]

    @classmethod
    def build(cls, name: str, sheet: str, sections: Iterable[Section]) -> "MappingRegistry":
        sections = tuple(_with_section_sheet(section) for section in sections)
        registry = cls(name=name, sheet=sheet, sections=sections)
        registry._check()
        return registry

    def _check(self) -> None:
        if not self.sheet:
            raise ConfigurationError(f"Registry '{self.name}' does not name a target sheet")
        seen_sections: set[str] = set()
        seen_addresses: dict[tuple[str, str], CellMapping] = {}
        for section in self.sections:
            if section.name in seen_sections:
                raise ConfigurationError(
                    f"Registry '{self.name}' declares section '{section.name}' twice"
                )
            seen_sections.add(section.name)
            for mapping in section.mappings:
                self._check_mapping(section, mapping)
                key = (self.sheet_of(mapping), mapping.address)
                previous = seen_addresses.get(key)
                if previous is not None and not mapping.is_alias:
                    raise ConfigurationError(
                        f"Duplicate address {mapping.location(self.sheet)} in registry '{self.name}': "
                        f"'{previous.data_path}' and '{mapping.data_path}' "
                        "(flag intended aliases with a note starting 'alias:')"
                    )
                seen_addresses.setdefault(key, mapping)

    def _check_mapping(self, section: Section, mapping: CellMapping) -> None:
        where = f"{self.name}/{section.name}"
        try:
            address_codec.decode(mapping.address)
        except InvalidAddress as exc:
            raise ConfigurationError(f"{where}: {exc}") from exc
        try:
            split_path(mapping.data_path)
        except PathError as exc:
            raise ConfigurationError(f"{where} {mapping.address}: {exc}") from exc
        if not isinstance(mapping.value_type, ValueType):
            raise ConfigurationError(
                f"{where} {mapping.address}: unknown value type {mapping.value_type!r}"
            )
        if mapping.value_type is ValueType.FORMULA and mapping.verified:
            raise ConfigurationError(
                f"{where} {mapping.address}: formula cell '{mapping.data_path}' cannot be verified"
            )
        if (mapping.match or mapping.glyphs) and mapping.value_type is not ValueType.BOOLEAN:
            raise ConfigurationError(
                f"{where} {mapping.address}: 'match' and 'glyphs' only apply to boolean cells"
            )
        if mapping.text_format:
            if mapping.value_type is not ValueType.TEXT:
                raise ConfigurationError(f"{where} {mapping.address}: 'format' only applies to text cells")
            if "{value}" not in mapping.text_format:
                raise ConfigurationError(
                    f"{where} {mapping.address}: format {mapping.text_format!r} has no {{value}} placeholder"
                )

    def sheet_of(self, mapping: CellMapping) -> str:
        """Worksheet a mapping writes to: its own sheet, else the registry's."""

        return mapping.sheet or self.sheet

    def sheets(self) -> list[str]:
        """Target worksheets in first-use order, the registry's sheet first."""

        names = [self.sheet]
        for mapping in self:
            sheet = self.sheet_of(mapping)
            if sheet not in names:
                names.append(sheet)
        return names

    def mappings_for(self, sheet: str) -> list[CellMapping]:
        return [m for m in self if self.sheet_of(m) == sheet]

    def __iter__(self) -> Iterator[CellMapping]:
        for section in self.sections:
            yield from section.mappings

    def __len__(self) -> int:
        return sum(len(section.mappings) for section in self.sections)

    @property
    def mappings(self) -> tuple[CellMapping, ...]:
        return tuple(self)

    def verified_mappings(self) -> list[CellMapping]:
        return [m for m in self if m.verified]

    def unverified_mappings(self) -> list[CellMapping]:
        return [m for m in self if not m.verified]

    def data_paths(self) -> set[str]:
        """All data paths present in the registry, irrespective of ``verified``."""

        return {m.data_path for m in self}

    def by_address(self, address: str, sheet: Optional[str] = None) -> Optional[CellMapping]:
        target = sheet or self.sheet
        for mapping in self:
            if mapping.address == address and self.sheet_of(mapping) == target:
                return mapping
        return None

    def by_data_path(self, data_path: str) -> Optional[CellMapping]:
        for mapping in self:
            if mapping.data_path == data_path:
                return mapping
        return None

    def section(self, name: str) -> Section:
        for section in self.sections:
            if section.name == name:
                return section
        raise KeyError(name)

    def summary(self) -> MappingSummary:
        return MappingSummary(
            registry=self.name,
            sections=tuple(
                SectionSummary(
                    name=section.name,
                    total=len(section.mappings),
                    verified=sum(1 for m in section.mappings if m.verified),
                )
                for section in self.sections
            ),
        )


def _with_section_sheet(section: Section) -> Section:
    if not section.sheet:
        return section
    mappings = tuple(m if m.sheet else replace(m, sheet=section.sheet) for m in section.mappings)
    return replace(section, mappings=mappings)


def _parse_value_type(raw: Any, where: str) -> ValueType:
    try:
        return ValueType(str(raw))
    except ValueError as exc:
        allowed = ", ".join(v.value for v in ValueType)
        raise ConfigurationError(f"{where}: unknown type {raw!r} (expected one of {allowed})") from exc


def _parse_flag(raw: CellMappingPayload, key: str, where: str) -> bool:
    value = raw.get(key, False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{where}: '{key}' must be true or false, got {value!r}")
    return value


def _parse_glyphs(raw: CellMappingPayload, where: str) -> Optional[tuple[str, str]]:
    glyphs = raw.get("glyphs")
    if glyphs is None:
        return None
    if not isinstance(glyphs, list) or len(glyphs) != 2 or not all(isinstance(g, str) for g in glyphs):
        raise ConfigurationError(f"{where}: 'glyphs' must be a [true, false] pair of strings")
    return glyphs[0], glyphs[1]


def _parse_cell(raw: CellMappingPayload, where: str, sheet: Optional[str]) -> CellMapping:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{where}: cell entry must be a mapping")
    required = {"address", "path", "type"}
    if missing := required - raw.keys():
        raise ConfigurationError(f"{where}: cell entry missing keys: {', '.join(sorted(missing))}")
    where = f"{where} {raw['address']}"
    return CellMapping(
        address=str(raw["address"]),
        data_path=str(raw["path"]),
        value_type=_parse_value_type(raw["type"], where),
        verified=_parse_flag(raw, "verified", where),
        note=str(raw.get("note") or ""),
        description=str(raw.get("description") or ""),
        required=_parse_flag(raw, "required", where),
        sheet=sheet,
        text_format=str(raw.get("format") or ""),
        match=str(raw.get("match") or ""),
        glyphs=_parse_glyphs(raw, where),
    )


def _parse_section(raw: SectionPayload, registry_name: str) -> Section:
    section_name = str(raw["name"])
    where = f"{registry_name}/{section_name}"
    cells = raw.get("cells") or []
    if not isinstance(cells, list):
        raise ConfigurationError(f"{where}: cells must be a list")
    sheet = raw.get("sheet")
    if sheet is not None and (not isinstance(sheet, str) or not sheet):
        raise ConfigurationError(f"{where}: 'sheet' must be a non-empty string")
    return Section(
        name=section_name,
        description=str(raw.get("description") or ""),
        sheet=sheet,
        mappings=tuple(_parse_cell(cell, where, sheet) for cell in cells),
    )


def registry_from_payload(payload: RegistryPayload, *, default_name: str = "registry") -> MappingRegistry:
    """Build a registry from a decoded YAML/JSON payload.

    A section may name its own ``sheet``; its cells are written there instead
    of the registry's sheet.
    """

    if not isinstance(payload, Mapping):
        raise ConfigurationError("Invalid registry structure (expected mapping)")
    if missing := {"sheet", "sections"} - payload.keys():
        raise ConfigurationError(f"Registry missing required keys: {', '.join(sorted(missing))}")
    name = str(payload.get("name") or default_name)
    raw_sections = payload["sections"]
    if not isinstance(raw_sections, list):
        raise ConfigurationError(f"Registry '{name}': sections must be a list")

    sections: list[Section] = []
    for idx, raw_section in enumerate(raw_sections):
        if not isinstance(raw_section, Mapping) or "name" not in raw_section:
            raise ConfigurationError(f"Registry '{name}': section #{idx + 1} needs a name")
        sections.append(_parse_section(raw_section, name))
    return MappingRegistry.build(name=name, sheet=str(payload["sheet"]), sections=sections)


def load_registry(path: Path) -> MappingRegistry:
    """Load and validate a mapping registry from a YAML file."""

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Mapping registry not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        try:
            payload = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Mapping registry {path} is not valid YAML: {exc}") from exc
    return registry_from_payload(payload, default_name=path.stem)


__all__ = ["MappingRegistry", "load_registry", "registry_from_payload"]
