"""Shared schemas for mapping registries and template layout."""

# Module responsibilities:
# - Provide immutable containers for cell mappings and their sections.
# - Define lightweight layout metadata that makes template bounds explicit.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NotRequired, Optional, TypedDict

ALIAS_NOTE_PREFIX = "alias:"


class ValueType(str, Enum):
    """Cell-native representation declared by a mapping."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATE_SERIAL = "dateSerial"
    BOOLEAN = "boolean"
    FORMULA = "formula"


@dataclass(frozen=True)
class CellMapping:
    """Binding of one domain-model field path to one template cell."""

    address: str
    data_path: str
    value_type: ValueType
    verified: bool = False
    note: str = ""
    description: str = ""
    required: bool = False
    sheet: Optional[str] = None
    text_format: str = ""
    match: str = ""
    glyphs: Optional[tuple[str, str]] = None

    @property
    def is_alias(self) -> bool:
        """True when the note flags this mapping as an intended address alias."""

        return self.note.strip().lower().startswith(ALIAS_NOTE_PREFIX)

    @property
    def writable(self) -> bool:
        return self.verified and self.value_type is not ValueType.FORMULA

    @property
    def derived(self) -> bool:
        """True when the cell shows a rendering of the field rather than its value."""

        return bool(self.text_format or self.match)

    def location(self, default_sheet: str) -> str:
        """Address, prefixed with its sheet when the mapping targets another sheet."""

        if self.sheet and self.sheet != default_sheet:
            return f"{self.sheet}!{self.address}"
        return self.address


@dataclass(frozen=True)
class Section:
    """Named, ordered group of mappings used for reporting."""

    name: str
    mappings: tuple[CellMapping, ...] = ()
    description: str = ""
    sheet: Optional[str] = None


@dataclass(frozen=True)
class TemplateExtent:
    """Declared 1-based, inclusive bounds of a template sheet."""

    max_row: int
    max_column: int

    def contains(self, row: int, col: int) -> bool:
        """Return True when zero-based ``row``/``col`` lies inside the extent."""

        return 0 <= row < self.max_row and 0 <= col < self.max_column


@dataclass(frozen=True)
class SectionSummary:
    name: str
    total: int
    verified: int


@dataclass(frozen=True)
class MappingSummary:
    """Verification status of a registry, section by section."""

    registry: str
    sections: tuple[SectionSummary, ...] = field(default_factory=tuple)

    @property
    def total_sections(self) -> int:
        return len(self.sections)

    @property
    def total_cells(self) -> int:
        return sum(s.total for s in self.sections)

    @property
    def verified_cells(self) -> int:
        return sum(s.verified for s in self.sections)

    @property
    def unverified_cells(self) -> int:
        return self.total_cells - self.verified_cells

    @property
    def empty_sections(self) -> list[str]:
        return [s.name for s in self.sections if s.total == 0]

    @property
    def verified_ratio(self) -> Optional[float]:
        if not self.total_cells:
            return None
        return self.verified_cells / self.total_cells


class CellMappingPayload(TypedDict):
    """Schema for one cell entry in a registry YAML file."""

    address: str
    path: str
    type: str
    verified: NotRequired[bool]
    note: NotRequired[str]
    description: NotRequired[str]
    required: NotRequired[bool]
    format: NotRequired[str]
    match: NotRequired[str]
    glyphs: NotRequired[list[str]]


class SectionPayload(TypedDict):
    """Schema for one section entry in a registry YAML file."""

    name: str
    description: NotRequired[str]
    sheet: NotRequired[str]
    cells: list[CellMappingPayload]


class RegistryPayload(TypedDict):
    """Schema for a registry YAML file."""

    name: NotRequired[str]
    sheet: str
    sections: list[SectionPayload]
