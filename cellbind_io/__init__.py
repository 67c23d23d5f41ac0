"""`cellbind_io` top-level package exports the template binding engine."""

# Module responsibilities:
# - Re-export the address codec, registry, coercion and Excel I/O interfaces so consumers have a stable API surface.
# - Provide the package version.

from __future__ import annotations

from .address import CellPosition, decode, encode
from .coercion import MARKER_GLYPH, SKIP, parse_from_cell_value, to_cell_value
from .errors import (
    CellBindError,
    CoercionError,
    ConfigurationError,
    InvalidAddress,
    PathError,
    PerCellError,
    ResourceError,
    SheetNotFound,
    TemplateNotFound,
)
from .excel_reader import TemplateInspection, inspect_template, read_mapped_values
from .excel_writer import CellStyleSnapshot, ExportResult, write_mapped
from .mapping import MappingRegistry, load_registry, registry_from_payload
from .resolver import ABSENT
from .schema import CellMapping, Section, TemplateExtent, ValueType

__all__ = [
    "ABSENT",
    "SKIP",
    "MARKER_GLYPH",
    "CellPosition",
    "encode",
    "decode",
    "to_cell_value",
    "parse_from_cell_value",
    "CellMapping",
    "Section",
    "TemplateExtent",
    "ValueType",
    "MappingRegistry",
    "load_registry",
    "registry_from_payload",
    "CellStyleSnapshot",
    "ExportResult",
    "write_mapped",
    "TemplateInspection",
    "inspect_template",
    "read_mapped_values",
    "CellBindError",
    "ConfigurationError",
    "InvalidAddress",
    "PathError",
    "ResourceError",
    "TemplateNotFound",
    "SheetNotFound",
    "CoercionError",
    "PerCellError",
]

__version__ = "0.1.0"
