"""Exceptions raised by the cell binding engine."""

# Module responsibilities:
# - Separate fatal configuration/resource failures from recoverable per-cell problems.
# - Keep per-cell failures as values so the writer can collect them instead of aborting.

from __future__ import annotations

from typing import Optional


class CellBindError(Exception):
    """Base error for the engine."""


class ConfigurationError(CellBindError):
    """Raised when a mapping registry or allow-list is invalid at load time."""


class InvalidAddress(CellBindError, ValueError):
    """Raised when a cell address does not match ``[A-Z]+[1-9][0-9]*``."""

    def __init__(self, address: object, reason: str = "does not match [A-Z]+[1-9][0-9]*") -> None:
        super().__init__(f"Invalid cell address {address!r}: {reason}")
        self.address = address


class PathError(CellBindError, ValueError):
    """Raised when a dotted data path is malformed or cannot be assigned."""


class ResourceError(CellBindError):
    """Raised when a template resource cannot be opened."""


class TemplateNotFound(ResourceError, FileNotFoundError):
    """Raised when the template workbook is absent."""


class SheetNotFound(ResourceError):
    """Raised when the target worksheet is missing from the template."""

    def __init__(self, sheet: str, available: Optional[list[str]] = None) -> None:
        detail = f" (available: {', '.join(available)})" if available else ""
        super().__init__(f"Sheet '{sheet}' not found in template{detail}")
        self.sheet = sheet
        self.available = list(available or [])


class CoercionError(CellBindError, ValueError):
    """Raised when a value has a shape the declared cell type cannot represent."""


class PerCellError(CellBindError):
    """A recoverable failure for a single mapped cell.

    Instances are collected into the export result rather than raised, so one
    bad cell never blocks the remaining writes.
    """

    OUT_OF_EXTENT = "out_of_extent"
    COERCION = "coercion"
    MERGED_CELL = "merged_cell"
    WRITE = "write"

    def __init__(self, address: str, data_path: str, kind: str, message: str) -> None:
        super().__init__(f"{address} ({data_path}): {message}")
        self.address = address
        self.data_path = data_path
        self.kind = kind
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {
            "address": self.address,
            "data_path": self.data_path,
            "kind": self.kind,
            "message": self.message,
        }


__all__ = [
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
