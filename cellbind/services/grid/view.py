"""Dense grid projection of a document model for spreadsheet-style editing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd
from openpyxl.utils.cell import get_column_letter

from cellbind_io import resolver
from cellbind_io.address import decode, encode
from cellbind_io.coercion import SKIP, mapped_cell_value, parse_from_cell_value
from cellbind_io.errors import CoercionError, PathError
from cellbind_io.schema import CellMapping

LOGGER = logging.getLogger(__name__)

Grid = List[List[Any]]


def _display_value(model: Any, mapping: CellMapping) -> Any:
    value = resolver.get(model, mapping.data_path)
    try:
        cell_value = mapped_cell_value(value, mapping)
    except CoercionError:
        return None
    return None if cell_value is SKIP else cell_value


def _index(mappings: Iterable[CellMapping], sheet: Optional[str] = None) -> Dict[Tuple[int, int], CellMapping]:
    indexed: Dict[Tuple[int, int], CellMapping] = {}
    for mapping in mappings:
        if mapping.sheet != sheet:
            continue
        indexed.setdefault(tuple(decode(mapping.address)), mapping)
    return indexed


def _bounds(indexed: Dict[Tuple[int, int], CellMapping]) -> Tuple[int, int]:
    if not indexed:
        return 0, 0
    return max(r for r, _ in indexed) + 1, max(c for _, c in indexed) + 1


def build_grid(
    model: Any,
    mappings: Iterable[CellMapping],
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    *,
    sheet: Optional[str] = None,
) -> Grid:
    """Project mapped model values onto a ``rows x cols`` grid.

    Only mappings bound to ``sheet`` are shown; the default keeps those
    without a sheet of their own. Cells without a mapping, or whose value is
    missing or cannot be coerced, hold ``None``. Default bounds are the
    smallest grid containing every shown mapping.
    """

    indexed = _index(mappings, sheet)
    default_rows, default_cols = _bounds(indexed)
    rows = default_rows if rows is None else rows
    cols = default_cols if cols is None else cols
    grid: Grid = [[None] * cols for _ in range(rows)]
    for (row, col), mapping in indexed.items():
        if row < rows and col < cols:
            grid[row][col] = _display_value(model, mapping)
    return grid


@dataclass(frozen=True)
class EditResult:
    """Outcome of a grid edit; rejected edits leave the model untouched."""

    accepted: bool
    row: int
    col: int
    address: str
    data_path: Optional[str] = None
    value: Any = None
    reason: str = ""


class GridView:
    """Editable grid over a document.

    Edits write back through the mapping's data path, so the model must be a
    mutable mapping tree (e.g. ``FundPlanData().to_document()``) or a
    pydantic document model. ``sheet`` selects the mappings of a secondary
    sheet; by default the grid shows the mappings without a sheet of their own.
    """

    def __init__(
        self,
        model: Any,
        mappings: Iterable[CellMapping],
        *,
        rows: Optional[int] = None,
        cols: Optional[int] = None,
        locked: bool = False,
        sheet: Optional[str] = None,
    ) -> None:
        self.model = model
        self.locked = locked
        self.sheet = sheet
        self._mappings = _index(mappings, sheet)
        default_rows, default_cols = _bounds(self._mappings)
        self.rows = default_rows if rows is None else rows
        self.cols = default_cols if cols is None else cols
        self._grid = build_grid(model, self._mappings.values(), self.rows, self.cols, sheet=sheet)

    @property
    def grid(self) -> Grid:
        return self._grid

    def mapping_at(self, row: int, col: int) -> Optional[CellMapping]:
        return self._mappings.get((row, col))

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def value_at(self, row: int, col: int) -> Any:
        if self.in_bounds(row, col):
            return self._grid[row][col]
        return None

    def is_editable(self, row: int, col: int) -> bool:
        if self.locked or not self.in_bounds(row, col):
            return False
        mapping = self.mapping_at(row, col)
        # derived cells render the field, so an edit cannot be parsed back
        return mapping is not None and mapping.writable and not mapping.derived

    def on_cell_edit(self, row: int, col: int, raw: Any) -> EditResult:
        """Apply a user edit at ``(row, col)`` to the model."""

        if not self.in_bounds(row, col):
            return EditResult(False, row, col, "", reason=f"({row}, {col}) is outside the grid")
        address = encode(row, col)
        mapping = self.mapping_at(row, col)
        if not self.is_editable(row, col):
            reason = "grid is locked" if self.locked else "cell is not an editable mapped cell"
            return EditResult(False, row, col, address, mapping.data_path if mapping else None, reason=reason)

        try:
            parsed = parse_from_cell_value(raw, mapping.value_type)
            resolver.set(self.model, mapping.data_path, parsed)
        except (CoercionError, PathError) as exc:
            LOGGER.warning("Rejected edit at %s (%s): %s", address, mapping.data_path, exc)
            return EditResult(False, row, col, address, mapping.data_path, reason=str(exc))

        self._grid[row][col] = _display_value(self.model, mapping)
        LOGGER.debug("Applied edit at %s -> %s = %r", address, mapping.data_path, parsed)
        return EditResult(True, row, col, address, mapping.data_path, value=parsed)

    def to_frame(self) -> pd.DataFrame:
        """Grid as a DataFrame with column letters and 1-based row numbers."""

        columns = [get_column_letter(idx + 1) for idx in range(self.cols)]
        return pd.DataFrame(self._grid, columns=columns, index=pd.RangeIndex(1, self.rows + 1))


__all__ = ["EditResult", "GridView", "build_grid"]
