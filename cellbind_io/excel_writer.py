"""Excel output helpers for writing mapped values into templates."""

# Module responsibilities:
# - Clone a template workbook in memory and write only verified, mapped cells,
#   on the primary sheet or on the sheet a mapping names.
# - Preserve each written cell's style by snapshotting it before the value change.
# - Collect per-cell failures so one bad cell never blocks the rest of the export.

from __future__ import annotations

import os
from copy import copy
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Tuple, Union

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.styles import Alignment, Border, Font, Protection
from openpyxl.styles.fills import Fill
from openpyxl.worksheet.worksheet import Worksheet

from . import address as address_codec
from . import resolver
from .coercion import SKIP, mapped_cell_value
from .errors import CoercionError, PerCellError, SheetNotFound, TemplateNotFound
from .schema import CellMapping, TemplateExtent, ValueType
from .utils.log import get_logger

logger = get_logger("excel_writer")

TemplateSource = Union[Path, str, bytes]
OutputTarget = Union[Path, str, BinaryIO, None]


@dataclass(frozen=True)
class CellStyleSnapshot:
    """Value copy of a cell's formatting, taken before its value changes."""

    font: Font
    fill: Fill
    border: Border
    alignment: Alignment
    protection: Protection
    number_format: str

    @classmethod
    def capture(cls, cell: Cell) -> "CellStyleSnapshot":
        return cls(
            font=copy(cell.font),
            fill=copy(cell.fill),
            border=copy(cell.border),
            alignment=copy(cell.alignment),
            protection=copy(cell.protection),
            number_format=str(cell.number_format),
        )

    def apply(self, cell: Cell) -> None:
        cell.font = copy(self.font)
        cell.fill = copy(self.fill)
        cell.border = copy(self.border)
        cell.alignment = copy(self.alignment)
        cell.protection = copy(self.protection)
        cell.number_format = self.number_format


@dataclass
class ExportWarning:
    """Non-blocking notice raised while exporting (e.g. a required value is missing)."""

    kind: str
    message: str
    address: Optional[str] = None
    data_path: Optional[str] = None


@dataclass
class ExportResult:
    """Outcome of one template export."""

    sheet: str
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)
    failures: List[PerCellError] = field(default_factory=list)
    warnings: List[ExportWarning] = field(default_factory=list)
    content: Optional[bytes] = None
    output_path: Optional[Path] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


def _read_template(template: TemplateSource) -> tuple[bytes, bool]:
    if isinstance(template, bytes):
        return template, False
    path = Path(template)
    if not path.is_file():
        raise TemplateNotFound(f"Template workbook not found: {path}")
    return path.read_bytes(), path.suffix.lower() == ".xlsm"


def open_template(template: TemplateSource) -> Workbook:
    """Load a fresh, independent in-memory copy of the template workbook."""

    payload, keep_vba = _read_template(template)
    return load_workbook(BytesIO(payload), keep_vba=keep_vba)


def select_sheet(workbook: Workbook, sheet: str) -> Worksheet:
    if sheet not in workbook.sheetnames:
        raise SheetNotFound(sheet, workbook.sheetnames)
    return workbook[sheet]


def sheet_extent(ws: Worksheet) -> TemplateExtent:
    return TemplateExtent(max_row=ws.max_row, max_column=ws.max_column)


def _atomic_write(content: bytes, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(content)
    os.replace(tmp_path, path)


def _write_cell(ws: Worksheet, mapping: CellMapping, value: Any, extent: TemplateExtent, location: str) -> None:
    row, col = address_codec.decode(mapping.address)
    if not extent.contains(row, col):
        raise PerCellError(
            location,
            mapping.data_path,
            PerCellError.OUT_OF_EXTENT,
            f"address lies outside the template extent "
            f"({extent.max_row} rows x {extent.max_column} columns)",
        )
    cell = ws.cell(row=row + 1, column=col + 1)
    if isinstance(cell, MergedCell):
        raise PerCellError(
            location,
            mapping.data_path,
            PerCellError.MERGED_CELL,
            "address is inside a merged region but is not its top-left cell",
        )
    snapshot = CellStyleSnapshot.capture(cell)
    if cell.data_type == "f":
        logger.debug(
            "Overwriting template formula",
            extra={"address": location, "formula": cell.value},
        )
    cell.value = value
    if mapping.value_type is ValueType.TEXT and isinstance(value, str):
        cell.data_type = "s"
    snapshot.apply(cell)


class _SheetTargets:
    """Worksheets addressed by one export, resolved on first use."""

    def __init__(self, workbook: Workbook, primary: str, extent: TemplateExtent) -> None:
        self.workbook = workbook
        self.primary = primary
        self._resolved: Dict[str, Optional[Tuple[Worksheet, TemplateExtent]]] = {
            primary: (workbook[primary], extent)
        }

    def get(self, name: str) -> Optional[Tuple[Worksheet, TemplateExtent]]:
        if name not in self._resolved:
            if name in self.workbook.sheetnames:
                ws = self.workbook[name]
                self._resolved[name] = (ws, sheet_extent(ws))
            else:
                self._resolved[name] = None
        return self._resolved[name]


def _apply_mappings(
    targets: _SheetTargets,
    mappings: Iterable[CellMapping],
    model: Any,
    result: ExportResult,
    *,
    dry_run: bool,
) -> None:
    missing_sheets: Dict[str, int] = {}
    for mapping in mappings:
        location = mapping.location(targets.primary)
        if not mapping.writable:
            result.ignored.append(location)
            continue

        target = targets.get(mapping.sheet or targets.primary)
        if target is None:
            result.skipped.append(location)
            missing_sheets[mapping.sheet] = missing_sheets.get(mapping.sheet, 0) + 1
            continue
        ws, extent = target

        value = resolver.get(model, mapping.data_path)
        if value is resolver.ABSENT or value is None:
            result.skipped.append(location)
            if mapping.required:
                result.warnings.append(
                    ExportWarning(
                        kind="missing_value",
                        message=f"Required field '{mapping.description or mapping.data_path}' has no value",
                        address=location,
                        data_path=mapping.data_path,
                    )
                )
            continue

        try:
            cell_value = mapped_cell_value(value, mapping)
        except CoercionError as exc:
            result.failures.append(
                PerCellError(location, mapping.data_path, PerCellError.COERCION, str(exc))
            )
            continue
        if cell_value is SKIP:
            result.skipped.append(location)
            continue

        if dry_run:
            result.written.append(location)
            continue

        try:
            _write_cell(ws, mapping, cell_value, extent, location)
        except PerCellError as exc:
            result.failures.append(exc)
            continue
        except (AttributeError, TypeError, ValueError) as exc:
            result.failures.append(
                PerCellError(location, mapping.data_path, PerCellError.WRITE, str(exc))
            )
            continue
        result.written.append(location)

    for name, count in missing_sheets.items():
        result.warnings.append(
            ExportWarning(
                kind="sheet_not_found",
                message=f"Sheet '{name}' is not in the template; {count} mapped cell(s) skipped",
            )
        )


def write_mapped(
    template: TemplateSource,
    sheet: str,
    mappings: Iterable[CellMapping],
    model: Any,
    out: OutputTarget = None,
    *,
    extent: Optional[TemplateExtent] = None,
    dry_run: bool = False,
) -> ExportResult:
    """Write mapped model values into a clone of a template workbook.

    Args:
        template: Path to the template workbook, or its raw bytes.
        sheet: Worksheet the mappings address unless they name their own sheet.
        mappings: Cell mappings; only verified, non-formula ones are written.
            Mappings bound to a sheet the template lacks are skipped with a
            ``sheet_not_found`` warning.
        model: Domain model (nested mappings, pydantic model or attribute objects).
        out: Output path or binary stream; ``None`` keeps the artifact in
            ``ExportResult.content`` only.
        extent: Declared bounds of ``sheet``; defaults to its used range. Other
            sheets are bounded by their used range.
        dry_run: When True, plan the writes without serializing anything.

    Returns:
        Export result with the artifact bytes and the per-cell failure list.

    Raises:
        TemplateNotFound: When the template workbook is absent.
        SheetNotFound: When the target worksheet is missing.
    """

    workbook = open_template(template)
    bounds = extent or sheet_extent(select_sheet(workbook, sheet))
    mappings = list(mappings)

    logger.info(
        "Starting template export",
        extra={
            "template": str(template) if not isinstance(template, bytes) else "<bytes>",
            "sheet": sheet,
            "mappings": len(mappings),
            "extent": f"{bounds.max_row}x{bounds.max_column}",
        },
    )

    result = ExportResult(sheet=sheet, dry_run=dry_run)
    _apply_mappings(_SheetTargets(workbook, sheet, bounds), mappings, model, result, dry_run=dry_run)

    if result.ignored:
        logger.info(
            "Skipped unverified or formula mappings",
            extra={"addresses": result.ignored},
        )
    for failure in result.failures:
        logger.warning(
            "Cell write failed",
            extra={"address": failure.address, "kind": failure.kind, "error": failure.message},
        )

    if dry_run:
        logger.info("Dry run: would write cells", extra={"cells": result.written})
        workbook.close()
        return result

    buffer = BytesIO()
    workbook.save(buffer)
    workbook.close()
    result.content = buffer.getvalue()

    if isinstance(out, (str, Path)):
        result.output_path = Path(out)
        _atomic_write(result.content, result.output_path)
    elif out is not None:
        out.write(result.content)

    logger.info(
        "Template export finished",
        extra={
            "written": len(result.written),
            "skipped": len(result.skipped),
            "failures": len(result.failures),
            "output": str(result.output_path) if result.output_path else None,
        },
    )
    return result


__all__ = [
    "CellStyleSnapshot",
    "ExportResult",
    "ExportWarning",
    "open_template",
    "select_sheet",
    "sheet_extent",
    "write_mapped",
]
