"""Excel input helpers for template inspection and output verification."""

# Module responsibilities:
# - Inspect a template sheet against a mapping registry before any export runs.
# - Read mapped cell values back from a generated artifact.
# - Emit structured logs for traceability and future auditing.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from openpyxl.cell.cell import MergedCell
from openpyxl.worksheet.worksheet import Worksheet

from . import address as address_codec
from .excel_writer import open_template, select_sheet, sheet_extent
from .mapping import MappingRegistry
from .schema import CellMapping, TemplateExtent
from .utils.log import get_logger

logger = get_logger("excel_reader")

WorkbookSource = Union[Path, str, bytes]


@dataclass(frozen=True)
class TemplateFinding:
    """One problem spotted while checking a mapping against the template."""

    address: str
    data_path: str
    kind: str
    message: str


@dataclass
class TemplateInspection:
    """Layout facts about a template sheet plus mapping findings."""

    sheet: str
    extent: TemplateExtent
    merged_ranges: int
    print_area: Optional[str]
    formula_cells: int
    findings: List[TemplateFinding] = field(default_factory=list)
    missing_sheets: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings


FORMULA_OVERWRITE = "formula_overwrite"
OUT_OF_EXTENT = "out_of_extent"
MERGED_CELL = "merged_cell"


def _check_mapping(
    ws: Worksheet, mapping: CellMapping, extent: TemplateExtent, location: str
) -> Optional[TemplateFinding]:
    row, col = address_codec.decode(mapping.address)
    if not extent.contains(row, col):
        return TemplateFinding(
            location,
            mapping.data_path,
            OUT_OF_EXTENT,
            f"outside the {extent.max_row}x{extent.max_column} template extent",
        )
    cell = ws.cell(row=row + 1, column=col + 1)
    if isinstance(cell, MergedCell):
        return TemplateFinding(
            location,
            mapping.data_path,
            MERGED_CELL,
            "inside a merged region but not its top-left cell",
        )
    if mapping.verified and cell.data_type == "f":
        return TemplateFinding(
            location,
            mapping.data_path,
            FORMULA_OVERWRITE,
            f"verified mapping would overwrite template formula {cell.value}",
        )
    return None


def _print_area(ws: Worksheet) -> Optional[str]:
    print_area = ws.print_area
    if isinstance(print_area, (list, tuple)):
        print_area = ",".join(str(part) for part in print_area)
    elif print_area:
        print_area = str(print_area)
    return print_area or None


def inspect_template(
    template: WorkbookSource,
    registry: MappingRegistry,
    extent: Optional[TemplateExtent] = None,
) -> TemplateInspection:
    """Check a registry against the layout of its template sheets.

    Args:
        template: Path to the template workbook, or its raw bytes.
        registry: Mapping registry naming the target sheet(s).
        extent: Declared bounds of the registry's sheet; defaults to its used
            range. Other sheets are bounded by their used range.

    Returns:
        Inspection with layout facts of the registry's sheet and one finding
        per problematic mapping. Secondary sheets absent from the template are
        listed in ``missing_sheets``; exports skip their cells.

    Raises:
        TemplateNotFound: When the template workbook is absent.
        SheetNotFound: When the registry's sheet is missing.
    """

    workbook = open_template(template)
    ws = select_sheet(workbook, registry.sheet)
    bounds = extent or sheet_extent(ws)

    formula_cells = sum(
        1 for row in ws.iter_rows() for cell in row if getattr(cell, "data_type", None) == "f"
    )
    inspection = TemplateInspection(
        sheet=registry.sheet,
        extent=bounds,
        merged_ranges=len(ws.merged_cells.ranges),
        print_area=_print_area(ws),
        formula_cells=formula_cells,
    )
    for name in registry.sheets():
        if name == registry.sheet:
            target, target_bounds = ws, bounds
        elif name in workbook.sheetnames:
            target = workbook[name]
            target_bounds = sheet_extent(target)
        else:
            inspection.missing_sheets.append(name)
            continue
        for mapping in registry.mappings_for(name):
            finding = _check_mapping(target, mapping, target_bounds, mapping.location(registry.sheet))
            if finding is not None:
                inspection.findings.append(finding)
    workbook.close()

    logger.info(
        "Template inspected",
        extra={
            "registry": registry.name,
            "sheet": registry.sheet,
            "extent": f"{bounds.max_row}x{bounds.max_column}",
            "findings": len(inspection.findings),
            "missing_sheets": inspection.missing_sheets,
        },
    )
    return inspection


def read_mapped_values(
    artifact: WorkbookSource,
    sheet: str,
    mappings: Iterable[CellMapping],
) -> Dict[str, Any]:
    """Return ``location -> value`` for each mapping, read from an exported workbook.

    Mappings bound to another sheet are keyed ``"<sheet>!<address>"``.
    """

    workbook = open_template(artifact)
    primary = select_sheet(workbook, sheet)
    values: Dict[str, Any] = {}
    for mapping in mappings:
        ws = select_sheet(workbook, mapping.sheet) if mapping.sheet else primary
        row, col = address_codec.decode(mapping.address)
        values[mapping.location(sheet)] = ws.cell(row=row + 1, column=col + 1).value
    workbook.close()
    return values


__all__ = [
    "TemplateFinding",
    "TemplateInspection",
    "inspect_template",
    "read_mapped_values",
]
