"""Unit tests for template inspection and artifact read-back."""

# Module responsibilities:
# - Report layout facts of a template sheet.
# - Flag verified mappings over formulas, out-of-extent addresses and merged non-anchor cells.

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook

from cellbind.config import registry_path
from cellbind_io.errors import SheetNotFound
from cellbind_io.excel_reader import (
    FORMULA_OVERWRITE,
    MERGED_CELL,
    OUT_OF_EXTENT,
    inspect_template,
    read_mapped_values,
)
from cellbind_io.mapping import load_registry, registry_from_payload
from cellbind_io.schema import TemplateExtent


def _registry(*cells: dict, sheet: str = "【資金計画書】"):
    return registry_from_payload({"name": "sample", "sheet": sheet, "sections": [{"name": "main", "cells": list(cells)}]})


def test_packaged_registry_fits_template(fund_plan_template: Path) -> None:
    registry = load_registry(registry_path("fund_plan"))
    inspection = inspect_template(fund_plan_template, registry, TemplateExtent(100, 105))

    assert inspection.ok, inspection.findings
    assert inspection.sheet == "【資金計画書】"
    assert inspection.merged_ranges == 2
    assert inspection.formula_cells == 3
    assert inspection.print_area is None or "DA" in inspection.print_area


def test_extent_defaults_to_used_range(fund_plan_template: Path) -> None:
    inspection = inspect_template(fund_plan_template, _registry())
    assert inspection.extent == TemplateExtent(max_row=100, max_column=105)


def test_findings_for_problem_mappings(fund_plan_template: Path) -> None:
    registry = _registry(
        {"address": "A1", "path": "teiNameEcho", "type": "text", "verified": True},
        {"address": "X28", "path": "pricePerTsubo", "type": "formula"},
        {"address": "DB1", "path": "remarks", "type": "text", "verified": True},
        {"address": "P35", "path": "incidentalCostA.structuralCalculation", "type": "number"},
        {"address": "AH1", "path": "teiName", "type": "text", "verified": True},
    )
    inspection = inspect_template(fund_plan_template, registry)

    kinds = {finding.address: finding.kind for finding in inspection.findings}
    assert kinds == {"A1": FORMULA_OVERWRITE, "DB1": OUT_OF_EXTENT, "P35": MERGED_CELL}
    assert not inspection.ok


def test_inspect_missing_sheet(fund_plan_template: Path) -> None:
    with pytest.raises(SheetNotFound):
        inspect_template(fund_plan_template, _registry(sheet="初期入力"))


def test_read_mapped_values(template_factory) -> None:
    artifact = template_factory(cells={"B2": "山田様邸", "C3": 32.5})
    registry = _registry(
        {"address": "B2", "path": "teiName", "type": "text"},
        {"address": "C3", "path": "constructionArea", "type": "number"},
        {"address": "D4", "path": "floorCount", "type": "number"},
        sheet="Sheet1",
    )
    assert read_mapped_values(artifact, "Sheet1", registry) == {"B2": "山田様邸", "C3": 32.5, "D4": None}


def test_inspect_secondary_sheets(fund_plan_template: Path) -> None:
    registry = registry_from_payload(
        {
            "name": "sample",
            "sheet": "【資金計画書】",
            "sections": [
                {"name": "main", "cells": [{"address": "AH1", "path": "teiName", "type": "text", "verified": True}]},
                {
                    "name": "guide",
                    "sheet": "契約のご案内（お客様用）",
                    "cells": [
                        {"address": "B3", "path": "customerName", "type": "text", "verified": True},
                        {"address": "ZZ900", "path": "remarks", "type": "text", "verified": True},
                    ],
                },
                {"name": "extra", "sheet": "別紙", "cells": [{"address": "A1", "path": "remarks", "type": "text"}]},
            ],
        }
    )
    inspection = inspect_template(fund_plan_template, registry)

    assert inspection.missing_sheets == ["別紙"]
    assert [(f.address, f.kind) for f in inspection.findings] == [
        ("契約のご案内（お客様用）!ZZ900", OUT_OF_EXTENT)
    ]


def test_read_mapped_values_from_secondary_sheet(tmp_path: Path) -> None:
    wb = Workbook()
    wb.active.title = "Main"
    wb.active["A1"] = "main"
    wb.create_sheet("Guide")["B3"] = "山田 太郎　様"
    path = tmp_path / "artifact.xlsx"
    wb.save(path)

    registry = registry_from_payload(
        {
            "sheet": "Main",
            "sections": [
                {"name": "main", "cells": [{"address": "A1", "path": "teiName", "type": "text"}]},
                {"name": "guide", "sheet": "Guide", "cells": [{"address": "B3", "path": "customerName", "type": "text"}]},
            ],
        }
    )
    assert read_mapped_values(path, "Main", registry) == {"A1": "main", "Guide!B3": "山田 太郎　様"}
