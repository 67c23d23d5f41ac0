from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Log and work directories must be redirected before the packages configure logging.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="cellbind-tests-"))
os.environ.setdefault("CELLBIND_LOG_DIR", str(_SESSION_DIR / "logs"))
os.environ.setdefault("CELLBIND_WORK_DIR", str(_SESSION_DIR / "work"))

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from cellbind.config import allowlist_path, registry_path
from cellbind.core.logger import get_logger

FUND_PLAN_SHEET = "【資金計画書】"
CONTRACT_SHEET = "初期入力"
GUIDE_SHEET = "契約のご案内（お客様用）"
FLOW_SHEET = "資金の流れ（LIFE・LIFE＋）"

# Bind the application console handler to the real stderr before CliRunner swaps streams.
get_logger()


def build_fund_plan_template(path: Path) -> Path:
    """Write a workbook shaped like the fund plan template (100 rows x 105 columns)."""

    wb = Workbook()
    cover = wb.active
    cover.title = "表紙"
    cover["A1"] = "資金計画書"

    ws = wb.create_sheet(FUND_PLAN_SHEET)
    thin = Side(style="thin", color="000000")
    ws["AH1"].font = Font(name="MS Gothic", size=14, bold=True)
    ws["AH1"].fill = PatternFill(fill_type="solid", start_color="FFFF00", end_color="FFFF00")
    ws["AH1"].border = Border(left=thin, right=thin, top=thin, bottom=thin)
    ws["AH1"].alignment = Alignment(horizontal="center", vertical="center")
    ws["CA1"].number_format = "0.0"
    for address in ("DA1", "DA8", "DA10", "DA18", "DA20", "DA22", "DA24", "DA26"):
        ws[address].number_format = "yyyy/m/d"

    ws["A1"] = "=AH1"
    ws["X28"] = '=IF(N1="LIFE",550000,600000)*CA1'
    ws["O46"] = "=G46*50000"
    ws["B3"] = "お客様名"
    ws.merge_cells("B3:H3")
    ws.merge_cells("O35:T36")
    ws["DA100"] = "end"
    ws.print_area = "A1:DA100"

    guide = wb.create_sheet(GUIDE_SHEET)
    guide["B3"] = "お客様名"
    for address in ("D12", "D14", "D16"):
        guide[address].number_format = "yyyy/m/d"
    guide["F20"] = "契約金"

    flow = wb.create_sheet(FLOW_SHEET)
    flow["C2"] = "資金の流れ"
    flow["G34"] = "合計"

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def build_contract_template(path: Path) -> Path:
    """Write a workbook shaped like the contract input sheet (50 rows x 8 columns)."""

    wb = Workbook()
    ws = wb.active
    ws.title = CONTRACT_SHEET
    ws["A3"] = "工事名"
    ws["A30"] = "契約日"
    ws["B30"].number_format = "yyyy/m/d"
    ws["H50"] = "end"
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture()
def fund_plan_template(tmp_path: Path) -> Path:
    return build_fund_plan_template(tmp_path / "templates" / "fund_plan.xlsx")


@pytest.fixture()
def contract_template(tmp_path: Path) -> Path:
    return build_contract_template(tmp_path / "templates" / "contract.xlsx")


@pytest.fixture()
def template_factory(tmp_path: Path) -> Callable[..., Path]:
    """Build a single-sheet workbook from ``{address: value}`` cells."""

    def _build(name: str = "template.xlsx", sheet: str = "Sheet1", cells: dict | None = None,
               merged: tuple[str, ...] = ()) -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet
        for address, value in (cells or {}).items():
            ws[address] = value
        for cell_range in merged:
            ws.merge_cells(cell_range)
        path = tmp_path / name
        wb.save(path)
        return path

    return _build


@pytest.fixture()
def profiles_file(tmp_path: Path, fund_plan_template: Path, contract_template: Path) -> Path:
    """profiles.yaml pointing at on-the-fly templates and the packaged registries."""

    content = f"""
profiles:
  fund_plan:
    display_name: 資金計画書
    model: fund_plan
    template: {fund_plan_template.as_posix()}
    mapping: {registry_path("fund_plan").as_posix()}
    coverage: {allowlist_path("fund_plan").as_posix()}
    output_name: "資金計画書_{{teiName}}_{{date}}.xlsx"
    extent:
      max_row: 100
      max_column: 105
  contract:
    display_name: 請負契約書
    model: contract
    template: {contract_template.as_posix()}
    mapping: {registry_path("contract").as_posix()}
    coverage: {allowlist_path("contract").as_posix()}
    output_name: "請負契約書_{{constructionName}}_{{date}}.xlsx"
"""
    path = tmp_path / "profiles.yaml"
    path.write_text(content, encoding="utf-8")
    return path
