from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from cellbind.config import allowlist_path, registry_path
from cellbind.core.errors import AllowListError
from cellbind.models import reference_instance
from cellbind.services.coverage import (
    AllowListEntry,
    AllowLists,
    FieldStatus,
    coverage_frame,
    enumerate_field_paths,
    load_allow_lists,
    render_coverage_report,
    render_mapping_summary,
    validate_coverage,
    write_coverage_csv,
)
from cellbind_io.errors import ConfigurationError
from cellbind_io.mapping import load_registry, registry_from_payload


def _registry(*cells: dict):
    return registry_from_payload({"name": "sample", "sheet": "S", "sections": [{"name": "main", "cells": list(cells)}]})


@pytest.mark.parametrize("kind", ["fund_plan", "contract"])
def test_packaged_configuration_is_clean(kind: str) -> None:
    report = validate_coverage(
        load_registry(registry_path(kind)),
        reference_instance(kind),
        load_allow_lists(allowlist_path(kind)),
    )

    assert report.exit_code == 0
    assert report.ok
    assert report.by_status(FieldStatus.UNMAPPED) == []
    assert report.orphans == []
    assert report.stale_entries == []


def test_fund_plan_counts() -> None:
    report = validate_coverage(
        load_registry(registry_path("fund_plan")),
        reference_instance("fund_plan"),
        load_allow_lists(allowlist_path("fund_plan")),
    )
    counts = report.counts

    assert report.total == 143
    assert counts["mapped"] == 51
    assert counts["needsInvestigation"] == 6
    assert counts["excluded"] == 86
    assert counts["unmapped"] == 0
    assert counts["orphanMappings"] == 0
    assert report.coverage_percent == pytest.approx(137 / 143 * 100)


def test_contract_counts() -> None:
    report = validate_coverage(
        load_registry(registry_path("contract")),
        reference_instance("contract"),
        load_allow_lists(allowlist_path("contract")),
    )
    counts = report.counts

    assert counts["mapped"] == 49
    assert counts["needsInvestigation"] == 3
    assert counts["excluded"] == 25
    changed = [f for f in report.fields if f.path.startswith("changeContract.")]
    assert {f.status for f in changed} == {FieldStatus.MAPPED, FieldStatus.EXCLUDED}


def test_enumerate_field_paths_uses_camel_case_leaves() -> None:
    paths = enumerate_field_paths(reference_instance("fund_plan"))
    assert paths[:3] == ["customerName", "teiName", "constructionName"]
    assert "loanPlan.bankA.interestRate" in paths
    assert "paymentPlanConstruction.interimPayment1.standardRate" in paths
    assert "loanPlan" not in paths


def test_enumerate_field_paths_on_plain_dicts() -> None:
    model = {"a": 1, "b": {"c": None, "d": {}}, "e": [1, 2]}
    assert enumerate_field_paths(model) == ["a", "b.c", "b.d", "e"]


def test_unmapped_field_fails_validation() -> None:
    registry = _registry({"address": "A1", "path": "teiName", "type": "text", "verified": True})
    report = validate_coverage(registry, {"teiName": "x", "productType": "LIFE"}, AllowLists())

    assert [f.path for f in report.by_status(FieldStatus.UNMAPPED)] == ["productType"]
    assert report.exit_code == 1
    assert report.coverage_percent == pytest.approx(50.0)


def test_orphan_mapping_fails_validation() -> None:
    registry = _registry(
        {"address": "A1", "path": "teiName", "type": "text", "verified": True},
        {"address": "A2", "path": "teiNmae", "type": "text", "verified": True},
    )
    report = validate_coverage(registry, {"teiName": "x"}, AllowLists())

    assert [(o.data_path, o.address, o.section) for o in report.orphans] == [("teiNmae", "A2", "main")]
    assert report.counts["orphanMappings"] == 1
    assert report.exit_code == 1


def test_unverified_and_formula_mappings_are_reported_separately() -> None:
    registry = _registry(
        {"address": "A1", "path": "teiName", "type": "text", "verified": True},
        {"address": "A2", "path": "customerName", "type": "text", "note": "位置未確認"},
        {"address": "X28", "path": "pricePerTsubo", "type": "formula"},
    )
    model = {"teiName": "x", "customerName": "y", "pricePerTsubo": 0}
    report = validate_coverage(registry, model, AllowLists())

    statuses = {f.path: f.status for f in report.fields}
    assert statuses == {
        "teiName": FieldStatus.MAPPED,
        "customerName": FieldStatus.UNVERIFIED,
        "pricePerTsubo": FieldStatus.EXCLUDED,
    }
    formula = report.fields[2]
    assert formula.category == "formula"
    assert formula.address == "X28"
    assert report.by_status(FieldStatus.UNVERIFIED)[0].reason == "位置未確認"
    assert report.exit_code == 0
    assert report.coverage_percent == pytest.approx(100.0)


def test_allow_list_patterns_and_category_order() -> None:
    allow_lists = AllowLists.build(
        excluded=[AllowListEntry(path="loanPlan.*.bankName", reason="銀行名は手入力")],
        formula=["loanPlan.bankA.bankName"],
        needs_investigation=["salesRep", "managerName"],
    )
    model = {
        "loanPlan": {"bankA": {"bankName": "A"}, "bankB": {"bankName": "B"}},
        "salesRep": "",
    }
    report = validate_coverage(_registry(), model, allow_lists)

    findings = {f.path: (f.status, f.category) for f in report.fields}
    assert findings == {
        "loanPlan.bankA.bankName": (FieldStatus.EXCLUDED, "excluded"),
        "loanPlan.bankB.bankName": (FieldStatus.EXCLUDED, "excluded"),
        "salesRep": (FieldStatus.NEEDS_INVESTIGATION, "needs_investigation"),
    }
    stale = {(entry.category, entry.path) for entry in report.stale_entries}
    assert stale == {("formula", "loanPlan.bankA.bankName"), ("needs_investigation", "managerName")}
    assert report.exit_code == 0


def test_registered_mapping_takes_precedence_over_allow_list() -> None:
    registry = _registry({"address": "A1", "path": "teiName", "type": "text", "verified": True})
    report = validate_coverage(registry, {"teiName": "x"}, AllowLists.build(excluded=["teiName"]))

    assert report.fields[0].status is FieldStatus.MAPPED
    assert [entry.path for entry in report.stale_entries] == ["teiName"]


def test_empty_model_reports_full_coverage() -> None:
    report = validate_coverage(_registry(), {}, AllowLists())
    assert report.total == 0
    assert report.coverage_percent == 100.0
    assert report.ok


def test_load_allow_lists_accepts_plain_strings(tmp_path: Path) -> None:
    path = tmp_path / "coverage.yaml"
    path.write_text(
        "excluded:\n  - remarks\n  - {path: 'loanPlan.*', reason: 別シート}\nformula:\nneeds_investigation: []\n",
        encoding="utf-8",
    )
    allow_lists = load_allow_lists(path)

    assert [entry.path for entry in allow_lists.excluded] == ["remarks", "loanPlan.*"]
    assert allow_lists.excluded[1].is_pattern
    assert allow_lists.formula == ()
    assert allow_lists.match("loanPlan.bankA.amount") == ("excluded", allow_lists.excluded[1])
    assert allow_lists.match("teiName") is None


@pytest.mark.parametrize(
    "content",
    ["excluded: [unclosed\n", "unknown_category:\n  - remarks\n", "excluded:\n  - {path: ''}\n"],
)
def test_load_allow_lists_rejects_invalid_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "coverage.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(AllowListError):
        load_allow_lists(path)


def test_missing_allow_list_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_allow_lists(tmp_path / "absent.yaml")


def test_report_rendering_and_csv(tmp_path: Path) -> None:
    registry = _registry(
        {"address": "A1", "path": "teiName", "type": "text", "verified": True},
        {"address": "A2", "path": "ghost", "type": "text", "verified": True},
    )
    report = validate_coverage(registry, {"teiName": "x", "productType": "LIFE"}, AllowLists.build(excluded=["remarks"]))

    text = render_coverage_report(report, verbose=True)
    assert "- Unmapped: 1" in text
    assert "  - productType" in text
    assert "A2 -> ghost [main]" in text
    assert "[excluded] remarks" in text
    assert "A1 -> teiName" in text
    assert text.endswith("Result: FAILED")

    frame = coverage_frame(report)
    assert list(frame.columns) == ["path", "status", "address", "category", "reason"]
    assert frame["status"].tolist() == ["mapped", "unmapped"]

    csv_path = write_coverage_csv(report, tmp_path / "reports" / "coverage.csv")
    loaded = pd.read_csv(csv_path)
    assert loaded["path"].tolist() == ["teiName", "productType"]


def test_render_clean_report() -> None:
    registry = _registry({"address": "A1", "path": "teiName", "type": "text", "verified": True})
    text = render_coverage_report(validate_coverage(registry, {"teiName": "x"}, AllowLists()))
    assert "- Coverage: 100.0%" in text
    assert "Mapped fields:" not in text
    assert text.endswith("Result: OK")


def test_render_mapping_summary() -> None:
    text = render_mapping_summary(load_registry(registry_path("fund_plan")).summary())
    assert "Mapping verification: fund_plan" in text
    assert "- Verified: 56" in text
    assert "- Empty sections: buildingMain, staff" in text
    assert "(empty)" in text
