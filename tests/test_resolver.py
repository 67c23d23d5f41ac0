"""Unit tests for dotted path access into nested models."""

# Module responsibilities:
# - Distinguish absent paths from present falsy leaves.
# - Check that assignment creates intermediate records and refuses scalar parents.

from __future__ import annotations

from types import SimpleNamespace

import pytest

from cellbind.models import FundPlanData
from cellbind.models.fund_plan import Schedule
from cellbind_io import resolver
from cellbind_io.errors import PathError
from cellbind_io.resolver import ABSENT


def _model() -> dict:
    return {
        "teiName": "山田様邸",
        "constructionArea": 32.5,
        "remarks": "",
        "floorCount": 0,
        "approved": False,
        "salesRep": None,
        "loanPlan": {"bankA": {"amount": 40000000, "bankName": "A銀行"}, "bankB": None},
    }


def test_get_reads_nested_values() -> None:
    model = _model()
    assert resolver.get(model, "teiName") == "山田様邸"
    assert resolver.get(model, "loanPlan.bankA.amount") == 40000000


@pytest.mark.parametrize(
    ("path", "expected"),
    [("remarks", ""), ("floorCount", 0), ("approved", False), ("salesRep", None)],
)
def test_get_returns_present_falsy_leaves(path: str, expected: object) -> None:
    value = resolver.get(_model(), path)
    assert value is not ABSENT
    assert value == expected and type(value) is type(expected)


@pytest.mark.parametrize(
    "path",
    ["missing", "loanPlan.bankC.amount", "loanPlan.bankB.amount", "teiName.length", "loanPlan.bankA.amount.value"],
)
def test_get_returns_absent_for_unresolvable_paths(path: str) -> None:
    assert resolver.get(_model(), path) is ABSENT


def test_absent_is_falsy_singleton() -> None:
    assert not ABSENT
    assert resolver.get({}, "x") is resolver.get({}, "y")
    assert repr(ABSENT) == "ABSENT"


def test_get_reads_attribute_objects() -> None:
    model = SimpleNamespace(schedule=SimpleNamespace(completion="2026-10-30"))
    assert resolver.get(model, "schedule.completion") == "2026-10-30"
    assert resolver.get(model, "schedule.landSettlement") is ABSENT


def test_set_then_get_round_trips() -> None:
    model = _model()
    resolver.set(model, "loanPlan.bankA.interestRate", 0.0082)
    assert resolver.get(model, "loanPlan.bankA.interestRate") == 0.0082
    assert model["loanPlan"]["bankA"]["amount"] == 40000000


def test_set_creates_missing_and_none_intermediates() -> None:
    model = _model()
    resolver.set(model, "schedule.completion", "2026-10-30")
    resolver.set(model, "loanPlan.bankB.amount", 1000)
    assert model["schedule"] == {"completion": "2026-10-30"}
    assert model["loanPlan"]["bankB"] == {"amount": 1000}


def test_set_on_attribute_objects() -> None:
    model = SimpleNamespace(schedule=SimpleNamespace())
    resolver.set(model, "schedule.completion", "2026-10-30")
    assert model.schedule.completion == "2026-10-30"


def test_set_refuses_to_descend_into_scalar() -> None:
    model = _model()
    with pytest.raises(PathError):
        resolver.set(model, "teiName.kana", "ヤマダ")
    assert model["teiName"] == "山田様邸"


@pytest.mark.parametrize("path", ["", ".teiName", "teiName.", "loanPlan..amount"])
def test_malformed_paths_raise(path: str) -> None:
    with pytest.raises(PathError):
        resolver.get(_model(), path)
    with pytest.raises(PathError):
        resolver.set(_model(), path, 1)


def test_split_path() -> None:
    assert resolver.split_path("loanPlan.bankA.amount") == ["loanPlan", "bankA", "amount"]


def test_get_reads_pydantic_models_by_alias() -> None:
    plan = FundPlanData()

    assert resolver.get(plan, "teiName") == "山田様邸"
    assert resolver.get(plan, "loanPlan.bankA.interestRate") == pytest.approx(0.0082)
    assert resolver.get(plan, "incidentalCostA.structuralCalculation") == 200000
    assert resolver.get(plan, "loan_plan.bank_a.amount") == 40000000
    assert resolver.get(plan, "loanPlan.bankD.amount") is ABSENT
    assert resolver.get(plan, "teiNmae") is ABSENT


def test_set_on_pydantic_models_by_alias() -> None:
    plan = FundPlanData()

    resolver.set(plan, "loanPlan.bankB.bankName", "B銀行")
    resolver.set(plan, "constructionArea", 40.0)

    assert plan.loan_plan.bank_b.bank_name == "B銀行"
    assert plan.construction_area == 40.0
    assert plan.to_document()["loanPlan"]["bankB"]["bankName"] == "B銀行"
    with pytest.raises(PathError):
        resolver.set(plan, "teiNmae", "x")


def test_set_rebuilds_missing_nested_model() -> None:
    plan = FundPlanData()
    plan.schedule = None

    resolver.set(plan, "schedule.completion", "2026-11-30")

    assert isinstance(plan.schedule, Schedule)
    assert plan.schedule.completion == "2026-11-30"
    assert plan.schedule.land_contract == "2026-01-15"
