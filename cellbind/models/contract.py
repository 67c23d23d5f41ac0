"""Construction contract (請負契約書) document model."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from .base import DocumentModel
from .fund_plan import FundPlanData


class ImportantMatterExplainer(DocumentModel):
    """重要事項説明者 (licensed architect explaining the contract)."""

    name: str = "佐藤一郎"
    architect_type: str = "一級"
    registration_number: str = ""
    registration_authority: str = "大臣"


class SolarContract(DocumentModel):
    contract_year: int = 2026
    contract_month: int = 2
    contract_day: int = 1
    payment1: int = 0
    payment1_date: str = ""
    payment2: int = 0
    payment2_date: str = ""


class ChangeContract(DocumentModel):
    """変更契約; only filled in when the original contract is amended."""

    change_contract_year: int = 0
    change_contract_month: int = 0
    change_contract_day: int = 0
    floor_count: int = 2
    building_count: int = 1
    floor1_area: float = 0.0
    floor1_included: bool = True
    floor2_area: float = 0.0
    floor2_included: bool = True
    floor3_area: float = 0.0
    floor3_included: bool = False
    construction_area: float = 0.0
    construction_area_included: bool = True
    start_date: str = ""
    completion_date: str = ""
    delivery_date: str = ""
    contract_date: str = ""
    construction_price: int = 0
    payment1: int = 0
    payment1_date: str = ""
    payment2: int = 0
    payment2_date: str = ""
    payment3: int = 0
    payment3_date: str = ""
    payment4: int = 0
    payment4_date: str = ""


class ContractData(DocumentModel):
    """Contract input sheet (初期入力) values."""

    construction_name: str = "山田様邸新築工事"
    customer_name: str = "山田太郎"
    customer_address: str = ""
    customer_name2: str = ""
    customer_address2: str = ""

    important_matter_explainer: ImportantMatterExplainer = Field(default_factory=ImportantMatterExplainer)
    ownership_type: str = "単独"
    sales_rep: str = ""

    contract_year: int = 2026
    contract_month: int = 2
    contract_day: int = 1

    construction_site: str = ""
    structure: str = "在来軸組工法 ガルバリウム鋼板葺"
    floor_count: int = 2
    building_count: int = 1
    floor1_area: float = 56.31
    floor1_included: bool = True
    floor2_area: float = 51.34
    floor2_included: bool = True
    floor3_area: float = 0.0
    floor3_included: bool = False
    construction_area: float = 32.5
    construction_area_included: bool = True

    start_date: str = "2026-06-01"
    completion_date: str = "2026-10-30"
    delivery_date: str = "2026-11-15"
    contract_date: str = "2026-02-01"

    construction_price: int = 24000000

    payment1_amount: int = 100000
    payment1_date: str = "2026-01-15"
    payment2_amount: int = 1000000
    payment2_date: str = "2026-02-01"
    payment3_amount: int = 0
    payment3_date: str = ""
    payment4_amount: int = 0
    payment4_date: str = ""

    contract_number: str = ""
    no_work_days: str = "日曜日・祝日"
    no_work_hours: str = "18時以降"
    defect_insurance_company: str = "株式会社　日本住宅保証検査機構"

    solar_contract: SolarContract = Field(default_factory=SolarContract)
    change_contract: ChangeContract = Field(default_factory=ChangeContract)

    product_type: str = "LIFE"


def contract_from_fund_plan(fund_plan: FundPlanData, *, today: date | None = None) -> ContractData:
    """Pre-fill a contract from an accepted fund plan.

    The contract date splits into year/month/day from the plan's building
    contract date, falling back to ``today`` when the plan has none.
    """

    schedule = fund_plan.schedule
    payments = fund_plan.payment_plan_construction
    signed = date.fromisoformat(schedule.building_contract) if schedule.building_contract else (today or date.today())

    return ContractData(
        construction_name=f"{fund_plan.tei_name}新築工事",
        customer_name=fund_plan.customer_name,
        construction_site=fund_plan.construction_address,
        structure=fund_plan.building_structure,
        floor_count=fund_plan.floor_count,
        construction_area=fund_plan.construction_area,
        sales_rep=fund_plan.sales_rep,
        product_type=fund_plan.product_type,
        contract_year=signed.year,
        contract_month=signed.month,
        contract_day=signed.day,
        contract_date=schedule.building_contract,
        start_date=schedule.construction_start,
        completion_date=schedule.completion,
        payment1_amount=payments.application_fee.customer_amount,
        payment1_date=payments.application_fee.payment_date,
        payment2_amount=payments.contract_fee.customer_amount,
        payment2_date=payments.contract_fee.payment_date,
        payment3_amount=payments.interim_payment1.customer_amount,
        payment3_date=payments.interim_payment1.payment_date,
        payment4_amount=payments.interim_payment2.customer_amount,
        payment4_date=payments.interim_payment2.payment_date,
    )


__all__ = ["ContractData", "contract_from_fund_plan"]
