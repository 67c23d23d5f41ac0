"""Fund plan (資金計画書) document model."""

from __future__ import annotations

from pydantic import Field

from .base import DocumentModel


class IncidentalCostA(DocumentModel):
    """➋ 付帯工事費用A: costs outside the main building work."""

    confirmation_application_fee: int = 400000
    structural_calculation: int = 200000
    structural_drawing_fee: int = 300000
    bels_application_fee: int = 200000
    long_term_housing_application_fee: int = 0
    outdoor_electric_water_drainage_fee: int = 900000
    defect_insurance_ground_termite_warranty: int = 300000
    design_supervision_fee: int = 950000
    safety_measures_fee: int = 250000
    temporary_construction_fee: int = 300000


class IncidentalCostB(DocumentModel):
    """➌ 付帯工事費用B: costs that vary with floor plan and options."""

    solar_panel_count: int = 18
    solar_panel_kw: float = 7.2
    solar_panel_cost: int = 0
    storage_battery_type: str = "蓄電池なし"
    storage_battery_cost: int = 0
    eave_overhang_cost: int = 0
    option_cost: int = 2500000


class IncidentalCostC(DocumentModel):
    """➍ 付帯工事費用C: costs that depend on the land."""

    quasi_fireproof_fee: int = 0
    demolition_fee: int = 0
    ground_improvement_fee: int = 0
    soil_disposal_fee: int = 0


class MiscellaneousCosts(DocumentModel):
    """➎ 諸費用."""

    building_registration_fee: int = 250000
    housing_loan_fee: int = 0
    bridge_loan_fee: int = 200000
    loan_contract_stamp_duty: int = 40000
    construction_contract_stamp_duty: int = 0
    fire_insurance: int = 200000
    advance_construction: int = 0
    exterior_construction: int = 2000000
    custom_construction: int = 0


class LandCosts(DocumentModel):
    """➏ 土地費用."""

    land_price: int = 30000000
    land_contract_stamp_duty: int = 10000
    brokerage_fee: int = 1056000
    property_tax_settlement: int = 0
    land_registration_fee: int = 400000
    extinction_registration_fee: int = 0


class PaymentItem(DocumentModel):
    standard_rate: float = 0.0
    standard_amount: int = 0
    customer_amount: int = 0
    payment_date: str = ""


class PaymentPlanConstruction(DocumentModel):
    """工事請負金額の支払計画."""

    application_fee: PaymentItem = Field(
        default_factory=lambda: PaymentItem(standard_amount=100000, customer_amount=100000)
    )
    contract_fee: PaymentItem = Field(default_factory=lambda: PaymentItem(standard_rate=0.1))
    interim_payment1: PaymentItem = Field(default_factory=lambda: PaymentItem(standard_rate=0.3))
    interim_payment2: PaymentItem = Field(default_factory=lambda: PaymentItem(standard_rate=0.3))
    final_payment: PaymentItem = Field(default_factory=lambda: PaymentItem(standard_rate=0.3))


class BankLoan(DocumentModel):
    bank_name: str = ""
    amount: int = 0
    interest_rate: float = 0.0
    rate_type: str = "変動"
    loan_years: int = 35
    principal_monthly: int = 0
    principal_bonus: int = 0
    payment_monthly: int = 0
    payment_bonus: int = 0


class LoanPlan(DocumentModel):
    """借入計画 for up to three lenders."""

    bank_a: BankLoan = Field(
        default_factory=lambda: BankLoan(bank_name="A銀行", amount=40000000, interest_rate=0.0082)
    )
    bank_b: BankLoan = Field(default_factory=BankLoan)
    bank_c: BankLoan = Field(default_factory=BankLoan)


class BridgeLoanItem(DocumentModel):
    name: str = ""
    amount: int = 0
    interest_rate: float = 0.0
    months: int = 0
    monthly_interest: int = 0
    total_interest: int = 0


class BridgeLoan(DocumentModel):
    """つなぎ融資."""

    land_bridge: BridgeLoanItem = Field(default_factory=lambda: BridgeLoanItem(name="土地つなぎ"))
    construction_start_bridge: BridgeLoanItem = Field(
        default_factory=lambda: BridgeLoanItem(name="着工金つなぎ")
    )
    construction_interim_bridge: BridgeLoanItem = Field(
        default_factory=lambda: BridgeLoanItem(name="中間金つなぎ")
    )


class Schedule(DocumentModel):
    """工程スケジュール; dates are ISO-8601 strings."""

    initial_plan_hearing: str = ""
    land_contract: str = "2026-01-15"
    building_contract: str = "2026-02-01"
    plan_finalized: str = ""
    final_spec_meeting: str = "2026-04-10"
    change_contract: str = "2026-04-20"
    construction_start: str = "2026-06-01"
    roof_raising: str = "2026-07-15"
    completion: str = "2026-10-30"
    land_settlement: str = ""
    final_payment_date: str = ""


class CurrentHousingCost(DocumentModel):
    rent: int = 0
    electricity: int = 0
    gas_oil: int = 0
    parking: int = 0


class SolarEffect(DocumentModel):
    annual_generation: float = 0.0
    self_consumption_rate: float = 0.0
    annual_savings: int = 0
    annual_sales: int = 0
    monthly_benefit: int = 0


class FundPlanData(DocumentModel):
    """Complete fund plan, one instance per customer estimate."""

    customer_name: str = "山田太郎"
    tei_name: str = "山田様邸"
    construction_name: str = "山田様邸新築工事"
    construction_address: str = ""
    fire_protection_zone: str = "準防火地域"
    building_structure: str = "在来軸組工法 ガルバリウム鋼板葺"
    floor_count: int = 2
    estimate_date: str = "2026-01-15"
    estimate_valid_date: str = ""
    product_type: str = "LIFE"
    construction_area: float = 32.5
    price_per_tsubo: int = 0
    sales_rep: str = ""
    sales_rep_phone: str = ""
    manager_name: str = ""
    remarks: str = ""
    contract_total_at_signing: int = 0

    incidental_cost_a: IncidentalCostA = Field(default_factory=IncidentalCostA)
    incidental_cost_b: IncidentalCostB = Field(default_factory=IncidentalCostB)
    incidental_cost_c: IncidentalCostC = Field(default_factory=IncidentalCostC)
    miscellaneous_costs: MiscellaneousCosts = Field(default_factory=MiscellaneousCosts)
    land_costs: LandCosts = Field(default_factory=LandCosts)
    payment_plan_construction: PaymentPlanConstruction = Field(default_factory=PaymentPlanConstruction)
    loan_plan: LoanPlan = Field(default_factory=LoanPlan)
    bridge_loan: BridgeLoan = Field(default_factory=BridgeLoan)
    schedule: Schedule = Field(default_factory=Schedule)
    current_housing_cost: CurrentHousingCost = Field(default_factory=CurrentHousingCost)
    solar_only_effect: SolarEffect = Field(default_factory=SolarEffect)
    solar_battery_effect: SolarEffect = Field(default_factory=SolarEffect)


__all__ = ["FundPlanData"]
