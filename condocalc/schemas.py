"""Pydantic schemas for serializing billing inputs and results.

Used by the settings/history storage (JSON columns), the configuration file
loader and the HTTP API. Decimal values are dumped as strings in JSON mode so a
save/reload cycle is lossless.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from condocalc.services.billing_types import (
    CalculatedUnitBill,
    CommonExpenses,
    MonthlySummary,
    TariffRates,
    TariffTier,
    Unit,
)


class UnitSchema(BaseModel):
    """Unit with readings."""

    id: str
    label: str
    area: Decimal = Field(gt=0)
    previous_reading: Decimal = Decimal("0")
    current_reading: Decimal = Decimal("0")

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> Unit:
        return Unit(
            id=self.id,
            label=self.label,
            area=self.area,
            previous_reading=self.previous_reading,
            current_reading=self.current_reading,
        )


class TariffTierSchema(BaseModel):
    """Tariff tier; derived costs are optional on input."""

    id: str
    name: str
    volume: Decimal = Field(ge=0)
    water_cost: Decimal = Decimal("0")
    is_fixed: bool = False
    rate_per_m3: Decimal | None = None
    sewer_cost: Decimal | None = None
    total_cost: Decimal | None = None
    unit_excess_rate: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> TariffTier:
        return TariffTier(
            id=self.id,
            name=self.name,
            volume=self.volume,
            water_cost=self.water_cost,
            is_fixed=self.is_fixed,
            rate_per_m3=self.rate_per_m3,
            sewer_cost=self.sewer_cost,
            total_cost=self.total_cost,
            unit_excess_rate=self.unit_excess_rate,
        )


class TariffRatesSchema(BaseModel):
    """Tariff configuration."""

    tiers: list[TariffTierSchema]
    sewer_rate_percentage: Decimal = Field(ge=0, le=100)

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> TariffRates:
        return TariffRates(
            tiers=tuple(tier.to_domain() for tier in self.tiers),
            sewer_rate_percentage=self.sewer_rate_percentage,
        )


class CommonExpensesSchema(BaseModel):
    """Common expenses of a billing period."""

    garbage_fee: Decimal = Decimal("0")
    garbage_fee_penalty: Decimal = Decimal("0")
    late_payment_adjustment: Decimal = Decimal("0")
    water_penalty: Decimal = Decimal("0")
    other_services_fee: Decimal = Decimal("0")
    utility_invoice_total: Decimal = Decimal("0")

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> CommonExpenses:
        return CommonExpenses(**self.model_dump())


class CalculatedUnitBillSchema(BaseModel):
    """Itemized bill of one unit."""

    id: str
    label: str
    area: Decimal
    previous_reading: Decimal
    current_reading: Decimal
    consumption: Decimal
    water_cost: Decimal
    fixed_share: Decimal
    excess_cost: Decimal
    equal_share: Decimal
    proportional_fee: Decimal
    total_bill: Decimal
    breakdown: dict[str, Decimal] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> CalculatedUnitBill:
        return CalculatedUnitBill(**self.model_dump())


class MonthlySummarySchema(BaseModel):
    """Monthly snapshot with condo-wide totals."""

    period: str
    total_reading: Decimal
    total_consumption: Decimal
    total_bill: Decimal
    average_bill: Decimal
    bills: list[CalculatedUnitBillSchema]
    common_expenses: CommonExpensesSchema
    tariff_rates: TariffRatesSchema

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> MonthlySummary:
        return MonthlySummary(
            period=self.period,
            total_reading=self.total_reading,
            total_consumption=self.total_consumption,
            total_bill=self.total_bill,
            average_bill=self.average_bill,
            bills=tuple(bill.to_domain() for bill in self.bills),
            common_expenses=self.common_expenses.to_domain(),
            tariff_rates=self.tariff_rates.to_domain(),
        )


__all__ = [
    "UnitSchema",
    "TariffTierSchema",
    "TariffRatesSchema",
    "CommonExpensesSchema",
    "CalculatedUnitBillSchema",
    "MonthlySummarySchema",
]
