"""Value types consumed and produced by the billing engine.

All types are frozen dataclasses: the engine treats its inputs as read-only and
builds fresh results on every run.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from condocalc.services.money import ZERO, to_decimal


@dataclass(frozen=True)
class Unit:
    """A residential unit with its readings for one billing period."""

    id: str
    label: str
    area: Decimal
    previous_reading: Decimal = ZERO
    current_reading: Decimal = ZERO


@dataclass(frozen=True)
class TariffTier:
    """One consumption bracket of the utility tariff.

    For the fixed (minimum) tier ``volume`` is the allowance covered by the
    fixed charge and ``water_cost`` is entered directly. For excess tiers
    ``water_cost`` is derived from ``volume * rate_per_m3`` on enrichment.
    """

    id: str
    name: str
    volume: Decimal
    water_cost: Decimal
    is_fixed: bool = False
    rate_per_m3: Decimal | None = None
    sewer_cost: Decimal | None = None
    total_cost: Decimal | None = None
    unit_excess_rate: Decimal | None = None


@dataclass(frozen=True)
class TariffRates:
    """Tariff configuration: tiers plus the sewer surcharge percentage (0-100)."""

    tiers: tuple[TariffTier, ...] | None
    sewer_rate_percentage: Decimal = ZERO

    @property
    def fixed_tiers(self) -> list[TariffTier]:
        return [tier for tier in self.tiers or () if tier.is_fixed]

    @property
    def fixed_tier(self) -> TariffTier | None:
        fixed = self.fixed_tiers
        return fixed[0] if fixed else None

    @property
    def first_excess_tier(self) -> TariffTier | None:
        for tier in self.tiers or ():
            if not tier.is_fixed:
                return tier
        return None

    @property
    def is_enriched(self) -> bool:
        return self.tiers is not None and all(tier.total_cost is not None for tier in self.tiers)


@dataclass(frozen=True)
class CommonExpenses:
    """Non-water charges of a billing period plus the real utility invoice."""

    garbage_fee: Decimal = ZERO
    garbage_fee_penalty: Decimal = ZERO
    late_payment_adjustment: Decimal = ZERO
    water_penalty: Decimal = ZERO
    other_services_fee: Decimal = ZERO
    utility_invoice_total: Decimal = ZERO

    @property
    def equal_share_total(self) -> Decimal:
        """Sum of the charges split evenly across units."""
        return (
            to_decimal(self.garbage_fee)
            + to_decimal(self.garbage_fee_penalty)
            + to_decimal(self.late_payment_adjustment)
            + to_decimal(self.water_penalty)
        )


@dataclass(frozen=True)
class CalculatedUnitBill:
    """Itemized bill of one unit for one billing period."""

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
    breakdown: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthlySummary:
    """Snapshot of one billing period, ready to be committed to history."""

    period: str
    total_reading: Decimal
    total_consumption: Decimal
    total_bill: Decimal
    average_bill: Decimal
    bills: tuple[CalculatedUnitBill, ...]
    common_expenses: CommonExpenses
    tariff_rates: TariffRates


__all__ = [
    "Unit",
    "TariffTier",
    "TariffRates",
    "CommonExpenses",
    "CalculatedUnitBill",
    "MonthlySummary",
]
