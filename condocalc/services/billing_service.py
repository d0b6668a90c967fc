"""Billing engine: splits the water invoice and common expenses across units.

Pipeline per run:
1. Resolve consumption per unit (clamped at 0)
2. Split the fixed tier cost equally
3. Split the first excess tier cost by each unit's volume above its share of
   the fixed tier allowance
4. Split equal-share expenses evenly and the other-services fee by floor area
5. Reconcile the water costs with the real utility invoice

The engine never raises on malformed tariff configuration: it logs the problem
and returns zero-valued bills.
"""

import logging
from decimal import Decimal
from typing import Sequence

from condocalc.services.allocation_service import AllocationService
from condocalc.services.billing_types import (
    CalculatedUnitBill,
    CommonExpenses,
    MonthlySummary,
    TariffRates,
    Unit,
)
from condocalc.services.money import ZERO, round_money, to_decimal
from condocalc.services.period_service import validate_period
from condocalc.services.reconciliation_service import (
    INVOICE_ADJUSTMENT_LABEL,
    RECONCILIATION_TOLERANCE,
    reconcile_invoice,
)
from condocalc.services.tariff_service import enrich_tariff_tiers

logger = logging.getLogger(__name__)


def _zero_bill(unit: Unit, consumption: Decimal) -> CalculatedUnitBill:
    return CalculatedUnitBill(
        id=unit.id,
        label=unit.label,
        area=to_decimal(unit.area),
        previous_reading=to_decimal(unit.previous_reading),
        current_reading=to_decimal(unit.current_reading),
        consumption=consumption,
        water_cost=round_money(ZERO),
        fixed_share=round_money(ZERO),
        excess_cost=round_money(ZERO),
        equal_share=round_money(ZERO),
        proportional_fee=round_money(ZERO),
        total_bill=round_money(ZERO),
        breakdown={},
    )


def calculate_all_units(
    units: Sequence[Unit],
    expenses: CommonExpenses,
    tariffs: TariffRates,
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
    allocation_service: AllocationService | None = None,
) -> list[CalculatedUnitBill]:
    """Calculate the itemized bill of every unit.

    Args:
        units: Units with readings (not modified)
        expenses: Common expenses and the utility invoice total
        tariffs: Tariff configuration; enriched here if any tier lacks a total
        tolerance: Invoice differences at or below this are not redistributed
        allocation_service: Allocation primitives (default: new instance)

    Returns:
        One CalculatedUnitBill per unit, in input order. Empty list for no units.
    """
    unit_count = len(units)
    if unit_count == 0:
        return []

    allocator = allocation_service or AllocationService()
    consumptions = [
        allocator.calculate_consumption(unit.previous_reading, unit.current_reading)
        for unit in units
    ]

    if tariffs is not None and tariffs.tiers is not None and not tariffs.is_enriched:
        tariffs = enrich_tariff_tiers(tariffs)

    fixed_tier = tariffs.fixed_tier if tariffs is not None else None
    if (
        fixed_tier is None
        or fixed_tier.volume is None
        or to_decimal(fixed_tier.volume) < 0
        or fixed_tier.total_cost is None
    ):
        logger.error(
            "Fixed (minimum) tariff tier missing, invalid or without total cost; "
            "returning zero-valued bills for %d units",
            unit_count,
        )
        return [_zero_bill(unit, c) for unit, c in zip(units, consumptions)]

    if len(tariffs.fixed_tiers) > 1:
        logger.warning(
            "Tariff has %d fixed tiers, using the first one (%s)",
            len(tariffs.fixed_tiers),
            fixed_tier.name,
        )

    excess_tier = tariffs.first_excess_tier

    # Tier allocation
    fixed_share = allocator.split_equally(fixed_tier.total_cost, unit_count)
    allowance_per_unit = to_decimal(fixed_tier.volume) / Decimal(unit_count)
    excess_volumes = allocator.calculate_excess_volumes(consumptions, allowance_per_unit)
    total_excess_volume = sum(excess_volumes, ZERO)

    if total_excess_volume > 0 and excess_tier is not None and excess_tier.total_cost is not None:
        excess_costs = allocator.allocate_proportional(excess_tier.total_cost, excess_volumes)
    else:
        excess_costs = [ZERO for _ in units]

    water_costs = [round_money(fixed_share + excess) for excess in excess_costs]

    # Common expenses
    equal_share = allocator.split_equally(expenses.equal_share_total, unit_count)
    proportional_fees = allocator.allocate_proportional(
        expenses.other_services_fee, [to_decimal(unit.area) for unit in units]
    )

    reconciliation = reconcile_invoice(
        expenses.utility_invoice_total,
        water_costs,
        consumptions,
        tolerance=tolerance,
        allocation_service=allocator,
    )

    bills = []
    for i, unit in enumerate(units):
        breakdown = {fixed_tier.name: round_money(fixed_share)}
        if excess_costs[i] > 0 and excess_tier is not None:
            breakdown[excess_tier.name] = round_money(excess_costs[i])

        total_bill = round_money(water_costs[i] + equal_share + proportional_fees[i])
        if reconciliation.applied:
            share = reconciliation.shares[i]
            total_bill = round_money(total_bill + share)
            if abs(share) >= to_decimal(tolerance):
                breakdown[INVOICE_ADJUSTMENT_LABEL] = round_money(share)

        bills.append(
            CalculatedUnitBill(
                id=unit.id,
                label=unit.label,
                area=to_decimal(unit.area),
                previous_reading=to_decimal(unit.previous_reading),
                current_reading=to_decimal(unit.current_reading),
                consumption=consumptions[i],
                water_cost=water_costs[i],
                fixed_share=round_money(fixed_share),
                excess_cost=round_money(excess_costs[i]),
                equal_share=round_money(equal_share),
                proportional_fee=round_money(proportional_fees[i]),
                total_bill=total_bill,
                breakdown=breakdown,
            )
        )

    logger.debug(
        "Calculated %d bills: water=%s invoice=%s",
        unit_count,
        reconciliation.computed_total,
        reconciliation.invoice_total,
    )
    return bills


def build_monthly_summary(
    period: str,
    bills: Sequence[CalculatedUnitBill],
    expenses: CommonExpenses,
    tariffs: TariffRates,
) -> MonthlySummary:
    """Combine per-unit bills with condo-wide totals for the history record.

    Raises:
        InvalidPeriodError: If period is not YYYY-MM
    """
    validate_period(period)

    total_reading = sum((bill.current_reading for bill in bills), ZERO)
    total_consumption = sum((bill.consumption for bill in bills), ZERO)
    total_bill = sum((bill.total_bill for bill in bills), ZERO)
    average_bill = round_money(total_bill / Decimal(len(bills))) if bills else round_money(ZERO)

    return MonthlySummary(
        period=period,
        total_reading=total_reading,
        total_consumption=total_consumption,
        total_bill=round_money(total_bill),
        average_bill=average_bill,
        bills=tuple(bills),
        common_expenses=expenses,
        tariff_rates=enrich_tariff_tiers(tariffs),
    )
