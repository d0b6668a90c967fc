"""Reconciliation of tariff-derived water costs against the utility invoice.

The tariff only estimates what the condominium owes; the utility invoice is
authoritative. The difference is spread back over the units in proportion to
their consumption, or equally when nobody consumed anything.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Sequence

from condocalc.services.allocation_service import AllocationService
from condocalc.services.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)

# Differences at or below this amount are rounding noise and are not redistributed
RECONCILIATION_TOLERANCE = Decimal("0.01")

INVOICE_ADJUSTMENT_LABEL = "Invoice adjustment"


class AdjustmentStrategy(str, Enum):
    """How the invoice difference was distributed."""

    NONE = "none"
    """Difference within tolerance, nothing distributed"""

    CONSUMPTION = "consumption"
    """Proportional to each unit's consumption"""

    EQUAL = "equal"
    """Equal split (total consumption was zero)"""


@dataclass(frozen=True)
class InvoiceReconciliation:
    """Outcome of reconciling computed water costs with the invoice."""

    invoice_total: Decimal
    computed_total: Decimal
    difference: Decimal
    strategy: AdjustmentStrategy
    shares: tuple[Decimal, ...]

    @property
    def applied(self) -> bool:
        return self.strategy is not AdjustmentStrategy.NONE


def reconcile_invoice(
    invoice_total: Decimal,
    water_costs: Sequence[Decimal],
    consumptions: Sequence[Decimal],
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
    allocation_service: AllocationService | None = None,
) -> InvoiceReconciliation:
    """Compute each unit's share of the invoice difference.

    Args:
        invoice_total: Real water+sewer invoice amount
        water_costs: Tariff-derived water cost per unit (rounded)
        consumptions: Consumption per unit, aligned with water_costs
        tolerance: Differences with absolute value <= tolerance are ignored
        allocation_service: Allocation primitives (default: new instance)

    Returns:
        InvoiceReconciliation with unrounded shares (zeros when not applied)
    """
    allocator = allocation_service or AllocationService()
    unit_count = len(water_costs)
    invoice = to_decimal(invoice_total)
    computed_total = sum((to_decimal(c) for c in water_costs), ZERO)
    difference = invoice - computed_total

    if unit_count == 0 or abs(difference) <= to_decimal(tolerance):
        return InvoiceReconciliation(
            invoice_total=invoice,
            computed_total=computed_total,
            difference=difference,
            strategy=AdjustmentStrategy.NONE,
            shares=tuple(ZERO for _ in range(unit_count)),
        )

    total_consumption = sum((to_decimal(c) for c in consumptions), ZERO)
    if total_consumption > 0:
        strategy = AdjustmentStrategy.CONSUMPTION
        shares = allocator.allocate_proportional(difference, consumptions)
    else:
        strategy = AdjustmentStrategy.EQUAL
        per_unit = allocator.split_equally(difference, unit_count)
        shares = [per_unit for _ in range(unit_count)]

    logger.info(
        "Invoice reconciliation: invoice=%s computed=%s difference=%s strategy=%s",
        invoice,
        computed_total,
        round_money(difference),
        strategy.value,
    )

    return InvoiceReconciliation(
        invoice_total=invoice,
        computed_total=computed_total,
        difference=difference,
        strategy=strategy,
        shares=tuple(shares),
    )
