"""Allocation primitives for splitting condominium costs across units.

Supports allocation strategies:
- EQUAL: Same amount for every unit (fixed tier share, equal-share expenses)
- PROPORTIONAL: Distribute by a weight per unit (floor area, excess volume, consumption)

Results are unrounded Decimals; callers round at emission so that sums of
intermediate figures do not accumulate rounding error.
"""

import logging
from decimal import Decimal
from typing import Sequence

from condocalc.services.money import ZERO, to_decimal

logger = logging.getLogger(__name__)


class AllocationService:
    """Cost allocation engine with equal and proportional strategies."""

    def calculate_consumption(
        self,
        start_reading: Decimal,
        end_reading: Decimal,
    ) -> Decimal:
        """Calculate consumption from meter readings.

        Args:
            start_reading: Previous meter reading
            end_reading: Current meter reading

        Returns:
            Consumption amount (end - start), or 0 when end < start
        """
        start = to_decimal(start_reading)
        end = to_decimal(end_reading)
        if end < start:
            logger.debug("Current reading %s below previous %s, consumption set to 0", end, start)
            return ZERO
        return end - start

    def split_equally(self, total_amount: Decimal, unit_count: int) -> Decimal:
        """Amount each unit pays when total_amount is split evenly.

        Returns 0 when there are no units.
        """
        if unit_count <= 0:
            return ZERO
        return to_decimal(total_amount) / Decimal(unit_count)

    def allocate_proportional(
        self,
        total_amount: Decimal,
        weights: Sequence[Decimal],
    ) -> list[Decimal]:
        """Allocate total_amount by weight.

        Formula: share[i] = total × weight[i] / Σweight

        Args:
            total_amount: Total to distribute
            weights: One non-negative weight per unit

        Returns:
            List of shares aligned with weights; all zeros when Σweight is 0
        """
        weight_list = [to_decimal(w) for w in weights]
        total_weight = sum(weight_list, ZERO)
        if total_weight <= 0:
            return [ZERO for _ in weight_list]

        total = to_decimal(total_amount)
        return [
            weight * total / total_weight if weight > 0 else ZERO for weight in weight_list
        ]

    def calculate_excess_volumes(
        self,
        consumptions: Sequence[Decimal],
        allowance_per_unit: Decimal,
    ) -> list[Decimal]:
        """Volume each unit consumed beyond its share of the fixed tier allowance."""
        allowance = to_decimal(allowance_per_unit)
        return [max(ZERO, to_decimal(c) - allowance) for c in consumptions]
