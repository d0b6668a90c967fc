"""Input validation run before a calculation is allowed to start.

The billing engine tolerates bad readings (it clamps consumption to zero);
this layer is where they are rejected so the user can fix them first.
"""

import logging
from typing import Iterable, Sequence

from condocalc.services.billing_types import Unit
from condocalc.services.errors import NoUnitsError, ReadingValidationError
from condocalc.services.money import to_decimal

logger = logging.getLogger(__name__)


def validate_units(units: Sequence[Unit], unit_labels: Iterable[str] | None = None) -> None:
    """Check units before calculation.

    Args:
        units: Units with readings
        unit_labels: Allowed labels (default: any label)

    Raises:
        NoUnitsError: If units is empty
        ReadingValidationError: If readings, areas or labels are invalid
    """
    if not units:
        raise NoUnitsError("No units to calculate; add unit readings first")

    labels = [unit.label for unit in units]
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        raise ReadingValidationError(
            f"Duplicate unit labels: {', '.join(duplicates)}", duplicates
        )

    if unit_labels is not None:
        allowed = set(unit_labels)
        unknown = [label for label in labels if label not in allowed]
        if unknown:
            raise ReadingValidationError(f"Unknown unit labels: {', '.join(unknown)}", unknown)

    bad_area = [unit.label for unit in units if to_decimal(unit.area) <= 0]
    if bad_area:
        raise ReadingValidationError(
            f"Floor area must be positive for units: {', '.join(bad_area)}", bad_area
        )

    negative = [unit.label for unit in units if to_decimal(unit.previous_reading) < 0]
    if negative:
        raise ReadingValidationError(
            f"Previous reading cannot be negative for units: {', '.join(negative)}", negative
        )

    backwards = [
        unit.label
        for unit in units
        if to_decimal(unit.current_reading) < to_decimal(unit.previous_reading)
    ]
    if backwards:
        logger.warning("Rejected readings: current below previous for units %s", backwards)
        raise ReadingValidationError(
            f"Current reading cannot be lower than previous reading for units: "
            f"{', '.join(backwards)}",
            backwards,
        )
