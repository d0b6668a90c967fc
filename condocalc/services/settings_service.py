"""Service for the working configuration: unit readings, expenses and tariff.

Stored values that are missing or no longer match the schema fall back to the
configured defaults instead of failing.
"""

import logging
from typing import Any, Sequence

from pydantic import ValidationError
from sqlalchemy.orm import Session

from condocalc.models.app_setting import AppSetting
from condocalc.schemas import CommonExpensesSchema, TariffRatesSchema
from condocalc.services.billing_types import CommonExpenses, TariffRates, Unit
from condocalc.services.config import AppConfig, create_initial_units
from condocalc.services.errors import ReadingValidationError
from condocalc.services.money import to_decimal
from condocalc.services.tariff_service import enrich_tariff_tiers

logger = logging.getLogger(__name__)

COMMON_EXPENSES_KEY = "common_expenses"
TARIFF_RATES_KEY = "tariff_rates"
UNITS_KEY = "units"


class SettingsService:
    """Read and write the configuration the next calculation will use."""

    def __init__(self, session: Session, config: AppConfig) -> None:
        self.db = session
        self.config = config

    def _get(self, key: str) -> Any | None:
        setting = self.db.get(AppSetting, key)
        return setting.value if setting is not None else None

    def _set(self, key: str, value: Any) -> None:
        setting = self.db.get(AppSetting, key)
        if setting is None:
            self.db.add(AppSetting(key=key, value=value))
        else:
            setting.value = value
        self.db.commit()

    def get_common_expenses(self) -> CommonExpenses:
        stored = self._get(COMMON_EXPENSES_KEY)
        if stored is None:
            return self.config.common_expenses
        try:
            return CommonExpensesSchema.model_validate(stored).to_domain()
        except ValidationError as e:
            logger.warning("Stored common expenses invalid, using defaults: %s", e)
            return self.config.common_expenses

    def save_common_expenses(self, expenses: CommonExpenses) -> CommonExpenses:
        self._set(
            COMMON_EXPENSES_KEY,
            CommonExpensesSchema.model_validate(expenses).model_dump(mode="json"),
        )
        logger.info("Common expenses updated")
        return expenses

    def get_tariff_rates(self) -> TariffRates:
        """Stored tariff (or default) with derived costs filled in."""
        stored = self._get(TARIFF_RATES_KEY)
        rates = self.config.tariff_rates
        if stored is not None:
            try:
                rates = TariffRatesSchema.model_validate(stored).to_domain()
            except ValidationError as e:
                logger.warning("Stored tariff rates invalid, using defaults: %s", e)
        return enrich_tariff_tiers(rates, defaults=self.config.tariff_rates)

    def save_tariff_rates(self, rates: TariffRates) -> TariffRates:
        """Enrich and store a tariff; returns the enriched tariff."""
        enriched = enrich_tariff_tiers(rates, defaults=self.config.tariff_rates)
        self._set(
            TARIFF_RATES_KEY,
            TariffRatesSchema.model_validate(enriched).model_dump(mode="json"),
        )
        logger.info("Tariff rates updated (%d tiers)", len(enriched.tiers or ()))
        return enriched

    def get_units(self) -> list[Unit]:
        """Configured units with the stored readings aligned by label."""
        units = create_initial_units(self.config)
        stored = self._get(UNITS_KEY)
        if stored is None:
            return units

        labels = set(self.config.unit_labels)
        if (
            not isinstance(stored, list)
            or len(stored) != len(units)
            or not all(isinstance(item, dict) and item.get("label") in labels for item in stored)
        ):
            logger.warning("Stored unit readings do not match configured units, using defaults")
            return units

        readings = {item["label"]: item for item in stored}
        return [
            Unit(
                id=unit.id,
                label=unit.label,
                area=unit.area,
                previous_reading=to_decimal(readings.get(unit.label, {}).get("previous_reading")),
                current_reading=to_decimal(readings.get(unit.label, {}).get("current_reading")),
            )
            for unit in units
        ]

    def save_units(self, units: Sequence[Unit]) -> list[Unit]:
        """Store readings; ids and areas always come from configuration.

        Raises:
            ReadingValidationError: If a label is not a configured unit
        """
        labels = set(self.config.unit_labels)
        unknown = [unit.label for unit in units if unit.label not in labels]
        if unknown:
            raise ReadingValidationError(f"Unknown unit labels: {', '.join(unknown)}", unknown)

        by_label = {unit.label: unit for unit in units}
        aligned = [
            Unit(
                id=base.id,
                label=base.label,
                area=base.area,
                previous_reading=to_decimal(by_label[base.label].previous_reading)
                if base.label in by_label
                else base.previous_reading,
                current_reading=to_decimal(by_label[base.label].current_reading)
                if base.label in by_label
                else base.current_reading,
            )
            for base in self.get_units()
        ]
        self._set(
            UNITS_KEY,
            [
                {
                    "label": unit.label,
                    "previous_reading": str(unit.previous_reading),
                    "current_reading": str(unit.current_reading),
                }
                for unit in aligned
            ],
        )
        logger.info("Unit readings updated for %d units", len(by_label))
        return aligned
