"""Configuration loading for the billing calculator.

Loads settings from .env file and environment variables with sensible defaults.
Condominium defaults (unit labels, unit area, default tariff and expenses) can be
overridden from a JSON file referenced by CONDO_CONFIG_PATH.
"""

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from condocalc.schemas import CommonExpensesSchema, TariffRatesSchema
from condocalc.services.billing_types import CommonExpenses, TariffRates, TariffTier, Unit
from condocalc.services.errors import ConfigError

DEFAULT_UNIT_LABELS = ("11", "12", "21", "22", "31", "32", "41", "42")
DEFAULT_UNIT_AREA = Decimal("100")
DEFAULT_TOLERANCE = Decimal("0.01")


def default_tariff_rates() -> TariffRates:
    """Built-in tariff: 40 m³ minimum plus one excess bracket, sewer at 80%."""
    return TariffRates(
        tiers=(
            TariffTier(
                id="fixedTier",
                name="Minimum (0-40 m³)",
                volume=Decimal("40"),
                water_cost=Decimal("403.36"),
                is_fixed=True,
            ),
            TariffTier(
                id="exceedingTier1",
                name="Excess tier 1 (above 40 m³)",
                volume=Decimal("10"),
                water_cost=Decimal("15.60"),
                rate_per_m3=Decimal("1.56"),
            ),
        ),
        sewer_rate_percentage=Decimal("80"),
    )


def default_common_expenses() -> CommonExpenses:
    return CommonExpenses(utility_invoice_total=Decimal("404.29"))


@dataclass
class AppConfig:
    """Configuration for the billing calculator."""

    database_url: str = "sqlite:///./condocalc.db"
    """SQLAlchemy database URL (default: local SQLite)"""

    log_file: str = "logs/condocalc.log"
    """Path to log file"""

    locale: str = "pt_BR"
    """Babel locale used to format amounts"""

    unit_labels: tuple[str, ...] = DEFAULT_UNIT_LABELS
    """Fixed set of unit labels of the condominium"""

    unit_area: Decimal = DEFAULT_UNIT_AREA
    """Floor area assigned to every unit"""

    reconciliation_tolerance: Decimal = DEFAULT_TOLERANCE
    """Invoice differences at or below this value are not redistributed"""

    tariff_rates: TariffRates = field(default_factory=default_tariff_rates)
    """Tariff used when nothing valid has been stored yet"""

    common_expenses: CommonExpenses = field(default_factory=default_common_expenses)
    """Expenses used when nothing valid has been stored yet"""


def create_initial_units(config: AppConfig) -> list[Unit]:
    """Build the fixed unit list with zeroed readings."""
    return [Unit(id=label, label=label, area=config.unit_area) for label in config.unit_labels]


def _parse_decimal(name: str, raw) -> Decimal:
    try:
        return Decimal(str(raw))
    except InvalidOperation as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _validate_tariff_rates(rates: TariffRates) -> None:
    fixed_count = len(rates.fixed_tiers)
    if fixed_count != 1:
        raise ConfigError(f"Tariff must have exactly one fixed tier, found {fixed_count}")


def _apply_overrides(config: AppConfig, path: Path) -> None:
    """Apply condominium defaults from a JSON file onto config."""
    if not path.exists():
        raise ConfigError(f"Condominium config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Condominium config file is not valid JSON: {path}. Error: {str(e)}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read condominium config file: {path}. Error: {str(e)}") from e

    if "unit_labels" in data:
        labels = tuple(str(label) for label in data["unit_labels"])
        if not labels:
            raise ConfigError("unit_labels must not be empty")
        if len(set(labels)) != len(labels):
            raise ConfigError(f"unit_labels contains duplicates: {', '.join(labels)}")
        config.unit_labels = labels

    if "unit_area" in data:
        area = _parse_decimal("unit_area", data["unit_area"])
        if area <= 0:
            raise ConfigError(f"unit_area must be positive, got {area}")
        config.unit_area = area

    if "reconciliation_tolerance" in data:
        config.reconciliation_tolerance = _parse_decimal(
            "reconciliation_tolerance", data["reconciliation_tolerance"]
        )

    try:
        if "tariff_rates" in data:
            config.tariff_rates = TariffRatesSchema.model_validate(data["tariff_rates"]).to_domain()
        if "common_expenses" in data:
            config.common_expenses = CommonExpensesSchema.model_validate(
                data["common_expenses"]
            ).to_domain()
    except ValidationError as e:
        raise ConfigError(f"Invalid condominium config in {path}: {e}") from e

    _validate_tariff_rates(config.tariff_rates)


def load_config() -> AppConfig:
    """
    Load configuration from .env file, environment variables and JSON defaults.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, LOG_FILE, LOCALE, ...)
    2. .env file in working directory
    3. CONDO_CONFIG_PATH JSON file (condominium defaults only)
    4. Built-in defaults

    Returns:
        AppConfig with all settings

    Raises:
        ConfigError: If the JSON file or a numeric setting is invalid

    Example:
        Create condo.json:
        ```
        {"unit_labels": ["101", "102"], "unit_area": 75}
        ```

        Then set CONDO_CONFIG_PATH=condo.json and call `load_config()`.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    config = AppConfig()

    config_path = os.getenv("CONDO_CONFIG_PATH")
    if config_path:
        _apply_overrides(config, Path(config_path))

    config.database_url = os.getenv("DATABASE_URL", config.database_url)
    config.log_file = os.getenv("LOG_FILE", config.log_file)
    config.locale = os.getenv("LOCALE", config.locale)

    tolerance = os.getenv("RECONCILIATION_TOLERANCE")
    if tolerance:
        config.reconciliation_tolerance = _parse_decimal("RECONCILIATION_TOLERANCE", tolerance)
    if config.reconciliation_tolerance < 0:
        raise ConfigError(
            f"Reconciliation tolerance cannot be negative, got {config.reconciliation_tolerance}"
        )

    return config
