"""Pytest configuration: in-memory database and shared billing fixtures."""

import os

# Set test environment BEFORE any imports from condocalc
# locale_service reads LOCALE at import; load_config() defaults to an in-memory database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOCALE"] = "pt_BR"
os.environ.pop("CONDO_CONFIG_PATH", None)

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from condocalc.models import Base  # noqa: E402
from condocalc.services.billing_types import (  # noqa: E402
    CommonExpenses,
    TariffRates,
    TariffTier,
    Unit,
)
from condocalc.services.config import AppConfig, default_tariff_rates  # noqa: E402
from condocalc.services.db import create_db_engine  # noqa: E402


@pytest.fixture
def db_session():
    """Create test database session on a fresh in-memory database."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def raw_tariffs() -> TariffRates:
    """Fixed tier 40 m³ / 403.36, excess tier 10 m³ at 1.56/m³, sewer 80%."""
    return default_tariff_rates()


@pytest.fixture
def two_units() -> list[Unit]:
    """Unit A consumes 30 m³, unit B consumes 10 m³, equal areas."""
    return [
        Unit(id="a", label="A", area=Decimal("100"), previous_reading=Decimal("0"), current_reading=Decimal("30")),
        Unit(id="b", label="B", area=Decimal("100"), previous_reading=Decimal("0"), current_reading=Decimal("10")),
    ]


@pytest.fixture
def app_config(raw_tariffs) -> AppConfig:
    """Two-unit condominium whose invoice matches the tariff for A=30/B=10."""
    return AppConfig(
        database_url="sqlite:///:memory:",
        unit_labels=("A", "B"),
        unit_area=Decimal("100"),
        tariff_rates=raw_tariffs,
        common_expenses=CommonExpenses(utility_invoice_total=Decimal("754.14")),
    )


@pytest.fixture
def fixed_only_tariffs() -> TariffRates:
    """Tariff whose only tier is a zero-cost fixed tier."""
    return TariffRates(
        tiers=(
            TariffTier(id="fixed", name="Minimum", volume=Decimal("40"), water_cost=Decimal("0"), is_fixed=True),
        ),
        sewer_rate_percentage=Decimal("80"),
    )
