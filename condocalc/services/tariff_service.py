"""Tariff enrichment: derives sewer, total and per-m³ excess cost for each tier."""

import logging
from dataclasses import replace
from decimal import Decimal

from condocalc.services.billing_types import TariffRates, TariffTier
from condocalc.services.config import default_tariff_rates
from condocalc.services.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)


def enrich_tier(tier: TariffTier, sewer_rate_percentage: Decimal) -> TariffTier:
    """Compute derived costs of a single tier.

    Water cost is rounded before the sewer cost is derived from it, so
    enriching an already enriched tier yields the same figures.
    """
    volume = to_decimal(tier.volume)
    water_cost = to_decimal(tier.water_cost)

    if not tier.is_fixed and tier.rate_per_m3 is not None and volume >= 0:
        water_cost = volume * to_decimal(tier.rate_per_m3)

    water_cost = round_money(water_cost)
    sewer_cost = round_money(water_cost * to_decimal(sewer_rate_percentage) / Decimal(100))
    total_cost = water_cost + sewer_cost

    unit_excess_rate = ZERO
    if not tier.is_fixed and volume > 0:
        unit_excess_rate = total_cost / volume

    return replace(
        tier,
        volume=volume,
        water_cost=water_cost,
        sewer_cost=sewer_cost,
        total_cost=total_cost,
        unit_excess_rate=round_money(unit_excess_rate),
    )


def enrich_tariff_tiers(
    rates: TariffRates | None,
    defaults: TariffRates | None = None,
) -> TariffRates:
    """Return a copy of rates with derived costs filled in for every tier.

    Args:
        rates: Raw or already enriched tariff configuration
        defaults: Configuration returned when rates has no tiers
            (default: built-in tariff from config)

    Returns:
        Enriched TariffRates. Idempotent: enrich(enrich(x)) == enrich(x).
    """
    if rates is None or rates.tiers is None:
        logger.error("Tariff configuration has no tiers, falling back to default tariff: %r", rates)
        if defaults is None:
            defaults = default_tariff_rates()
        if defaults.tiers is None:
            return defaults
        return enrich_tariff_tiers(defaults)

    sewer_rate = to_decimal(rates.sewer_rate_percentage)
    tiers = tuple(enrich_tier(tier, sewer_rate) for tier in rates.tiers)
    return TariffRates(tiers=tiers, sewer_rate_percentage=sewer_rate)
