"""Unit tests for tariff enrichment."""

from decimal import Decimal

import pytest

from condocalc.services.billing_types import TariffRates, TariffTier
from condocalc.services.tariff_service import enrich_tariff_tiers, enrich_tier


class TestEnrichTier:
    """Tests for single tier enrichment."""

    def test_fixed_tier_keeps_water_cost(self):
        """Fixed tier water cost is the configured value; sewer is a percentage of it."""
        tier = TariffTier(id="f", name="Minimum", volume=Decimal("40"), water_cost=Decimal("403.36"), is_fixed=True)

        enriched = enrich_tier(tier, Decimal("80"))

        assert enriched.water_cost == Decimal("403.36")
        # 403.36 * 0.8 = 322.688
        assert enriched.sewer_cost == Decimal("322.69")
        assert enriched.total_cost == Decimal("726.05")
        assert enriched.unit_excess_rate == Decimal("0.00")

    def test_excess_tier_derives_water_cost_from_rate(self):
        """Excess tier water cost is volume × rate, ignoring the stored value."""
        tier = TariffTier(
            id="e1",
            name="Excess",
            volume=Decimal("10"),
            water_cost=Decimal("999"),
            rate_per_m3=Decimal("1.56"),
        )

        enriched = enrich_tier(tier, Decimal("80"))

        assert enriched.water_cost == Decimal("15.60")
        assert enriched.sewer_cost == Decimal("12.48")
        assert enriched.total_cost == Decimal("28.08")
        # 28.08 / 10 = 2.808
        assert enriched.unit_excess_rate == Decimal("2.81")

    def test_excess_tier_without_rate_keeps_water_cost(self):
        """Without a per-m³ rate the entered water cost is used."""
        tier = TariffTier(id="e1", name="Excess", volume=Decimal("10"), water_cost=Decimal("20"))

        enriched = enrich_tier(tier, Decimal("50"))

        assert enriched.water_cost == Decimal("20.00")
        assert enriched.total_cost == Decimal("30.00")
        assert enriched.unit_excess_rate == Decimal("3.00")

    def test_excess_tier_zero_volume_has_zero_rate(self):
        """Per-m³ excess rate is 0 when the bracket volume is 0."""
        tier = TariffTier(id="e1", name="Excess", volume=Decimal("0"), water_cost=Decimal("0"), rate_per_m3=Decimal("2"))

        assert enrich_tier(tier, Decimal("80")).unit_excess_rate == Decimal("0")

    def test_zero_sewer_rate(self):
        """Sewer cost is zero at 0%."""
        tier = TariffTier(id="f", name="Minimum", volume=Decimal("40"), water_cost=Decimal("100"), is_fixed=True)

        enriched = enrich_tier(tier, Decimal("0"))

        assert enriched.sewer_cost == Decimal("0.00")
        assert enriched.total_cost == Decimal("100.00")


class TestEnrichTariffTiers:
    """Tests for enrich_tariff_tiers."""

    def test_enriches_every_tier(self, raw_tariffs):
        """All tiers get derived costs."""
        enriched = enrich_tariff_tiers(raw_tariffs)

        assert enriched.is_enriched
        assert [t.total_cost for t in enriched.tiers] == [Decimal("726.05"), Decimal("28.08")]
        assert enriched.sewer_rate_percentage == Decimal("80")

    def test_does_not_mutate_input(self, raw_tariffs):
        """Input tariff keeps its raw values."""
        enrich_tariff_tiers(raw_tariffs)

        assert not raw_tariffs.is_enriched
        assert raw_tariffs.tiers[0].total_cost is None

    def test_idempotent(self, raw_tariffs):
        """Re-enriching an enriched tariff yields the same figures."""
        once = enrich_tariff_tiers(raw_tariffs)

        assert enrich_tariff_tiers(once) == once

    @pytest.mark.parametrize(
        "water_cost,rate,sewer",
        [
            (Decimal("403.365"), None, Decimal("80")),
            (Decimal("0.005"), None, Decimal("33.3")),
            (Decimal("0"), Decimal("1.333"), Decimal("80")),
            (Decimal("0"), Decimal("0.555"), Decimal("12.5")),
        ],
    )
    def test_idempotent_with_half_cent_values(self, water_cost, rate, sewer):
        """Idempotence holds when water costs need rounding."""
        rates = TariffRates(
            tiers=(
                TariffTier(id="f", name="Minimum", volume=Decimal("40"), water_cost=water_cost, is_fixed=True),
                TariffTier(id="e", name="Excess", volume=Decimal("3"), water_cost=Decimal("0"), rate_per_m3=rate),
            ),
            sewer_rate_percentage=sewer,
        )

        once = enrich_tariff_tiers(rates)

        assert enrich_tariff_tiers(once) == once

    def test_missing_tiers_falls_back_to_defaults(self, caplog):
        """A tariff without tiers is a configuration error: logged, defaults returned."""
        broken = TariffRates(tiers=None, sewer_rate_percentage=Decimal("80"))

        result = enrich_tariff_tiers(broken)

        assert result.is_enriched
        assert result.fixed_tier.total_cost == Decimal("726.05")
        assert "no tiers" in caplog.text

    def test_missing_rates_uses_given_defaults(self, fixed_only_tariffs):
        """Explicit defaults are used instead of the built-in tariff."""
        result = enrich_tariff_tiers(None, defaults=fixed_only_tariffs)

        assert len(result.tiers) == 1
        assert result.fixed_tier.name == "Minimum"
        assert result.fixed_tier.total_cost == Decimal("0.00")
