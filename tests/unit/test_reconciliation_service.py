"""Unit tests for invoice reconciliation."""

from decimal import Decimal

from condocalc.services.reconciliation_service import (
    RECONCILIATION_TOLERANCE,
    AdjustmentStrategy,
    reconcile_invoice,
)


class TestReconcileInvoice:
    """Tests for reconcile_invoice."""

    def test_tolerance_constant(self):
        assert RECONCILIATION_TOLERANCE == Decimal("0.01")

    def test_exact_match_not_applied(self):
        result = reconcile_invoice(Decimal("200"), [Decimal("100"), Decimal("100")], [Decimal("5"), Decimal("5")])

        assert not result.applied
        assert result.strategy is AdjustmentStrategy.NONE
        assert result.difference == Decimal("0")
        assert result.shares == (Decimal("0"), Decimal("0"))

    def test_one_cent_difference_not_applied(self):
        """A difference equal to the tolerance is rounding noise."""
        result = reconcile_invoice(Decimal("20.01"), [Decimal("10"), Decimal("10")], [Decimal("1"), Decimal("1")])

        assert not result.applied

    def test_two_cent_difference_applied(self):
        result = reconcile_invoice(Decimal("20.02"), [Decimal("10"), Decimal("10")], [Decimal("1"), Decimal("1")])

        assert result.applied
        assert result.shares == (Decimal("0.01"), Decimal("0.01"))

    def test_proportional_to_consumption(self):
        result = reconcile_invoice(
            Decimal("240"), [Decimal("100"), Decimal("100")], [Decimal("30"), Decimal("10")]
        )

        assert result.strategy is AdjustmentStrategy.CONSUMPTION
        assert result.difference == Decimal("40")
        assert result.shares == (Decimal("30"), Decimal("10"))

    def test_negative_difference(self):
        result = reconcile_invoice(
            Decimal("160"), [Decimal("100"), Decimal("100")], [Decimal("30"), Decimal("10")]
        )

        assert result.shares == (Decimal("-30"), Decimal("-10"))

    def test_equal_split_without_consumption(self):
        result = reconcile_invoice(
            Decimal("500"), [Decimal("0")] * 4, [Decimal("0")] * 4
        )

        assert result.strategy is AdjustmentStrategy.EQUAL
        assert result.shares == (Decimal("125"),) * 4

    def test_shares_sum_to_difference(self):
        result = reconcile_invoice(
            Decimal("1000"),
            [Decimal("123.45"), Decimal("234.56"), Decimal("345.67")],
            [Decimal("7"), Decimal("11"), Decimal("13")],
        )

        assert abs(sum(result.shares) - result.difference) < Decimal("0.000001")

    def test_no_units(self):
        result = reconcile_invoice(Decimal("500"), [], [])

        assert not result.applied
        assert result.shares == ()
