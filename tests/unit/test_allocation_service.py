"""Unit tests for allocation service."""

from decimal import Decimal

import pytest

from condocalc.services.allocation_service import AllocationService


class TestAllocationService:
    """Test allocation service methods."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_calculate_consumption(self, service):
        """Test consumption calculation."""
        consumption = service.calculate_consumption(Decimal("1000.5"), Decimal("1500.3"))

        assert consumption == Decimal("499.8")

    def test_calculate_consumption_negative_clamped(self, service):
        """Test meter rollover (end < start) yields zero instead of a negative delta."""
        consumption = service.calculate_consumption(Decimal("9999.9"), Decimal("100.5"))

        assert consumption == Decimal("0")

    @pytest.mark.parametrize(
        "start,end",
        [(0, 0), (5, 5), (10, 3), (-2, 7), (0.1, 0.3), ("12.345", "12.344")],
    )
    def test_calculate_consumption_never_negative(self, service, start, end):
        """Consumption is non-negative for any readings."""
        assert service.calculate_consumption(start, end) >= 0

    def test_calculate_consumption_accepts_floats(self, service):
        """Float readings are converted without binary artifacts."""
        assert service.calculate_consumption(0.1, 0.3) == Decimal("0.2")

    def test_split_equally(self, service):
        """Test equal split."""
        assert service.split_equally(Decimal("100.00"), 4) == Decimal("25")

    def test_split_equally_no_units(self, service):
        """Test equal split with zero units returns zero."""
        assert service.split_equally(Decimal("100.00"), 0) == Decimal("0")

    def test_allocate_proportional(self, service):
        """Test proportional allocation."""
        result = service.allocate_proportional(
            Decimal("100.00"), [Decimal("1"), Decimal("2"), Decimal("1")]
        )

        # 100 * (1/4) = 25, (2/4) = 50, (1/4) = 25
        assert result == [Decimal("25"), Decimal("50"), Decimal("25")]

    def test_allocate_proportional_by_area(self, service):
        """Test area-based split of a service fee."""
        result = service.allocate_proportional(
            Decimal("300"), [Decimal("100"), Decimal("100"), Decimal("50"), Decimal("50")]
        )

        assert result == [Decimal("100"), Decimal("100"), Decimal("50"), Decimal("50")]
        assert sum(result) == Decimal("300")

    def test_allocate_proportional_zero_weights(self, service):
        """Test with all zero weights."""
        result = service.allocate_proportional(Decimal("100.00"), [Decimal(0), Decimal(0)])

        assert result == [Decimal(0), Decimal(0)]

    def test_allocate_proportional_empty(self, service):
        """Test with no weights."""
        assert service.allocate_proportional(Decimal("100.00"), []) == []

    def test_allocate_proportional_negative_total(self, service):
        """Negative totals (credits) are split the same way."""
        result = service.allocate_proportional(Decimal("-40"), [Decimal("30"), Decimal("10")])

        assert result == [Decimal("-30"), Decimal("-10")]

    def test_calculate_excess_volumes(self, service):
        """Test volume above each unit's share of the fixed allowance."""
        result = service.calculate_excess_volumes(
            [Decimal("30"), Decimal("10"), Decimal("20")], Decimal("20")
        )

        assert result == [Decimal("10"), Decimal("0"), Decimal("0")]
