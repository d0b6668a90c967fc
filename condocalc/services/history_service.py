"""Service for committing calculated periods to history and reading them back."""

import logging
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from condocalc.models.monthly_record import MonthlyRecord
from condocalc.models.unit_bill import UnitBill
from condocalc.schemas import CommonExpensesSchema, TariffRatesSchema
from condocalc.services.billing_types import CalculatedUnitBill, MonthlySummary, Unit
from condocalc.services.errors import RecordNotFoundError
from condocalc.services.money import ZERO
from condocalc.services.period_service import previous_period, validate_period

logger = logging.getLogger(__name__)


def _bill_to_row(position: int, bill: CalculatedUnitBill) -> UnitBill:
    return UnitBill(
        position=position,
        unit_id=bill.id,
        unit_label=bill.label,
        area=bill.area,
        previous_reading=bill.previous_reading,
        current_reading=bill.current_reading,
        consumption=bill.consumption,
        water_cost=bill.water_cost,
        fixed_share=bill.fixed_share,
        excess_cost=bill.excess_cost,
        equal_share=bill.equal_share,
        proportional_fee=bill.proportional_fee,
        total_bill=bill.total_bill,
        breakdown={name: str(amount) for name, amount in bill.breakdown.items()},
    )


def _row_to_bill(row: UnitBill) -> CalculatedUnitBill:
    return CalculatedUnitBill(
        id=row.unit_id,
        label=row.unit_label,
        area=row.area,
        previous_reading=row.previous_reading,
        current_reading=row.current_reading,
        consumption=row.consumption,
        water_cost=row.water_cost,
        fixed_share=row.fixed_share,
        excess_cost=row.excess_cost,
        equal_share=row.equal_share,
        proportional_fee=row.proportional_fee,
        total_bill=row.total_bill,
        breakdown={name: Decimal(amount) for name, amount in row.breakdown.items()},
    )


class HistoryService:
    """Monthly history storage with one record per period (upsert on save)."""

    def __init__(self, session: Session) -> None:
        """Initialize service with database session.

        Args:
            session: SQLAlchemy session
        """
        self.db = session

    def find_record(self, period: str) -> MonthlyRecord | None:
        stmt = select(MonthlyRecord).where(MonthlyRecord.period == period)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_record(self, period: str) -> MonthlyRecord:
        """Get the record of a period.

        Raises:
            RecordNotFoundError: If nothing was saved for the period
        """
        validate_period(period)
        record = self.find_record(period)
        if record is None:
            raise RecordNotFoundError(f"No history record for period {period}")
        return record

    def list_records(self) -> list[MonthlyRecord]:
        """All records, newest period first."""
        stmt = select(MonthlyRecord).order_by(MonthlyRecord.period.desc())
        return list(self.db.execute(stmt).scalars().all())

    def save_summary(self, summary: MonthlySummary) -> MonthlyRecord:
        """Commit a calculated period, replacing any earlier record of that period.

        Args:
            summary: Output of build_monthly_summary

        Returns:
            The stored MonthlyRecord
        """
        validate_period(summary.period)
        try:
            record = self.find_record(summary.period)
            if record is None:
                record = MonthlyRecord(period=summary.period)
                self.db.add(record)
                action = "created"
            else:
                action = "replaced"

            record.total_reading = summary.total_reading
            record.total_consumption = summary.total_consumption
            record.total_bill = summary.total_bill
            record.average_bill = summary.average_bill
            record.common_expenses = CommonExpensesSchema.model_validate(
                summary.common_expenses
            ).model_dump(mode="json")
            record.tariff_rates = TariffRatesSchema.model_validate(
                summary.tariff_rates
            ).model_dump(mode="json")
            record.unit_bills = [_bill_to_row(i, bill) for i, bill in enumerate(summary.bills)]

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Failed to save history record for %s", summary.period, exc_info=True)
            raise

        logger.info(
            "History record %s for %s (%d units, total=%s)",
            action,
            summary.period,
            len(summary.bills),
            summary.total_bill,
        )
        return record

    def load_summary(self, period: str) -> MonthlySummary:
        """Rebuild the MonthlySummary committed for a period."""
        record = self.get_record(period)
        return MonthlySummary(
            period=record.period,
            total_reading=record.total_reading,
            total_consumption=record.total_consumption,
            total_bill=record.total_bill,
            average_bill=record.average_bill,
            bills=tuple(_row_to_bill(row) for row in record.unit_bills),
            common_expenses=CommonExpensesSchema.model_validate(record.common_expenses).to_domain(),
            tariff_rates=TariffRatesSchema.model_validate(record.tariff_rates).to_domain(),
        )

    def delete_record(self, period: str) -> None:
        record = self.get_record(period)
        self.db.delete(record)
        self.db.commit()
        logger.info("History record deleted for %s", period)

    def can_import_previous_readings(self, period: str) -> bool:
        """Whether the month before period has a record with unit bills."""
        record = self.find_record(previous_period(period))
        return record is not None and len(record.unit_bills) > 0

    def import_previous_readings(self, period: str, units: Sequence[Unit]) -> list[Unit]:
        """Start a period from the readings that closed the previous one.

        Each unit with a matching label gets the previous month's current
        reading as its previous reading and a current reading of 0. Units
        without a match are returned unchanged.

        Raises:
            RecordNotFoundError: If the previous month has no record
        """
        prev_period = previous_period(period)
        record = self.find_record(prev_period)
        if record is None or not record.unit_bills:
            raise RecordNotFoundError(
                f"No history record for {prev_period} to import readings from"
            )

        closing = {row.unit_label: row.current_reading for row in record.unit_bills}
        imported = []
        for unit in units:
            if unit.label in closing:
                imported.append(
                    Unit(
                        id=unit.id,
                        label=unit.label,
                        area=unit.area,
                        previous_reading=closing[unit.label],
                        current_reading=ZERO,
                    )
                )
            else:
                imported.append(unit)

        logger.info("Imported closing readings of %s into %s", prev_period, period)
        return imported
