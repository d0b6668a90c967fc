"""Monthly record ORM model: committed snapshot of one billing period."""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from condocalc.models import Base, BaseModel


class MonthlyRecord(Base, BaseModel):
    """
    Snapshot of a calculated billing period.

    One record per period; saving the same period again replaces the totals,
    the frozen inputs and all unit bills.
    """

    __tablename__ = "monthly_records"

    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        unique=True,
        index=True,
        comment="Billing period identifier (YYYY-MM)",
    )

    total_reading: Mapped[Decimal] = mapped_column(
        Numeric(14, 3),
        nullable=False,
        comment="Sum of current meter readings (m³)",
    )
    total_consumption: Mapped[Decimal] = mapped_column(
        Numeric(14, 3),
        nullable=False,
        comment="Sum of unit consumption (m³)",
    )
    total_bill: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Sum of unit bills",
    )
    average_bill: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Average bill per unit",
    )

    common_expenses: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Common expenses used for the calculation",
    )
    tariff_rates: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Enriched tariff used for the calculation",
    )

    unit_bills: Mapped[list["UnitBill"]] = relationship(  # noqa: F821
        "UnitBill",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="UnitBill.position",
    )

    def __repr__(self) -> str:
        return (
            f"<MonthlyRecord(id={self.id}, period={self.period}, "
            f"total_bill={self.total_bill})>"
        )


__all__ = ["MonthlyRecord"]
