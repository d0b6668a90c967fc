"""Unit bill ORM model: one calculated bill inside a monthly record."""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from condocalc.models import Base, BaseModel


class UnitBill(Base, BaseModel):
    """Itemized bill of a unit as committed to history."""

    __tablename__ = "unit_bills"

    record_id: Mapped[int] = mapped_column(
        ForeignKey("monthly_records.id"),
        nullable=False,
        index=True,
        comment="Monthly record this bill belongs to",
    )
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Order of the unit within the calculation",
    )

    unit_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unit_label: Mapped[str] = mapped_column(String(32), nullable=False)

    area: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    previous_reading: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    current_reading: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    consumption: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    water_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Tariff-derived water+sewer cost before invoice adjustment",
    )
    fixed_share: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    excess_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    equal_share: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    proportional_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_bill: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Final bill including invoice adjustment",
    )

    breakdown: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Cost per tier name or adjustment label (decimal strings)",
    )

    record: Mapped["MonthlyRecord"] = relationship(  # noqa: F821
        "MonthlyRecord",
        back_populates="unit_bills",
    )

    __table_args__ = (Index("idx_unit_bill_record_label", "record_id", "unit_label"),)

    def __repr__(self) -> str:
        return (
            f"<UnitBill(id={self.id}, record_id={self.record_id}, "
            f"unit_label={self.unit_label}, total_bill={self.total_bill})>"
        )


__all__ = ["UnitBill"]
