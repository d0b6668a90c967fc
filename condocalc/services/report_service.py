"""Read-only report payload for invoice export and CLI output."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from condocalc.services.billing_types import CalculatedUnitBill, CommonExpenses, TariffRates
from condocalc.services.locale_service import format_amount, format_volume
from condocalc.services.money import ZERO, round_money

UNIT_COLUMNS = (
    "Unit",
    "Previous",
    "Current",
    "Consumption",
    "Fixed share",
    "Excess tiers",
    "Water/sewer",
    "Common",
    "Services",
    "Total",
)


@dataclass(frozen=True)
class BillingReport:
    """Formatted tables for one billing period."""

    period: str
    unit_rows: list[list[str]]
    totals_row: list[str]
    expense_rows: list[tuple[str, str]]
    tariff_rows: list[tuple[str, str]]
    total_bill: Decimal
    total_consumption: Decimal


def build_report(
    period: str,
    bills: Sequence[CalculatedUnitBill],
    expenses: CommonExpenses,
    tariffs: TariffRates,
) -> BillingReport:
    """Build the report tables from calculated bills (inputs are not modified)."""
    unit_rows = [
        [
            bill.label,
            format_volume(bill.previous_reading),
            format_volume(bill.current_reading),
            format_volume(bill.consumption),
            format_amount(bill.fixed_share),
            format_amount(bill.excess_cost),
            format_amount(bill.water_cost),
            format_amount(bill.equal_share),
            format_amount(bill.proportional_fee),
            format_amount(bill.total_bill),
        ]
        for bill in bills
    ]

    total_consumption = sum((bill.consumption for bill in bills), ZERO)
    total_bill = round_money(sum((bill.total_bill for bill in bills), ZERO))
    totals_row = [
        "TOTAL",
        "",
        "",
        format_volume(total_consumption),
        format_amount(sum((b.fixed_share for b in bills), ZERO)),
        format_amount(sum((b.excess_cost for b in bills), ZERO)),
        format_amount(sum((b.water_cost for b in bills), ZERO)),
        format_amount(sum((b.equal_share for b in bills), ZERO)),
        format_amount(sum((b.proportional_fee for b in bills), ZERO)),
        format_amount(total_bill),
    ]

    expense_rows = [
        ("Garbage fee", format_amount(expenses.garbage_fee)),
        ("Garbage fee penalty", format_amount(expenses.garbage_fee_penalty)),
        ("Late payment adjustment", format_amount(expenses.late_payment_adjustment)),
        ("Water penalty", format_amount(expenses.water_penalty)),
        ("Other services fee (by area)", format_amount(expenses.other_services_fee)),
        ("Utility water/sewer invoice", format_amount(expenses.utility_invoice_total)),
    ]

    tariff_rows = [("Sewer rate", f"{tariffs.sewer_rate_percentage}%")]
    for tier in tariffs.tiers or ():
        details = [f"volume {format_volume(tier.volume)}", f"water {format_amount(tier.water_cost)}"]
        if tier.rate_per_m3 is not None and not tier.is_fixed:
            details.append(f"rate {format_amount(tier.rate_per_m3)}/m³")
        if tier.sewer_cost is not None:
            details.append(f"sewer {format_amount(tier.sewer_cost)}")
        if tier.total_cost is not None:
            details.append(f"total {format_amount(tier.total_cost)}")
        tariff_rows.append((tier.name, ", ".join(details)))

    return BillingReport(
        period=period,
        unit_rows=unit_rows,
        totals_row=totals_row,
        expense_rows=expense_rows,
        tariff_rows=tariff_rows,
        total_bill=total_bill,
        total_consumption=total_consumption,
    )


def render_text(report: BillingReport) -> str:
    """Render the report as aligned plain text."""
    table = [list(UNIT_COLUMNS), *report.unit_rows, report.totals_row]
    widths = [max(len(row[i]) for row in table) for i in range(len(UNIT_COLUMNS))]

    lines = [f"Water billing report - {report.period}", ""]
    for row in table:
        lines.append("  ".join(cell.rjust(width) for cell, width in zip(row, widths)))

    lines += ["", "Common expenses"]
    lines += [f"  {name}: {value}" for name, value in report.expense_rows]
    lines += ["", "Tariff"]
    lines += [f"  {name}: {value}" for name, value in report.tariff_rows]
    return "\n".join(lines)
