"""CLI entry point for calculating bills and browsing history.

Usage:
    python -m condocalc.cli calculate [--input FILE] [--period YYYY-MM] [--save]
    python -m condocalc.cli history
    python -m condocalc.cli show YYYY-MM
    python -m condocalc.cli import-readings YYYY-MM
    python -m condocalc.cli serve [--host HOST] [--port PORT]

Exit Codes:
    0 - Success
    1 - Failure: Error encountered (logged)

Input file (all keys optional, missing ones come from stored settings):
    {"units": [...], "common_expenses": {...}, "tariff_rates": {...}}
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from condocalc.schemas import CommonExpensesSchema, TariffRatesSchema, UnitSchema
from condocalc.services.billing_service import build_monthly_summary, calculate_all_units
from condocalc.services.config import AppConfig, load_config
from condocalc.services.db import create_db_engine, create_session_factory, init_db
from condocalc.services.errors import CondoCalcError
from condocalc.services.history_service import HistoryService
from condocalc.services.locale_service import format_amount
from condocalc.services.logging import setup_logging
from condocalc.services.period_service import current_period, validate_period
from condocalc.services.report_service import build_report, render_text
from condocalc.services.settings_service import SettingsService
from condocalc.services.validation import validate_units

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="condocalc",
        description="Condominium water billing calculator",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    calc = sub.add_parser("calculate", help="Calculate bills for a period")
    calc.add_argument("--input", type=Path, help="JSON file with units/expenses/tariff")
    calc.add_argument("--period", help="Billing period YYYY-MM (default: current month)")
    calc.add_argument("--save", action="store_true", help="Commit the result to history")

    sub.add_parser("history", help="List saved periods")

    show = sub.add_parser("show", help="Show a saved period")
    show.add_argument("period")

    imp = sub.add_parser(
        "import-readings",
        help="Use the previous month's closing readings as previous readings",
    )
    imp.add_argument("period")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _load_input(path: Path, settings: SettingsService):
    """Read calculation inputs from a JSON file, falling back to stored settings."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CondoCalcError(f"Cannot read input file {path}: {e}") from e

    try:
        units = (
            [UnitSchema.model_validate(item).to_domain() for item in data["units"]]
            if "units" in data
            else settings.get_units()
        )
        expenses = (
            CommonExpensesSchema.model_validate(data["common_expenses"]).to_domain()
            if "common_expenses" in data
            else settings.get_common_expenses()
        )
        tariffs = (
            TariffRatesSchema.model_validate(data["tariff_rates"]).to_domain()
            if "tariff_rates" in data
            else settings.get_tariff_rates()
        )
    except ValidationError as e:
        raise CondoCalcError(f"Invalid input file {path}: {e}") from e
    return units, expenses, tariffs


def cmd_calculate(args, settings: SettingsService, history: HistoryService, config: AppConfig) -> int:
    period = validate_period(args.period or current_period())
    if args.input:
        units, expenses, tariffs = _load_input(args.input, settings)
        validate_units(units)
    else:
        units = settings.get_units()
        expenses = settings.get_common_expenses()
        tariffs = settings.get_tariff_rates()
        validate_units(units, config.unit_labels)

    bills = calculate_all_units(units, expenses, tariffs, tolerance=config.reconciliation_tolerance)
    summary = build_monthly_summary(period, bills, expenses, tariffs)
    print(render_text(build_report(period, summary.bills, expenses, summary.tariff_rates)))

    if args.save:
        history.save_summary(summary)
        logger.info("Saved %s to history", period)
    return 0


def cmd_history(history: HistoryService) -> int:
    records = history.list_records()
    if not records:
        print("No saved periods.")
        return 0
    for record in records:
        print(
            f"{record.period}  units={len(record.unit_bills)}  "
            f"consumption={record.total_consumption} m³  "
            f"total={format_amount(record.total_bill)}  "
            f"average={format_amount(record.average_bill)}"
        )
    return 0


def cmd_show(args, history: HistoryService) -> int:
    summary = history.load_summary(args.period)
    report = build_report(
        summary.period, summary.bills, summary.common_expenses, summary.tariff_rates
    )
    print(render_text(report))
    return 0


def cmd_import_readings(args, settings: SettingsService, history: HistoryService) -> int:
    units = history.import_previous_readings(args.period, settings.get_units())
    settings.save_units(units)
    for unit in units:
        print(f"{unit.label}: previous={unit.previous_reading} current={unit.current_reading}")
    return 0


def cmd_serve(args, config: AppConfig) -> int:
    import uvicorn

    from condocalc.main import create_app

    uvicorn.run(create_app(config), host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the billing CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        setup_logging(config.log_file)

        if args.command == "serve":
            return cmd_serve(args, config)

        engine = create_db_engine(config.database_url)
        init_db(engine)
        db = create_session_factory(engine)()
        try:
            settings = SettingsService(db, config)
            history = HistoryService(db)
            if args.command == "calculate":
                return cmd_calculate(args, settings, history, config)
            if args.command == "history":
                return cmd_history(history)
            if args.command == "show":
                return cmd_show(args, history)
            if args.command == "import-readings":
                return cmd_import_readings(args, settings, history)
        finally:
            db.close()
            engine.dispose()

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1
    except CondoCalcError as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
