"""Billing API endpoints: settings, calculation and history."""

import logging
import time
from decimal import Decimal
from typing import Generator

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from condocalc.schemas import (
    CalculatedUnitBillSchema,
    CommonExpensesSchema,
    MonthlySummarySchema,
    TariffRatesSchema,
    UnitSchema,
)
from condocalc.services.billing_service import build_monthly_summary, calculate_all_units
from condocalc.services.billing_types import Unit
from condocalc.services.config import AppConfig
from condocalc.services.errors import (
    InvalidPeriodError,
    NoUnitsError,
    ReadingValidationError,
    RecordNotFoundError,
)
from condocalc.services.history_service import HistoryService
from condocalc.services.period_service import current_period, validate_period
from condocalc.services.settings_service import SettingsService
from condocalc.services.validation import validate_units

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["billing"])


def get_config(request: Request) -> AppConfig:
    """Configuration loaded once by the app factory."""
    return request.app.state.config


def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session on the app's configured engine."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _log_debug(endpoint: str, start_time: float, **kwargs) -> None:
    """Log API request with timing at DEBUG level."""
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(
        "billing.%s: %sduration_ms=%d",
        endpoint,
        f"{extra} " if extra else "",
        duration_ms,
    )


# Error response model
class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SettingsResponse(BaseModel):
    """Working configuration for the next calculation."""

    units: list[UnitSchema]
    common_expenses: CommonExpensesSchema
    tariff_rates: TariffRatesSchema


class UnitReadingRequest(BaseModel):
    """Readings of one unit; area and id come from configuration."""

    label: str
    previous_reading: Decimal = Decimal("0")
    current_reading: Decimal = Decimal("0")


class CalculateRequest(BaseModel):
    """Calculation trigger."""

    period: str | None = None  # Defaults to the current month
    save: bool = False  # Commit the result to history


class CalculateResponse(BaseModel):
    """Calculated bills and condo-wide totals."""

    period: str
    saved: bool
    total_reading: Decimal
    total_consumption: Decimal
    total_bill: Decimal
    average_bill: Decimal
    bills: list[CalculatedUnitBillSchema]


class HistoryItemResponse(BaseModel):
    """One row of the history list."""

    period: str
    total_reading: Decimal
    total_consumption: Decimal
    total_bill: Decimal
    average_bill: Decimal
    unit_count: int = Field(ge=0)


def _http_error(status_code: int, error: str, exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error=error, detail=str(exc)).model_dump(),
    )


def _settings_response(settings: SettingsService) -> SettingsResponse:
    return SettingsResponse(
        units=[UnitSchema.model_validate(unit) for unit in settings.get_units()],
        common_expenses=CommonExpensesSchema.model_validate(settings.get_common_expenses()),
        tariff_rates=TariffRatesSchema.model_validate(settings.get_tariff_rates()),
    )


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> SettingsResponse:
    return _settings_response(SettingsService(db, config))


@router.put("/settings/expenses", response_model=CommonExpensesSchema)
def update_common_expenses(
    payload: CommonExpensesSchema,
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> CommonExpensesSchema:
    saved = SettingsService(db, config).save_common_expenses(payload.to_domain())
    return CommonExpensesSchema.model_validate(saved)


@router.put("/settings/tariffs", response_model=TariffRatesSchema)
def update_tariff_rates(
    payload: TariffRatesSchema,
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> TariffRatesSchema:
    """Store a tariff and return it with derived costs filled in."""
    enriched = SettingsService(db, config).save_tariff_rates(payload.to_domain())
    return TariffRatesSchema.model_validate(enriched)


@router.put("/settings/units", response_model=list[UnitSchema])
def update_units(
    payload: list[UnitReadingRequest],
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> list[UnitSchema]:
    units = [
        Unit(
            id=item.label,
            label=item.label,
            area=config.unit_area,
            previous_reading=item.previous_reading,
            current_reading=item.current_reading,
        )
        for item in payload
    ]
    try:
        saved = SettingsService(db, config).save_units(units)
    except ReadingValidationError as e:
        raise _http_error(422, "invalid_units", e) from e
    return [UnitSchema.model_validate(unit) for unit in saved]


@router.post("/settings/units/import-previous", response_model=list[UnitSchema])
def import_previous_readings(
    period: str = Query(..., description="Period being prepared (YYYY-MM)"),
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> list[UnitSchema]:
    """Copy the previous month's closing readings into the working units."""
    settings = SettingsService(db, config)
    try:
        units = HistoryService(db).import_previous_readings(period, settings.get_units())
    except InvalidPeriodError as e:
        raise _http_error(422, "invalid_period", e) from e
    except RecordNotFoundError as e:
        raise _http_error(404, "not_found", e) from e
    saved = settings.save_units(units)
    return [UnitSchema.model_validate(unit) for unit in saved]


@router.post("/calculate", response_model=CalculateResponse)
def calculate(
    payload: CalculateRequest,
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> CalculateResponse:
    """Calculate the bills from the stored settings, optionally saving them."""
    start_time = time.time()
    settings = SettingsService(db, config)
    period = payload.period or current_period()

    try:
        validate_period(period)
        units = settings.get_units()
        validate_units(units, config.unit_labels)
    except InvalidPeriodError as e:
        raise _http_error(422, "invalid_period", e) from e
    except (NoUnitsError, ReadingValidationError) as e:
        raise _http_error(422, "invalid_readings", e) from e

    expenses = settings.get_common_expenses()
    tariffs = settings.get_tariff_rates()
    bills = calculate_all_units(
        units, expenses, tariffs, tolerance=config.reconciliation_tolerance
    )
    summary = build_monthly_summary(period, bills, expenses, tariffs)

    if payload.save:
        HistoryService(db).save_summary(summary)

    _log_debug("calculate", start_time, period=period, units=len(bills), saved=payload.save)
    return CalculateResponse(
        period=summary.period,
        saved=payload.save,
        total_reading=summary.total_reading,
        total_consumption=summary.total_consumption,
        total_bill=summary.total_bill,
        average_bill=summary.average_bill,
        bills=[CalculatedUnitBillSchema.model_validate(bill) for bill in summary.bills],
    )


@router.get("/history", response_model=list[HistoryItemResponse])
def list_history(db: Session = Depends(get_db)) -> list[HistoryItemResponse]:
    return [
        HistoryItemResponse(
            period=record.period,
            total_reading=record.total_reading,
            total_consumption=record.total_consumption,
            total_bill=record.total_bill,
            average_bill=record.average_bill,
            unit_count=len(record.unit_bills),
        )
        for record in HistoryService(db).list_records()
    ]


@router.get("/history/{period}", response_model=MonthlySummarySchema)
def get_history_record(period: str, db: Session = Depends(get_db)) -> MonthlySummarySchema:
    try:
        summary = HistoryService(db).load_summary(period)
    except InvalidPeriodError as e:
        raise _http_error(422, "invalid_period", e) from e
    except RecordNotFoundError as e:
        raise _http_error(404, "not_found", e) from e
    return MonthlySummarySchema.model_validate(summary)


@router.delete("/history/{period}", status_code=204)
def delete_history_record(period: str, db: Session = Depends(get_db)) -> None:
    try:
        HistoryService(db).delete_record(period)
    except InvalidPeriodError as e:
        raise _http_error(422, "invalid_period", e) from e
    except RecordNotFoundError as e:
        raise _http_error(404, "not_found", e) from e
