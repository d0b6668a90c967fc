"""Custom exception classes for the billing calculator.

Provides domain-specific exceptions for clear error handling and reporting.
"""


class CondoCalcError(Exception):
    """Base exception for billing calculator errors."""

    pass


class ConfigError(CondoCalcError, ValueError):
    """Configuration loading or validation error."""

    pass


class InvalidPeriodError(CondoCalcError, ValueError):
    """Billing period identifier is not in YYYY-MM format."""

    pass


class NoUnitsError(CondoCalcError):
    """No units were supplied for calculation."""

    pass


class ReadingValidationError(CondoCalcError):
    """One or more units have invalid readings or attributes."""

    def __init__(self, message: str, unit_labels: list[str] | None = None):
        super().__init__(message)
        self.unit_labels = unit_labels or []


class RecordNotFoundError(CondoCalcError):
    """No monthly record stored for the requested period."""

    pass
