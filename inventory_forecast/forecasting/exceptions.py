"""
Exceptions raised by the forecasting package.
"""


class ForecastError(Exception):
    """Base class for errors raised by the forecasting models."""


class InsufficientHistoryError(ForecastError, ValueError):
    """Raised when a model cannot be fitted from the supplied history."""
