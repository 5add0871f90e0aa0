"""Inflation calculator."""

from .inflation import (
    DEFAULT_INFLATION_RATE,
    InflationResult,
    InvalidCalculationInput,
    calculate_inflation,
)

__all__ = [
    "calculate_inflation",
    "InflationResult",
    "InvalidCalculationInput",
    "DEFAULT_INFLATION_RATE",
]
