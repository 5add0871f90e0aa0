"""Inflation impact calculation behind the "report" notification."""

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Optional

from intake.utils.timestamps import utc_now

DEFAULT_INFLATION_RATE = 2.5  # UK average, percent per year


class InvalidCalculationInput(ValueError):
    """Raised when amount, year or month cannot be used for a calculation."""

    pass


@dataclass(frozen=True)
class InflationResult:
    """What ``original_value`` from ``start_year`` is worth today.

    Money values are rounded to 2 decimal places, ``years_diff`` to 1.
    """

    original_value: float
    today_value: float
    loss_in_value: float
    percentage_increase: float
    annual_growth_rate: float
    start_year: int
    end_year: int
    years_diff: float

    def to_payload(self) -> Dict[str, Any]:
        """Return the result keyed the way the report template data expects."""
        return {
            "originalValue": self.original_value,
            "todayValue": self.today_value,
            "lossInValue": self.loss_in_value,
            "percentageIncrease": self.percentage_increase,
            "annualGrowthRate": self.annual_growth_rate,
            "startYear": self.start_year,
            "endYear": self.end_year,
            "yearsDiff": self.years_diff,
        }

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_number(value: Any, field: str, cast) -> Any:
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise InvalidCalculationInput(f"Invalid numeric value for {field}: {value!r}") from None
    if isinstance(number, float) and not math.isfinite(number):
        raise InvalidCalculationInput(f"Invalid numeric value for {field}: {value!r}")
    return number


def calculate_inflation(
    amount: Any,
    year: Any,
    month: Any,
    rate: float = DEFAULT_INFLATION_RATE,
    today: Optional[date] = None,
) -> InflationResult:
    """Compound ``amount`` at ``rate`` percent a year from ``month``/``year`` to today.

    Args:
        amount: Starting amount (positive)
        year: Starting year
        month: Starting month, 1-12
        rate: Annual inflation rate in percent
        today: Reference date (defaults to the current UTC date)

    Raises:
        InvalidCalculationInput: Non-numeric input, non-positive amount,
            month out of range, or a start date in the future
    """
    if amount in (None, "") or year in (None, "") or month in (None, ""):
        raise InvalidCalculationInput("Amount, year, and month are required")

    initial_amount = _parse_number(amount, "amount", float)
    start_year = _parse_number(year, "year", int)
    start_month = _parse_number(month, "month", int)

    if initial_amount <= 0:
        raise InvalidCalculationInput("Amount must be positive")
    if not 1 <= start_month <= 12:
        raise InvalidCalculationInput(f"Month must be between 1 and 12, got {start_month}")

    today = today or utc_now().date()
    years_diff = (today.year - start_year) + (today.month - start_month) / 12
    if years_diff < 0:
        raise InvalidCalculationInput(f"Start date {start_month}/{start_year} is in the future")

    final_amount = initial_amount * (1 + rate / 100) ** years_diff
    total_increase = final_amount - initial_amount

    return InflationResult(
        original_value=initial_amount,
        today_value=round(final_amount, 2),
        loss_in_value=round(total_increase, 2),
        percentage_increase=round(total_increase / initial_amount * 100, 2),
        annual_growth_rate=rate,
        start_year=start_year,
        end_year=today.year,
        years_diff=round(years_diff, 1),
    )
