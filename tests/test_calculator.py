"""Unit tests for the inflation calculator."""

from datetime import date

import pytest

from intake.calculator import DEFAULT_INFLATION_RATE, InvalidCalculationInput, calculate_inflation

TODAY = date(2025, 1, 15)


class TestCalculateInflation:
    """Test suite for calculate_inflation."""

    def test_ten_years(self):
        """Test compounding over exactly ten years."""
        result = calculate_inflation(1000, 2015, 1, today=TODAY)

        assert result.original_value == 1000.0
        assert result.today_value == 1280.08
        assert result.loss_in_value == 280.08
        assert result.percentage_increase == 28.01
        assert result.annual_growth_rate == DEFAULT_INFLATION_RATE
        assert result.start_year == 2015
        assert result.end_year == 2025
        assert result.years_diff == 10.0

    def test_partial_years(self):
        """Test that months count as fractions of a year."""
        result = calculate_inflation(1000, 2024, 7, today=TODAY)

        assert result.years_diff == 0.5
        assert result.today_value == round(1000 * 1.025 ** 0.5, 2)

    def test_string_input(self):
        """Test that form strings are accepted."""
        result = calculate_inflation("1000", "2015", "1", today=TODAY)

        assert result.today_value == 1280.08

    def test_custom_rate(self):
        """Test a configured inflation rate."""
        result = calculate_inflation(100, 2024, 1, rate=10, today=TODAY)

        assert result.today_value == 110.0
        assert result.annual_growth_rate == 10

    def test_same_month(self):
        """Test that a start date of this month means no change."""
        result = calculate_inflation(500, 2025, 1, today=TODAY)

        assert result.today_value == 500.0
        assert result.loss_in_value == 0.0

    @pytest.mark.parametrize(
        "amount,year,month,match",
        [
            (None, 2015, 1, "required"),
            (1000, "", 1, "required"),
            ("abc", 2015, 1, "amount"),
            (1000, "twenty", 1, "year"),
            (0, 2015, 1, "positive"),
            (-5, 2015, 1, "positive"),
            (1000, 2015, 13, "Month"),
            (1000, 2025, 6, "future"),
            (float("nan"), 2015, 1, "amount"),
        ],
    )
    def test_invalid_input(self, amount, year, month, match):
        """Test that unusable input is rejected."""
        with pytest.raises(InvalidCalculationInput, match=match):
            calculate_inflation(amount, year, month, today=TODAY)

    def test_to_payload_keys(self):
        """Test that the payload uses the report template field names."""
        payload = calculate_inflation(1000, 2015, 1, today=TODAY).to_payload()

        assert payload["todayValue"] == 1280.08
        assert payload["percentageIncrease"] == 28.01
        assert payload["originalValue"] == 1000.0
        assert payload["yearsDiff"] == 10.0

    def test_as_dict(self):
        """Test the snake_case form."""
        assert calculate_inflation(1000, 2015, 1, today=TODAY).as_dict()["loss_in_value"] == 280.08
