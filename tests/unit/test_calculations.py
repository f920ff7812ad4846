"""Unit tests for calculated field evaluation."""

import datetime

import pytest

from medidoc.strategies.builder import execute_calculation
from medidoc.strategies.builder.calculations import (
    bmi_category,
    check_formula,
    evaluate_custom_formula,
    to_number,
)

from conftest import TODAY


class TestBuiltinCalculations:
    """Test suite for the named calculations."""

    def test_bmi(self):
        assert execute_calculation("bmi", {"weight": 70, "height": 175}) == 22.9

    def test_bmi_alternate_field_names(self):
        """Test that common aliases for weight and height are found."""
        assert execute_calculation("bmi", {"weight_kg": "70", "height_cm": "175"}) == 22.9

    def test_bmi_missing_inputs(self):
        assert execute_calculation("bmi", {"weight": 70}) == "Enter weight and height"

    def test_bmi_non_positive(self):
        assert execute_calculation("bmi", {"weight": 70, "height": 0}) == "Invalid values"

    @pytest.mark.parametrize(
        "bmi,category",
        [(17.0, "Underweight"), (22.9, "Normal"), (27.5, "Overweight"), (31.0, "Obese")],
    )
    def test_bmi_category(self, bmi, category):
        assert bmi_category(bmi) == category

    def test_age(self):
        """Test that age counts completed years."""
        assert execute_calculation("age", {"dob": "2000-03-11"}, today=TODAY) == 23
        assert execute_calculation("age", {"dob": "2000-03-10"}, today=TODAY) == 24

    def test_age_future_date(self):
        assert execute_calculation("age", {"dob": "2030-01-01"}, today=TODAY) == "Future date"

    def test_age_invalid_date(self):
        assert execute_calculation("age", {"date_of_birth": "soon"}, today=TODAY) == "Invalid date"

    def test_age_months(self):
        assert execute_calculation("age_months", {"dob": "2023-01-15"}, today=TODAY) == 14

    def test_days_between(self):
        data = {"start_date": "2024-03-01", "end_date": "2024-03-10"}
        assert execute_calculation("days_between", data) == 9

    def test_days_between_missing(self):
        assert execute_calculation("days_between", {"start_date": "2024-03-01"}) == "Enter both dates"

    def test_unknown_kind(self):
        assert execute_calculation("volume", {}) == "Unknown calculation"


class TestCustomFormula:
    """Test suite for custom arithmetic formulas."""

    def test_evaluates_field_references(self):
        """Test that referenced fields are substituted and evaluated."""
        result = evaluate_custom_formula(
            "{weight} / ({height} * {height} / 10000)", {"weight": 70, "height": 175}
        )
        assert result == 22.86

    def test_missing_field(self):
        assert evaluate_custom_formula("{a} + {b}", {"a": 1}) == "Missing: b"

    def test_non_numeric_field(self):
        assert evaluate_custom_formula("{a} * 2", {"a": "abc"}) == "Invalid: a"

    def test_division_by_zero(self):
        assert evaluate_custom_formula("{a} / {b}", {"a": 1, "b": 0}) == "Calculation error"

    def test_rejects_names(self):
        """Test that anything beyond arithmetic is refused."""
        assert evaluate_custom_formula("__import__('os')", {}) == "Invalid formula"

    def test_malformed_expression(self):
        assert evaluate_custom_formula("{a} * * 2", {"a": 3}) == "Formula error"

    def test_non_finite_field(self):
        assert evaluate_custom_formula("{a} + 1", {"a": "nan"}) == "Invalid: a"

    def test_overflowing_result(self):
        assert evaluate_custom_formula("{a} * {a}", {"a": 1e200}) == "Calculation error"

    def test_deeply_nested_formula(self):
        """Test that a formula too long to parse reports an error instead of raising."""
        formula = "+".join(["{a}"] * 3000)
        assert execute_calculation("custom", {"a": 1}, formula=formula) == "Formula error"

    def test_requires_formula(self):
        assert execute_calculation("custom", {"a": 1}) == "Invalid formula"

    def test_custom_via_execute(self):
        assert execute_calculation("custom", {"a": 3}, formula="{a} * 2 + 1") == 7

    def test_today_defaults(self):
        """Test that date-based calculations default to the current date."""
        expected = datetime.date.today().year - 2000
        result = execute_calculation("age", {"dob": "2000-01-01"})
        assert result == expected


class TestCheckFormula:
    """Test suite for save-time formula checks."""

    @pytest.mark.parametrize(
        "formula",
        ["{weight} / ({height} * {height} / 10000)", "-{a} + 2.5e1", "{x} / ({a} - {b})"],
    )
    def test_well_formed(self, formula):
        assert check_formula(formula) is None

    @pytest.mark.parametrize(
        "formula,problem",
        [
            ("({a} * 2", "Formula error"),
            ("{a} ** 2", "Formula error"),
            ("{a} // 2", "Formula error"),
            ("e", "Formula error"),
            ("abs({a})", "Invalid formula"),
            ("+".join(["{a}"] * 3000), "Formula error"),
        ],
    )
    def test_rejected(self, formula, problem):
        assert check_formula(formula) == problem


class TestToNumber:
    """Test suite for numeric coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [(" 72.5 ", 72.5), (3, 3.0), ("", None), (True, None), ("abc", None)],
    )
    def test_coercion(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("inf"), 10**400])
    def test_non_finite_is_not_a_number(self, value):
        assert to_number(value) is None
