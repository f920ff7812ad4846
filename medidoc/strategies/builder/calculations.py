"""Calculated field engine.

Computes the value of ``calculated`` elements from other submitted fields.
Every calculation returns either a number or a short message explaining
why it could not be computed; none of them raise.
"""

import ast
import datetime
import math
import operator
import re
from collections.abc import Callable, Mapping
from typing import Any

from medidoc.strategies.builder.models import CalculationKind

CalculationValue = float | int | str

WEIGHT_FIELDS = ("weight", "weight_kg", "wt", "body_weight")
HEIGHT_FIELDS = ("height", "height_cm", "ht", "body_height")
BIRTH_DATE_FIELDS = (
    "date_of_birth",
    "dob",
    "birth_date",
    "birthdate",
    "patient_dob",
    "patient_date_of_birth",
)
START_DATE_FIELDS = ("start_date", "from_date", "admission_date")
END_DATE_FIELDS = ("end_date", "to_date", "discharge_date")

FIELD_REFERENCE = re.compile(r"\{([^}]+)\}")
FORMULA_CHARACTERS = r"[\d\s+\-*/().e]+"

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def to_number(value: Any) -> float | None:
    """Coerce a submitted value to a float, or None if it is not numeric."""
    if isinstance(value, bool) or _is_blank(value):
        return None
    raw = value if isinstance(value, int | float) else str(value).strip()
    try:
        number = float(raw)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _find_number(data: Mapping[str, Any], names: tuple[str, ...]) -> float | None:
    for name in names:
        number = to_number(data.get(name))
        if number is not None:
            return number
    return None


def _find_date(data: Mapping[str, Any], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = data.get(name)
        if not _is_blank(value):
            return str(value)
    return None


def _parse_date(value: str) -> datetime.date | None:
    try:
        return datetime.date.fromisoformat(value[:10])
    except ValueError:
        return None


def calculate_bmi(data: Mapping[str, Any], today: datetime.date | None = None) -> CalculationValue:
    """BMI from weight (kg) and height (cm), rounded to one decimal."""
    weight = _find_number(data, WEIGHT_FIELDS)
    height = _find_number(data, HEIGHT_FIELDS)

    if weight is None or height is None:
        return "Enter weight and height"
    if weight <= 0 or height <= 0:
        return "Invalid values"

    meters = height / 100
    return round(weight / (meters * meters), 1)


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def calculate_age_years(
    data: Mapping[str, Any], today: datetime.date | None = None
) -> CalculationValue:
    raw = _find_date(data, BIRTH_DATE_FIELDS)
    if raw is None:
        return "Enter date of birth"

    birth_date = _parse_date(raw)
    if birth_date is None:
        return "Invalid date"

    today = today or datetime.date.today()
    if birth_date > today:
        return "Future date"

    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def calculate_age_months(
    data: Mapping[str, Any], today: datetime.date | None = None
) -> CalculationValue:
    raw = _find_date(data, BIRTH_DATE_FIELDS)
    if raw is None:
        return "Enter date of birth"

    birth_date = _parse_date(raw)
    if birth_date is None:
        return "Invalid date"

    today = today or datetime.date.today()
    return (today.year - birth_date.year) * 12 + (today.month - birth_date.month)


def calculate_days_between(
    data: Mapping[str, Any], today: datetime.date | None = None
) -> CalculationValue:
    start_raw = _find_date(data, START_DATE_FIELDS)
    end_raw = _find_date(data, END_DATE_FIELDS)
    if start_raw is None or end_raw is None:
        return "Enter both dates"

    start = _parse_date(start_raw)
    end = _parse_date(end_raw)
    if start is None or end is None:
        return "Invalid date"

    return abs((end - start).days)


def _evaluate(node: ast.AST) -> float:
    match node:
        case ast.Expression(body=body):
            return _evaluate(body)
        case ast.Constant(value=value) if isinstance(value, int | float) and not isinstance(
            value, bool
        ):
            return float(value)
        case ast.BinOp(left=left, op=op, right=right) if type(op) in _BINARY_OPERATORS:
            return _BINARY_OPERATORS[type(op)](_evaluate(left), _evaluate(right))
        case ast.UnaryOp(op=op, operand=operand) if type(op) in _UNARY_OPERATORS:
            return _UNARY_OPERATORS[type(op)](_evaluate(operand))
        case _:
            raise ValueError(f"Unsupported expression: {ast.dump(node)}")


def check_formula(formula: str) -> str | None:
    """Return why ``formula`` can never evaluate, or None if it is well formed."""
    expression = FIELD_REFERENCE.sub("1", formula)
    if not re.fullmatch(FORMULA_CHARACTERS, expression):
        return "Invalid formula"
    try:
        _evaluate(ast.parse(expression, mode="eval"))
    except ArithmeticError:
        # Division by zero or overflow depends on the submitted values.
        pass
    except (RecursionError, SyntaxError, ValueError):
        return "Formula error"
    return None


def evaluate_custom_formula(formula: str, data: Mapping[str, Any]) -> CalculationValue:
    """Evaluate arithmetic over ``{field}`` references.

    Example: ``"{weight} / ({height} * {height} / 10000)"``. Only numbers,
    ``+ - * /`` and parentheses are allowed.
    """
    expression = formula
    for match in FIELD_REFERENCE.finditer(formula):
        name = match.group(1)
        value = data.get(name)
        if _is_blank(value):
            return f"Missing: {name}"
        number = to_number(value)
        if number is None:
            return f"Invalid: {name}"
        expression = expression.replace(match.group(0), repr(number))

    if not re.fullmatch(FORMULA_CHARACTERS, expression):
        return "Invalid formula"

    try:
        result = _evaluate(ast.parse(expression, mode="eval"))
    except (OverflowError, ZeroDivisionError):
        return "Calculation error"
    except (RecursionError, SyntaxError, ValueError):
        return "Formula error"

    if not math.isfinite(result):
        return "Calculation error"
    return round(result, 2)


_REGISTRY: dict[CalculationKind, Callable[..., CalculationValue]] = {
    CalculationKind.BMI: calculate_bmi,
    CalculationKind.AGE: calculate_age_years,
    CalculationKind.AGE_MONTHS: calculate_age_months,
    CalculationKind.DAYS_BETWEEN: calculate_days_between,
}


def execute_calculation(
    kind: CalculationKind | str,
    data: Mapping[str, Any],
    formula: str | None = None,
    today: datetime.date | None = None,
) -> CalculationValue:
    """Run the calculation named by ``kind`` against ``data``."""
    try:
        kind = CalculationKind(kind)
    except ValueError:
        return "Unknown calculation"

    if kind == CalculationKind.CUSTOM:
        if not formula:
            return "Invalid formula"
        return evaluate_custom_formula(formula, data)

    return _REGISTRY[kind](data, today=today)
