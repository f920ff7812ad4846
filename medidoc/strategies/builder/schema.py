"""Builder schema helpers.

Validation, element defaults and V1 -> V2 migration for builder schemas.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any

from medidoc.strategies.builder.calculations import check_formula
from medidoc.strategies.builder.models import (
    BuilderElement,
    BuilderSchema,
    CalculationKind,
    ElementPosition,
    ElementProperties,
    ElementType,
    PrefillConfig,
    PrefillSource,
)

logger = logging.getLogger(__name__)


ELEMENT_TYPE_LABELS: dict[ElementType, str] = {
    ElementType.TEXT: "Text Input",
    ElementType.NUMBER: "Number Input",
    ElementType.PARAGRAPH: "Paragraph",
    ElementType.DROPDOWN: "Dropdown",
    ElementType.RADIO: "Radio Buttons",
    ElementType.DATE: "Date Picker",
    ElementType.CALCULATED: "Calculated Field",
    ElementType.DIVIDER: "Divider",
    ElementType.HEADER: "Header",
}

# Keys are stored without the source prefix; labels are for authoring UIs.
PREFILL_FIELDS: dict[PrefillSource, dict[str, str]] = {
    PrefillSource.PATIENT: {
        "name": "Patient Name",
        "phone": "Phone Number",
        "email": "Email Address",
        "id": "Patient ID",
        "age": "Age",
        "gender": "Gender",
    },
    PrefillSource.DOCTOR: {
        "name": "Doctor Name",
        "clinic": "Clinic Name",
        "id": "Doctor ID",
    },
    PrefillSource.APPOINTMENT: {
        "date": "Appointment Date",
        "time": "Appointment Time",
        "id": "Appointment ID",
    },
    PrefillSource.SYSTEM: {
        "current_date": "Current Date",
        "current_time": "Current Time",
        "place": "Place/Location",
    },
}


class SchemaValidationError(ValueError):
    """Raised when a builder schema is malformed."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass
class MigrationResult:
    schema: BuilderSchema
    changes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def prefill_key(config: PrefillConfig) -> str:
    """Return ``config.field`` with its source prefix removed."""
    prefix = f"{config.source.value}_"
    if config.field.startswith(prefix):
        return config.field[len(prefix):]
    return config.field


def generate_element_id() -> str:
    return f"el_{uuid.uuid4().hex[:12]}"


def generate_field_name(label: str) -> str:
    """Derive a snake_case field name from a label."""
    name = re.sub(r"[^a-z0-9\s]", "", label.lower())
    name = re.sub(r"\s+", "_", name.strip())
    return name[:50]


def is_input_element(element_type: ElementType) -> bool:
    return element_type not in (ElementType.DIVIDER, ElementType.HEADER)


def can_be_prefilled(element_type: ElementType) -> bool:
    return element_type in (
        ElementType.TEXT,
        ElementType.NUMBER,
        ElementType.DATE,
        ElementType.DROPDOWN,
    )


def can_be_required(element_type: ElementType) -> bool:
    return is_input_element(element_type) and element_type != ElementType.CALCULATED


def create_default_element(element_type: ElementType) -> BuilderElement:
    """Create an element of ``element_type`` with authoring defaults."""
    label = ELEMENT_TYPE_LABELS[element_type]
    properties = ElementProperties()

    match element_type:
        case ElementType.PARAGRAPH:
            properties.rows = 4
        case ElementType.DROPDOWN | ElementType.RADIO:
            properties.options = ["Option 1", "Option 2", "Option 3"]
        case ElementType.HEADER:
            properties.font_size = "large"
            properties.alignment = "left"
        case ElementType.CALCULATED:
            properties.calculation = CalculationKind.BMI
        case ElementType.NUMBER:
            properties.step = 1
        case _:
            pass

    return BuilderElement(
        id=generate_element_id(),
        type=element_type,
        label=label,
        name=generate_field_name(label),
        properties=properties,
    )


def reorder_elements(
    elements: list[BuilderElement], from_index: int, to_index: int
) -> list[BuilderElement]:
    """Move one element and renumber rows. Returns new element objects."""
    result = list(elements)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return [
        element.model_copy(
            update={"position": element.position.model_copy(update={"row": index})}
        )
        for index, element in enumerate(result)
    ]


def clone_element(element: BuilderElement) -> BuilderElement:
    return element.model_copy(
        update={
            "id": generate_element_id(),
            "name": f"{element.name}_copy",
            "position": element.position.model_copy(update={"row": element.position.row + 1}),
        },
        deep=True,
    )


def validate_element(element: BuilderElement) -> list[str]:
    """Return the problems with a single element."""
    errors: list[str] = []

    if not element.id:
        errors.append("Element is missing an ID")

    if not element.name:
        errors.append("Element is missing a field name")

    if element.type in (ElementType.DROPDOWN, ElementType.RADIO) and not element.properties.options:
        errors.append(f"{ELEMENT_TYPE_LABELS[element.type]} must have at least one option")

    if element.type == ElementType.CALCULATED:
        if element.properties.calculation is None:
            errors.append("Calculated Field must declare a calculation")
        elif element.properties.calculation == CalculationKind.CUSTOM:
            formula = element.properties.calculation_formula
            if not formula:
                errors.append("Custom calculation requires a formula")
            else:
                problem = check_formula(formula)
                if problem is not None:
                    errors.append(f"Custom formula rejected: {problem}")

    if element.prefill is not None and element.prefill.enabled:
        if prefill_key(element.prefill) not in PREFILL_FIELDS[element.prefill.source]:
            errors.append(
                f"Unknown prefill field '{element.prefill.field}' "
                f"for source '{element.prefill.source.value}'"
            )

    if element.validation is not None and element.validation.pattern:
        try:
            re.compile(element.validation.pattern)
        except re.error:
            errors.append(f"Invalid validation pattern: {element.validation.pattern}")

    return errors


def validate_schema(schema: BuilderSchema) -> list[str]:
    """Return every problem with ``schema``; empty when valid.

    Field names must be unique within a schema.
    """
    errors: list[str] = []
    field_names: set[str] = set()

    for index, element in enumerate(schema.elements, start=1):
        for error in validate_element(element):
            errors.append(f"Element {index}: {error}")

        if element.name:
            if element.name in field_names:
                errors.append(f"Duplicate field name: {element.name}")
            field_names.add(element.name)

    return errors


def ensure_valid_schema(schema: BuilderSchema) -> None:
    errors = validate_schema(schema)
    if errors:
        raise SchemaValidationError(errors)


def _element_from_legacy_path(path: str, index: int) -> tuple[BuilderElement, str | None]:
    """Build a text element for a dotted V1 variable path.

    Returns the element and, when the path has no prefill counterpart,
    a warning.
    """
    section, _, key = path.partition(".")
    label = key.replace("_", " ").title() if key else path
    name = generate_field_name(re.sub(r"[._]", " ", path)) or f"field_{index + 1}"
    element_type = ElementType.TEXT
    properties = ElementProperties()
    prefill = None
    warning = None

    match section, key:
        case ("patient", "name" | "phone" | "email" | "age" | "gender"):
            prefill = PrefillConfig(enabled=True, source=PrefillSource.PATIENT, field=f"patient_{key}")
        case ("doctor", "name"):
            prefill = PrefillConfig(enabled=True, source=PrefillSource.DOCTOR, field="doctor_name")
        case ("doctor", "clinic_name"):
            prefill = PrefillConfig(enabled=True, source=PrefillSource.DOCTOR, field="doctor_clinic")
        case ("appointment", "appointment_date"):
            prefill = PrefillConfig(
                enabled=True, source=PrefillSource.APPOINTMENT, field="appointment_date"
            )
        case ("appointment", "appointment_time"):
            prefill = PrefillConfig(
                enabled=True, source=PrefillSource.APPOINTMENT, field="appointment_time"
            )
        case ("document", "date"):
            element_type = ElementType.DATE
            properties.use_current_date = True
        case ("appointment", "diagnosis" | "notes" | "chief_complaint"):
            element_type = ElementType.PARAGRAPH
            properties.rows = 4
        case _:
            warning = f"Variable '{path}' has no prefill source; migrated as a plain text field"

    if element_type == ElementType.TEXT and prefill is not None and key == "age":
        element_type = ElementType.NUMBER

    element = BuilderElement(
        id=generate_element_id(),
        type=element_type,
        label=label,
        name=name,
        prefill=prefill,
        properties=properties,
        position=ElementPosition(row=index),
    )
    return element, warning


def convert_legacy_schema(legacy: dict[str, Any]) -> MigrationResult:
    """Convert a V1 template's declared variables into a builder schema.

    Accepts dotted variable paths (``patient.name``) or variable objects
    (``{"name": ..., "label": ..., "required": ...}``). The V1 text body has
    no structured counterpart and is not carried over.
    """
    result = MigrationResult(schema=BuilderSchema())
    variables = legacy.get("variables") if isinstance(legacy, dict) else None

    if not isinstance(variables, list):
        result.warnings.append("Template declares no variables; created an empty schema")
        return result

    seen: set[str] = set()
    for index, variable in enumerate(variables):
        if isinstance(variable, str):
            element, warning = _element_from_legacy_path(variable.strip(), index)
            if warning:
                result.warnings.append(warning)
        elif isinstance(variable, dict):
            name = variable.get("name") or f"field_{index + 1}"
            element = BuilderElement(
                id=generate_element_id(),
                type=ElementType.TEXT,
                label=variable.get("label") or variable.get("name") or f"Field {index + 1}",
                name=name,
                required=bool(variable.get("required", False)),
                properties=ElementProperties(placeholder=variable.get("placeholder") or ""),
                position=ElementPosition(row=index),
            )
        else:
            result.warnings.append(f"Skipped unsupported variable at position {index + 1}")
            continue

        if element.name in seen:
            result.warnings.append(f"Skipped duplicate field '{element.name}'")
            continue
        seen.add(element.name)

        result.schema.elements.append(element)
        result.changes.append(f"Added {element.type.value} field '{element.name}'")

    logger.info(
        f"Converted legacy schema: {len(result.schema.elements)} elements, "
        f"{len(result.warnings)} warnings"
    )
    return result
