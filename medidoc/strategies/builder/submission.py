"""Server-side sanitizing of builder form submissions.

The prefill map is recomputed from live records at submission time.
Locked (prefilled and read-only) fields always take the recomputed value,
calculated fields are recomputed, and every validation problem is
collected rather than stopping at the first.
"""

import datetime
import logging
import re
import uuid
from typing import Any

from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.strategies.builder.calculations import execute_calculation, to_number
from medidoc.strategies.builder.models import (
    BuilderElement,
    BuilderSchema,
    ElementType,
    PrefillData,
    SubmissionResult,
)
from medidoc.strategies.builder.prefill import apply_prefill, build_prefill_data, is_field_read_only
from medidoc.strategies.builder.schema import is_input_element

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _check_rules(element: BuilderElement, value: Any) -> list[str]:
    """Apply ``element.validation`` to a non-empty value."""
    rules = element.validation
    if rules is None:
        return []

    errors: list[str] = []
    label = element.label
    text = str(value)

    if rules.pattern:
        try:
            matched = re.fullmatch(rules.pattern, text) is not None
        except re.error:
            logger.warning(f"Invalid validation pattern on '{element.name}': {rules.pattern}")
            matched = False
        if not matched:
            errors.append(rules.message or f"{label} has an invalid format")

    if rules.min_length is not None and len(text) < rules.min_length:
        errors.append(f"{label} must be at least {rules.min_length} characters")

    if rules.max_length is not None and len(text) > rules.max_length:
        errors.append(f"{label} must be at most {rules.max_length} characters")

    if rules.min is not None or rules.max is not None:
        number = to_number(value)
        if number is None:
            errors.append(f"{label} must be a number")
        else:
            if rules.min is not None and number < rules.min:
                errors.append(f"{label} must be at least {rules.min:g}")
            if rules.max is not None and number > rules.max:
                errors.append(f"{label} must be at most {rules.max:g}")

    return errors


def _check_type(element: BuilderElement, value: Any) -> list[str]:
    """Type-specific checks for a non-empty value."""
    label = element.label
    properties = element.properties

    match element.type:
        case ElementType.NUMBER:
            number = to_number(value)
            if number is None:
                return [f"{label} must be a number"]
            errors = []
            if properties.min is not None and number < properties.min:
                errors.append(f"{label} must be at least {properties.min:g}")
            if properties.max is not None and number > properties.max:
                errors.append(f"{label} must be at most {properties.max:g}")
            return errors
        case ElementType.DROPDOWN | ElementType.RADIO:
            if properties.options and str(value) not in properties.options:
                return [f"{label} must be one of: {', '.join(properties.options)}"]
            return []
        case ElementType.DATE:
            try:
                datetime.date.fromisoformat(str(value))
            except ValueError:
                return [f"{label} must be a date (YYYY-MM-DD)"]
            return []
        case ElementType.TEXT | ElementType.PARAGRAPH:
            errors = []
            if properties.min_length is not None and len(str(value)) < properties.min_length:
                errors.append(f"{label} must be at least {properties.min_length} characters")
            if properties.max_length is not None and len(str(value)) > properties.max_length:
                errors.append(f"{label} must be at most {properties.max_length} characters")
            return errors
        case ElementType.CALCULATED | ElementType.DIVIDER | ElementType.HEADER:
            return []


def sanitize_submission(
    schema: BuilderSchema,
    submitted_data: dict[str, Any],
    prefill_data: PrefillData,
    today: datetime.date | None = None,
) -> SubmissionResult:
    """Enforce prefill locks and validate a submission against ``schema``.

    Args:
        schema: The template's builder schema.
        submitted_data: Field values sent by the client.
        prefill_data: Prefill context rebuilt from live records.
        today: Date used for current-date fields and age. Defaults to today.

    Returns:
        A SubmissionResult whose ``sanitized_data`` holds only the schema's
        input fields, with locked and calculated fields set server-side.
    """
    today = today or datetime.date.today()
    authoritative = apply_prefill(schema.elements, prefill_data, today)

    sanitized: dict[str, Any] = {}

    for element in schema.elements:
        # Calculated values are computed once all other inputs are settled.
        if not is_input_element(element.type) or element.type == ElementType.CALCULATED:
            continue

        if is_field_read_only(element.prefill):
            submitted = submitted_data.get(element.name)
            expected = authoritative.get(element.name)
            if submitted is not None and expected is not None and str(submitted) != str(expected):
                logger.warning(
                    f"Discarded client value for locked field '{element.name}'"
                )
            if expected is not None:
                sanitized[element.name] = expected
            continue

        if element.name in submitted_data:
            sanitized[element.name] = submitted_data[element.name]

    for element in schema.elements:
        if element.type == ElementType.CALCULATED and element.properties.calculation is not None:
            sanitized[element.name] = execute_calculation(
                element.properties.calculation,
                sanitized,
                formula=element.properties.calculation_formula,
                today=today,
            )

    errors: list[str] = []
    for element in schema.elements:
        if element.type in (ElementType.DIVIDER, ElementType.HEADER, ElementType.CALCULATED):
            continue

        value = sanitized.get(element.name)
        if _is_empty(value):
            if element.required:
                errors.append(f"{element.label} is required")
            continue

        errors.extend(_check_type(element, value))
        errors.extend(_check_rules(element, value))

    if errors:
        logger.info(f"Submission rejected with {len(errors)} errors")

    return SubmissionResult(valid=not errors, errors=errors, sanitized_data=sanitized)


async def validate_submission(
    schema: BuilderSchema,
    submitted_data: dict[str, Any],
    store: BaseRecordStore,
    doctor_id: uuid.UUID,
    patient_id: uuid.UUID | None = None,
    appointment_id: uuid.UUID | None = None,
    place: str | None = None,
) -> SubmissionResult:
    """Rebuild prefill data from the record store, then sanitize.

    Values the client attaches as "prefill" are never trusted; only
    records fetched here, scoped to ``doctor_id``, are.
    """
    prefill_data = await load_prefill_data(store, doctor_id, patient_id, appointment_id, place)
    return sanitize_submission(schema, submitted_data, prefill_data)


async def load_prefill_data(
    store: BaseRecordStore,
    doctor_id: uuid.UUID,
    patient_id: uuid.UUID | None = None,
    appointment_id: uuid.UUID | None = None,
    place: str | None = None,
) -> PrefillData:
    """Fetch the owner-scoped records and build :class:`PrefillData`."""
    doctor = await store.get_doctor(doctor_id)
    patient = await store.get_patient(doctor_id, patient_id) if patient_id else None
    appointment = (
        await store.get_appointment(doctor_id, appointment_id) if appointment_id else None
    )

    if patient_id and patient is None:
        logger.warning(f"Prefill patient not found: {patient_id}")
    if appointment_id and appointment is None:
        logger.warning(f"Prefill appointment not found: {appointment_id}")

    return build_prefill_data(patient=patient, doctor=doctor, appointment=appointment, place=place)
