"""Prefill resolution for builder (V2) forms.

Computes initial values for elements that declare a prefill source, and
today's date for date elements marked ``useCurrentDate``. Unknown
source/field combinations and absent sections resolve to no value.
"""

import datetime
import logging
from typing import Any

from medidoc.db.models import Appointment, Doctor, Gender, Patient
from medidoc.strategies.builder.models import (
    AppointmentPrefill,
    BuilderElement,
    BuilderSchema,
    DoctorPrefill,
    ElementType,
    FieldValue,
    PatientPrefill,
    PrefillConfig,
    PrefillData,
    PrefillSource,
    SystemPrefill,
)
from medidoc.strategies.builder.schema import prefill_key
from medidoc.strategies.template_engine.assembler import calculate_age

logger = logging.getLogger(__name__)


# =============================================================================
# Building the prefill data bag
# =============================================================================


def get_system_data(place: str | None = None, now: datetime.datetime | None = None) -> SystemPrefill:
    now = now or datetime.datetime.now()
    return SystemPrefill(
        current_date=now.date().isoformat(),
        current_time=now.strftime("%H:%M"),
        place=place or None,
    )


def patient_prefill(patient: Patient) -> PatientPrefill:
    return PatientPrefill(
        id=str(patient.id),
        name=patient.name,
        phone=patient.phone or None,
        email=patient.email or None,
        date_of_birth=patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        gender=Gender(patient.gender).value if patient.gender else None,
    )


def doctor_prefill(doctor: Doctor) -> DoctorPrefill:
    return DoctorPrefill(id=str(doctor.id), name=doctor.name, clinic=doctor.clinic_name or None)


def appointment_prefill(appointment: Appointment) -> AppointmentPrefill:
    return AppointmentPrefill(
        id=str(appointment.id),
        date=appointment.appointment_date.date().isoformat(),
        time=appointment.appointment_date.strftime("%H:%M"),
    )


def build_prefill_data(
    patient: Patient | None = None,
    doctor: Doctor | None = None,
    appointment: Appointment | None = None,
    place: str | None = None,
    now: datetime.datetime | None = None,
) -> PrefillData:
    """Assemble :class:`PrefillData` from whichever records are available."""
    return PrefillData(
        patient=patient_prefill(patient) if patient is not None else None,
        doctor=doctor_prefill(doctor) if doctor is not None else None,
        appointment=appointment_prefill(appointment) if appointment is not None else None,
        system=get_system_data(place, now),
    )


# =============================================================================
# Resolution
# =============================================================================


def _patient_value(patient: PatientPrefill, key: str, today: datetime.date) -> FieldValue | None:
    match key:
        case "name":
            return patient.name
        case "phone":
            return patient.phone
        case "email":
            return patient.email
        case "id":
            return patient.id
        case "gender":
            return patient.gender
        case "age":
            if not patient.date_of_birth:
                return None
            try:
                birth_date = datetime.date.fromisoformat(patient.date_of_birth)
            except ValueError:
                logger.warning(f"Unparseable patient date of birth: {patient.date_of_birth}")
                return None
            return calculate_age(birth_date, today)
        case _:
            return None


def _doctor_value(doctor: DoctorPrefill, key: str) -> FieldValue | None:
    match key:
        case "name":
            return doctor.name
        case "clinic":
            return doctor.clinic
        case "id":
            return doctor.id
        case _:
            return None


def _appointment_value(appointment: AppointmentPrefill, key: str) -> FieldValue | None:
    match key:
        case "date":
            return appointment.date
        case "time":
            return appointment.time
        case "id":
            return appointment.id
        case _:
            return None


def _system_value(system: SystemPrefill, key: str) -> FieldValue | None:
    match key:
        case "current_date":
            return system.current_date
        case "current_time":
            return system.current_time
        case "place":
            return system.place
        case _:
            return None


def get_prefill_value(
    prefill_data: PrefillData,
    config: PrefillConfig,
    today: datetime.date | None = None,
) -> FieldValue | None:
    """Resolve one prefill rule against ``prefill_data``.

    Returns:
        The value, or None when the rule is disabled, its section is
        absent, or the field is not part of the source's vocabulary.
    """
    if not config.enabled:
        return None

    today = today or datetime.date.today()
    key = prefill_key(config)

    match config.source:
        case PrefillSource.PATIENT:
            if prefill_data.patient is None:
                return None
            return _patient_value(prefill_data.patient, key, today)
        case PrefillSource.DOCTOR:
            if prefill_data.doctor is None:
                return None
            return _doctor_value(prefill_data.doctor, key)
        case PrefillSource.APPOINTMENT:
            if prefill_data.appointment is None:
                return None
            return _appointment_value(prefill_data.appointment, key)
        case PrefillSource.SYSTEM:
            if prefill_data.system is None:
                return None
            return _system_value(prefill_data.system, key)


def is_field_read_only(config: PrefillConfig | None) -> bool:
    """True if the field is prefilled and locked against user edits."""
    return config is not None and config.enabled and config.readonly


def resolve_element(
    element: BuilderElement,
    prefill_data: PrefillData,
    today: datetime.date,
) -> FieldValue | None:
    """Resolve the initial value of one element, or None."""
    match element.type:
        case ElementType.DATE:
            # Current-date auto-fill wins over any prefill rule.
            if element.properties.use_current_date:
                return today.isoformat()
            if element.prefill is not None:
                return get_prefill_value(prefill_data, element.prefill, today)
            return None
        case (
            ElementType.TEXT
            | ElementType.NUMBER
            | ElementType.PARAGRAPH
            | ElementType.DROPDOWN
            | ElementType.RADIO
            | ElementType.CALCULATED
        ):
            if element.prefill is not None:
                return get_prefill_value(prefill_data, element.prefill, today)
            return None
        case ElementType.DIVIDER | ElementType.HEADER:
            return None


def apply_prefill(
    elements: list[BuilderElement],
    prefill_data: PrefillData,
    today: datetime.date | None = None,
) -> dict[str, FieldValue]:
    """Resolve every prefillable element into a sparse ``name -> value`` map.

    Elements without a resolvable value contribute no entry at all.
    """
    today = today or datetime.date.today()
    values: dict[str, FieldValue] = {}

    for element in elements:
        value = resolve_element(element, prefill_data, today)
        if value is not None:
            values[element.name] = value

    return values


def initial_form_values(
    schema: BuilderSchema,
    prefill_data: PrefillData,
    today: datetime.date | None = None,
) -> dict[str, Any]:
    """Prefilled values plus author defaults for fields with no prefill."""
    values: dict[str, Any] = {}

    for element in schema.elements:
        has_prefill = element.prefill is not None and element.prefill.enabled
        if not has_prefill and element.properties.default_value is not None:
            values[element.name] = element.properties.default_value

    values.update(apply_prefill(schema.elements, prefill_data, today))
    return values
