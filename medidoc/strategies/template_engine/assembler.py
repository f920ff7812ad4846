"""Document data assembly.

Builds the :class:`DocumentData` bag from doctor, patient and appointment
records, deriving age and human-readable dates. Fields missing on a record
stay None so the resolver renders its sentinel for them.
"""

import datetime

from medidoc.db.models import Appointment, Doctor, Gender, Patient
from medidoc.strategies.template_engine.models import (
    AppointmentSection,
    DoctorSection,
    DocumentData,
    DocumentSection,
    PatientSection,
)


def calculate_age(date_of_birth: datetime.date, today: datetime.date | None = None) -> int:
    """Full calendar years between ``date_of_birth`` and ``today``."""
    today = today or datetime.date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def format_long_date(value: datetime.date | datetime.datetime) -> str:
    """Format as e.g. ``March 10, 2024``."""
    return f"{value:%B} {value.day}, {value.year}"


def format_time(value: datetime.datetime) -> str:
    """Format as e.g. ``02:30 PM``."""
    return value.strftime("%I:%M %p")


def _text(value: str | None) -> str | None:
    # Empty strings count as not provided.
    return value or None


def prepare_document_data(
    doctor: Doctor | None,
    patient: Patient,
    appointment: Appointment | None,
    document_id: str | None = None,
    now: datetime.datetime | None = None,
) -> DocumentData:
    """Assemble the resolution context for a V1 document.

    Args:
        doctor: The acting doctor's profile, if one exists.
        patient: The patient the document is about.
        appointment: The linked appointment, if any.
        document_id: Id of the document once known.
        now: Generation time. Defaults to the current time.

    Returns:
        A fresh DocumentData; ``appointment`` is None when no appointment
        was supplied.
    """
    now = now or datetime.datetime.now()

    doctor_section = DoctorSection()
    if doctor is not None:
        doctor_section = DoctorSection(
            name=_text(doctor.name),
            email=_text(doctor.email),
            phone=_text(doctor.contact_number),
            specialization=_text(doctor.specialization),
            license_number=_text(doctor.registration_number),
            clinic_name=_text(doctor.clinic_name),
            clinic_address=_text(doctor.address),
        )

    patient_section = PatientSection(
        name=patient.name,
        email=_text(patient.email),
        phone=_text(patient.phone),
        date_of_birth=format_long_date(patient.date_of_birth) if patient.date_of_birth else None,
        age=calculate_age(patient.date_of_birth, now.date()) if patient.date_of_birth else None,
        gender=Gender(patient.gender).value if patient.gender else None,
        blood_group=_text(patient.blood_group),
        address=_text(patient.address),
        emergency_contact=_text(patient.emergency_contact),
        emergency_phone=_text(patient.emergency_phone),
    )

    appointment_section = None
    if appointment is not None:
        appointment_section = AppointmentSection(
            appointment_date=format_long_date(appointment.appointment_date),
            appointment_time=format_time(appointment.appointment_date),
            duration_minutes=appointment.duration_minutes,
            chief_complaint=_text(appointment.chief_complaint),
            diagnosis=_text(appointment.diagnosis),
            notes=_text(appointment.notes),
        )

    return DocumentData(
        doctor=doctor_section,
        patient=patient_section,
        appointment=appointment_section,
        document=DocumentSection(
            date=format_long_date(now),
            id=document_id,
            created_at=now.isoformat(),
        ),
    )
