"""Shared fixtures for unit tests."""

import datetime
import uuid

import pytest
from fastapi.testclient import TestClient

from medidoc.core.config import Settings, get_settings
from medidoc.db.models import Appointment, Doctor, Gender, Patient
from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.strategies.builder.models import (
    AppointmentPrefill,
    DoctorPrefill,
    PatientPrefill,
    PrefillData,
    SystemPrefill,
)

DOCTOR_ID = uuid.UUID("3c5ff1b3-b0d6-4dba-b254-a2be667bbd52")
OTHER_DOCTOR_ID = uuid.UUID("bf0d03fb-d8ea-4377-a991-b3b5818e71ec")
PATIENT_ID = uuid.UUID("5b1d6c3e-9a0f-4b7e-8d2c-1f3a4b5c6d7e")
APPOINTMENT_ID = uuid.UUID("7e6d5c4b-3a2f-4e1d-9c8b-7a6f5e4d3c2b")

TODAY = datetime.date(2024, 3, 10)


# =============================================================================
# Records
# =============================================================================


@pytest.fixture
def doctor() -> Doctor:
    return Doctor(
        id=DOCTOR_ID,
        email="dr.smith@cityclinic.com",
        name="Dr. Smith",
        clinic_name="City Clinic",
        contact_number="555-0100",
        address="1 Main Street",
        specialization="General Practice",
        registration_number="REG-12345",
    )


@pytest.fixture
def patient() -> Patient:
    return Patient(
        id=PATIENT_ID,
        doctor_id=DOCTOR_ID,
        name="Jane Doe",
        phone="555-0199",
        email="jane.doe@mailbox.org",
        date_of_birth=datetime.date(2000, 3, 11),
        gender=Gender.FEMALE,
        blood_group="O+",
    )


@pytest.fixture
def appointment() -> Appointment:
    return Appointment(
        id=APPOINTMENT_ID,
        doctor_id=DOCTOR_ID,
        patient_id=PATIENT_ID,
        appointment_date=datetime.datetime(2024, 3, 10, 14, 30),
        chief_complaint="Cough",
        diagnosis="Common cold",
    )


@pytest.fixture
def prefill_data() -> PrefillData:
    return PrefillData(
        patient=PatientPrefill(
            id=str(PATIENT_ID),
            name="Jane Doe",
            phone="555-0199",
            email="jane.doe@mailbox.org",
            date_of_birth="2000-03-11",
            gender="female",
        ),
        doctor=DoctorPrefill(id=str(DOCTOR_ID), name="Dr. Smith", clinic="City Clinic"),
        appointment=AppointmentPrefill(id=str(APPOINTMENT_ID), date="2024-03-10", time="14:30"),
        system=SystemPrefill(current_date="2024-03-10", current_time="09:15", place="Pune"),
    )


class InMemoryRecordStore(BaseRecordStore):
    """Owner-scoped record store over plain lists."""

    def __init__(self, doctors=(), patients=(), appointments=(), templates=()):
        self.doctors = list(doctors)
        self.patients = list(patients)
        self.appointments = list(appointments)
        self.templates = list(templates)

    async def get_doctor(self, doctor_id):
        return next((d for d in self.doctors if d.id == doctor_id), None)

    async def get_patient(self, doctor_id, patient_id):
        return next(
            (p for p in self.patients if p.id == patient_id and p.doctor_id == doctor_id),
            None,
        )

    async def get_appointment(self, doctor_id, appointment_id):
        return next(
            (
                a
                for a in self.appointments
                if a.id == appointment_id and a.doctor_id == doctor_id
            ),
            None,
        )

    async def get_template(self, doctor_id, template_id, active_only=False):
        return next(
            (
                t
                for t in self.templates
                if t.id == template_id
                and t.doctor_id == doctor_id
                and (t.is_active or not active_only)
            ),
            None,
        )


@pytest.fixture
def record_store(doctor, patient, appointment) -> InMemoryRecordStore:
    return InMemoryRecordStore(
        doctors=[doctor],
        patients=[patient],
        appointments=[appointment],
    )


# =============================================================================
# Application
# =============================================================================


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "output_dir": tmp_path / "rendered",
        "log_dir": tmp_path / "logs",
        "renderer_type": "text",
        "enable_builder_v2": True,
    }
    values.update(overrides)
    return Settings(**values)


def make_client(settings: Settings):
    from medidoc.main import create_app

    app = create_app(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def client(settings):
    """Test client backed by a fresh SQLite database."""
    with make_client(settings) as test_client:
        yield test_client
