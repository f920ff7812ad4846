"""Database models using SQLModel.

Defines the core data models for the practice:
- Doctor: The account owner; every other row is scoped to a doctor
- Patient: People the doctor treats (soft-deleted via is_active)
- Appointment: A scheduled visit for a patient
- Template: V1 text or V2 builder template definitions
- Document: Immutable generated documents
"""

import datetime
import enum
import uuid
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Enum as SQLEnum, ForeignKey, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _enum_column(enum_class: type[enum.Enum], name: str, nullable: bool = True) -> Column:
    # Persist enum values ("female"), not member names ("FEMALE").
    return Column(
        SQLEnum(enum_class, name=name, values_callable=lambda e: [member.value for member in e]),
        nullable=nullable,
    )


def _created_at_column() -> Column:
    return Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


def _updated_at_column() -> Column:
    return Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def _owner_column() -> Column:
    return Column(
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# =============================================================================
# Shared Models (for API responses, not database tables)
# =============================================================================


class DoctorBase(SQLModel):
    """Base doctor profile fields."""

    email: str = Field(max_length=255)
    name: str = Field(min_length=1, max_length=255)
    clinic_name: str | None = Field(default=None, max_length=255)
    contact_number: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1024)
    specialization: str | None = Field(default=None, max_length=255)
    registration_number: str | None = Field(default=None, max_length=100)


class PatientBase(SQLModel):
    """Base patient fields."""

    name: str = Field(min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    date_of_birth: datetime.date | None = None
    blood_group: str | None = Field(default=None, max_length=10)
    address: str | None = Field(default=None, max_length=1024)
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=50)
    medical_history: str | None = None
    allergies: str | None = None


class AppointmentBase(SQLModel):
    """Base appointment fields."""

    duration_minutes: int | None = Field(default=30, ge=1)
    chief_complaint: str | None = None
    diagnosis: str | None = None
    notes: str | None = None


class TemplateBase(SQLModel):
    """Base template fields."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)
    category: str | None = Field(default=None, max_length=50)


# =============================================================================
# Database Models
# =============================================================================


class Doctor(DoctorBase, table=True):
    """Doctor profile. The id doubles as the authenticated user id."""

    __tablename__ = "doctors"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    created_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_created_at_column())
    updated_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_updated_at_column())


class Patient(PatientBase, table=True):
    """Patient record, owned by exactly one doctor."""

    __tablename__ = "patients"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    doctor_id: uuid.UUID = Field(sa_column=_owner_column())
    gender: Gender | None = Field(default=None, sa_column=_enum_column(Gender, "gender"))
    is_active: bool = Field(default=True)
    created_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_created_at_column())
    updated_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_updated_at_column())


class Appointment(AppointmentBase, table=True):
    """A visit. ``appointment_date`` carries both the date and the time."""

    __tablename__ = "appointments"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    doctor_id: uuid.UUID = Field(sa_column=_owner_column())
    patient_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    # Clinic wall-clock time, stored without a zone.
    appointment_date: datetime.datetime = Field(
        sa_column=Column(DateTime(), nullable=False, index=True),
    )
    status: AppointmentStatus = Field(
        default=AppointmentStatus.SCHEDULED,
        sa_column=_enum_column(AppointmentStatus, "appointment_status", nullable=False),
    )
    created_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_created_at_column())
    updated_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_updated_at_column())


class Template(TemplateBase, table=True):
    """Document template.

    ``content_json`` (column ``schema_json``) holds a V1 TemplateContent when
    ``builder_version`` is 1 and a builder schema (version 2) when it is 2.
    """

    __tablename__ = "templates"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    doctor_id: uuid.UUID = Field(sa_column=_owner_column())
    content_json: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("schema_json", JSONType, nullable=False),
    )
    builder_version: int = Field(default=1, ge=1, le=2)
    is_active: bool = Field(default=True)
    created_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_created_at_column())
    updated_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_updated_at_column())


class Document(SQLModel, table=True):
    """Generated document. Rows are never updated or deleted."""

    __tablename__ = "documents"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True),
    )
    doctor_id: uuid.UUID = Field(sa_column=_owner_column())
    patient_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    appointment_id: uuid.UUID | None = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("appointments.id", ondelete="SET NULL")),
    )
    template_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("templates.id"), nullable=False),
    )
    document_name: str = Field(max_length=255)
    document_type: str | None = Field(default=None, max_length=50)
    data_json: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONType, nullable=False),
    )
    created_by: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))
    created_at: datetime.datetime = Field(default_factory=_utcnow, sa_column=_created_at_column())
