"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

import datetime
import uuid
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from medidoc.db.models import AppointmentStatus, Gender
from medidoc.strategies.builder.models import BuilderElement, PrefillData
from medidoc.strategies.template_engine.models import (
    PageSettings,
    TemplateCategory,
    TemplateContent,
    TemplateStyles,
)


def _reject_null(value: Any) -> Any:
    """Fields backed by NOT NULL columns may be omitted but not cleared."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


# =============================================================================
# Doctor Schemas
# =============================================================================


class DoctorCreate(BaseModel):
    """Request schema for registering a doctor profile."""

    id: uuid.UUID | None = Field(
        default=None,
        description="Identity of the authenticated user; generated when omitted",
    )
    email: EmailStr = Field(description="Doctor email address")
    name: str = Field(min_length=1, max_length=255)
    clinic_name: str | None = Field(default=None, max_length=255)
    contact_number: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1024)
    specialization: str | None = Field(default=None, max_length=255)
    registration_number: str | None = Field(default=None, max_length=100)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "dr.smith@example.com",
                "name": "Dr. Smith",
                "clinic_name": "City Clinic",
                "contact_number": "555-0100",
                "specialization": "General Practice",
                "registration_number": "REG-12345",
            }
        }
    }


class DoctorUpdate(BaseModel):
    """Request schema for updating the current doctor's profile."""

    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    clinic_name: str | None = Field(default=None, max_length=255)
    contact_number: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1024)
    specialization: str | None = Field(default=None, max_length=255)
    registration_number: str | None = Field(default=None, max_length=100)

    @field_validator("email", "name")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return _reject_null(v)


class DoctorResponse(BaseModel):
    """Response schema for a doctor profile."""

    id: uuid.UUID
    email: str
    name: str
    clinic_name: str | None
    contact_number: str | None
    address: str | None
    specialization: str | None
    registration_number: str | None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Patient Schemas
# =============================================================================


class PatientCreate(BaseModel):
    """Request schema for creating a patient."""

    name: str = Field(min_length=1, max_length=255, description="Patient full name")
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    date_of_birth: datetime.date | None = None
    gender: Gender | None = None
    blood_group: str | None = Field(default=None, max_length=10)
    address: str | None = Field(default=None, max_length=1024)
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=50)
    medical_history: str | None = None
    allergies: str | None = None


class PatientUpdate(BaseModel):
    """Request schema for updating a patient. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    date_of_birth: datetime.date | None = None
    gender: Gender | None = None
    blood_group: str | None = Field(default=None, max_length=10)
    address: str | None = Field(default=None, max_length=1024)
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=50)
    medical_history: str | None = None
    allergies: str | None = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return _reject_null(v)


class PatientResponse(BaseModel):
    """Response schema for a patient."""

    id: uuid.UUID
    doctor_id: uuid.UUID
    name: str
    phone: str | None
    email: str | None
    date_of_birth: datetime.date | None
    gender: Gender | None
    blood_group: str | None
    address: str | None
    emergency_contact: str | None
    emergency_phone: str | None
    medical_history: str | None
    allergies: str | None
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


class PatientListResponse(BaseModel):
    """Response for listing patients."""

    patients: list[PatientResponse]
    total: int


# =============================================================================
# Appointment Schemas
# =============================================================================


class AppointmentCreate(BaseModel):
    """Request schema for booking an appointment.

    Date and time are sent separately and stored as one timestamp.
    """

    patient_id: uuid.UUID
    appointment_date: datetime.date
    appointment_time: datetime.time
    duration_minutes: int = Field(default=30, ge=1, le=24 * 60)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    chief_complaint: str | None = None
    diagnosis: str | None = None
    notes: str | None = None


class AppointmentUpdate(BaseModel):
    """Request schema for updating an appointment. Omitted fields are unchanged."""

    appointment_date: datetime.date | None = None
    appointment_time: datetime.time | None = None
    duration_minutes: int | None = Field(default=None, ge=1, le=24 * 60)
    status: AppointmentStatus | None = None
    chief_complaint: str | None = None
    diagnosis: str | None = None
    notes: str | None = None

    @field_validator("status")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return _reject_null(v)


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Response schema for an appointment."""

    id: uuid.UUID
    doctor_id: uuid.UUID
    patient_id: uuid.UUID
    appointment_date: datetime.datetime
    duration_minutes: int | None
    status: AppointmentStatus
    chief_complaint: str | None
    diagnosis: str | None
    notes: str | None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]
    total: int


# =============================================================================
# Template Schemas
# =============================================================================


class TemplateCreate(BaseModel):
    """Request schema for a V1 text template."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)
    category: TemplateCategory | None = None
    content: str = Field(description="Template text with {{section.field}} placeholders")
    variables: str = Field(
        default="",
        description="Comma-separated dotted variable paths, e.g. 'patient.name, doctor.name'",
    )
    styles: TemplateStyles | None = None
    page_settings: PageSettings | None = None


class TemplateUpdate(BaseModel):
    """Request schema for updating a V1 template. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)
    category: TemplateCategory | None = None
    content: str | None = None
    variables: str | None = None
    styles: TemplateStyles | None = None
    page_settings: PageSettings | None = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return _reject_null(v)


class BuilderTemplateCreate(BaseModel):
    """Request schema for a V2 builder template."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)
    category: TemplateCategory | None = None
    elements: list[BuilderElement] = Field(description="Ordered form elements")


class BuilderTemplateUpdate(BaseModel):
    """Request schema for updating a V2 builder template."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)
    category: TemplateCategory | None = None
    elements: list[BuilderElement] | None = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        return _reject_null(v)


class TemplateActiveUpdate(BaseModel):
    is_active: bool


class TemplateResponse(BaseModel):
    """Response schema for a template of either version."""

    id: uuid.UUID
    doctor_id: uuid.UUID
    name: str
    description: str | None
    category: str | None
    content_json: dict[str, Any] = Field(serialization_alias="schema_json")
    builder_version: int
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


class TemplateListResponse(BaseModel):
    templates: list[TemplateResponse]
    total: int


class TemplateMigrationResponse(BaseModel):
    """Result of converting a V1 template to a builder template."""

    template: TemplateResponse
    changes: list[str]
    warnings: list[str]


class DefaultTemplateResponse(BaseModel):
    key: str
    category: TemplateCategory
    content: TemplateContent


# =============================================================================
# Document Schemas
# =============================================================================


class DocumentCreate(BaseModel):
    """Request schema for generating a document from a V1 template."""

    template_id: uuid.UUID
    patient_id: uuid.UUID
    appointment_id: uuid.UUID | None = None
    custom_content: str | None = Field(
        default=None,
        description="Edited document text; replaces the substituted template content",
    )


class BuilderDocumentCreate(BaseModel):
    """Request schema for generating a document from a builder template."""

    template_id: uuid.UUID
    patient_id: uuid.UUID
    appointment_id: uuid.UUID | None = None
    form_data: dict[str, Any] = Field(default_factory=dict)
    place: str | None = None


class DocumentResponse(BaseModel):
    """Response schema for a generated document."""

    id: uuid.UUID
    doctor_id: uuid.UUID
    patient_id: uuid.UUID
    appointment_id: uuid.UUID | None
    template_id: uuid.UUID
    document_name: str
    document_type: str | None
    data_json: dict[str, Any]
    created_by: uuid.UUID
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    total: int


# =============================================================================
# Prefill Schemas
# =============================================================================


class PrefillFormRequest(BaseModel):
    """Request initial values for a builder template."""

    template_id: uuid.UUID
    patient_id: uuid.UUID | None = None
    appointment_id: uuid.UUID | None = None
    place: str | None = None


class PrefillFormResponse(BaseModel):
    prefill_data: PrefillData
    values: dict[str, Any]
    read_only_fields: list[str]


class SubmissionValidateRequest(PrefillFormRequest):
    """Dry-run a builder form submission."""

    form_data: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")
