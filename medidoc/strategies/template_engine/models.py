"""Template engine domain models.

Pydantic models for legacy (V1) text templates and the data bag their
``{{section.field}}`` placeholders resolve against.
"""

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TemplateCategory(str, enum.Enum):
    """Classification of a template. Not enforced against content."""

    PRESCRIPTION = "prescription"
    MEDICAL_CERTIFICATE = "medical_certificate"
    LAB_REPORT = "lab_report"
    REFERRAL = "referral"
    DISCHARGE_SUMMARY = "discharge_summary"
    CONSULTATION_NOTE = "consultation_note"
    INVOICE = "invoice"
    OTHER = "other"


class TemplateStyles(BaseModel):
    """Optional typography for rendered documents."""

    model_config = ConfigDict(populate_by_name=True)

    font_size: int | None = Field(default=None, alias="fontSize")
    font_family: str | None = Field(default=None, alias="fontFamily")
    line_height: float | None = Field(default=None, alias="lineHeight")
    page_margins: tuple[int, int, int, int] | None = Field(
        default=None,
        alias="pageMargins",
        description="[top, right, bottom, left] in points",
    )


class PageSettings(BaseModel):
    """Optional page geometry for rendered documents."""

    size: Literal["A4", "Letter"] | None = None
    orientation: Literal["portrait", "landscape"] | None = None


DEFAULT_STYLES = TemplateStyles(
    font_size=12,
    font_family="Helvetica",
    line_height=1.5,
    page_margins=(40, 60, 40, 60),
)
DEFAULT_PAGE_SETTINGS = PageSettings(size="A4", orientation="portrait")


class TemplateContent(BaseModel):
    """A V1 template: flat text with ``{{path}}`` placeholders.

    ``elements`` is always empty for V1; it exists because V1 and V2
    templates share one storage column.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: Literal["1.0"] = "1.0"
    variables: list[str] = Field(default_factory=list)
    content: str
    elements: list[Any] = Field(default_factory=list)
    styles: TemplateStyles | None = None
    page_settings: PageSettings | None = Field(default=None, alias="pageSettings")

    def to_storage(self) -> dict[str, Any]:
        """Serialize using the camelCase keys stored in ``schema_json``."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Document data bag
# =============================================================================


class DoctorSection(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    specialization: str | None = None
    license_number: str | None = None
    clinic_name: str | None = None
    clinic_address: str | None = None


class PatientSection(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    date_of_birth: str | None = None
    age: int | None = None
    gender: str | None = None
    blood_group: str | None = None
    address: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None


class AppointmentSection(BaseModel):
    appointment_date: str | None = None
    appointment_time: str | None = None
    duration_minutes: int | None = None
    chief_complaint: str | None = None
    diagnosis: str | None = None
    notes: str | None = None


class DocumentSection(BaseModel):
    date: str
    id: str | None = None
    created_at: str | None = None


class DocumentData(BaseModel):
    """Resolution context for V1 placeholders.

    Every leaf is optional except ``document.date``; a missing leaf
    resolves to the sentinel rather than failing.
    """

    doctor: DoctorSection = Field(default_factory=DoctorSection)
    patient: PatientSection = Field(default_factory=PatientSection)
    appointment: AppointmentSection | None = None
    document: DocumentSection
