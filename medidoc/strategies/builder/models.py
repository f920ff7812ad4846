"""Builder (V2) schema models.

A builder schema is an ordered list of typed form elements. Each element
may declare a prefill rule that populates it from patient, doctor,
appointment or system data. Stored JSON uses camelCase keys; the models
accept either camelCase or snake_case.
"""

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ElementType(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    PARAGRAPH = "paragraph"
    DROPDOWN = "dropdown"
    RADIO = "radio"
    DATE = "date"
    CALCULATED = "calculated"
    DIVIDER = "divider"
    HEADER = "header"


class PrefillSource(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    APPOINTMENT = "appointment"
    SYSTEM = "system"


class CalculationKind(str, enum.Enum):
    BMI = "bmi"
    AGE = "age"
    AGE_MONTHS = "age_months"
    DAYS_BETWEEN = "days_between"
    CUSTOM = "custom"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrefillConfig(_CamelModel):
    """Where a field's initial value comes from.

    ``field`` is a key from :data:`PREFILL_FIELDS` for ``source``; the
    source prefix is optional (``patient_name`` and ``name`` are the same
    key under the patient source).
    """

    enabled: bool = False
    source: PrefillSource
    field: str
    readonly: bool = False


class ElementValidation(_CamelModel):
    pattern: str | None = None
    message: str | None = None
    min: float | None = None
    max: float | None = None
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)


class ElementPosition(_CamelModel):
    """Grid placement. Layout only; has no effect on resolution."""

    row: int = Field(default=0, ge=0)
    col: int = Field(default=0, ge=0)
    width: int = Field(default=12, ge=1, le=12)


class ElementProperties(_CamelModel):
    placeholder: str | None = None
    options: list[str] | None = None
    calculation: CalculationKind | None = None
    calculation_formula: str | None = None
    help_text: str | None = None
    default_value: str | int | float | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    rows: int | None = None
    font_size: Literal["small", "medium", "large"] | None = None
    alignment: Literal["left", "center", "right"] | None = None
    use_current_date: bool = False


class BuilderElement(_CamelModel):
    id: str
    type: ElementType
    label: str
    name: str
    required: bool = False
    prefill: PrefillConfig | None = None
    properties: ElementProperties = Field(default_factory=ElementProperties)
    validation: ElementValidation | None = None
    position: ElementPosition = Field(default_factory=ElementPosition)


class BuilderSchema(_CamelModel):
    version: Literal[2] = 2
    elements: list[BuilderElement] = Field(default_factory=list)
    variables: list[Any] | None = None

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Prefill data bag
# =============================================================================


class PatientPrefill(BaseModel):
    id: str
    name: str
    phone: str | None = None
    email: str | None = None
    date_of_birth: str | None = Field(default=None, description="YYYY-MM-DD")
    gender: str | None = None


class DoctorPrefill(BaseModel):
    id: str
    name: str
    clinic: str | None = None


class AppointmentPrefill(BaseModel):
    id: str
    date: str = Field(description="YYYY-MM-DD")
    time: str | None = Field(default=None, description="HH:MM")


class SystemPrefill(BaseModel):
    current_date: str = Field(description="YYYY-MM-DD")
    current_time: str = Field(description="HH:MM")
    place: str | None = None


class PrefillData(BaseModel):
    """Resolution context for builder prefill; absent sections resolve to nothing."""

    patient: PatientPrefill | None = None
    doctor: DoctorPrefill | None = None
    appointment: AppointmentPrefill | None = None
    system: SystemPrefill | None = None


FieldValue = str | int | float | bool


class SubmissionResult(BaseModel):
    """Outcome of sanitizing a form submission.

    ``sanitized_data`` is returned even when invalid so the caller can
    re-render with locked values restored.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    sanitized_data: dict[str, Any] = Field(default_factory=dict)
